"""Prepare/apply sequencing for one solve on a cache."""

import logging

import numpy as np

from linsolve.core.solution import LinearSolution
from linsolve.solvers.base import ApplyContext

logger = logging.getLogger(__name__)


def _prepare(cache, level: int) -> None:
    alg = cache.alg
    old = cache.cacheval
    # Symbolic reuse is only meaningful when rebuilding existing state
    same_pattern = cache._same_pattern and old is not None
    logger.log(level, "%r: prepare (%s)", alg, cache.state.name.lower())

    new = alg.prepare(cache.A, cache.b, cache.u, state=old, same_pattern=same_pattern)
    if old is not None and new is not old:
        alg.release(old)
        cache.stats.nrelease += 1
    cache._mark_prepared(new)


def _store(cache, u) -> None:
    """Copy u into the cache's solution buffer."""
    if u is cache.u:
        return
    u = np.asarray(u)
    dtype = np.result_type(cache.u.dtype, u.dtype)
    if dtype != cache.u.dtype or u.shape != cache.u.shape:
        cache.u = np.array(u, dtype=dtype).reshape(cache.u.shape)
    else:
        cache.u[...] = u


def run(cache, **overrides) -> LinearSolution:
    """
    One solve on cache: prepare if the backend state is not fresh, then apply.

    Any exception from prepare or apply leaves the cache needing a new
    prepare (STALE, or UNBOUND if it never had backend state) and is
    re-raised unchanged.

    Args:
        cache: LinearCache to solve
        **overrides: Per-call SolverOptions fields

    Returns:
        LinearSolution aliasing cache.u
    """
    from linsolve.interface.cache import CacheState

    options = cache.options.updated(**overrides)
    level = logging.INFO if options.verbose else logging.DEBUG
    alg = cache.alg
    isfresh = cache.isfresh

    try:
        if cache.state is not CacheState.FRESH:
            _prepare(cache, level)
        context = ApplyContext(A=cache.A, p=cache.p, options=options, isfresh=isfresh)
        result = alg.apply(cache.cacheval, cache.b, cache.u, context)
        _store(cache, result.u)
    except Exception:
        cache._mark_failed()
        raise

    cache.stats.napply += 1
    logger.log(
        level,
        "%r: apply %s (iters=%d, resid=%s)",
        alg, result.retcode.name, result.iters, result.resid,
    )
    return LinearSolution(
        u=cache.u,
        retcode=result.retcode,
        cache=cache,
        alg=alg,
        iters=result.iters,
        resid=result.resid,
    )
