"""Bind and solve entry points."""

from typing import Any, Optional, Union
import logging

from numpy.typing import NDArray

from linsolve.core.options import SolverOptions
from linsolve.core.problem import LinearProblem
from linsolve.core.solution import LinearSolution
from linsolve.core.traits import operator_traits
from linsolve.interface.cache import LinearCache
from linsolve.solvers.base import LinearSolveAlgorithm
from linsolve.solvers.factory import default_algorithm

logger = logging.getLogger(__name__)


def init(
    problem: LinearProblem,
    alg: Optional[LinearSolveAlgorithm] = None,
    **options,
) -> LinearCache:
    """
    Bind a problem to a strategy and return a reusable cache.

    The default strategy is chosen here, once; later ``set_operator`` calls
    never re-select it. Call ``init`` again to re-select.

    Args:
        problem: Problem to solve
        alg: Strategy (None: chosen from the operator's traits)
        **options: SolverOptions fields (abstol, reltol, maxiter, verbose)

    Returns:
        LinearCache in the UNBOUND state

    Raises:
        UnsupportedOperatorError: If alg (or every default) cannot handle A
    """
    solver_options = SolverOptions(**options)
    traits = operator_traits(problem.A)
    if alg is None:
        alg = default_algorithm(traits)
    logger.debug("binding %s to %r", traits.describe(), alg)
    return LinearCache(problem, alg, solver_options, traits=traits)


def solve(
    problem: Union[LinearProblem, LinearCache],
    alg: Optional[LinearSolveAlgorithm] = None,
    **options,
) -> LinearSolution:
    """
    Solve a cache, or a problem once.

    For a problem, a temporary cache is bound, solved and closed; the
    returned solution still refers to it.

    Args:
        problem: LinearProblem for a one-shot solve, or a LinearCache
        alg: Strategy for a one-shot solve
        **options: SolverOptions fields (per-call overrides for a cache)

    Returns:
        LinearSolution
    """
    if isinstance(problem, LinearCache):
        if alg is not None:
            raise TypeError("A cache is already bound to a strategy; call init() to rebind")
        return problem.solve(**options)

    with init(problem, alg, **options) as cache:
        return cache.solve()


def solve_system(
    A: Any,
    b: NDArray,
    alg: Optional[LinearSolveAlgorithm] = None,
    u0: Optional[NDArray] = None,
    p: Any = None,
    **options,
) -> LinearSolution:
    """One-shot solve of A x = b."""
    return solve(LinearProblem(A, b, u0=u0, p=p), alg, **options)
