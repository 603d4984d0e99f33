"""Reusable solve handle."""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Optional
import logging

import numpy as np
from numpy.typing import NDArray

from linsolve.core.errors import ShapeMismatchError
from linsolve.core.options import SolverOptions
from linsolve.core.problem import LinearProblem, _result_dtype, check_guess, check_rhs
from linsolve.core.traits import OperatorTraits, operator_traits
from linsolve.interface.orchestrator import run
from linsolve.solvers.base import LinearSolveAlgorithm
from linsolve.solvers.registry import registry

logger = logging.getLogger(__name__)


class CacheState(Enum):
    """Whether the backend state reflects the current operator."""
    UNBOUND = auto()  # no backend state yet
    FRESH = auto()    # backend state valid for the current operator
    STALE = auto()    # operator changed since the last prepare


@dataclass
class SolveStats:
    """Counters for observing reuse."""

    nprepare: int = 0
    napply: int = 0
    nrelease: int = 0


def _buffer_dtype(A: Any, b: NDArray, u: NDArray) -> np.dtype:
    return np.result_type(u.dtype, _result_dtype(A, b))


class LinearCache:
    """
    Mutable solve handle: a problem bound to a strategy plus the
    strategy's backend state.

    Backend state is built lazily on the first solve and rebuilt only after
    ``set_operator``. Changing the right-hand side, guess or parameters
    keeps it. The cache owns a private copy of the initial guess, which is
    used as the solution buffer.

    Not safe for concurrent use; distinct caches are independent.
    """

    def __init__(
        self,
        problem: LinearProblem,
        alg: LinearSolveAlgorithm,
        options: Optional[SolverOptions] = None,
        traits: Optional[OperatorTraits] = None,
    ):
        """
        Bind a problem to a strategy.

        Args:
            problem: Problem to solve
            alg: Strategy instance
            options: Cache-level solver options
            traits: Precomputed traits of problem.A

        Raises:
            UnsupportedOperatorError: If alg has no backend for problem.A
        """
        if traits is None:
            traits = operator_traits(problem.A)
        registry.check(alg, traits)

        self.A = problem.A
        self.b = problem.b
        self.p = problem.p
        self.u = np.array(problem.u0, dtype=_buffer_dtype(problem.A, problem.b, problem.u0))
        self.alg = alg
        self.options = options if options is not None else SolverOptions()
        self.traits = traits
        self.cacheval: Any = None
        self.isfresh = True
        self.stats = SolveStats()

        self._state = CacheState.UNBOUND
        # Every set_operator since the last prepare kept the nonzero pattern
        self._same_pattern = True

    @property
    def state(self) -> CacheState:
        return self._state

    def set_operator(self, A: Any, assume_same_pattern: bool = True) -> None:
        """
        Replace the operator; the next solve re-runs prepare.

        Args:
            A: New operator with the same shape
            assume_same_pattern: Sparse strategies with symbolic reuse may
                keep their symbolic factorization. A wrong assumption is
                detected at solve time (PatternMismatchError).

        Raises:
            ShapeMismatchError: If A has a different shape
            UnsupportedOperatorError: If the bound strategy cannot handle A
        """
        traits = operator_traits(A)
        if traits.shape != self.traits.shape:
            raise ShapeMismatchError("operator shape", self.traits.shape, traits.shape)
        registry.check(self.alg, traits)

        self.A = A
        self.traits = traits
        self._same_pattern = self._same_pattern and assume_same_pattern
        if self._state is CacheState.FRESH:
            self._state = CacheState.STALE
        self.isfresh = True
        self._upcast(self.A, self.b)

    def set_rhs(self, b: NDArray) -> None:
        """Replace the right-hand side; backend state stays valid."""
        b = np.asarray(b)
        check_rhs(self.traits.shape, b)
        if b.shape != self.b.shape:
            raise ShapeMismatchError("rhs shape", self.b.shape, b.shape)
        self.b = b
        self._upcast(self.A, b)

    def set_guess(self, u: NDArray) -> None:
        """Replace the initial guess (copied into a cache-owned buffer)."""
        u = np.asarray(u)
        check_guess(self.traits.shape, self.b, u)
        self.u = np.array(u, dtype=np.result_type(self.u.dtype, u.dtype))

    def set_parameters(self, p: Any) -> None:
        self.p = p

    def _upcast(self, A: Any, b: NDArray) -> None:
        dtype = _buffer_dtype(A, b, self.u)
        if dtype != self.u.dtype:
            logger.debug("promoting solution buffer %s -> %s", self.u.dtype, dtype)
            self.u = self.u.astype(dtype)

    def _mark_prepared(self, cacheval: Any) -> None:
        self.cacheval = cacheval
        self.stats.nprepare += 1
        self._state = CacheState.FRESH
        self._same_pattern = True
        self.isfresh = False

    def _mark_failed(self) -> None:
        self._state = CacheState.UNBOUND if self.cacheval is None else CacheState.STALE
        self.isfresh = True

    def solve(self, **overrides):
        """
        Solve with the current operator and right-hand side.

        Args:
            **overrides: Per-call SolverOptions fields (abstol, reltol,
                maxiter, verbose)

        Returns:
            LinearSolution whose ``u`` is the cache's solution buffer
        """
        return run(self, **overrides)

    def close(self) -> None:
        """Release backend state; the cache is UNBOUND but still usable."""
        if self.cacheval is not None:
            self.alg.release(self.cacheval)
            self.stats.nrelease += 1
            self.cacheval = None
        self._state = CacheState.UNBOUND
        self._same_pattern = True
        self.isfresh = True

    def __enter__(self) -> "LinearCache":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"LinearCache({self.traits.describe()}, alg={self.alg!r}, "
            f"state={self._state.name})"
        )
