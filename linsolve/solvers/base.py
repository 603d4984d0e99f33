"""Base strategy interface.

A strategy splits a solve into ``prepare`` (expensive, reusable: a
factorization, a Krylov workspace) and ``apply`` (cheap, repeatable: a
back-substitution, one Krylov run). The cache stores whatever ``prepare``
returns as an opaque payload and hands it back to ``apply`` and ``release``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

import numpy as np
import scipy.sparse
from numpy.typing import NDArray

from linsolve.core.options import SolverOptions
from linsolve.core.solution import ReturnCode
from linsolve.core.traits import OperatorTraits


@dataclass
class ApplyContext:
    """Per-solve data available to ``apply`` besides the backend state."""

    A: Any
    p: Any
    options: SolverOptions
    isfresh: bool


@dataclass
class ApplyResult:
    """What ``apply`` produced: the solution and how it was reached."""

    u: NDArray
    retcode: ReturnCode = ReturnCode.SUCCESS
    iters: int = 0
    resid: Optional[float] = None


def to_dense(A: Any) -> NDArray:
    """Materialize a dense, sparse or structured operator as an ndarray."""
    if isinstance(A, np.ndarray):
        return A
    if scipy.sparse.issparse(A):
        return A.toarray()
    if callable(getattr(A, "toarray", None)):
        return A.toarray()
    raise TypeError(f"{type(A).__name__} cannot be materialized as a matrix")


class LinearSolveAlgorithm(ABC):
    """Contract every solution strategy implements."""

    # Requires a materialized matrix (True) or works through matvec/solve only
    needs_concrete_operator: bool = True
    # Accepts non-square operators and returns a least-squares solution
    least_squares: bool = False

    @abstractmethod
    def prepare(
        self,
        A: Any,
        b: NDArray,
        u: NDArray,
        state: Any = None,
        same_pattern: bool = True,
    ) -> Any:
        """
        Do the reusable work for operator A.

        Args:
            A: Current operator
            b: Current right-hand side (unused by factorizations)
            u: Current guess buffer (unused by factorizations)
            state: Backend state from the previous prepare, or None
            same_pattern: Caller asserts A has the nonzero pattern of the
                operator ``state`` was built for

        Returns:
            Opaque backend state

        Raises:
            SingularMatrixError: Backend detected a non-invertible operator
            PatternMismatchError: same_pattern was asserted but is false
            UnsupportedOperatorError: No backend path for this operator
        """
        ...

    @abstractmethod
    def apply(
        self, state: Any, b: NDArray, u: NDArray, context: ApplyContext
    ) -> ApplyResult:
        """
        Solve for b using existing backend state.

        Args:
            state: Backend state returned by prepare
            b: Right-hand side
            u: Guess / output buffer (may be written in place)
            context: Operator, parameters and options of the cache

        Returns:
            ApplyResult with the solution
        """
        ...

    def release(self, state: Any) -> None:
        """Free backend resources held by state. Default: nothing to free."""

    def check_operator(self, traits: OperatorTraits) -> Optional[str]:
        """Return a reason string if this instance cannot handle the operator."""
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class AbstractFactorization(LinearSolveAlgorithm):
    """
    Direct methods: ``prepare`` factors A, ``apply`` back-substitutes.

    Subclasses implement ``factorize`` and ``ldiv``.
    """

    needs_concrete_operator = True

    def prepare(self, A, b, u, state=None, same_pattern=True):
        return self.factorize(A)

    def apply(self, state, b, u, context):
        return ApplyResult(u=self.ldiv(state, b))

    @abstractmethod
    def factorize(self, A: Any) -> Any:
        """Factor A; raise SingularMatrixError if it is not invertible."""
        ...

    @abstractmethod
    def ldiv(self, factors: Any, b: NDArray) -> NDArray:
        """Return A^{-1} b from the factors."""
        ...


class AbstractKrylovSubspaceMethod(LinearSolveAlgorithm):
    """Iterative methods: operate through matvec only."""

    needs_concrete_operator = False


class AbstractSolveFunction(LinearSolveAlgorithm):
    """Strategies that hand the solve to a callback."""

    needs_concrete_operator = False
    least_squares = True
