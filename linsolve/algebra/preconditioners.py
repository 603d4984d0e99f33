"""Preconditioners for Krylov strategies.

Every preconditioner exposes ``solve(x)``, applying M^{-1} where M
approximates the operator. ``as_scipy_preconditioner`` adapts them (or a
plain array/sparse matrix/scipy operator, taken as M^{-1} directly, the
scipy convention) to the ``M`` argument of scipy's Krylov methods.
"""

from typing import Any, Optional

import numpy as np
import scipy.sparse
import scipy.sparse.linalg
from numpy.typing import NDArray

from linsolve.algebra.sparse import as_csc, superlu_solve
from linsolve.core.errors import SingularMatrixError


class IdentityPreconditioner:
    """M = I."""

    def __init__(self, n: int):
        self.shape = (n, n)

    def solve(self, x: NDArray) -> NDArray:
        return x


class ScaledPreconditioner:
    """M = s I (s scalar) or M = diag(s) (s vector)."""

    def __init__(self, s, n: Optional[int] = None):
        self.s = np.asarray(s)
        if n is None:
            if self.s.ndim == 0:
                raise ValueError("n is required for a scalar scale")
            n = self.s.shape[0]
        self.shape = (n, n)

    def solve(self, x: NDArray) -> NDArray:
        if self.s.ndim == 1 and x.ndim == 2:
            return x / self.s[:, None]
        return x / self.s


class JacobiPreconditioner(ScaledPreconditioner):
    """M = diag(A)."""

    def __init__(self, A: Any):
        if scipy.sparse.issparse(A):
            d = A.diagonal()
        elif isinstance(A, np.ndarray):
            d = np.diagonal(A)
        else:
            d = np.diagonal(np.asarray(A))
        if np.any(d == 0):
            raise SingularMatrixError("Jacobi preconditioner needs a zero-free diagonal")
        super().__init__(np.array(d))


class ILUPreconditioner:
    """Incomplete LU (SuperLU ``spilu``)."""

    def __init__(self, A: Any, drop_tol: float = 1e-4, fill_factor: float = 10.0):
        C = as_csc(A)
        try:
            self._ilu = scipy.sparse.linalg.spilu(
                C, drop_tol=drop_tol, fill_factor=fill_factor
            )
        except RuntimeError as exc:
            raise SingularMatrixError(f"Incomplete LU failed: {exc}") from exc
        self.shape = C.shape
        self.dtype = np.dtype(C.dtype)

    def solve(self, x: NDArray) -> NDArray:
        return superlu_solve(self._ilu, x, self.dtype)


class InvPreconditioner:
    """M^{-1} given explicitly as an operator: solve(x) = op @ x."""

    def __init__(self, op: Any):
        self.op = op
        self.shape = tuple(op.shape)

    def solve(self, x: NDArray) -> NDArray:
        return self.op @ x


class ComposePreconditioner:
    """Apply ``inner`` then ``outer``: M^{-1} = M_outer^{-1} M_inner^{-1}."""

    def __init__(self, inner: Any, outer: Any):
        if tuple(inner.shape) != tuple(outer.shape):
            raise ValueError(
                f"Cannot compose preconditioners of shapes {inner.shape} and {outer.shape}"
            )
        self.inner = inner
        self.outer = outer
        self.shape = tuple(inner.shape)

    def solve(self, x: NDArray) -> NDArray:
        return self.outer.solve(self.inner.solve(x))


def is_identity(P: Any) -> bool:
    return P is None or isinstance(P, IdentityPreconditioner)


def as_scipy_preconditioner(
    P: Any, n: int, dtype
) -> Optional[scipy.sparse.linalg.LinearOperator]:
    """
    Adapt a preconditioner to scipy's ``M`` argument.

    Args:
        P: None, an object with ``solve``, or an array/sparse
            matrix/scipy operator representing M^{-1}
        n: System size
        dtype: Element type

    Returns:
        scipy LinearOperator applying M^{-1}, or None for the identity
    """
    if is_identity(P):
        return None
    if isinstance(P, scipy.sparse.linalg.LinearOperator):
        return P
    if isinstance(P, np.ndarray) or scipy.sparse.issparse(P):
        return scipy.sparse.linalg.aslinearoperator(P)
    if callable(getattr(P, "solve", None)):
        return scipy.sparse.linalg.LinearOperator(
            shape=(n, n), matvec=P.solve, rmatvec=None, dtype=dtype
        )
    raise TypeError(f"Unsupported preconditioner type {type(P).__name__}")
