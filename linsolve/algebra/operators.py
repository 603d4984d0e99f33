"""Matrix-free operator wrappers."""

from typing import Any, Callable, Optional
import numpy as np
import scipy.sparse
import scipy.sparse.linalg
from numpy.typing import NDArray


class LinearOperator:
    """
    Matrix-free linear operator wrapper.

    Exposes A @ x through ``matvec`` and, optionally, A^{-1} b through
    ``solve``. An operator with a ``solve`` callback is picked up by the
    default selector and solved by deferring to it.
    """

    def __init__(
        self,
        shape: tuple[int, int],
        matvec: Callable[[NDArray], NDArray],
        rmatvec: Callable[[NDArray], NDArray] | None = None,
        solve: Callable[[NDArray], NDArray] | None = None,
        dtype: Any = np.float64,
    ):
        """
        Initialize linear operator.

        Args:
            shape: (m, n) dimensions
            matvec: Function computing A @ x
            rmatvec: Function computing A^H @ x (optional)
            solve: Function computing A^{-1} @ b (optional)
            dtype: Element type of the operator
        """
        self.shape = (int(shape[0]), int(shape[1]))
        self.dtype = np.dtype(dtype)
        self._matvec = matvec
        self._rmatvec = rmatvec
        self._solve = solve

    @property
    def has_solve(self) -> bool:
        return self._solve is not None

    def matvec(self, x: NDArray) -> NDArray:
        """Compute A @ x."""
        return self._matvec(x)

    def rmatvec(self, x: NDArray) -> NDArray:
        """Compute A^H @ x."""
        if self._rmatvec is None:
            raise NotImplementedError("Adjoint operation not provided")
        return self._rmatvec(x)

    def solve(self, b: NDArray) -> NDArray:
        """Compute A^{-1} @ b."""
        if self._solve is None:
            raise NotImplementedError("Inverse operation not provided")
        return self._solve(b)

    def __matmul__(self, x: NDArray) -> NDArray:
        """Support A @ x syntax."""
        x = np.asarray(x)
        if x.ndim == 2:
            return np.column_stack([self.matvec(col) for col in x.T])
        return self.matvec(x)


def as_scipy_operator(A: Any) -> scipy.sparse.linalg.LinearOperator:
    """
    Adapt any supported operator to ``scipy.sparse.linalg.LinearOperator``.

    Arrays, sparse matrices and scipy operators go through
    ``aslinearoperator``; structured wrappers and ``LinearOperator`` are
    wrapped by their matvec.
    """
    if isinstance(A, scipy.sparse.linalg.LinearOperator):
        return A
    if isinstance(A, np.ndarray) or scipy.sparse.issparse(A):
        return scipy.sparse.linalg.aslinearoperator(A)

    rmatvec: Optional[Callable[[NDArray], NDArray]] = None
    if isinstance(A, LinearOperator):
        matvec = A.matvec
        if A._rmatvec is not None:
            rmatvec = A.rmatvec
    elif callable(getattr(A, "matvec", None)):
        matvec = A.matvec
        if callable(getattr(A, "rmatvec", None)):
            rmatvec = A.rmatvec
    else:
        matvec = A.__matmul__

    return scipy.sparse.linalg.LinearOperator(
        shape=A.shape, matvec=matvec, rmatvec=rmatvec, dtype=getattr(A, "dtype", None)
    )
