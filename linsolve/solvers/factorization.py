"""Dense direct strategies with factorization reuse."""

from dataclasses import dataclass
from typing import Any, Callable, Optional
import logging

import numpy as np
import scipy.linalg
import scipy.sparse
from numpy.typing import NDArray

from linsolve.algebra.dense import (
    lapack_lu,
    recursive_lu,
    generic_lu,
    generic_lu_solve,
    has_zero_pivot,
    ldl_factor,
    ldl_solve,
    block_diagonal_singular,
)
from linsolve.algebra.sparse import SparseLU, as_csc, sparse_lu
from linsolve.algebra.structured import Hermitian, Symmetric
from linsolve.core.errors import SingularMatrixError
from linsolve.core.traits import OperatorKind
from linsolve.solvers.base import AbstractFactorization, to_dense
from linsolve.solvers.registry import ALL_FAMILIES, BLAS_FAMILIES, registry

logger = logging.getLogger(__name__)

_CONCRETE = (OperatorKind.DENSE, OperatorKind.STRUCTURED)


@registry.register(
    kinds=(OperatorKind.DENSE, OperatorKind.SPARSE, OperatorKind.STRUCTURED),
    families=BLAS_FAMILIES,
)
@dataclass(frozen=True)
class LUFactorization(AbstractFactorization):
    """
    LU with partial pivoting: LAPACK getrf on dense operators, SuperLU on
    sparse ones.

    Attributes:
        check: Raise SingularMatrixError on an exactly zero pivot
    """

    check: bool = True

    def factorize(self, A):
        if scipy.sparse.issparse(A):
            return sparse_lu(as_csc(A))

        lu, piv = lapack_lu(to_dense(A))
        if self.check and has_zero_pivot(lu):
            raise SingularMatrixError("LU factorization hit a zero pivot")
        return lu, piv

    def ldiv(self, factors, b):
        if isinstance(factors, SparseLU):
            return factors.solve(b)
        return scipy.linalg.lu_solve(factors, b, check_finite=False)


@registry.register(kinds=_CONCRETE, families=ALL_FAMILIES)
@dataclass(frozen=True)
class GenericLUFactorization(AbstractFactorization):
    """
    Partial-pivot LU without BLAS.

    Works for any element type with field operations (object arrays of
    ``fractions.Fraction`` are solved exactly). Integer input is promoted
    to float64.
    """

    def factorize(self, A):
        lu, piv = generic_lu(to_dense(A))
        if has_zero_pivot(lu):
            raise SingularMatrixError("Generic LU factorization hit a zero pivot")
        return lu, piv

    def ldiv(self, factors, b):
        lu, piv = factors
        return generic_lu_solve(lu, piv, b)


@registry.register(kinds=_CONCRETE, families=BLAS_FAMILIES)
@dataclass(frozen=True)
class RecursiveLUFactorization(AbstractFactorization):
    """
    Recursive blocked LU, tuned for small-to-medium dense matrices.

    Attributes:
        threshold: Panel width below which the unblocked kernel runs
    """

    threshold: int = 16

    def factorize(self, A):
        lu, piv = recursive_lu(to_dense(A), self.threshold)
        if has_zero_pivot(lu):
            raise SingularMatrixError("Recursive LU factorization hit a zero pivot")
        return lu, piv

    def ldiv(self, factors, b):
        return scipy.linalg.lu_solve(factors, b, check_finite=False)


@registry.register(kinds=_CONCRETE, families=BLAS_FAMILIES)
@dataclass(frozen=True)
class QRFactorization(AbstractFactorization):
    """
    Economic QR. Tall operators get the least-squares solution, wide ones
    the minimum-norm solution (via QR of A^H).

    Attributes:
        pivoting: Use column pivoting (geqp3)
    """

    pivoting: bool = False
    least_squares = True

    def factorize(self, A):
        A = to_dense(A)
        m, n = A.shape
        wide = m < n
        target = A.conj().T if wide else A
        if self.pivoting:
            Q, R, P = scipy.linalg.qr(target, mode="economic", pivoting=True)
        else:
            Q, R = scipy.linalg.qr(target, mode="economic")
            P = None
        if np.any(np.diagonal(R) == 0):
            raise SingularMatrixError("QR factorization is rank deficient")
        return Q, R, P, wide

    def ldiv(self, factors, b):
        Q, R, P, wide = factors
        if wide:
            # A = (Q R P^T)^H; minimum-norm x = Q R^{-H} P^T b
            bp = b if P is None else b[P]
            y = scipy.linalg.solve_triangular(R, bp, trans="C", lower=False)
            return Q @ y
        y = scipy.linalg.solve_triangular(R, Q.conj().T @ b, lower=False)
        if P is None:
            return y
        x = np.empty_like(y)
        x[P] = y
        return x


@registry.register(kinds=_CONCRETE, families=BLAS_FAMILIES)
@dataclass(frozen=True)
class SVDFactorization(AbstractFactorization):
    """
    Thin SVD; applies the pseudo-inverse.

    Singular values below ``rcond * s_max`` are treated as zero, so rank
    deficient operators yield the minimum-norm least-squares solution
    instead of an error.
    """

    rcond: Optional[float] = None
    lapack_driver: str = "gesdd"
    least_squares = True

    def factorize(self, A):
        A = to_dense(A)
        try:
            U, s, Vh = scipy.linalg.svd(
                A, full_matrices=False, lapack_driver=self.lapack_driver
            )
        except np.linalg.LinAlgError as exc:
            raise SingularMatrixError(f"SVD did not converge: {exc}") from exc
        rcond = self.rcond
        if rcond is None:
            rcond = np.finfo(s.dtype).eps * max(A.shape)
        cutoff = rcond * (s[0] if s.size else 0.0)
        s_inv = np.where(s > cutoff, 1.0 / np.where(s > cutoff, s, 1.0), 0.0)
        dropped = int(np.count_nonzero(s <= cutoff))
        if dropped:
            logger.debug("SVD: %d singular values below %.3e treated as zero", dropped, cutoff)
        return U, s_inv, Vh

    def ldiv(self, factors, b):
        U, s_inv, Vh = factors
        c = U.conj().T @ b
        c = c * (s_inv[:, None] if c.ndim == 2 else s_inv)
        return Vh.conj().T @ c


@registry.register(kinds=_CONCRETE, families=BLAS_FAMILIES)
@dataclass(frozen=True)
class CholeskyFactorization(AbstractFactorization):
    """Cholesky for Hermitian positive-definite operators."""

    lower: bool = False

    def factorize(self, A):
        try:
            return scipy.linalg.cho_factor(to_dense(A), lower=self.lower)
        except np.linalg.LinAlgError as exc:
            raise SingularMatrixError(
                f"Cholesky failed, operator is not positive definite: {exc}"
            ) from exc

    def ldiv(self, factors, b):
        return scipy.linalg.cho_solve(factors, b, check_finite=False)


@registry.register(kinds=_CONCRETE, families=BLAS_FAMILIES)
@dataclass(frozen=True)
class BunchKaufmanFactorization(AbstractFactorization):
    """
    Symmetric-indefinite LDL^T (Bunch-Kaufman pivoting).

    Attributes:
        hermitian: Factor as LDL^H. None picks it from the operator: a
            ``Hermitian`` wrapper or a complex array is Hermitian, a
            ``Symmetric`` wrapper or a real array is symmetric.
    """

    hermitian: Optional[bool] = None

    def _is_hermitian(self, A) -> bool:
        if self.hermitian is not None:
            return self.hermitian
        if isinstance(A, Hermitian):
            return True
        if isinstance(A, Symmetric):
            return False
        return np.iscomplexobj(A)

    def factorize(self, A):
        hermitian = self._is_hermitian(A)
        L, D, perm = ldl_factor(to_dense(A), hermitian)
        if block_diagonal_singular(D):
            raise SingularMatrixError("LDL factorization has a singular block diagonal")
        return (L, D, perm), hermitian

    def ldiv(self, factors, b):
        ldl, hermitian = factors
        return ldl_solve(ldl, b, hermitian)


@registry.register(
    kinds=(OperatorKind.DENSE, OperatorKind.SPARSE, OperatorKind.STRUCTURED),
    families=ALL_FAMILIES,
)
@dataclass(frozen=True)
class GenericFactorization(AbstractFactorization):
    """
    Caller-supplied factorization pair.

    ``factorize(A)`` returns any factorization object, ``solve(F, b)``
    applies it. ``numpy.linalg.LinAlgError`` from ``factorize`` is reported
    as SingularMatrixError. Defaults to LAPACK LU.
    """

    factorize_fn: Callable[[Any], Any] = scipy.linalg.lu_factor
    solve_fn: Callable[[Any, NDArray], NDArray] = scipy.linalg.lu_solve
    least_squares = True

    def factorize(self, A):
        try:
            return self.factorize_fn(A)
        except np.linalg.LinAlgError as exc:
            raise SingularMatrixError(str(exc)) from exc

    def ldiv(self, factors, b):
        return self.solve_fn(factors, b)
