"""Structure-specific direct strategies."""

from dataclasses import dataclass

import numpy as np
import scipy.linalg
from scipy.linalg import get_lapack_funcs

from linsolve.algebra.dense import has_zero_pivot, lapack_lu
from linsolve.algebra.structured import Diagonal, Tridiagonal
from linsolve.core.errors import SingularMatrixError
from linsolve.core.traits import OperatorKind, Structure
from linsolve.solvers.base import AbstractFactorization, to_dense
from linsolve.solvers.registry import ALL_FAMILIES, BLAS_FAMILIES, registry


@registry.register(
    kinds=(OperatorKind.STRUCTURED,),
    families=ALL_FAMILIES,
    structures=(Structure.DIAGONAL,),
)
@dataclass(frozen=True)
class DiagonalFactorization(AbstractFactorization):
    """Diagonal inversion: prepare stores 1/d, apply scales."""

    def factorize(self, A):
        d = A.diag if isinstance(A, Diagonal) else np.diagonal(to_dense(A))
        if np.any(d == 0):
            raise SingularMatrixError("Diagonal operator has a zero entry")
        return 1 / d

    def ldiv(self, d_inv, b):
        if b.ndim == 2:
            return d_inv[:, None] * b
        return d_inv * b


@registry.register(
    kinds=(OperatorKind.STRUCTURED,),
    families=BLAS_FAMILIES,
    structures=(Structure.TRIDIAGONAL,),
)
@dataclass(frozen=True)
class TridiagonalFactorization(AbstractFactorization):
    """
    Tridiagonal LU with partial pivoting (LAPACK gttrf/gttrs).

    Operators with fewer than three rows are factored densely with getrf,
    since scipy's gttrf wrapper needs at least three.
    """

    def factorize(self, A):
        if not isinstance(A, Tridiagonal):
            A = Tridiagonal.from_array(to_dense(A))
        if A.shape[0] < 3:
            lu, piv = lapack_lu(to_dense(A))
            if has_zero_pivot(lu):
                raise SingularMatrixError("Tridiagonal LU hit a zero pivot")
            return "getrf", (lu, piv)

        dtype = A.dtype
        dl = np.array(A.dl, dtype=dtype)
        d = np.array(A.d, dtype=dtype)
        du = np.array(A.du, dtype=dtype)
        gttrf = get_lapack_funcs("gttrf", (dl, d, du))
        dl, d, du, du2, ipiv, info = gttrf(dl, d, du)
        if info > 0:
            raise SingularMatrixError(f"Tridiagonal LU: U[{info - 1}, {info - 1}] is zero")
        if info < 0:
            raise ValueError(f"gttrf: illegal value in argument {-info}")
        return "gttrf", (dl, d, du, du2, ipiv)

    def ldiv(self, factors, b):
        kind, payload = factors
        if kind == "getrf":
            return scipy.linalg.lu_solve(payload, b, check_finite=False)

        dl, d, du, du2, ipiv = payload
        b = np.asarray(b)
        # Real factors are promoted for a complex right-hand side
        dtype = np.result_type(d, b)
        dl, d, du, du2 = (np.asarray(f, dtype=dtype) for f in (dl, d, du, du2))
        gttrs = get_lapack_funcs("gttrs", (d,))
        rhs = np.array(b.reshape(b.shape[0], -1), dtype=dtype, order="F")
        x, info = gttrs(dl, d, du, du2, ipiv, rhs)
        if info != 0:
            raise ValueError(f"gttrs: illegal value in argument {-info}")
        return x.reshape(b.shape)


@registry.register(
    kinds=(OperatorKind.STRUCTURED,),
    families=BLAS_FAMILIES,
    structures=(Structure.UPPER_TRIANGULAR, Structure.LOWER_TRIANGULAR),
)
@dataclass(frozen=True)
class TriangularSolve(AbstractFactorization):
    """Triangular substitution; prepare only validates the diagonal."""

    def factorize(self, A):
        lower = A.structure is Structure.LOWER_TRIANGULAR
        T = to_dense(A)
        if np.any(np.diagonal(T) == 0):
            raise SingularMatrixError("Triangular operator has a zero on the diagonal")
        return T, lower

    def ldiv(self, factors, b):
        T, lower = factors
        return scipy.linalg.solve_triangular(T, b, lower=lower, check_finite=False)
