"""Operator representations and linear algebra kernels."""

from linsolve.algebra.protocols import Preconditioner
from linsolve.algebra.operators import LinearOperator, as_scipy_operator
from linsolve.algebra.structured import (
    Diagonal,
    Tridiagonal,
    SymTridiagonal,
    Symmetric,
    Hermitian,
    UpperTriangular,
    LowerTriangular,
)
from linsolve.algebra.preconditioners import (
    IdentityPreconditioner,
    ScaledPreconditioner,
    JacobiPreconditioner,
    ILUPreconditioner,
    InvPreconditioner,
    ComposePreconditioner,
)

__all__ = [
    "Preconditioner",
    "LinearOperator",
    "as_scipy_operator",
    "Diagonal",
    "Tridiagonal",
    "SymTridiagonal",
    "Symmetric",
    "Hermitian",
    "UpperTriangular",
    "LowerTriangular",
    "IdentityPreconditioner",
    "ScaledPreconditioner",
    "JacobiPreconditioner",
    "ILUPreconditioner",
    "InvPreconditioner",
    "ComposePreconditioner",
]
