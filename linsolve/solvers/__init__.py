"""Solution strategies, their registry and the default selector.

Importing this package registers every built-in strategy.
"""

from linsolve.solvers.base import (
    LinearSolveAlgorithm,
    AbstractFactorization,
    AbstractKrylovSubspaceMethod,
    AbstractSolveFunction,
    ApplyContext,
    ApplyResult,
)
from linsolve.solvers.registry import StrategyRegistry, registry
from linsolve.solvers.factorization import (
    LUFactorization,
    GenericLUFactorization,
    RecursiveLUFactorization,
    QRFactorization,
    SVDFactorization,
    CholeskyFactorization,
    BunchKaufmanFactorization,
    GenericFactorization,
)
from linsolve.solvers.structured import (
    DiagonalFactorization,
    TridiagonalFactorization,
    TriangularSolve,
)
from linsolve.solvers.sparse import KLUFactorization, SuperLUFactorization
from linsolve.solvers.krylov import (
    KrylovMethod,
    GMRES,
    LGMRES,
    CG,
    BiCGStab,
    MINRES,
    LSMR,
)
from linsolve.solvers.function import LinearSolveFunction, DirectLdiv
from linsolve.solvers.factory import default_algorithm, select_algorithm

__all__ = [
    "LinearSolveAlgorithm",
    "AbstractFactorization",
    "AbstractKrylovSubspaceMethod",
    "AbstractSolveFunction",
    "ApplyContext",
    "ApplyResult",
    "StrategyRegistry",
    "registry",
    "LUFactorization",
    "GenericLUFactorization",
    "RecursiveLUFactorization",
    "QRFactorization",
    "SVDFactorization",
    "CholeskyFactorization",
    "BunchKaufmanFactorization",
    "GenericFactorization",
    "DiagonalFactorization",
    "TridiagonalFactorization",
    "TriangularSolve",
    "KLUFactorization",
    "SuperLUFactorization",
    "KrylovMethod",
    "GMRES",
    "LGMRES",
    "CG",
    "BiCGStab",
    "MINRES",
    "LSMR",
    "LinearSolveFunction",
    "DirectLdiv",
    "default_algorithm",
    "select_algorithm",
]
