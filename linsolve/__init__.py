"""
Linsolve: reusable linear solves with automatic strategy selection.

This library provides a common front end for solving A x = b repeatedly
with support for:
- Dense, sparse, structured and matrix-free operators
- Direct factorizations, Krylov methods and user solve functions
- Reuse of factorizations across right-hand side changes
- Symbolic factorization reuse for sparse operators with a fixed pattern
- Default strategy selection from operator traits
"""

import logging

__version__ = "0.1.0"

from linsolve.core import (
    LinearProblem,
    LinearSolution,
    ReturnCode,
    SolverOptions,
    OperatorTraits,
    operator_traits,
    LinearSolveError,
    ShapeMismatchError,
    UnsupportedOperatorError,
    SingularMatrixError,
    PatternMismatchError,
)
from linsolve.algebra import LinearOperator
from linsolve.solvers import (
    LinearSolveAlgorithm,
    LUFactorization,
    GenericLUFactorization,
    RecursiveLUFactorization,
    QRFactorization,
    SVDFactorization,
    CholeskyFactorization,
    BunchKaufmanFactorization,
    GenericFactorization,
    DiagonalFactorization,
    TridiagonalFactorization,
    TriangularSolve,
    KLUFactorization,
    SuperLUFactorization,
    KrylovMethod,
    GMRES,
    LGMRES,
    CG,
    BiCGStab,
    MINRES,
    LSMR,
    LinearSolveFunction,
    DirectLdiv,
    registry,
    default_algorithm,
)
from linsolve.interface import CacheState, LinearCache, SolveStats, init, solve, solve_system

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "LinearProblem",
    "LinearSolution",
    "ReturnCode",
    "SolverOptions",
    "OperatorTraits",
    "operator_traits",
    "LinearSolveError",
    "ShapeMismatchError",
    "UnsupportedOperatorError",
    "SingularMatrixError",
    "PatternMismatchError",
    "LinearOperator",
    "CacheState",
    "LinearCache",
    "SolveStats",
    "init",
    "solve",
    "solve_system",
    "LinearSolveAlgorithm",
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
    "registry",
    "default_algorithm",
]
