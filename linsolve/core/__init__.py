"""Core abstractions: problems, traits, options, solutions and errors."""

from linsolve.core.errors import (
    LinearSolveError,
    ShapeMismatchError,
    UnsupportedOperatorError,
    SingularMatrixError,
    PatternMismatchError,
)
from linsolve.core.traits import (
    OperatorKind,
    Structure,
    ElementFamily,
    OperatorTraits,
    operator_traits,
)
from linsolve.core.problem import LinearProblem
from linsolve.core.options import SolverOptions, resolve_tolerances
from linsolve.core.solution import LinearSolution, ReturnCode

__all__ = [
    "LinearSolveError",
    "ShapeMismatchError",
    "UnsupportedOperatorError",
    "SingularMatrixError",
    "PatternMismatchError",
    "OperatorKind",
    "Structure",
    "ElementFamily",
    "OperatorTraits",
    "operator_traits",
    "LinearProblem",
    "SolverOptions",
    "resolve_tolerances",
    "LinearSolution",
    "ReturnCode",
]
