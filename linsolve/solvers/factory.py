"""Default strategy selection and dispatch logic."""

from typing import Any, Sequence
import logging

from linsolve.core.errors import UnsupportedOperatorError
from linsolve.core.traits import OperatorKind, OperatorTraits, Structure, operator_traits
from linsolve.solvers.base import LinearSolveAlgorithm
from linsolve.solvers.factorization import (
    BunchKaufmanFactorization,
    GenericLUFactorization,
    LUFactorization,
    QRFactorization,
    RecursiveLUFactorization,
)
from linsolve.solvers.function import DirectLdiv
from linsolve.solvers.krylov import GMRES, LSMR
from linsolve.solvers.registry import registry
from linsolve.solvers.sparse import KLUFactorization, SuperLUFactorization
from linsolve.solvers.structured import (
    DiagonalFactorization,
    TriangularSolve,
    TridiagonalFactorization,
)

logger = logging.getLogger(__name__)

# Dense operators up to this size get the recursive LU
SMALL_DENSE_LIMIT = 500

_STRUCTURED_METHODS = {
    Structure.DIAGONAL: DiagonalFactorization,
    Structure.TRIDIAGONAL: TridiagonalFactorization,
    Structure.SYMMETRIC: BunchKaufmanFactorization,
    Structure.HERMITIAN: BunchKaufmanFactorization,
    Structure.UPPER_TRIANGULAR: TriangularSolve,
    Structure.LOWER_TRIANGULAR: TriangularSolve,
}


def _first_supported(
    candidates: Sequence[type], traits: OperatorTraits
) -> LinearSolveAlgorithm:
    for cls in candidates:
        alg = cls()
        if registry.supports(alg, traits):
            return alg
    raise UnsupportedOperatorError(
        "default", traits, "no registered strategy handles this operator"
    )


def _candidates(traits: OperatorTraits) -> Sequence[type]:
    if traits.has_solve:
        return (DirectLdiv,)

    if traits.kind is OperatorKind.ABSTRACT:
        return (GMRES,) if traits.is_square else (LSMR,)

    if traits.kind is OperatorKind.SPARSE:
        if not traits.is_square:
            return (LSMR,)
        return (KLUFactorization, SuperLUFactorization, LUFactorization)

    if not traits.is_square:
        return (QRFactorization,)

    if traits.kind is OperatorKind.STRUCTURED:
        special = _STRUCTURED_METHODS.get(traits.structure)
        if special is not None:
            return (special, GenericLUFactorization)
        return (LUFactorization, GenericLUFactorization)

    if traits.n <= SMALL_DENSE_LIMIT:
        return (RecursiveLUFactorization, LUFactorization, GenericLUFactorization)
    return (LUFactorization, GenericLUFactorization)


def default_algorithm(traits: OperatorTraits) -> LinearSolveAlgorithm:
    """
    Decision tree for the strategy used when the caller names none.

    First match wins:
      1. operator with a native solve -> DirectLdiv
      2. dense, square -> recursive LU up to SMALL_DENSE_LIMIT, LAPACK LU
         above it, generic LU for element types without BLAS
      3. structured -> the structure's direct method
      4. sparse -> KLU (symbolic reuse), then SuperLU
      5. matrix-free -> GMRES
    Non-square operators get a least-squares method (QR or LSMR).

    Args:
        traits: Operator traits

    Returns:
        Strategy instance with default settings

    Raises:
        UnsupportedOperatorError: If no registered strategy fits
    """
    alg = _first_supported(_candidates(traits), traits)
    logger.debug("default strategy for %s: %r", traits.describe(), alg)
    return alg


def select_algorithm(A: Any) -> LinearSolveAlgorithm:
    """Default strategy for operator A."""
    return default_algorithm(operator_traits(A))
