"""Runtime operator traits used by the registry and the default selector."""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Optional

import numpy as np
import scipy.sparse

from linsolve.core.errors import UnsupportedOperatorError


class OperatorKind(Enum):
    """How the operator is materialized."""
    DENSE = auto()       # numpy array
    SPARSE = auto()      # scipy sparse matrix/array
    STRUCTURED = auto()  # linsolve.algebra.structured wrapper
    ABSTRACT = auto()    # matrix-free: only matvec / solve callbacks


class Structure(Enum):
    """Known algebraic structure of an operator."""
    GENERAL = auto()
    DIAGONAL = auto()
    TRIDIAGONAL = auto()
    SYMMETRIC = auto()
    HERMITIAN = auto()
    UPPER_TRIANGULAR = auto()
    LOWER_TRIANGULAR = auto()


class ElementFamily(Enum):
    """Element type family, grouped by which backends can handle it."""
    REAL = auto()      # float32, float64
    COMPLEX = auto()   # complex64, complex128
    GENERIC = auto()   # everything else (object, integer, float16, ...)


_REAL = (np.dtype(np.float32), np.dtype(np.float64))
_COMPLEX = (np.dtype(np.complex64), np.dtype(np.complex128))


def element_family(dtype) -> ElementFamily:
    """Classify a numpy dtype into an ElementFamily."""
    dtype = np.dtype(dtype)
    if dtype in _REAL:
        return ElementFamily.REAL
    if dtype in _COMPLEX:
        return ElementFamily.COMPLEX
    return ElementFamily.GENERIC


@dataclass(frozen=True)
class OperatorTraits:
    """Traits of an operator that drive backend dispatch."""

    kind: OperatorKind
    structure: Structure
    family: ElementFamily
    shape: tuple[int, int]
    dtype: np.dtype
    has_solve: bool = False

    @property
    def is_square(self) -> bool:
        return self.shape[0] == self.shape[1]

    @property
    def n(self) -> int:
        """Number of columns (unknowns)."""
        return self.shape[1]

    def describe(self) -> str:
        """Short human-readable summary used in error messages."""
        parts = [self.kind.name.lower()]
        if self.structure is not Structure.GENERAL:
            parts.append(self.structure.name.lower())
        parts.append(f"{self.shape[0]}x{self.shape[1]}")
        parts.append(str(self.dtype))
        return " ".join(parts)


def is_abstract_operator(A: Any) -> bool:
    """True for matrix-free operators (anything with shape and matvec/solve)."""
    if isinstance(A, np.ndarray) or scipy.sparse.issparse(A):
        return False
    if isinstance(getattr(A, "structure", None), Structure):
        return False
    return hasattr(A, "shape") and (
        callable(getattr(A, "matvec", None)) or callable(getattr(A, "solve", None))
    )


def _has_native_solve(A: Any) -> bool:
    flag: Optional[bool] = getattr(A, "has_solve", None)
    if flag is not None:
        return bool(flag)
    return callable(getattr(A, "solve", None))


def operator_traits(A: Any) -> OperatorTraits:
    """
    Inspect an operator and classify it.

    Plain arrays are always GENERAL; structure is only read from structured
    wrapper types, never inferred from values, so the classification is
    cheap and deterministic.

    Args:
        A: Dense array, scipy sparse matrix, structured wrapper or
            matrix-free operator

    Returns:
        OperatorTraits describing A

    Raises:
        UnsupportedOperatorError: If A cannot be interpreted as a linear operator
    """
    if isinstance(A, np.ndarray):
        if A.ndim != 2:
            raise UnsupportedOperatorError(
                "ndarray", reason=f"operator must be 2-D, got ndim={A.ndim}"
            )
        return OperatorTraits(
            kind=OperatorKind.DENSE,
            structure=Structure.GENERAL,
            family=element_family(A.dtype),
            shape=(int(A.shape[0]), int(A.shape[1])),
            dtype=A.dtype,
        )

    if scipy.sparse.issparse(A):
        return OperatorTraits(
            kind=OperatorKind.SPARSE,
            structure=Structure.GENERAL,
            family=element_family(A.dtype),
            shape=(int(A.shape[0]), int(A.shape[1])),
            dtype=np.dtype(A.dtype),
        )

    structure = getattr(A, "structure", None)
    if isinstance(structure, Structure):
        return OperatorTraits(
            kind=OperatorKind.STRUCTURED,
            structure=structure,
            family=element_family(A.dtype),
            shape=tuple(int(s) for s in A.shape),
            dtype=np.dtype(A.dtype),
        )

    if is_abstract_operator(A):
        dtype = getattr(A, "dtype", None)
        dtype = np.dtype(np.float64 if dtype is None else dtype)
        return OperatorTraits(
            kind=OperatorKind.ABSTRACT,
            structure=Structure.GENERAL,
            family=element_family(dtype),
            shape=tuple(int(s) for s in A.shape),
            dtype=dtype,
            has_solve=_has_native_solve(A),
        )

    raise UnsupportedOperatorError(
        type(A).__name__, reason="cannot be interpreted as a linear operator"
    )
