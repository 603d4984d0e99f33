"""Linear problem specification."""

from dataclasses import dataclass
from typing import Any, Optional

import numpy as np
from numpy.typing import NDArray

from linsolve.core.errors import ShapeMismatchError
from linsolve.core.traits import operator_traits


def _result_dtype(A: Any, b: NDArray) -> np.dtype:
    a_dtype = getattr(A, "dtype", None)
    if a_dtype is None:
        return np.result_type(b.dtype, np.float64)
    dtype = np.result_type(a_dtype, b.dtype)
    if dtype.kind in "iub":
        # Integer systems have rational solutions
        return np.dtype(np.float64)
    return dtype


def check_rhs(shape: tuple[int, int], b: NDArray) -> None:
    """Raise ShapeMismatchError unless b has as many rows as the operator."""
    if b.ndim not in (1, 2):
        raise ShapeMismatchError("rhs ndim", "1 or 2", b.ndim)
    if b.shape[0] != shape[0]:
        raise ShapeMismatchError("rhs rows", shape[0], b.shape[0])


def check_guess(shape: tuple[int, int], b: NDArray, u: NDArray) -> None:
    """Raise ShapeMismatchError unless u matches the operator columns and b batch."""
    expected = (shape[1],) + tuple(b.shape[1:])
    if u.shape != expected:
        raise ShapeMismatchError("initial guess shape", expected, u.shape)


@dataclass(frozen=True)
class LinearProblem:
    """
    Immutable description of A x = b.

    Attributes:
        A: Operator (dense array, sparse matrix, structured wrapper or
            matrix-free operator)
        b: Right-hand side, shape (m,) or (m, k) for a batch
        u0: Initial guess / output buffer, shape (n,) or (n, k).
            Defaults to zeros.
        p: Opaque parameters passed to function-based strategies
    """

    A: Any
    b: NDArray
    u0: Optional[NDArray] = None
    p: Any = None

    def __post_init__(self) -> None:
        if isinstance(self.A, np.ndarray) and self.A.ndim != 2:
            raise ShapeMismatchError("operator ndim", 2, self.A.ndim)
        traits = operator_traits(self.A)
        b = np.asarray(self.b)
        check_rhs(traits.shape, b)
        object.__setattr__(self, "b", b)

        if self.u0 is None:
            u0 = np.zeros((traits.shape[1],) + b.shape[1:], dtype=_result_dtype(self.A, b))
        else:
            u0 = np.asarray(self.u0)
        check_guess(traits.shape, b, u0)
        object.__setattr__(self, "u0", u0)

    @property
    def shape(self) -> tuple[int, int]:
        return operator_traits(self.A).shape
