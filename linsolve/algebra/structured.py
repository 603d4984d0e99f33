"""Structured dense matrix wrappers.

Wrapping an array in one of these types declares its structure, so the
default selector can pick a structure-specific method without inspecting
values.
"""

import numpy as np
from numpy.typing import NDArray

from linsolve.core.traits import Structure


class StructuredMatrix:
    """Base class: subclasses provide ``structure``, ``shape``, ``dtype`` and ``toarray``."""

    structure: Structure = Structure.GENERAL

    def toarray(self) -> NDArray:
        raise NotImplementedError

    def matvec(self, x: NDArray) -> NDArray:
        return self.toarray() @ x

    def __matmul__(self, x: NDArray) -> NDArray:
        return self.matvec(np.asarray(x))

    def __array__(self, dtype=None, copy=None):
        out = self.toarray()
        return out if dtype is None else out.astype(dtype)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(shape={self.shape}, dtype={self.dtype})"


class Diagonal(StructuredMatrix):
    """Diagonal matrix stored as its diagonal."""

    structure = Structure.DIAGONAL

    def __init__(self, diag):
        self.diag = np.asarray(diag)
        if self.diag.ndim != 1:
            raise ValueError("Diagonal expects a 1-D array")

    @property
    def shape(self) -> tuple[int, int]:
        n = self.diag.shape[0]
        return (n, n)

    @property
    def dtype(self) -> np.dtype:
        return self.diag.dtype

    def toarray(self) -> NDArray:
        return np.diag(self.diag)

    def matvec(self, x: NDArray) -> NDArray:
        if x.ndim == 2:
            return self.diag[:, None] * x
        return self.diag * x


class Tridiagonal(StructuredMatrix):
    """Tridiagonal matrix from sub-, main and super-diagonals."""

    structure = Structure.TRIDIAGONAL

    def __init__(self, dl, d, du):
        self.dl = np.asarray(dl)
        self.d = np.asarray(d)
        self.du = np.asarray(du)
        n = self.d.shape[0]
        if self.dl.shape != (max(n - 1, 0),) or self.du.shape != (max(n - 1, 0),):
            raise ValueError(
                f"Off-diagonals must have length {n - 1}, "
                f"got {self.dl.shape} and {self.du.shape}"
            )

    @classmethod
    def from_array(cls, A: NDArray) -> "Tridiagonal":
        A = np.asarray(A)
        return cls(np.diag(A, -1), np.diag(A), np.diag(A, 1))

    @property
    def shape(self) -> tuple[int, int]:
        n = self.d.shape[0]
        return (n, n)

    @property
    def dtype(self) -> np.dtype:
        return np.result_type(self.dl, self.d, self.du)

    def toarray(self) -> NDArray:
        return (
            np.diag(self.d).astype(self.dtype)
            + np.diag(self.dl, -1)
            + np.diag(self.du, 1)
        )

    def matvec(self, x: NDArray) -> NDArray:
        d = self.d[:, None] if x.ndim == 2 else self.d
        y = (d * x).astype(np.result_type(self.dtype, x.dtype))
        if self.d.shape[0] > 1:
            dl = self.dl[:, None] if x.ndim == 2 else self.dl
            du = self.du[:, None] if x.ndim == 2 else self.du
            y[1:] += dl * x[:-1]
            y[:-1] += du * x[1:]
        return y


class SymTridiagonal(Tridiagonal):
    """Symmetric tridiagonal matrix from its diagonal and off-diagonal."""

    def __init__(self, d, e):
        e = np.asarray(e)
        super().__init__(e, d, e)


class Symmetric(StructuredMatrix):
    """Symmetric view of a square array, using one triangle as the data."""

    structure = Structure.SYMMETRIC

    def __init__(self, data, lower: bool = False):
        self.data = np.asarray(data)
        if self.data.ndim != 2 or self.data.shape[0] != self.data.shape[1]:
            raise ValueError(f"{type(self).__name__} expects a square array")
        self.lower = lower

    @property
    def shape(self) -> tuple[int, int]:
        return self.data.shape

    @property
    def dtype(self) -> np.dtype:
        return self.data.dtype

    def _mirror(self, T: NDArray) -> NDArray:
        return T.T

    def toarray(self) -> NDArray:
        if self.lower:
            return np.tril(self.data) + self._mirror(np.tril(self.data, -1))
        T = np.triu(self.data)
        return T + self._mirror(np.triu(self.data, 1))


class Hermitian(Symmetric):
    """Hermitian view of a square array, using one triangle as the data."""

    structure = Structure.HERMITIAN

    def _mirror(self, T: NDArray) -> NDArray:
        return T.conj().T

    def toarray(self) -> NDArray:
        A = super().toarray()
        idx = np.diag_indices_from(A)
        A[idx] = A[idx].real
        return A


class UpperTriangular(StructuredMatrix):
    """Upper triangle of a square array."""

    structure = Structure.UPPER_TRIANGULAR

    def __init__(self, data):
        self.data = np.asarray(data)
        if self.data.ndim != 2 or self.data.shape[0] != self.data.shape[1]:
            raise ValueError(f"{type(self).__name__} expects a square array")

    @property
    def shape(self) -> tuple[int, int]:
        return self.data.shape

    @property
    def dtype(self) -> np.dtype:
        return self.data.dtype

    def toarray(self) -> NDArray:
        return np.triu(self.data)


class LowerTriangular(UpperTriangular):
    """Lower triangle of a square array."""

    structure = Structure.LOWER_TRIANGULAR

    def toarray(self) -> NDArray:
        return np.tril(self.data)
