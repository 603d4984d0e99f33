"""Sparse matrix helpers: canonical CSC form, pattern snapshots, orderings, SuperLU."""

from dataclasses import dataclass
from typing import Any

import numpy as np
import scipy.sparse
import scipy.sparse.csgraph
import scipy.sparse.linalg
from numpy.typing import NDArray

from linsolve.core.errors import SingularMatrixError


def as_csc(A) -> scipy.sparse.csc_matrix:
    """
    Canonical CSC copy of A: duplicates summed, indices sorted.

    Explicitly stored zeros are kept; they are part of the pattern.
    """
    if scipy.sparse.issparse(A):
        C = scipy.sparse.csc_matrix(A, copy=True)
    else:
        C = scipy.sparse.csc_matrix(np.asarray(A))
    C.sum_duplicates()
    C.sort_indices()
    return C


@dataclass(frozen=True)
class SparsityPattern:
    """Nonzero structure of a CSC matrix, independent of values."""

    shape: tuple[int, int]
    indptr: NDArray
    indices: NDArray

    @classmethod
    def of(cls, C: scipy.sparse.csc_matrix) -> "SparsityPattern":
        return cls(
            shape=(int(C.shape[0]), int(C.shape[1])),
            indptr=C.indptr.copy(),
            indices=C.indices.copy(),
        )

    @property
    def nnz(self) -> int:
        return int(self.indptr[-1])

    def matches(self, C: scipy.sparse.csc_matrix) -> bool:
        """True if C (canonical CSC) has exactly this pattern."""
        return (
            tuple(C.shape) == self.shape
            and C.indptr.shape == self.indptr.shape
            and C.indices.shape == self.indices.shape
            and bool(np.array_equal(C.indptr, self.indptr))
            and bool(np.array_equal(C.indices, self.indices))
        )


def rcm_ordering(pattern: SparsityPattern) -> NDArray:
    """
    Reverse Cuthill-McKee ordering of the symmetrized pattern.

    Only the pattern is used, so the ordering stays valid for any matrix
    with the same structure.
    """
    n = pattern.shape[0]
    S = scipy.sparse.csc_matrix(
        (np.ones(pattern.nnz, dtype=np.int8), pattern.indices, pattern.indptr),
        shape=pattern.shape,
    )
    S = (S + S.T + scipy.sparse.identity(n, dtype=np.int8, format="csc")).tocsr()
    return np.asarray(
        scipy.sparse.csgraph.reverse_cuthill_mckee(S, symmetric_mode=True),
        dtype=np.intp,
    )


def symmetric_permute(C: scipy.sparse.csc_matrix, perm: NDArray) -> scipy.sparse.csc_matrix:
    """Return P C P^T for the permutation perm (C[perm][:, perm]) in CSC form."""
    return scipy.sparse.csc_matrix(C[perm][:, perm])


def superlu_solve(lu: Any, b: NDArray, dtype) -> NDArray:
    """
    Solve with SuperLU factors of element type ``dtype``.

    SuperLU refuses to cast a complex right-hand side down to real factors,
    so against real factors the real and imaginary parts are solved
    separately.
    """
    b = np.asarray(b)
    if np.iscomplexobj(b) and not np.issubdtype(dtype, np.complexfloating):
        return lu.solve(np.array(b.real)) + 1j * lu.solve(np.array(b.imag))
    return lu.solve(b)


@dataclass
class SparseLU:
    """SuperLU factors together with the element type they were computed in."""

    lu: Any
    dtype: np.dtype

    def solve(self, b: NDArray) -> NDArray:
        return superlu_solve(self.lu, b, self.dtype)


def sparse_lu(C: scipy.sparse.csc_matrix, permc_spec: str = "COLAMD") -> SparseLU:
    """
    Complete sparse LU of C (SuperLU ``splu``).

    Raises:
        SingularMatrixError: If SuperLU reports an exactly singular factor
    """
    try:
        lu = scipy.sparse.linalg.splu(C, permc_spec=permc_spec)
    except RuntimeError as exc:
        # SuperLU reports "Factor is exactly singular" as RuntimeError
        raise SingularMatrixError(f"Sparse LU failed: {exc}") from exc
    return SparseLU(lu=lu, dtype=np.dtype(C.dtype))
