"""Dense linear algebra kernels using NumPy/SciPy.

LU factorizations here return ``(lu, piv)`` in LAPACK ``getrf`` layout
(0-based sequential row interchanges), so every variant can be applied with
``scipy.linalg.lu_solve`` or, for non-BLAS element types, ``generic_lu_solve``.
"""

from typing import Tuple
import numpy as np
import scipy.linalg
from numpy.typing import NDArray


def _apply_interchanges(B: NDArray, piv: NDArray) -> None:
    """Apply sequential row interchanges piv to B in place."""
    for i, p in enumerate(piv):
        if p != i:
            B[[i, p]] = B[[p, i]]


def _unblocked_lu(A: NDArray, piv: NDArray) -> None:
    """
    Right-looking partial-pivot LU of a (tall) panel, in place.

    Zero pivots are skipped rather than raised, matching getrf; callers
    inspect the diagonal afterwards.
    """
    m, n = A.shape
    for j in range(min(m, n)):
        p = j + int(np.argmax(np.abs(A[j:, j])))
        piv[j] = p
        if p != j:
            A[[j, p]] = A[[p, j]]
        pivot = A[j, j]
        if pivot == 0:
            continue
        A[j + 1:, j] = A[j + 1:, j] / pivot
        if j + 1 < n:
            A[j + 1:, j + 1:] -= np.outer(A[j + 1:, j], A[j, j + 1:])


def _recursive_lu(A: NDArray, piv: NDArray, threshold: int) -> None:
    m, n = A.shape
    if n <= threshold:
        _unblocked_lu(A, piv)
        return

    n1 = n // 2
    _recursive_lu(A[:, :n1], piv[:n1], threshold)
    _apply_interchanges(A[:, n1:], piv[:n1])

    # A12 <- L11^{-1} A12, A22 <- A22 - A21 A12
    A[:n1, n1:] = scipy.linalg.solve_triangular(
        A[:n1, :n1], A[:n1, n1:], lower=True, unit_diagonal=True,
        check_finite=False,
    )
    A[n1:, n1:] -= A[n1:, :n1] @ A[:n1, n1:]

    _recursive_lu(A[n1:, n1:], piv[n1:], threshold)
    _apply_interchanges(A[n1:, :n1], piv[n1:])
    piv[n1:] += n1


def recursive_lu(A: NDArray, threshold: int = 16) -> Tuple[NDArray, NDArray]:
    """
    Recursive (column-split) LU with partial pivoting.

    Splits columns in half until panels are at most ``threshold`` wide, so
    most of the work is done by the triangular solve and the matrix product
    on large blocks.

    Args:
        A: Square matrix (not modified)
        threshold: Panel width below which the unblocked kernel is used

    Returns:
        (lu, piv) in getrf layout
    """
    lu = np.array(A, copy=True, order="C")
    piv = np.zeros(min(lu.shape), dtype=np.intc)
    _recursive_lu(lu, piv, max(int(threshold), 1))
    return lu, piv


def lapack_lu(A: NDArray, overwrite: bool = False) -> Tuple[NDArray, NDArray]:
    """LAPACK getrf through scipy, without the singular-matrix warning."""
    lu, piv = scipy.linalg.lapack.get_lapack_funcs("getrf", (A,))(
        A, overwrite_a=overwrite
    )[:2]
    return lu, piv


def generic_lu(A: NDArray) -> Tuple[NDArray, NDArray]:
    """
    Partial-pivot LU for any element type supporting +, -, *, / and abs.

    Integer input is promoted to float64; object arrays (e.g. Fractions)
    are factored exactly.
    """
    A = np.asarray(A)
    if A.dtype.kind in "iub":
        lu = A.astype(np.float64)
    else:
        lu = A.copy()
    piv = np.zeros(min(lu.shape), dtype=np.intp)
    _unblocked_lu(lu, piv)
    return lu, piv


def generic_lu_solve(lu: NDArray, piv: NDArray, b: NDArray) -> NDArray:
    """Forward/back substitution without BLAS, for any element type."""
    n = lu.shape[0]
    x = np.array(b, dtype=np.result_type(lu, b), copy=True)
    _apply_interchanges(x, piv)
    for i in range(n):
        x[i] = x[i] - lu[i, :i] @ x[:i]
    for i in range(n - 1, -1, -1):
        x[i] = (x[i] - lu[i, i + 1:] @ x[i + 1:]) / lu[i, i]
    return x


def has_zero_pivot(lu: NDArray) -> bool:
    """True if the U factor has an exactly zero or non-finite diagonal entry."""
    d = np.diagonal(lu)
    if d.dtype == object:
        return any(v == 0 for v in d)
    return bool(np.any(d == 0) or not np.all(np.isfinite(d)))


def ldl_factor(A: NDArray, hermitian: bool) -> Tuple[NDArray, NDArray, NDArray]:
    """
    Bunch-Kaufman LDL^T (or LDL^H) factorization.

    Returns:
        (L, D, perm) with L = lu[perm] unit lower triangular and D block
        diagonal (1x1/2x2 blocks), such that A[perm][:, perm] = L D L^T
    """
    lu, d, perm = scipy.linalg.ldl(A, lower=True, hermitian=hermitian)
    return lu[perm], d, perm


def block_diagonal_singular(D: NDArray) -> bool:
    """True if the 1x1/2x2 block diagonal D from ldl is singular."""
    n = D.shape[0]
    i = 0
    while i < n:
        if i + 1 < n and D[i + 1, i] != 0:
            det = D[i, i] * D[i + 1, i + 1] - D[i, i + 1] * D[i + 1, i]
            if det == 0:
                return True
            i += 2
        else:
            if D[i, i] == 0:
                return True
            i += 1
    return False


def ldl_solve(
    factors: Tuple[NDArray, NDArray, NDArray], b: NDArray, hermitian: bool
) -> NDArray:
    """Solve A x = b from ldl_factor output."""
    L, D, perm = factors
    n = L.shape[0]
    y = scipy.linalg.solve_triangular(L, b[perm], lower=True, unit_diagonal=True)

    # D is tridiagonal (block diagonal with 2x2 blocks)
    ab = np.zeros((3, n), dtype=D.dtype)
    ab[1] = np.diagonal(D)
    if n > 1:
        ab[0, 1:] = np.diagonal(D, 1)
        ab[2, :-1] = np.diagonal(D, -1)
    z = scipy.linalg.solve_banded((1, 1), ab, y)

    Lt = L.conj().T if hermitian else L.T
    xp = scipy.linalg.solve_triangular(Lt, z, lower=False, unit_diagonal=True)
    x = np.empty_like(xp)
    x[perm] = xp
    return x
