"""Tests for dense direct strategies."""

from fractions import Fraction

import numpy as np
import pytest
import scipy.linalg

from linsolve import LinearProblem, init, solve
from linsolve.algebra.dense import generic_lu, lapack_lu, recursive_lu
from linsolve.core.errors import SingularMatrixError
from linsolve.solvers import (
    BunchKaufmanFactorization,
    CholeskyFactorization,
    GenericFactorization,
    GenericLUFactorization,
    LUFactorization,
    QRFactorization,
    RecursiveLUFactorization,
    SVDFactorization,
)


def random_system(n, seed=0, dtype=np.float64):
    rng = np.random.default_rng(seed)
    A = rng.standard_normal((n, n)) + n * np.eye(n)
    b = rng.standard_normal(n)
    if np.dtype(dtype).kind == "c":
        A = A + 1j * rng.standard_normal((n, n))
        b = b + 1j * rng.standard_normal(n)
    return A.astype(dtype), b.astype(dtype)


def spd_system(n, seed=0):
    rng = np.random.default_rng(seed)
    M = rng.standard_normal((n, n))
    return M @ M.T + n * np.eye(n), rng.standard_normal(n)


SQUARE_DENSE = [
    LUFactorization(),
    GenericLUFactorization(),
    RecursiveLUFactorization(),
    RecursiveLUFactorization(threshold=2),
    QRFactorization(),
    QRFactorization(pivoting=True),
    SVDFactorization(),
    GenericFactorization(),
]


@pytest.mark.parametrize("alg", SQUARE_DENSE, ids=repr)
def test_interface(alg):
    """Identity-scaled 8x8 scenario: solve, change A, change b."""
    n = 8
    A = np.eye(n)
    b = np.ones(n)
    cache = init(LinearProblem(A, b), alg)

    sol = cache.solve()
    assert np.allclose(sol.u, np.ones(n))

    cache.set_operator(2 * np.eye(n))
    sol = cache.solve()
    assert np.allclose(sol.u, 0.5 * np.ones(n))

    cache.set_rhs(2 * np.ones(n))
    sol = cache.solve()
    assert np.allclose(sol.u, np.ones(n))
    assert cache.stats.nprepare == 2


@pytest.mark.parametrize("alg", SQUARE_DENSE, ids=repr)
@pytest.mark.parametrize("dtype", [np.float64, np.complex128])
def test_random_system(alg, dtype):
    A, b = random_system(20, dtype=dtype)

    sol = solve(LinearProblem(A, b), alg)

    assert sol.success
    assert np.allclose(A @ sol.u, b)


def test_batch_rhs():
    """A (n, k) right-hand side is solved column by column."""
    A, _ = random_system(6)
    B = np.arange(18.0).reshape(6, 3)

    sol = solve(LinearProblem(A, B), LUFactorization())

    assert sol.u.shape == (6, 3)
    assert np.allclose(A @ sol.u, B)


def test_recursive_lu_matches_lapack():
    """Recursive LU reproduces getrf's factors and pivots."""
    A, _ = random_system(37, seed=3)

    lu_r, piv_r = recursive_lu(A, threshold=4)
    lu_l, piv_l = lapack_lu(A)

    assert np.array_equal(piv_r, piv_l)
    assert np.allclose(lu_r, lu_l)


def test_generic_lu_fractions_exact():
    """Object arrays of Fractions are solved exactly."""
    A = np.array(
        [[Fraction(2), Fraction(1)], [Fraction(1), Fraction(3)]], dtype=object
    )
    b = np.array([Fraction(1), Fraction(2)], dtype=object)

    sol = solve(LinearProblem(A, b), GenericLUFactorization())

    assert sol.u[0] == Fraction(1, 5)
    assert sol.u[1] == Fraction(3, 5)


def test_generic_lu_integers():
    lu, piv = generic_lu(np.array([[0, 1], [1, 0]]))
    assert lu.dtype == np.float64
    assert piv[0] == 1


@pytest.mark.parametrize(
    "alg",
    [LUFactorization(), GenericLUFactorization(), RecursiveLUFactorization()],
    ids=repr,
)
def test_singular_raises(alg):
    A = np.array([[1.0, 2.0], [2.0, 4.0]])

    with pytest.raises(SingularMatrixError):
        solve(LinearProblem(A, np.ones(2)), alg)


def test_svd_rank_deficient_is_least_squares():
    """SVD returns the minimum-norm solution instead of raising."""
    A = np.array([[1.0, 1.0], [1.0, 1.0]])
    b = np.array([2.0, 2.0])

    sol = solve(LinearProblem(A, b), SVDFactorization())

    assert np.allclose(sol.u, [1.0, 1.0])


def test_qr_tall_least_squares():
    rng = np.random.default_rng(1)
    A = rng.standard_normal((10, 3))
    b = rng.standard_normal(10)

    sol = solve(LinearProblem(A, b), QRFactorization())
    expected = np.linalg.lstsq(A, b, rcond=None)[0]

    assert np.allclose(sol.u, expected)


@pytest.mark.parametrize("pivoting", [False, True])
def test_qr_wide_minimum_norm(pivoting):
    rng = np.random.default_rng(2)
    A = rng.standard_normal((3, 7))
    b = rng.standard_normal(3)

    sol = solve(LinearProblem(A, b), QRFactorization(pivoting=pivoting))

    assert np.allclose(A @ sol.u, b)
    assert np.allclose(sol.u, np.linalg.pinv(A) @ b)


def test_cholesky():
    A, b = spd_system(12)

    sol = solve(LinearProblem(A, b), CholeskyFactorization())

    assert np.allclose(A @ sol.u, b)


def test_cholesky_not_positive_definite():
    A = np.diag([1.0, -1.0])

    with pytest.raises(SingularMatrixError, match="positive definite"):
        solve(LinearProblem(A, np.ones(2)), CholeskyFactorization())


def test_bunch_kaufman_indefinite():
    """LDL^T handles symmetric indefinite operators (2x2 pivots)."""
    A = np.array(
        [[0.0, 1.0, 2.0], [1.0, 0.0, 3.0], [2.0, 3.0, 1.0]]
    )
    b = np.array([1.0, 2.0, 3.0])

    sol = solve(LinearProblem(A, b), BunchKaufmanFactorization())

    assert np.allclose(A @ sol.u, b)


def test_bunch_kaufman_hermitian():
    rng = np.random.default_rng(4)
    M = rng.standard_normal((5, 5)) + 1j * rng.standard_normal((5, 5))
    A = M + M.conj().T
    b = rng.standard_normal(5) + 0j

    sol = solve(LinearProblem(A, b), BunchKaufmanFactorization())

    assert np.allclose(A @ sol.u, b)


def test_generic_factorization_custom_pair():
    """Caller-supplied factorize/solve pair."""
    A, b = spd_system(6)
    alg = GenericFactorization(
        factorize_fn=scipy.linalg.cho_factor, solve_fn=scipy.linalg.cho_solve
    )

    sol = solve(LinearProblem(A, b), alg)

    assert np.allclose(A @ sol.u, b)
