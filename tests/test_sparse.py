"""Tests for sparse direct strategies and symbolic-factorization reuse."""

import numpy as np
import pytest
import scipy.sparse

import linsolve.solvers.sparse
from linsolve import LinearProblem, init, solve
from linsolve.algebra.sparse import SparsityPattern, as_csc, rcm_ordering, sparse_lu
from linsolve.core.errors import PatternMismatchError, SingularMatrixError
from linsolve.interface import CacheState
from linsolve.solvers import KLUFactorization, LUFactorization, SuperLUFactorization


def laplacian(n, scale=1.0):
    """1-D Laplacian (tridiagonal, diagonally dominant after the shift)."""
    main = (2.0 + 1e-2) * scale * np.ones(n)
    off = -scale * np.ones(n - 1)
    return scipy.sparse.diags([off, main, off], [-1, 0, 1], format="csc")


@pytest.fixture
def symbolic_counter(monkeypatch):
    """Count symbolic analyses done by KLUFactorization."""
    calls = []
    original = linsolve.solvers.sparse.rcm_ordering

    def counting(pattern):
        calls.append(pattern.nnz)
        return original(pattern)

    monkeypatch.setattr(linsolve.solvers.sparse, "rcm_ordering", counting)
    return calls


def test_as_csc_canonical():
    """Duplicates are summed and indices sorted."""
    A = scipy.sparse.coo_matrix(
        (np.array([1.0, 2.0, 0.0]), (np.array([0, 0, 1]), np.array([0, 0, 1]))),
        shape=(2, 2),
    )
    C = as_csc(A)

    assert C[0, 0] == 3.0
    assert C.has_sorted_indices


def test_pattern_matches():
    A = laplacian(5)
    pattern = SparsityPattern.of(as_csc(A))

    assert pattern.matches(as_csc(3 * A))
    assert not pattern.matches(as_csc(A + scipy.sparse.eye(5, k=2)))
    assert pattern.nnz == A.nnz


def test_rcm_is_permutation():
    A = laplacian(7)
    perm = rcm_ordering(SparsityPattern.of(as_csc(A)))

    assert sorted(perm.tolist()) == list(range(7))


@pytest.mark.parametrize(
    "alg",
    [KLUFactorization(), KLUFactorization(reuse_symbolic=False), SuperLUFactorization(), LUFactorization()],
    ids=repr,
)
def test_sparse_solve(alg):
    A = laplacian(30)
    b = np.linspace(0.0, 1.0, 30)

    sol = solve(LinearProblem(A, b), alg)

    assert np.allclose(A @ sol.u, b)


def test_klu_nonsymmetric_pattern():
    """Unsymmetric patterns are symmetrized for the ordering only."""
    rng = np.random.default_rng(0)
    M = rng.standard_normal((40, 40)) * (rng.random((40, 40)) < 0.1)
    A = scipy.sparse.csc_matrix(M + 10 * np.eye(40))
    b = rng.standard_normal(40)

    sol = solve(LinearProblem(A, b), KLUFactorization())

    assert np.allclose(A @ sol.u, b)


def test_klu_complex_batch():
    A = (laplacian(8) * (1 + 1j)).tocsc()
    B = np.ones((8, 2), dtype=complex)

    sol = solve(LinearProblem(A, B), KLUFactorization())

    assert np.allclose(A @ sol.u, B)


def test_klu_reuses_symbolic(symbolic_counter):
    """Same-pattern operator updates rerun only the numeric phase."""
    A = laplacian(20)
    b = np.ones(20)
    cache = init(LinearProblem(A, b), KLUFactorization())

    cache.solve()
    assert symbolic_counter == [A.nnz]

    for scale in (2.0, 3.0):
        cache.set_operator(laplacian(20, scale))
        sol = cache.solve()
        assert np.allclose(laplacian(20, scale) @ sol.u, b)

    assert len(symbolic_counter) == 1
    assert cache.stats.nprepare == 3
    assert cache.stats.nrelease == 2  # superseded numeric factors


def test_klu_without_reuse_rebuilds(symbolic_counter):
    cache = init(LinearProblem(laplacian(10), np.ones(10)), KLUFactorization(reuse_symbolic=False))

    cache.solve()
    cache.set_operator(laplacian(10, 2.0))
    cache.solve()

    assert len(symbolic_counter) == 2


def test_pattern_mismatch_detected():
    """A different pattern under the same-pattern assumption is an error, not a wrong answer."""
    A = laplacian(10)
    b = np.ones(10)
    cache = init(LinearProblem(A, b), KLUFactorization())
    cache.solve()

    A2 = (A + scipy.sparse.eye(10, k=3)).tocsc()
    cache.set_operator(A2)

    with pytest.raises(PatternMismatchError):
        cache.solve()
    assert cache.state is CacheState.STALE
    assert cache.isfresh


def test_pattern_mismatch_recovery(symbolic_counter):
    """Disabling the assumption rebuilds the symbolic phase."""
    A = laplacian(10)
    b = np.ones(10)
    cache = init(LinearProblem(A, b), KLUFactorization())
    cache.solve()

    A2 = (A + scipy.sparse.eye(10, k=3)).tocsc()
    cache.set_operator(A2)
    with pytest.raises(PatternMismatchError):
        cache.solve()

    cache.set_operator(A2, assume_same_pattern=False)
    sol = cache.solve()

    assert np.allclose(A2 @ sol.u, b)
    assert len(symbolic_counter) == 2
    assert cache.state is CacheState.FRESH

    # The new pattern is now the cached one
    cache.set_operator(2 * A2)
    sol = cache.solve()
    assert np.allclose(2 * A2 @ sol.u, b)
    assert len(symbolic_counter) == 2


def test_assume_same_pattern_false_is_sticky(symbolic_counter):
    """A later default set_operator does not undo an earlier rebuild request."""
    cache = init(LinearProblem(laplacian(6), np.ones(6)), KLUFactorization())
    cache.solve()

    cache.set_operator(laplacian(6, 2.0), assume_same_pattern=False)
    cache.set_operator(laplacian(6, 3.0))
    cache.solve()

    assert len(symbolic_counter) == 2


def test_superlu_any_pattern_change():
    """SuperLU always rebuilds, so pattern changes are fine."""
    A = laplacian(10)
    cache = init(LinearProblem(A, np.ones(10)), SuperLUFactorization())
    cache.solve()

    A2 = (A + scipy.sparse.eye(10, k=3)).tocsc()
    cache.set_operator(A2)
    sol = cache.solve()

    assert np.allclose(A2 @ sol.u, np.ones(10))


@pytest.mark.parametrize("alg", [KLUFactorization(), SuperLUFactorization()], ids=repr)
def test_sparse_singular(alg):
    A = scipy.sparse.csc_matrix(np.array([[1.0, 0.0], [0.0, 0.0]]))

    with pytest.raises(SingularMatrixError):
        solve(LinearProblem(A, np.ones(2)), alg)


def test_close_releases_factors():
    cache = init(LinearProblem(laplacian(5), np.ones(5)), KLUFactorization())
    cache.solve()
    state = cache.cacheval

    cache.close()

    assert state.lu is None
    assert cache.cacheval is None
    assert cache.state is CacheState.UNBOUND
    # Still usable
    sol = cache.solve()
    assert np.allclose(laplacian(5) @ sol.u, np.ones(5))


def test_real_factors_solve_complex_rhs():
    """Real SuperLU factors solve the real and imaginary parts separately."""
    C = laplacian(6)
    factors = sparse_lu(C)
    B = np.stack([np.ones(6) + 1j * np.arange(6.0), 1j * np.ones(6)], axis=1)

    X = factors.solve(B)

    assert X.dtype == np.complex128
    assert np.allclose(C @ X, B)


def test_sparse_lu_singular():
    with pytest.raises(SingularMatrixError):
        sparse_lu(scipy.sparse.csc_matrix((3, 3)))
