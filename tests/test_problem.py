"""Tests for problem construction, options and the error taxonomy."""

from fractions import Fraction

import numpy as np
import pytest

from linsolve.core.errors import (
    LinearSolveError,
    ShapeMismatchError,
    SingularMatrixError,
)
from linsolve.core.options import SolverOptions, default_tolerance, resolve_tolerances
from linsolve.core.problem import LinearProblem


def test_default_guess_is_zero():
    """u0 defaults to zeros with the promoted element type."""
    A = np.eye(3)
    b = np.ones(3, dtype=np.complex128)
    prob = LinearProblem(A, b)

    assert prob.u0.shape == (3,)
    assert prob.u0.dtype == np.complex128
    assert np.all(prob.u0 == 0)


def test_integer_problem_guess_is_float():
    """Integer systems get a floating point guess."""
    prob = LinearProblem(np.eye(2, dtype=int), np.array([1, 2]))

    assert prob.u0.dtype == np.float64


def test_batch_rhs_guess_shape():
    """A (m, k) right-hand side gives an (n, k) guess."""
    prob = LinearProblem(np.eye(4), np.ones((4, 3)))

    assert prob.u0.shape == (4, 3)


def test_object_problem_keeps_object_dtype():
    """Fraction systems keep object arrays."""
    A = np.array([[Fraction(2), Fraction(0)], [Fraction(0), Fraction(4)]], dtype=object)
    b = np.array([Fraction(1), Fraction(1)], dtype=object)
    prob = LinearProblem(A, b)

    assert prob.u0.dtype == object


def test_rhs_row_mismatch():
    """Right-hand side rows must match operator rows."""
    with pytest.raises(ShapeMismatchError):
        LinearProblem(np.eye(3), np.ones(4))


def test_guess_mismatch():
    """Guess length must match operator columns."""
    with pytest.raises(ShapeMismatchError):
        LinearProblem(np.eye(3), np.ones(3), u0=np.zeros(2))


def test_non_square_shapes_allowed():
    """Rectangular operators are valid problems (strategy decides)."""
    prob = LinearProblem(np.ones((5, 2)), np.ones(5))

    assert prob.shape == (5, 2)
    assert prob.u0.shape == (2,)


def test_operator_must_be_2d():
    with pytest.raises(ShapeMismatchError):
        LinearProblem(np.ones(3), np.ones(3))


def test_shape_mismatch_is_value_error():
    """Taxonomy errors subclass the matching builtin."""
    assert issubclass(ShapeMismatchError, ValueError)
    assert issubclass(ShapeMismatchError, LinearSolveError)
    assert issubclass(SingularMatrixError, np.linalg.LinAlgError)


def test_options_updated_ignores_none():
    """None overrides keep the cache option."""
    opts = SolverOptions(reltol=1e-3)
    new = opts.updated(reltol=None, maxiter=7)

    assert new.reltol == 1e-3
    assert new.maxiter == 7
    assert opts.maxiter is None  # frozen original untouched


def test_options_unknown_key():
    with pytest.raises(TypeError):
        SolverOptions().updated(tolerance=1.0)


def test_resolve_tolerances_precedence():
    """Strategy value beats cache option beats default."""
    opts = SolverOptions(abstol=1e-3, reltol=1e-4)
    tol = resolve_tolerances(opts, np.float64, 10, reltol=1e-9)

    assert tol.reltol == 1e-9
    assert tol.abstol == 1e-3
    assert tol.maxiter == 10

    default = resolve_tolerances(SolverOptions(), np.float32, 4)
    assert default.abstol == pytest.approx(np.sqrt(np.finfo(np.float32).eps))
    assert default_tolerance(np.complex128) == pytest.approx(np.sqrt(np.finfo(float).eps))
