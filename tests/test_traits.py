"""Tests for operator classification."""

from fractions import Fraction

import numpy as np
import pytest
import scipy.sparse
import scipy.sparse.linalg

from linsolve.algebra.operators import LinearOperator
from linsolve.algebra.structured import (
    Diagonal,
    Hermitian,
    LowerTriangular,
    SymTridiagonal,
    Symmetric,
    Tridiagonal,
    UpperTriangular,
)
from linsolve.core.errors import UnsupportedOperatorError
from linsolve.core.traits import (
    ElementFamily,
    OperatorKind,
    Structure,
    operator_traits,
)


def test_dense_traits():
    t = operator_traits(np.ones((3, 4)))

    assert t.kind is OperatorKind.DENSE
    assert t.structure is Structure.GENERAL
    assert t.family is ElementFamily.REAL
    assert t.shape == (3, 4)
    assert not t.is_square
    assert not t.has_solve


def test_element_families():
    """BLAS types are REAL/COMPLEX; everything else is GENERIC."""
    assert operator_traits(np.eye(2, dtype=np.float32)).family is ElementFamily.REAL
    assert operator_traits(np.eye(2, dtype=np.complex64)).family is ElementFamily.COMPLEX
    assert operator_traits(np.eye(2, dtype=int)).family is ElementFamily.GENERIC
    fr = np.array([[Fraction(1)]], dtype=object)
    assert operator_traits(fr).family is ElementFamily.GENERIC


def test_sparse_traits():
    t = operator_traits(scipy.sparse.identity(5, format="csr"))

    assert t.kind is OperatorKind.SPARSE
    assert t.is_square


@pytest.mark.parametrize(
    "op, structure",
    [
        (Diagonal(np.ones(3)), Structure.DIAGONAL),
        (Tridiagonal(np.ones(2), np.ones(3), np.ones(2)), Structure.TRIDIAGONAL),
        (SymTridiagonal(np.ones(3), np.ones(2)), Structure.TRIDIAGONAL),
        (Symmetric(np.eye(3)), Structure.SYMMETRIC),
        (Hermitian(np.eye(3, dtype=complex)), Structure.HERMITIAN),
        (UpperTriangular(np.eye(3)), Structure.UPPER_TRIANGULAR),
        (LowerTriangular(np.eye(3)), Structure.LOWER_TRIANGULAR),
    ],
)
def test_structured_traits(op, structure):
    """Structure is read from the wrapper type."""
    t = operator_traits(op)

    assert t.kind is OperatorKind.STRUCTURED
    assert t.structure is structure


def test_plain_symmetric_array_is_general():
    """Values are never inspected."""
    A = np.array([[2.0, 1.0], [1.0, 2.0]])

    assert operator_traits(A).structure is Structure.GENERAL


def test_abstract_traits():
    op = LinearOperator((4, 4), matvec=lambda x: 2 * x)
    t = operator_traits(op)

    assert t.kind is OperatorKind.ABSTRACT
    assert t.dtype == np.float64
    assert not t.has_solve


def test_abstract_with_solve():
    op = LinearOperator((4, 4), matvec=lambda x: 2 * x, solve=lambda b: b / 2)

    assert operator_traits(op).has_solve


def test_scipy_operator_is_abstract():
    op = scipy.sparse.linalg.aslinearoperator(np.eye(3))
    t = operator_traits(op)

    assert t.kind is OperatorKind.ABSTRACT
    assert not t.has_solve


def test_unknown_operator():
    with pytest.raises(UnsupportedOperatorError, match="str"):
        operator_traits("not an operator")
    with pytest.raises(UnsupportedOperatorError, match="2-D"):
        operator_traits(np.ones(3))


def test_unknown_operator_is_a_type_error():
    with pytest.raises(TypeError):
        operator_traits(object())


def test_describe():
    t = operator_traits(Diagonal(np.ones(3)))

    assert t.describe() == "structured diagonal 3x3 float64"
