"""Error taxonomy for linear solves.

Structural errors (shapes, unsupported operator/strategy combinations) are
raised before any backend is touched. Numerical errors are raised by the
strategy that detected them and are never replaced by a fallback solve.
Non-convergence of an iterative method is not an exception; it is reported
through ``ReturnCode.MAX_ITERS`` on the solution.
"""

import numpy as np


class LinearSolveError(Exception):
    """Base class for all errors raised by linsolve."""


class ShapeMismatchError(LinearSolveError, ValueError):
    """Operator, right-hand side and guess dimensions are inconsistent."""

    def __init__(self, what: str, expected, got):
        self.what = what
        self.expected = expected
        self.got = got
        super().__init__(f"{what}: expected {expected}, got {got}")


class UnsupportedOperatorError(LinearSolveError, TypeError):
    """The operator cannot be classified, or no registered backend handles it."""

    def __init__(self, alg, traits=None, reason: str = ""):
        self.alg = alg
        self.traits = traits
        if isinstance(alg, str):
            name = alg
        else:
            name = alg.__name__ if isinstance(alg, type) else type(alg).__name__
        if traits is None:
            # Raised while classifying, before any traits exist
            msg = name
        else:
            msg = f"{name} has no backend for {traits.describe()}"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class SingularMatrixError(LinearSolveError, np.linalg.LinAlgError):
    """Backend detected a singular or numerically non-invertible operator."""


class PatternMismatchError(LinearSolveError, ValueError):
    """Sparse operator no longer matches the cached symbolic factorization.

    Raised when a cache was told to assume the nonzero pattern is unchanged
    and it was not. Retrying after ``set_operator(A, assume_same_pattern=False)``
    (or with ``reuse_symbolic=False``) rebuilds the symbolic phase.
    """
