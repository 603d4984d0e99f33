"""Linear solvers based on Krylov subspaces.

Dispatches to ``scipy.sparse.linalg``. The reusable workspace built by
``prepare`` is the scipy operator (with any right preconditioner composed
in) and the left preconditioner; each ``apply`` runs one Krylov solve from the
cache's current guess, so consecutive solves warm-start from the previous
solution.
"""

from dataclasses import dataclass
from typing import Any, Optional
import logging
import math

import numpy as np
import scipy.sparse.linalg
from numpy.typing import NDArray

from linsolve.algebra.operators import as_scipy_operator
from linsolve.algebra.preconditioners import as_scipy_preconditioner, is_identity
from linsolve.core.options import resolve_tolerances
from linsolve.core.solution import ReturnCode
from linsolve.solvers.base import AbstractKrylovSubspaceMethod, ApplyResult
from linsolve.solvers.registry import ALL_KINDS, BLAS_FAMILIES, registry

logger = logging.getLogger(__name__)

# Methods that assume a symmetric (Hermitian) operator
_SYMMETRIC_METHODS = ("cg", "minres")
_LEAST_SQUARES_METHODS = ("lsmr",)
_METHODS = ("gmres", "lgmres", "cg", "bicgstab", "minres", "lsmr")


@dataclass
class KrylovWorkspace:
    """Operator adapters reused across applies."""

    op: scipy.sparse.linalg.LinearOperator     # A, or A Pr^{-1}
    A: scipy.sparse.linalg.LinearOperator      # A itself, for residuals
    M: Optional[scipy.sparse.linalg.LinearOperator]
    right: Optional[scipy.sparse.linalg.LinearOperator]
    dtype: np.dtype


@registry.register(kinds=ALL_KINDS, families=BLAS_FAMILIES)
@dataclass(frozen=True)
class KrylovMethod(AbstractKrylovSubspaceMethod):
    """
    Krylov subspace method from scipy.sparse.linalg.

    Attributes:
        method: "gmres", "lgmres", "cg", "bicgstab", "minres" or "lsmr"
        Pl: Left preconditioner (object with ``solve``, or M^{-1} as an
            array/sparse matrix/scipy operator)
        Pr: Right preconditioner, same forms as Pl
        abstol: Absolute residual tolerance (default sqrt(eps))
        reltol: Relative residual tolerance (default sqrt(eps))
        maxiter: Iteration bound (default: system size)
        restart: Krylov subspace size between restarts (GMRES/LGMRES)
    """

    method: str = "gmres"
    Pl: Any = None
    Pr: Any = None
    abstol: Optional[float] = None
    reltol: Optional[float] = None
    maxiter: Optional[int] = None
    restart: int = 20

    def __post_init__(self):
        if self.method not in _METHODS:
            raise ValueError(f"Unknown Krylov method {self.method!r}; use one of {_METHODS}")

    @property
    def least_squares(self) -> bool:
        return self.method in _LEAST_SQUARES_METHODS

    def prepare(self, A, b, u, state=None, same_pattern=True):
        A_op = as_scipy_operator(A)
        dtype = np.result_type(A_op.dtype, b.dtype)
        if self.method == "lsmr" and not is_identity(self.Pl):
            raise ValueError("LSMR does not support a left preconditioner")
        return self._workspace(A_op, dtype)

    def _workspace(self, A_op, dtype) -> KrylovWorkspace:
        """Preconditioner adapters and the (right-preconditioned) operator for dtype."""
        n = A_op.shape[1]
        M = as_scipy_preconditioner(self.Pl, A_op.shape[0], dtype)

        right = None
        op = A_op
        if not is_identity(self.Pr):
            if self.method in _SYMMETRIC_METHODS:
                logger.warning(
                    "%s assumes a symmetric operator; right preconditioning breaks symmetry",
                    self.method,
                )
            right = as_scipy_preconditioner(self.Pr, n, dtype)
            op = A_op @ right

        return KrylovWorkspace(op=op, A=A_op, M=M, right=right, dtype=dtype)

    def apply(self, state, b, u, context):
        ws = state
        dtype = np.result_type(state.dtype, b.dtype)
        if dtype != state.dtype:
            # A new right-hand side widened the element type (e.g. complex b, real A)
            ws = self._workspace(state.A, dtype)

        n = ws.A.shape[1]
        tol = resolve_tolerances(
            context.options, ws.dtype, n, self.abstol, self.reltol, self.maxiter
        )

        if b.ndim == 1:
            x, info, iters = self._run(ws, b, u, tol, context.options.verbose)
        else:
            # scipy's Krylov methods take one right-hand side at a time
            cols = [
                self._run(ws, b[:, j], u[:, j], tol, context.options.verbose)
                for j in range(b.shape[1])
            ]
            x = np.column_stack([c[0] for c in cols])
            info = max((c[1] for c in cols), key=abs)
            iters = max(c[2] for c in cols)

        resid = float(np.linalg.norm(b - ws.A @ x))
        if info == 0:
            retcode = ReturnCode.SUCCESS
        elif info > 0:
            retcode = ReturnCode.MAX_ITERS
            logger.warning(
                "%s did not converge in %d iterations (residual %.3e, reltol %.3e, abstol %.3e)",
                self.method, iters, resid, tol.reltol, tol.abstol,
            )
        else:
            retcode = ReturnCode.FAILURE
            logger.warning("%s broke down (info=%d, residual %.3e)", self.method, info, resid)

        return ApplyResult(u=x, retcode=retcode, iters=iters, resid=resid)

    def _run(self, ws: KrylovWorkspace, b: NDArray, x0: NDArray, tol, verbose: bool):
        """One Krylov solve for a single right-hand side: (x, info, iters)."""
        count = [0]

        def callback(arg):
            count[0] += 1
            if verbose:
                logger.debug("%s iter %d", self.method, count[0])

        b = np.asarray(b, dtype=ws.dtype)
        # Right-preconditioned systems iterate on y = Pr x, so x0 cannot be reused
        x0 = None if ws.right is not None else np.array(x0, dtype=ws.dtype)

        if self.method == "gmres":
            y, info = self._gmres(ws, b, x0, tol, callback)
        elif self.method == "lgmres":
            # lgmres counts outer cycles; inner_m bounds the work per cycle
            inner = max(min(self.restart, tol.maxiter), 1)
            y, info = scipy.sparse.linalg.lgmres(
                ws.op, b, x0=x0, rtol=tol.reltol, atol=tol.abstol, inner_m=inner,
                maxiter=math.ceil(tol.maxiter / inner), M=ws.M, callback=callback,
            )
        elif self.method == "cg":
            y, info = scipy.sparse.linalg.cg(
                ws.op, b, x0=x0, rtol=tol.reltol, atol=tol.abstol,
                maxiter=tol.maxiter, M=ws.M, callback=callback,
            )
        elif self.method == "bicgstab":
            y, info = scipy.sparse.linalg.bicgstab(
                ws.op, b, x0=x0, rtol=tol.reltol, atol=tol.abstol,
                maxiter=tol.maxiter, M=ws.M, callback=callback,
            )
        elif self.method == "minres":
            # minres has a relative tolerance only
            y, info = scipy.sparse.linalg.minres(
                ws.op, b, x0=x0, rtol=tol.reltol,
                maxiter=tol.maxiter, M=ws.M, callback=callback,
            )
        else:
            y, istop, itn = scipy.sparse.linalg.lsmr(
                ws.op, b, atol=tol.reltol, btol=tol.reltol, maxiter=tol.maxiter, x0=x0
            )[:3]
            count[0] = int(itn)
            info = tol.maxiter if istop == 7 else 0

        x = ws.right @ y if ws.right is not None else y
        return x, int(info), count[0]

    def _gmres(self, ws: KrylovWorkspace, b: NDArray, x0, tol, callback):
        """
        Restarted GMRES with at most ``tol.maxiter`` inner iterations in total.

        scipy's ``maxiter`` counts restart cycles, so the cycles are driven
        here one at a time, each warm-started from the previous iterate and
        shortened so the total never exceeds the bound.
        """
        limit = max(tol.maxiter, 1)
        y, done = x0, 0
        while True:
            restart = min(self.restart, limit - done)
            y, info = scipy.sparse.linalg.gmres(
                ws.op, b, x0=y, rtol=tol.reltol, atol=tol.abstol, restart=restart,
                maxiter=1, M=ws.M, callback=callback, callback_type="pr_norm",
            )
            # An unconverged cycle always runs its full length
            done += restart
            if info == 0 or done >= limit:
                return y, info


@dataclass(frozen=True)
class GMRES(KrylovMethod):
    """Restarted GMRES; for general non-symmetric systems."""

    method: str = "gmres"


@dataclass(frozen=True)
class LGMRES(KrylovMethod):
    """LGMRES (GMRES with augmented restarts)."""

    method: str = "lgmres"


@dataclass(frozen=True)
class CG(KrylovMethod):
    """Conjugate gradients; Hermitian positive-definite systems only."""

    method: str = "cg"


@dataclass(frozen=True)
class BiCGStab(KrylovMethod):
    """Stabilised biconjugate gradients; non-symmetric systems."""

    method: str = "bicgstab"


@dataclass(frozen=True)
class MINRES(KrylovMethod):
    """MINRES; symmetric (possibly indefinite) systems."""

    method: str = "minres"


@dataclass(frozen=True)
class LSMR(KrylovMethod):
    """LSMR; least-squares solutions of rectangular systems (needs A^H)."""

    method: str = "lsmr"
