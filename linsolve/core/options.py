"""Solver options shared by every strategy bound to a cache."""

from dataclasses import dataclass, fields, replace
from typing import Optional

import numpy as np


@dataclass(frozen=True)
class SolverOptions:
    """
    Cache-level solve options.

    Strategy-level settings (e.g. ``GMRES(reltol=...)``) take precedence over
    these; ``None`` means "use the default for the element type".
    """

    abstol: Optional[float] = None
    reltol: Optional[float] = None
    maxiter: Optional[int] = None
    verbose: bool = False

    def updated(self, **overrides) -> "SolverOptions":
        """Return a copy with the given non-None fields replaced."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown solver options: {sorted(unknown)}")
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


@dataclass(frozen=True)
class Tolerances:
    """Concrete tolerances for one iterative solve."""

    abstol: float
    reltol: float
    maxiter: int


def default_tolerance(dtype) -> float:
    """sqrt(eps) of the real part of dtype."""
    dtype = np.dtype(dtype)
    if dtype.kind not in "fc":
        dtype = np.dtype(np.float64)
    return float(np.sqrt(np.finfo(dtype).eps))


def resolve_tolerances(
    options: SolverOptions,
    dtype,
    n: int,
    abstol: Optional[float] = None,
    reltol: Optional[float] = None,
    maxiter: Optional[int] = None,
) -> Tolerances:
    """
    Combine strategy settings, cache options and defaults.

    Args:
        options: Cache-level options
        dtype: Element type of the system
        n: System size (default iteration bound)
        abstol, reltol, maxiter: Strategy-level settings (win when not None)

    Returns:
        Concrete tolerances
    """
    eps = default_tolerance(dtype)

    def pick(strategy_value, option_value, default):
        if strategy_value is not None:
            return strategy_value
        if option_value is not None:
            return option_value
        return default

    return Tolerances(
        abstol=float(pick(abstol, options.abstol, eps)),
        reltol=float(pick(reltol, options.reltol, eps)),
        maxiter=int(pick(maxiter, options.maxiter, max(n, 1))),
    )
