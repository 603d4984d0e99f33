"""Solve cache and the bind/solve entry points."""

from linsolve.interface.cache import CacheState, LinearCache, SolveStats
from linsolve.interface.solve import init, solve, solve_system

__all__ = [
    "CacheState",
    "LinearCache",
    "SolveStats",
    "init",
    "solve",
    "solve_system",
]
