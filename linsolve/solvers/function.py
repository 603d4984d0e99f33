"""Strategies that defer the solve to a callback or to the operator itself."""

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import numpy as np

from linsolve.core.traits import OperatorTraits
from linsolve.solvers.base import AbstractSolveFunction, ApplyResult
from linsolve.solvers.registry import ALL_FAMILIES, ALL_KINDS, registry


@registry.register(kinds=ALL_KINDS, families=ALL_FAMILIES)
@dataclass(frozen=True)
class LinearSolveFunction(AbstractSolveFunction):
    """
    Caller-supplied solve function.

    ``func(A, b, u, p, isfresh, Pl, Pr, cacheval, **kwargs)`` is called on
    every solve. Returning None means the solution was written into ``u``
    (in place); returning an array means out of place. ``isfresh`` is True
    when the operator changed since the previous call, so the callback can
    refactor only then and keep its own state in ``cacheval``, a dict
    private to the cache.

    Attributes:
        func: The solve callback
        Pl: Left preconditioner handed to func
        Pr: Right preconditioner handed to func
        kwargs: Extra keyword arguments for func
    """

    func: Callable[..., Optional[np.ndarray]]
    Pl: Any = None
    Pr: Any = None
    kwargs: dict = field(default_factory=dict)

    def prepare(self, A, b, u, state=None, same_pattern=True):
        # One dict per cache, kept across operator updates
        return {} if state is None else state

    def apply(self, state, b, u, context):
        out = self.func(
            context.A, b, u, context.p, context.isfresh,
            self.Pl, self.Pr, state, **self.kwargs,
        )
        if out is None:
            return ApplyResult(u=u)
        return ApplyResult(u=np.asarray(out))


@registry.register(kinds=ALL_KINDS, families=ALL_FAMILIES)
@dataclass(frozen=True)
class DirectLdiv(AbstractSolveFunction):
    """Calls the operator's own ``solve``; nothing is cached."""

    def prepare(self, A, b, u, state=None, same_pattern=True):
        return None

    def apply(self, state, b, u, context):
        return ApplyResult(u=np.asarray(context.A.solve(b)))

    def check_operator(self, traits: OperatorTraits) -> Optional[str]:
        if not traits.has_solve:
            return "operator has no native solve"
        return None
