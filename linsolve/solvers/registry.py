"""Registry of strategy backends.

Each strategy class registers the operator kinds, element families and
(optionally) structures it has a backend path for. Registration happens
when the defining module is imported; after that the registry is only read.
The default selector and the cache both resolve through it.

Example:
    >>> from linsolve.solvers.registry import registry
    >>> @registry.register(kinds=(OperatorKind.SPARSE,), families=(ElementFamily.REAL,))
    ... class MySparseLU(AbstractFactorization):
    ...     ...
"""

from dataclasses import dataclass
import logging
from typing import Any, Iterable, Optional, Union

from linsolve.core.errors import UnsupportedOperatorError
from linsolve.core.traits import (
    ElementFamily,
    OperatorKind,
    OperatorTraits,
    Structure,
)

logger = logging.getLogger(__name__)

ALL_KINDS = tuple(OperatorKind)
ALL_FAMILIES = tuple(ElementFamily)
BLAS_FAMILIES = (ElementFamily.REAL, ElementFamily.COMPLEX)


@dataclass(frozen=True)
class RegistryEntry:
    """Backend coverage of one strategy class."""

    cls: type
    kinds: frozenset
    families: frozenset
    structures: Optional[frozenset] = None   # None: any structure

    def covers(self, traits: OperatorTraits) -> bool:
        return (
            traits.kind in self.kinds
            and traits.family in self.families
            and (self.structures is None or traits.structure in self.structures)
        )


class StrategyRegistry:
    """Maps strategy classes to the operator traits they can handle."""

    def __init__(self) -> None:
        self._entries: dict[type, RegistryEntry] = {}
        self._frozen = False

    def register(
        self,
        kinds: Iterable[OperatorKind] = ALL_KINDS,
        families: Iterable[ElementFamily] = ALL_FAMILIES,
        structures: Optional[Iterable[Structure]] = None,
    ):
        """
        Class decorator registering a strategy backend.

        Args:
            kinds: Operator kinds with a backend path
            families: Element families with a backend path
            structures: Restrict to these structures (None: any)

        Returns:
            Decorator returning the class unchanged
        """
        def decorator(cls: type) -> type:
            self.add(cls, kinds, families, structures)
            return cls

        return decorator

    def add(
        self,
        cls: type,
        kinds: Iterable[OperatorKind] = ALL_KINDS,
        families: Iterable[ElementFamily] = ALL_FAMILIES,
        structures: Optional[Iterable[Structure]] = None,
    ) -> None:
        """Register cls (non-decorator form)."""
        if self._frozen:
            raise RuntimeError("Strategy registry is frozen")
        entry = RegistryEntry(
            cls=cls,
            kinds=frozenset(kinds),
            families=frozenset(families),
            structures=None if structures is None else frozenset(structures),
        )
        self._entries[cls] = entry
        logger.debug("registered strategy %s", cls.__name__)

    def freeze(self) -> None:
        """Disallow further registration."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def entry(self, alg: Union[type, Any]) -> Optional[RegistryEntry]:
        """Entry for alg's class, inherited through the MRO."""
        cls = alg if isinstance(alg, type) else type(alg)
        for klass in cls.__mro__:
            if klass in self._entries:
                return self._entries[klass]
        return None

    def entries(self) -> list[RegistryEntry]:
        return list(self._entries.values())

    def is_registered(self, alg: Union[type, Any]) -> bool:
        return self.entry(alg) is not None

    def reason_unsupported(
        self, alg: Union[type, Any], traits: OperatorTraits
    ) -> Optional[str]:
        """Why alg cannot handle an operator with these traits (None if it can)."""
        entry = self.entry(alg)
        if entry is None:
            return "strategy is not registered"
        if alg.needs_concrete_operator and traits.kind is OperatorKind.ABSTRACT:
            return "strategy needs a concrete matrix"
        if not entry.covers(traits):
            return "no backend for this operator kind/element type/structure"
        least_squares = getattr(alg, "least_squares", False)
        if not isinstance(least_squares, bool):
            # property on a class: only instances know
            least_squares = False
        if not traits.is_square and not least_squares:
            return "operator is not square"
        if not isinstance(alg, type):
            return alg.check_operator(traits)
        return None

    def supports(self, alg: Union[type, Any], traits: OperatorTraits) -> bool:
        return self.reason_unsupported(alg, traits) is None

    def check(self, alg: Any, traits: OperatorTraits) -> None:
        """
        Raise UnsupportedOperatorError unless alg can handle the operator.

        Raises:
            UnsupportedOperatorError: With the reason in the message
        """
        reason = self.reason_unsupported(alg, traits)
        if reason is not None:
            raise UnsupportedOperatorError(alg, traits, reason)


# Module-level registry instance
registry = StrategyRegistry()

__all__ = [
    "ALL_KINDS",
    "ALL_FAMILIES",
    "BLAS_FAMILIES",
    "RegistryEntry",
    "StrategyRegistry",
    "registry",
]
