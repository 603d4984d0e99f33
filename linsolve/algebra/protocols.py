"""Preconditioner protocol."""

from typing import Protocol, runtime_checkable
from numpy.typing import NDArray


@runtime_checkable
class Preconditioner(Protocol):
    """
    Protocol for preconditioners.

    ``solve(x)`` applies M^{-1} to x, where M approximates the operator.
    """

    shape: tuple[int, int]

    def solve(self, x: NDArray) -> NDArray:
        ...
