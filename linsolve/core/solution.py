"""Solution record returned by every solve."""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Optional
from numpy.typing import NDArray


class ReturnCode(Enum):
    """Outcome of a solve."""
    SUCCESS = auto()
    MAX_ITERS = auto()   # iterative method hit maxiter; u is the last iterate
    FAILURE = auto()     # iterative method broke down


@dataclass
class LinearSolution:
    """
    Result of a linear solve.

    ``u`` aliases the cache's solution buffer, so it is overwritten by the
    next solve on the same cache. Copy it to keep it.
    """

    u: NDArray
    retcode: ReturnCode
    cache: Any
    alg: Any
    iters: int = 0
    resid: Optional[float] = None

    @property
    def success(self) -> bool:
        return self.retcode is ReturnCode.SUCCESS
