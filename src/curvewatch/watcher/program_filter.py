"""
Program-number filtering for the curve watcher.

Only curves produced by an allowed measuring program are converted.
The allow-list is fixed when the filter is created.
"""

import logging
from typing import FrozenSet, Iterable

logger = logging.getLogger(__name__)


class ProgramFilter:
    """Accepts records whose program number is in the allow-list."""

    def __init__(self, allowed: Iterable[int]):
        self._allowed: FrozenSet[int] = frozenset(allowed)
        if not self._allowed:
            logger.warning("Program filter is empty - no curves will be converted")

    @property
    def allowed(self) -> FrozenSet[int]:
        return self._allowed

    def accept(self, program_number: int) -> bool:
        """True iff program_number is in the allow-list."""
        return program_number in self._allowed

    def describe(self) -> str:
        """Human-readable summary of the allow-list."""
        if not self._allowed:
            return "(empty - nothing is converted)"
        return ", ".join(str(n) for n in sorted(self._allowed))
