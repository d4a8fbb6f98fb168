"""
Policy for choosing one line when a game is quoted by several sportsbooks.
"""
import math
from dataclasses import dataclass
from typing import Iterable, Optional

from ..config.constants import DEFAULT_PROVIDER_PRIORITY
from ..data.schemas import Line


def has_usable_spread(line: Line) -> bool:
    return line.spread is not None and math.isfinite(line.spread)


@dataclass(frozen=True)
class LineSelectionPolicy:
    """
    Ordered provider preference.

    Only lines with a usable spread are candidates. The candidate from the
    highest-priority provider wins (names compared case-insensitively); if no
    preferred provider quoted the game, the first candidate in input order is
    used.

    Example:
        >>> policy = LineSelectionPolicy(("ESPN Bet", "DraftKings"))
        >>> policy.select(game.lines).provider
        'ESPN Bet'
    """

    preferred_providers: tuple[str, ...] = DEFAULT_PROVIDER_PRIORITY

    @classmethod
    def from_settings(cls, settings) -> "LineSelectionPolicy":
        """Build from ``Settings`` or ``ATSSettings``."""
        ats = getattr(settings, "ats", settings)
        return cls(tuple(ats.preferred_providers))

    def priority_of(self, provider: str) -> Optional[int]:
        key = provider.strip().casefold()
        for rank, preferred in enumerate(self.preferred_providers):
            if preferred.strip().casefold() == key:
                return rank
        return None

    def select(self, lines: Iterable[Line]) -> Optional[Line]:
        candidates = [line for line in lines if has_usable_spread(line)]
        if not candidates:
            return None

        best: Optional[tuple[int, Line]] = None
        for line in candidates:
            rank = self.priority_of(line.provider)
            if rank is None:
                continue
            # Strict comparison keeps the earliest line on a tie
            if best is None or rank < best[0]:
                best = (rank, line)

        if best is not None:
            return best[1]
        return candidates[0]
