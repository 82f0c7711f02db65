"""
Daily scoring rules.

A player's contribution from one match is
``kills * per_kill + assists * per_assist + (per_win if their team won)``.
"""

import math
from dataclasses import dataclass

from valotracker.config import Config


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (Python's round() is banker's rounding)."""
    return int(math.floor(value + 0.5))


def percentage(part: int, whole: int) -> int:
    """Whole-number percentage, 0 when ``whole`` is 0."""
    if whole <= 0:
        return 0
    return round_half_up(part / whole * 100)


@dataclass(frozen=True)
class ScoringWeights:
    per_kill: float = 1
    per_assist: float = 0.5
    per_win: float = 5

    @classmethod
    def from_config(cls) -> "ScoringWeights":
        return cls(
            per_kill=Config.POINTS_PER_KILL,
            per_assist=Config.POINTS_PER_ASSIST,
            per_win=Config.POINTS_PER_WIN,
        )

    def match_points(self, kills: int, assists: int, won: bool) -> float:
        points = kills * self.per_kill + assists * self.per_assist
        if won:
            points += self.per_win
        return points
