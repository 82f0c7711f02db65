"""
Timeline data models produced by the timeline reconstructor.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class KillFeedEntry:
    killer: str
    killer_team: str
    victim: str
    victim_team: str
    weapon: str
    time: int


@dataclass(frozen=True)
class FirstBlood:
    killer: str
    victim: str
    team: str
    time: int


@dataclass(frozen=True)
class PlantInfo:
    site: Optional[str]
    player: str
    team: str


@dataclass(frozen=True)
class DefuseInfo:
    player: str
    team: str


@dataclass(frozen=True)
class RoundScore:
    blue: int
    red: int

    def __str__(self) -> str:
        return f"{self.blue} - {self.red}"


@dataclass(frozen=True)
class RoundEvents:
    """One reconstructed round."""
    round_number: int
    winner: str
    end_type: str
    score: RoundScore
    first_blood: Optional[FirstBlood]
    plant: Optional[PlantInfo]
    defuse: Optional[DefuseInfo]
    kills: Tuple[KillFeedEntry, ...]


@dataclass(frozen=True)
class MatchTimeline:
    match_id: str
    map_name: Optional[str]
    mode: Optional[str]
    started_at: Optional[datetime]
    final_score: Dict[str, int]
    rounds: Tuple[RoundEvents, ...]


@dataclass(frozen=True)
class TimelinePage:
    """Paginated timeline view."""
    match_id: str
    page: int
    total_pages: int
    rounds: List[RoundEvents]
    has_previous: bool
    has_next: bool
