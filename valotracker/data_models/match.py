"""
Match data models.

Immutable views over one upstream match. They are built by
``valotracker.utils.match_parser`` and discarded after processing; raw match
history is never persisted.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class KillEvent:
    """Single kill inside a round."""
    round_index: int
    timestamp: int  # milliseconds into the round
    killer_id: str
    victim_id: str
    weapon: str


@dataclass(frozen=True)
class PlantEvent:
    site: Optional[str]
    player_id: Optional[str]


@dataclass(frozen=True)
class DefuseEvent:
    player_id: Optional[str]


@dataclass(frozen=True)
class RoundRecord:
    """One round. ``kills`` is ordered by in-round timestamp."""
    index: int
    winner_side: str
    end_type: str
    kills: Tuple[KillEvent, ...] = ()
    plant: Optional[PlantEvent] = None
    defuse: Optional[DefuseEvent] = None


@dataclass(frozen=True)
class PlayerSnapshot:
    """Per-player totals for a whole match."""
    player_id: str
    name: str
    tag: str
    team: str
    agent: Optional[str] = None
    party_id: Optional[str] = None
    tier: Optional[str] = None
    kills: int = 0
    deaths: int = 0
    assists: int = 0
    score: int = 0
    headshots: int = 0
    bodyshots: int = 0
    legshots: int = 0

    @property
    def riot_id(self) -> str:
        return f"{self.name}#{self.tag}"

    @property
    def total_shots(self) -> int:
        return self.headshots + self.bodyshots + self.legshots

    def is_named(self, name: str, tag: str) -> bool:
        """Case-insensitive Name#Tag comparison."""
        return self.name.lower() == name.lower() and self.tag.lower() == tag.lower()


@dataclass(frozen=True)
class TeamResult:
    has_won: bool
    rounds_won: int = 0
    rounds_lost: int = 0


@dataclass(frozen=True)
class MatchRecord:
    """A fully parsed match."""
    match_id: str
    started_at: Optional[datetime]
    map_name: Optional[str]
    mode: Optional[str]
    teams: Dict[str, TeamResult] = field(default_factory=dict)
    rounds: Tuple[RoundRecord, ...] = ()
    roster: Tuple[PlayerSnapshot, ...] = ()

    @property
    def team_scores(self) -> Dict[str, int]:
        return {side: result.rounds_won for side, result in self.teams.items()}

    def find_player(self, player_id: Optional[str] = None, name: Optional[str] = None,
                    tag: Optional[str] = None) -> Optional[PlayerSnapshot]:
        """Locate a roster entry by player id, falling back to Name#Tag."""
        for player in self.roster:
            if player_id and player.player_id == player_id:
                return player
            if name is not None and tag is not None and player.is_named(name, tag):
                return player
        return None

    def team_won(self, side: str) -> bool:
        result = self.teams.get(side.lower())
        return bool(result and result.has_won)
