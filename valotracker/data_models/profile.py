"""
Profile data models.

Immutable results of the stat aggregation functions in
``valotracker.services.profile_stats``.
"""

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class TopCategory:
    """Most frequent value of a category and how often it occurred."""
    value: str
    count: int

    def __str__(self) -> str:
        return f"{self.value} ({self.count})"


@dataclass(frozen=True)
class ProfileStats:
    """Top-category and cumulative performance summary over a match window."""
    top_agent: Optional[TopCategory]
    top_map: Optional[TopCategory]
    top_weapon: Optional[TopCategory]
    top_duo: Optional[TopCategory]
    kda: float
    headshot_pct: int
    total_kills: int
    total_deaths: int
    total_assists: int
    matches_considered: int


@dataclass(frozen=True)
class AgentSummary:
    """Per-agent performance."""
    agent: str
    played: int
    wins: int
    kills: int
    deaths: int
    assists: int

    @property
    def win_rate(self) -> int:
        return round(self.wins / self.played * 100) if self.played else 0

    @property
    def kd(self) -> float:
        return round(self.kills / (self.deaths or 1), 2)


@dataclass(frozen=True)
class MatchSummary:
    """Last-match card."""
    match_id: str
    map_name: Optional[str]
    mode: Optional[str]
    won: bool
    team_score: int
    enemy_score: int
    agent: Optional[str]
    kills: int
    deaths: int
    assists: int
    headshot_pct: int

    @property
    def kda_line(self) -> str:
        return f"{self.kills}/{self.deaths}/{self.assists}"


@dataclass(frozen=True)
class RankSnapshot:
    """Competitive rank as reported by the upstream MMR endpoint."""
    tier: str
    ranking_in_tier: int
    elo: int
    season: Optional[str] = None
    image_url: Optional[str] = None


@dataclass(frozen=True)
class AgentBreakdown:
    agents: List[AgentSummary]
    matches_considered: int
