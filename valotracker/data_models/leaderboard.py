"""
Leaderboard data models.

The snapshot is the whole daily leaderboard state for a single day key. It is
mutated only by the LeaderboardEngine and persisted through a SnapshotStore
after every transition.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional


@dataclass(frozen=True)
class DailyScoreEntry:
    """One identity's score for the snapshot's day."""
    identity_key: str
    points: float = 0
    wins: int = 0
    kills: int = 0
    linked_external_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'points': self.points,
            'wins': self.wins,
            'kills': self.kills,
            'linkedExternalId': self.linked_external_id,
        }

    @classmethod
    def from_dict(cls, identity_key: str, data: Dict[str, Any]) -> "DailyScoreEntry":
        external_id = data.get('linkedExternalId')
        points = data.get('points', 0) or 0
        if isinstance(points, bool) or not isinstance(points, (int, float)):
            raise TypeError(f"points for {identity_key} is not a number: {points!r}")
        return cls(
            identity_key=identity_key,
            points=points,
            wins=int(data.get('wins', 0) or 0),
            kills=int(data.get('kills', 0) or 0),
            linked_external_id=str(external_id) if external_id is not None else None,
        )


@dataclass
class LeaderboardSnapshot:
    """Complete leaderboard state. Entry order is discovery order."""
    day_key: Optional[str] = None
    tenants: Dict[str, str] = field(default_factory=dict)  # tenant id -> destination
    entries: Dict[str, DailyScoreEntry] = field(default_factory=dict)

    def copy(self) -> "LeaderboardSnapshot":
        # Entries are frozen, so a shallow dict copy is enough
        return LeaderboardSnapshot(
            day_key=self.day_key,
            tenants=dict(self.tenants),
            entries=dict(self.entries),
        )

    def reset_for_day(self, day_key: str) -> None:
        self.entries = {}
        self.day_key = day_key

    def to_dict(self) -> Dict[str, Any]:
        return {
            'dayKey': self.day_key,
            'tenants': dict(self.tenants),
            'entries': {key: entry.to_dict() for key, entry in self.entries.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LeaderboardSnapshot":
        """Build from the current persisted layout (migrate legacy layouts first)."""
        entries = {
            key: DailyScoreEntry.from_dict(key, value or {})
            for key, value in (data.get('entries') or {}).items()
        }
        tenants = {str(k): str(v) for k, v in (data.get('tenants') or {}).items()}
        return cls(day_key=data.get('dayKey'), tenants=tenants, entries=entries)


@dataclass(frozen=True)
class TenantConfig:
    """
    A distribution consumer.

    ``membership_check`` answers whether a linked external id belongs to the
    tenant; ``deliver`` publishes a ranked view to ``destination``.
    """
    tenant_id: str
    destination: str
    membership_check: Callable[[str], Awaitable[bool]]
    deliver: Callable[["TenantLeaderboard"], Awaitable[None]]
    name: Optional[str] = None


@dataclass(frozen=True)
class RankedEntry:
    """Single leaderboard row."""
    rank: int
    label: str
    points: float
    wins: int
    kills: int
    identity_key: str
    linked_external_id: Optional[str] = None


@dataclass(frozen=True)
class TenantLeaderboard:
    """Filtered, truncated ranking for one tenant."""
    tenant_id: str
    day_key: Optional[str]
    entries: List[RankedEntry]
    tracked_count: int
