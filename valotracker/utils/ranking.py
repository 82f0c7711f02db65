"""
Ranking helpers for the daily leaderboard.
"""

from typing import Dict, Iterable, List, Optional

from valotracker.data_models.leaderboard import DailyScoreEntry, RankedEntry


def rank_entries(entries: Iterable[DailyScoreEntry]) -> List[DailyScoreEntry]:
    """Sort by points, highest first. Ties keep the order they were discovered in."""
    return sorted(entries, key=lambda entry: entry.points, reverse=True)


def build_ranked_view(entries: Iterable[DailyScoreEntry], labels: Optional[Dict[str, str]] = None,
                      limit: Optional[int] = None) -> List[RankedEntry]:
    """
    Number already-ranked entries from 1, truncated to ``limit``.

    Args:
        entries: Entries in rank order
        labels: Optional identity key -> display label overrides
        limit: Maximum rows to keep
    """
    labels = labels or {}
    rows = []
    for position, entry in enumerate(entries, start=1):
        if limit is not None and position > limit:
            break
        rows.append(RankedEntry(
            rank=position,
            label=labels.get(entry.identity_key) or entry.identity_key,
            points=entry.points,
            wins=entry.wins,
            kills=entry.kills,
            identity_key=entry.identity_key,
            linked_external_id=entry.linked_external_id,
        ))
    return rows
