"""
Profile analytics over a window of recent matches.

All functions here are pure: they take parsed matches plus the target
player and return immutable summaries, so they are safe to call concurrently
for different players.

Top-category selection uses insertion-ordered counters; when two values tie
on frequency the one seen first while iterating the matches wins.
"""

from collections import Counter
from typing import Dict, Iterable, List, Optional

from valotracker.data_models.match import MatchRecord, PlayerSnapshot
from valotracker.data_models.profile import (
    AgentBreakdown, AgentSummary, MatchSummary, ProfileStats, TopCategory
)
from valotracker.utils.scoring import percentage


def top_category(counts: Dict[str, int]) -> Optional[TopCategory]:
    """Highest-frequency value; first-encountered wins ties. None when empty."""
    best = None
    for value, count in counts.items():
        if best is None or count > best.count:
            best = TopCategory(value=value, count=count)
    return best


def compute_kda(kills: int, deaths: int) -> float:
    """Kills per death; with zero deaths the kill count itself is reported."""
    if deaths == 0:
        return float(kills)
    return round(kills / deaths, 2)


def _locate(match: MatchRecord, name: str, tag: str,
            player_id: Optional[str]) -> Optional[PlayerSnapshot]:
    return match.find_player(player_id=player_id, name=name, tag=tag)


def duo_partners(match: MatchRecord, player: PlayerSnapshot) -> List[PlayerSnapshot]:
    """Teammates queued in the same party as ``player``."""
    if not player.party_id:
        return []
    return [
        teammate for teammate in match.roster
        if teammate.team == player.team
        and teammate.player_id != player.player_id
        and teammate.party_id == player.party_id
    ]


def aggregate_profile_stats(matches: Iterable[MatchRecord], name: str, tag: str,
                            player_id: Optional[str] = None) -> Optional[ProfileStats]:
    """
    Reduce a match window into top-category and cumulative stats.

    Only matches where the target appears contribute. Weapon counts come from
    kill events whose killer is the target's in-match player id.

    Args:
        matches: Parsed matches, most recent first
        name: Target player's name
        tag: Target player's tag
        player_id: Target's upstream id if already known

    Returns:
        ProfileStats, or None if ``matches`` is empty
    """
    matches = list(matches)
    if not matches:
        return None

    agents, maps, weapons, duos = Counter(), Counter(), Counter(), Counter()
    kills = deaths = assists = shots = headshots = 0
    considered = 0

    for match in matches:
        player = _locate(match, name, tag, player_id)
        if player is None:
            continue
        considered += 1

        kills += player.kills
        deaths += player.deaths
        assists += player.assists
        shots += player.total_shots
        headshots += player.headshots

        if match.map_name:
            maps[match.map_name] += 1
        if player.agent:
            agents[player.agent] += 1
        for round_record in match.rounds:
            for kill in round_record.kills:
                if kill.killer_id == player.player_id:
                    weapons[kill.weapon] += 1
        for teammate in duo_partners(match, player):
            duos[teammate.riot_id] += 1

    return ProfileStats(
        top_agent=top_category(agents),
        top_map=top_category(maps),
        top_weapon=top_category(weapons),
        top_duo=top_category(duos),
        kda=compute_kda(kills, deaths),
        headshot_pct=percentage(headshots, shots),
        total_kills=kills,
        total_deaths=deaths,
        total_assists=assists,
        matches_considered=considered,
    )


def summarize_last_match(match: MatchRecord, name: str, tag: str,
                         player_id: Optional[str] = None) -> Optional[MatchSummary]:
    """Result card for one match, or None if the player is not in it."""
    player = _locate(match, name, tag, player_id)
    if player is None:
        return None
    enemy_side = next((side for side in match.teams if side != player.team), None)
    return MatchSummary(
        match_id=match.match_id,
        map_name=match.map_name,
        mode=match.mode,
        won=match.team_won(player.team),
        team_score=match.team_scores.get(player.team, 0),
        enemy_score=match.team_scores.get(enemy_side, 0) if enemy_side else 0,
        agent=player.agent,
        kills=player.kills,
        deaths=player.deaths,
        assists=player.assists,
        headshot_pct=percentage(player.headshots, player.total_shots),
    )


def summarize_agents(matches: Iterable[MatchRecord], name: str, tag: str,
                     player_id: Optional[str] = None, limit: int = 5) -> AgentBreakdown:
    """Per-agent totals ordered by games played (stable for ties)."""
    matches = list(matches)
    totals: Dict[str, Dict[str, int]] = {}
    for match in matches:
        player = _locate(match, name, tag, player_id)
        if player is None or not player.agent:
            continue
        row = totals.setdefault(player.agent, {'played': 0, 'wins': 0, 'kills': 0, 'deaths': 0, 'assists': 0})
        row['played'] += 1
        row['kills'] += player.kills
        row['deaths'] += player.deaths
        row['assists'] += player.assists
        if match.team_won(player.team):
            row['wins'] += 1

    agents = [AgentSummary(agent=agent, **row) for agent, row in totals.items()]
    agents.sort(key=lambda a: a.played, reverse=True)
    return AgentBreakdown(agents=agents[:limit], matches_considered=len(matches))
