"""
Upstream match payload parsing.

Turns the provider's JSON (v2 match / v3 match-list shapes) into MatchRecord
objects. A malformed round is dropped on its own; a match without metadata,
roster or rounds raises MalformedRecord.
"""

from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import pytz

from valotracker.constants import TimelineConstants
from valotracker.data_models.match import (
    DefuseEvent, KillEvent, MatchRecord, PlantEvent, PlayerSnapshot, RoundRecord, TeamResult
)
from valotracker.utils.exceptions import MalformedRecord
from valotracker.utils.logger import setup_logger

logger = setup_logger(__name__)

PATCHED_START_FORMAT = "%A, %B %d, %Y %I:%M %p"


def _int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def normalize_weapon(name: Optional[str]) -> str:
    """Kill-feed weapon label. Abilities and ultimates share one bucket."""
    if not name or name == 'Ultimate':
        return TimelineConstants.DEFAULT_WEAPON
    return name


def parse_started_at(metadata: Dict[str, Any]) -> Optional[datetime]:
    """Match start time as an aware UTC datetime, or None if absent."""
    game_start = metadata.get('game_start')
    if isinstance(game_start, (int, float)) and game_start > 0:
        return datetime.fromtimestamp(game_start, tz=pytz.utc)
    patched = metadata.get('game_start_patched')
    if patched:
        try:
            return pytz.utc.localize(datetime.strptime(patched, PATCHED_START_FORMAT))
        except ValueError:
            logger.debug(f"Unrecognised game_start_patched value: {patched!r}")
    return None


def _roster_entries(payload: Dict[str, Any]) -> Optional[List[Dict[str, Any]]]:
    players = payload.get('players')
    if isinstance(players, dict):
        return players.get('all_players')
    if isinstance(players, list):
        return players
    return None


def parse_player(raw: Dict[str, Any]) -> PlayerSnapshot:
    stats = raw.get('stats') or {}
    return PlayerSnapshot(
        player_id=raw.get('puuid') or '',
        name=raw.get('name') or '',
        tag=raw.get('tag') or '',
        team=(raw.get('team') or '').lower(),
        agent=raw.get('character'),
        party_id=raw.get('party_id'),
        tier=raw.get('currenttier_patched'),
        kills=_int(stats.get('kills')),
        deaths=_int(stats.get('deaths')),
        assists=_int(stats.get('assists')),
        score=_int(stats.get('score')),
        headshots=_int(stats.get('headshots')),
        bodyshots=_int(stats.get('bodyshots')),
        legshots=_int(stats.get('legshots')),
    )


def parse_kill(raw: Dict[str, Any]) -> KillEvent:
    timestamp = raw.get('kill_time_in_round')
    if timestamp is None:
        timestamp = raw.get('game_time', raw.get('kill_time_in_match'))
    return KillEvent(
        round_index=_int(raw.get('round'), -1),
        timestamp=_int(timestamp),
        killer_id=raw.get('killer_puuid') or '',
        victim_id=raw.get('victim_puuid') or '',
        weapon=normalize_weapon(raw.get('damage_weapon_name')),
    )


def _parse_plant(raw_round: Dict[str, Any]) -> Optional[PlantEvent]:
    plant = raw_round.get('plant_events') or {}
    if not plant.get('plant_location'):
        return None
    planted_by = plant.get('planted_by') or {}
    return PlantEvent(site=plant.get('plant_site'), player_id=planted_by.get('puuid'))


def _parse_defuse(raw_round: Dict[str, Any]) -> Optional[DefuseEvent]:
    defuse = raw_round.get('defuse_events') or {}
    if not defuse.get('defuse_location'):
        return None
    defused_by = defuse.get('defused_by') or {}
    return DefuseEvent(player_id=defused_by.get('puuid'))


def parse_match(payload: Dict[str, Any]) -> MatchRecord:
    """
    Build a MatchRecord from one upstream match object.

    Raises:
        MalformedRecord: If metadata, roster or rounds are missing
    """
    if not isinstance(payload, dict):
        raise MalformedRecord('match', 'payload is not an object')
    metadata = payload.get('metadata')
    match_id = (metadata or {}).get('matchid') or (metadata or {}).get('match_id') or 'unknown'
    if not isinstance(metadata, dict):
        raise MalformedRecord(match_id, 'missing metadata')
    roster = _roster_entries(payload)
    if not roster:
        raise MalformedRecord(match_id, 'missing roster')
    raw_rounds = payload.get('rounds')
    if not isinstance(raw_rounds, list):
        raise MalformedRecord(match_id, 'missing rounds')

    kills_by_round = defaultdict(list)
    for raw_kill in payload.get('kills') or []:
        if not isinstance(raw_kill, dict):
            continue
        kill = parse_kill(raw_kill)
        kills_by_round[kill.round_index].append(kill)

    rounds = []
    for index, raw_round in enumerate(raw_rounds):
        winner = (raw_round or {}).get('winning_team')
        if not winner:
            logger.warning(f"Skipping round {index + 1} of match {match_id}: no winning team")
            continue
        round_kills = sorted(kills_by_round.get(index, []), key=lambda k: k.timestamp)
        rounds.append(RoundRecord(
            index=index,
            winner_side=winner.lower(),
            end_type=raw_round.get('end_type') or 'Unknown',
            kills=tuple(round_kills),
            plant=_parse_plant(raw_round),
            defuse=_parse_defuse(raw_round),
        ))

    teams = {}
    for side, raw_team in (payload.get('teams') or {}).items():
        if isinstance(raw_team, dict):
            teams[side.lower()] = TeamResult(
                has_won=bool(raw_team.get('has_won')),
                rounds_won=_int(raw_team.get('rounds_won')),
                rounds_lost=_int(raw_team.get('rounds_lost')),
            )

    return MatchRecord(
        match_id=match_id,
        started_at=parse_started_at(metadata),
        map_name=metadata.get('map'),
        mode=metadata.get('mode'),
        teams=teams,
        rounds=tuple(rounds),
        roster=tuple(parse_player(p) for p in roster if isinstance(p, dict)),
    )


def parse_matches(payloads: Iterable[Dict[str, Any]]) -> List[MatchRecord]:
    """Parse a match list, dropping malformed matches. Upstream order is kept."""
    matches = []
    for payload in payloads or []:
        try:
            matches.append(parse_match(payload))
        except MalformedRecord as e:
            logger.warning(f"Skipping match: {e}")
    return matches
