"""
Round-by-round match timeline reconstruction.

Both functions are pure. Callers re-fetch the match and rebuild the timeline
on every page navigation instead of holding on to a reconstructed object, so
upstream corrections show up immediately.
"""

import math
from typing import Dict, Tuple

from valotracker.constants import TeamSides, TimelineConstants
from valotracker.data_models.match import MatchRecord, PlayerSnapshot
from valotracker.data_models.timeline import (
    DefuseInfo, FirstBlood, KillFeedEntry, MatchTimeline, PlantInfo, RoundEvents, RoundScore, TimelinePage
)
from valotracker.utils.exceptions import MalformedRecord


def _identity(roster: Dict[str, PlayerSnapshot], player_id) -> Tuple[str, str]:
    player = roster.get(player_id) if player_id else None
    if player is None:
        return TimelineConstants.UNKNOWN_PLAYER, 'neutral'
    return player.name, player.team


def reconstruct_timeline(match: MatchRecord) -> MatchTimeline:
    """
    Turn a parsed match into ordered round events.

    Kill events are re-sorted by in-round timestamp; upstream ordering is not
    trusted. The running score counts each round's declared winner.

    Raises:
        MalformedRecord: If the match has no rounds
    """
    if not match.rounds:
        raise MalformedRecord(match.match_id, 'match has no rounds')

    roster = {player.player_id: player for player in match.roster}
    score = {side: 0 for side in TeamSides.ALL}
    rounds = []

    for round_record in sorted(match.rounds, key=lambda r: r.index):
        winner = round_record.winner_side
        if winner in score:
            score[winner] += 1

        kills = sorted(round_record.kills, key=lambda k: k.timestamp)
        feed = []
        for kill in kills:
            killer, killer_team = _identity(roster, kill.killer_id)
            victim, victim_team = _identity(roster, kill.victim_id)
            feed.append(KillFeedEntry(
                killer=killer,
                killer_team=killer_team,
                victim=victim,
                victim_team=victim_team,
                weapon=kill.weapon or TimelineConstants.DEFAULT_WEAPON,
                time=kill.timestamp,
            ))

        first_blood = None
        if feed:
            opener = feed[0]
            first_blood = FirstBlood(
                killer=opener.killer, victim=opener.victim, team=opener.killer_team, time=opener.time
            )

        plant = None
        if round_record.plant:
            planter, planter_team = _identity(roster, round_record.plant.player_id)
            plant = PlantInfo(site=round_record.plant.site, player=planter, team=planter_team)

        defuse = None
        if round_record.defuse:
            defuser, defuser_team = _identity(roster, round_record.defuse.player_id)
            defuse = DefuseInfo(player=defuser, team=defuser_team)

        rounds.append(RoundEvents(
            round_number=round_record.index + 1,
            winner=winner,
            end_type=round_record.end_type,
            score=RoundScore(blue=score[TeamSides.BLUE], red=score[TeamSides.RED]),
            first_blood=first_blood,
            plant=plant,
            defuse=defuse,
            kills=tuple(feed),
        ))

    return MatchTimeline(
        match_id=match.match_id,
        map_name=match.map_name,
        mode=match.mode,
        started_at=match.started_at,
        final_score=match.team_scores,
        rounds=tuple(rounds),
    )


def total_pages(round_count: int, page_size: int = TimelineConstants.PAGE_SIZE) -> int:
    return math.ceil(round_count / page_size)


def paginate_timeline(timeline: MatchTimeline, page: int = 1,
                      page_size: int = TimelineConstants.PAGE_SIZE) -> TimelinePage:
    """Slice one page of rounds. ``page`` is clamped into ``[1, total_pages]``."""
    if page_size < 1:
        raise ValueError("page_size must be a positive integer")
    pages = total_pages(len(timeline.rounds), page_size)
    page = max(1, min(page, pages))
    start = (page - 1) * page_size
    return TimelinePage(
        match_id=timeline.match_id,
        page=page,
        total_pages=pages,
        rounds=list(timeline.rounds[start:start + page_size]),
        has_previous=page > 1,
        has_next=page < pages,
    )
