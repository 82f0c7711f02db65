"""Shared builders and fakes for the tracker test suite."""

from dataclasses import replace
from datetime import datetime

import pytest
import pytz

from valotracker.data_models.identity import Identity
from valotracker.data_models.leaderboard import LeaderboardSnapshot, TenantConfig
from valotracker.data_models.match import KillEvent, MatchRecord, PlayerSnapshot, RoundRecord, TeamResult
from valotracker.database.database import Database
from valotracker.services.leaderboard_engine import TenantGateway
from valotracker.services.match_fetcher import FetchResult
from valotracker.services.snapshot_store import SnapshotStore, decode_snapshot, encode_snapshot
from valotracker.utils.exceptions import TenantDestinationUnreachable, UpstreamUnavailable

TODAY = datetime(2026, 10, 19, 15, 30, tzinfo=pytz.utc)
YESTERDAY = datetime(2026, 10, 18, 20, 0, tzinfo=pytz.utc)


def make_player(name, tag="EUW", team="blue", kills=0, deaths=0, assists=0, puuid=None,
                agent="Jett", party_id=None, headshots=0, bodyshots=0, legshots=0):
    return PlayerSnapshot(
        player_id=puuid or f"puuid-{name.lower()}",
        name=name,
        tag=tag,
        team=team,
        agent=agent,
        party_id=party_id,
        kills=kills,
        deaths=deaths,
        assists=assists,
        headshots=headshots,
        bodyshots=bodyshots,
        legshots=legshots,
    )


def make_match(match_id="m1", started_at=TODAY, roster=(), winner="blue", rounds=None,
               map_name="Ascent", mode="Competitive", blue_rounds=13, red_rounds=7):
    teams = {
        "blue": TeamResult(has_won=winner == "blue", rounds_won=blue_rounds, rounds_lost=red_rounds),
        "red": TeamResult(has_won=winner == "red", rounds_won=red_rounds, rounds_lost=blue_rounds),
    }
    if rounds is None:
        rounds = (RoundRecord(index=0, winner_side=winner, end_type="Eliminated"),)
    return MatchRecord(
        match_id=match_id,
        started_at=started_at,
        map_name=map_name,
        mode=mode,
        teams=teams,
        rounds=tuple(rounds),
        roster=tuple(roster),
    )


def make_kill(round_index, timestamp, killer, victim, weapon="Vandal"):
    return KillEvent(
        round_index=round_index,
        timestamp=timestamp,
        killer_id=f"puuid-{killer.lower()}",
        victim_id=f"puuid-{victim.lower()}",
        weapon=weapon,
    )


def make_identity(name, external_id, tag="EUW", alias=None):
    return Identity(
        linked_external_id=external_id,
        canonical_name=name,
        discriminator=tag,
        display_alias=alias,
    )


def raw_player(name, puuid, team="Blue", kills=0, deaths=0, assists=0, agent="Jett", party="p1"):
    """One roster entry in the upstream JSON shape."""
    return {
        "puuid": puuid,
        "name": name,
        "tag": "EUW",
        "team": team,
        "character": agent,
        "party_id": party,
        "currenttier_patched": "Gold 2",
        "stats": {
            "kills": kills, "deaths": deaths, "assists": assists, "score": 100,
            "headshots": 4, "bodyshots": 10, "legshots": 1,
        },
    }


def raw_match(match_id="abc", rounds=None, kills=None):
    """Two-round upstream match payload; round 1 kills arrive out of order."""
    return {
        "metadata": {
            "matchid": match_id,
            "map": "Bind",
            "mode": "Competitive",
            "game_start": 1792368000,
        },
        "players": {"all_players": [
            raw_player("Alice", "a", kills=12, deaths=8, assists=3),
            raw_player("Bob", "b", team="Red"),
        ]},
        "teams": {
            "blue": {"has_won": True, "rounds_won": 13, "rounds_lost": 9},
            "red": {"has_won": False, "rounds_won": 9, "rounds_lost": 13},
        },
        "rounds": rounds if rounds is not None else [
            {"winning_team": "Blue", "end_type": "Eliminated"},
            {
                "winning_team": "Red",
                "end_type": "Bomb detonated",
                "plant_events": {
                    "plant_location": {"x": 1, "y": 2},
                    "plant_site": "A",
                    "planted_by": {"puuid": "b"},
                },
            },
        ],
        "kills": kills if kills is not None else [
            {"round": 0, "kill_time_in_round": 900, "killer_puuid": "a", "victim_puuid": "b",
             "damage_weapon_name": "Vandal"},
            {"round": 0, "kill_time_in_round": 300, "killer_puuid": "b", "victim_puuid": "a",
             "damage_weapon_name": None},
            {"round": 1, "kill_time_in_round": 100, "killer_puuid": "a", "victim_puuid": "b",
             "damage_weapon_name": "Ultimate"},
        ],
    }


class MemorySnapshotStore(SnapshotStore):
    """Stores the encoded form so every load returns an independent copy."""

    def __init__(self, snapshot=None):
        self.raw = encode_snapshot(snapshot) if snapshot is not None else None
        self.saves = 0

    async def load(self):
        if self.raw is None:
            return LeaderboardSnapshot()
        snapshot, _ = decode_snapshot(self.raw, "memory")
        return snapshot

    async def save(self, snapshot):
        self.raw = encode_snapshot(snapshot)
        self.saves += 1

    def current(self):
        return decode_snapshot(self.raw, "memory")[0]


class FakeIdentityService:
    def __init__(self, identities):
        self.identities = list(identities)
        self.recorded = {}

    async def list_identities(self):
        return list(self.identities)

    async def record_player_id(self, external_id, player_id):
        self.recorded[str(external_id)] = player_id
        self.identities = [
            replace(i, player_id=player_id) if i.linked_external_id == str(external_id) else i
            for i in self.identities
        ]
        return True


class FakeFetcher:
    """Serves per-identity match windows; a key mapped to an exception fails."""

    def __init__(self, windows):
        self.windows = windows
        self.requested = []

    async def fetch_windows(self, identities, size):
        results = []
        for identity in identities:
            self.requested.append(identity.key)
            window = self.windows.get(identity.key, [])
            if isinstance(window, Exception):
                results.append(FetchResult(identity.key, error=window))
            else:
                results.append(FetchResult(identity.key, matches=tuple(window[:size])))
        return results


class FakeGateway(TenantGateway):
    """Tenants keyed by id with a member set; deliveries are recorded."""

    def __init__(self, members=None, unreachable=(), failing=()):
        self.members = members or {}
        self.unreachable = set(unreachable)
        self.failing = set(failing)
        self.delivered = {}

    async def resolve(self, tenant_id, destination):
        if tenant_id in self.unreachable:
            raise TenantDestinationUnreachable(tenant_id, destination, "channel not found")
        members = self.members.get(tenant_id, set())

        async def membership_check(external_id):
            return external_id in members

        async def deliver(view):
            if tenant_id in self.failing:
                raise RuntimeError("delivery exploded")
            self.delivered.setdefault(tenant_id, []).append(view)

        return TenantConfig(tenant_id, destination, membership_check, deliver, name=f"Guild {tenant_id}")


def upstream_down(key):
    return UpstreamUnavailable(key, "HTTP 503")


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'tracker.db'}"


@pytest.fixture
def make_database(database_url):
    """Factory returning an initialized Database; call inside the test's event loop."""
    async def factory():
        db = Database(database_url)
        await db.initialize()
        return db
    return factory
