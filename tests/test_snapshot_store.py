"""Tests for leaderboard snapshot persistence and the legacy layout upgrade."""

import asyncio
import json

import pytest

from valotracker.data_models.leaderboard import DailyScoreEntry, LeaderboardSnapshot
from valotracker.services.snapshot_store import (
    DatabaseSnapshotStore, JsonSnapshotStore, migrate_legacy_snapshot
)
from valotracker.utils.exceptions import PersistenceError

LEGACY = {
    "channelId": "555",
    "lastUpdated": "Mon Oct 19 2026",
    "dailyScores": {
        "Alice#EUW": {"points": 14, "wins": 1, "kills": 8, "discordId": "111"},
    },
}


def sample_snapshot():
    return LeaderboardSnapshot(
        day_key="2026-10-19",
        tenants={"g1": "c1"},
        entries={"Alice#EUW": DailyScoreEntry("Alice#EUW", points=14, wins=1, kills=8, linked_external_id="111")},
    )


class TestLegacyMigration:

    def test_single_channel_becomes_default_tenant(self):
        data, migrated = migrate_legacy_snapshot(LEGACY)
        assert migrated is True
        assert data["tenants"] == {"default": "555"}
        assert data["dayKey"] == "2026-10-19"
        assert data["entries"]["Alice#EUW"]["linkedExternalId"] == "111"
        assert "channelId" not in data
        assert "discordId" not in data["entries"]["Alice#EUW"]

    def test_migration_is_idempotent(self):
        once, _ = migrate_legacy_snapshot(LEGACY)
        twice, migrated = migrate_legacy_snapshot(once)
        assert migrated is False
        assert twice == once

    def test_existing_default_tenant_wins(self):
        data, _ = migrate_legacy_snapshot({"channelId": "555", "tenants": {"default": "777"}})
        assert data["tenants"] == {"default": "777"}

    def test_legacy_channel_added_alongside_other_tenants(self):
        data, _ = migrate_legacy_snapshot({"channelId": "555", "channels": {"g1": "c1"}})
        assert data["tenants"] == {"g1": "c1", "default": "555"}

    def test_current_layout_untouched(self):
        current = sample_snapshot().to_dict()
        data, migrated = migrate_legacy_snapshot(current)
        assert migrated is False
        assert data == current

    def test_input_not_mutated(self):
        original = json.loads(json.dumps(LEGACY))
        migrate_legacy_snapshot(original)
        assert original == LEGACY


class TestJsonSnapshotStore:

    def test_missing_file_loads_empty(self, tmp_path):
        snapshot = asyncio.run(JsonSnapshotStore(tmp_path / "state.json").load())
        assert snapshot.day_key is None
        assert snapshot.entries == {}

    def test_save_then_load(self, tmp_path):
        store = JsonSnapshotStore(tmp_path / "nested" / "state.json")
        asyncio.run(store.save(sample_snapshot()))
        loaded = asyncio.run(store.load())
        assert loaded == sample_snapshot()
        # No temp files left behind
        assert [p.name for p in (tmp_path / "nested").iterdir()] == ["state.json"]

    def test_corrupt_file_raises_and_is_left_alone(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(PersistenceError):
            asyncio.run(JsonSnapshotStore(path).load())
        assert path.read_text(encoding="utf-8") == "{not json"

    def test_non_object_raises(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(PersistenceError):
            asyncio.run(JsonSnapshotStore(path).load())

    @pytest.mark.parametrize("stored", [
        {"entries": {"Alice#EUW": 5}},
        {"entries": ["Alice#EUW"]},
        {"tenants": ["x"]},
        {"entries": {"Alice#EUW": {"points": "lots"}}},
    ])
    def test_bad_layout_raises_persistence_error(self, tmp_path, stored):
        path = tmp_path / "state.json"
        path.write_text(json.dumps(stored), encoding="utf-8")
        with pytest.raises(PersistenceError):
            asyncio.run(JsonSnapshotStore(path).load())
        assert json.loads(path.read_text(encoding="utf-8")) == stored

    def test_non_string_day_key_loads_as_stale(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text(json.dumps({"dayKey": 20261019, "tenants": {"g1": "c1"}}), encoding="utf-8")
        snapshot = asyncio.run(JsonSnapshotStore(path).load())
        assert snapshot.day_key is None
        assert snapshot.tenants == {"g1": "c1"}

    def test_legacy_file_is_upgraded_once(self, tmp_path):
        path = tmp_path / "leaderboard.json"
        path.write_text(json.dumps(LEGACY), encoding="utf-8")
        snapshot = asyncio.run(JsonSnapshotStore(path).load())
        assert snapshot.tenants == {"default": "555"}
        assert snapshot.entries["Alice#EUW"].linked_external_id == "111"
        on_disk = json.loads(path.read_text(encoding="utf-8"))
        assert "channelId" not in on_disk
        assert on_disk["tenants"] == {"default": "555"}


class TestDatabaseSnapshotStore:

    def test_round_trip_and_overwrite(self, make_database):
        async def scenario():
            db = await make_database()
            try:
                store = DatabaseSnapshotStore(db.session_factory)
                empty = await store.load()
                await store.save(sample_snapshot())
                updated = sample_snapshot()
                updated.tenants["g2"] = "c2"
                await store.save(updated)
                return empty, await store.load()
            finally:
                await db.close()

        empty, loaded = asyncio.run(scenario())
        assert empty == LeaderboardSnapshot()
        assert loaded.tenants == {"g1": "c1", "g2": "c2"}
        assert loaded.entries["Alice#EUW"].points == 14

    def test_legacy_row_is_upgraded(self, make_database):
        from valotracker.database.models import StateRecord

        async def scenario():
            db = await make_database()
            try:
                store = DatabaseSnapshotStore(db.session_factory)
                async with store.get_session() as session:
                    session.add(StateRecord(key="leaderboard", value=json.dumps(LEGACY)))
                first = await store.load()
                async with store.get_session() as session:
                    raw = (await session.get(StateRecord, "leaderboard")).value
                return first, json.loads(raw)
            finally:
                await db.close()

        snapshot, stored = asyncio.run(scenario())
        assert snapshot.tenants == {"default": "555"}
        assert stored["tenants"] == {"default": "555"}
        assert "dailyScores" not in stored

    def test_corrupt_row_raises(self, make_database):
        from valotracker.database.models import StateRecord

        async def scenario():
            db = await make_database()
            try:
                store = DatabaseSnapshotStore(db.session_factory)
                async with store.get_session() as session:
                    session.add(StateRecord(key="leaderboard", value="garbage"))
                await store.load()
            finally:
                await db.close()

        with pytest.raises(PersistenceError):
            asyncio.run(scenario())
