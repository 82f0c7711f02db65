"""
Leaderboard snapshot persistence.

The engine only sees the ``load()`` / ``save(snapshot)`` pair; the backing
store is either a row in the ``bot_state`` table or a JSON file.

Both backends recognise the legacy single-server layout and upgrade it in
place exactly once:

    {"channelId": "...", "lastUpdated": "Mon Oct 19 2026",
     "dailyScores": {"Name#Tag": {"points": 3, ..., "discordId": "..."}}}

becomes

    {"dayKey": "2026-10-19", "tenants": {"default": "..."},
     "entries": {"Name#Tag": {"points": 3, ..., "linkedExternalId": "..."}}}
"""

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Tuple

from sqlalchemy import select

from valotracker.data_models.leaderboard import LeaderboardSnapshot
from valotracker.database.models import StateRecord
from valotracker.services.base import BaseService
from valotracker.utils.exceptions import PersistenceError
from valotracker.utils.logger import setup_logger
from valotracker.utils.time_utils import normalize_day_key

logger = setup_logger(__name__)

LEGACY_KEY_RENAMES = (
    ('channels', 'tenants'),
    ('lastUpdated', 'dayKey'),
    ('dailyScores', 'entries'),
)
LEGACY_TENANT_ID = 'default'


def migrate_legacy_snapshot(data: Dict[str, Any]) -> Tuple[Dict[str, Any], bool]:
    """
    Upgrade a stored snapshot dict to the multi-tenant layout.

    Returns:
        (upgraded copy, whether anything changed). Running it on an already
        upgraded dict returns an equal dict and False.
    """
    data = dict(data)
    migrated = False

    for old_key, new_key in LEGACY_KEY_RENAMES:
        if old_key in data:
            value = data.pop(old_key)
            if new_key not in data:
                data[new_key] = value
            migrated = True

    tenants = dict(data.get('tenants') or {})
    if 'channelId' in data:
        legacy_destination = data.pop('channelId')
        migrated = True
        if legacy_destination:
            existing = tenants.get(LEGACY_TENANT_ID)
            if existing is None:
                tenants[LEGACY_TENANT_ID] = str(legacy_destination)
            elif existing != str(legacy_destination):
                logger.warning(
                    f"Legacy channel {legacy_destination} ignored: tenant "
                    f"'{LEGACY_TENANT_ID}' already targets {existing}"
                )
    data['tenants'] = tenants

    day_key = data.get('dayKey')
    normalized = normalize_day_key(day_key)
    if normalized != day_key:
        data['dayKey'] = normalized
        migrated = True

    entries = {}
    for key, entry in (data.get('entries') or {}).items():
        entry = dict(entry or {})
        if 'discordId' in entry:
            external_id = entry.pop('discordId')
            entry.setdefault('linkedExternalId', external_id)
            migrated = True
        entries[key] = entry
    data['entries'] = entries

    return data, migrated


def decode_snapshot(raw: str, source: str) -> Tuple[LeaderboardSnapshot, bool]:
    """
    Parse stored JSON into a snapshot, applying the legacy migration.

    Raises:
        PersistenceError: If the text is not a JSON object or its layout is
            not a snapshot
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise PersistenceError(f"load {source}", f"corrupt JSON: {e}")
    if not isinstance(data, dict):
        raise PersistenceError(f"load {source}", "stored snapshot is not an object")
    try:
        data, migrated = migrate_legacy_snapshot(data)
        return LeaderboardSnapshot.from_dict(data), migrated
    except (AttributeError, TypeError, ValueError) as e:
        raise PersistenceError(f"load {source}", f"unexpected snapshot layout: {e}")


def encode_snapshot(snapshot: LeaderboardSnapshot) -> str:
    return json.dumps(snapshot.to_dict(), indent=2)


class SnapshotStore:
    """Durable copy of the leaderboard snapshot."""

    async def load(self) -> LeaderboardSnapshot:
        """
        Read the stored snapshot (empty if nothing is stored yet).

        Raises:
            PersistenceError: If stored state is unreadable. Nothing is overwritten.
        """
        raise NotImplementedError

    async def save(self, snapshot: LeaderboardSnapshot) -> None:
        """
        Persist the snapshot.

        Raises:
            PersistenceError: If the write fails. The previous copy stays intact.
        """
        raise NotImplementedError

    async def _persist_migration(self, snapshot: LeaderboardSnapshot, source: str):
        logger.warning(f"Migrated legacy leaderboard layout in {source} to multi-tenant format")
        try:
            await self.save(snapshot)
        except PersistenceError as e:
            # Upgrade is idempotent; it will be retried on the next load
            logger.error(f"Could not persist migrated snapshot: {e}")


class JsonSnapshotStore(SnapshotStore):
    """Snapshot kept in a JSON file, replaced atomically on save."""

    def __init__(self, path):
        self.path = Path(path)

    def _read(self):
        if not self.path.exists():
            return None
        return self.path.read_text(encoding='utf-8')

    def _write(self, payload: str):
        directory = self.path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=f".{self.path.name}.", suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as handle:
                handle.write(payload)
            os.replace(tmp_path, self.path)
        except Exception:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    async def load(self) -> LeaderboardSnapshot:
        try:
            raw = await asyncio.to_thread(self._read)
        except OSError as e:
            raise PersistenceError(f"load {self.path}", str(e))
        if raw is None:
            return LeaderboardSnapshot()
        snapshot, migrated = decode_snapshot(raw, str(self.path))
        if migrated:
            await self._persist_migration(snapshot, str(self.path))
        return snapshot

    async def save(self, snapshot: LeaderboardSnapshot) -> None:
        try:
            await asyncio.to_thread(self._write, encode_snapshot(snapshot))
        except OSError as e:
            raise PersistenceError(f"save {self.path}", str(e))


class DatabaseSnapshotStore(BaseService, SnapshotStore):
    """Snapshot kept as a JSON blob in the ``bot_state`` table."""

    STATE_KEY = 'leaderboard'

    async def _read(self):
        async with self.get_session() as session:
            record = await session.get(StateRecord, self.STATE_KEY)
            return record.value if record else None

    async def _write(self, payload: str):
        async with self.get_session() as session:
            result = await session.execute(
                select(StateRecord).where(StateRecord.key == self.STATE_KEY)
            )
            record = result.scalar_one_or_none()
            if record:
                record.value = payload
            else:
                session.add(StateRecord(key=self.STATE_KEY, value=payload))

    async def load(self) -> LeaderboardSnapshot:
        try:
            raw = await self.execute_with_retry(self._read, 'leaderboard load')
        except Exception as e:
            raise PersistenceError(f"load {self.STATE_KEY}", str(e))
        if raw is None:
            return LeaderboardSnapshot()
        snapshot, migrated = decode_snapshot(raw, f"bot_state[{self.STATE_KEY}]")
        if migrated:
            await self._persist_migration(snapshot, f"bot_state[{self.STATE_KEY}]")
        return snapshot

    async def save(self, snapshot: LeaderboardSnapshot) -> None:
        payload = encode_snapshot(snapshot)
        try:
            await self.execute_with_retry(lambda: self._write(payload), 'leaderboard save')
        except Exception as e:
            raise PersistenceError(f"save {self.STATE_KEY}", str(e))
