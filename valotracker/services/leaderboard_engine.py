"""
Daily leaderboard engine.

Owns the LeaderboardSnapshot. Two passes run against it:

- Recompute: reload the snapshot, reset it if the day changed, re-fetch each
  identity's recent matches through the paced fetcher and overwrite that
  identity's entry with today's totals. A failed fetch leaves the previous
  entry alone. The snapshot is saved at the end of the pass.
- Distribution: take a consistent copy of the snapshot, rank it once, then
  filter and deliver the top N per tenant. Tenants are handled concurrently
  and a failing tenant never blocks the others.

Passes are serialised on one asyncio lock, so distribution always observes a
fully written snapshot for a single day.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Set

import pytz

from valotracker.config import Config
from valotracker.data_models.identity import Identity
from valotracker.data_models.leaderboard import (
    DailyScoreEntry, LeaderboardSnapshot, TenantConfig, TenantLeaderboard
)
from valotracker.data_models.match import MatchRecord
from valotracker.services.snapshot_store import SnapshotStore
from valotracker.utils.exceptions import TenantDestinationUnreachable
from valotracker.utils.logger import setup_logger
from valotracker.utils.ranking import build_ranked_view, rank_entries
from valotracker.utils.scoring import ScoringWeights, round_half_up
from valotracker.utils.time_utils import day_key_for, get_timezone

logger = setup_logger(__name__)


class TenantGateway:
    """Turns a stored tenant id + destination into a live TenantConfig."""

    async def resolve(self, tenant_id: str, destination: str) -> TenantConfig:
        """
        Raises:
            TenantDestinationUnreachable: If the destination cannot be used
        """
        raise NotImplementedError


@dataclass
class RecomputeReport:
    day_key: str
    was_reset: bool = False
    refreshed: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


@dataclass
class DistributionReport:
    day_key: Optional[str] = None
    delivered: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


class LeaderboardEngine:
    """Recomputes and distributes the daily leaderboard."""

    def __init__(self, store: SnapshotStore, identity_service, fetcher, gateway: TenantGateway,
                 weights: Optional[ScoringWeights] = None, match_window: Optional[int] = None,
                 top_n: Optional[int] = None, tz=None,
                 clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self.identity_service = identity_service
        self.fetcher = fetcher
        self.gateway = gateway
        self.weights = weights or ScoringWeights.from_config()
        self.match_window = match_window or Config.LEADERBOARD_MATCH_WINDOW
        self.top_n = top_n or Config.LEADERBOARD_TOP_N
        self.tz = tz or get_timezone()
        self._clock = clock or (lambda: datetime.now(pytz.utc))
        self._lock = asyncio.Lock()
        self._recompute_running = False

    @property
    def is_recomputing(self) -> bool:
        return self._recompute_running

    def current_day_key(self) -> str:
        return day_key_for(self._clock(), self.tz)

    def score_identity(self, identity: Identity, matches: Iterable[MatchRecord],
                       day_key: str) -> DailyScoreEntry:
        """Fresh accumulator for one identity over the matches dated on ``day_key``."""
        points = 0.0
        wins = kills = 0
        for match in matches:
            if match.started_at is None or day_key_for(match.started_at, self.tz) != day_key:
                continue
            player = match.find_player(
                player_id=identity.player_id,
                name=identity.canonical_name,
                tag=identity.discriminator,
            )
            if player is None:
                continue
            won = match.team_won(player.team)
            points += self.weights.match_points(player.kills, player.assists, won)
            kills += player.kills
            if won:
                wins += 1
        return DailyScoreEntry(
            identity_key=identity.key,
            points=round_half_up(points),
            wins=wins,
            kills=kills,
            linked_external_id=identity.linked_external_id,
        )

    async def _remember_player_id(self, identity: Identity, matches: Iterable[MatchRecord]):
        """Store the upstream id the first time a roster names this identity."""
        if identity.player_id:
            return
        for match in matches:
            player = match.find_player(name=identity.canonical_name, tag=identity.discriminator)
            if player is not None and player.player_id:
                try:
                    await self.identity_service.record_player_id(identity.linked_external_id, player.player_id)
                except Exception as e:
                    logger.warning(f"Could not record upstream id for {identity.key}: {e}")
                return

    async def recompute(self, only_external_ids: Optional[Set[str]] = None) -> RecomputeReport:
        """
        Run one recompute pass.

        Args:
            only_external_ids: Restrict fetching to these linked accounts

        Raises:
            PersistenceError: If the snapshot cannot be loaded or saved
        """
        async with self._lock:
            self._recompute_running = True
            try:
                return await self._recompute(only_external_ids)
            finally:
                self._recompute_running = False

    async def _recompute(self, only_external_ids: Optional[Set[str]]) -> RecomputeReport:
        day_key = self.current_day_key()
        snapshot = await self.store.load()
        report = RecomputeReport(day_key=day_key)

        if snapshot.day_key != day_key:
            logger.info(f"New leaderboard day {day_key} (was {snapshot.day_key}); clearing scores")
            snapshot.reset_for_day(day_key)
            report.was_reset = True

        identities = await self.identity_service.list_identities()
        if only_external_ids is not None:
            identities = [i for i in identities if i.linked_external_id in only_external_ids]

        logger.info(f"🔄 Updating leaderboard scores for {len(identities)} identities...")
        results = await self.fetcher.fetch_windows(identities, self.match_window)

        for identity, result in zip(identities, results):
            if result.ok:
                snapshot.entries[identity.key] = self.score_identity(identity, result.matches, day_key)
                report.refreshed.append(identity.key)
                await self._remember_player_id(identity, result.matches)
            else:
                report.failed.append(identity.key)
                if identity.key not in snapshot.entries:
                    snapshot.entries[identity.key] = DailyScoreEntry(
                        identity_key=identity.key,
                        linked_external_id=identity.linked_external_id,
                    )

        await self.store.save(snapshot)
        logger.info(
            f"✅ Leaderboard updated for {day_key}: {len(report.refreshed)} refreshed, "
            f"{len(report.failed)} kept after fetch failure"
        )
        return report

    async def read_snapshot(self) -> LeaderboardSnapshot:
        """Copy of the stored snapshot, never taken mid-recompute."""
        async with self._lock:
            snapshot = await self.store.load()
        return snapshot.copy()

    async def display_labels(self) -> Dict[str, str]:
        try:
            identities = await self.identity_service.list_identities()
        except Exception as e:
            logger.warning(f"Could not load display aliases: {e}")
            return {}
        return {identity.key: identity.label for identity in identities}

    async def filtered_view(self, tenant_id: str, membership_check, snapshot: LeaderboardSnapshot,
                            labels: Optional[Dict[str, str]] = None) -> TenantLeaderboard:
        """Ranked entries whose linked account passes ``membership_check``, top N."""
        members = []
        for entry in rank_entries(snapshot.entries.values()):
            if not entry.linked_external_id:
                continue
            try:
                is_member = await membership_check(entry.linked_external_id)
            except Exception as e:
                logger.debug(f"Membership check failed for {entry.identity_key} in {tenant_id}: {e}")
                is_member = False
            if is_member:
                members.append(entry)
        return TenantLeaderboard(
            tenant_id=tenant_id,
            day_key=snapshot.day_key,
            entries=build_ranked_view(members, labels, limit=self.top_n),
            tracked_count=len(members),
        )

    async def _distribute_to(self, tenant_id: str, destination: str, snapshot: LeaderboardSnapshot,
                             labels: Dict[str, str], report: DistributionReport):
        try:
            tenant = await self.gateway.resolve(tenant_id, destination)
            view = await self.filtered_view(tenant_id, tenant.membership_check, snapshot, labels)
            if not view.entries:
                logger.info(f"No tracked players in tenant {tenant_id}; skipping")
                report.skipped.append(tenant_id)
                return
            await tenant.deliver(view)
            report.delivered.append(tenant_id)
            logger.info(f"✅ Posted leaderboard for tenant {tenant.name or tenant_id}")
        except TenantDestinationUnreachable as e:
            logger.error(f"⚠️ {e}")
            report.failed.append(tenant_id)
        except Exception as e:
            logger.error(f"❌ Error posting leaderboard to tenant {tenant_id}: {e}", exc_info=True)
            report.failed.append(tenant_id)

    async def distribute(self, only_tenant: Optional[str] = None) -> DistributionReport:
        """
        Run one distribution pass.

        Raises:
            PersistenceError: If the snapshot cannot be loaded
        """
        snapshot = await self.read_snapshot()
        report = DistributionReport(day_key=snapshot.day_key)
        tenants = {
            tenant_id: destination for tenant_id, destination in snapshot.tenants.items()
            if only_tenant is None or tenant_id == only_tenant
        }
        if not tenants:
            logger.info("⚠️ No leaderboard configured for any server.")
            return report
        if snapshot.day_key != self.current_day_key():
            logger.warning(f"Distributing a stale snapshot for {snapshot.day_key}")

        labels = await self.display_labels()
        await asyncio.gather(*(
            self._distribute_to(tenant_id, destination, snapshot, labels, report)
            for tenant_id, destination in tenants.items()
        ))
        return report

    async def register_tenant(self, tenant_id, destination) -> None:
        """
        Set the destination for a tenant and persist it.

        Raises:
            PersistenceError: If the snapshot cannot be loaded or saved
        """
        async with self._lock:
            snapshot = await self.store.load()
            snapshot.tenants[str(tenant_id)] = str(destination)
            await self.store.save(snapshot)
        logger.info(f"Leaderboard destination for tenant {tenant_id} set to {destination}")

    async def refresh_tenant(self, tenant_id) -> Optional[DistributionReport]:
        """Ad-hoc recompute for one tenant's members followed by a distribution to it alone."""
        tenant_id = str(tenant_id)
        try:
            snapshot = await self.read_snapshot()
            destination = snapshot.tenants.get(tenant_id)
            if destination is None:
                logger.warning(f"Tenant {tenant_id} has no leaderboard destination")
                return None
            tenant = await self.gateway.resolve(tenant_id, destination)
            members = set()
            for identity in await self.identity_service.list_identities():
                try:
                    if await tenant.membership_check(identity.linked_external_id):
                        members.add(identity.linked_external_id)
                except Exception as e:
                    logger.debug(f"Membership check failed for {identity.key} in {tenant_id}: {e}")
            await self.recompute(only_external_ids=members)
            return await self.distribute(only_tenant=tenant_id)
        except Exception as e:
            logger.error(f"Ad-hoc leaderboard refresh for tenant {tenant_id} failed: {e}", exc_info=True)
            return None

    async def run_recompute(self) -> Optional[RecomputeReport]:
        """Unattended recompute; errors are logged, never raised."""
        try:
            return await self.recompute()
        except Exception as e:
            logger.error(f"Leaderboard recompute failed: {e}", exc_info=True)
            return None

    async def run_distribution(self) -> Optional[DistributionReport]:
        """Unattended distribution; errors are logged, never raised."""
        try:
            return await self.distribute()
        except Exception as e:
            logger.error(f"Leaderboard distribution failed: {e}", exc_info=True)
            return None
