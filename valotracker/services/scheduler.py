"""
Wall-clock scheduler for the leaderboard passes.

``tick`` is called once a minute. It is level-triggered on the clock fields:
recompute at minute 0 of every hour, distribution at one fixed HH:MM. A pass
whose trigger fires while the previous run of the same pass is still going is
skipped until its next alignment; triggers are never queued, and each pass
fires at most once per minute window even if two ticks land in it.
"""

import asyncio
from datetime import datetime
from typing import Dict, List, Optional

import pytz

from valotracker.config import Config
from valotracker.utils.logger import setup_logger
from valotracker.utils.time_utils import get_timezone, parse_clock

logger = setup_logger(__name__)

RECOMPUTE = 'recompute'
DISTRIBUTION = 'distribution'


class LeaderboardScheduler:
    """Fires engine passes from a one-minute tick."""

    def __init__(self, engine, distribution_time: Optional[str] = None, tz=None):
        self.engine = engine
        self.tz = tz or get_timezone()
        self.distribution_hour, self.distribution_minute = parse_clock(
            distribution_time or Config.DISTRIBUTION_TIME
        )
        self._passes: Dict[str, asyncio.Task] = {}
        self._last_window: Dict[str, datetime] = {}
        # Background task tracking for proper lifecycle management
        self._background_tasks: set = set()

    def _local(self, now: Optional[datetime]) -> datetime:
        now = now or datetime.now(pytz.utc)
        if now.tzinfo is None:
            now = pytz.utc.localize(now)
        return now.astimezone(self.tz)

    def recompute_due(self, now: datetime) -> bool:
        return self._local(now).minute == 0

    def distribution_due(self, now: datetime) -> bool:
        local = self._local(now)
        return local.hour == self.distribution_hour and local.minute == self.distribution_minute

    def is_running(self, name: str) -> bool:
        task = self._passes.get(name)
        return task is not None and not task.done()

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return task

    def _start_pass(self, name: str, coro_factory, window: datetime) -> bool:
        # A window is consumed on its first due tick, whether the pass starts or is skipped
        if self._last_window.get(name) == window:
            logger.debug(f"Skipping {name} trigger: window {window:%H:%M} already handled")
            return False
        self._last_window[name] = window
        if self.is_running(name):
            logger.info(f"Skipping {name} trigger: previous run still in progress")
            return False
        self._passes[name] = self._spawn(coro_factory())
        return True

    def tick(self, now: Optional[datetime] = None) -> List[str]:
        """Evaluate the clock and start any due pass. Returns the passes started."""
        local = self._local(now)
        window = local.replace(second=0, microsecond=0)
        started = []
        if self.recompute_due(local) and self._start_pass(RECOMPUTE, self.engine.run_recompute, window):
            started.append(RECOMPUTE)
        if self.distribution_due(local) and self._start_pass(DISTRIBUTION, self.engine.run_distribution, window):
            logger.info("🕛 End of day: posting leaderboard...")
            started.append(DISTRIBUTION)
        return started

    def trigger_tenant_refresh(self, tenant_id) -> asyncio.Task:
        """Ad-hoc refresh for one tenant, outside the global schedule."""
        return self._spawn(self.engine.refresh_tenant(tenant_id))

    async def wait_idle(self):
        """Wait for every outstanding pass; passes are not cancellable."""
        if self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)
