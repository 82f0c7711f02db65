"""
Rate limiting for the tracker's slash commands.

In-memory sliding windows keyed by user and command. Every on-demand command
costs at least one upstream request, so this also keeps a single user from
draining the shared API key.
"""

import asyncio
import time
from collections import defaultdict, deque
from functools import wraps
from typing import Callable, Optional

from valotracker.config import Config
from valotracker.utils.logger import setup_logger

logger = setup_logger(__name__)


class SimpleRateLimiter:
    """In-memory rate limiter for Discord commands.

    Request history lives in a defaultdict(deque) and grows with the number of
    unique user:command pairs seen since startup.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._requests = defaultdict(deque)
        self._lock = asyncio.Lock()
        self._clock = clock or time.monotonic

    async def is_allowed(self, user_id: int, command: str, limit: int, window: int) -> bool:
        """Check if user can execute command within rate limit."""
        if limit <= 0 or window <= 0:
            return False

        key = f"{user_id}:{command}"
        now = self._clock()

        async with self._lock:
            history = self._requests[key]
            while history and history[0] <= now - window:
                history.popleft()

            if len(history) < limit:
                history.append(now)
                return True

            logger.debug(f"Rate limit hit for {key}")
            return False


def rate_limit(command: str, limit: int = 1, window: int = 60):
    """Decorator for rate limiting Discord commands."""
    def decorator(func):
        @wraps(func)
        async def wrapper(self, interaction, *args, **kwargs):
            # Bot owner bypasses rate limits
            if Config.OWNER_DISCORD_ID and interaction.user.id == Config.OWNER_DISCORD_ID:
                return await func(self, interaction, *args, **kwargs)

            if not await self.bot.rate_limiter.is_allowed(interaction.user.id, command, limit, window):
                await interaction.response.send_message(
                    f"⏰ Rate limit exceeded. Please wait before using `/{command}` again.",
                    ephemeral=True
                )
                return

            return await func(self, interaction, *args, **kwargs)
        return wrapper
    return decorator
