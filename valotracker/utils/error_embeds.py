"""
Centralized error embeds for consistent error handling across the tracker bot.
"""

import discord

from valotracker.utils.exceptions import TrackerException


class ErrorEmbeds:
    """Centralized error embed factory for consistent error handling."""

    @staticmethod
    def from_exception(error: TrackerException) -> discord.Embed:
        """Create embed carrying a tracker exception's user-facing message."""
        return discord.Embed(
            title="Something went wrong",
            description=error.user_message,
            color=discord.Color.red()
        )

    @staticmethod
    def no_recent_matches(riot_id: str) -> discord.Embed:
        """Create embed for when a player has no recent matches."""
        return discord.Embed(
            title="No Recent Matches",
            description=f"❌ No recent matches found for **{riot_id}**.",
            color=discord.Color.orange()
        )

    @staticmethod
    def command_error(error: str) -> discord.Embed:
        """Create embed for general command errors."""
        return discord.Embed(
            title="Command Error",
            description=f"An error occurred: {error}\n\nPlease try again or contact an administrator.",
            color=discord.Color.red()
        )

    @staticmethod
    def permission_denied() -> discord.Embed:
        """Create embed for permission errors."""
        return discord.Embed(
            title="Permission Denied",
            description="You don't have permission to perform this action.",
            color=discord.Color.red()
        )
