"""
Discord binding for leaderboard tenants.

A tenant is a guild; its destination is a text channel id. Membership means
the linked account is a member of that guild.
"""

import discord

from valotracker.data_models.leaderboard import TenantConfig, TenantLeaderboard
from valotracker.services.leaderboard_engine import TenantGateway
from valotracker.utils.embeds import build_leaderboard_embed
from valotracker.utils.exceptions import TenantDestinationUnreachable
from valotracker.utils.logger import setup_logger

logger = setup_logger(__name__)


def guild_membership_check(guild: discord.Guild):
    """Membership predicate over one guild, by linked account id."""
    async def membership_check(external_id: str) -> bool:
        try:
            member_id = int(external_id)
        except (TypeError, ValueError):
            return False
        if guild.get_member(member_id) is not None:
            return True
        try:
            await guild.fetch_member(member_id)
            return True
        except discord.NotFound:
            return False
    return membership_check


class DiscordTenantGateway(TenantGateway):
    """Resolves guild/channel pairs against a live bot connection."""

    def __init__(self, bot: discord.Client):
        self.bot = bot

    async def _get_channel(self, tenant_id: str, destination: str):
        try:
            channel_id = int(destination)
        except (TypeError, ValueError):
            raise TenantDestinationUnreachable(tenant_id, destination, "destination is not a channel id")

        channel = self.bot.get_channel(channel_id)
        if channel is None:
            try:
                channel = await self.bot.fetch_channel(channel_id)
            except discord.NotFound:
                raise TenantDestinationUnreachable(tenant_id, destination, "channel not found")
            except discord.Forbidden:
                raise TenantDestinationUnreachable(tenant_id, destination, "missing access to channel")
            except discord.HTTPException as e:
                raise TenantDestinationUnreachable(tenant_id, destination, str(e))

        if getattr(channel, 'guild', None) is None or not hasattr(channel, 'send'):
            raise TenantDestinationUnreachable(tenant_id, destination, "not a guild text channel")
        return channel

    async def resolve(self, tenant_id: str, destination: str) -> TenantConfig:
        channel = await self._get_channel(tenant_id, destination)
        guild = channel.guild

        async def deliver(view: TenantLeaderboard) -> None:
            try:
                await channel.send(embed=build_leaderboard_embed(view, guild.name))
            except discord.Forbidden:
                raise TenantDestinationUnreachable(tenant_id, destination, "missing permission to post")
            except discord.HTTPException as e:
                raise TenantDestinationUnreachable(tenant_id, destination, str(e))

        return TenantConfig(
            tenant_id=tenant_id,
            destination=destination,
            membership_check=guild_membership_check(guild),
            deliver=deliver,
            name=guild.name,
        )
