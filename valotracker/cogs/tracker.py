"""
Tracker Cog

On-demand Valorant commands: account linking, last match, profile, agents,
rank and the round-by-round timeline. Every command resolves its target
through the identity registry, fetches fresh upstream data and reports
upstream failures to the user instead of an empty result.
"""

from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from valotracker.config import Config
from valotracker.data_models.identity import Identity
from valotracker.services.profile_stats import (
    aggregate_profile_stats, summarize_agents, summarize_last_match
)
from valotracker.services.rate_limiter import rate_limit
from valotracker.ui.timeline_pagination import TimelinePaginationView
from valotracker.utils.embeds import (
    build_agents_embed, build_match_summary_embed, build_profile_embed, build_rank_embed
)
from valotracker.utils.error_embeds import ErrorEmbeds
from valotracker.utils.exceptions import TrackerException
from valotracker.utils.logger import setup_logger

logger = setup_logger(__name__)

USER_ARGUMENT = "Mention, Discord ID, nickname or Riot ID (defaults to you)"


class TrackerCog(commands.Cog):
    """Per-player Valorant commands."""

    def __init__(self, bot):
        self.bot = bot
        self.identity_service = bot.identity_service
        self.fetcher = bot.match_fetcher

    async def _resolve(self, interaction: discord.Interaction, user: Optional[str]) -> Identity:
        return await self.identity_service.resolve(user, interaction.user.id)

    async def _report(self, interaction: discord.Interaction, command: str, error: Exception):
        if isinstance(error, TrackerException):
            logger.info(f"/{command} for {interaction.user} failed: {error}")
            embed = ErrorEmbeds.from_exception(error)
        else:
            logger.error(f"Error in /{command}: {error}", exc_info=True)
            embed = ErrorEmbeds.command_error("Please try again later.")
        await interaction.followup.send(embed=embed, ephemeral=True)

    @app_commands.command(name="valo-link", description="Link your Discord account to a Riot ID")
    @app_commands.describe(riot_id="Your Riot ID, e.g. Name#Tag")
    @rate_limit("valo-link", limit=3, window=60)
    async def link(self, interaction: discord.Interaction, riot_id: str):
        await interaction.response.defer(ephemeral=True)
        try:
            identity = await self.identity_service.link_identity(interaction.user.id, riot_id)
        except Exception as e:
            await self._report(interaction, "valo-link", e)
            return
        await interaction.followup.send(f"✅ Linked to **{identity.key}**", ephemeral=True)

    @app_commands.command(name="valo-nickname", description="Set a display nickname for a linked Riot ID")
    @app_commands.describe(riot_id="Linked Riot ID, e.g. Name#Tag", nickname="Nickname shown on the leaderboard")
    @rate_limit("valo-nickname", limit=3, window=60)
    async def nickname(self, interaction: discord.Interaction, riot_id: str, nickname: str):
        await interaction.response.defer(ephemeral=True)
        try:
            identity = await self.identity_service.set_alias(riot_id, nickname)
        except Exception as e:
            await self._report(interaction, "valo-nickname", e)
            return
        await interaction.followup.send(
            f"✅ Nickname for **{identity.key}** set to **{identity.display_alias}**", ephemeral=True
        )

    @app_commands.command(name="lmatch", description="Show the most recent Valorant match")
    @app_commands.describe(user=USER_ARGUMENT)
    @rate_limit("lmatch", limit=5, window=60)
    async def last_match(self, interaction: discord.Interaction, user: Optional[str] = None):
        await interaction.response.defer()
        try:
            identity = await self._resolve(interaction, user)
            matches = await self.fetcher.fetch_recent(identity, 1)
            summary = summarize_last_match(
                matches[0], identity.canonical_name, identity.discriminator, identity.player_id
            ) if matches else None
        except Exception as e:
            await self._report(interaction, "lmatch", e)
            return

        if summary is None:
            await interaction.followup.send(embed=ErrorEmbeds.no_recent_matches(identity.key))
            return
        await interaction.followup.send(
            embed=build_match_summary_embed(identity, summary, matches[0].started_at)
        )

    @app_commands.command(name="valo-profile", description="Show top agent, map, weapon and duo over recent matches")
    @app_commands.describe(user=USER_ARGUMENT)
    @rate_limit("valo-profile", limit=3, window=60)
    async def profile(self, interaction: discord.Interaction, user: Optional[str] = None):
        await interaction.response.defer()
        try:
            identity = await self._resolve(interaction, user)
            matches = await self.fetcher.fetch_recent(identity, Config.PROFILE_MATCH_WINDOW)
            stats = aggregate_profile_stats(
                matches, identity.canonical_name, identity.discriminator, identity.player_id
            )
        except Exception as e:
            await self._report(interaction, "valo-profile", e)
            return

        if stats is None:
            await interaction.followup.send(embed=ErrorEmbeds.no_recent_matches(identity.key))
            return

        try:
            rank = await self.fetcher.fetch_mmr(identity)
        except TrackerException as e:
            logger.debug(f"No rank for {identity.key}: {e}")
            rank = None
        await interaction.followup.send(embed=build_profile_embed(identity, stats, rank))

    @app_commands.command(name="valo-agents", description="Show the most played agents over recent matches")
    @app_commands.describe(user=USER_ARGUMENT)
    @rate_limit("valo-agents", limit=3, window=60)
    async def agents(self, interaction: discord.Interaction, user: Optional[str] = None):
        await interaction.response.defer()
        try:
            identity = await self._resolve(interaction, user)
            matches = await self.fetcher.fetch_recent(identity, Config.AGENT_MATCH_WINDOW)
            breakdown = summarize_agents(
                matches, identity.canonical_name, identity.discriminator, identity.player_id
            )
        except Exception as e:
            await self._report(interaction, "valo-agents", e)
            return

        if not breakdown.agents:
            await interaction.followup.send(embed=ErrorEmbeds.no_recent_matches(identity.key))
            return
        await interaction.followup.send(embed=build_agents_embed(identity, breakdown))

    @app_commands.command(name="valo-rank", description="Show current competitive rank")
    @app_commands.describe(user=USER_ARGUMENT)
    @rate_limit("valo-rank", limit=5, window=60)
    async def rank(self, interaction: discord.Interaction, user: Optional[str] = None):
        await interaction.response.defer()
        try:
            identity = await self._resolve(interaction, user)
            snapshot = await self.fetcher.fetch_mmr(identity)
        except Exception as e:
            await self._report(interaction, "valo-rank", e)
            return
        await interaction.followup.send(embed=build_rank_embed(identity, snapshot))

    @app_commands.command(name="valo-timeline", description="Round-by-round timeline of the most recent match")
    @app_commands.describe(user=USER_ARGUMENT)
    @rate_limit("valo-timeline", limit=3, window=60)
    async def timeline(self, interaction: discord.Interaction, user: Optional[str] = None):
        await interaction.response.defer()
        try:
            identity = await self._resolve(interaction, user)
            matches = await self.fetcher.fetch_recent(identity, 1)
            if not matches:
                await interaction.followup.send(embed=ErrorEmbeds.no_recent_matches(identity.key))
                return
            view = TimelinePaginationView(self.fetcher, matches[0].match_id, author_id=interaction.user.id)
            embed = await view.render(1)
        except Exception as e:
            await self._report(interaction, "valo-timeline", e)
            return
        await interaction.followup.send(embed=embed, view=view)


async def setup(bot):
    await bot.add_cog(TrackerCog(bot))
