import discord
from discord import app_commands
from discord.ext import commands, tasks

from valotracker.services.discord_gateway import guild_membership_check
from valotracker.services.rate_limiter import rate_limit
from valotracker.utils.embeds import build_leaderboard_embed
from valotracker.utils.error_embeds import ErrorEmbeds
from valotracker.utils.exceptions import TrackerException
from valotracker.utils.logger import setup_logger

logger = setup_logger(__name__)


class LeaderboardCog(commands.Cog):
    """Daily leaderboard scheduling and per-guild configuration."""

    def __init__(self, bot):
        self.bot = bot
        self.engine = bot.leaderboard_engine
        self.scheduler = bot.leaderboard_scheduler
        self.leaderboard_ticker.start()

    def cog_unload(self):
        """Stop background tasks when cog is unloaded"""
        self.leaderboard_ticker.cancel()
        logger.info("LeaderboardCog: ticker stopped")

    @tasks.loop(minutes=1)
    async def leaderboard_ticker(self):
        """Evaluate the leaderboard schedule once a minute"""
        try:
            started = self.scheduler.tick()
            if started:
                logger.debug(f"Scheduler started: {', '.join(started)}")
        except Exception as e:
            logger.error(f"Error in leaderboard ticker: {e}", exc_info=True)

    @leaderboard_ticker.before_loop
    async def before_leaderboard_ticker(self):
        """Wait for bot to be ready before starting the ticker"""
        await self.bot.wait_until_ready()

    @app_commands.command(name="valo-setleaderboard", description="Post the daily Valorant leaderboard in this channel")
    @app_commands.guild_only()
    @app_commands.default_permissions(administrator=True)
    @app_commands.checks.has_permissions(administrator=True)
    @rate_limit("valo-setleaderboard", limit=3, window=60)
    async def set_leaderboard(self, interaction: discord.Interaction):
        """Register this channel as the guild's leaderboard destination."""
        await interaction.response.defer(ephemeral=True)

        try:
            await self.engine.register_tenant(interaction.guild_id, interaction.channel_id)
        except TrackerException as e:
            await interaction.followup.send(embed=ErrorEmbeds.from_exception(e), ephemeral=True)
            return

        self.scheduler.trigger_tenant_refresh(interaction.guild_id)
        await interaction.followup.send(
            f"✅ Daily Leaderboard channel for **{interaction.guild.name}** set to {interaction.channel.mention}! "
            f"Updating scores for this server now...",
            ephemeral=True
        )

    @app_commands.command(name="valo-leaderboard", description="Show today's Valorant standings for this server")
    @app_commands.guild_only()
    @rate_limit("valo-leaderboard", limit=5, window=60)
    async def show_leaderboard(self, interaction: discord.Interaction):
        """Current standings from the last recompute, filtered to this guild."""
        await interaction.response.defer()

        try:
            snapshot = await self.engine.read_snapshot()
            labels = await self.engine.display_labels()
            view = await self.engine.filtered_view(
                str(interaction.guild_id),
                guild_membership_check(interaction.guild),
                snapshot,
                labels,
            )
        except TrackerException as e:
            await interaction.followup.send(embed=ErrorEmbeds.from_exception(e))
            return
        except Exception as e:
            logger.error(f"Error in leaderboard command: {e}", exc_info=True)
            await interaction.followup.send(embed=ErrorEmbeds.command_error(
                "An error occurred while fetching leaderboard data. Please try again later."
            ))
            return

        if not view.entries:
            await interaction.followup.send("No tracked players have scored in this server today.")
            return
        await interaction.followup.send(embed=build_leaderboard_embed(view, interaction.guild.name))


async def setup(bot):
    await bot.add_cog(LeaderboardCog(bot))
