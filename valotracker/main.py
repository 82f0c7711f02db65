import asyncio
import logging
import traceback
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from valotracker.config import Config
from valotracker.database.database import Database
from valotracker.services.discord_gateway import DiscordTenantGateway
from valotracker.services.identity_service import IdentityService
from valotracker.services.leaderboard_engine import LeaderboardEngine
from valotracker.services.match_fetcher import MatchFetcher
from valotracker.services.rate_limiter import SimpleRateLimiter
from valotracker.services.scheduler import LeaderboardScheduler
from valotracker.services.snapshot_store import DatabaseSnapshotStore, JsonSnapshotStore, SnapshotStore
from valotracker.utils.error_embeds import ErrorEmbeds
from valotracker.utils.logger import setup_logger


class ValoTrackerBot(commands.Bot):
    def __init__(self):
        intents = discord.Intents.default()
        intents.guilds = True
        intents.members = True

        super().__init__(
            command_prefix=Config.COMMAND_PREFIX,
            intents=intents,
            help_command=None
        )

        # Attach app command error handler
        self.tree.on_error = self.on_app_command_error

        self.db: Optional[Database] = None
        self.rate_limiter = SimpleRateLimiter()
        self.identity_service: Optional[IdentityService] = None
        self.match_fetcher: Optional[MatchFetcher] = None
        self.leaderboard_engine: Optional[LeaderboardEngine] = None
        self.leaderboard_scheduler: Optional[LeaderboardScheduler] = None
        self.logger = setup_logger(__name__)

    def _build_snapshot_store(self) -> SnapshotStore:
        if Config.STATE_BACKEND == 'json':
            self.logger.info(f"Leaderboard state stored in {Config.LEADERBOARD_FILE}")
            return JsonSnapshotStore(Config.LEADERBOARD_FILE)
        return DatabaseSnapshotStore(self.db.session_factory)

    async def setup_hook(self):
        """Called when the bot is starting up"""
        self.logger.info("Setting up Valorant tracker...")

        # Initialize database
        self.db = Database()
        await self.db.initialize()

        self.identity_service = IdentityService(self.db.session_factory)
        self.match_fetcher = MatchFetcher()
        self.leaderboard_engine = LeaderboardEngine(
            store=self._build_snapshot_store(),
            identity_service=self.identity_service,
            fetcher=self.match_fetcher,
            gateway=DiscordTenantGateway(self),
        )
        self.leaderboard_scheduler = LeaderboardScheduler(self.leaderboard_engine)

        # Load cogs
        await self.load_cogs()

        # Sync slash commands
        await self._sync_commands()

        self.logger.info("Valorant tracker setup complete!")

    async def load_cogs(self):
        """Load all cogs"""
        cogs_to_load = [
            'valotracker.cogs.tracker',
            'valotracker.cogs.leaderboard',
            'valotracker.cogs.help',
        ]

        for cog in cogs_to_load:
            try:
                await self.load_extension(cog)
                self.logger.info(f"Loaded cog: {cog}")
            except Exception as e:
                self.logger.error(f"Failed to load cog {cog}: {e}", exc_info=True)

    async def _sync_commands(self):
        """Sync slash commands with Discord"""
        if not self.tree.get_commands():
            self.logger.warning("No application commands found to sync. Check for cog loading errors.")
            return

        try:
            guild_ids = Config.get_guild_ids()

            if guild_ids:
                # Guild-specific sync (instant updates, works in specified servers)
                self.logger.info(f"Attempting to sync commands to {len(guild_ids)} guild(s): {guild_ids}...")

                total_synced = 0
                for guild_id in guild_ids:
                    try:
                        guild = discord.Object(id=guild_id)
                        self.tree.copy_global_to(guild=guild)
                        synced = await self.tree.sync(guild=guild)
                        self.logger.info(f"Successfully synced {len(synced)} command(s) to guild {guild_id}")
                        total_synced += len(synced)
                    except discord.errors.Forbidden:
                        self.logger.error(f"Permission error syncing to guild {guild_id}. Ensure the bot has the 'application.commands' scope and is in the guild.", exc_info=True)
                    except discord.errors.HTTPException as e:
                        self.logger.error(f"HTTP error syncing to guild {guild_id}. Status: {e.status}, Response: {e.text}", exc_info=True)

                self.logger.info(f"Multi-guild sync complete: {total_synced} total command instances deployed")
            else:
                # Global sync (can take up to 1 hour, works everywhere)
                self.logger.info("Attempting to sync commands globally... (Note: This can take up to an hour to propagate)")
                synced = await self.tree.sync()
                self.logger.info(f"Successfully synced {len(synced)} command(s) globally")
                for cmd in synced:
                    self.logger.info(f"  - {cmd.name}: {cmd.description}")
        except Exception as e:
            self.logger.error(f"Failed to sync commands: {e}", exc_info=True)

    async def on_ready(self):
        """Called when the bot is ready"""
        self.logger.info(f'{self.user} has connected to Discord!')
        self.logger.info(f'Bot is in {len(self.guilds)} guilds')

        await self.change_presence(
            activity=discord.Game(name="Valorant | /valo-profile")
        )

    async def on_app_command_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError):
        """Global error handler for slash commands"""
        command_name = interaction.command.name if interaction.command else 'Unknown'
        if isinstance(error, app_commands.CheckFailure):
            self.logger.info(f"Permission denied for command '{command_name}' by user {interaction.user}")
            embed = ErrorEmbeds.permission_denied()
        else:
            self.logger.error(f"Error in app command '{command_name}': {error}", exc_info=True)
            embed = ErrorEmbeds.command_error("An unexpected error occurred while processing your command.")

        try:
            if interaction.response.is_done():
                await interaction.followup.send(embed=embed, ephemeral=True)
            else:
                await interaction.response.send_message(embed=embed, ephemeral=True)
        except Exception as e:
            self.logger.error(f"Failed to send error response: {e}")

    async def close(self):
        """Cleanup when bot is shutting down"""
        self.logger.info("Shutting down Valorant tracker...")

        # Passes are not cancellable; let in-flight ones finish their save
        if self.leaderboard_scheduler:
            await self.leaderboard_scheduler.wait_idle()

        if self.match_fetcher:
            await self.match_fetcher.close()

        if self.db:
            await self.db.close()

        await super().close()


async def main():
    """Main entry point"""
    Config.validate()

    bot = ValoTrackerBot()

    try:
        await bot.start(Config.DISCORD_TOKEN)
    except KeyboardInterrupt:
        pass
    except Exception as e:
        logging.error(f"Fatal error: {e}")
        traceback.print_exc()
    finally:
        await bot.close()


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
