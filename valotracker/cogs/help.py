"""
Help Cog

/valo-help shows the command guide as an embed with one button per section.
Scoring and schedule values are read from Config so the guide matches the
running deployment.
"""

import discord
from discord import app_commands
from discord.ext import commands

from valotracker.config import Config
from valotracker.constants import UIConstants
from valotracker.utils.embeds import format_points
from valotracker.utils.logger import setup_logger

logger = setup_logger(__name__)

HELP_CONTENT = {
    "setup": {
        "label": "⚙️ Setup",
        "title": "⚙️ Setup",
        "description": (
            "`/valo-link Name#Tag` - Link your Discord account to your Riot ID\n"
            "`/valo-nickname Name#Tag nickname` - Set the name shown on the leaderboard\n\n"
            "Commands that take a user accept a mention, a Discord ID, a nickname "
            "or a Riot ID. Leave it empty to look yourself up."
        ),
    },
    "leaderboard": {
        "label": "🏆 Leaderboard",
        "title": "🏆 Daily Leaderboard",
        "description": (
            "Earn points automatically by playing!\n"
            "**Win**: +{per_win} Pts | **Kill**: +{per_kill} Pt | **Assist**: +{per_assist} Pt\n\n"
            "Scores update every hour and the top {top_n} are posted at "
            "**{distribution_time} {timezone}**. Scores reset when the day changes.\n\n"
            "`/valo-leaderboard` - Today's standings for this server\n"
            "`/valo-setleaderboard` - Post the daily leaderboard in this channel (admins)"
        ),
    },
    "stats": {
        "label": "📊 Stats",
        "title": "📊 Stats & Analysis",
        "description": (
            "`/lmatch` - Last match summary\n"
            "`/valo-profile` - Top agent, map, weapon and duo over {profile_window} matches\n"
            "`/valo-agents` - Most played agents\n"
            "`/valo-rank` - Current rank, RR and Elo\n"
            "`/valo-timeline` - Round-by-round breakdown of the last match"
        ),
    },
}

DEFAULT_SECTION = "setup"


def build_help_embed(section_key: str, requester_name: str) -> discord.Embed:
    """Embed for one help section, filled in from the current Config."""
    section = HELP_CONTENT[section_key]
    format_args = {
        "per_win": format_points(Config.POINTS_PER_WIN),
        "per_kill": format_points(Config.POINTS_PER_KILL),
        "per_assist": format_points(Config.POINTS_PER_ASSIST),
        "top_n": Config.LEADERBOARD_TOP_N,
        "distribution_time": Config.DISTRIBUTION_TIME,
        "timezone": Config.TIMEZONE,
        "profile_window": Config.PROFILE_MATCH_WINDOW,
    }
    embed = discord.Embed(
        title=section["title"],
        description=section["description"].format(**format_args),
        color=UIConstants.BRAND_COLOR
    )
    embed.set_footer(text=f"Requested by {requester_name} • Use buttons to navigate")
    return embed


class HelpView(discord.ui.View):
    """Section buttons for the help embed"""

    def __init__(self, author: discord.abc.User, timeout: float = 180.0):
        super().__init__(timeout=timeout)
        self.author = author
        self.current_section = DEFAULT_SECTION
        for key, section in HELP_CONTENT.items():
            button = discord.ui.Button(
                label=section["label"],
                style=discord.ButtonStyle.secondary,
                custom_id=f"valo-help:{key}",
                disabled=(key == DEFAULT_SECTION),
            )
            button.callback = self._make_callback(key)
            self.add_item(button)

    def _make_callback(self, section_key: str):
        async def callback(interaction: discord.Interaction):
            await self._show(interaction, section_key)
        return callback

    async def _show(self, interaction: discord.Interaction, section_key: str):
        self.current_section = section_key
        for child in self.children:
            if isinstance(child, discord.ui.Button):
                child.disabled = child.custom_id == f"valo-help:{section_key}"

        embed = build_help_embed(section_key, self.author.display_name)
        try:
            await interaction.response.edit_message(embed=embed, view=self)
        except discord.NotFound:
            # Message was deleted
            pass

    async def on_timeout(self):
        for child in self.children:
            if isinstance(child, discord.ui.Button):
                child.disabled = True


class HelpCog(commands.Cog):
    """Command guide"""

    def __init__(self, bot):
        self.bot = bot

    @app_commands.command(name="valo-help", description="Show the Valorant tracker command guide")
    async def valo_help(self, interaction: discord.Interaction):
        view = HelpView(interaction.user)
        embed = build_help_embed(DEFAULT_SECTION, interaction.user.display_name)
        await interaction.response.send_message(embed=embed, view=view, ephemeral=True)
        logger.debug(f"Help shown to {interaction.user}")


async def setup(bot):
    await bot.add_cog(HelpCog(bot))
