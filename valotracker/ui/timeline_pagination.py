"""
Timeline Pagination View

Discord UI component for paging through a match timeline a few rounds at a
time. The match is fetched again on every navigation so the view never holds
more than the page it is showing.
"""

import discord

from valotracker.constants import TimelineConstants
from valotracker.services.timeline import paginate_timeline, reconstruct_timeline
from valotracker.utils.embeds import build_timeline_embed
from valotracker.utils.error_embeds import ErrorEmbeds
from valotracker.utils.exceptions import TrackerException
from valotracker.utils.logger import setup_logger

logger = setup_logger(__name__)


class TimelinePaginationView(discord.ui.View):
    """
    Previous/Next navigation over a match timeline.

    Buttons are enabled from the ``has_previous``/``has_next`` flags of the
    page currently shown.
    """

    def __init__(self, fetcher, match_id: str, page: int = 1, author_id: int = None, timeout: int = 300):
        """
        Args:
            fetcher: MatchFetcher used to reload the match
            match_id: Upstream match id
            page: 1-based page currently shown
            author_id: Only this user may navigate (None allows anyone)
            timeout: Seconds before view expires (default 5 minutes)
        """
        super().__init__(timeout=timeout)
        self.fetcher = fetcher
        self.match_id = match_id
        self.current_page = page
        self.author_id = author_id
        self.previous_button.disabled = True
        self.next_button.disabled = True

    async def render(self, page: int) -> discord.Embed:
        """
        Fetch the match and build the embed for ``page``.

        Raises:
            TrackerException: If the match cannot be fetched or reconstructed
        """
        match = await self.fetcher.fetch_match(self.match_id)
        timeline = reconstruct_timeline(match)
        timeline_page = paginate_timeline(timeline, page, TimelineConstants.PAGE_SIZE)
        self.current_page = timeline_page.page
        self.previous_button.disabled = not timeline_page.has_previous
        self.next_button.disabled = not timeline_page.has_next
        return build_timeline_embed(timeline, timeline_page)

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        if self.author_id is not None and interaction.user.id != self.author_id:
            await interaction.response.send_message(
                "Only the person who requested this timeline can navigate it.", ephemeral=True
            )
            return False
        return True

    async def _navigate(self, interaction: discord.Interaction, page: int):
        await interaction.response.defer()
        try:
            embed = await self.render(page)
        except TrackerException as e:
            logger.warning(f"Timeline navigation failed for match {self.match_id}: {e}")
            await interaction.followup.send(embed=ErrorEmbeds.from_exception(e), ephemeral=True)
            return
        await interaction.edit_original_response(embed=embed, view=self)

    @discord.ui.button(label="◀ Previous", style=discord.ButtonStyle.primary)
    async def previous_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        """Navigate to previous page"""
        await self._navigate(interaction, self.current_page - 1)

    @discord.ui.button(label="Next ▶", style=discord.ButtonStyle.primary)
    async def next_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        """Navigate to next page"""
        await self._navigate(interaction, self.current_page + 1)

    async def on_timeout(self):
        """Called when the view times out"""
        for item in self.children:
            item.disabled = True

        logger.debug("TimelinePaginationView timed out")
