"""
Shared embed builders for the Discord tracker bot.

Keeps formatting of leaderboards, timelines and player cards in one place so
cogs, views and the tenant gateway render the same way.
"""

from datetime import datetime
from typing import Optional

import discord

from valotracker.constants import UIConstants
from valotracker.data_models.identity import Identity
from valotracker.data_models.leaderboard import TenantLeaderboard
from valotracker.data_models.profile import AgentBreakdown, MatchSummary, ProfileStats, RankSnapshot
from valotracker.data_models.timeline import MatchTimeline, TimelinePage


def format_points(points) -> str:
    return f"{points:g}" if isinstance(points, float) else str(points)


def _format_day(day_key: Optional[str]) -> str:
    if not day_key:
        return "Today"
    try:
        return datetime.strptime(day_key, "%Y-%m-%d").strftime("%d %b %Y")
    except ValueError:
        return day_key


def build_leaderboard_embed(view: TenantLeaderboard, guild_name: Optional[str] = None) -> discord.Embed:
    """Daily leaderboard card for one tenant."""
    embed = discord.Embed(
        title=f"📅 Daily Valorant Leaderboard ({_format_day(view.day_key)})",
        description="Top performers of the day! 🏆\n*Scores reset daily.*",
        color=UIConstants.LEADERBOARD_COLOR
    )
    embed.set_thumbnail(url=UIConstants.TROPHY_THUMBNAIL)
    footer = f"Tracking {view.tracked_count} players"
    if guild_name:
        footer += f" in {guild_name}"
    embed.set_footer(text=f"{footer} • Updates Hourly")

    for row in view.entries:
        medal = UIConstants.MEDALS.get(row.rank, f"#{row.rank}")
        highlight = "**" if row.rank <= 3 else ""
        embed.add_field(
            name=f"{medal} {row.label}",
            value=(
                f"🆔 `{row.identity_key}`\n"
                f"{highlight}{format_points(row.points)} Pts{highlight} ({row.wins} W • {row.kills} K)"
            ),
            inline=False
        )
    return embed


def build_timeline_embed(timeline: MatchTimeline, page: TimelinePage) -> discord.Embed:
    """One page of a round-by-round timeline."""
    blue = timeline.final_score.get("blue", 0)
    red = timeline.final_score.get("red", 0)
    embed = discord.Embed(
        title=f"📊 Match Timeline: {timeline.map_name or 'Unknown'} ({timeline.mode or 'Unknown'})",
        description=f"**Final Score**: 🔵 {blue} - 🔴 {red}\n**Page**: {page.page}/{page.total_pages}",
        color=UIConstants.TIMELINE_COLOR,
        timestamp=timeline.started_at
    )

    for round_events in page.rounds:
        emoji = UIConstants.SIDE_EMOJI.get(round_events.winner, "⚪")
        win_type = UIConstants.END_TYPE_LABELS.get(round_events.end_type, round_events.end_type)
        lines = [
            f"> **Winner**: {emoji} {round_events.winner.upper()} ({win_type})",
            f"> **Score**: 🔵 {round_events.score.blue} - 🔴 {round_events.score.red}",
        ]
        if round_events.first_blood:
            lines.append(f"🩸 **First Blood**: **{round_events.first_blood.killer}** ➝ {round_events.first_blood.victim}")
        if round_events.plant:
            lines.append(f"💣 **Plant**: **{round_events.plant.player}** @ {round_events.plant.site or '?'}")
        if round_events.defuse:
            lines.append(f"🧤 **Defuse**: **{round_events.defuse.player}**")
        if round_events.kills:
            lines.append("\n**⚔️ Kill Feed:**")
            lines.extend(f"`{k.killer}` 🔫 `{k.victim}` ({k.weapon})" for k in round_events.kills)

        embed.add_field(
            name=f"Round {round_events.round_number}",
            value="\n".join(lines)[:1024],
            inline=False
        )
    return embed


def build_profile_embed(identity: Identity, stats: ProfileStats, rank: Optional[RankSnapshot] = None) -> discord.Embed:
    """Top-category profile card."""
    embed = discord.Embed(
        title=f"Player Profile: {identity.label}",
        description=f"🆔 `{identity.key}` • last {stats.matches_considered} matches",
        color=UIConstants.BRAND_COLOR
    )
    if rank:
        embed.add_field(name="Rank", value=f"{rank.tier} ({rank.ranking_in_tier}/100 RR)", inline=True)
        if rank.image_url:
            embed.set_thumbnail(url=rank.image_url)
    embed.add_field(name="K/D", value=f"{stats.kda:.2f}", inline=True)
    embed.add_field(name="HS%", value=f"{stats.headshot_pct}%", inline=True)
    embed.add_field(name="Total Kills", value=str(stats.total_kills), inline=True)
    embed.add_field(name="Top Agent", value=str(stats.top_agent or "None"), inline=True)
    embed.add_field(name="Top Map", value=str(stats.top_map or "None"), inline=True)
    embed.add_field(name="Top Weapon", value=str(stats.top_weapon or "None"), inline=True)
    embed.add_field(name="Top Duo", value=str(stats.top_duo or "None"), inline=True)
    return embed


def build_match_summary_embed(identity: Identity, summary: MatchSummary,
                              started_at: Optional[datetime] = None) -> discord.Embed:
    embed = discord.Embed(
        title=f"Match History for {identity.key}",
        description=f"**Map**: {summary.map_name}\n**Mode**: {summary.mode}",
        color=UIConstants.VICTORY_COLOR if summary.won else UIConstants.DEFEAT_COLOR,
        timestamp=started_at
    )
    embed.add_field(name="Result", value="Victory" if summary.won else "Defeat", inline=True)
    embed.add_field(name="Score", value=f"{summary.team_score} - {summary.enemy_score}", inline=True)
    embed.add_field(name="Agent", value=summary.agent or "?", inline=True)
    embed.add_field(name="KDA", value=summary.kda_line, inline=True)
    embed.add_field(name="HS%", value=f"{summary.headshot_pct}%", inline=True)
    return embed


def build_agents_embed(identity: Identity, breakdown: AgentBreakdown) -> discord.Embed:
    embed = discord.Embed(
        title=f"Top {len(breakdown.agents)} Agents (Last {breakdown.matches_considered} Matches)",
        description=f"Agent performance for **{identity.key}**",
        color=UIConstants.BRAND_COLOR
    )
    for index, agent in enumerate(breakdown.agents, start=1):
        embed.add_field(
            name=f"#{index} {agent.agent}",
            value=f"Matches: **{agent.played}** | WR: **{agent.win_rate}%** | K/D: **{agent.kd:.2f}**",
            inline=False
        )
    return embed


def build_rank_embed(identity: Identity, rank: RankSnapshot) -> discord.Embed:
    embed = discord.Embed(
        title=f"Competitive Rank: {identity.key}",
        color=UIConstants.BRAND_COLOR
    )
    if rank.image_url:
        embed.set_thumbnail(url=rank.image_url)
    embed.add_field(name="Rank", value=rank.tier, inline=True)
    embed.add_field(name="RR", value=f"{rank.ranking_in_tier}/100", inline=True)
    embed.add_field(name="Elo", value=str(rank.elo), inline=True)
    embed.set_footer(text=f"Season: {rank.season or 'Current'}")
    return embed
