"""Valorant match analytics and daily leaderboard bot for Discord."""

__version__ = "1.0.0"
