"""
Services package for the Valorant tracker.

Upstream fetching, stat aggregation, timeline reconstruction and the daily
leaderboard engine with its persistence and scheduling.
"""

from .base import BaseService
from .rate_limiter import SimpleRateLimiter

__all__ = ['BaseService', 'SimpleRateLimiter']
