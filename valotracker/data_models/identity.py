"""
Identity data models.

An identity ties an external (Discord) account to an upstream Name#Tag pair.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Identity:
    """A tracked player."""
    linked_external_id: str
    canonical_name: str
    discriminator: str
    display_alias: Optional[str] = None
    player_id: Optional[str] = None  # upstream puuid, once known

    @property
    def key(self) -> str:
        """Identity key used by the leaderboard snapshot (Name#Tag)."""
        return f"{self.canonical_name}#{self.discriminator}"

    @property
    def label(self) -> str:
        return self.display_alias or self.key
