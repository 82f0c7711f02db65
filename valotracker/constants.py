"""
Bot-wide constants for the Valorant tracker.

Values that are not expected to change per deployment live here; anything
operators tune goes through Config instead.
"""

class TimelineConstants:
    """Constants for round-by-round match timelines."""
    
    # Rounds shown per timeline page
    PAGE_SIZE = 3
    
    # Kill feed fallback when the upstream omits the weapon
    DEFAULT_WEAPON = "Ability"
    
    # Placeholder for roster lookups that miss
    UNKNOWN_PLAYER = "Unknown"

class TeamSides:
    """Upstream team identifiers (lowercased)."""
    
    BLUE = "blue"
    RED = "red"
    ALL = (BLUE, RED)

class UIConstants:
    """Constants for Discord UI elements."""
    
    # Embed colors
    LEADERBOARD_COLOR = 0xFFD700   # Gold
    TIMELINE_COLOR = 0x2F3136      # Dark theme
    BRAND_COLOR = 0xFF4654         # Valorant red
    VICTORY_COLOR = 0x00FF00
    DEFEAT_COLOR = 0xFF0000
    
    TROPHY_THUMBNAIL = "https://img.icons8.com/3d-fluency/94/trophy.png"
    
    MEDALS = {1: "🥇", 2: "🥈", 3: "🥉"}
    
    END_TYPE_LABELS = {
        'Eliminated': '💀 Elimination',
        'Bomb detonated': '💥 Detonation',
        'Bomb defused': '🧤 Defuse',
        'Time expired': '⏱️ Time',
    }
    
    SIDE_EMOJI = {"blue": "🔵", "red": "🔴"}
