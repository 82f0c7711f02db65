import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    """Bot configuration settings"""
    
    # Discord settings
    DISCORD_TOKEN = os.getenv('DISCORD_TOKEN')
    DISCORD_GUILD_ID = int(os.getenv('DISCORD_GUILD_ID', 0))
    DISCORD_GUILD_IDS = os.getenv('DISCORD_GUILD_IDS', '')  # Comma-separated for multi-guild support
    OWNER_DISCORD_ID = int(os.getenv('OWNER_DISCORD_ID', 0))
    
    # Database settings
    DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///valotracker.db')
    
    # Leaderboard state backend: "database" or "json"
    STATE_BACKEND = os.getenv('STATE_BACKEND', 'database').lower()
    LEADERBOARD_FILE = os.getenv('LEADERBOARD_FILE', 'leaderboard.json')
    
    # Bot settings
    COMMAND_PREFIX = os.getenv('COMMAND_PREFIX', '!')
    DEBUG = os.getenv('DEBUG', 'False').lower() == 'true'
    LOG_DIR = os.getenv('LOG_DIR', 'logs')
    
    # Upstream stats provider
    VALORANT_API_KEY = os.getenv('VALORANT_API_KEY')
    VALORANT_API_BASE_URL = os.getenv('VALORANT_API_BASE_URL', 'https://api.henrikdev.xyz')
    VALORANT_REGION = os.getenv('VALORANT_REGION', 'ap')
    API_TIMEOUT_SECONDS = float(os.getenv('API_TIMEOUT_SECONDS', 10))
    
    # Bulk fetch pacing against the upstream rate limit
    FETCH_DELAY_SECONDS = float(os.getenv('FETCH_DELAY_SECONDS', 1.0))
    FETCH_MAX_CONCURRENCY = int(os.getenv('FETCH_MAX_CONCURRENCY', 1))
    
    # Match windows
    LEADERBOARD_MATCH_WINDOW = 5
    PROFILE_MATCH_WINDOW = 20
    AGENT_MATCH_WINDOW = 20
    
    # Daily scoring weights
    POINTS_PER_KILL = 1
    POINTS_PER_ASSIST = 0.5
    POINTS_PER_WIN = 5
    LEADERBOARD_TOP_N = 15
    
    # Schedule
    TIMEZONE = os.getenv('TIMEZONE', 'UTC')
    DISTRIBUTION_TIME = os.getenv('DISTRIBUTION_TIME', '23:59')
    
    @classmethod
    def get_guild_ids(cls):
        """Get list of guild IDs for command syncing"""
        if cls.DISCORD_GUILD_IDS:
            try:
                return [int(guild_id.strip()) for guild_id in cls.DISCORD_GUILD_IDS.split(',') if guild_id.strip()]
            except ValueError:
                raise ValueError("DISCORD_GUILD_IDS must be comma-separated integers")
        elif cls.DISCORD_GUILD_ID:
            return [cls.DISCORD_GUILD_ID]
        else:
            # Global sync
            return []
    
    @classmethod
    def validate(cls):
        """Validate that required configuration is present"""
        if not cls.DISCORD_TOKEN:
            raise ValueError("DISCORD_TOKEN is required")
        if not cls.VALORANT_API_KEY:
            raise ValueError("VALORANT_API_KEY is required")
        if cls.STATE_BACKEND not in ('database', 'json'):
            raise ValueError("STATE_BACKEND must be 'database' or 'json'")
        if not 1 <= cls.FETCH_MAX_CONCURRENCY <= 3:
            raise ValueError("FETCH_MAX_CONCURRENCY must be between 1 and 3")
