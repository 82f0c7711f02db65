from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()

class LinkedAccount(Base):
    """Identity map: one external (Discord) account linked to one Riot ID."""
    __tablename__ = 'linked_accounts'
    
    id = Column(Integer, primary_key=True)
    external_id = Column(String(32), nullable=False, unique=True, index=True)
    riot_name = Column(String(64), nullable=False)
    riot_tag = Column(String(16), nullable=False)
    display_alias = Column(String(64), nullable=True, index=True)
    player_id = Column(String(80), nullable=True)  # upstream puuid, once known
    
    # Metadata
    linked_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
    
    @property
    def riot_id(self) -> str:
        return f"{self.riot_name}#{self.riot_tag}"
    
    def __repr__(self):
        return f"<LinkedAccount(external_id='{self.external_id}', riot_id='{self.riot_id}')>"

class StateRecord(Base):
    """JSON state blobs keyed by name (e.g. the leaderboard snapshot)."""
    __tablename__ = 'bot_state'
    
    key = Column(String(64), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
    
    def __repr__(self):
        return f"<StateRecord(key='{self.key}')>"
