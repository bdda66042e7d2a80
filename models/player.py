"""
Player model for registered padel players.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Float, String
from sqlalchemy.orm import Mapped, mapped_column

from engine.bracket import Player as EnginePlayer
from models.base import Base


class Player(Base):
    """
    A registered player.

    The rating seeds Mexicano round 1 and breaks GameScore ties; tournaments
    copy the player into their own roster when they are created.
    """
    __tablename__ = "players"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=lambda: uuid.uuid4().hex)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    rating: Mapped[float] = mapped_column(Float, default=0.0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(timezone.utc)
    )

    def __repr__(self) -> str:
        return f"<Player(id={self.id}, name='{self.name}', rating={self.rating})>"

    def to_engine_player(self) -> EnginePlayer:
        return EnginePlayer(id=self.id, name=self.name, rating=self.rating)
