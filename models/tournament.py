"""
Tournament model for bracket persistence.

The whole bracket lives in a single JSON document per tournament, next to the
tournament's roster, so one write always stores a consistent snapshot.
"""

import enum
import json
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Enum as SAEnum, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base


class TournamentStatus(enum.Enum):
    """Tournament lifecycle."""
    CREATED = "created"
    ONGOING = "ongoing"
    COMPLETED = "completed"


class Tournament(Base):
    """
    A Mexicano or Americano tournament.

    State persistence (JSON):
    - bracket_json: the bracket document (format, currentRound, courts/rounds,
      completedMatches, standings, ...)
    - players_json: the roster, [{id, name, rating, group?, groupOrder?}]
    """
    __tablename__ = "tournaments"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=lambda: uuid.uuid4().hex)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    format: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[TournamentStatus] = mapped_column(
        SAEnum(TournamentStatus),
        default=TournamentStatus.CREATED
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    bracket_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    players_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Tournament(id={self.id}, name='{self.name}', format={self.format})>"

    # JSON property helpers
    @property
    def bracket(self) -> Optional[dict]:
        """Get the bracket document."""
        if self.bracket_json:
            return json.loads(self.bracket_json)
        return None

    @bracket.setter
    def bracket(self, value: Optional[dict]) -> None:
        """Set the bracket document."""
        self.bracket_json = json.dumps(value) if value is not None else None

    @property
    def players(self) -> list[dict]:
        """Get the roster."""
        if self.players_json:
            return json.loads(self.players_json)
        return []

    @players.setter
    def players(self, value: list[dict]) -> None:
        """Set the roster."""
        self.players_json = json.dumps(value)
