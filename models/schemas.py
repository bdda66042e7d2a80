"""
Pydantic schemas for data validation.

Input coming from the UI (new players, tournament setup, score edits) is
checked here before it reaches the engine.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator

from config import TOURNAMENT_SETTINGS
from engine.bracket import BracketFormat, Player as EnginePlayer


# ============ Player Schemas ============

class PlayerCreate(BaseModel):
    """Schema for registering a new player."""
    name: str = Field(..., min_length=1, max_length=200)
    rating: float = Field(default=0.0, ge=0)

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip()


class PlayerResponse(BaseModel):
    """Schema for player response."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    rating: float
    created_at: datetime


# ============ Tournament Schemas ============

class RosterPlayer(BaseModel):
    """A player entered into a tournament."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    rating: float = 0.0
    group: Optional[str] = None
    group_order: Optional[StrictInt] = Field(None, ge=0, alias="groupOrder")

    @field_validator("group")
    @classmethod
    def known_group(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in TOURNAMENT_SETTINGS.group_colors:
            raise ValueError(f"Group must be one of {TOURNAMENT_SETTINGS.group_colors}")
        return v

    def to_engine_player(self) -> EnginePlayer:
        return EnginePlayer(
            id=self.id,
            name=self.name,
            rating=self.rating,
            group=self.group,
            group_order=self.group_order,
        )


class TournamentCreate(BaseModel):
    """Schema for creating a new tournament."""
    name: str = Field(..., min_length=1, max_length=200)
    format: BracketFormat
    players: list[RosterPlayer] = Field(..., min_length=TOURNAMENT_SETTINGS.players_per_match)

    @field_validator("players")
    @classmethod
    def unique_ids(cls, v: list[RosterPlayer]) -> list[RosterPlayer]:
        ids = [p.id for p in v]
        if len(ids) != len(set(ids)):
            raise ValueError("Player ids must be unique")
        return v


class TournamentResponse(BaseModel):
    """Schema for tournament response."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    format: str
    created_at: datetime
    completed_at: Optional[datetime]


# ============ Score Edit Schema ============

class ScoreEdit(BaseModel):
    """
    A single score edit from the UI.

    Range checks need the opposing score and are left to the engine.
    """
    match_id: str = Field(..., min_length=1)
    side: Literal["score1", "score2"]
    score: Optional[StrictInt] = None
