"""
Padel Ladder Database Models

SQLAlchemy ORM models and pydantic schemas for tournament persistence.
"""

from models.base import (
    Base,
    get_engine,
    get_session,
    get_session_factory,
    init_db,
    make_engine,
    make_session_factory,
)
from models.player import Player
from models.tournament import Tournament, TournamentStatus

__all__ = [
    "Base",
    "get_engine",
    "get_session",
    "get_session_factory",
    "init_db",
    "make_engine",
    "make_session_factory",
    "Player",
    "Tournament",
    "TournamentStatus",
]
