"""
Padel Ladder Tournament Engine

Round generation, scoring and standings for the Mexicano and Americano
formats. This package contains no GUI or database dependencies.
"""

from engine.bracket import (
    AmericanoBracket,
    BracketData,
    BracketFormat,
    Court,
    Match,
    MexicanoBracket,
    Player,
    Round,
    Standing,
    bracket_from_dict,
    bracket_to_dict,
)
from engine.exceptions import (
    NotFoundError,
    PadelError,
    PersistenceError,
    StateError,
    ValidationError,
)
from engine.rounds import (
    RoundGenerator,
    can_advance,
    complete_tournament,
    create_bracket,
    generate_round,
    generator_for,
    is_tournament_completed,
    recalc_standings,
    reset_current_round,
    rollback_to_round,
)
from engine.scoring import update_match_score
from engine.standings import rank_standings, recalculate_standings

__all__ = [
    "AmericanoBracket",
    "BracketData",
    "BracketFormat",
    "Court",
    "Match",
    "MexicanoBracket",
    "Player",
    "Round",
    "Standing",
    "bracket_from_dict",
    "bracket_to_dict",
    "NotFoundError",
    "PadelError",
    "PersistenceError",
    "StateError",
    "ValidationError",
    "RoundGenerator",
    "can_advance",
    "complete_tournament",
    "create_bracket",
    "generate_round",
    "generator_for",
    "is_tournament_completed",
    "recalc_standings",
    "reset_current_round",
    "rollback_to_round",
    "update_match_score",
    "rank_standings",
    "recalculate_standings",
]
