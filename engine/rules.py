"""
Score Rules - Validates score edits before they reach a match.

A lone score may be any integer; the [0, 10] range is enforced only once
the opposing side's score is known.
"""

from typing import Any, Optional

from config import TOURNAMENT_SETTINGS
from engine.bracket import SCORE_SIDES, Match, check_score_type
from engine.exceptions import ValidationError


MIN_SCORE = TOURNAMENT_SETTINGS.min_score
MAX_SCORE = TOURNAMENT_SETTINGS.max_score


def is_valid_score(score1: int, score2: int) -> bool:
    """Check that both scores of a finished match are within range."""
    return MIN_SCORE <= score1 <= MAX_SCORE and MIN_SCORE <= score2 <= MAX_SCORE


def opposing_side(side: str) -> str:
    return "score2" if side == "score1" else "score1"


def validate_side(side: Any) -> str:
    """
    Validate a score side identifier.

    Raises:
        ValidationError: If side is not "score1" or "score2"
    """
    if side not in SCORE_SIDES:
        raise ValidationError(f"Invalid score side: {side!r} (expected one of {SCORE_SIDES})")
    return side


def validate_score_edit(match: Match, side: str, score: Any) -> Optional[int]:
    """
    Validate a single score edit against the match it applies to.

    Args:
        match: The match being edited
        side: "score1" or "score2"
        score: New value, or None to clear the side

    Returns:
        The validated score

    Raises:
        ValidationError: If the score is not an integer, or is out of range
            while the opposing score is already set
    """
    validate_side(side)
    if check_score_type(score) is None:
        return None

    other = getattr(match, opposing_side(side))
    if other is not None:
        pair = (score, other) if side == "score1" else (other, score)
        if not is_valid_score(*pair):
            raise ValidationError(
                f"Scores must be between {MIN_SCORE}-{MAX_SCORE}, got {pair[0]}-{pair[1]}"
            )
    return score
