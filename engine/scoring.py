"""
Score Update - Applies a single score edit to a bracket.

The edit is validated, written to the live match (court or round) and
mirrored into the completed-match ledger; standings are then rebuilt from the
ledger. Nothing is persisted or announced here, the controller does that.
"""

import logging
from collections.abc import Sequence
from dataclasses import replace
from typing import Any, Optional

from engine.bracket import (
    AmericanoBracket,
    BracketData,
    Match,
    MexicanoBracket,
    Player,
    replace_match,
    upsert_match,
)
from engine.exceptions import NotFoundError, ValidationError
from engine.rounds import recalc_standings
from engine.rules import validate_score_edit, validate_side

logger = logging.getLogger(__name__)


def find_match(bracket: BracketData, match_id: str) -> Optional[Match]:
    """Live matches first, then the completed ledger."""
    return bracket.find_live_match(match_id) or bracket.find_ledger_match(match_id)


def _write_live(bracket: BracketData, match: Match) -> BracketData:
    if isinstance(bracket, MexicanoBracket):
        return replace(bracket, courts=tuple(
            replace(court, matches=replace_match(court.matches, match))
            for court in bracket.courts
        ))
    if isinstance(bracket, AmericanoBracket):
        return replace(bracket, rounds=tuple(
            replace(rnd, matches=replace_match(rnd.matches, match))
            for rnd in bracket.rounds
        ))
    raise ValidationError(f"Unsupported bracket type: {type(bracket).__name__}")


def update_match_score(
    bracket: BracketData,
    roster: Sequence[Player],
    match_id: str,
    side: str,
    score: Any,
) -> BracketData:
    """
    Set one side's score of a match.

    Args:
        bracket: Current bracket
        roster: Tournament players, used to rebuild standings
        match_id: Match to edit
        side: "score1" or "score2"
        score: New integer score, or None to clear it

    Returns:
        The updated bracket

    Raises:
        NotFoundError: If no live or recorded match has this id
        ValidationError: If the side or score is invalid, or a recorded match
            of an earlier round would be left without a score
    """
    validate_side(side)

    live = bracket.find_live_match(match_id)
    match = live or bracket.find_ledger_match(match_id)
    if match is None:
        raise NotFoundError(f"Match not found: {match_id}")

    score = validate_score_edit(match, side, score)
    updated = match.with_score(side, score)

    if live is not None:
        bracket = _write_live(bracket, updated)

    if updated.completed:
        ledger = upsert_match(bracket.completed_matches, updated)
        logger.debug("Match %s recorded %s-%s", match_id, updated.score1, updated.score2)
    elif live is None:
        raise ValidationError(
            f"Match {match_id} belongs to an earlier round and cannot be cleared"
        )
    else:
        ledger = tuple(m for m in bracket.completed_matches if m.id != match_id)
        if len(ledger) != len(bracket.completed_matches):
            logger.info("Match %s is no longer complete, removed from the ledger", match_id)

    return recalc_standings(replace(bracket, completed_matches=ledger), roster)
