"""
Round / Tournament State Machine

Dispatches on the bracket's format tag to the matching round generator and
holds the rules shared by both formats:

    create -> generate round 1 -> [score -> advance]* -> round 4 done -> complete

Rollback and reset are the only ways back; both rebuild standings from the
ledger.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import replace
from typing import Protocol, Union

from config import TOURNAMENT_SETTINGS
from engine.americano import AmericanoGenerator, standings_roster
from engine.bracket import AmericanoBracket, BracketData, BracketFormat, MexicanoBracket, Player
from engine.exceptions import StateError, ValidationError
from engine.mexicano import MexicanoGenerator
from engine.standings import rank_standings, recalculate_standings

logger = logging.getLogger(__name__)


ROUND_COUNT = TOURNAMENT_SETTINGS.round_count


class RoundGenerator(Protocol):
    """Behaviour shared by the Mexicano and Americano generators."""

    def create_bracket(self, roster: Iterable[Player]) -> BracketData: ...

    def generate_next(self, bracket: BracketData, roster: Sequence[Player]) -> BracketData: ...

    def can_advance(self, bracket: BracketData) -> bool: ...

    def rollback_to_round(
        self, bracket: BracketData, roster: Sequence[Player], round_number: int
    ) -> BracketData: ...

    def reset_current_round(self, bracket: BracketData, roster: Sequence[Player]) -> BracketData: ...


_GENERATORS: dict[BracketFormat, RoundGenerator] = {
    BracketFormat.MEXICANO: MexicanoGenerator(),
    BracketFormat.AMERICANO: AmericanoGenerator(),
}


def generator_for(bracket_or_format: Union[BracketData, BracketFormat, str]) -> RoundGenerator:
    """
    Pick the round generator for a bracket, a BracketFormat or its string value.

    Raises:
        ValidationError: If the format is unknown
    """
    if isinstance(bracket_or_format, (MexicanoBracket, AmericanoBracket)):
        fmt = bracket_or_format.format
    else:
        fmt = bracket_or_format
    try:
        return _GENERATORS[BracketFormat(fmt)]
    except ValueError:
        raise ValidationError(f"Unknown bracket format: {fmt!r}") from None


def create_bracket(bracket_format: Union[BracketFormat, str], roster: Iterable[Player]) -> BracketData:
    return generator_for(bracket_format).create_bracket(roster)


def generate_round(bracket: BracketData, roster: Sequence[Player]) -> BracketData:
    """
    Generate (Mexicano) or open (Americano) the next round.

    Raises:
        StateError: If the tournament is over, the current round is
            incomplete, or the last round was reached
    """
    if bracket.completed:
        raise StateError("Tournament is already completed")
    return generator_for(bracket).generate_next(bracket, roster)


def can_advance(bracket: BracketData) -> bool:
    """True when no live match of the current round is missing a score."""
    return generator_for(bracket).can_advance(bracket)


def is_tournament_completed(bracket: BracketData) -> bool:
    """All rounds played: the last round is current and fully scored."""
    return bracket.current_round >= ROUND_COUNT and can_advance(bracket)


def recalc_standings(bracket: BracketData, roster: Iterable[Player]) -> BracketData:
    """Rebuild standings from the ledger."""
    if bracket.format == BracketFormat.AMERICANO:
        roster = standings_roster(bracket, roster)
    return replace(
        bracket,
        standings=tuple(recalculate_standings(roster, bracket.completed_matches)),
    )


def rollback_to_round(
    bracket: BracketData,
    roster: Sequence[Player],
    round_number: int,
    confirmed: bool = False,
) -> BracketData:
    """
    Return to the end of an earlier round, discarding everything after it.

    Args:
        bracket: Current bracket
        roster: Tournament players
        round_number: Round to return to
        confirmed: The user accepted losing the later rounds

    Raises:
        StateError: If not confirmed
        ValidationError: If round_number is not a round before the current one
    """
    if not confirmed:
        raise StateError("Rolling back discards later rounds and must be confirmed")

    # Only finished rounds are targets; the round in progress is reset instead
    lowest = 1 if bracket.format == BracketFormat.AMERICANO else 0
    if isinstance(round_number, bool) or not isinstance(round_number, int) \
            or not lowest <= round_number < bracket.current_round:
        if bracket.current_round > lowest:
            valid = f"valid: {lowest}-{bracket.current_round - 1}"
        else:
            valid = "no earlier round"
        raise ValidationError(f"Cannot roll back to round {round_number!r} ({valid})")

    dropped = sum(1 for m in bracket.completed_matches if m.round > round_number)
    logger.info(
        "Rolling back %s bracket from round %d to round %d, dropping %d results",
        bracket.format.value, bracket.current_round, round_number, dropped,
    )
    return generator_for(bracket).rollback_to_round(bracket, list(roster), round_number)


def reset_current_round(bracket: BracketData, roster: Sequence[Player]) -> BracketData:
    """Throw away the results of the round in progress."""
    if bracket.completed:
        raise StateError("Tournament is already completed")
    logger.info("Resetting round %d of %s bracket", bracket.current_round, bracket.format.value)
    return generator_for(bracket).reset_current_round(bracket, list(roster))


def complete_tournament(bracket: BracketData) -> BracketData:
    """
    Freeze the final ranking and mark the tournament completed.

    Raises:
        StateError: If rounds are still to be played or scored
    """
    if not is_tournament_completed(bracket):
        raise StateError(
            f"Tournament cannot end before all {ROUND_COUNT} rounds are completed"
        )

    final = tuple(rank_standings(bracket.standings))
    logger.info("Tournament completed, winner: %s", final[0].name if final else "-")
    return replace(bracket, completed=True, final_standings=final)
