"""
Mexicano Round Generator

Ladder ("king of the hill") format over four ordered courts:
Padel Arenas -> Coolbet -> Lux Express -> 3p Logistics

Round 1 seeds players by rating. After each round winners climb one court,
losers drop one court; the top court keeps its winners and the bottom court
keeps its losers. Within a court the four players are sorted by GameScore
(score * 100 + rating) and paired highest+lowest vs the middle two.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import replace
from typing import Optional

from config import TOURNAMENT_SETTINGS
from engine.bracket import Court, Match, MexicanoBracket, Player
from engine.exceptions import StateError, ValidationError
from engine.standings import initial_standings, recalculate_standings

logger = logging.getLogger(__name__)


COURT_ORDER: tuple[str, ...] = TOURNAMENT_SETTINGS.court_names
PLAYERS_PER_COURT = TOURNAMENT_SETTINGS.players_per_match
ROUND_COUNT = TOURNAMENT_SETTINGS.round_count

WIN = "win"
LOSS = "loss"

# Directed movement table: current court -> result -> next court
COURT_MOVEMENT: dict[str, dict[str, str]] = {
    "Padel Arenas": {WIN: "Padel Arenas", LOSS: "Coolbet"},
    "Coolbet": {WIN: "Padel Arenas", LOSS: "Lux Express"},
    "Lux Express": {WIN: "Coolbet", LOSS: "3p Logistics"},
    "3p Logistics": {WIN: "Lux Express", LOSS: "3p Logistics"},
}


def next_court(current_court: str, result: str) -> str:
    """
    Look up where a player goes after a win or loss on a court.

    Raises:
        ValidationError: If the court or result is unknown
    """
    try:
        return COURT_MOVEMENT[current_court][result]
    except KeyError:
        raise ValidationError(
            f"No movement for court {current_court!r} with result {result!r}"
        ) from None


def game_score(score: int, rating: float) -> float:
    """GameScore: score dominates, rating breaks ties within the same score."""
    return score * TOURNAMENT_SETTINGS.game_score_weight + rating


def round_game_scores(bracket: MexicanoBracket, round_number: Optional[int] = None) -> dict[str, float]:
    """GameScore of every player who completed a match in the given (default: current) round."""
    if round_number is None:
        round_number = bracket.current_round

    scores: dict[str, float] = {}
    for match in bracket.ledger_for_round(round_number):
        for player in match.team1:
            scores[player.id] = game_score(match.score1, player.rating)
        for player in match.team2:
            scores[player.id] = game_score(match.score2, player.rating)
    return scores


def court_slug(court_name: str) -> str:
    return court_name.lower().replace(" ", "-")


def make_match_id(round_number: int, court_name: str) -> str:
    return f"r{round_number}-{court_slug(court_name)}"


def pair_players(players: Sequence[Player]) -> tuple[tuple[Player, Player], tuple[Player, Player]]:
    """
    Split four sorted players into balanced teams.

    [p0, p1, p2, p3] -> team1 = (p0, p3), team2 = (p1, p2)
    """
    return (players[0], players[3]), (players[1], players[2])


def _build_match(round_number: int, court_name: str, players: Sequence[Player]) -> Match:
    team1, team2 = pair_players(players)
    return Match(
        id=make_match_id(round_number, court_name),
        team1=team1,
        team2=team2,
        round=round_number,
        court=court_name,
    )


# -------------------------------------------------------------------------
# Court assignment
# -------------------------------------------------------------------------

def _split_tied_team(
    team: Sequence[Player],
    team_score: int,
    court_name: str,
    assignments: dict[str, str],
) -> None:
    """
    Drawn match: the higher-GameScore player of the pair moves as a winner,
    the other as a loser. Equal GameScores leave the first player as the loser.
    """
    player_a, player_b = team
    a_wins = game_score(team_score, player_a.rating) > game_score(team_score, player_b.rating)
    assignments[player_a.id] = next_court(court_name, WIN if a_wins else LOSS)
    assignments[player_b.id] = next_court(court_name, LOSS if a_wins else WIN)


def determine_assignments(bracket: MexicanoBracket) -> dict[str, str]:
    """
    Assign every player of the just-finished round to a court for the next round.

    Returns:
        player id -> next court name
    """
    assignments: dict[str, str] = {}

    for match in bracket.ledger_for_round(bracket.current_round):
        if match.score1 != match.score2:
            team1_won = match.score1 > match.score2
            winners, losers = (match.team1, match.team2) if team1_won else (match.team2, match.team1)
            for player in winners:
                assignments[player.id] = next_court(match.court, WIN)
            for player in losers:
                assignments[player.id] = next_court(match.court, LOSS)
        else:
            _split_tied_team(match.team1, match.score1, match.court, assignments)
            _split_tied_team(match.team2, match.score2, match.court, assignments)

    return assignments


def _court_members(assignments: dict[str, str]) -> dict[str, list[str]]:
    members: dict[str, list[str]] = {name: [] for name in COURT_ORDER}
    for player_id, court_name in assignments.items():
        members.setdefault(court_name, []).append(player_id)
    return members


def _largest(counts: dict[str, int]) -> Optional[str]:
    """Court with the largest positive count; ties broken by court order."""
    best = None
    for name in COURT_ORDER:
        if counts.get(name, 0) > 0 and (best is None or counts[name] > counts[best]):
            best = name
    return best


def active_courts(player_count: int) -> tuple[str, ...]:
    """Top courts that can be filled with four players each."""
    return COURT_ORDER[:min(len(COURT_ORDER), player_count // PLAYERS_PER_COURT)]


def resolve_conflicts(
    assignments: dict[str, str],
    roster: Sequence[Player],
    scores: dict[str, float],
) -> dict[str, str]:
    """
    Make every active court hold exactly four players.

    With n roster players the top n // 4 courts are active; lower courts
    have no capacity, so their players count as surplus.

    1. Roster players without an assignment are placed on the courts with
       the largest deficit first.
    2. While one court is over capacity and another under, one player moves
       from the most over-subscribed court to the court with the largest
       deficit: the lowest-GameScore player when moving down the ladder, the
       highest when moving up.

    Players still left over sit out the round.

    Returns:
        A new player id -> court mapping
    """
    resolved = dict(assignments)
    players = {p.id: p for p in roster}
    capacity = {name: PLAYERS_PER_COURT for name in active_courts(len(players))}

    def rank(player_id: str) -> float:
        return scores.get(player_id, players[player_id].rating if player_id in players else 0)

    def deficits() -> dict[str, int]:
        members = _court_members(resolved)
        return {name: capacity.get(name, 0) - len(members[name]) for name in COURT_ORDER}

    for player in roster:
        if player.id in resolved:
            continue
        target = _largest(deficits())
        if target is None:
            logger.warning("No court has room for unassigned player %s", player.id)
            continue
        logger.info("Assigning unassigned player %s to %s", player.id, target)
        resolved[player.id] = target

    while True:
        need = deficits()
        surplus = {name: -count for name, count in need.items()}
        source = _largest(surplus)
        target = _largest(need)
        if source is None or target is None:
            break

        candidates = _court_members(resolved)[source]
        moving_down = COURT_ORDER.index(target) > COURT_ORDER.index(source)
        chosen = min(candidates, key=rank) if moving_down else max(candidates, key=rank)
        logger.info("Court conflict: moving player %s from %s to %s", chosen, source, target)
        resolved[chosen] = target

    return resolved


# -------------------------------------------------------------------------
# Round generation
# -------------------------------------------------------------------------

def create_bracket(roster: Iterable[Player]) -> MexicanoBracket:
    """Empty bracket: round 0, four empty courts, zeroed standings."""
    return MexicanoBracket(
        current_round=0,
        courts=tuple(Court(name=name) for name in COURT_ORDER),
        standings=tuple(initial_standings(roster)),
    )


def generate_first_round(bracket: MexicanoBracket, roster: Sequence[Player]) -> MexicanoBracket:
    """
    Seed round 1 by rating: chunks of four per court in court order.

    Chunks with fewer than four players are dropped.
    """
    ranked = sorted(roster, key=lambda p: p.rating, reverse=True)
    courts = []
    for index, name in enumerate(COURT_ORDER):
        chunk = ranked[index * PLAYERS_PER_COURT:(index + 1) * PLAYERS_PER_COURT]
        if len(chunk) >= PLAYERS_PER_COURT:
            courts.append(Court(name=name, matches=(_build_match(1, name, chunk),)))
        else:
            courts.append(Court(name=name))

    leftover = ranked[len(COURT_ORDER) * PLAYERS_PER_COURT:]
    if leftover:
        logger.warning("%d players do not fit on the courts and sit out round 1", len(leftover))

    logger.info("Generated Mexicano round 1 for %d players", len(ranked))
    return replace(bracket, current_round=1, courts=tuple(courts))


def generate_subsequent_round(bracket: MexicanoBracket, roster: Sequence[Player]) -> MexicanoBracket:
    """Move players along the ladder and pair each court by GameScore."""
    next_round = bracket.current_round + 1
    scores = round_game_scores(bracket)
    players = {p.id: p for p in roster}

    assignments = {
        player_id: court
        for player_id, court in determine_assignments(bracket).items()
        if player_id in players
    }
    if any(len(ids) != PLAYERS_PER_COURT for ids in _court_members(assignments).values()) \
            or len(assignments) != len(players):
        assignments = resolve_conflicts(assignments, roster, scores)

    members = _court_members(assignments)
    courts = []
    for name in COURT_ORDER:
        court_players = sorted(
            (players[player_id] for player_id in members[name]),
            key=lambda p: scores.get(p.id, p.rating),
            reverse=True,
        )
        if len(court_players) > PLAYERS_PER_COURT:
            logger.warning(
                "%s has %d players, %s sit out round %d",
                name, len(court_players),
                ", ".join(p.id for p in court_players[PLAYERS_PER_COURT:]), next_round,
            )
        if len(court_players) >= PLAYERS_PER_COURT:
            courts.append(Court(name=name, matches=(
                _build_match(next_round, name, court_players[:PLAYERS_PER_COURT]),
            )))
        else:
            courts.append(Court(name=name))

    logger.info("Generated Mexicano round %d", next_round)
    return replace(bracket, current_round=next_round, courts=tuple(courts))


class MexicanoGenerator:
    """
    Round generator for the Mexicano ladder.

    Usage:
        generator = MexicanoGenerator()
        bracket = generator.create_bracket(roster)
        bracket = generator.generate_next(bracket, roster)   # round 1
        ... record scores ...
        bracket = generator.generate_next(bracket, roster)   # round 2
    """

    def create_bracket(self, roster: Iterable[Player]) -> MexicanoBracket:
        return create_bracket(roster)

    def can_advance(self, bracket: MexicanoBracket) -> bool:
        """Every match on every court has both scores."""
        return all(m.completed for m in bracket.live_matches)

    def generate_next(self, bracket: MexicanoBracket, roster: Sequence[Player]) -> MexicanoBracket:
        """
        Generate the next round.

        Raises:
            StateError: If the previous round is incomplete or all rounds were played
        """
        if not self.can_advance(bracket):
            raise StateError("Previous round is not complete! All matches must have scores.")
        if bracket.current_round >= ROUND_COUNT:
            raise StateError("Maximum number of rounds reached")

        roster = list(roster)
        if bracket.current_round == 0:
            return generate_first_round(bracket, roster)
        return generate_subsequent_round(bracket, roster)

    def rollback_to_round(
        self,
        bracket: MexicanoBracket,
        roster: Sequence[Player],
        round_number: int,
    ) -> MexicanoBracket:
        """
        Discard every result after round_number and clear the courts.

        The caller must have confirmed: later rounds are unrecoverable.
        """
        ledger = tuple(m for m in bracket.completed_matches if m.round <= round_number)
        return replace(
            bracket,
            current_round=round_number,
            courts=tuple(Court(name=court.name) for court in bracket.courts),
            completed_matches=ledger,
            standings=tuple(recalculate_standings(roster, ledger)),
            completed=False,
            final_standings=(),
        )

    def reset_current_round(self, bracket: MexicanoBracket, roster: Sequence[Player]) -> MexicanoBracket:
        """Throw away the current round's matches and step back one round."""
        if bracket.current_round == 0:
            return bracket
        ledger = tuple(m for m in bracket.completed_matches if m.round != bracket.current_round)
        return replace(
            bracket,
            current_round=bracket.current_round - 1,
            courts=tuple(Court(name=court.name) for court in bracket.courts),
            completed_matches=ledger,
            standings=tuple(recalculate_standings(roster, ledger)),
            completed=False,
            final_standings=(),
        )
