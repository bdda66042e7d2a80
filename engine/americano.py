"""
Americano Round Generator

Players are split once into four colored groups, each bound to a court:
green -> Padel Arenas, blue -> Coolbet, yellow -> Lux Express, pink -> 3p Logistics

Partner rotation is fixed by round number, not by results, so all four
rounds are generated up front:

    Round 1: [0, 3] vs [1, 2]        (within group)
    Round 2: [0, 1] vs [2, 3]        (within group)
    Round 3: mix round across green+blue and yellow+pink
    Round 4: [0, 2] vs [1, 3]        (within group)

Rounds are only regenerated when a human re-arranges the groups.
"""

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import replace

from config import TOURNAMENT_SETTINGS
from engine.bracket import AmericanoBracket, Match, Player, Round
from engine.exceptions import StateError
from engine.standings import initial_standings, recalculate_standings

logger = logging.getLogger(__name__)


GROUP_COLORS: tuple[str, ...] = TOURNAMENT_SETTINGS.group_colors
COURT_NAMES: tuple[str, ...] = TOURNAMENT_SETTINGS.court_names
GROUP_COURTS: dict[str, str] = dict(zip(GROUP_COLORS, COURT_NAMES))

GROUP_SIZE = TOURNAMENT_SETTINGS.players_per_match
ROUND_COUNT = TOURNAMENT_SETTINGS.round_count
MIX_ROUND = TOURNAMENT_SETTINGS.mix_round

# round -> (team1 positions, team2 positions) within a sorted group
ROUND_PATTERNS: dict[int, tuple[tuple[int, int], tuple[int, int]]] = {
    1: ((0, 3), (1, 2)),
    2: ((0, 1), (2, 3)),
    4: ((0, 2), (1, 3)),
}

# Groups paired in the mix round
MIX_PAIRS: tuple[tuple[str, str], ...] = (("green", "blue"), ("yellow", "pink"))


def assign_groups(roster: Iterable[Player]) -> list[Player]:
    """
    Give every player a group color, keeping roster order.

    Existing group fields are used as-is unless any color would be empty;
    then everybody is regrouped by rating into quartiles of ceil(n / 4),
    top quartile green, then blue, yellow, pink.
    """
    roster = list(roster)
    counts = {color: 0 for color in GROUP_COLORS}
    for player in roster:
        if player.group in counts:
            counts[player.group] += 1

    if all(counts.values()):
        return roster

    logger.info("Some groups are empty, assigning %d players by rating", len(roster))
    ranked = sorted(roster, key=lambda p: p.rating, reverse=True)
    size = max(1, math.ceil(len(ranked) / len(GROUP_COLORS)))
    color_of = {
        player.id: GROUP_COLORS[min(index // size, len(GROUP_COLORS) - 1)]
        for index, player in enumerate(ranked)
    }
    return [replace(p, group=color_of[p.id]) for p in roster]


def group_players(roster: Iterable[Player]) -> dict[str, list[Player]]:
    """color -> members, with the quartile fallback of assign_groups()."""
    groups: dict[str, list[Player]] = {color: [] for color in GROUP_COLORS}
    for player in assign_groups(roster):
        if player.group in groups:
            groups[player.group].append(player)
    return groups


def sort_group(players: Iterable[Player]) -> list[Player]:
    """
    Order a group for pairing.

    Uses group_order when every member has one (the group was arranged by
    hand), otherwise rating descending.
    """
    players = list(players)
    if players and all(p.group_order is not None for p in players):
        return sorted(players, key=lambda p: p.group_order)
    return sorted(players, key=lambda p: p.rating, reverse=True)


def _make_match(
    match_id: str,
    court: str,
    team1: tuple[Player, Player],
    team2: tuple[Player, Player],
    round_number: int,
    group_color: str,
) -> Match:
    return Match(
        id=match_id,
        team1=team1,
        team2=team2,
        round=round_number,
        court=court,
        group_color=group_color,
    )


def _group_round(round_number: int, groups: dict[str, list[Player]]) -> Round:
    (a1, a2), (b1, b2) = ROUND_PATTERNS[round_number]
    matches = []
    for color in GROUP_COLORS:
        members = groups.get(color, [])
        if len(members) < GROUP_SIZE:
            if members:
                logger.warning("Group %s has %d players, skipping round %d", color, len(members), round_number)
            continue
        ordered = sort_group(members)
        matches.append(_make_match(
            f"match-r{round_number}-{color}",
            GROUP_COURTS[color],
            (ordered[a1], ordered[a2]),
            (ordered[b1], ordered[b2]),
            round_number,
            color,
        ))
    return Round(number=round_number, matches=tuple(matches))


def _mix_round(groups: dict[str, list[Player]]) -> Round:
    """
    Cross-group round.

    first vs second group (sorted):  {a0, b1} vs {a1, b0}
    and when both have four players: {a2, b3} vs {a3, b2}
    """
    matches = []
    for first, second in MIX_PAIRS:
        a = sort_group(groups.get(first, []))
        b = sort_group(groups.get(second, []))
        if len(a) < 2 or len(b) < 2:
            continue

        matches.append(_make_match(
            f"match-r{MIX_ROUND}-{first}-{second}-1",
            TOURNAMENT_SETTINGS.mix_court,
            (a[0], b[1]),
            (a[1], b[0]),
            MIX_ROUND,
            TOURNAMENT_SETTINGS.mix_color,
        ))
        if len(a) >= GROUP_SIZE and len(b) >= GROUP_SIZE:
            matches.append(_make_match(
                f"match-r{MIX_ROUND}-{first}-{second}-2",
                TOURNAMENT_SETTINGS.mix_court,
                (a[2], b[3]),
                (a[3], b[2]),
                MIX_ROUND,
                TOURNAMENT_SETTINGS.mix_color,
            ))
    return Round(number=MIX_ROUND, matches=tuple(matches))


def create_rounds(groups: dict[str, list[Player]]) -> tuple[Round, ...]:
    """Generate all four rounds from fixed groups."""
    return tuple(
        _mix_round(groups) if number == MIX_ROUND else _group_round(number, groups)
        for number in range(1, ROUND_COUNT + 1)
    )


def create_bracket(roster: Iterable[Player]) -> AmericanoBracket:
    """Group the roster and generate every round; play starts at round 1."""
    grouped = assign_groups(roster)
    groups = group_players(grouped)
    rounds = create_rounds(groups)
    logger.info(
        "Generated Americano rounds for groups %s",
        {color: len(members) for color, members in groups.items()},
    )
    return AmericanoBracket(
        current_round=1,
        rounds=rounds,
        standings=tuple(initial_standings(grouped)),
    )


def _round_one_lineup(bracket: AmericanoBracket) -> dict[str, list[str]]:
    """color -> player ids in sorted-group order, read back from round 1."""
    lineup: dict[str, list[str]] = {}
    first = bracket.get_round(1)
    for match in first.matches if first else ():
        # Round 1 pairs [0, 3] vs [1, 2]
        lineup[match.group_color] = [
            match.team1[0].id, match.team2[0].id, match.team2[1].id, match.team1[1].id
        ]
    return lineup


def groups_edited(bracket: AmericanoBracket, roster: Iterable[Player]) -> bool:
    """
    Detect a manual re-arrangement of the groups.

    Only rosters carrying group_order (set when a human arranges the groups)
    are considered; then the roster's line-up is compared with round 1.
    """
    roster = list(roster)
    if not any(p.group_order is not None for p in roster):
        return False

    expected = {
        color: [p.id for p in sort_group(members)]
        for color, members in group_players(roster).items()
        if len(members) >= GROUP_SIZE
    }
    return expected != _round_one_lineup(bracket)


def standings_roster(bracket: AmericanoBracket, roster: Iterable[Player]) -> list[Player]:
    """Fill in missing player groups from the bracket's standings."""
    known = {s.id: s.group for s in bracket.standings if s.group}
    return [
        p if p.group or p.id not in known else replace(p, group=known[p.id])
        for p in roster
    ]


class AmericanoGenerator:
    """
    Round generator for the Americano group format.

    generate_next() creates all rounds on the first call and afterwards only
    moves current_round forward once the current round is complete.
    """

    def create_bracket(self, roster: Iterable[Player]) -> AmericanoBracket:
        return create_bracket(roster)

    def can_advance(self, bracket: AmericanoBracket) -> bool:
        """Every match of the current round has both scores."""
        current = bracket.get_round(bracket.current_round)
        return current is None or all(m.completed for m in current.matches)

    def generate_next(self, bracket: AmericanoBracket, roster: Sequence[Player]) -> AmericanoBracket:
        """
        Create the rounds if missing, otherwise advance to the next round.

        Raises:
            StateError: If the current round is incomplete or all rounds were played
        """
        if not any(rnd.matches for rnd in bracket.rounds):
            fresh = create_bracket(roster)
            return replace(fresh, completed_matches=bracket.completed_matches)

        if not self.can_advance(bracket):
            raise StateError("Current round is not completed")
        if bracket.current_round >= ROUND_COUNT:
            raise StateError("Maximum number of rounds reached")

        logger.info("Advancing Americano bracket to round %d", bracket.current_round + 1)
        return replace(bracket, current_round=bracket.current_round + 1)

    def regenerate_rounds(self, bracket: AmericanoBracket, roster: Sequence[Player]) -> AmericanoBracket:
        """
        Rebuild every round after the groups were edited.

        Results recorded against the old pairings are discarded.
        """
        if bracket.completed_matches:
            logger.warning(
                "Regenerating Americano rounds discards %d recorded results",
                len(bracket.completed_matches),
            )
        return create_bracket(roster)

    def _clear_rounds(self, bracket: AmericanoBracket, round_numbers: set[int]) -> tuple[Round, ...]:
        rounds = []
        for rnd in bracket.rounds:
            if rnd.number in round_numbers:
                rnd = replace(rnd, matches=tuple(
                    replace(m, score1=None, score2=None) for m in rnd.matches
                ))
            rounds.append(rnd)
        return tuple(rounds)

    def rollback_to_round(
        self,
        bracket: AmericanoBracket,
        roster: Sequence[Player],
        round_number: int,
    ) -> AmericanoBracket:
        """Clear every result after round_number; the pre-generated pairings stay."""
        later = {rnd.number for rnd in bracket.rounds if rnd.number > round_number}
        ledger = tuple(m for m in bracket.completed_matches if m.round <= round_number)
        return replace(
            bracket,
            current_round=round_number,
            rounds=self._clear_rounds(bracket, later),
            completed_matches=ledger,
            standings=tuple(recalculate_standings(standings_roster(bracket, roster), ledger)),
            completed=False,
            final_standings=(),
        )

    def reset_current_round(self, bracket: AmericanoBracket, roster: Sequence[Player]) -> AmericanoBracket:
        """Clear the current round's results; the round itself stays current."""
        current = bracket.current_round
        ledger = tuple(m for m in bracket.completed_matches if m.round != current)
        return replace(
            bracket,
            rounds=self._clear_rounds(bracket, {current}),
            completed_matches=ledger,
            standings=tuple(recalculate_standings(standings_roster(bracket, roster), ledger)),
            completed=False,
            final_standings=(),
        )
