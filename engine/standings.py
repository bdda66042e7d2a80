"""
Standings Calculator

Standings are always rebuilt from the completed-match ledger, never patched
incrementally, so they stay consistent after a rollback or a score correction.

Scoring per side of each completed match:
- points += the score that side obtained (a close loss still earns points)
- wins += 1 only if the side scored strictly more than its opponent
- otherwise losses += 1 (an exact draw counts as a loss for both sides)
"""

from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Optional

from engine.bracket import Match, Player, Standing


@dataclass
class _Tally:
    """Mutable accumulator used while folding the ledger."""
    points: int = 0
    wins: int = 0
    losses: int = 0
    games_played: int = 0

    def record(self, own_score: int, other_score: int) -> None:
        self.points += own_score
        self.games_played += 1
        if own_score > other_score:
            self.wins += 1
        else:
            self.losses += 1


def recalculate_standings(
    roster: Iterable[Player],
    completed_matches: Iterable[Match],
) -> list[Standing]:
    """
    Recompute standings from scratch.

    Pure function of its inputs: calling it twice on the same ledger yields
    identical output. Players in the ledger but not in the roster are ignored.

    Args:
        roster: Tournament players, in display order
        completed_matches: The completed-match ledger

    Returns:
        One Standing per roster player, in roster order
    """
    roster = list(roster)
    tallies: dict[str, _Tally] = {p.id: _Tally() for p in roster}

    for match in completed_matches:
        if not match.completed:
            continue
        for player in match.team1:
            if player.id in tallies:
                tallies[player.id].record(match.score1, match.score2)
        for player in match.team2:
            if player.id in tallies:
                tallies[player.id].record(match.score2, match.score1)

    return [
        Standing(
            id=p.id,
            name=p.name,
            points=tallies[p.id].points,
            wins=tallies[p.id].wins,
            losses=tallies[p.id].losses,
            games_played=tallies[p.id].games_played,
            group=p.group,
        )
        for p in roster
    ]


def initial_standings(roster: Iterable[Player]) -> list[Standing]:
    """Zeroed standings for a fresh bracket."""
    return recalculate_standings(roster, ())


def _ranking_key(standing: Standing) -> tuple:
    # Points desc, then wins desc, then name asc
    return (-standing.points, -standing.wins, standing.name.casefold())


def rank_standings(standings: Iterable[Standing]) -> list[Standing]:
    """
    Sort standings for the final table and assign final_rank 1..n.

    Tiebreaker order:
    1. Points (desc)
    2. Wins (desc)
    3. Name (alphabetical)
    """
    ordered = sorted(standings, key=_ranking_key)
    return [replace(s, final_rank=index) for index, s in enumerate(ordered, start=1)]


def group_standings(
    standings: Iterable[Standing],
    colors: Optional[Iterable[str]] = None,
) -> dict[str, list[Standing]]:
    """
    Split standings by Americano group for group-relative display.

    Args:
        standings: Standings carrying a group color
        colors: Group order of the result; groups not listed are appended

    Returns:
        color -> standings sorted by points then wins
    """
    grouped: dict[str, list[Standing]] = {c: [] for c in (colors or ())}
    for standing in standings:
        if standing.group is None:
            continue
        grouped.setdefault(standing.group, []).append(standing)

    return {
        color: sorted(members, key=_ranking_key)
        for color, members in grouped.items()
    }
