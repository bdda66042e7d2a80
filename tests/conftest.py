"""
Shared fixtures for the tournament engine tests.
"""

import pytest

from engine.bracket import Player
from engine.scoring import update_match_score


@pytest.fixture
def make_players():
    """
    Factory for rosters.

    make_players(4) -> P1..P4 rated 4..1 (P1 is the best player)
    """
    def factory(count: int, **overrides) -> list[Player]:
        return [
            Player(id=f"P{i}", name=f"Player {i}", rating=count - i + 1, **overrides)
            for i in range(1, count + 1)
        ]
    return factory


@pytest.fixture
def score_round():
    """
    Score every unfinished live match of a bracket.

    By default team1 wins 6-2; pass score1/score2 to override.
    """
    def scorer(bracket, roster, score1: int = 6, score2: int = 2):
        for match in bracket.live_matches:
            if match.completed:
                continue
            if bracket.format.value == "Americano" and match.round != bracket.current_round:
                continue
            bracket = update_match_score(bracket, roster, match.id, "score1", score1)
            bracket = update_match_score(bracket, roster, match.id, "score2", score2)
        return bracket
    return scorer
