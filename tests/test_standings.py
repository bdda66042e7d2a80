"""
Tests for the Standings Calculator

Standings are a pure function of the roster and the completed-match ledger.
"""

from engine.bracket import Match, Player, Standing
from engine.standings import (
    group_standings,
    initial_standings,
    rank_standings,
    recalculate_standings,
)


A = Player(id="a", name="Anna", rating=5, group="green")
B = Player(id="b", name="Bert", rating=4, group="green")
C = Player(id="c", name="Cleo", rating=3, group="blue")
D = Player(id="d", name="Dave", rating=2, group="blue")
ROSTER = [A, B, C, D]


def _match(match_id, score1, score2, round_number=1):
    return Match(
        id=match_id,
        team1=(A, D),
        team2=(B, C),
        round=round_number,
        court="Padel Arenas",
        score1=score1,
        score2=score2,
    )


class TestRecalculateStandings:
    """Tests for rebuilding standings from the ledger."""

    def test_initial_standings_are_zeroed(self):
        standings = initial_standings(ROSTER)

        assert [s.id for s in standings] == ["a", "b", "c", "d"]
        assert all(s.points == s.wins == s.losses == s.games_played == 0 for s in standings)

    def test_points_and_wins(self):
        """Each side earns its own score; only the higher side wins."""
        standings = {s.id: s for s in recalculate_standings(ROSTER, [_match("m1", 6, 4)])}

        assert standings["a"].points == 6
        assert standings["a"].wins == 1
        assert standings["a"].losses == 0
        assert standings["b"].points == 4
        assert standings["b"].wins == 0
        assert standings["b"].losses == 1
        assert standings["d"].games_played == 1

    def test_draw_counts_as_loss_for_both_sides(self):
        """An exact draw credits points but a loss to every player."""
        standings = recalculate_standings(ROSTER, [_match("m1", 5, 5)])

        for standing in standings:
            assert standing.points == 5
            assert standing.wins == 0
            assert standing.losses == 1
            assert standing.games_played == 1

    def test_incomplete_matches_are_ignored(self):
        standings = recalculate_standings(ROSTER, [_match("m1", 6, None)])

        assert all(s.games_played == 0 for s in standings)

    def test_players_outside_roster_are_ignored(self):
        standings = recalculate_standings([A, B], [_match("m1", 6, 4)])

        assert [s.id for s in standings] == ["a", "b"]

    def test_idempotent(self):
        """Recalculating the same ledger twice yields identical output."""
        ledger = [_match("m1", 6, 4), _match("m2", 3, 7, round_number=2)]

        assert recalculate_standings(ROSTER, ledger) == recalculate_standings(ROSTER, ledger)

    def test_wins_plus_losses_equals_games_played(self):
        ledger = [
            _match("m1", 6, 4),
            _match("m2", 5, 5, round_number=2),
            _match("m3", 0, 10, round_number=3),
        ]

        for standing in recalculate_standings(ROSTER, ledger):
            assert standing.wins + standing.losses == standing.games_played
            assert standing.games_played == 3

    def test_group_carried_from_roster(self):
        standings = {s.id: s for s in initial_standings(ROSTER)}

        assert standings["a"].group == "green"
        assert standings["c"].group == "blue"


class TestRankStandings:
    """Tests for the final ranking order."""

    def test_points_then_wins_then_name(self):
        standings = [
            Standing(id="1", name="Zoe", points=10, wins=1),
            Standing(id="2", name="Adam", points=10, wins=1),
            Standing(id="3", name="Mia", points=10, wins=2),
            Standing(id="4", name="Bob", points=12, wins=0),
        ]

        ranked = rank_standings(standings)

        assert [s.name for s in ranked] == ["Bob", "Mia", "Adam", "Zoe"]
        assert [s.final_rank for s in ranked] == [1, 2, 3, 4]

    def test_group_standings(self):
        standings = recalculate_standings(ROSTER, [_match("m1", 6, 4)])

        groups = group_standings(standings, ["green", "blue", "yellow"])

        assert list(groups) == ["green", "blue", "yellow"]
        assert [s.id for s in groups["green"]] == ["a", "b"]
        assert [s.id for s in groups["blue"]] == ["d", "c"]
        assert groups["yellow"] == []
