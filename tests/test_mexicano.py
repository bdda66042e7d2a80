"""
Tests for the Mexicano Round Generator

Covers round 1 seeding, ladder movement, drawn-match splitting, conflict
resolution and the round-advance guard.
"""

import pytest

from engine.bracket import Match, MexicanoBracket, Player
from engine.exceptions import StateError, ValidationError
from engine.mexicano import (
    COURT_ORDER,
    MexicanoGenerator,
    determine_assignments,
    game_score,
    next_court,
    resolve_conflicts,
)
from engine.scoring import update_match_score


def _ids(team):
    return {p.id for p in team}


class TestFirstRound:
    """Tests for rating-based seeding."""

    def test_four_players_pairing(self):
        """Ratings [10, 9, 8, 7] pair as {10, 7} vs {9, 8}."""
        roster = [
            Player(id="r8", name="Eight", rating=8),
            Player(id="r10", name="Ten", rating=10),
            Player(id="r7", name="Seven", rating=7),
            Player(id="r9", name="Nine", rating=9),
        ]
        generator = MexicanoGenerator()

        bracket = generator.generate_next(generator.create_bracket(roster), roster)

        match = bracket.courts[0].matches[0]
        assert bracket.current_round == 1
        assert match.court == "Padel Arenas"
        assert match.id == "r1-padel-arenas"
        assert _ids(match.team1) == {"r10", "r7"}
        assert _ids(match.team2) == {"r9", "r8"}

    def test_sixteen_players_fill_courts_in_order(self, make_players):
        roster = make_players(16)
        generator = MexicanoGenerator()

        bracket = generator.generate_next(generator.create_bracket(roster), roster)

        assert [c.name for c in bracket.courts] == list(COURT_ORDER)
        last = bracket.courts[3].matches[0]
        assert _ids(last.team1) == {"P13", "P16"}
        assert _ids(last.team2) == {"P14", "P15"}

    def test_short_chunk_is_dropped(self, make_players):
        """Six players fill one court; the remaining two sit out."""
        roster = make_players(6)
        generator = MexicanoGenerator()

        bracket = generator.generate_next(generator.create_bracket(roster), roster)

        assert len(bracket.courts[0].matches) == 1
        assert all(not c.matches for c in bracket.courts[1:])

    def test_new_bracket_is_empty(self, make_players):
        bracket = MexicanoGenerator().create_bracket(make_players(8))

        assert bracket.current_round == 0
        assert bracket.live_matches == ()
        assert len(bracket.standings) == 8


class TestMovement:
    """Tests for the ladder movement table."""

    def test_coolbet_win_moves_up(self):
        assert next_court("Coolbet", "win") == "Padel Arenas"

    def test_coolbet_loss_moves_down(self):
        assert next_court("Coolbet", "loss") == "Lux Express"

    def test_ladder_ends_stay(self):
        assert next_court("Padel Arenas", "win") == "Padel Arenas"
        assert next_court("3p Logistics", "loss") == "3p Logistics"

    def test_unknown_court_rejected(self):
        with pytest.raises(ValidationError):
            next_court("Centre Court", "win")

    def test_game_score(self):
        assert game_score(6, 7.5) == 607.5


class TestDrawSplit:
    """
    A drawn match splits each team by GameScore.

    Unlike the standings, where a draw is a loss for everybody, here the
    stronger player of each pair moves as a winner.
    """

    def _bracket(self, team1, team2, score):
        match = Match(
            id="r1-coolbet", team1=team1, team2=team2, round=1,
            court="Coolbet", score1=score, score2=score,
        )
        return MexicanoBracket(current_round=1, completed_matches=(match,))

    def test_higher_game_score_moves_up(self):
        a = Player(id="a", name="A", rating=5)
        b = Player(id="b", name="B", rating=3)
        c = Player(id="c", name="C", rating=4)
        d = Player(id="d", name="D", rating=2)

        assignments = determine_assignments(self._bracket((a, b), (c, d), 5))

        assert assignments == {
            "a": "Padel Arenas",
            "b": "Lux Express",
            "c": "Padel Arenas",
            "d": "Lux Express",
        }

    def test_equal_game_score_first_player_loses(self):
        a = Player(id="a", name="A", rating=3)
        b = Player(id="b", name="B", rating=3)
        c = Player(id="c", name="C", rating=4)
        d = Player(id="d", name="D", rating=2)

        assignments = determine_assignments(self._bracket((a, b), (c, d), 4))

        assert assignments["a"] == "Lux Express"
        assert assignments["b"] == "Padel Arenas"


class TestConflictResolution:
    """Tests for balancing courts back to four players."""

    def test_surplus_moves_lowest_player_down(self):
        roster = [Player(id=f"x{i}", name=f"X{i}", rating=i) for i in range(8)]
        assignments = {f"x{i}": "Padel Arenas" for i in range(5)}
        assignments.update({f"x{i}": "Coolbet" for i in range(5, 8)})
        scores = {f"x{i}": 100 + i for i in range(8)}

        resolved = resolve_conflicts(assignments, roster, scores)

        assert resolved["x0"] == "Coolbet"
        assert sum(1 for c in resolved.values() if c == "Padel Arenas") == 4
        assert sum(1 for c in resolved.values() if c == "Coolbet") == 4

    def test_surplus_moves_highest_player_up(self):
        roster = [Player(id=f"x{i}", name=f"X{i}", rating=i) for i in range(8)]
        assignments = {f"x{i}": "Padel Arenas" for i in range(3)}
        assignments.update({f"x{i}": "Coolbet" for i in range(3, 8)})
        scores = {f"x{i}": 100 + i for i in range(8)}

        resolved = resolve_conflicts(assignments, roster, scores)

        assert resolved["x7"] == "Padel Arenas"

    def test_unassigned_player_fills_deficit(self):
        roster = [Player(id=f"x{i}", name=f"X{i}", rating=i) for i in range(4)]
        assignments = {"x0": "Padel Arenas", "x1": "Padel Arenas", "x2": "Padel Arenas"}

        resolved = resolve_conflicts(assignments, roster, {})

        assert resolved["x3"] == "Padel Arenas"

    def test_short_roster_merges_upwards(self):
        """Two half-filled courts become one full court at the top."""
        roster = [Player(id=f"x{i}", name=f"X{i}", rating=i) for i in range(4)]
        assignments = {"x0": "Padel Arenas", "x1": "Padel Arenas", "x2": "Coolbet", "x3": "Coolbet"}

        resolved = resolve_conflicts(assignments, roster, {})

        assert set(resolved.values()) == {"Padel Arenas"}


class TestSubsequentRounds:
    """Tests for generating rounds 2-4."""

    def test_sixteen_players_round_two(self, make_players, score_round):
        """team1 wins everywhere; check who lands where and how they pair."""
        roster = make_players(16)
        generator = MexicanoGenerator()
        bracket = generator.generate_next(generator.create_bracket(roster), roster)
        bracket = score_round(bracket, roster, 6, 2)

        bracket = generator.generate_next(bracket, roster)

        courts = {c.name: c.matches[0] for c in bracket.courts}
        assert bracket.current_round == 2

        top = courts["Padel Arenas"]
        assert top.id == "r2-padel-arenas"
        assert _ids(top.team1) == {"P1", "P8"}
        assert _ids(top.team2) == {"P4", "P5"}

        second = courts["Coolbet"]
        assert _ids(second.team1) == {"P9", "P3"}
        assert _ids(second.team2) == {"P12", "P2"}

        assert _ids(courts["3p Logistics"].players) == {"P10", "P11", "P14", "P15"}

    def test_four_players_keep_playing(self, make_players, score_round):
        roster = make_players(4)
        generator = MexicanoGenerator()
        bracket = generator.generate_next(generator.create_bracket(roster), roster)
        bracket = score_round(bracket, roster, 5, 5)

        bracket = generator.generate_next(bracket, roster)

        assert len(bracket.live_matches) == 1
        assert bracket.live_matches[0].court == "Padel Arenas"


class TestRoundAdvance:
    """Tests for the round-advance guard."""

    def test_incomplete_round_blocks_advance(self, make_players):
        roster = make_players(8)
        generator = MexicanoGenerator()
        bracket = generator.generate_next(generator.create_bracket(roster), roster)
        first = bracket.live_matches[0]

        bracket = update_match_score(bracket, roster, first.id, "score1", 6)

        assert not generator.can_advance(bracket)
        with pytest.raises(StateError):
            generator.generate_next(bracket, roster)

    def test_complete_round_allows_advance(self, make_players, score_round):
        roster = make_players(8)
        generator = MexicanoGenerator()
        bracket = generator.generate_next(generator.create_bracket(roster), roster)

        bracket = score_round(bracket, roster)

        assert generator.can_advance(bracket)

    def test_no_fifth_round(self, make_players, score_round):
        roster = make_players(8)
        generator = MexicanoGenerator()
        bracket = generator.create_bracket(roster)
        for _ in range(4):
            bracket = score_round(generator.generate_next(bracket, roster), roster)

        with pytest.raises(StateError):
            generator.generate_next(bracket, roster)


class TestRollbackAndReset:
    """Tests for returning to an earlier round."""

    def _play(self, roster, generator, score_round, rounds):
        bracket = generator.create_bracket(roster)
        for _ in range(rounds):
            bracket = score_round(generator.generate_next(bracket, roster), roster)
        return bracket

    def test_rollback_from_round_four_to_two(self, make_players, score_round):
        roster = make_players(16)
        generator = MexicanoGenerator()
        bracket = self._play(roster, generator, score_round, 4)

        rolled = generator.rollback_to_round(bracket, roster, 2)

        assert rolled.current_round == 2
        assert {m.round for m in rolled.completed_matches} == {1, 2}
        assert len(rolled.completed_matches) == 8
        assert rolled.live_matches == ()
        assert all(s.games_played == 2 for s in rolled.standings)

    def test_round_regenerated_after_rollback(self, make_players, score_round):
        roster = make_players(16)
        generator = MexicanoGenerator()
        bracket = self._play(roster, generator, score_round, 3)
        third = bracket.live_matches

        rolled = generator.rollback_to_round(bracket, roster, 2)
        regenerated = generator.generate_next(rolled, roster)

        assert [(m.id, m.team1, m.team2) for m in regenerated.live_matches] == \
            [(m.id, m.team1, m.team2) for m in third]

    def test_reset_current_round(self, make_players, score_round):
        roster = make_players(8)
        generator = MexicanoGenerator()
        bracket = self._play(roster, generator, score_round, 2)

        reset = generator.reset_current_round(bracket, roster)

        assert reset.current_round == 1
        assert reset.live_matches == ()
        assert {m.round for m in reset.completed_matches} == {1}
        assert all(s.games_played == 1 for s in reset.standings)
