"""
Tests for the Bracket Store and the document codec.

Uses an in-memory SQLite database shared through a StaticPool.
"""

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import StaticPool

from engine import rounds
from engine.bracket import (
    BracketFormat,
    Player,
    bracket_from_dict,
    bracket_to_dict,
)
from engine.exceptions import NotFoundError, PersistenceError, ValidationError
from models.base import init_db, make_engine, make_session_factory
from models.schemas import PlayerCreate
from services.bracket_store import BracketStore


@pytest.fixture
def db_engine():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(db_engine):
    return BracketStore(make_session_factory(db_engine))


class TestDocumentCodec:
    """Tests for the camelCase JSON document."""

    def test_mexicano_document_shape(self, make_players, score_round):
        roster = make_players(8)
        bracket = score_round(rounds.generate_round(rounds.create_bracket("Mexicano", roster), roster), roster)

        document = bracket_to_dict(bracket)

        assert document["format"] == "Mexicano"
        assert document["currentRound"] == 1
        match = document["courts"][0]["matches"][0]
        assert match["courtName"] == "Padel Arenas"
        assert match["completed"] is True
        assert "groupColor" not in match
        assert document["standings"][0]["gamesPlayed"] == 1

    def test_americano_document_shape(self, make_players):
        bracket = rounds.create_bracket("Americano", make_players(16))

        document = bracket_to_dict(bracket)

        match = document["rounds"][0]["matches"][0]
        assert match["court"] == "Padel Arenas"
        assert match["groupColor"] == "green"
        assert document["rounds"][0]["completed"] is False

    def test_round_trip(self, make_players, score_round):
        roster = make_players(16)
        bracket = score_round(rounds.create_bracket("Americano", roster), roster)

        assert bracket_from_dict(bracket_to_dict(bracket)) == bracket

    def test_legacy_ranking_key(self):
        assert Player.from_dict({"id": "x", "name": "X", "ranking": 7}).rating == 7

    def test_malformed_player_rejected(self):
        with pytest.raises(ValidationError):
            Player.from_dict({"name": "No id"})
        with pytest.raises(ValidationError):
            Player.from_dict({"id": "x", "rating": "high"})

    @pytest.mark.parametrize("score", ["6", 6.0, True])
    def test_non_integer_score_rejected(self, make_players, score_round, score):
        roster = make_players(8)
        bracket = score_round(rounds.generate_round(rounds.create_bracket("Mexicano", roster), roster), roster)
        document = bracket_to_dict(bracket)
        document["completedMatches"][0]["score1"] = score

        with pytest.raises(ValidationError, match="must be an integer"):
            bracket_from_dict(document)

    def test_unknown_format_rejected(self):
        with pytest.raises(ValidationError):
            bracket_from_dict({"format": "Swiss"})


class TestBracketStore:
    """Tests for BracketStore persistence."""

    def test_save_and_load(self, store, make_players, score_round):
        roster = make_players(8)
        tournament_id = store.create_tournament("Friday", BracketFormat.MEXICANO, roster)
        bracket = score_round(rounds.generate_round(rounds.create_bracket("Mexicano", roster), roster), roster)

        store.save(tournament_id, bracket)

        assert store.load(tournament_id) == bracket

    def test_load_without_bracket(self, store, make_players):
        tournament_id = store.create_tournament("Friday", BracketFormat.MEXICANO, make_players(4))

        assert store.load(tournament_id) is None
        assert store.get_format(tournament_id) == BracketFormat.MEXICANO

    def test_roster_round_trip(self, store, make_players):
        roster = make_players(4, group="green")
        tournament_id = store.create_tournament("Friday", BracketFormat.AMERICANO, roster)

        assert store.load_roster(tournament_id) == roster

        updated = [Player(id=p.id, name=p.name, rating=p.rating, group="blue") for p in roster]
        store.save_roster(tournament_id, updated)

        assert store.load_roster(tournament_id) == updated

    def test_roster_saved_with_bracket(self, store, make_players):
        roster = make_players(16, group="green")
        tournament_id = store.create_tournament("Friday", BracketFormat.AMERICANO, roster)
        bracket = rounds.create_bracket("Americano", roster)

        store.save_roster(tournament_id, roster, bracket=bracket)

        assert store.load(tournament_id) == bracket
        assert store.load_roster(tournament_id) == roster

    def test_failed_bracket_write_keeps_roster(self, db_engine, store, make_players):
        """Roster and bracket are written together or not at all."""
        roster = make_players(16, group="green")
        tournament_id = store.create_tournament("Friday", BracketFormat.AMERICANO, roster)
        with db_engine.begin() as connection:
            connection.exec_driver_sql(
                "CREATE TRIGGER reject_bracket BEFORE UPDATE OF bracket_json ON tournaments "
                "BEGIN SELECT RAISE(ABORT, 'bracket rejected'); END"
            )
        updated = [Player(id=p.id, name=p.name, rating=p.rating, group="blue") for p in roster]

        with pytest.raises(PersistenceError):
            store.save_roster(tournament_id, updated, bracket=rounds.create_bracket("Americano", updated))

        assert store.load_roster(tournament_id) == roster
        assert store.load(tournament_id) is None

    def test_unknown_tournament(self, store, make_players):
        with pytest.raises(NotFoundError):
            store.load("missing")
        with pytest.raises(NotFoundError):
            store.save("missing", rounds.create_bracket("Mexicano", make_players(4)))

    def test_list_tournaments(self, store, make_players):
        store.create_tournament("Friday", BracketFormat.MEXICANO, make_players(4))

        listed = store.list_tournaments()

        assert [t.name for t in listed] == ["Friday"]
        assert listed[0].format == "Mexicano"

    def test_registered_players(self, store):
        low = store.add_player(PlayerCreate(name="  Low ", rating=2))
        high = store.add_player(PlayerCreate(name="High", rating=9))

        assert [p.name for p in store.list_players()] == ["High", "Low"]
        players = store.get_players([low.id, high.id])
        assert [p.rating for p in players] == [2, 9]

        with pytest.raises(NotFoundError):
            store.get_players(["nobody"])

    def test_database_failure_wrapped(self, db_engine, make_players):
        store = BracketStore(make_session_factory(db_engine))
        tournament_id = store.create_tournament("Friday", BracketFormat.MEXICANO, make_players(4))
        with db_engine.begin() as connection:
            connection.exec_driver_sql("DROP TABLE tournaments")

        with pytest.raises(PersistenceError) as exc_info:
            store.load(tournament_id)

        assert isinstance(exc_info.value.__cause__, OperationalError)
