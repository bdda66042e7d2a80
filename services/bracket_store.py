"""
Bracket Store - Persists tournaments, rosters and bracket documents.

Every bracket is stored as one JSON document on its tournament row and is
always written whole, never patched.
"""

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from engine.bracket import (
    BracketData,
    BracketFormat,
    Player,
    bracket_from_dict,
    bracket_to_dict,
    roster_from_dicts,
)
from engine.exceptions import NotFoundError, PersistenceError
from models.base import get_session, get_session_factory
from models.player import Player as PlayerRecord
from models.schemas import PlayerCreate, PlayerResponse, TournamentResponse
from models.tournament import Tournament, TournamentStatus

logger = logging.getLogger(__name__)


class BracketStore:
    """
    SQLAlchemy-backed persistence for the tournament controller.

    Usage:
        store = BracketStore()
        tournament_id = store.create_tournament("Friday Ladder", BracketFormat.MEXICANO, roster)
        bracket = store.load(tournament_id)
        store.save(tournament_id, bracket)
    """

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        """
        Args:
            session_factory: Session factory to use, defaults to the application database
        """
        self._session_factory = session_factory or get_session_factory()

    def _session(self):
        return get_session(self._session_factory)

    @staticmethod
    def _get_tournament(session, tournament_id: str) -> Tournament:
        tournament = session.get(Tournament, tournament_id)
        if tournament is None:
            raise NotFoundError(f"Tournament not found: {tournament_id}")
        return tournament

    # ============ Players ============

    def add_player(self, data: PlayerCreate) -> PlayerResponse:
        """Register a player."""
        try:
            with self._session() as session:
                record = PlayerRecord(name=data.name, rating=data.rating)
                session.add(record)
                session.flush()
                return PlayerResponse.model_validate(record)
        except SQLAlchemyError as e:
            logger.error("Failed to add player %s: %s", data.name, e)
            raise PersistenceError(f"Could not save player {data.name}") from e

    def list_players(self) -> list[PlayerResponse]:
        """Registered players, best rated first."""
        try:
            with self._session() as session:
                records = session.scalars(
                    select(PlayerRecord).order_by(PlayerRecord.rating.desc(), PlayerRecord.name)
                ).all()
                return [PlayerResponse.model_validate(r) for r in records]
        except SQLAlchemyError as e:
            logger.error("Failed to list players: %s", e)
            raise PersistenceError("Could not load players") from e

    def get_players(self, player_ids: Iterable[str]) -> list[Player]:
        """
        Engine players for the given registered ids, in the given order.

        Raises:
            NotFoundError: If an id is not registered
        """
        player_ids = list(player_ids)
        try:
            with self._session() as session:
                records = {
                    r.id: r for r in session.scalars(
                        select(PlayerRecord).where(PlayerRecord.id.in_(player_ids))
                    )
                }
                missing = [pid for pid in player_ids if pid not in records]
                if missing:
                    raise NotFoundError(f"Unknown players: {', '.join(missing)}")
                return [records[pid].to_engine_player() for pid in player_ids]
        except SQLAlchemyError as e:
            logger.error("Failed to load players: %s", e)
            raise PersistenceError("Could not load players") from e

    # ============ Tournaments ============

    def create_tournament(
        self,
        name: str,
        bracket_format: BracketFormat,
        roster: Iterable[Player],
        bracket: Optional[BracketData] = None,
    ) -> str:
        """
        Create a tournament row with its roster and optional initial bracket.

        Returns:
            The new tournament id
        """
        try:
            with self._session() as session:
                tournament = Tournament(name=name, format=bracket_format.value)
                tournament.players = [p.to_dict() for p in roster]
                if bracket is not None:
                    tournament.bracket = bracket_to_dict(bracket)
                session.add(tournament)
                session.flush()
                logger.info("Created %s tournament %s (%s)", bracket_format.value, tournament.id, name)
                return tournament.id
        except SQLAlchemyError as e:
            logger.error("Failed to create tournament %s: %s", name, e)
            raise PersistenceError(f"Could not create tournament {name}") from e

    def list_tournaments(self) -> list[TournamentResponse]:
        try:
            with self._session() as session:
                rows = session.scalars(
                    select(Tournament).order_by(Tournament.created_at.desc())
                ).all()
                return [TournamentResponse.model_validate(t) for t in rows]
        except SQLAlchemyError as e:
            logger.error("Failed to list tournaments: %s", e)
            raise PersistenceError("Could not load tournaments") from e

    def load(self, tournament_id: str) -> Optional[BracketData]:
        """
        Load the latest bracket snapshot.

        Returns:
            The bracket, or None if none was saved yet

        Raises:
            NotFoundError: If the tournament does not exist
            PersistenceError: On database failure
        """
        try:
            with self._session() as session:
                document = self._get_tournament(session, tournament_id).bracket
        except SQLAlchemyError as e:
            logger.error("Failed to load bracket for %s: %s", tournament_id, e)
            raise PersistenceError(f"Could not load bracket for tournament {tournament_id}") from e

        if document is None:
            return None
        return bracket_from_dict(document)

    @staticmethod
    def _write_bracket(tournament: Tournament, bracket: BracketData) -> None:
        now = datetime.now(timezone.utc)
        tournament.bracket = bracket_to_dict(bracket)
        tournament.updated_at = now
        if bracket.completed:
            tournament.status = TournamentStatus.COMPLETED
            tournament.completed_at = tournament.completed_at or now
        elif bracket.current_round > 0:
            tournament.status = TournamentStatus.ONGOING
            tournament.completed_at = None
        else:
            tournament.status = TournamentStatus.CREATED

    def save(self, tournament_id: str, bracket: BracketData) -> None:
        """
        Replace the stored bracket document.

        Raises:
            NotFoundError: If the tournament does not exist
            PersistenceError: On database failure
        """
        try:
            with self._session() as session:
                self._write_bracket(self._get_tournament(session, tournament_id), bracket)
            logger.debug("Saved bracket for %s at round %d", tournament_id, bracket.current_round)
        except SQLAlchemyError as e:
            logger.error("Failed to save bracket for %s: %s", tournament_id, e)
            raise PersistenceError(f"Could not save bracket for tournament {tournament_id}") from e

    def load_roster(self, tournament_id: str) -> list[Player]:
        try:
            with self._session() as session:
                entries = self._get_tournament(session, tournament_id).players
        except SQLAlchemyError as e:
            logger.error("Failed to load roster for %s: %s", tournament_id, e)
            raise PersistenceError(f"Could not load roster for tournament {tournament_id}") from e
        return roster_from_dicts(entries)

    def save_roster(
        self,
        tournament_id: str,
        roster: Iterable[Player],
        bracket: Optional[BracketData] = None,
    ) -> None:
        """
        Replace the stored roster, and the bracket with it when one is given.

        Both documents are written in one transaction; on failure neither
        changes.

        Raises:
            NotFoundError: If the tournament does not exist
            PersistenceError: On database failure
        """
        entries = [p.to_dict() for p in roster]
        try:
            with self._session() as session:
                tournament = self._get_tournament(session, tournament_id)
                tournament.players = entries
                tournament.updated_at = datetime.now(timezone.utc)
                if bracket is not None:
                    self._write_bracket(tournament, bracket)
        except SQLAlchemyError as e:
            logger.error("Failed to save roster for %s: %s", tournament_id, e)
            raise PersistenceError(f"Could not save roster for tournament {tournament_id}") from e

    def get_format(self, tournament_id: str) -> BracketFormat:
        try:
            with self._session() as session:
                return BracketFormat(self._get_tournament(session, tournament_id).format)
        except SQLAlchemyError as e:
            logger.error("Failed to load tournament %s: %s", tournament_id, e)
            raise PersistenceError(f"Could not load tournament {tournament_id}") from e
