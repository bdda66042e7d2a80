"""
Padel Ladder Application Controller

Top-level controller between the views and the tournament engine. Every
operation loads the latest snapshot from the store, applies one engine
transformation, writes the whole document back and announces the change on
the event bus.
"""

import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import ValidationError as SchemaError
from PySide6.QtCore import QObject

from config import init_config
from engine import rounds
from engine.americano import AmericanoGenerator, assign_groups, groups_edited
from engine.bracket import BracketData, BracketFormat, Player, bracket_to_dict
from engine.exceptions import (
    NotFoundError,
    PersistenceError,
    StateError,
    ValidationError,
)
from engine.scoring import find_match, update_match_score
from models.base import init_db
from models.schemas import RosterPlayer, ScoreEdit, TournamentCreate
from services.bracket_store import BracketStore
from services.event_bus import EventBus
from services.export import StandingsExporter, standings_for_export

logger = logging.getLogger(__name__)


class TournamentController(QObject):
    """
    Application controller for Mexicano and Americano tournaments.

    Usage:
        controller = TournamentController()
        tid = controller.create_tournament("Friday Ladder", "Mexicano", players)
        controller.generate_round(tid)
        controller.update_score(tid, "r1-padel-arenas", "score1", 6)
    """

    def __init__(self, event_bus: Optional[EventBus] = None, store: Optional[BracketStore] = None):
        super().__init__()

        if store is None:
            # Application directories, logging and database
            init_config()
            init_db()
            store = BracketStore()

        self.event_bus = event_bus or EventBus()
        self.store = store

    # ============ Helpers ============

    @contextmanager
    def _reporting(self) -> Iterator[None]:
        """Announce failures on the event bus, then let them propagate."""
        try:
            yield
        except PersistenceError as e:
            logger.error("Persistence failure: %s", e)
            self.event_bus.database_error.emit(str(e))
            raise
        except (ValidationError, StateError, NotFoundError) as e:
            logger.warning("%s: %s", type(e).__name__, e)
            self.event_bus.emit_message("error", str(e))
            raise

    def _load(self, tournament_id: str) -> tuple[BracketData, list[Player]]:
        roster = self.store.load_roster(tournament_id)
        bracket = self.store.load(tournament_id)
        if bracket is None:
            bracket = rounds.create_bracket(self.store.get_format(tournament_id), roster)
        return bracket, roster

    def _publish(self, tournament_id: str, bracket: BracketData) -> None:
        self.event_bus.bracket_updated.emit(tournament_id, bracket_to_dict(bracket))
        self.event_bus.standings_updated.emit(
            tournament_id, [s.to_dict() for s in bracket.standings]
        )

    @staticmethod
    def _validate(schema, **data):
        try:
            return schema(**data)
        except SchemaError as e:
            raise ValidationError(str(e)) from e

    @staticmethod
    def _roster(players: Iterable[Union[dict, RosterPlayer]]) -> list[RosterPlayer]:
        return [p if isinstance(p, RosterPlayer) else RosterPlayer.model_validate(p) for p in players]

    # ============ Tournament Setup ============

    def create_tournament(
        self,
        name: str,
        bracket_format: Union[BracketFormat, str],
        players: Iterable[Union[dict, RosterPlayer]],
    ) -> str:
        """
        Create a tournament with its roster and an empty bracket.

        Americano players without a usable grouping are split into rating
        quartiles here, so the stored roster always carries the groups.

        Returns:
            The new tournament id
        """
        with self._reporting():
            data = self._validate(TournamentCreate, name=name, format=bracket_format, players=list(players))
            roster = [p.to_engine_player() for p in data.players]
            if data.format == BracketFormat.AMERICANO:
                roster = assign_groups(roster)

            bracket = rounds.create_bracket(data.format, roster)
            tournament_id = self.store.create_tournament(data.name, data.format, roster, bracket)

        self._publish(tournament_id, bracket)
        self.event_bus.emit_message("info", f"Tournament {data.name} created")
        return tournament_id

    def create_tournament_from_registered(
        self,
        name: str,
        bracket_format: Union[BracketFormat, str],
        player_ids: Iterable[str],
    ) -> str:
        """Create a tournament from registered player ids."""
        with self._reporting():
            roster = self.store.get_players(player_ids)
        return self.create_tournament(
            name, bracket_format, [RosterPlayer(id=p.id, name=p.name, rating=p.rating) for p in roster]
        )

    def edit_groups(self, tournament_id: str, players: Iterable[Union[dict, RosterPlayer]]) -> BracketData:
        """
        Store a hand-arranged Americano grouping.

        The rounds are regenerated only when the new groups or orders differ
        from the current round-1 line-up; recorded results are then discarded.
        """
        with self._reporting():
            try:
                roster = [p.to_engine_player() for p in self._roster(players)]
            except SchemaError as e:
                raise ValidationError(str(e)) from e
            if len({p.id for p in roster}) != len(roster):
                raise ValidationError("Player ids must be unique")

            bracket, _ = self._load(tournament_id)
            if bracket.format != BracketFormat.AMERICANO:
                raise StateError("Groups can only be edited in Americano tournaments")

            if not groups_edited(bracket, roster):
                self.store.save_roster(tournament_id, roster)
                return bracket

            bracket = AmericanoGenerator().regenerate_rounds(bracket, roster)
            self.store.save_roster(tournament_id, roster, bracket=bracket)

        logger.info("Regenerated Americano rounds for %s after a group edit", tournament_id)
        self._publish(tournament_id, bracket)
        self.event_bus.emit_message("info", "Groups updated, rounds regenerated")
        return bracket

    # ============ Rounds ============

    def can_advance(self, tournament_id: str) -> bool:
        with self._reporting():
            bracket, _ = self._load(tournament_id)
        return rounds.can_advance(bracket)

    def generate_round(self, tournament_id: str) -> BracketData:
        """
        Generate the next round and persist it.

        Raises:
            StateError: If the current round is incomplete or the last round was played
        """
        with self._reporting():
            bracket, roster = self._load(tournament_id)
            bracket = rounds.generate_round(bracket, roster)
            self.store.save(tournament_id, bracket)

        self.event_bus.round_generated.emit(tournament_id, bracket.current_round)
        self._publish(tournament_id, bracket)
        self.event_bus.emit_message("info", f"Round {bracket.current_round} generated")
        return bracket

    def rollback(self, tournament_id: str, round_number: int, confirmed: bool = False) -> BracketData:
        """
        Return to the end of round_number, discarding later results.

        Raises:
            StateError: If the rollback was not confirmed
        """
        with self._reporting():
            bracket, roster = self._load(tournament_id)
            bracket = rounds.rollback_to_round(bracket, roster, round_number, confirmed=confirmed)
            self.store.save(tournament_id, bracket)

        self.event_bus.round_rolled_back.emit(tournament_id, round_number)
        self._publish(tournament_id, bracket)
        self.event_bus.emit_message("warning", f"Rolled back to round {round_number}")
        return bracket

    def reset_current_round(self, tournament_id: str) -> BracketData:
        with self._reporting():
            bracket, roster = self._load(tournament_id)
            bracket = rounds.reset_current_round(bracket, roster)
            self.store.save(tournament_id, bracket)

        self._publish(tournament_id, bracket)
        self.event_bus.emit_message("info", "Current round reset")
        return bracket

    # ============ Scoring ============

    def update_score(self, tournament_id: str, match_id: str, side: str, score: Any) -> BracketData:
        """
        Record one side's score.

        Emits match_updated and standings_updated; round_completed when this
        edit finished the round and tournament_ready_to_end once the last
        round is fully scored.
        """
        with self._reporting():
            edit = self._validate(ScoreEdit, match_id=match_id, side=side, score=score)
            bracket, roster = self._load(tournament_id)
            if bracket.completed:
                raise StateError("Tournament is already completed")

            was_complete = rounds.can_advance(bracket)
            bracket = update_match_score(bracket, roster, edit.match_id, edit.side, edit.score)
            self.store.save(tournament_id, bracket)

        match = find_match(bracket, edit.match_id)
        self.event_bus.match_updated.emit(tournament_id, match.to_dict(bracket.format))
        self._publish(tournament_id, bracket)

        if bracket.live_matches and rounds.can_advance(bracket) and not was_complete:
            self.event_bus.round_completed.emit(tournament_id, bracket.current_round)
        if rounds.is_tournament_completed(bracket):
            self.event_bus.tournament_ready_to_end.emit(tournament_id)
        return bracket

    def recalc_standings(self, tournament_id: str) -> BracketData:
        """Rebuild standings from the stored ledger."""
        with self._reporting():
            bracket, roster = self._load(tournament_id)
            bracket = rounds.recalc_standings(bracket, roster)
            self.store.save(tournament_id, bracket)

        self.event_bus.standings_updated.emit(
            tournament_id, [s.to_dict() for s in bracket.standings]
        )
        return bracket

    # ============ Tournament End ============

    def end_tournament(self, tournament_id: str) -> BracketData:
        """
        Freeze the final ranking.

        Raises:
            StateError: If rounds remain to be played or scored
        """
        with self._reporting():
            bracket, _ = self._load(tournament_id)
            bracket = rounds.complete_tournament(bracket)
            self.store.save(tournament_id, bracket)

        final = [s.to_dict() for s in bracket.final_standings]
        self.event_bus.tournament_completed.emit(tournament_id, final)
        self._publish(tournament_id, bracket)
        self.event_bus.emit_message("info", "Tournament completed")
        return bracket

    def export_standings(self, tournament_id: str, filepath: Union[str, Path], format: str = "csv") -> bool:
        """
        Export the standings.

        Args:
            tournament_id: Tournament to export
            filepath: Output file path
            format: "csv" or "pdf"

        Returns:
            True if export successful
        """
        with self._reporting():
            bracket, _ = self._load(tournament_id)

        exporter = StandingsExporter()

        if format == "csv":
            return exporter.export_csv(standings_for_export(bracket), filepath)
        elif format == "pdf":
            return exporter.export_pdf(bracket, filepath)

        return False
