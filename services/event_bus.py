"""
Event Bus - Central signal hub for inter-module communication.

The controller announces every state change here; views connect to the bus
rather than to the controller or the engine.
"""

from PySide6.QtCore import QObject, Signal


class EventBus(QObject):
    """
    Central signal hub for Padel Ladder.

    - TournamentController emits after every persisted change
    - Bracket, standings and court views listen and redraw

    Payloads are the JSON-ready dicts of the stored document, so listeners
    never hold a reference into engine state.

    Usage:
        # In TournamentController
        self.event_bus.match_updated.emit(match_dict)

        # In a standings view
        self.event_bus.standings_updated.connect(self._on_standings_updated)
    """

    # ============ Bracket Lifecycle ============
    bracket_updated = Signal(str, dict)     # tournament_id, bracket document
    round_generated = Signal(str, int)      # tournament_id, round_number
    round_rolled_back = Signal(str, int)    # tournament_id, round returned to

    # ============ Scoring Events ============
    match_updated = Signal(str, dict)       # tournament_id, match dict
    standings_updated = Signal(str, list)   # tournament_id, [standing dicts]
    round_completed = Signal(str, int)      # tournament_id, round_number

    # ============ Tournament Lifecycle ============
    tournament_ready_to_end = Signal(str)   # tournament_id
    tournament_completed = Signal(str, list)  # tournament_id, final standings

    # ============ System Events ============
    database_error = Signal(str)        # Database error message
    system_message = Signal(str, str)   # (level, message) - e.g., ("info", "Round 2 generated")

    def __init__(self):
        super().__init__()

    def emit_message(self, level: str, message: str) -> None:
        """Emit a system message (info, warning, error)."""
        self.system_message.emit(level, message)
