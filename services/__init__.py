"""
Padel Ladder Services

Application services for event handling, persistence, and export.
"""

from services.bracket_store import BracketStore
from services.event_bus import EventBus
from services.export import StandingsExporter, check_pdf_support

__all__ = ["BracketStore", "EventBus", "StandingsExporter", "check_pdf_support"]
