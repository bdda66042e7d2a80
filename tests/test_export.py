"""
Tests for standings export.
"""

import csv

import pytest

from engine import rounds
from services.export import CSV_HEADER, StandingsExporter, check_pdf_support, standings_for_export


class TestStandingsExport:
    """Tests for CSV and PDF export."""

    def test_live_standings_are_ranked(self, make_players, score_round):
        roster = make_players(8)
        bracket = score_round(rounds.generate_round(rounds.create_bracket("Mexicano", roster), roster), roster)

        standings = standings_for_export(bracket)

        assert [s.final_rank for s in standings] == list(range(1, 9))
        assert standings[0].points == 6

    def test_csv(self, make_players, tmp_path):
        bracket = rounds.create_bracket("Americano", make_players(16))
        path = tmp_path / "standings.csv"

        assert StandingsExporter().export_csv(standings_for_export(bracket), path)

        with open(path, newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))
        assert rows[0] == CSV_HEADER
        assert len(rows) == 17
        assert rows[1][6] in {"green", "blue", "yellow", "pink"}

    def test_csv_unwritable_path(self, make_players, tmp_path):
        bracket = rounds.create_bracket("Mexicano", make_players(4))

        assert not StandingsExporter().export_csv(
            standings_for_export(bracket), tmp_path / "missing" / "standings.csv"
        )

    def test_pdf(self, make_players, score_round, tmp_path):
        pytest.importorskip("reportlab")
        roster = make_players(16)
        bracket = score_round(rounds.create_bracket("Americano", roster), roster)
        path = tmp_path / "standings.pdf"

        assert check_pdf_support()
        assert StandingsExporter().export_pdf(bracket, path)
        assert path.read_bytes().startswith(b"%PDF")
