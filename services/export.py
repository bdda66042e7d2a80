"""
Standings Export

Write a tournament's standings to CSV, or to a PDF results sheet when
reportlab is installed.
"""

import csv
import logging
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from engine.bracket import BracketData, Standing
from engine.standings import group_standings, rank_standings

logger = logging.getLogger(__name__)

# Try to import reportlab for PDF generation
try:
    from reportlab.lib.pagesizes import A4
    from reportlab.lib import colors
    from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
    from reportlab.lib.units import cm
    from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
    from reportlab.lib.enums import TA_CENTER
    HAS_REPORTLAB = True
except ImportError:
    HAS_REPORTLAB = False


CSV_HEADER = ["Rank", "Name", "Points", "Wins", "Losses", "Games Played", "Group"]


def standings_for_export(bracket: BracketData) -> list[Standing]:
    """Final standings when the tournament is over, otherwise the live table ranked."""
    if bracket.final_standings:
        return list(bracket.final_standings)
    return rank_standings(bracket.standings)


def _standing_row(standing: Standing) -> list:
    return [
        standing.final_rank if standing.final_rank is not None else "",
        standing.name,
        standing.points,
        standing.wins,
        standing.losses,
        standing.games_played,
        standing.group or "",
    ]


class StandingsExporter:
    """
    Export tournament standings.

    Supports:
    - CSV (always available)
    - PDF results sheet, with one table per group for Americano
    """

    def __init__(self):
        if HAS_REPORTLAB:
            self.styles = getSampleStyleSheet()
            self._setup_custom_styles()

    def _setup_custom_styles(self) -> None:
        """Set up custom paragraph styles."""
        self.styles.add(ParagraphStyle(
            name='SheetTitle',
            parent=self.styles['Heading1'],
            fontSize=22,
            alignment=TA_CENTER,
            spaceAfter=16,
        ))

        self.styles.add(ParagraphStyle(
            name='SectionHeader',
            parent=self.styles['Heading2'],
            fontSize=14,
            spaceBefore=12,
            spaceAfter=8,
        ))

    def export_csv(self, standings: Iterable[Standing], filepath: Union[str, Path]) -> bool:
        """
        Export standings as CSV.

        Args:
            standings: Ranked standings
            filepath: Output file path

        Returns:
            True if export successful, False otherwise
        """
        try:
            with open(filepath, 'w', newline='', encoding='utf-8') as f:
                writer = csv.writer(f)
                writer.writerow(CSV_HEADER)
                for standing in standings:
                    writer.writerow(_standing_row(standing))
            logger.info("Exported standings CSV to %s", filepath)
            return True

        except OSError as e:
            logger.error("CSV export error: %s", e)
            return False

    def _table(self, rows: list[list]) -> "Table":
        table = Table([CSV_HEADER] + rows, colWidths=[1.5*cm, 5*cm, 2*cm, 2*cm, 2*cm, 2.5*cm, 2*cm])
        table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
            ('ALIGN', (1, 1), (1, -1), 'LEFT'),
            ('GRID', (0, 0), (-1, -1), 1, colors.black),
            ('BACKGROUND', (0, 0), (-1, 0), colors.lightgrey),
            ('FONTSIZE', (0, 0), (-1, -1), 9),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
            ('TOPPADDING', (0, 0), (-1, -1), 6),
        ]))
        return table

    def export_pdf(
        self,
        bracket: BracketData,
        filepath: Union[str, Path],
        title: Optional[str] = None,
    ) -> bool:
        """
        Export a results sheet as PDF.

        Args:
            bracket: Tournament bracket
            filepath: Output file path
            title: Sheet title, defaults to the format name

        Returns:
            True if export successful, False otherwise
        """
        if not HAS_REPORTLAB:
            logger.warning("PDF export requested but reportlab is not installed")
            return False

        try:
            doc = SimpleDocTemplate(
                str(filepath),
                pagesize=A4,
                rightMargin=1*cm,
                leftMargin=1*cm,
                topMargin=1*cm,
                bottomMargin=1*cm,
            )

            elements = [
                Paragraph(title or f"{bracket.format.value} Results", self.styles['SheetTitle']),
                Paragraph(
                    f"Round {bracket.current_round}, {datetime.now():%Y-%m-%d}",
                    self.styles['Normal'],
                ),
                Spacer(1, 0.5*cm),
            ]

            standings = standings_for_export(bracket)
            elements.append(Paragraph("Standings", self.styles['SectionHeader']))
            elements.append(self._table([_standing_row(s) for s in standings]))

            groups = group_standings(standings)
            for color, members in groups.items():
                elements.append(Paragraph(f"Group {color}", self.styles['SectionHeader']))
                elements.append(self._table([_standing_row(s) for s in members]))

            doc.build(elements)
            logger.info("Exported standings PDF to %s", filepath)
            return True

        except OSError as e:
            logger.error("PDF export error: %s", e)
            return False


def check_pdf_support() -> bool:
    """Check if PDF export is available."""
    return HAS_REPORTLAB
