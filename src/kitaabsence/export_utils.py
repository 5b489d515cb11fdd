import os
import tempfile
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from kitaabsence.charts import create_bar_chart
from kitaabsence.date_range import MONTH_NAMES
from kitaabsence.statistics import summarize_month

WEEKDAY_ABBR = ["Mo", "Di", "Mi", "Do", "Fr", "Sa", "So"]

COLOR_HEADER = colors.Color(59 / 255, 130 / 255, 246 / 255)
COLOR_ALT_ROW = colors.Color(248 / 255, 250 / 255, 252 / 255)
COLOR_HIGHLIGHT_BG = colors.Color(254 / 255, 226 / 255, 226 / 255)
COLOR_HIGHLIGHT_TEXT = colors.Color(185 / 255, 28 / 255, 28 / 255)

ROW_HEIGHT = 16
COL_X = (50, 120, 230)
COL_COUNT_WIDTH = 70
TABLE_WIDTH = COL_X[2] + COL_COUNT_WIDTH - COL_X[0]


def month_title(year: int, month: int) -> str:
    return f"Abwesenheiten {MONTH_NAMES[month - 1]} {year}"


def export_filename(year: int, month: int) -> str:
    return f"Abwesenheiten_{year:04d}-{month:02d}.pdf"


def summary_text(stats: List[Dict]) -> str:
    s = summarize_month(stats)
    return (f"Tage mit Abwesenheiten: {s['days_with_absences']} | "
            f"Gesamt: {s['total_absence_days']} Abwesenheitstage")


def format_stat_row(entry: Dict) -> Tuple[str, str, str]:
    """Tabellenzeile (Wochentag, TT.MM.JJJJ, Anzahl) für einen Tageseintrag."""
    d = date.fromisoformat(entry['date'])
    return WEEKDAY_ABBR[d.weekday()], d.strftime('%d.%m.%Y'), str(int(entry['count']))


def _draw_footer(c, stamp: str):
    c.setFont('Helvetica', 8)
    c.setFillColor(colors.grey)
    c.drawString(COL_X[0], 28, f"Erstellt am {stamp}")
    c.setFillColor(colors.black)


def _draw_table_header(c, y: float) -> float:
    c.setFillColor(COLOR_HEADER)
    c.rect(COL_X[0] - 4, y - 5, TABLE_WIDTH + 8, ROW_HEIGHT + 2, stroke=0, fill=1)
    c.setFillColor(colors.white)
    c.setFont('Helvetica-Bold', 10)
    c.drawString(COL_X[0], y, "Tag")
    c.drawString(COL_X[1], y, "Datum")
    c.drawCentredString(COL_X[2] + COL_COUNT_WIDTH / 2, y, "Abwesend")
    c.setFillColor(colors.black)
    return y - ROW_HEIGHT - 2


def _draw_row(c, y: float, row: Tuple[str, str, str], index: int):
    highlighted = row[2] != '0'
    if index % 2 == 1:
        c.setFillColor(COLOR_ALT_ROW)
        c.rect(COL_X[0] - 4, y - 4, TABLE_WIDTH + 8, ROW_HEIGHT, stroke=0, fill=1)
    if highlighted:
        c.setFillColor(COLOR_HIGHLIGHT_BG)
        c.rect(COL_X[2], y - 4, COL_COUNT_WIDTH, ROW_HEIGHT, stroke=0, fill=1)
    c.setFillColor(colors.black)
    c.setFont('Helvetica', 9)
    c.drawString(COL_X[0], y, row[0])
    c.drawString(COL_X[1], y, row[1])
    if highlighted:
        c.setFillColor(COLOR_HIGHLIGHT_TEXT)
        c.setFont('Helvetica-Bold', 9)
    c.drawCentredString(COL_X[2] + COL_COUNT_WIDTH / 2, y, row[2])
    c.setFillColor(colors.black)


def export_month_pdf(stats: List[Dict], year: int, month: int, filename: str,
                     generated_at: Optional[datetime] = None,
                     include_chart: bool = True) -> str:
    """
    Schreibt die Tagesstatistik eines Monats als PDF.

    Titel, Zusammenfassung, eine Zeile pro Kalendertag (Tage mit Abwesenheiten
    hervorgehoben) und auf jeder Seite ein Fußtext mit dem Erstellungszeitpunkt.
    Optional folgt eine Seite mit Balkendiagramm. Es werden keine Daten nachgeladen.
    """
    stamp = (generated_at or datetime.now()).strftime('%d.%m.%Y %H:%M')
    c = canvas.Canvas(filename, pagesize=A4)
    c.setTitle(month_title(year, month))
    w, h = A4
    y = h - 50
    c.setFont('Helvetica-Bold', 18)
    c.drawString(COL_X[0], y, month_title(year, month))
    y -= 22
    c.setFont('Helvetica', 10)
    c.setFillColor(colors.grey)
    c.drawString(COL_X[0], y, summary_text(stats))
    c.setFillColor(colors.black)
    y -= 30
    y = _draw_table_header(c, y)

    for i, entry in enumerate(stats):
        if y < 60:
            _draw_footer(c, stamp)
            c.showPage()
            y = _draw_table_header(c, h - 50)
        _draw_row(c, y, format_stat_row(entry), i)
        y -= ROW_HEIGHT

    counts = [int(s['count']) for s in stats]
    if include_chart and sum(counts) > 0:
        _draw_footer(c, stamp)
        c.showPage()
        with tempfile.TemporaryDirectory() as tmp:
            png = os.path.join(tmp, 'abwesenheiten.png')
            labels = [str(date.fromisoformat(s['date']).day) for s in stats]
            create_bar_chart(counts, labels, png, title='Abwesenheiten pro Tag')
            img_w = w - 2 * COL_X[0]
            img_h = img_w * 3 / 8
            c.drawImage(png, COL_X[0], h - 80 - img_h, width=img_w, height=img_h)
            _draw_footer(c, stamp)
            c.save()
        return filename

    _draw_footer(c, stamp)
    c.save()
    return filename
