from __future__ import annotations

import io
import logging
from collections.abc import Sequence
from datetime import datetime, tzinfo
from pathlib import Path

import pandas as pd
from bidi.algorithm import get_display
from reportlab.lib.pagesizes import A4
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont
from reportlab.pdfgen import canvas

from app.categories import CATEGORIES, Category
from app.formatting import ENGLISH, HEBREW, DateFormatter
from app.grid import DayRow, build_grid, filter_by_range
from app.models import Measurement
from app.ranges import RangeThresholds, classify
from app.report_range import ExportRange

HEBREW_FONT_NAME = "SugarMamaHebrew"

REPORT_TEXT = {
    "he": {
        "title": "דוח מעקב גלוקוז",
        "notes": [
            "טווחי ברירת מחדל: צום עד 95, אחרי ארוחות עד 120 (mg/dL).",
            "הטווחים כאן כלליים בלבד. פעלי לפי ההמלצות האישיות מהרופא/ה או הדיאטנית.",
            "הדוח הוא למעקב בלבד ואינו מחליף ייעוץ רפואי.",
        ],
        "date": "תאריך",
        "empty": "אין מדידות להצגה בטווח שנבחר.",
    },
    "en": {
        "title": "Glucose tracking report",
        "notes": [
            "Default ranges: fasting up to 95, after meals up to 120 (mg/dL).",
            "These ranges are general only. Follow the personal guidance of your doctor or dietitian.",
            "This report is for tracking only and does not replace medical advice.",
        ],
        "date": "Date",
        "empty": "No measurements in the selected range.",
    },
}

logger = logging.getLogger(__name__)


def measurements_to_frame(
    measurements: Sequence[Measurement],
    local_tz: tzinfo,
    formatter: DateFormatter = HEBREW,
) -> pd.DataFrame:
    columns = ["recorded_at", "category", "value", "unit", "status"]
    if not measurements:
        return pd.DataFrame(columns=columns)
    df = pd.DataFrame(
        {
            "recorded_at": [m.instant.astimezone(local_tz).replace(tzinfo=None) for m in measurements],
            "category": [formatter.category_label(m.category) for m in measurements],
            "value": [m.value for m in measurements],
            "unit": [m.unit for m in measurements],
            "status": [formatter.status_label(m.status) for m in measurements],
        }
    )
    df["recorded_at"] = pd.to_datetime(df["recorded_at"])
    return df.sort_values("recorded_at", ascending=False).reset_index(drop=True)


def dataframe_to_csv_bytes(df: pd.DataFrame) -> bytes:
    # BOM so spreadsheet apps pick up the Hebrew text
    return df.to_csv(index=False).encode("utf-8-sig")


def report_rows(
    measurements: Sequence[Measurement],
    export_range: ExportRange | None,
    local_tz: tzinfo,
    categories: Sequence[Category] = CATEGORIES,
    formatter: DateFormatter = HEBREW,
) -> list[DayRow]:
    """Day rows for the report: the weekly grid builder run over the export window.

    Days without readings are left out. An open bound falls back to the first or last
    reading.
    """
    export_range = export_range or ExportRange()
    selected = filter_by_range(measurements, export_range.start, export_range.end)
    if not selected:
        return []
    ordered = sorted(selected, key=lambda m: m.instant)
    start = (export_range.start or ordered[0].instant).astimezone(local_tz)
    end = (export_range.end or ordered[-1].instant).astimezone(local_tz)
    rows = build_grid(ordered, categories, start, end, formatter)
    return [row for row in rows if not row.is_empty()]


def report_cell_lines(
    row: DayRow,
    thresholds: RangeThresholds,
    local_tz: tzinfo,
    formatter: DateFormatter = HEBREW,
    categories: Sequence[Category] = CATEGORIES,
) -> list[list[str]]:
    """One list of printed lines per category column, classified with ``thresholds``."""
    return [
        [
            f"{m.value} {m.unit} · {formatter.time_label(m.instant.astimezone(local_tz))} · "
            f"{formatter.status_label(classify(m.value, m.category, thresholds), short=True)}"
            for m in row.cells[category]
        ]
        for category in categories
    ]


def _load_hebrew_font(font_path: Path | None) -> bool:
    if font_path is None:
        return False
    if HEBREW_FONT_NAME not in pdfmetrics.getRegisteredFontNames():
        try:
            pdfmetrics.registerFont(TTFont(HEBREW_FONT_NAME, str(font_path)))
        except (TTFError, OSError):
            logger.exception("Could not register PDF font %s, falling back to English", font_path)
            return False
    return True


def build_pdf_report(
    measurements: Sequence[Measurement],
    thresholds: RangeThresholds,
    export_range: ExportRange | None,
    local_tz: tzinfo,
    font_path: Path | None = None,
    generated_at: datetime | None = None,
) -> bytes:
    hebrew = _load_hebrew_font(font_path)
    formatter = HEBREW if hebrew else ENGLISH
    text = REPORT_TEXT["he" if hebrew else "en"]
    font = HEBREW_FONT_NAME if hebrew else "Helvetica"

    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    width, height = A4
    margin = 32
    col_width = (width - 2 * margin) / (len(CATEGORIES) + 1)

    def column_x(index: int) -> float:
        if hebrew:
            return width - margin - index * col_width
        return margin + index * col_width

    def draw(x: float, y: float, value: str) -> None:
        if hebrew:
            c.drawRightString(x, y, get_display(value))
        else:
            c.drawString(x, y, value)

    y = height - 40
    c.setFont(font, 16)
    draw(column_x(0), y, text["title"])
    y -= 14
    c.setFont(font, 9)
    for note in text["notes"]:
        draw(column_x(0), y, note)
        y -= 12
    if generated_at is not None:
        draw(column_x(0), y, generated_at.astimezone(local_tz).strftime("%Y-%m-%d %H:%M"))
        y -= 12

    y -= 10
    c.setFont(font, 10)
    headers = [text["date"], *(formatter.category_label(category) for category in CATEGORIES)]
    for index, header in enumerate(headers):
        draw(column_x(index), y, header)
    y -= 16

    rows = report_rows(measurements, export_range, local_tz, CATEGORIES, formatter)
    if not rows:
        draw(column_x(0), y - 4, text["empty"])
        c.save()
        buffer.seek(0)
        return buffer.read()

    c.setFont(font, 8)
    for row in rows:
        lines_per_cell = report_cell_lines(row, thresholds, local_tz, formatter)
        row_height = max(18, 10 * max(len(lines) for lines in lines_per_cell) + 8)
        if y - row_height < 40:
            c.showPage()
            c.setFont(font, 8)
            y = height - 40

        draw(column_x(0), y, row.display_label)
        for index, lines in enumerate(lines_per_cell, start=1):
            for offset, line in enumerate(lines):
                draw(column_x(index), y - offset * 10, line)
        y -= row_height

    c.save()
    buffer.seek(0)
    logger.info("Built PDF report with %d day rows", len(rows))
    return buffer.read()
