"""
PDF export of quiz results
"""
from __future__ import annotations

import io
import re
from typing import Iterable, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

HEADERS = ["Name", "Quiz", "Score", "Total", "Percent", "Submitted"]
ROW_FIELDS = ["name", "quizTitle", "score", "total", "percent", "submittedAt"]


def _cell(value) -> str:
    if value is None:
        return ""
    return str(value)


def _para(txt: Optional[str], style) -> Paragraph:
    # Paragraph markup breaks on raw '<' or '&'
    safe = escape(_cell(txt)).replace("\r", "").replace("\n", "<br/>")
    return Paragraph(safe, style)


def format_percent(value) -> str:
    if value is None or value == "":
        return ""
    text = str(value).strip()
    return text if text.endswith("%") else f"{text}%"


def export_filename(title: Optional[str]) -> str:
    slug = re.sub(r"[^A-Za-z0-9]+", "_", (title or "").strip()).strip("_")
    return f"{slug or 'quiz_results'}.pdf"


def render_results_pdf(rows: Iterable[dict], title: Optional[str] = None) -> bytes:
    """Render result rows as a landscape A4 table and return the PDF bytes"""
    styles = getSampleStyleSheet()
    body = styles["BodyText"]

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=landscape(A4),
        leftMargin=36, rightMargin=36, topMargin=36, bottomMargin=36,
        title=title or "Quiz Results",
    )

    data = [HEADERS]
    for row in rows:
        cells = [row.get(field) for field in ROW_FIELDS]
        cells[4] = format_percent(cells[4])
        data.append([_para(value, body) for value in cells])

    table = Table(data, repeatRows=1, colWidths=[2.0 * inch, 2.6 * inch, 0.8 * inch, 0.8 * inch, 0.9 * inch, 2.2 * inch])
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#1f2937")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#f3f4f6")]),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ]))

    story = [_para(title or "Quiz Results", styles["Title"]), Spacer(1, 0.2 * inch), table]
    doc.build(story)
    return buffer.getvalue()
