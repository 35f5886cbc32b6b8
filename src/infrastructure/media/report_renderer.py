# PATH: src/infrastructure/media/report_renderer.py
# 학생 성과 리포트 렌더러 (CSV / PDF)
# - 입력: JSON 행 목록 (업로드된 raw 객체)
# - PDF 는 ASCII 라벨만 사용 (CJK 폰트 미등록)

from __future__ import annotations

import csv
import io
import json
from datetime import date
from typing import Any, Dict, List, Sequence, Tuple

from reportlab.lib.colors import Color, black
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from src.application.media.exceptions import MediaProcessingError

# (row key, header label, column width mm)
REPORT_COLUMNS: Sequence[Tuple[str, str, float]] = (
    ("studentName", "Student", 50),
    ("courseTitle", "Course", 55),
    ("progress", "Progress", 22),
    ("grade", "Grade", 18),
    ("lastActive", "Last Active", 30),
)

REPORT_TITLE = "Student Performance Report"
WATERMARK_TEXT = "LearnSphere"

PAGE_W, PAGE_H = A4
MARGIN = 15 * mm
ROW_HEIGHT = 7 * mm


class ReportRenderError(MediaProcessingError):
    pass


def parse_rows(data: bytes) -> List[Dict[str, Any]]:
    """raw 객체(JSON) → 행 목록. {"rows": [...]} 또는 [...] 둘 다 허용."""
    try:
        payload = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ReportRenderError(f"report source is not valid JSON: {e}") from e

    if isinstance(payload, dict):
        payload = payload.get("rows")
    if not isinstance(payload, list) or not all(isinstance(r, dict) for r in payload):
        raise ReportRenderError("report source must be a list of objects")
    return payload


def _cell(row: Dict[str, Any], key: str) -> str:
    value = row.get(key)
    if value is None:
        return ""
    if key == "progress" and isinstance(value, (int, float)):
        return f"{value:.0f}%"
    return str(value)


def render_csv(rows: List[Dict[str, Any]]) -> bytes:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow([label for _, label, _ in REPORT_COLUMNS])
    for row in rows:
        writer.writerow([_cell(row, key) for key, _, _ in REPORT_COLUMNS])
    return buf.getvalue().encode("utf-8")


def _draw_watermark(c: canvas.Canvas) -> None:
    c.saveState()
    c.setFont("Helvetica-Bold", 50)
    c.setFillColor(Color(0.5, 0.5, 0.5, alpha=0.15))
    c.drawCentredString(PAGE_W / 2, PAGE_H / 3, WATERMARK_TEXT)
    c.restoreState()


def _draw_header_row(c: canvas.Canvas, y: float) -> None:
    c.setFont("Helvetica-Bold", 10)
    x = MARGIN
    for _, label, width in REPORT_COLUMNS:
        c.drawString(x, y, label)
        x += width * mm
    c.setLineWidth(0.5)
    c.line(MARGIN, y - 2 * mm, PAGE_W - MARGIN, y - 2 * mm)


def _truncate(c: canvas.Canvas, text: str, width: float, font: str, size: float) -> str:
    if c.stringWidth(text, font, size) <= width:
        return text
    while text and c.stringWidth(text + "...", font, size) > width:
        text = text[:-1]
    return text + "..."


def render_pdf(rows: List[Dict[str, Any]], generated_on: date | None = None) -> bytes:
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    c.setTitle(REPORT_TITLE)

    _draw_watermark(c)
    y = PAGE_H - MARGIN
    c.setFillColor(black)
    c.setFont("Helvetica-Bold", 18)
    c.drawCentredString(PAGE_W / 2, y, REPORT_TITLE)
    y -= 8 * mm
    c.setFont("Helvetica", 10)
    c.drawCentredString(PAGE_W / 2, y, f"Generated on: {(generated_on or date.today()).isoformat()}")
    y -= 14 * mm
    _draw_header_row(c, y)
    y -= ROW_HEIGHT

    for row in rows:
        if y < MARGIN:
            c.showPage()
            _draw_watermark(c)
            y = PAGE_H - MARGIN
            _draw_header_row(c, y)
            y -= ROW_HEIGHT

        c.setFont("Helvetica", 9)
        x = MARGIN
        for key, _, width in REPORT_COLUMNS:
            c.drawString(x, y, _truncate(c, _cell(row, key), width * mm - 2 * mm, "Helvetica", 9))
            x += width * mm
        y -= ROW_HEIGHT

    c.showPage()
    c.save()
    return buf.getvalue()
