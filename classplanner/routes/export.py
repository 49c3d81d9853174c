"""
Export Routes - CSV, XLSX, JSON, PDF
"""

import csv
import json
from datetime import date, timedelta
from io import BytesIO, StringIO
from typing import List, Optional

import pandas as pd
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

# ── PDF export ─────────────────────────────────────────────────────────────────
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from classplanner.models.database import get_db
from classplanner.models.models import Schedule
from classplanner.services.scheduling_engine import monday_of

pt: float = 1.0

router = APIRouter(prefix="/api/export", tags=["export"])

COLUMNS = ["Day", "Time", "Subject", "Teacher", "Classroom", "Section", "Status", "Block"]
FORMATS = ("csv", "xlsx", "json", "pdf")

_DARK  = colors.HexColor("#1e1b4b")
_LIGHT = colors.HexColor("#e2e8f0")
_GREY  = colors.HexColor("#64748b")
_ROW   = colors.HexColor("#f1f5f9")


def schedule_row(schedule: Schedule) -> dict:
    """One export row; Day carries the weekday and the ISO date."""
    return {
        "Day": f"{schedule.day_of_week.value} {schedule.date.isoformat()}",
        "Time": f"{schedule.start_time:%H:%M}-{schedule.end_time:%H:%M}",
        "Subject": schedule.subject.name if schedule.subject else "",
        "Teacher": schedule.teacher.full_name if schedule.teacher else "",
        "Classroom": schedule.classroom.room_name if schedule.classroom else "",
        "Section": schedule.section.section_name if schedule.section else "",
        "Status": schedule.status.value,
        "Block": "" if schedule.duration_index is None else schedule.duration_index + 1,
    }


def _render_csv(rows: List[dict]) -> bytes:
    out = StringIO()
    writer = csv.DictWriter(out, fieldnames=COLUMNS)
    writer.writeheader()
    writer.writerows(rows)
    return out.getvalue().encode("utf-8")


def _render_xlsx(rows: List[dict]) -> bytes:
    buf = BytesIO()
    pd.DataFrame(rows, columns=COLUMNS).to_excel(buf, index=False, sheet_name="Schedules", engine="openpyxl")
    return buf.getvalue()


def _render_json(rows: List[dict], start_date: date, end_date: date) -> bytes:
    payload = {
        "start_date": start_date.isoformat(),
        "end_date": end_date.isoformat(),
        "total": len(rows),
        "schedules": rows,
    }
    return json.dumps(payload, indent=2).encode("utf-8")


def _render_pdf(rows: List[dict], start_date: date, end_date: date) -> bytes:
    """Landscape A4 table, one line per meeting."""
    buf = BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=landscape(A4),
        leftMargin=24*pt, rightMargin=24*pt,
        topMargin=28*pt,  bottomMargin=20*pt,
    )

    styles = getSampleStyleSheet()
    title_st = ParagraphStyle("T", parent=styles["Title"],
                              fontSize=12, alignment=TA_CENTER, spaceAfter=2, leading=15)
    sub_st   = ParagraphStyle("S", parent=styles["Normal"],
                              fontSize=8, textColor=_GREY,
                              alignment=TA_CENTER, spaceAfter=6)
    cell_st  = ParagraphStyle("C", parent=styles["Normal"],
                              fontSize=7, leading=9, alignment=TA_CENTER)

    table_rows = [COLUMNS]
    for row in rows:
        table_rows.append([Paragraph(str(row[col]), cell_st) for col in COLUMNS])
    if not rows:
        table_rows.append([Paragraph("—", cell_st)] + [""] * (len(COLUMNS) - 1))

    # Usable width ≈ 794 pt (842 - 48 margins)
    col_widths = [110, 70, 130, 120, 100, 110, 74, 40]

    style = TableStyle([
        ("BACKGROUND",    (0, 0), (-1, 0),  _DARK),
        ("TEXTCOLOR",     (0, 0), (-1, 0),  _LIGHT),
        ("FONTNAME",      (0, 0), (-1, 0),  "Helvetica-Bold"),
        ("FONTSIZE",      (0, 0), (-1, 0),  7),
        ("ALIGN",         (0, 0), (-1, -1), "CENTER"),
        ("VALIGN",        (0, 0), (-1, -1), "MIDDLE"),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, _ROW]),
        ("GRID",          (0, 0), (-1, -1), 0.3, colors.HexColor("#334155")),
        ("TOPPADDING",    (0, 0), (-1, -1), 3),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
    ])
    tbl = Table(table_rows, colWidths=col_widths, repeatRows=1)
    tbl.setStyle(style)

    story = [
        Paragraph("CLASS SCHEDULE", title_st),
        Paragraph(f"{start_date.isoformat()}  ·  {end_date.isoformat()}  ·  {len(rows)} meetings", sub_st),
        tbl,
        Spacer(1, 6),
    ]
    doc.build(story)
    return buf.getvalue()


_MEDIA_TYPES = {
    "csv": "text/csv",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "json": "application/json",
    "pdf": "application/pdf",
}


# ─────────────────────────────────────────────────────────────────────────────
# Routes
# ─────────────────────────────────────────────────────────────────────────────

@router.get("/schedules")
def export_schedules(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    format: str = Query("csv"),
    db: Session = Depends(get_db),
):
    fmt = format.lower()
    if fmt not in FORMATS:
        raise HTTPException(status_code=400, detail=f"Unsupported format '{format}', use one of {', '.join(FORMATS)}")

    start_date = start_date or monday_of(date.today())
    end_date = end_date or start_date + timedelta(days=6)
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")

    try:
        schedules = (
            db.query(Schedule)
            .filter(Schedule.date >= start_date, Schedule.date <= end_date)
            .order_by(Schedule.date, Schedule.start_time, Schedule.id)
            .all()
        )
        rows = [schedule_row(s) for s in schedules]

        if fmt == "csv":
            content = _render_csv(rows)
        elif fmt == "xlsx":
            content = _render_xlsx(rows)
        elif fmt == "json":
            content = _render_json(rows, start_date, end_date)
        else:
            content = _render_pdf(rows, start_date, end_date)

        filename = f"schedules-{start_date.isoformat()}-{end_date.isoformat()}.{fmt}"
        return StreamingResponse(
            BytesIO(content),
            media_type=_MEDIA_TYPES[fmt],
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error exporting schedules: {str(e)}")
