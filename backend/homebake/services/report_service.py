# Overview: Shift reports over date ranges, with CSV and PDF exports.

from __future__ import annotations

import csv
import io
from datetime import date, datetime, timedelta

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..models import Bakery, User
from ..extensions import db
from ..validation import SHIFTS
from . import activity_service
from .inventory_service import derive_inventory
from .production_service import list_production
from .shift_service import current_policy, parse_shift, resolve_shift
from homebake.time_utils import parse_iso_date, utcnow


MAX_REPORT_DAYS = 92

CSV_COLUMNS = ["Date", "Shift", "Bread Type", "Unit Price", "Produced", "Sold", "Revenue", "Leftover", "Discounts"]
PRODUCTION_CSV_COLUMNS = ["Date", "Bread Type", "Quantity", "Shift", "Time"]


class ReportError(ValueError):
    """Raised when report parameters are invalid."""


def _money(cents: int) -> str:
    return f"{cents / 100:.2f}"


def parse_range(start: str | None, end: str | None, *, now: datetime | None = None) -> tuple[date, date]:
    """
    Parse a YYYY-MM-DD range. Missing bounds default to the current
    business date; ranges are inclusive and capped at MAX_REPORT_DAYS.
    """
    today = resolve_shift(now or utcnow(), current_policy()).business_date
    try:
        start_d = parse_iso_date(start) or today
        end_d = parse_iso_date(end) or (start_d if start else today)
    except ValueError:
        raise ReportError("Dates must be YYYY-MM-DD")
    if end_d < start_d:
        raise ReportError("end date must not be before start date")
    if (end_d - start_d).days + 1 > MAX_REPORT_DAYS:
        raise ReportError(f"Report range cannot exceed {MAX_REPORT_DAYS} days")
    return start_d, end_d


def _daterange(start: date, end: date):
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def _zero_totals() -> dict:
    return {"produced": 0, "sold": 0, "revenue_cents": 0, "leftover": 0, "discount_cents": 0}


def _add(totals: dict, item: dict) -> None:
    for key in totals:
        totals[key] += item[key]


def build_report(bakery_id: int, start: date, end: date, shift: str | None = None) -> dict:
    """
    Per business date and shift, a per-bread-type breakdown of produced,
    sold, revenue, leftover and discounts. Shifts without activity are omitted.
    """
    shifts = [parse_shift(shift)] if shift else list(SHIFTS)
    sections = []
    grand = _zero_totals()

    for day in _daterange(start, end):
        for shift_name in shifts:
            items = []
            for row in derive_inventory(bakery_id, day, shift_name):
                if not (row["produced"] or row["sold"] or row["leftover"]):
                    continue
                items.append({
                    "bread_type_id": row["bread_type_id"],
                    "bread_type": row["bread_type"],
                    "unit_price_cents": row["unit_price_cents"],
                    "produced": row["produced"],
                    "sold": row["sold"],
                    "revenue_cents": row["revenue_cents"],
                    "leftover": row["leftover"],
                    "discount_cents": row["discount_cents"],
                })
            if not items:
                continue
            totals = _zero_totals()
            for item in items:
                _add(totals, item)
            _add(grand, totals)
            sections.append({
                "business_date": day.isoformat(),
                "shift": shift_name,
                "items": items,
                "totals": totals,
            })

    return {
        "period": {"start": start.isoformat(), "end": end.isoformat(), "shift": shift},
        "shifts": sections,
        "totals": grand,
    }


def report_csv(report: dict) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(CSV_COLUMNS)
    for section in report["shifts"]:
        for item in section["items"]:
            writer.writerow([
                section["business_date"],
                section["shift"],
                item["bread_type"],
                _money(item["unit_price_cents"]),
                item["produced"],
                item["sold"],
                _money(item["revenue_cents"]),
                item["leftover"],
                _money(item["discount_cents"]),
            ])
    return buffer.getvalue()


def production_csv(bakery_id: int, start: date, end: date, shift: str | None = None) -> str:
    """Production log export; Time is bakery-local HH:MM."""
    policy = current_policy()
    logs = list_production(bakery_id, date_from=start, date_to=end, shift=shift, limit=100_000)
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(PRODUCTION_CSV_COLUMNS)
    for log in reversed(logs):
        local = log.created_at + policy.offset
        writer.writerow([
            log.business_date.isoformat(),
            log.bread_type.name if log.bread_type else "",
            log.quantity,
            log.shift,
            local.strftime("%H:%M"),
        ])
    return buffer.getvalue()


def report_pdf(report: dict, *, bakery_name: str) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=landscape(A4),
        leftMargin=0.5 * inch,
        rightMargin=0.5 * inch,
        topMargin=0.5 * inch,
        bottomMargin=0.5 * inch,
        title=f"{bakery_name} Shift Report",
    )
    styles = getSampleStyleSheet()
    period = report["period"]

    story = [
        Paragraph(f"{bakery_name} Shift Report", styles["Title"]),
        Paragraph(f"Period: {period['start']} to {period['end']}", styles["Normal"]),
        Spacer(1, 0.2 * inch),
    ]

    header = CSV_COLUMNS[1:]
    table_style = TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#92400e")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONT", (0, 0), (-1, 0), "Helvetica-Bold", 9),
        ("FONT", (0, 1), (-1, -1), "Helvetica", 9),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
        ("ALIGN", (2, 1), (-1, -1), "RIGHT"),
        ("FONT", (0, -1), (-1, -1), "Helvetica-Bold", 9),
    ])

    if not report["shifts"]:
        story.append(Paragraph("No production or sales recorded in this period.", styles["Normal"]))

    for section in report["shifts"]:
        story.append(Paragraph(f"{section['business_date']} - {section['shift'].title()} shift", styles["Heading3"]))
        rows = [header]
        for item in section["items"]:
            rows.append([
                section["shift"],
                item["bread_type"],
                _money(item["unit_price_cents"]),
                item["produced"],
                item["sold"],
                _money(item["revenue_cents"]),
                item["leftover"],
                _money(item["discount_cents"]),
            ])
        t = section["totals"]
        rows.append(["Total", "", "", t["produced"], t["sold"], _money(t["revenue_cents"]), t["leftover"], _money(t["discount_cents"])])
        table = Table(rows, repeatRows=1)
        table.setStyle(table_style)
        story.append(table)
        story.append(Spacer(1, 0.2 * inch))

    g = report["totals"]
    story.append(Paragraph(
        f"Totals: produced {g['produced']}, sold {g['sold']}, revenue {_money(g['revenue_cents'])}, "
        f"leftover {g['leftover']}, discounts {_money(g['discount_cents'])}",
        styles["Heading4"],
    ))

    doc.build(story)
    return buffer.getvalue()


def bakery_name(bakery_id: int) -> str:
    bakery = db.session.get(Bakery, bakery_id)
    return bakery.name if bakery else "HomeBake"


def record_generated(user: User, report_type: str, shift: str | None, now: datetime | None = None) -> None:
    shift_label = shift or "all"
    activity_service.log_activity(
        user,
        "report",
        f"Generated {report_type} report for {shift_label} shift",
        shift=shift,
        metadata={"report_type": report_type},
        now=now,
    )
