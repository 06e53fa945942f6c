# Overview: Sales recording, end-of-shift remaining bread, shift reports and feedback.

from __future__ import annotations

from datetime import date, datetime

from ..extensions import db
from ..models import RemainingBread, SalesLog, ShiftFeedback, ShiftReport, User
from ..validation import (
    MAX_PRICE_CENTS,
    ValidationError,
    require_int,
    require_non_negative,
    require_positive_quantity,
)
from . import activity_service, inventory_service
from .bread_type_service import get_bread_type
from .concurrency import run_with_retry
from .shift_service import current_policy, parse_shift, resolve_shift
from homebake.time_utils import utcnow


class SalesError(ValueError):
    """Raised for invalid sales operations."""


# ---------------------------------------------------------------------------
# Sales
# ---------------------------------------------------------------------------

def record_sale(
    *,
    user: User,
    bread_type_id,
    quantity,
    unit_price_cents=None,
    discount_cents=0,
    leftover=0,
    returned: bool = False,
    shift: str | None = None,
    now: datetime | None = None,
) -> SalesLog:
    """
    Record a sale in the current business date.

    The unit price defaults to the bread type's current price and is
    snapshotted on the row. Sale and -quantity ledger entry commit together.
    """
    now = now or utcnow()
    window = resolve_shift(now, current_policy())
    shift = parse_shift(shift) if shift else window.shift

    bread_type = get_bread_type(user.bakery_id, bread_type_id)
    qty = require_positive_quantity(quantity)
    price = bread_type.unit_price_cents if unit_price_cents is None else require_non_negative(unit_price_cents, "unit_price_cents")
    if price > MAX_PRICE_CENTS:
        raise ValidationError(f"unit_price_cents cannot exceed {MAX_PRICE_CENTS}")
    discount = require_non_negative(discount_cents or 0, "discount_cents")
    if discount > qty * price:
        raise SalesError("Discount cannot exceed the sale total")
    leftover_qty = require_non_negative(leftover or 0, "leftover")

    def _op():
        try:
            sale = SalesLog(
                bakery_id=user.bakery_id,
                bread_type_id=bread_type.id,
                quantity=qty,
                unit_price_cents=price,
                discount_cents=discount,
                returned=bool(returned),
                leftover=leftover_qty,
                shift=shift,
                business_date=window.business_date,
                recorded_by_user_id=user.id,
                created_at=now,
            )
            db.session.add(sale)
            db.session.flush()

            inventory_service.append_inventory_log(
                bakery_id=user.bakery_id,
                bread_type_id=bread_type.id,
                quantity_change=-qty,
                reason="sale",
                reference_type="sales_log",
                reference_id=sale.id,
                shift=shift,
                business_date=window.business_date,
                user_id=user.id,
                created_at=now,
            )
            db.session.commit()
            return sale
        except Exception:
            db.session.rollback()
            raise

    sale = run_with_retry(_op)

    activity_service.log_activity(
        user,
        "sale",
        f"Recorded sale: {sale.quantity}x {bread_type.name}",
        shift=shift,
        metadata={"bread_type": bread_type.name, "quantity": sale.quantity, "revenue": sale.total_cents},
        now=now,
    )
    return sale


def list_sales(
    bakery_id: int,
    *,
    business_date: date | None = None,
    shift: str | None = None,
    recorded_by: int | None = None,
    bread_type_id: int | None = None,
    limit: int = 500,
) -> list[SalesLog]:
    query = db.session.query(SalesLog).filter(SalesLog.bakery_id == bakery_id)
    if business_date:
        query = query.filter(SalesLog.business_date == business_date)
    if shift:
        query = query.filter(SalesLog.shift == parse_shift(shift))
    if recorded_by:
        query = query.filter(SalesLog.recorded_by_user_id == recorded_by)
    if bread_type_id:
        query = query.filter(SalesLog.bread_type_id == bread_type_id)
    return query.order_by(SalesLog.created_at.desc(), SalesLog.id.desc()).limit(limit).all()


def my_shift_sales(user: User, *, now: datetime | None = None) -> dict:
    """The user's own sales in the shift running at `now`, with totals."""
    window = resolve_shift(now or utcnow(), current_policy())
    sales = list_sales(user.bakery_id, business_date=window.business_date, shift=window.shift, recorded_by=user.id)
    return {
        "shift": window.to_dict(),
        "sales": sales,
        "total_revenue_cents": sum(s.total_cents for s in sales),
        "total_items_sold": sum(s.quantity for s in sales),
    }


# ---------------------------------------------------------------------------
# Remaining bread (end-of-shift declaration)
# ---------------------------------------------------------------------------

def upsert_remaining_bread(*, user: User, items: list, shift: str | None = None, now: datetime | None = None) -> dict:
    """
    Declare remaining bread per bread type for the user's current shift.

    Per item: quantity <= 0 is skipped, an unchanged quantity is a no-op,
    a changed quantity updates the existing row, otherwise a row is
    inserted. Resubmitting the same declaration never adds rows.
    """
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list")

    now = now or utcnow()
    window = resolve_shift(now, current_policy())
    shift = parse_shift(shift) if shift else window.shift

    results = []
    counts = {"inserted": 0, "updated": 0, "unchanged": 0, "skipped": 0}

    try:
        for item in items:
            if not isinstance(item, dict):
                raise ValidationError("each item must be an object")
            bread_type = get_bread_type(user.bakery_id, item.get("bread_type_id"))
            qty = require_int(item.get("quantity", 0), "quantity")

            existing = db.session.query(RemainingBread).filter_by(
                bakery_id=user.bakery_id,
                bread_type_id=bread_type.id,
                shift=shift,
                business_date=window.business_date,
                recorded_by_user_id=user.id,
            ).first()
            previous = existing.quantity if existing else None

            if qty <= 0:
                action = "skipped"
            elif existing and existing.quantity == qty:
                action = "unchanged"
            elif existing:
                existing.quantity = qty
                existing.unit_price_cents = bread_type.unit_price_cents
                existing.updated_at = now
                action = "updated"
            else:
                db.session.add(RemainingBread(
                    bakery_id=user.bakery_id,
                    bread_type_id=bread_type.id,
                    quantity=qty,
                    unit_price_cents=bread_type.unit_price_cents,
                    shift=shift,
                    business_date=window.business_date,
                    recorded_by_user_id=user.id,
                    created_at=now,
                ))
                db.session.flush()
                action = "inserted"

            counts[action] += 1
            results.append({
                "action": action,
                "bread_type_id": bread_type.id,
                "bread_type": bread_type.name,
                "previous_quantity": previous,
                "quantity": qty,
            })
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return {"shift": shift, "business_date": window.business_date.isoformat(), "results": results, **counts}


def get_remaining_bread(
    bakery_id: int,
    *,
    business_date: date,
    shift: str | None = None,
    recorded_by: int | None = None,
) -> list[RemainingBread]:
    query = db.session.query(RemainingBread).filter(
        RemainingBread.bakery_id == bakery_id,
        RemainingBread.business_date == business_date,
    )
    if shift:
        query = query.filter(RemainingBread.shift == parse_shift(shift))
    if recorded_by:
        query = query.filter(RemainingBread.recorded_by_user_id == recorded_by)
    return query.order_by(RemainingBread.id.asc()).all()


# ---------------------------------------------------------------------------
# Shift reports and feedback
# ---------------------------------------------------------------------------

def submit_shift_report(*, user: User, feedback: str | None = None, now: datetime | None = None) -> ShiftReport:
    """
    Close out the user's shift: snapshot their sales and remaining bread
    into a ShiftReport and announce the end of shift.
    """
    now = now or utcnow()
    window = resolve_shift(now, current_policy())

    sales = list_sales(user.bakery_id, business_date=window.business_date, shift=window.shift, recorded_by=user.id, limit=10_000)
    remaining = get_remaining_bread(user.bakery_id, business_date=window.business_date, shift=window.shift, recorded_by=user.id)

    per_type: dict[int, dict] = {}
    for sale in sales:
        row = per_type.setdefault(sale.bread_type_id, {
            "bread_type_id": sale.bread_type_id,
            "bread_type": sale.bread_type.name if sale.bread_type else None,
            "quantity": 0,
            "revenue_cents": 0,
            "discount_cents": 0,
        })
        row["quantity"] += sale.quantity
        row["revenue_cents"] += sale.total_cents
        row["discount_cents"] += sale.discount_cents

    report = ShiftReport(
        bakery_id=user.bakery_id,
        user_id=user.id,
        shift=window.shift,
        business_date=window.business_date,
        total_revenue_cents=sum(s.total_cents for s in sales),
        total_items_sold=sum(s.quantity for s in sales),
        total_remaining=sum(r.quantity for r in remaining),
        feedback=(feedback or None),
        sales_data=sorted(per_type.values(), key=lambda r: r["bread_type"] or ""),
        remaining_breads=[
            {
                "bread_type_id": r.bread_type_id,
                "bread_type": r.bread_type.name if r.bread_type else None,
                "quantity": r.quantity,
                "total_value_cents": r.total_value_cents,
            }
            for r in remaining
        ],
        created_at=now,
    )
    db.session.add(report)
    db.session.commit()

    activity_service.log_activity(
        user,
        "end_shift",
        f"{user.name} ended {window.shift} shift",
        shift=window.shift,
        metadata={"revenue": report.total_revenue_cents, "items_sold": report.total_items_sold},
        now=now,
    )
    return report


def list_shift_reports(
    bakery_id: int,
    *,
    user_id: int | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    limit: int = 100,
) -> list[ShiftReport]:
    query = db.session.query(ShiftReport).filter(ShiftReport.bakery_id == bakery_id)
    if user_id:
        query = query.filter(ShiftReport.user_id == user_id)
    if date_from:
        query = query.filter(ShiftReport.business_date >= date_from)
    if date_to:
        query = query.filter(ShiftReport.business_date <= date_to)
    return query.order_by(ShiftReport.created_at.desc(), ShiftReport.id.desc()).limit(limit).all()


def add_shift_feedback(*, user: User, note: str, now: datetime | None = None) -> ShiftFeedback:
    if not isinstance(note, str) or not note.strip():
        raise ValidationError("note is required")
    now = now or utcnow()
    window = resolve_shift(now, current_policy())
    feedback = ShiftFeedback(
        bakery_id=user.bakery_id,
        user_id=user.id,
        shift=window.shift,
        business_date=window.business_date,
        note=note.strip(),
        created_at=now,
    )
    db.session.add(feedback)
    db.session.commit()
    return feedback


def list_shift_feedback(bakery_id: int, *, business_date: date | None = None, limit: int = 100) -> list[ShiftFeedback]:
    query = db.session.query(ShiftFeedback).filter(ShiftFeedback.bakery_id == bakery_id)
    if business_date:
        query = query.filter(ShiftFeedback.business_date == business_date)
    return query.order_by(ShiftFeedback.created_at.desc()).limit(limit).all()
