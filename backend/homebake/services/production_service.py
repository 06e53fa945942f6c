# Overview: Production logging; each log and its ledger entry commit together.

from __future__ import annotations

from datetime import date, datetime

from ..extensions import db
from ..models import ProductionLog, User
from ..validation import require_positive_quantity
from . import activity_service, inventory_service
from .bread_type_service import get_bread_type
from .concurrency import run_with_retry
from .shift_service import current_policy, parse_shift, resolve_shift
from homebake.time_utils import utcnow


def add_production_log(
    *,
    user: User,
    bread_type_id,
    quantity,
    shift: str,
    business_date: date,
    now: datetime,
    batch_id: int | None = None,
    feedback: str | None = None,
) -> ProductionLog:
    """
    Stage a production log and its +quantity ledger row in the current
    transaction. Caller commits.
    """
    bread_type = get_bread_type(user.bakery_id, bread_type_id)
    qty = require_positive_quantity(quantity)

    log = ProductionLog(
        bakery_id=user.bakery_id,
        bread_type_id=bread_type.id,
        batch_id=batch_id,
        quantity=qty,
        shift=shift,
        business_date=business_date,
        feedback=(feedback or None),
        recorded_by_user_id=user.id,
        created_at=now,
    )
    db.session.add(log)
    db.session.flush()

    inventory_service.append_inventory_log(
        bakery_id=user.bakery_id,
        bread_type_id=bread_type.id,
        quantity_change=qty,
        reason="production",
        reference_type="production_log",
        reference_id=log.id,
        shift=shift,
        business_date=business_date,
        user_id=user.id,
        created_at=now,
    )
    return log


def record_production(
    *,
    user: User,
    bread_type_id,
    quantity,
    shift: str | None = None,
    feedback: str | None = None,
    now: datetime | None = None,
) -> ProductionLog:
    """
    Record units produced in the current business date.

    The shift defaults to the one active at `now`. Production log and
    ledger entry are one transaction: if either write fails neither exists.
    """
    now = now or utcnow()
    window = resolve_shift(now, current_policy())
    shift = parse_shift(shift) if shift else window.shift

    def _op():
        try:
            log = add_production_log(
                user=user,
                bread_type_id=bread_type_id,
                quantity=quantity,
                shift=shift,
                business_date=window.business_date,
                now=now,
                feedback=feedback,
            )
            db.session.commit()
            return log
        except Exception:
            db.session.rollback()
            raise

    log = run_with_retry(_op)

    activity_service.log_activity(
        user,
        "batch",
        f"Recorded production: {log.quantity}x {log.bread_type.name}",
        shift=log.shift,
        metadata={"bread_type": log.bread_type.name, "quantity": log.quantity},
        now=now,
    )
    return log


def list_production(
    bakery_id: int,
    *,
    business_date: date | None = None,
    shift: str | None = None,
    bread_type_id: int | None = None,
    recorded_by: int | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    limit: int = 200,
) -> list[ProductionLog]:
    query = db.session.query(ProductionLog).filter(ProductionLog.bakery_id == bakery_id)
    if business_date:
        query = query.filter(ProductionLog.business_date == business_date)
    if date_from:
        query = query.filter(ProductionLog.business_date >= date_from)
    if date_to:
        query = query.filter(ProductionLog.business_date <= date_to)
    if shift:
        query = query.filter(ProductionLog.shift == parse_shift(shift))
    if bread_type_id:
        query = query.filter(ProductionLog.bread_type_id == bread_type_id)
    if recorded_by:
        query = query.filter(ProductionLog.recorded_by_user_id == recorded_by)
    return query.order_by(ProductionLog.created_at.desc(), ProductionLog.id.desc()).limit(limit).all()


def todays_production(bakery_id: int, *, shift: str | None = None, now: datetime | None = None) -> list[ProductionLog]:
    window = resolve_shift(now or utcnow(), current_policy())
    return list_production(bakery_id, business_date=window.business_date, shift=shift)


def production_by_bread_type(bakery_id: int, business_date: date, shift: str | None = None) -> list[dict]:
    totals: dict[int, dict] = {}
    for log in list_production(bakery_id, business_date=business_date, shift=shift, limit=10_000):
        row = totals.setdefault(log.bread_type_id, {
            "bread_type_id": log.bread_type_id,
            "bread_type": log.bread_type.name if log.bread_type else None,
            "quantity": 0,
            "entries": 0,
        })
        row["quantity"] += log.quantity
        row["entries"] += 1
    return sorted(totals.values(), key=lambda r: r["bread_type"] or "")
