# Overview: Inventory ledger writes and the single derived-stock computation.

"""
Inventory

Stock is never stored as a balance. Availability per bread type is derived
from the logs of a business date (optionally one shift):

    available = max(0, produced - sold - leftover)

where produced comes from production_logs, and sold/leftover from
sales_logs. Every dashboard, report and API that shows stock calls
`derive_inventory`; nothing else computes it.

InventoryLog rows are the signed movement ledger (+production, -sale),
written in the same transaction as the log they mirror.
"""

from __future__ import annotations

from datetime import date, datetime

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import BreadType, InventoryLog, ProductionLog, SalesLog
from .shift_service import current_policy, resolve_shift
from homebake.time_utils import utcnow


OUT_OF_STOCK = "out_of_stock"
LOW_STOCK = "low_stock"
AVAILABLE = "available"


def append_inventory_log(
    *,
    bakery_id: int,
    bread_type_id: int,
    quantity_change: int,
    reason: str,
    reference_type: str,
    reference_id: int,
    shift: str,
    business_date: date,
    user_id: int,
    created_at: datetime,
    notes: str | None = None,
) -> InventoryLog:
    """Add a ledger row to the current transaction. Caller commits."""
    entry = InventoryLog(
        bakery_id=bakery_id,
        bread_type_id=bread_type_id,
        quantity_change=quantity_change,
        reason=reason,
        reference_type=reference_type,
        reference_id=reference_id,
        shift=shift,
        business_date=business_date,
        user_id=user_id,
        created_at=created_at,
        notes=notes,
    )
    db.session.add(entry)
    db.session.flush()
    return entry


def low_stock_threshold() -> int:
    return int(current_app.config.get("LOW_STOCK_THRESHOLD", 10))


def stock_status(available: int, threshold: int) -> str:
    if available <= 0:
        return OUT_OF_STOCK
    if available <= threshold:
        return LOW_STOCK
    return AVAILABLE


def _sum_by_bread_type(columns, model, bakery_id: int, business_date: date, shift: str | None):
    query = db.session.query(model.bread_type_id, *columns).filter(
        model.bakery_id == bakery_id,
        model.business_date == business_date,
    )
    if shift:
        query = query.filter(model.shift == shift)
    return {row[0]: row[1:] for row in query.group_by(model.bread_type_id).all()}


def derive_inventory(bakery_id: int, business_date: date, shift: str | None = None) -> list[dict]:
    """
    Per-bread-type stock for a business date, or for one shift of it.

    Every bread type of the bakery is listed, including those with no
    activity, ordered by name.
    """
    threshold = low_stock_threshold()

    produced = _sum_by_bread_type(
        [func.coalesce(func.sum(ProductionLog.quantity), 0)],
        ProductionLog, bakery_id, business_date, shift,
    )
    sold = _sum_by_bread_type(
        [
            func.coalesce(func.sum(SalesLog.quantity), 0),
            func.coalesce(func.sum(SalesLog.leftover), 0),
            func.coalesce(func.sum(SalesLog.quantity * SalesLog.unit_price_cents - SalesLog.discount_cents), 0),
            func.coalesce(func.sum(SalesLog.discount_cents), 0),
        ],
        SalesLog, bakery_id, business_date, shift,
    )

    rows = []
    for bread_type in db.session.query(BreadType).filter_by(bakery_id=bakery_id).order_by(BreadType.name.asc()):
        produced_qty = int(produced.get(bread_type.id, (0,))[0])
        sold_qty, leftover_qty, revenue, discounts = (int(v) for v in sold.get(bread_type.id, (0, 0, 0, 0)))
        available = max(0, produced_qty - sold_qty - leftover_qty)
        rows.append({
            "bread_type_id": bread_type.id,
            "bread_type": bread_type.name,
            "size": bread_type.size,
            "unit_price_cents": bread_type.unit_price_cents,
            "produced": produced_qty,
            "sold": sold_qty,
            "leftover": leftover_qty,
            "available": available,
            "revenue_cents": max(0, revenue),
            "discount_cents": discounts,
            "status": stock_status(available, threshold),
        })
    return rows


def current_inventory(bakery_id: int, *, scope: str = "shift", now: datetime | None = None) -> dict:
    """Derived inventory for the active shift (scope="shift") or its whole business date."""
    window = resolve_shift(now or utcnow(), current_policy())
    shift = window.shift if scope == "shift" else None
    items = derive_inventory(bakery_id, window.business_date, shift)
    return {
        "shift": window.to_dict(),
        "scope": "shift" if shift else "day",
        "items": items,
        "totals": {
            "produced": sum(i["produced"] for i in items),
            "sold": sum(i["sold"] for i in items),
            "leftover": sum(i["leftover"] for i in items),
            "available": sum(i["available"] for i in items),
        },
    }


def low_stock_count(bakery_id: int, business_date: date, shift: str | None = None) -> int:
    """Bread types that were produced and are now low or out of stock."""
    return sum(
        1 for row in derive_inventory(bakery_id, business_date, shift)
        if row["produced"] > 0 and row["status"] != AVAILABLE
    )


def list_inventory_logs(bakery_id: int, *, bread_type_id: int | None = None, limit: int = 200) -> list[InventoryLog]:
    query = db.session.query(InventoryLog).filter(InventoryLog.bakery_id == bakery_id)
    if bread_type_id:
        query = query.filter(InventoryLog.bread_type_id == bread_type_id)
    return query.order_by(InventoryLog.created_at.desc(), InventoryLog.id.desc()).limit(limit).all()


def ledger_balance(bakery_id: int, bread_type_id: int, business_date: date, shift: str | None = None) -> int:
    """Net ledger movement for a bread type; equals produced - sold for the same scope."""
    query = db.session.query(func.coalesce(func.sum(InventoryLog.quantity_change), 0)).filter(
        InventoryLog.bakery_id == bakery_id,
        InventoryLog.bread_type_id == bread_type_id,
        InventoryLog.business_date == business_date,
    )
    if shift:
        query = query.filter(InventoryLog.shift == shift)
    return int(query.scalar() or 0)
