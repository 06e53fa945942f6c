# Overview: Role-specific dashboard view models.

from __future__ import annotations

from datetime import datetime

from ..extensions import db
from ..models import Batch, SalesLog, User
from . import activity_service, batch_service, inventory_service, presence_service, production_service, sales_service
from .shift_service import business_day_window, current_policy, resolve_shift
from homebake.time_utils import to_utc_z, utcnow


def owner_dashboard(bakery_id: int, *, now: datetime | None = None) -> dict:
    """Today's revenue, batch count, staff online and low-stock count, plus recent activity."""
    now = now or utcnow()
    policy = current_policy()
    window = resolve_shift(now, policy)
    business_date = window.business_date

    revenue = sum(
        s.total_cents for s in db.session.query(SalesLog).filter_by(bakery_id=bakery_id, business_date=business_date)
    )
    batch_count = db.session.query(Batch).filter_by(bakery_id=bakery_id, business_date=business_date).count()
    day_start, day_end = business_day_window(business_date, policy)

    return {
        "shift": window.to_dict(),
        "business_day": {"start": to_utc_z(day_start), "end": to_utc_z(day_end)},
        "today_revenue_cents": revenue,
        "today_batches": batch_count,
        "staff_online": presence_service.staff_online(bakery_id, now),
        "low_stock_count": inventory_service.low_stock_count(bakery_id, business_date),
        "recent_activities": [a.to_dict() for a in activity_service.recent_activities(bakery_id, limit=20, now=now)],
    }


def manager_dashboard(bakery_id: int, *, now: datetime | None = None) -> dict:
    """Current shift, its active batches, batch stats and production per bread type."""
    now = now or utcnow()
    window = resolve_shift(now, current_policy())
    return {
        "shift": window.to_dict(),
        "active_batches": [b.to_dict() for b in batch_service.active_batches(bakery_id, now=now)],
        "batch_stats": batch_service.batch_stats(bakery_id, now=now),
        "production": production_service.production_by_bread_type(bakery_id, window.business_date, window.shift),
        "inventory": inventory_service.derive_inventory(bakery_id, window.business_date, window.shift),
    }


def sales_rep_dashboard(user: User, *, now: datetime | None = None) -> dict:
    """The rep's own sales for the current shift plus available stock."""
    now = now or utcnow()
    mine = sales_service.my_shift_sales(user, now=now)
    window = resolve_shift(now, current_policy())
    return {
        "shift": mine["shift"],
        "sales": [s.to_dict() for s in mine["sales"]],
        "total_revenue_cents": mine["total_revenue_cents"],
        "total_items_sold": mine["total_items_sold"],
        "available_stock": [
            row for row in inventory_service.derive_inventory(user.bakery_id, window.business_date, window.shift)
            if row["produced"] > 0
        ],
    }
