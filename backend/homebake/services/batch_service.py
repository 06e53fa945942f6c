# Overview: Production batch lifecycle (active -> completed | cancelled).

"""
Batches

A batch is one production run of a bread type in a shift. Numbers are
assigned server-side as "001", "002", ... per bakery, bread type, shift
and business date; two concurrent creates can collide on the unique
constraint, in which case the number is recomputed and the insert retried.

Completing a batch records its actual yield and writes the paired
production log and ledger entry in the same transaction.
"""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Batch, User
from ..validation import NotFoundError, require_non_negative, require_positive_quantity
from . import activity_service
from .bread_type_service import get_bread_type
from .concurrency import lock_for_update, run_with_retry
from .production_service import add_production_log
from .shift_service import current_policy, parse_shift, resolve_shift
from homebake.time_utils import utcnow


STATUSES = ("active", "completed", "cancelled")
NUMBER_ATTEMPTS = 3


class BatchError(ValueError):
    """Raised for invalid batch operations (e.g., completing a cancelled batch)."""


def get_batch(bakery_id: int, batch_id: int) -> Batch:
    batch = db.session.get(Batch, batch_id)
    if not batch or batch.bakery_id != bakery_id:
        raise NotFoundError("Batch not found")
    return batch


def next_batch_number(bakery_id: int, bread_type_id: int, shift: str, business_date: date) -> str:
    numbers = db.session.query(Batch.batch_number).filter_by(
        bakery_id=bakery_id,
        bread_type_id=bread_type_id,
        shift=shift,
        business_date=business_date,
    ).all()
    highest = max((int(n) for (n,) in numbers if n and n.isdigit()), default=0)
    return str(highest + 1).zfill(3)


def create_batch(
    *,
    user: User,
    bread_type_id,
    planned_quantity=None,
    notes: str | None = None,
    shift: str | None = None,
    now: datetime | None = None,
) -> Batch:
    now = now or utcnow()
    window = resolve_shift(now, current_policy())
    shift = parse_shift(shift) if shift else window.shift
    bread_type = get_bread_type(user.bakery_id, bread_type_id)
    planned = require_positive_quantity(planned_quantity, "planned_quantity") if planned_quantity is not None else None

    batch = None
    for attempt in range(NUMBER_ATTEMPTS):
        batch = Batch(
            bakery_id=user.bakery_id,
            bread_type_id=bread_type.id,
            batch_number=next_batch_number(user.bakery_id, bread_type.id, shift, window.business_date),
            shift=shift,
            business_date=window.business_date,
            status="active",
            planned_quantity=planned,
            start_time=now,
            notes=(notes or None),
            created_by_user_id=user.id,
            created_at=now,
        )
        db.session.add(batch)
        try:
            db.session.commit()
            break
        except IntegrityError:
            db.session.rollback()
            if attempt >= NUMBER_ATTEMPTS - 1:
                raise BatchError("Could not allocate a batch number, please retry")

    label = f"{planned}x {bread_type.name}" if planned else bread_type.name
    activity_service.log_activity(
        user,
        "batch",
        f"Created batch #{batch.batch_number}: {label}",
        shift=shift,
        metadata={"batch_number": batch.batch_number, "bread_type": bread_type.name, "quantity": planned},
        now=now,
    )
    return batch


def list_batches(
    bakery_id: int,
    *,
    shift: str | None = None,
    status: str | None = None,
    business_date: date | None = None,
    bread_type_id: int | None = None,
    limit: int = 200,
) -> list[Batch]:
    query = db.session.query(Batch).filter(Batch.bakery_id == bakery_id)
    if shift:
        query = query.filter(Batch.shift == parse_shift(shift))
    if status:
        if status not in STATUSES:
            raise BatchError(f"status must be one of: {', '.join(STATUSES)}")
        query = query.filter(Batch.status == status)
    if business_date:
        query = query.filter(Batch.business_date == business_date)
    if bread_type_id:
        query = query.filter(Batch.bread_type_id == bread_type_id)
    return query.order_by(Batch.created_at.desc(), Batch.id.desc()).limit(limit).all()


def active_batches(bakery_id: int, *, now: datetime | None = None) -> list[Batch]:
    """Active batches of the shift running at `now`."""
    window = resolve_shift(now or utcnow(), current_policy())
    return list_batches(bakery_id, shift=window.shift, status="active", business_date=window.business_date)


def update_batch(*, bakery_id: int, batch_id: int, payload: dict, now: datetime | None = None) -> Batch:
    allowed = {"notes", "planned_quantity"}
    unknown = set(payload) - allowed
    if unknown:
        raise BatchError(f"Field not allowed: {', '.join(sorted(unknown))}")

    planned = payload.get("planned_quantity")
    if planned is not None:
        planned = require_positive_quantity(planned, "planned_quantity")
    notes = payload.get("notes")
    if notes is not None:
        notes = str(notes).strip() or None

    def _op():
        batch = get_batch(bakery_id, batch_id)
        if batch.status != "active":
            raise BatchError(f"Only active batches can be edited (batch is {batch.status})")
        if "planned_quantity" in payload:
            batch.planned_quantity = planned
        if "notes" in payload:
            batch.notes = notes
        batch.updated_at = now or utcnow()
        db.session.commit()
        return batch

    return run_with_retry(_op)


def complete_batch(
    *,
    user: User,
    batch_id: int,
    actual_quantity,
    notes: str | None = None,
    now: datetime | None = None,
) -> Batch:
    """
    active -> completed. Stores the yield and, for a non-zero yield, writes
    the production log + ledger entry for the batch's own shift and date.
    """
    now = now or utcnow()
    actual = require_non_negative(actual_quantity, "actual_quantity")

    batch = lock_for_update(
        db.session.query(Batch).filter_by(id=batch_id, bakery_id=user.bakery_id)
    ).first()
    if not batch:
        raise NotFoundError("Batch not found")
    if batch.status != "active":
        raise BatchError(f"Cannot complete a {batch.status} batch")

    try:
        batch.status = "completed"
        batch.actual_quantity = actual
        batch.end_time = now
        batch.updated_at = now
        if notes:
            batch.notes = notes
        if actual > 0:
            add_production_log(
                user=user,
                bread_type_id=batch.bread_type_id,
                quantity=actual,
                shift=batch.shift,
                business_date=batch.business_date,
                now=now,
                batch_id=batch.id,
            )
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    activity_service.log_activity(
        user,
        "batch",
        f"Completed batch #{batch.batch_number}: {actual}x {batch.bread_type.name}",
        shift=batch.shift,
        metadata={"batch_number": batch.batch_number, "bread_type": batch.bread_type.name, "quantity": actual},
        now=now,
    )
    return batch


def cancel_batch(*, user: User, batch_id: int, now: datetime | None = None) -> Batch:
    now = now or utcnow()

    def _op():
        batch = get_batch(user.bakery_id, batch_id)
        if batch.status != "active":
            raise BatchError(f"Cannot cancel a {batch.status} batch")
        batch.status = "cancelled"
        batch.end_time = now
        batch.updated_at = now
        db.session.commit()
        return batch

    return run_with_retry(_op)


def delete_batch(*, user: User, role: str, batch_id: int) -> Batch:
    """
    Only active batches can be deleted: owners any, managers their own.
    Completed batches back production logs; cancelled ones stay as history.
    """
    batch = get_batch(user.bakery_id, batch_id)
    if role != "owner" and batch.created_by_user_id != user.id:
        raise BatchError("Only the batch creator or an owner can delete this batch")
    if batch.status != "active":
        raise BatchError(f"Cannot delete a {batch.status} batch")

    db.session.delete(batch)
    db.session.commit()
    return batch


def clear_batches(*, bakery_id: int, shift: str, business_date: date) -> int:
    """Delete every non-completed batch of a shift. Returns the count."""
    deleted = db.session.query(Batch).filter(
        Batch.bakery_id == bakery_id,
        Batch.shift == parse_shift(shift),
        Batch.business_date == business_date,
        Batch.status != "completed",
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted


def batch_stats(bakery_id: int, *, now: datetime | None = None) -> dict:
    window = resolve_shift(now or utcnow(), current_policy())
    batches = list_batches(bakery_id, shift=window.shift, business_date=window.business_date, limit=10_000)
    stats = {status: 0 for status in STATUSES}
    for batch in batches:
        stats[batch.status] = stats.get(batch.status, 0) + 1
    return {
        "shift": window.shift,
        "business_date": window.business_date.isoformat(),
        "total": len(batches),
        "by_status": stats,
        "total_yield": sum(b.actual_quantity or 0 for b in batches if b.status == "completed"),
    }
