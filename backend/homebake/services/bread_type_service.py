# Overview: Bread type catalog operations.

from __future__ import annotations

from ..extensions import db
from ..models import Batch, BreadType, ProductionLog, RemainingBread, SalesLog
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    enforce_rules_bread_type,
    validate_payload,
)
from homebake.time_utils import utcnow


BREAD_TYPE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "size", "unit_price_cents"},
    required_on_create={"name", "unit_price_cents"},
)


def list_bread_types(bakery_id: int) -> list[BreadType]:
    return db.session.query(BreadType).filter_by(bakery_id=bakery_id).order_by(BreadType.name.asc()).all()


def get_bread_type(bakery_id: int, bread_type_id) -> BreadType:
    """Bread type of this bakery, or NotFoundError (including other bakeries' ids)."""
    bread_type = None
    if isinstance(bread_type_id, int) and not isinstance(bread_type_id, bool):
        bread_type = db.session.get(BreadType, bread_type_id)
    elif isinstance(bread_type_id, str) and bread_type_id.isdigit():
        bread_type = db.session.get(BreadType, int(bread_type_id))
    if not bread_type or bread_type.bakery_id != bakery_id:
        raise NotFoundError("Bread type not found")
    return bread_type


def _ensure_unique_name(bakery_id: int, name: str, exclude_id: int | None = None) -> None:
    query = db.session.query(BreadType).filter(
        BreadType.bakery_id == bakery_id,
        db.func.lower(BreadType.name) == name.lower(),
    )
    if exclude_id is not None:
        query = query.filter(BreadType.id != exclude_id)
    if query.first():
        raise ConflictError(f"A bread type named '{name}' already exists")


def create_bread_type(*, bakery_id: int, user_id: int, payload: dict) -> BreadType:
    patch = validate_payload(model=BreadType, payload=payload, policy=BREAD_TYPE_POLICY, partial=False)
    enforce_rules_bread_type(patch)
    _ensure_unique_name(bakery_id, patch["name"])

    bread_type = BreadType(bakery_id=bakery_id, created_by_user_id=user_id, **patch)
    db.session.add(bread_type)
    db.session.commit()
    return bread_type


def update_bread_type(*, bakery_id: int, bread_type_id: int, payload: dict) -> BreadType:
    bread_type = get_bread_type(bakery_id, bread_type_id)
    patch = validate_payload(model=BreadType, payload=payload, policy=BREAD_TYPE_POLICY, partial=True)
    enforce_rules_bread_type(patch)
    if "name" in patch:
        _ensure_unique_name(bakery_id, patch["name"], exclude_id=bread_type.id)

    for key, value in patch.items():
        setattr(bread_type, key, value)
    bread_type.updated_at = utcnow()
    db.session.commit()
    return bread_type


def delete_bread_type(*, bakery_id: int, bread_type_id: int) -> BreadType:
    """Delete an unreferenced bread type. Referenced ones raise ConflictError."""
    bread_type = get_bread_type(bakery_id, bread_type_id)

    references = (
        (ProductionLog, "production logs"),
        (SalesLog, "sales"),
        (Batch, "batches"),
        (RemainingBread, "remaining bread records"),
    )
    for model, label in references:
        if db.session.query(model.id).filter(model.bread_type_id == bread_type.id).first():
            raise ConflictError(f"Cannot delete '{bread_type.name}': it is referenced by {label}")

    db.session.delete(bread_type)
    db.session.commit()
    return bread_type
