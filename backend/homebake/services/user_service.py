# Overview: Staff management within a bakery (owner only).

from __future__ import annotations

from ..extensions import db
from ..models import (
    Activity,
    Batch,
    ProductionLog,
    PushSubscription,
    QRInvite,
    RemainingBread,
    SalesLog,
    SessionToken,
    ShiftFeedback,
    ShiftReport,
    StaffSession,
    User,
)
from ..validation import ConflictError, NotFoundError, ValidationError, require_role_name
from . import session_service
from .auth_service import set_password


class UserManagementError(ValueError):
    """Raised for disallowed staff changes (e.g., removing the last owner)."""


def list_users(bakery_id: int, *, include_inactive: bool = True) -> list[User]:
    query = db.session.query(User).filter(User.bakery_id == bakery_id)
    if not include_inactive:
        query = query.filter(User.is_active.is_(True))
    return query.order_by(User.created_at.asc(), User.id.asc()).all()


def get_user(bakery_id: int, user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user or user.bakery_id != bakery_id:
        raise NotFoundError("User not found")
    return user


def _active_owner_count(bakery_id: int) -> int:
    return db.session.query(User).filter_by(bakery_id=bakery_id, role="owner", is_active=True).count()


def _guard_last_owner(target: User) -> None:
    if target.role == "owner" and target.is_active and _active_owner_count(target.bakery_id) <= 1:
        raise UserManagementError("A bakery must keep at least one active owner")


def change_role(*, actor: User, user_id: int, role: str) -> User:
    """Change a user's role and rewrite the role claim on their live sessions."""
    require_role_name(role)
    target = get_user(actor.bakery_id, user_id)
    if target.id == actor.id:
        raise UserManagementError("You cannot change your own role")
    if target.role == role:
        return target
    if role != "owner":
        _guard_last_owner(target)

    target.role = role
    session_service.update_role_claims(target.id, role)
    db.session.commit()
    return target


def set_active(*, actor: User, user_id: int, active: bool) -> User:
    """Activate or deactivate a user. Deactivation revokes sessions and presence."""
    target = get_user(actor.bakery_id, user_id)
    if target.id == actor.id:
        raise UserManagementError("You cannot deactivate yourself")
    if not isinstance(active, bool):
        raise ValidationError("is_active must be a boolean")

    if not active:
        _guard_last_owner(target)
        target.is_active = False
        db.session.query(StaffSession).filter_by(user_id=target.id).delete(synchronize_session=False)
        db.session.commit()
        session_service.revoke_all_user_sessions(target.id, reason="User deactivated")
    else:
        target.is_active = True
        db.session.commit()
    return target


def reset_password(*, actor: User, user_id: int, new_password: str) -> int:
    """
    Owner sets a new password for a staff member. All of the member's
    sessions and presence are dropped so they sign in again. Returns the
    number of revoked sessions.
    """
    target = get_user(actor.bakery_id, user_id)
    if target.id == actor.id:
        raise UserManagementError("Use change-password for your own account")

    set_password(target, new_password)
    db.session.query(StaffSession).filter_by(user_id=target.id).delete(synchronize_session=False)
    db.session.commit()
    return session_service.revoke_all_user_sessions(target.id, reason="Password reset by owner")


def update_profile(*, user: User, name: str) -> User:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("name is required")
    if len(name.strip()) > 128:
        raise ValidationError("name exceeds max length 128")
    user.name = name.strip()
    db.session.commit()
    return user


def delete_user(*, actor: User, user_id: int) -> None:
    """
    Remove a staff account that has no recorded work. Accounts that logged
    batches, production, sales or shift reports are deactivated instead.
    """
    target = get_user(actor.bakery_id, user_id)
    if target.id == actor.id:
        raise UserManagementError("You cannot delete yourself")
    _guard_last_owner(target)

    references = (
        (ProductionLog, ProductionLog.recorded_by_user_id),
        (SalesLog, SalesLog.recorded_by_user_id),
        (Batch, Batch.created_by_user_id),
        (RemainingBread, RemainingBread.recorded_by_user_id),
        (ShiftReport, ShiftReport.user_id),
        (QRInvite, QRInvite.created_by_user_id),
    )
    for model, column in references:
        if db.session.query(model.id).filter(column == target.id).first():
            raise ConflictError("User has recorded activity; deactivate the account instead")

    db.session.query(SessionToken).filter_by(user_id=target.id).delete(synchronize_session=False)
    db.session.query(StaffSession).filter_by(user_id=target.id).delete(synchronize_session=False)
    db.session.query(PushSubscription).filter_by(user_id=target.id).delete(synchronize_session=False)
    db.session.query(ShiftFeedback).filter_by(user_id=target.id).delete(synchronize_session=False)
    db.session.query(Activity).filter_by(user_id=target.id).update({"user_id": None}, synchronize_session=False)
    db.session.query(QRInvite).filter_by(used_by_user_id=target.id).update({"used_by_user_id": None}, synchronize_session=False)
    db.session.query(User).filter_by(created_by_user_id=target.id).update({"created_by_user_id": None}, synchronize_session=False)
    db.session.delete(target)
    db.session.commit()
