# Overview: Password hashing, account creation, and credential checks.

"""
Authentication Service

Passwords are hashed with bcrypt (cost from BCRYPT_ROUNDS, 12 by default).
A bakery is created together with its first user, who becomes its owner.
Every later account joins an existing bakery through an invite
(see invite_service) with the invite's role.
"""

import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import Bakery, User
from ..validation import ConflictError, ValidationError, require_role_name
from homebake.time_utils import utcnow


EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""


class InvalidPasswordError(ValueError):
    """Raised when the current password does not verify (401)."""


def validate_password_strength(password: str) -> None:
    """
    Minimum 8 characters with at least one letter and one digit.
    """
    if not isinstance(password, str) or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")
    if not re.search(r'[A-Za-z]', password):
        raise PasswordValidationError("Password must contain at least one letter")
    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str) -> str:
    validate_password_strength(password)
    rounds = int(current_app.config.get("BCRYPT_ROUNDS", 12))
    hashed = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=rounds))
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """bcrypt.checkpw is timing-safe; a malformed stored hash never verifies."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_email(email) -> str:
    if not isinstance(email, str) or not EMAIL_RE.match(email.strip()):
        raise ValidationError("A valid email is required")
    return email.strip().lower()


def _require_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("name is required")
    name = name.strip()
    if len(name) > 128:
        raise ValidationError("name exceeds max length 128")
    return name


def create_user(
    *,
    bakery_id: int,
    name: str,
    email: str,
    password: str,
    role: str,
    created_by_user_id: int | None = None,
    commit: bool = True,
) -> User:
    """
    Create a user in an existing bakery.

    Raises ValidationError for bad input, ConflictError if the email is taken.
    """
    email = normalize_email(email)
    name = _require_name(name)
    require_role_name(role)

    bakery = db.session.get(Bakery, bakery_id)
    if not bakery or not bakery.is_active:
        raise ValidationError("Bakery is not active")

    if db.session.query(User).filter_by(email=email).first():
        raise ConflictError("An account with this email already exists")

    user = User(
        bakery_id=bakery_id,
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=role,
        is_active=True,
        created_by_user_id=created_by_user_id,
    )
    db.session.add(user)
    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return user


def register_bakery(*, bakery_name: str, name: str, email: str, password: str) -> tuple[Bakery, User]:
    """Create a bakery and its owner in one transaction."""
    if not isinstance(bakery_name, str) or not bakery_name.strip():
        raise ValidationError("bakery_name is required")

    bakery = Bakery(name=bakery_name.strip()[:128], is_active=True)
    db.session.add(bakery)
    db.session.flush()

    try:
        owner = create_user(
            bakery_id=bakery.id,
            name=name,
            email=email,
            password=password,
            role="owner",
            commit=False,
        )
    except ValueError:
        db.session.rollback()
        raise

    db.session.commit()
    return bakery, owner


def authenticate(email: str, password: str) -> User | None:
    """
    Return the active user for these credentials, or None.

    Updates last_login_at on success.
    """
    if not isinstance(email, str) or not isinstance(password, str):
        return None

    user = db.session.query(User).filter(
        User.email == email.strip().lower(),
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    bakery = db.session.get(Bakery, user.bakery_id)
    if not bakery or not bakery.is_active:
        return None

    if not verify_password(password, user.password_hash):
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def set_password(user: User, new_password: str) -> None:
    """Hash (validating strength) and store a new password. Caller commits."""
    user.password_hash = hash_password(new_password)


def change_password(*, user: User, current_password: str, new_password: str) -> None:
    """
    Change the caller's own password. The current password must verify;
    the new one must pass the strength rule and differ from it.
    """
    if not isinstance(current_password, str) or not verify_password(current_password, user.password_hash):
        raise InvalidPasswordError("Current password is incorrect")
    if current_password == new_password:
        raise ValidationError("New password must be different from the current password")
    set_password(user, new_password)
    db.session.commit()
