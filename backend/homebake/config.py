# backend/homebake/config.py
from __future__ import annotations
import os


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/homebake.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///homebake.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Public base URL used to build invite links
    APP_URL = os.environ.get("APP_URL", "http://localhost:3000")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Shift policy. Morning runs [start, end) in bakery-local time,
    # night covers the rest of the day. Default bakery clock is Africa/Lagos.
    SHIFT_UTC_OFFSET_HOURS = _int_env("SHIFT_UTC_OFFSET_HOURS", 1)
    SHIFT_MORNING_START_HOUR = _int_env("SHIFT_MORNING_START_HOUR", 10)
    SHIFT_MORNING_END_HOUR = _int_env("SHIFT_MORNING_END_HOUR", 22)

    INVITE_TTL_MINUTES = _int_env("INVITE_TTL_MINUTES", 10)
    LOW_STOCK_THRESHOLD = _int_env("LOW_STOCK_THRESHOLD", 10)
    DASHBOARD_POLL_SECONDS = _int_env("DASHBOARD_POLL_SECONDS", 30)
    STAFF_SESSION_HOURS = _int_env("STAFF_SESSION_HOURS", 24)
    ACTIVITY_RETENTION_DAYS = _int_env("ACTIVITY_RETENTION_DAYS", 3)

    BCRYPT_ROUNDS = _int_env("BCRYPT_ROUNDS", 12)

    # Web Push (VAPID). Delivery is disabled when either key is missing.
    VAPID_PUBLIC_KEY = os.environ.get("VAPID_PUBLIC_KEY")
    VAPID_PRIVATE_KEY = os.environ.get("VAPID_PRIVATE_KEY")
    VAPID_SUBJECT = os.environ.get("VAPID_SUBJECT", "mailto:admin@homebake.local")
    PUSH_RETRY_DELAY_SECONDS = 1.0

    SESSION_COOKIE_NAME = "homebake_session"


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    BCRYPT_ROUNDS = 4
    VAPID_PUBLIC_KEY = None
    VAPID_PRIVATE_KEY = None
    PUSH_RETRY_DELAY_SECONDS = 0
