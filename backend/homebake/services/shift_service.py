# Overview: Shift resolution; the single source of shift/business-date arithmetic.

"""
Shift Resolver

A bakery day has two shifts in bakery-local time:
- morning: [MORNING_START, MORNING_END)
- night:   [MORNING_END, MORNING_START next day)

A night shift belongs to the business date on which it started, so
02:00 local on the 6th resolves to the night shift of the 5th.

Resolution is pure: "now" is always passed in (naive datetimes are UTC)
and returned boundaries are naive UTC instants, half-open [start, end).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone

from flask import current_app

from homebake.time_utils import to_iso_date, to_utc_z, utcnow
from homebake.validation import SHIFTS, ValidationError


MORNING = "morning"
NIGHT = "night"


@dataclass(frozen=True)
class ShiftPolicy:
    utc_offset_hours: int = 1
    morning_start_hour: int = 10
    morning_end_hour: int = 22

    def __post_init__(self):
        for hour in (self.morning_start_hour, self.morning_end_hour):
            if not 0 <= hour <= 23:
                raise ValueError("Shift hours must be within 0..23")
        if self.morning_start_hour >= self.morning_end_hour:
            raise ValueError("Morning shift must start before it ends")
        if not -12 <= self.utc_offset_hours <= 14:
            raise ValueError("UTC offset must be within -12..14 hours")

    @property
    def offset(self) -> timedelta:
        return timedelta(hours=self.utc_offset_hours)


@dataclass(frozen=True)
class ShiftWindow:
    shift: str
    business_date: date
    start: datetime
    end: datetime

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end

    def to_dict(self) -> dict:
        return {
            "shift": self.shift,
            "business_date": to_iso_date(self.business_date),
            "start": to_utc_z(self.start),
            "end": to_utc_z(self.end),
        }


def policy_from_config(config) -> ShiftPolicy:
    """Build a ShiftPolicy from a Flask config mapping."""
    return ShiftPolicy(
        utc_offset_hours=int(config.get("SHIFT_UTC_OFFSET_HOURS", 1)),
        morning_start_hour=int(config.get("SHIFT_MORNING_START_HOUR", 10)),
        morning_end_hour=int(config.get("SHIFT_MORNING_END_HOUR", 22)),
    )


def _local_to_utc(business_date: date, hour: int, policy: ShiftPolicy) -> datetime:
    return datetime.combine(business_date, time(hour=hour)) - policy.offset


def shift_window(business_date: date, shift: str, policy: ShiftPolicy) -> ShiftWindow:
    if shift == MORNING:
        start = _local_to_utc(business_date, policy.morning_start_hour, policy)
        end = _local_to_utc(business_date, policy.morning_end_hour, policy)
    elif shift == NIGHT:
        start = _local_to_utc(business_date, policy.morning_end_hour, policy)
        end = _local_to_utc(business_date + timedelta(days=1), policy.morning_start_hour, policy)
    else:
        raise ValidationError("shift must be 'morning' or 'night'")
    return ShiftWindow(shift=shift, business_date=business_date, start=start, end=end)


def resolve_shift(now: datetime, policy: ShiftPolicy) -> ShiftWindow:
    """Return the shift active at `now` with its business date and UTC boundaries."""
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc).replace(tzinfo=None)

    local = now + policy.offset
    local_date = local.date()
    hour = local.hour

    if policy.morning_start_hour <= hour < policy.morning_end_hour:
        return shift_window(local_date, MORNING, policy)
    if hour >= policy.morning_end_hour:
        return shift_window(local_date, NIGHT, policy)
    # Early hours before the morning shift: still last night's shift
    return shift_window(local_date - timedelta(days=1), NIGHT, policy)


def current_business_date(now: datetime, policy: ShiftPolicy) -> date:
    return resolve_shift(now, policy).business_date


def business_day_window(business_date: date, policy: ShiftPolicy) -> tuple[datetime, datetime]:
    """Both shifts of a business date: morning start of D to morning start of D+1."""
    start = _local_to_utc(business_date, policy.morning_start_hour, policy)
    return start, start + timedelta(days=1)


def is_in_shift(instant: datetime, shift: str, business_date: date, policy: ShiftPolicy) -> bool:
    return shift_window(business_date, shift, policy).contains(instant)


def parse_shift(value) -> str:
    if value not in SHIFTS:
        raise ValidationError("shift must be 'morning' or 'night'")
    return value


def current_policy() -> ShiftPolicy:
    """Shift policy of the running app."""
    return policy_from_config(current_app.config)


def current_shift(now: datetime | None = None) -> ShiftWindow:
    return resolve_shift(now or utcnow(), current_policy())
