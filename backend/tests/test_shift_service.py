"""
Shift resolver tests.

Default policy: bakery-local UTC+1, morning 10:00-22:00, night 22:00-10:00.
In UTC that is morning 09:00-21:00 and night 21:00-09:00 (next day).
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from homebake.services.shift_service import (
    MORNING,
    NIGHT,
    ShiftPolicy,
    business_day_window,
    current_shift,
    is_in_shift,
    parse_shift,
    policy_from_config,
    resolve_shift,
    shift_window,
)
from homebake.validation import ValidationError


POLICY = ShiftPolicy()


# =============================================================================
# RESOLUTION AT BOUNDARIES
# =============================================================================


class TestResolveShift:

    def test_morning_starts_at_local_ten(self):
        window = resolve_shift(datetime(2026, 3, 10, 9, 0), POLICY)
        assert window.shift == MORNING
        assert window.business_date == date(2026, 3, 10)

    def test_one_second_before_morning_is_previous_night(self):
        window = resolve_shift(datetime(2026, 3, 10, 8, 59, 59), POLICY)
        assert window.shift == NIGHT
        assert window.business_date == date(2026, 3, 9)

    def test_night_starts_at_local_twenty_two(self):
        window = resolve_shift(datetime(2026, 3, 10, 21, 0), POLICY)
        assert window.shift == NIGHT
        assert window.business_date == date(2026, 3, 10)

    def test_after_local_midnight_belongs_to_night_that_started_before(self):
        # 00:30 local on the 11th
        window = resolve_shift(datetime(2026, 3, 10, 23, 30), POLICY)
        assert window.shift == NIGHT
        assert window.business_date == date(2026, 3, 10)

    def test_aware_datetimes_are_normalized(self):
        lagos = timezone(timedelta(hours=1))
        window = resolve_shift(datetime(2026, 3, 10, 10, 0, tzinfo=lagos), POLICY)
        assert window.shift == MORNING
        assert window.start == datetime(2026, 3, 10, 9, 0)

    def test_resolved_window_contains_now(self):
        now = datetime(2026, 3, 10, 15, 45)
        window = resolve_shift(now, POLICY)
        assert window.contains(now)
        assert is_in_shift(now, window.shift, window.business_date, POLICY)


# =============================================================================
# WINDOWS
# =============================================================================


class TestShiftWindows:

    def test_morning_window_in_utc(self):
        window = shift_window(date(2026, 3, 10), MORNING, POLICY)
        assert window.start == datetime(2026, 3, 10, 9, 0)
        assert window.end == datetime(2026, 3, 10, 21, 0)

    def test_night_window_crosses_midnight(self):
        window = shift_window(date(2026, 3, 10), NIGHT, POLICY)
        assert window.start == datetime(2026, 3, 10, 21, 0)
        assert window.end == datetime(2026, 3, 11, 9, 0)

    def test_shifts_are_contiguous(self):
        morning = shift_window(date(2026, 3, 10), MORNING, POLICY)
        night = shift_window(date(2026, 3, 10), NIGHT, POLICY)
        next_morning = shift_window(date(2026, 3, 11), MORNING, POLICY)
        assert morning.end == night.start
        assert night.end == next_morning.start

    def test_business_day_covers_both_shifts(self):
        start, end = business_day_window(date(2026, 3, 10), POLICY)
        assert start == shift_window(date(2026, 3, 10), MORNING, POLICY).start
        assert end == shift_window(date(2026, 3, 10), NIGHT, POLICY).end

    def test_to_dict_uses_utc_z(self):
        payload = shift_window(date(2026, 3, 10), MORNING, POLICY).to_dict()
        assert payload == {
            "shift": "morning",
            "business_date": "2026-03-10",
            "start": "2026-03-10T09:00:00Z",
            "end": "2026-03-10T21:00:00Z",
        }


# =============================================================================
# POLICY AND PARSING
# =============================================================================


class TestPolicy:

    def test_custom_policy_moves_boundaries(self):
        policy = ShiftPolicy(utc_offset_hours=0, morning_start_hour=6, morning_end_hour=18)
        assert resolve_shift(datetime(2026, 3, 10, 6, 0), policy).shift == MORNING
        assert resolve_shift(datetime(2026, 3, 10, 5, 59), policy).business_date == date(2026, 3, 9)

    @pytest.mark.parametrize("kwargs", [
        {"morning_start_hour": 22, "morning_end_hour": 10},
        {"morning_start_hour": 10, "morning_end_hour": 24},
        {"utc_offset_hours": 15},
    ])
    def test_invalid_policy_rejected(self, kwargs):
        with pytest.raises(ValueError):
            ShiftPolicy(**kwargs)

    def test_policy_from_config(self):
        policy = policy_from_config({"SHIFT_UTC_OFFSET_HOURS": "2", "SHIFT_MORNING_START_HOUR": 8, "SHIFT_MORNING_END_HOUR": 20})
        assert policy == ShiftPolicy(utc_offset_hours=2, morning_start_hour=8, morning_end_hour=20)

    def test_parse_shift(self):
        assert parse_shift("night") == NIGHT
        with pytest.raises(ValidationError):
            parse_shift("evening")

    def test_current_shift_uses_app_config(self, app, fixed_now):
        window = current_shift(fixed_now)
        assert window.shift == MORNING
        assert window.business_date == date(2026, 3, 10)

    def test_current_shift_endpoint(self, client):
        resp = client.get("/api/shift/current")
        assert resp.status_code == 200
        data = resp.json["data"]
        assert data["shift"] in ("morning", "night")
        assert data["policy"]["morning_start_hour"] == 10
