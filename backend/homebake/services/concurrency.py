# Overview: Retry and row-locking helpers for the bakery's concurrent writers.

"""
Several staff write to the same shift at once: a manager completes a batch
while sales reps post sales against the same bread type. Two helpers keep
those writes consistent.

- run_with_retry() wraps a write unit. Production and sale posting,
  batch edits and batch cancellation all use it.
- lock_for_update() holds the batch row while it is being completed, so
  two managers cannot both complete it and double-count its yield.
"""

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import backoff_delay
from ..extensions import db


RETRYABLE_DB_ERRORS = (OperationalError, StaleDataError)


def lock_for_update(query):
    """
    SELECT ... FOR UPDATE on the rows `query` loads; held until commit.

    SQLite ignores the clause (it serializes writers itself).
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1, sleep=time.sleep):
    """
    Run a write unit, retrying when the database reports a lock or deadlock
    (OperationalError) or a concurrent update (StaleDataError).

    The session is rolled back before every retry, so `func` must load the
    rows it modifies itself (batch edit and cancel re-read the batch) and
    build new rows inside the call, as sale and production posting do.
    Waits double from
    `backoff_base`. Domain errors such as BatchError propagate untouched.
    """
    for attempt in range(1, attempts + 1):
        try:
            return func()
        except RETRYABLE_DB_ERRORS:
            db.session.rollback()
            if attempt >= attempts:
                raise
            sleep(backoff_delay(attempt, delay_seconds=backoff_base, backoff="exponential"))
