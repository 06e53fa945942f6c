# Overview: Per-app read-through query cache with optimistic mutations.

"""
Query cache

Holds query results keyed by tuples such as ("dashboard", bakery_id, "owner").
One instance lives on each Flask app (app.extensions["homebake_cache"]);
nothing here is module-global.

- fetch(): return fresh data, or load it. Concurrent fetches of one key
  share a single in-flight load.
- Entries go stale after `stale_after_seconds` (the dashboard polling
  interval) or when invalidated; stale data is reloaded on the next fetch.
  A load that overlaps a set(), mutate() or invalidate() of its key is
  stored already stale (per-key generation counter).
- mutate(): splice a temporary record (id "temp-N", is_optimistic=True)
  into a cached list, run the write, then swap in the authoritative record
  on success or restore the exact pre-mutation snapshot on failure. Either
  way the affected keys are marked stale afterwards.

Concurrent mutations of the same key are not sequenced: the last write to
the entry wins, so restoring one mutation's snapshot can drop another
mutation's optimistic record. The stale mark on settle reconciles it.
"""

from __future__ import annotations

import copy
import itertools
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

from flask import current_app


EXTENSION_KEY = "homebake_cache"

_MISSING = object()


@dataclass
class CacheEntry:
    data: Any
    fetched_at: float
    stale: bool = False


@dataclass
class _InFlight:
    event: threading.Event = field(default_factory=threading.Event)
    result: Any = None
    error: BaseException | None = None


def _matches(key: tuple, prefix: tuple) -> bool:
    return key[:len(prefix)] == prefix


class QueryCache:
    def __init__(self, stale_after_seconds: float = 30.0, clock: Callable[[], float] = time.monotonic):
        self.stale_after_seconds = stale_after_seconds
        self._clock = clock
        self._entries: dict[tuple, CacheEntry] = {}
        self._inflight: dict[tuple, _InFlight] = {}
        self._generations: dict[tuple, int] = {}
        self._lock = threading.RLock()
        self._temp_ids = itertools.count(1)

    # -- reads -------------------------------------------------------------

    def _is_fresh(self, entry: CacheEntry) -> bool:
        return not entry.stale and (self._clock() - entry.fetched_at) < self.stale_after_seconds

    def _bump(self, key: tuple) -> None:
        self._generations[key] = self._generations.get(key, 0) + 1

    def fetch(self, key: tuple, loader: Callable[[], Any]) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._is_fresh(entry):
                return entry.data
            inflight = self._inflight.get(key)
            owner = inflight is None
            if owner:
                inflight = _InFlight()
                self._inflight[key] = inflight
            started_at = self._generations.get(key, 0)

        if not owner:
            inflight.event.wait()
            if inflight.error is not None:
                raise inflight.error
            return inflight.result

        try:
            data = loader()
        except BaseException as exc:
            with self._lock:
                self._inflight.pop(key, None)
            inflight.error = exc
            inflight.event.set()
            raise

        with self._lock:
            # written or invalidated while loading: keep the data, but stale
            moved = self._generations.get(key, 0) != started_at
            self._entries[key] = CacheEntry(data=data, fetched_at=self._clock(), stale=moved)
            self._inflight.pop(key, None)
        inflight.result = data
        inflight.event.set()
        return data

    def get(self, key: tuple, default=None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            return entry.data if entry is not None else default

    def set(self, key: tuple, data: Any) -> None:
        with self._lock:
            self._bump(key)
            self._entries[key] = CacheEntry(data=data, fetched_at=self._clock())

    def is_stale(self, key: tuple) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is None or not self._is_fresh(entry)

    def invalidate(self, *prefixes: tuple) -> int:
        """Mark every key starting with any of `prefixes` stale. Returns the count."""
        count = 0
        with self._lock:
            for key in set(self._entries) | set(self._inflight):
                if any(_matches(key, p) for p in prefixes):
                    self._bump(key)
                    entry = self._entries.get(key)
                    if entry is not None:
                        entry.stale = True
                        count += 1
        return count

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._generations.clear()

    # -- optimistic writes -------------------------------------------------

    def mutate(
        self,
        key: tuple,
        mutation_fn: Callable[[], Any],
        optimistic_record: dict | None = None,
        invalidate: Iterable[tuple] = (),
        id_field: str = "id",
    ) -> Any:
        """
        Run `mutation_fn` with an optimistic record spliced into the cached
        list at `key`. Returns the mutation's result; re-raises its error
        after restoring the snapshot.
        """
        with self._lock:
            entry = self._entries.get(key)
            snapshot = copy.deepcopy(entry.data) if entry is not None else _MISSING
            snapshot_meta = (entry.fetched_at, entry.stale) if entry is not None else None
            self._bump(key)
            temp_id = f"temp-{next(self._temp_ids)}"
            if entry is not None and isinstance(entry.data, list) and optimistic_record is not None:
                temp = dict(optimistic_record)
                temp[id_field] = temp_id
                temp["is_optimistic"] = True
                entry.data = [temp] + entry.data

        try:
            result = mutation_fn()
        except BaseException:
            with self._lock:
                if snapshot is _MISSING:
                    self._entries.pop(key, None)
                else:
                    fetched_at, stale = snapshot_meta
                    self._entries[key] = CacheEntry(data=snapshot, fetched_at=fetched_at, stale=stale)
            self.invalidate(key, *invalidate)
            raise

        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and isinstance(entry.data, list):
                entry.data = [
                    result if isinstance(item, dict) and item.get(id_field) == temp_id else item
                    for item in entry.data
                ]
        self.invalidate(key, *invalidate)
        return result


def init_app(app) -> QueryCache:
    cache = QueryCache(stale_after_seconds=float(app.config.get("DASHBOARD_POLL_SECONDS", 30)))
    app.extensions[EXTENSION_KEY] = cache
    return cache


def get_cache() -> QueryCache:
    return current_app.extensions[EXTENSION_KEY]
