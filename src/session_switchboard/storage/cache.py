"""Cache session driver with a self-maintained shadow index.

The backing cache can only get, set and delete by exact key, yet garbage
collection needs to enumerate sessions by age.  The driver therefore keeps
one reserved key (the *shadow index*) whose value is a JSON document
mapping every live session id to its last update time::

    {"<session_id>": {"last_update": 1700000000}, ...}

The whole index is rewritten on every mutation.

Consistency
-----------
Without an ``index_lock`` the index read-modify-write is not atomic.  Two
processes writing different sessions at the same time can both read the
same snapshot; the later index write drops the earlier writer's entry,
leaving its record in the cache but invisible to ``gc``.  Two concurrent
``gc`` sweeps can likewise resurrect an entry the other sweep removed.
Passing any context manager as ``index_lock`` (``threading.Lock()``, or
``session_switchboard.storage.locking.FileLock`` across processes) makes
each index update exclusive.

Classes
-------
- CacheSessionDriver  — session driver over a ``KeyValueCache``
"""
from __future__ import annotations

import json
import logging
import time
from contextlib import AbstractContextManager, nullcontext
from typing import Any, Callable

from session_switchboard.storage.base import SessionDriver
from session_switchboard.storage.kv import KeyValueCache, select_cache

logger = logging.getLogger(__name__)

DEFAULT_INDEX_KEY = "session_index"


class CacheSessionDriver(SessionDriver):
    """Stores sessions in a non-enumerable key/value cache.

    Parameters
    ----------
    cache:
        The cache to store records and the index in.  When None, a host
        cache is chosen with ``select_cache`` (diskcache, then redis) and
        ``BackendUnavailableError`` is raised if neither is installed.
    index_key:
        Reserved key holding the shadow index.  Must not collide with a
        session id.
    clock:
        Returns the current time in epoch seconds.
    index_lock:
        Optional context manager held around every index update.
    prefer:
        Forwarded to ``select_cache`` when ``cache`` is None.
    **cache_options:
        Forwarded to ``select_cache`` when ``cache`` is None.
    """

    def __init__(
        self,
        cache: KeyValueCache | None = None,
        *,
        index_key: str = DEFAULT_INDEX_KEY,
        clock: Callable[[], float] = time.time,
        index_lock: AbstractContextManager[Any] | None = None,
        prefer: str | None = None,
        **cache_options: Any,
    ) -> None:
        self._cache: KeyValueCache = (
            cache if cache is not None else select_cache(prefer, **cache_options)
        )
        self._index_key = index_key
        self._clock = clock
        self._index_lock = index_lock

    # ------------------------------------------------------------------
    # Shadow index helpers
    # ------------------------------------------------------------------

    def _now(self) -> int:
        return int(self._clock())

    def _locked(self) -> AbstractContextManager[Any]:
        return self._index_lock if self._index_lock is not None else nullcontext()

    def _load_index(self) -> dict[str, dict[str, int]]:
        """Fetch and decode the shadow index.  Missing index -> empty."""
        raw = self._cache.get(self._index_key)
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(
                "CacheSessionDriver: index %r is not valid JSON; starting a new one",
                self._index_key,
            )
            return {}
        if not isinstance(data, dict):
            logger.warning(
                "CacheSessionDriver: index %r is not a mapping; starting a new one",
                self._index_key,
            )
            return {}

        # A malformed entry is kept with last_update 0 so the next gc
        # destroys it together with any record stored under its id.
        sessions: dict[str, dict[str, int]] = {}
        malformed: list[str] = []
        for session_id, entry in data.items():
            if session_id == self._index_key:
                malformed.append(session_id)
                continue
            last_update = entry.get("last_update") if isinstance(entry, dict) else None
            if isinstance(last_update, int) and not isinstance(last_update, bool):
                sessions[session_id] = {"last_update": last_update}
            else:
                malformed.append(session_id)
                sessions[session_id] = {"last_update": 0}
        if malformed:
            logger.warning(
                "CacheSessionDriver: index %r has %d malformed entries %r; marking them expired",
                self._index_key,
                len(malformed),
                malformed,
            )
        return sessions

    def _reject_index_key(self, session_id: str) -> None:
        if session_id == self._index_key:
            raise ValueError(
                f"Session id {session_id!r} is reserved for the shadow index."
            )

    def _store_index(self, sessions: dict[str, dict[str, int]]) -> None:
        self._cache.set(self._index_key, json.dumps(sessions, sort_keys=True))
        logger.debug(
            "CacheSessionDriver: rewrote index %r (%d sessions)",
            self._index_key,
            len(sessions),
        )

    def _destroy(self, session_id: str) -> bool:
        sessions = self._load_index()
        sessions.pop(session_id, None)
        self._store_index(sessions)
        self._cache.delete(session_id)
        return True

    # ------------------------------------------------------------------
    # SessionDriver interface
    # ------------------------------------------------------------------

    def read(self, session_id: str) -> str:
        """Return the cached record for ``session_id`` or ``""``.

        The reserved index key never reads as a session.
        """
        if session_id == self._index_key:
            return ""
        return self._cache.get(session_id) or ""

    def write(self, session_id: str, data: str) -> bool:
        """Upsert the index entry for ``session_id``, then store ``data``.

        The index is written before the record so a completed write is
        always visible to ``gc``.

        Raises
        ------
        ValueError
            If ``session_id`` is the reserved index key.
        """
        self._reject_index_key(session_id)
        with self._locked():
            sessions = self._load_index()
            sessions[session_id] = {"last_update": self._now()}
            self._store_index(sessions)
        self._cache.set(session_id, data)
        return True

    def destroy(self, session_id: str) -> bool:
        """Remove the index entry for ``session_id``, then its record.

        Raises
        ------
        ValueError
            If ``session_id`` is the reserved index key.
        """
        self._reject_index_key(session_id)
        with self._locked():
            return self._destroy(session_id)

    def gc(self, max_lifetime: int) -> bool:
        """Destroy every session whose ``last_update + max_lifetime <= now``.

        ``now`` is sampled once when the sweep starts.  The pruned index is
        written back once at the end of the sweep.
        """
        with self._locked():
            now = self._now()
            sessions = self._load_index()
            expired = [
                session_id
                for session_id, entry in sessions.items()
                if entry["last_update"] + max_lifetime <= now
            ]
            for session_id in expired:
                self._destroy(session_id)
                del sessions[session_id]
            self._store_index(sessions)
        if expired:
            logger.debug(
                "CacheSessionDriver: gc removed %d expired session(s)", len(expired)
            )
        return True

    # ------------------------------------------------------------------
    # Extras
    # ------------------------------------------------------------------

    def index(self) -> dict[str, int]:
        """Return a snapshot of the shadow index as ``{session_id: last_update}``."""
        return {
            session_id: entry["last_update"]
            for session_id, entry in self._load_index().items()
        }

    @property
    def cache(self) -> KeyValueCache:
        """The underlying key/value cache."""
        return self._cache

    def __len__(self) -> int:
        return len(self._load_index())

    def __repr__(self) -> str:
        return f"CacheSessionDriver(cache={self._cache!r}, index_key={self._index_key!r})"
