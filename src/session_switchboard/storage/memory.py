"""In-memory session driver.

Stores session records in a plain Python dict.  All data is lost when the
process exits.  This driver is primarily useful for tests and local
prototyping.

Classes
-------
- MemorySessionDriver  — dict-backed ephemeral driver
"""
from __future__ import annotations

import time
from typing import Callable

from session_switchboard.storage.base import SessionDriver


class MemorySessionDriver(SessionDriver):
    """Ephemeral, in-process session driver backed by a Python dict.

    Parameters
    ----------
    clock:
        Returns the current time in epoch seconds; used to stamp writes and
        to age records during ``gc``.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._store: dict[str, tuple[str, int]] = {}

    def read(self, session_id: str) -> str:
        """Return the payload for ``session_id`` or ``""``."""
        record = self._store.get(session_id)
        return record[0] if record is not None else ""

    def write(self, session_id: str, data: str) -> bool:
        self._store[session_id] = (data, int(self._clock()))
        return True

    def destroy(self, session_id: str) -> bool:
        self._store.pop(session_id, None)
        return True

    def gc(self, max_lifetime: int) -> bool:
        now = int(self._clock())
        expired = [
            session_id
            for session_id, (_, last_update) in self._store.items()
            if last_update + max_lifetime <= now
        ]
        for session_id in expired:
            del self._store[session_id]
        return True

    # ------------------------------------------------------------------
    # Extras
    # ------------------------------------------------------------------

    def session_ids(self) -> list[str]:
        """Return all stored session IDs in insertion order."""
        return list(self._store)

    def clear(self) -> None:
        """Remove all stored sessions."""
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)

    def __repr__(self) -> str:
        return f"MemorySessionDriver(sessions={len(self._store)})"
