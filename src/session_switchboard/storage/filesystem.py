"""Filesystem session driver.

Persists each session as an individual file under a directory.  The
directory is either fixed at construction or taken from the ``save_path``
passed to ``open``; it defaults to ``~/.session-switchboard/sessions``.

Classes
-------
- FileSessionDriver  — file-per-session storage
"""
from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Callable

from session_switchboard.storage.base import SessionDriver

logger = logging.getLogger(__name__)

_DEFAULT_STORAGE_DIR: Path = Path.home() / ".session-switchboard" / "sessions"
_FILE_PREFIX = "sess_"


class FileSessionDriver(SessionDriver):
    """Stores sessions as ``<storage_dir>/sess_<session_id>`` files.

    Record age for ``gc`` is the file modification time.

    Parameters
    ----------
    storage_dir:
        Directory for session files.  When None, the ``save_path`` given to
        ``open`` is used, falling back to ``~/.session-switchboard/sessions``.
        Created on first write if absent.
    clock:
        Returns the current time in epoch seconds.
    """

    def __init__(
        self,
        storage_dir: str | Path | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._fixed_dir = storage_dir is not None
        self._storage_dir: Path = (
            Path(storage_dir) if storage_dir is not None else _DEFAULT_STORAGE_DIR
        )
        self._clock = clock

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _path_for(self, session_id: str) -> Path:
        """Return the file path for ``session_id``."""
        # Guard against path traversal attacks.
        safe_name = os.path.basename(session_id)
        return self._storage_dir / f"{_FILE_PREFIX}{safe_name}"

    # ------------------------------------------------------------------
    # SessionDriver interface
    # ------------------------------------------------------------------

    def open(self, save_path: str = "", session_name: str = "") -> bool:
        """Adopt ``save_path`` as the storage directory unless one was fixed."""
        if save_path and not self._fixed_dir:
            self._storage_dir = Path(save_path)
        return super().open(save_path, session_name)

    def read(self, session_id: str) -> str:
        path = self._path_for(session_id)
        if not path.is_file():
            return ""
        return path.read_text(encoding="utf-8")

    def write(self, session_id: str, data: str) -> bool:
        """Write ``data`` and stamp the file with the driver clock."""
        self._storage_dir.mkdir(parents=True, exist_ok=True)
        path = self._path_for(session_id)
        path.write_text(data, encoding="utf-8")
        now = self._clock()
        os.utime(path, (now, now))
        return True

    def destroy(self, session_id: str) -> bool:
        self._path_for(session_id).unlink(missing_ok=True)
        return True

    def gc(self, max_lifetime: int) -> bool:
        """Remove every session file whose mtime plus ``max_lifetime`` has passed."""
        if not self._storage_dir.exists():
            return True
        now = int(self._clock())
        removed = 0
        for path in self._storage_dir.glob(f"{_FILE_PREFIX}*"):
            if path.is_file() and int(path.stat().st_mtime) + max_lifetime <= now:
                path.unlink(missing_ok=True)
                removed += 1
        if removed:
            logger.debug("FileSessionDriver: gc removed %d session file(s)", removed)
        return True

    # ------------------------------------------------------------------
    # Extras
    # ------------------------------------------------------------------

    @property
    def storage_dir(self) -> Path:
        """Directory currently holding session files."""
        return self._storage_dir

    def session_ids(self) -> list[str]:
        """Return all session IDs present in the storage directory."""
        if not self._storage_dir.exists():
            return []
        return [
            path.name[len(_FILE_PREFIX):]
            for path in self._storage_dir.glob(f"{_FILE_PREFIX}*")
            if path.is_file()
        ]

    def __repr__(self) -> str:
        return f"FileSessionDriver(storage_dir={str(self._storage_dir)!r})"
