"""Cross-process lock for shadow index updates.

``CacheSessionDriver`` accepts any context manager as its ``index_lock``.
Threads of one process can share a ``threading.Lock``; processes sharing a
host cache need something visible to all of them, which ``FileLock``
provides through exclusive creation of a sentinel file.

Classes
-------
FileLock
    Advisory lock on a sentinel ``.lock`` file, with a timeout and
    optional breaking of locks left behind by crashed holders.
"""
from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from uuid import uuid4

logger = logging.getLogger(__name__)

_POLL_INTERVAL_SECONDS: float = 0.05


class FileLock:
    """Advisory lock implemented by atomically creating ``lock_path``.

    Parameters
    ----------
    lock_path:
        Sentinel file path.  Created on acquisition, removed on release.
    timeout:
        Seconds to wait before raising :class:`TimeoutError`.
    stale_after:
        When set, a sentinel older than this many seconds is assumed to
        belong to a crashed holder and is removed.

    Notes
    -----
    A stale sentinel is renamed to a private tombstone and compared by
    inode and mtime before it is deleted, so two waiters breaking the same
    stale lock cannot both acquire it.  Two limits remain.  A holder that
    keeps the lock longer than ``stale_after`` is indistinguishable from a
    crashed one.  If a third waiter creates the sentinel in the instant a
    wrongly moved fresh sentinel is being put back, the restore fails and
    that waiter also holds the lock; this is logged as a warning.
    """

    def __init__(
        self,
        lock_path: str | Path,
        timeout: float = 10.0,
        stale_after: float | None = None,
    ) -> None:
        self._lock_path: Path = Path(lock_path)
        self._timeout = timeout
        self._stale_after = stale_after
        self._fd: int | None = None

    @property
    def locked(self) -> bool:
        """True while this instance holds the lock."""
        return self._fd is not None

    def _break_if_stale(self) -> None:
        if self._stale_after is None:
            return
        try:
            seen = self._lock_path.stat()
        except FileNotFoundError:
            return
        age = time.time() - seen.st_mtime
        if age < self._stale_after:
            return

        # Move the sentinel aside under a private name, then check it is the
        # file judged stale.  Another waiter may have broken it and taken the
        # lock in between, in which case the fresh sentinel goes back.
        tombstone = self._lock_path.with_name(
            f"{self._lock_path.name}.{os.getpid()}.{uuid4().hex}.stale"
        )
        try:
            os.rename(self._lock_path, tombstone)
        except FileNotFoundError:
            return
        moved = tombstone.stat()
        if (moved.st_ino, moved.st_mtime_ns) != (seen.st_ino, seen.st_mtime_ns):
            logger.debug("FileLock: %s was re-acquired by another waiter", self._lock_path)
            try:
                os.link(tombstone, self._lock_path)
            except FileExistsError:
                logger.warning(
                    "FileLock: could not restore %s; a third waiter created it",
                    self._lock_path,
                )
            tombstone.unlink(missing_ok=True)
            return
        logger.warning("FileLock: breaking stale lock %s (%.1fs old)", self._lock_path, age)
        tombstone.unlink(missing_ok=True)

    def acquire(self) -> None:
        """Block until the lock is held.

        Raises
        ------
        TimeoutError
            If the lock cannot be acquired within ``timeout`` seconds.
        """
        start = time.monotonic()
        while True:
            try:
                self._fd = os.open(self._lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
                return
            except FileExistsError:
                self._break_if_stale()
                if time.monotonic() - start >= self._timeout:
                    raise TimeoutError(
                        f"Could not acquire lock {self._lock_path} within {self._timeout}s"
                    )
                time.sleep(_POLL_INTERVAL_SECONDS)

    def release(self) -> None:
        """Release the lock.  Releasing a lock that is not held is a no-op."""
        if self._fd is None:
            return
        os.close(self._fd)
        self._fd = None
        self._lock_path.unlink(missing_ok=True)

    def __enter__(self) -> FileLock:
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        self.release()
