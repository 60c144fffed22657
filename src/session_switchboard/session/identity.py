"""Session id generation and resolution.

Functions
---------
- create_sid          — built-in id generator
- resolve_session_id  — first non-empty id from an ordered list of sources
- generate_unique     — retry a generator until it yields an unused id
- is_valid_sid        — check a client-supplied id against the id charset

Generated ids are *not* checked for uniqueness unless the caller opts in
through ``generate_unique``; a collision between two md5 outputs is
possible in principle.
"""
from __future__ import annotations

import hashlib
import random
import re
import time
from typing import Callable, Iterable

from session_switchboard.errors import SessionIdCollisionError

IdSource = Callable[[], "str | None"]

# Client-supplied ids are limited to this charset.  It has no underscore, so
# a cookie can never name the cache driver's default "session_index" key.
_SID_PATTERN = re.compile(r"[A-Za-z0-9,-]{1,128}")


def _random_sample(length: int = 10) -> str:
    seed = hashlib.md5(repr(time.time()).encode("utf-8")).hexdigest()
    chars = list(seed)
    random.shuffle(chars)
    return "".join(chars[:length])


def create_sid(
    ip: str | None = None,
    timestamp: int | None = None,
    prng: float | None = None,
    rand: str | None = None,
) -> str:
    """Return a 32-character hex session id.

    The id is ``md5(ip + timestamp + prng + rand)``.

    Parameters
    ----------
    ip:
        Client address.  Empty when unknown.
    timestamp:
        Request time in epoch seconds; defaults to now.
    prng:
        Uniform [0, 1) draw; defaults to ``random.random()``.
    rand:
        Short random string; defaults to 10 characters of a shuffled md5
        digest of the sub-second time.
    """
    if timestamp is None:
        timestamp = int(time.time())
    if prng is None:
        prng = random.random()
    if rand is None:
        rand = _random_sample()
    material = f"{ip or ''}{timestamp}{prng}{rand}"
    return hashlib.md5(material.encode("utf-8")).hexdigest()


def resolve_session_id(sources: Iterable[IdSource]) -> str | None:
    """Evaluate ``sources`` in order and return the first non-empty id.

    Later sources are not called once one produces an id, so a generator
    placed last only runs when every other source came up empty.
    """
    for source in sources:
        session_id = source()
        if session_id:
            return session_id
    return None


def generate_unique(
    generate: Callable[[], str],
    in_use: Callable[[str], bool],
    attempts: int = 5,
) -> str:
    """Call ``generate`` until it returns an id for which ``in_use`` is False.

    Raises
    ------
    SessionIdCollisionError
        If every one of ``attempts`` candidates is already in use.
    """
    for _ in range(attempts):
        candidate = generate()
        if not in_use(candidate):
            return candidate
    raise SessionIdCollisionError(attempts)


def is_valid_sid(session_id: str | None) -> bool:
    """True if ``session_id`` is 1-128 characters of ``[A-Za-z0-9,-]``."""
    if not session_id:
        return False
    return _SID_PATTERN.fullmatch(session_id) is not None
