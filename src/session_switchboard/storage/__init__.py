"""Storage driver subpackage.

Every driver implements the ``SessionDriver`` ABC.  The cache driver sits on
top of a ``KeyValueCache``; its host caches (diskcache, redis) guard their
third-party imports so the package stays importable without them.

Public surface
--------------
- SessionDriver        — abstract base class
- SupportsCreateSid    — optional id-generation capability
- MemorySessionDriver  — in-process dict (useful for testing)
- FileSessionDriver    — one file per session
- CacheSessionDriver   — key/value cache with a shadow index
- KeyValueCache        — get/set/delete cache contract
- MemoryCache, DiskCache, RedisCache — cache adapters
- select_cache, available_caches     — host cache selection
- FileLock             — cross-process index lock
"""
from __future__ import annotations

from session_switchboard.storage.base import SessionDriver, SupportsCreateSid
from session_switchboard.storage.cache import CacheSessionDriver
from session_switchboard.storage.filesystem import FileSessionDriver
from session_switchboard.storage.kv import (
    DiskCache,
    KeyValueCache,
    MemoryCache,
    RedisCache,
    available_caches,
    select_cache,
)
from session_switchboard.storage.locking import FileLock
from session_switchboard.storage.memory import MemorySessionDriver

__all__ = [
    "CacheSessionDriver",
    "DiskCache",
    "FileLock",
    "FileSessionDriver",
    "KeyValueCache",
    "MemoryCache",
    "MemorySessionDriver",
    "RedisCache",
    "SessionDriver",
    "SupportsCreateSid",
    "available_caches",
    "select_cache",
]
