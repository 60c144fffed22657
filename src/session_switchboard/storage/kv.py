"""Key/value cache primitives used by ``CacheSessionDriver``.

A cache here supports exactly three operations: get, set and delete by
exact key.  There is no enumeration or range scan, which is why the cache
driver keeps its own index of live sessions.

Two host caches are interchangeable: ``diskcache`` (host-local, shared
between processes through SQLite) and ``redis``.  Both client libraries
are optional; ``select_cache`` picks whichever is installed.

Classes
-------
- KeyValueCache  — abstract get/set/delete cache
- MemoryCache    — in-process dict cache
- DiskCache      — ``diskcache.Cache`` adapter (requires ``diskcache``)
- RedisCache     — Redis adapter (requires ``redis``)

Functions
---------
- available_caches — importable host caches, in preference order
- select_cache     — construct the preferred available host cache
"""
from __future__ import annotations

import importlib
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from types import ModuleType
from typing import Any

from session_switchboard.errors import BackendUnavailableError

logger = logging.getLogger(__name__)

_DEFAULT_CACHE_DIR: Path = Path.home() / ".session-switchboard" / "cache"

# Preference order when more than one host cache is installed.
CACHE_PREFERENCE: tuple[str, ...] = ("diskcache", "redis")

_INSTALL_HINTS: dict[str, str] = {
    "diskcache": "pip install diskcache",
    "redis": "pip install redis",
}


def _import_client(module_name: str) -> ModuleType | None:
    try:
        return importlib.import_module(module_name)
    except ImportError:
        return None


class KeyValueCache(ABC):
    """A cache that can only get, set and delete by exact key."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the value for ``key`` or None if absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, overwriting any previous value."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove ``key``.  Returns True if something was deleted."""


class MemoryCache(KeyValueCache):
    """In-process cache backed by a dict.

    Two drivers handed the same ``MemoryCache`` share one keyspace, which
    is how tests model two processes sharing a host cache.
    """

    def __init__(self, initial_data: dict[str, str] | None = None) -> None:
        self._store: dict[str, str] = dict(initial_data or {})

    def get(self, key: str) -> str | None:
        return self._store.get(key)

    def set(self, key: str, value: str) -> None:
        self._store[key] = value

    def delete(self, key: str) -> bool:
        return self._store.pop(key, None) is not None

    def keys(self) -> list[str]:
        """Return every stored key (test helper; drivers never call this)."""
        return list(self._store)

    def __len__(self) -> int:
        return len(self._store)

    def __repr__(self) -> str:
        return f"MemoryCache(keys={len(self._store)})"


class DiskCache(KeyValueCache):
    """Adapter over ``diskcache.Cache``.

    Parameters
    ----------
    directory:
        Cache directory.  Defaults to ``~/.session-switchboard/cache``.
    key_prefix:
        String prepended to every key.
    """

    def __init__(
        self,
        directory: str | Path | None = None,
        key_prefix: str = "",
    ) -> None:
        module = _import_client("diskcache")
        if module is None:
            raise BackendUnavailableError(
                "The 'diskcache' package is required for DiskCache. "
                f"Install it with: {_INSTALL_HINTS['diskcache']}",
                backend="diskcache",
            )
        self._directory = Path(directory) if directory is not None else _DEFAULT_CACHE_DIR
        self._client = module.Cache(str(self._directory))
        self._key_prefix = key_prefix

    def _key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    def get(self, key: str) -> str | None:
        value = self._client.get(self._key(key))
        return None if value is None else str(value)

    def set(self, key: str, value: str) -> None:
        self._client.set(self._key(key), value)

    def delete(self, key: str) -> bool:
        return bool(self._client.delete(self._key(key)))

    def __repr__(self) -> str:
        return f"DiskCache(directory={str(self._directory)!r}, key_prefix={self._key_prefix!r})"


class RedisCache(KeyValueCache):
    """Adapter over a Redis connection.

    Each key is stored as a Redis string under ``<key_prefix><key>``.

    Parameters
    ----------
    host, port, db, password:
        Connection settings, ignored when ``url`` is given.
    key_prefix:
        String prepended to every key.  Defaults to ``"switchboard:"``.
    url:
        Redis connection URL (e.g. ``"redis://localhost:6379/0"``).
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        password: str | None = None,
        key_prefix: str = "switchboard:",
        url: str | None = None,
    ) -> None:
        module = _import_client("redis")
        if module is None:
            raise BackendUnavailableError(
                "The 'redis' package is required for RedisCache. "
                f"Install it with: {_INSTALL_HINTS['redis']}",
                backend="redis",
            )
        if url is not None:
            self._client = module.Redis.from_url(url, decode_responses=True)
        else:
            self._client = module.Redis(
                host=host,
                port=port,
                db=db,
                password=password,
                decode_responses=True,
            )
        self._key_prefix = key_prefix

    def _key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    def get(self, key: str) -> str | None:
        value = self._client.get(self._key(key))
        return None if value is None else str(value)

    def set(self, key: str, value: str) -> None:
        self._client.set(self._key(key), value)

    def delete(self, key: str) -> bool:
        return self._client.delete(self._key(key)) > 0

    def __repr__(self) -> str:
        return f"RedisCache(key_prefix={self._key_prefix!r})"


_CACHE_FACTORIES: dict[str, type[KeyValueCache]] = {
    "diskcache": DiskCache,
    "redis": RedisCache,
}


def available_caches() -> list[str]:
    """Return the host caches whose client library can be imported."""
    return [name for name in CACHE_PREFERENCE if _import_client(name) is not None]


def select_cache(prefer: str | None = None, **options: Any) -> KeyValueCache:
    """Construct a host cache.

    Parameters
    ----------
    prefer:
        ``"diskcache"`` or ``"redis"`` to require that cache.  When None the
        first available cache in ``CACHE_PREFERENCE`` is used.
    **options:
        Keyword arguments forwarded to the cache adapter.

    Raises
    ------
    BackendUnavailableError
        If neither cache is available, or ``prefer`` names one that is not.
    ValueError
        If ``prefer`` is not a known cache name.
    """
    if prefer is not None and prefer not in _CACHE_FACTORIES:
        raise ValueError(
            f"Unknown cache {prefer!r}; expected one of {', '.join(CACHE_PREFERENCE)}."
        )

    available = available_caches()
    if prefer is not None:
        if prefer not in available:
            raise BackendUnavailableError(
                f"The {prefer!r} cache is not available. "
                f"Install it with: {_INSTALL_HINTS[prefer]}",
                backend=prefer,
            )
        chosen = prefer
    elif available:
        chosen = available[0]
    else:
        raise BackendUnavailableError(
            "No session cache is available. Install diskcache or redis "
            f"({_INSTALL_HINTS['diskcache']} / {_INSTALL_HINTS['redis']})."
        )

    logger.debug("select_cache: using %s (available: %s)", chosen, available)
    return _CACHE_FACTORIES[chosen](**options)
