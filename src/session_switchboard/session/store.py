"""Multi-driver session store.

``SessionStore`` sits between the host session engine and the registered
drivers.  The engine's storage callbacks are routed to the *default*
driver, which is the source of truth for reads.  Every other registered
driver is a *mirror*: the ``*_all`` methods fan an operation out to all
drivers, default included, and ``destroy``/``close`` keep the mirrors in
step with the default.

Fan-out is best-effort: each driver is called in registration order, a
failing driver is logged and reported as False, and the remaining drivers
are still called.  There is no rollback and no cross-driver atomicity.
Every other operation propagates the first error.

Classes
-------
- SessionLifecycle  — UNINITIALIZED / OPEN / ACTIVE / CLOSED / DESTROYED
- SessionStore      — coordinator over a DriverRegistry and a SessionEngine
"""
from __future__ import annotations

import logging
from enum import Enum
from functools import partial
from typing import Any, Callable, Mapping, TypeVar

from session_switchboard.config import SessionConfig
from session_switchboard.errors import (
    AttributeNotFoundError,
    DriverNotFoundError,
    SessionAlreadyActiveError,
    SessionDisabledError,
    SessionNotInitializedError,
    SessionStateError,
)
from session_switchboard.session.engine import EngineStatus, SessionEngine
from session_switchboard.session.identity import (
    IdSource,
    create_sid,
    generate_unique,
    is_valid_sid,
    resolve_session_id,
)
from session_switchboard.session.registry import DriverRegistry
from session_switchboard.session.serializer import AttributeSerializer
from session_switchboard.storage.base import SessionDriver, SupportsCreateSid

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SessionLifecycle(str, Enum):
    """Lifecycle of the store's current session."""

    UNINITIALIZED = "uninitialized"
    OPEN = "open"
    ACTIVE = "active"
    CLOSED = "closed"
    DESTROYED = "destroyed"


class _DefaultDriverHandler(SessionDriver):
    """Save handler registered with the engine.

    Resolves the store's default driver on every call, so changing the
    default takes effect for the next callback.
    """

    def __init__(self, store: SessionStore) -> None:
        self._store = store

    @property
    def is_open(self) -> bool:
        """Open state of the current default driver; False when none is set."""
        try:
            return self._store.driver().is_open
        except DriverNotFoundError:
            return False

    def open(self, save_path: str = "", session_name: str = "") -> bool:
        return self._store.driver().open(save_path, session_name)

    def close(self) -> bool:
        return self._store.driver().close()

    def read(self, session_id: str) -> str:
        return self._store.driver().read(session_id)

    def write(self, session_id: str, data: str) -> bool:
        return self._store.driver().write(session_id, data)

    def destroy(self, session_id: str) -> bool:
        return self._store.driver().destroy(session_id)

    def gc(self, max_lifetime: int) -> bool:
        return self._store.driver().gc(max_lifetime)

    def create_sid(self) -> str:
        return self._store.create_sid()


class SessionStore:
    """Coordinates one session across a default driver and its mirrors.

    Parameters
    ----------
    config:
        Store settings.  Defaults to ``SessionConfig()``.
    engine:
        Host session engine.  Defaults to a ``SessionEngine`` built from
        ``config``.
    registry:
        Driver registry.  Defaults to an empty ``DriverRegistry``.

    Example
    -------
    ::

        store = SessionStore()
        store.add_driver("file", FileSessionDriver("/tmp/sessions"))
        store.add_driver("cache", CacheSessionDriver(MemoryCache()))
        store.set_default_driver("file")
        store.start()
        store.set("user", 42)
        store.close()
    """

    def __init__(
        self,
        config: SessionConfig | None = None,
        *,
        engine: SessionEngine | None = None,
        registry: DriverRegistry | None = None,
    ) -> None:
        self.config = config or SessionConfig()
        self._engine = engine or SessionEngine(
            serializer=AttributeSerializer(self.config.serializer_format),
            name=self.config.name,
            save_path=self.config.save_path,
        )
        self._registry = registry or DriverRegistry()
        self._handler = _DefaultDriverHandler(self)
        self._session_id: str | None = None
        self._lifecycle = SessionLifecycle.UNINITIALIZED

    @property
    def engine(self) -> SessionEngine:
        return self._engine

    @property
    def registry(self) -> DriverRegistry:
        return self._registry

    @property
    def lifecycle(self) -> SessionLifecycle:
        return self._lifecycle

    # ------------------------------------------------------------------
    # Drivers
    # ------------------------------------------------------------------

    def add_driver(self, name: str, driver: SessionDriver) -> SessionDriver:
        """Register ``driver`` under ``name``.

        If ``config.default_driver`` names this driver it becomes the default.
        """
        self._registry.register(name, driver)
        if self.config.default_driver == name:
            self._registry.set_default(name)
        return driver

    def set_default_driver(self, name: str) -> None:
        self._registry.set_default(name)

    def get_default_driver(self) -> str:
        return self._registry.get_default()

    def get_all_drivers(self) -> dict[str, SessionDriver]:
        return self._registry.all()

    def driver(self, name: str | None = None) -> SessionDriver:
        """Return the default driver, first making ``name`` the default if given."""
        return self._registry.resolve(name)

    def close_driver(self, name: str) -> bool:
        return self._registry.get(name).close()

    def unset_driver(self, name: str) -> SessionDriver:
        """Unregister ``name`` without closing it."""
        return self._registry.unregister(name)

    # ------------------------------------------------------------------
    # Session identity
    # ------------------------------------------------------------------

    def create_sid(self) -> str:
        """Generate a session id.

        The default driver's own generator is used when it provides one.
        With ``config.unique_ids`` candidates already holding a record in
        the default driver are rejected.
        """
        driver = self.driver()
        generate: Callable[[], str]
        if isinstance(driver, SupportsCreateSid):
            generate = driver.create_sid
        else:
            generate = partial(create_sid, self.config.client_address or None)

        if not self.config.unique_ids:
            return generate()
        return generate_unique(
            generate,
            lambda candidate: driver.read(candidate) != "",
            self.config.unique_id_attempts,
        )

    def id_sources(self, session_id: str | None = None) -> list[IdSource]:
        """Return the id sources ``start`` consults, highest priority first.

        Explicit id, previously bound id, engine id, session cookie, then a
        freshly generated id.  A cookie outside the id charset is ignored.
        """
        return [
            lambda: session_id,
            lambda: self._session_id,
            lambda: self._engine.session_id,
            self._cookie_id,
            self.create_sid,
        ]

    def _cookie_id(self) -> str | None:
        cookie = self._engine.cookie(self.get_name())
        if cookie and not is_valid_sid(cookie):
            logger.warning("SessionStore: ignoring malformed %s cookie", self.get_name())
            return None
        return cookie

    def get_id(self) -> str:
        """Return the engine's current session id, ``""`` if none."""
        return self._engine.session_id

    def set_id(self, session_id: str) -> str:
        """Bind ``session_id`` for the next start; returns the previous id."""
        previous = self._engine.session_id
        self._engine.session_id = session_id
        self._session_id = session_id or None
        return previous

    def get_name(self) -> str:
        return self._engine.name or self.config.name

    def set_name(self, name: str) -> str:
        """Change the session name; returns the previous name.

        Raises
        ------
        SessionStateError
            If a session is active.
        """
        if self.is_started():
            raise SessionStateError("Cannot change the session name while a session is active.")
        previous = self.get_name()
        self._engine.name = name
        return previous

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def status(self) -> EngineStatus:
        return self._engine.status()

    def is_started(self) -> bool:
        return self._engine.status() is EngineStatus.ACTIVE

    def initialize(self) -> None:
        """Register this store as the engine's save handler.

        Raises
        ------
        SessionDisabledError
            If the engine is disabled.
        SessionAlreadyActiveError
            If a session is active.
        """
        if self._engine.status() is EngineStatus.DISABLED:
            raise SessionDisabledError()
        if self.is_started():
            raise SessionAlreadyActiveError(self.get_id())
        self._engine.set_save_handler(self._handler)
        self._lifecycle = SessionLifecycle.OPEN
        logger.debug("SessionStore: initialised with drivers %s", self._registry.names())

    def start(
        self,
        session_id: str | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> bool:
        """Resolve the session id and start the session on the default driver.

        Raises
        ------
        SessionDisabledError
            If the engine is disabled.
        SessionAlreadyActiveError
            If a session is already active.
        DriverNotFoundError
            If no default driver is set.
        """
        if self._engine.status() is EngineStatus.DISABLED:
            raise SessionDisabledError()
        if self._lifecycle is SessionLifecycle.ACTIVE or self.is_started():
            raise SessionAlreadyActiveError(self.get_id())
        if not self._engine.has_save_handler or self._lifecycle is SessionLifecycle.UNINITIALIZED:
            self.initialize()

        name = self.get_name()
        self._engine.name = name
        resolved = resolve_session_id(self.id_sources(session_id))
        self._engine.session_id = resolved
        if not self._engine.start({"name": name, **dict(options or {})}):
            raise SessionStateError(f"Could not start session {name!r}.")

        # The engine may have replaced the id while starting.
        self._session_id = self._engine.session_id
        self._lifecycle = SessionLifecycle.ACTIVE
        logger.debug("SessionStore: started session %r on %r", self._session_id, self.get_default_driver())
        return self.is_started()

    def safe_start(
        self,
        session_id: str | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> bool:
        """Start only from an initialised, inactive store.

        Raises
        ------
        SessionDisabledError
            If the engine is disabled.
        SessionNotInitializedError
            If ``initialize`` has not been called.
        SessionAlreadyActiveError
            If a session is already active.
        """
        if self._engine.status() is EngineStatus.DISABLED:
            raise SessionDisabledError()
        if self._lifecycle is SessionLifecycle.UNINITIALIZED:
            raise SessionNotInitializedError()
        if self.is_started():
            raise SessionAlreadyActiveError(self.get_id())
        return self.start(session_id, options)

    def destroy(self, session_id: str | None = None) -> bool:
        """Destroy the session on every mirror, then on the default via the engine.

        The default driver's ``destroy`` is never called directly; the
        engine's own destroy path tears it down.  Returns the engine's
        result, or False when no session is active.
        """
        session_id = session_id or self.get_id() or self._session_id
        if session_id:
            for name, driver in self._registry.mirrors().items():
                driver.destroy(session_id)
                logger.debug("SessionStore: destroyed %r on mirror %r", session_id, name)

        if not self.is_started():
            return False
        result = self._engine.destroy()
        self._session_id = None
        self._lifecycle = SessionLifecycle.DESTROYED
        return result

    def close(self) -> bool:
        """Persist the session to every driver, close them all, and abort.

        With no bound id the drivers are only closed.  The engine is aborted
        rather than write-closed since the data was already written.
        """
        session_id = self.get_id()
        drivers = self._registry.all()
        if not session_id:
            for driver in drivers.values():
                driver.close()
        else:
            data = self._engine.encode()
            for driver in drivers.values():
                driver.write(session_id, data)
                driver.close()
        result = self._engine.abort()
        if result:
            self._lifecycle = SessionLifecycle.CLOSED
            logger.debug("SessionStore: closed session %r", session_id)
        return result

    def save(self) -> dict[str, bool]:
        """Write the encoded attributes to every driver under the current id.

        Raises
        ------
        SessionStateError
            If no session id is bound.
        """
        session_id = self.get_id()
        if not session_id:
            raise SessionStateError("Cannot save: no session id is bound.")
        return self.write_all(session_id, self._engine.encode())

    def clear(self) -> SessionStore:
        """Remove every attribute."""
        self._engine.unset()
        return self

    unset = clear

    def regenerate(
        self,
        delete_old: bool = False,
        *,
        preserve_attributes: bool = False,
    ) -> SessionStore:
        """Clear the attributes and move the session to a new id.

        Parameters
        ----------
        delete_old:
            Destroy the old id's record on the default driver.
        preserve_attributes:
            Keep the attributes instead of clearing them.

        Raises
        ------
        SessionStateError
            If no session is active.
        """
        if not self.is_started():
            raise SessionStateError("Cannot regenerate the session id: no session is active.")
        if not preserve_attributes:
            self.clear()
        self._engine.regenerate_id(delete_old)
        self._session_id = self._engine.session_id
        return self

    def invalidate(self, delete_old: bool = False) -> SessionStore:
        """Clear the attributes, then regenerate the id."""
        return self.clear().regenerate(delete_old)

    def erase(self, session_id: str | None = None) -> bool:
        """Invalidate the session and destroy it, plus ``session_id`` on the mirrors.

        ``session_id`` defaults to the id the session had before it was
        invalidated.
        """
        target = session_id or self.get_id()
        return self.invalidate(True).destroy(target)

    # ------------------------------------------------------------------
    # Default driver delegation
    # ------------------------------------------------------------------

    def open(self, save_path: str | None = None, session_name: str | None = None) -> bool:
        return self.driver().open(
            self.config.save_path if save_path is None else save_path,
            session_name or self.get_name(),
        )

    def read(self, session_id: str) -> str:
        return self.driver().read(session_id)

    def write(self, session_id: str, data: str) -> bool:
        return self.driver().write(session_id, data)

    def gc(self, max_lifetime: int | None = None) -> bool:
        return self.driver().gc(
            self.config.gc_max_lifetime if max_lifetime is None else max_lifetime
        )

    # ------------------------------------------------------------------
    # Fan-out
    # ------------------------------------------------------------------

    def _fan_out(self, operation: str, call: Callable[[SessionDriver], T]) -> dict[str, T | bool]:
        results: dict[str, T | bool] = {}
        for name, driver in self._registry.all().items():
            try:
                results[name] = call(driver)
            except Exception:  # noqa: BLE001
                logger.warning(
                    "SessionStore: %s failed on driver %r", operation, name, exc_info=True
                )
                results[name] = False
        return results

    def open_all(self, save_path: str | None = None, session_name: str | None = None) -> dict[str, bool]:
        path = self.config.save_path if save_path is None else save_path
        name = session_name or self.get_name()
        return self._fan_out("open", lambda driver: driver.open(path, name))

    def read_all(self, session_id: str) -> dict[str, str]:
        """Return each driver's payload for ``session_id``; failing drivers are omitted."""
        payloads: dict[str, str] = {}
        for name, driver in self._registry.all().items():
            try:
                payloads[name] = driver.read(session_id)
            except Exception:  # noqa: BLE001
                logger.warning("SessionStore: read failed on driver %r", name, exc_info=True)
        return payloads

    def write_all(self, session_id: str, data: str) -> dict[str, bool]:
        return self._fan_out("write", lambda driver: driver.write(session_id, data))

    def destroy_all(self, session_id: str | None = None) -> dict[str, bool]:
        target = session_id or self.get_id()
        return self._fan_out("destroy", lambda driver: driver.destroy(target))

    def gc_all(self, max_lifetime: int | None = None) -> dict[str, bool]:
        lifetime = self.config.gc_max_lifetime if max_lifetime is None else max_lifetime
        return self._fan_out("gc", lambda driver: driver.gc(lifetime))

    def close_all(self) -> dict[str, bool]:
        return self._fan_out("close", lambda driver: driver.close())

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------

    def _attributes(self) -> dict[str, Any]:
        if self._engine.status() is EngineStatus.DISABLED:
            raise SessionDisabledError()
        return self._engine.attributes

    def set(self, key: str, value: Any) -> None:
        self._attributes()[key] = value

    def get(self, key: str) -> Any:
        """Return attribute ``key``.

        Raises
        ------
        AttributeNotFoundError
            If ``key`` is not set.
        """
        if not self.has(key):
            raise AttributeNotFoundError(key)
        return self._attributes()[key]

    def has(self, key: str) -> bool:
        """True if ``key`` is set to something other than None."""
        return self._attributes().get(key) is not None

    def add(self, key: str, value: Any) -> None:
        """Append ``value`` to the list stored under ``key``, creating it if needed.

        Raises
        ------
        TypeError
            If ``key`` holds a value that is not a list.
        """
        attributes = self._attributes()
        current = attributes.get(key)
        if current is None:
            attributes[key] = [value]
        elif isinstance(current, list):
            current.append(value)
        else:
            raise TypeError(f"Session attribute {key!r} is not a list.")

    def forget(self, key: str) -> None:
        self._attributes().pop(key, None)

    def all(self) -> dict[str, Any]:
        """Return a copy of every attribute."""
        return dict(self._attributes())

    def __repr__(self) -> str:
        return (
            f"SessionStore(lifecycle={self._lifecycle.value}, "
            f"session_id={self._session_id!r}, registry={self._registry!r})"
        )
