"""Named registry of session drivers.

Classes
-------
- DriverRegistry  — name -> driver bindings plus the default driver name
"""
from __future__ import annotations

import logging

from session_switchboard.errors import DriverNotFoundError, DuplicateDriverError
from session_switchboard.storage.base import SessionDriver

logger = logging.getLogger(__name__)


class DriverRegistry:
    """Holds every registered driver and the name of the default one.

    The default driver is the source of truth for the current session; all
    other registered drivers are mirrors.  Names are unique: registering a
    taken name fails and leaves the first binding untouched.
    """

    def __init__(self) -> None:
        self._drivers: dict[str, SessionDriver] = {}
        self._default: str | None = None

    def register(self, name: str, driver: SessionDriver) -> SessionDriver:
        """Bind ``driver`` to ``name``.

        Raises
        ------
        DuplicateDriverError
            If ``name`` is already registered.
        """
        if name in self._drivers:
            raise DuplicateDriverError(name)
        self._drivers[name] = driver
        logger.debug("DriverRegistry: registered %r (%r)", name, driver)
        return driver

    def unregister(self, name: str) -> SessionDriver:
        """Remove and return the driver bound to ``name``.

        The driver is not closed; that is the caller's job.  If ``name`` was
        the default, no default remains.

        Raises
        ------
        DriverNotFoundError
            If ``name`` is not registered.
        """
        try:
            driver = self._drivers.pop(name)
        except KeyError:
            raise DriverNotFoundError(name) from None
        if self._default == name:
            self._default = None
        logger.debug("DriverRegistry: unregistered %r", name)
        return driver

    def resolve(self, name: str | None = None) -> SessionDriver:
        """Return the default driver, first making ``name`` the default if given.

        Raises
        ------
        DriverNotFoundError
            If no driver is bound to the resulting default name, or no
            default was ever set.
        """
        if name:
            self._default = name
        if self._default is None or self._default not in self._drivers:
            raise DriverNotFoundError(self._default)
        return self._drivers[self._default]

    def set_default(self, name: str) -> None:
        """Make ``name`` the default driver.

        Raises
        ------
        DriverNotFoundError
            If ``name`` is not registered; the previous default is kept.
        """
        if name not in self._drivers:
            raise DriverNotFoundError(name)
        self._default = name

    def get_default(self) -> str:
        """Return the default driver name.

        Raises
        ------
        DriverNotFoundError
            If no default has been set.
        """
        if self._default is None:
            raise DriverNotFoundError(None)
        return self._default

    def get(self, name: str) -> SessionDriver:
        """Return the driver bound to ``name`` without touching the default."""
        try:
            return self._drivers[name]
        except KeyError:
            raise DriverNotFoundError(name) from None

    def all(self) -> dict[str, SessionDriver]:
        """Return every binding, in registration order."""
        return dict(self._drivers)

    def names(self) -> list[str]:
        return list(self._drivers)

    def mirrors(self) -> dict[str, SessionDriver]:
        """Return every binding except the default driver's."""
        return {name: driver for name, driver in self._drivers.items() if name != self._default}

    def __contains__(self, name: object) -> bool:
        return name in self._drivers

    def __len__(self) -> int:
        return len(self._drivers)

    def __repr__(self) -> str:
        return f"DriverRegistry(drivers={list(self._drivers)!r}, default={self._default!r})"
