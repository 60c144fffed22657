"""Abstract base class for session storage drivers.

Every driver implements the six lifecycle callbacks the host session
engine invokes.  The payload exchanged with a driver is an opaque UTF-8
string (the encoded attribute store); drivers never interpret it.

Classes
-------
- SessionDriver     — abstract base for all drivers
- SupportsCreateSid — optional capability: driver-specific id generation
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Protocol, runtime_checkable


class SessionDriver(ABC):
    """Contract shared by every session storage driver.

    ``open`` and ``close`` bracket a usage session and are idempotent:
    calling either when already in that state returns True without doing
    anything.  ``read`` of an unknown id returns ``""`` and ``destroy`` of
    an unknown id succeeds; the host contract does not distinguish a missing
    session from an empty one.

    Drivers are safe for sequential use.  Sharing one backing store between
    processes is allowed; see each driver for its consistency caveats.
    """

    _is_open: bool = False

    @property
    def is_open(self) -> bool:
        """True between a successful ``open`` and the next ``close``."""
        return self._is_open

    def open(self, save_path: str = "", session_name: str = "") -> bool:
        """Prepare the driver for use.

        Parameters
        ----------
        save_path:
            Opaque location configured on the store.  Drivers that do not
            need one ignore it.
        session_name:
            The session (cookie) name.

        Returns
        -------
        bool
        """
        self._is_open = True
        return True

    def close(self) -> bool:
        """Release the driver.  Idempotent."""
        self._is_open = False
        return True

    @abstractmethod
    def read(self, session_id: str) -> str:
        """Return the payload stored under ``session_id``, or ``""``."""

    @abstractmethod
    def write(self, session_id: str, data: str) -> bool:
        """Persist ``data`` under ``session_id``, overwriting any previous value."""

    @abstractmethod
    def destroy(self, session_id: str) -> bool:
        """Remove the record for ``session_id``.  Unknown ids are not an error."""

    @abstractmethod
    def gc(self, max_lifetime: int) -> bool:
        """Remove every record not updated within ``max_lifetime`` seconds.

        A record whose last update plus ``max_lifetime`` equals the current
        time is expired.
        """


@runtime_checkable
class SupportsCreateSid(Protocol):
    """Drivers that generate their own session ids."""

    def create_sid(self) -> str:
        ...
