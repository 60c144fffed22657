"""In-process host session engine.

The store does not own the session lifecycle; a host engine does.  The
engine keeps the request-scoped attribute store, knows the current session
name and id, looks ids up in request cookies, and calls back into a single
registered save handler to open, read, write, destroy and garbage-collect
session records.  ``SessionEngine`` is a self-contained implementation of
that collaborator so the store can run outside any web framework.

Classes
-------
- EngineStatus   — DISABLED / NONE / ACTIVE
- SessionEngine  — callback-driven session engine
"""
from __future__ import annotations

import logging
from enum import IntEnum
from typing import Any, Mapping

from session_switchboard.config import DEFAULT_SESSION_NAME
from session_switchboard.errors import (
    SessionAlreadyActiveError,
    SessionDisabledError,
    SessionStateError,
)
from session_switchboard.session.identity import create_sid
from session_switchboard.session.serializer import AttributeSerializer
from session_switchboard.storage.base import SessionDriver, SupportsCreateSid

logger = logging.getLogger(__name__)


class EngineStatus(IntEnum):
    """Engine-level session status."""

    DISABLED = 0
    NONE = 1
    ACTIVE = 2


class SessionEngine:
    """Callback-driven session engine for one request.

    Parameters
    ----------
    enabled:
        When False every lifecycle call raises ``SessionDisabledError``.
    cookies:
        Request cookies, consulted for the session id.
    serializer:
        Encoder for the attribute store.  Defaults to JSON.
    name:
        Session (cookie) name.
    save_path:
        Passed to the save handler's ``open``.
    """

    def __init__(
        self,
        *,
        enabled: bool = True,
        cookies: Mapping[str, str] | None = None,
        serializer: AttributeSerializer | None = None,
        name: str = DEFAULT_SESSION_NAME,
        save_path: str = "",
    ) -> None:
        self._enabled = enabled
        self._cookies: dict[str, str] = dict(cookies or {})
        self._serializer = serializer or AttributeSerializer()
        self._name = name
        self._save_path = save_path
        self._handler: SessionDriver | None = None
        self._session_id = ""
        self._active = False
        self.attributes: dict[str, Any] = {}

    # ------------------------------------------------------------------
    # Status and configuration
    # ------------------------------------------------------------------

    def status(self) -> EngineStatus:
        if not self._enabled:
            return EngineStatus.DISABLED
        return EngineStatus.ACTIVE if self._active else EngineStatus.NONE

    def _require_enabled(self) -> None:
        if not self._enabled:
            raise SessionDisabledError()

    def _require_handler(self) -> SessionDriver:
        if self._handler is None:
            raise SessionStateError("No session save handler has been registered.")
        return self._handler

    def set_save_handler(self, handler: SessionDriver) -> None:
        """Route every storage callback to ``handler``."""
        self._require_enabled()
        if self._active:
            raise SessionStateError("Cannot change the save handler while a session is active.")
        self._handler = handler

    @property
    def has_save_handler(self) -> bool:
        return self._handler is not None

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        if self._active:
            raise SessionStateError("Cannot change the session name while a session is active.")
        self._name = value

    @property
    def session_id(self) -> str:
        """The current session id, ``""`` when none is set."""
        return self._session_id

    @session_id.setter
    def session_id(self, value: str | None) -> None:
        if self._active:
            raise SessionStateError("Cannot change the session id while a session is active.")
        self._session_id = value or ""

    @property
    def save_path(self) -> str:
        return self._save_path

    def cookie(self, name: str) -> str | None:
        """Return the request cookie ``name``, or None."""
        return self._cookies.get(name) or None

    # ------------------------------------------------------------------
    # Attribute encoding
    # ------------------------------------------------------------------

    def encode(self) -> str:
        return self._serializer.encode(self.attributes)

    def decode(self, raw: str) -> None:
        """Replace the attribute store with the decoded ``raw`` payload."""
        self.attributes = self._serializer.decode(raw)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _new_id(self, handler: SessionDriver) -> str:
        if isinstance(handler, SupportsCreateSid):
            return handler.create_sid()
        return create_sid()

    def start(self, options: Mapping[str, Any] | None = None) -> bool:
        """Open the handler and load the session's attributes.

        ``options["name"]`` overrides the session name.  When no id is set,
        one is generated through the handler.

        Raises
        ------
        SessionDisabledError
            If the engine is disabled.
        SessionAlreadyActiveError
            If a session is already active.
        SessionStateError
            If no save handler is registered or it fails to open.
        """
        self._require_enabled()
        if self._active:
            raise SessionAlreadyActiveError(self._session_id)
        handler = self._require_handler()
        options = dict(options or {})
        if options.get("name"):
            self._name = str(options["name"])

        if not handler.open(self._save_path, self._name):
            raise SessionStateError(f"Could not open session storage for {self._name!r}.")
        if not self._session_id:
            self._session_id = self._new_id(handler)
        self.decode(handler.read(self._session_id))
        self._active = True
        logger.debug("SessionEngine: started session %r", self._session_id)
        return True

    def destroy(self) -> bool:
        """Destroy the active session's storage and forget its id.

        The attribute store itself is left as is.  Returns False when no
        session is active.
        """
        self._require_enabled()
        if not self._active:
            return False
        handler = self._require_handler()
        result = handler.destroy(self._session_id)
        handler.close()
        logger.debug("SessionEngine: destroyed session %r", self._session_id)
        self._active = False
        self._session_id = ""
        return bool(result)

    def regenerate_id(self, delete_old: bool = False) -> bool:
        """Move the active session to a freshly generated id.

        The old record is destroyed when ``delete_old`` is True, otherwise
        the current attributes are written under the old id first.

        Raises
        ------
        SessionStateError
            If no session is active.
        """
        self._require_enabled()
        if not self._active:
            raise SessionStateError("Cannot regenerate the session id: no session is active.")
        handler = self._require_handler()
        old_id = self._session_id
        if delete_old:
            handler.destroy(old_id)
        else:
            handler.write(old_id, self.encode())
        self._session_id = self._new_id(handler)
        logger.debug("SessionEngine: regenerated id %r -> %r", old_id, self._session_id)
        return True

    def unset(self) -> bool:
        """Clear every attribute."""
        self._require_enabled()
        self.attributes.clear()
        return True

    def abort(self) -> bool:
        """Close the handler without writing.  False when no session is active."""
        self._require_enabled()
        if not self._active:
            return False
        self._require_handler().close()
        self._active = False
        return True

    def write_close(self) -> bool:
        """Write the attributes through the handler, then close it."""
        self._require_enabled()
        if not self._active:
            return False
        handler = self._require_handler()
        handler.write(self._session_id, self.encode())
        handler.close()
        self._active = False
        return True

    def gc(self, max_lifetime: int) -> bool:
        self._require_enabled()
        return self._require_handler().gc(max_lifetime)

    def __repr__(self) -> str:
        return (
            f"SessionEngine(name={self._name!r}, status={self.status().name}, "
            f"session_id={self._session_id!r})"
        )
