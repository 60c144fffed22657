"""Exception hierarchy for session-switchboard.

Every error raised by the library derives from ``SessionError``.  Several
classes additionally inherit a builtin (``KeyError``, ``RuntimeError``) so
callers that already guard against those keep working.

Classes
-------
- SessionError               — root of the hierarchy
- ConfigurationError         — registry / construction problems
- DuplicateDriverError       — a driver name is already registered
- DriverNotFoundError        — no driver bound to the requested name
- BackendUnavailableError    — required cache client library is missing
- SessionStateError          — lifecycle call made in the wrong state
- SessionDisabledError       — the host engine is disabled
- SessionNotInitializedError — the store has not been initialised
- SessionAlreadyActiveError  — a session is already active
- AttributeNotFoundError     — ``get`` on an absent attribute
- SessionIdCollisionError    — unique id generation gave up
"""
from __future__ import annotations


class SessionError(Exception):
    """Base class for every error raised by session-switchboard."""


class ConfigurationError(SessionError):
    """Raised when the store or a driver is mis-configured."""


class DuplicateDriverError(ConfigurationError):
    """Raised when registering a driver under a name that is already taken."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"A session driver named {name!r} is already registered.")


class DriverNotFoundError(ConfigurationError, KeyError):
    """Raised when no driver is bound to the requested (or default) name."""

    def __init__(self, name: str | None) -> None:
        self.name = name
        if name is None:
            message = "No default session driver has been set."
        else:
            message = f"No session driver is registered under {name!r}."
        super().__init__(message)

    def __str__(self) -> str:
        # KeyError would otherwise wrap the message in quotes.
        return str(self.args[0])


class BackendUnavailableError(SessionError):
    """Raised when a driver's backing store cannot be used on this host."""

    def __init__(self, message: str, backend: str | None = None) -> None:
        self.backend = backend
        super().__init__(message)


class SessionStateError(SessionError, RuntimeError):
    """Raised when a lifecycle method is invoked in the wrong state."""


class SessionDisabledError(SessionStateError):
    """Raised when the host session engine is disabled."""

    def __init__(self) -> None:
        super().__init__("Sessions must be enabled.")


class SessionNotInitializedError(SessionStateError):
    """Raised by ``safe_start`` when the store was never initialised."""

    def __init__(self) -> None:
        super().__init__("The session store must be initialised before a safe start.")


class SessionAlreadyActiveError(SessionStateError):
    """Raised when starting a session while one is already active."""

    def __init__(self, session_id: str | None = None) -> None:
        self.session_id = session_id
        super().__init__("A session is already active.")


class AttributeNotFoundError(SessionError, KeyError):
    """Raised by ``get`` for an attribute that is not set.

    Guard with ``has`` first.
    """

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Session attribute {key!r} is not set. Check has() first.")

    def __str__(self) -> str:
        return str(self.args[0])


class SessionIdCollisionError(SessionError):
    """Raised when unique id generation exhausts its attempts."""

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(
            f"Could not generate an unused session id in {attempts} attempt(s)."
        )
