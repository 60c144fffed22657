"""session-switchboard — pluggable multi-driver session storage.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import session_switchboard
>>> session_switchboard.__version__
'0.1.0'
"""
from __future__ import annotations

# Configuration and errors
from session_switchboard.config import SessionConfig, load_config
from session_switchboard.errors import (
    AttributeNotFoundError,
    BackendUnavailableError,
    ConfigurationError,
    DriverNotFoundError,
    DuplicateDriverError,
    SessionAlreadyActiveError,
    SessionDisabledError,
    SessionError,
    SessionIdCollisionError,
    SessionNotInitializedError,
    SessionStateError,
)

# Session core
from session_switchboard.session.engine import EngineStatus, SessionEngine
from session_switchboard.session.identity import create_sid
from session_switchboard.session.registry import DriverRegistry
from session_switchboard.session.serializer import AttributeSerializer
from session_switchboard.session.store import SessionLifecycle, SessionStore

# Storage drivers
from session_switchboard.storage.base import SessionDriver, SupportsCreateSid
from session_switchboard.storage.cache import CacheSessionDriver
from session_switchboard.storage.filesystem import FileSessionDriver
from session_switchboard.storage.kv import KeyValueCache, MemoryCache, select_cache
from session_switchboard.storage.memory import MemorySessionDriver

__version__: str = "0.1.0"

__all__ = [
    "__version__",
    # Configuration
    "SessionConfig",
    "load_config",
    # Errors
    "AttributeNotFoundError",
    "BackendUnavailableError",
    "ConfigurationError",
    "DriverNotFoundError",
    "DuplicateDriverError",
    "SessionAlreadyActiveError",
    "SessionDisabledError",
    "SessionError",
    "SessionIdCollisionError",
    "SessionNotInitializedError",
    "SessionStateError",
    # Session core
    "AttributeSerializer",
    "DriverRegistry",
    "EngineStatus",
    "SessionEngine",
    "SessionLifecycle",
    "SessionStore",
    "create_sid",
    # Storage
    "CacheSessionDriver",
    "FileSessionDriver",
    "KeyValueCache",
    "MemoryCache",
    "MemorySessionDriver",
    "SessionDriver",
    "SupportsCreateSid",
    "select_cache",
]
