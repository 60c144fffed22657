"""Session coordination subpackage.

Public surface
--------------
- SessionStore         — coordinator over the registry and the engine
- SessionLifecycle     — UNINITIALIZED / OPEN / ACTIVE / CLOSED / DESTROYED
- DriverRegistry       — named drivers plus the default driver name
- SessionEngine        — in-process host session engine
- EngineStatus         — DISABLED / NONE / ACTIVE
- AttributeSerializer  — JSON/YAML encoding of the attribute store
- create_sid, resolve_session_id, generate_unique, is_valid_sid — session identity helpers
"""
from __future__ import annotations

from session_switchboard.session.engine import EngineStatus, SessionEngine
from session_switchboard.session.identity import (
    create_sid,
    generate_unique,
    is_valid_sid,
    resolve_session_id,
)
from session_switchboard.session.registry import DriverRegistry
from session_switchboard.session.serializer import AttributeSerializer
from session_switchboard.session.store import SessionLifecycle, SessionStore

__all__ = [
    "AttributeSerializer",
    "DriverRegistry",
    "EngineStatus",
    "SessionEngine",
    "SessionLifecycle",
    "SessionStore",
    "create_sid",
    "generate_unique",
    "is_valid_sid",
    "resolve_session_id",
]
