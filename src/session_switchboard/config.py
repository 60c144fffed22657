"""Session store configuration.

``SessionConfig`` holds every per-process setting the store needs (session
name, save path, GC lifetime, id generation policy).  One instance is built
per store and passed in explicitly; nothing is kept at module level.

Functions
---------
- load_config  — read a YAML file into a validated ``SessionConfig``
"""
from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field

DEFAULT_SESSION_NAME = "SWITCHBOARD_SESSID"
DEFAULT_GC_MAX_LIFETIME = 86400


class SessionConfig(BaseModel):
    """Settings for a single ``SessionStore``.

    Parameters
    ----------
    name:
        Session (cookie) name used when the engine reports none.
    save_path:
        Opaque location handed to every driver's ``open``.
    gc_max_lifetime:
        Default ``max_lifetime`` (seconds) for ``gc`` and ``gc_all``.
    client_address:
        Client address mixed into generated session ids.
    serializer_format:
        Encoding of the attribute store: ``"json"`` or ``"yaml"``.
    unique_ids:
        When True, id generation retries while the default driver already
        holds a record for the candidate id.  Off by default.
    unique_id_attempts:
        Maximum number of candidates tried when ``unique_ids`` is set.
    default_driver:
        Name of the driver to make default once it is registered.
    """

    name: str = Field(default=DEFAULT_SESSION_NAME, min_length=1)
    save_path: str = ""
    gc_max_lifetime: int = Field(default=DEFAULT_GC_MAX_LIFETIME, ge=0)
    client_address: str = ""
    serializer_format: Literal["json", "yaml"] = "json"
    unique_ids: bool = False
    unique_id_attempts: int = Field(default=5, ge=1)
    default_driver: str | None = None

    model_config = {"frozen": False, "extra": "forbid"}


def load_config(path: str | Path) -> SessionConfig:
    """Load a ``SessionConfig`` from a YAML document.

    An empty file yields the defaults.

    Raises
    ------
    ValueError
        If the document is not a mapping.
    pydantic.ValidationError
        If a field has an invalid value or an unknown key is present.
    """
    raw = Path(path).read_text(encoding="utf-8")
    data = yaml.safe_load(raw) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Session config {str(path)!r} must contain a mapping.")
    return SessionConfig.model_validate(data)
