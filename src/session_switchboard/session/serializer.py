"""Encoding of the session attribute store.

The engine hands drivers an opaque string; this module produces and parses
that string.  JSON is the default, YAML is available for human-edited
fixtures.

Classes
-------
- AttributeSerializer  — encode/decode an attribute mapping
"""
from __future__ import annotations

import json
from typing import Any, Literal

import yaml


class AttributeSerializer:
    """Encode and decode session attribute mappings.

    Parameters
    ----------
    format:
        ``"json"`` (default) or ``"yaml"``.
    """

    def __init__(self, format: Literal["json", "yaml"] = "json") -> None:
        if format not in ("json", "yaml"):
            raise ValueError(f"Unsupported attribute format {format!r}.")
        self.format = format

    def encode(self, attributes: dict[str, Any]) -> str:
        """Serialise ``attributes``.  An empty mapping encodes to ``""``."""
        if not attributes:
            return ""
        if self.format == "yaml":
            return yaml.safe_dump(attributes, default_flow_style=False, allow_unicode=True)
        return json.dumps(attributes, sort_keys=True, default=str)

    def decode(self, raw: str) -> dict[str, Any]:
        """Parse a payload produced by ``encode``.

        Raises
        ------
        ValueError
            If ``raw`` does not decode to a mapping.
        """
        if not raw:
            return {}
        if self.format == "yaml":
            data = yaml.safe_load(raw)
        else:
            data = json.loads(raw)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(
                f"Session payload must decode to a mapping, got {type(data).__name__}."
            )
        return data
