"""Unit tests for session_switchboard.session.serializer."""
from __future__ import annotations

import json

import pytest

from session_switchboard.session.serializer import AttributeSerializer


class TestJsonFormat:
    def test_empty_mapping_encodes_to_empty_string(self) -> None:
        assert AttributeSerializer().encode({}) == ""

    def test_empty_string_decodes_to_empty_mapping(self) -> None:
        assert AttributeSerializer().decode("") == {}

    def test_encoding_is_key_sorted(self) -> None:
        payload = AttributeSerializer().encode({"b": 1, "a": [1, 2]})
        assert payload == json.dumps({"a": [1, 2], "b": 1}, sort_keys=True)

    def test_decode_restores_nested_values(self) -> None:
        serializer = AttributeSerializer()
        attributes = {"user": {"id": 7, "roles": ["admin"]}, "flag": True}
        assert serializer.decode(serializer.encode(attributes)) == attributes

    def test_non_mapping_payload_raises(self) -> None:
        with pytest.raises(ValueError, match="mapping"):
            AttributeSerializer().decode("[1, 2, 3]")

    def test_invalid_json_raises(self) -> None:
        with pytest.raises(ValueError):
            AttributeSerializer().decode("{not json")


class TestYamlFormat:
    def test_yaml_payload_is_human_readable(self) -> None:
        payload = AttributeSerializer("yaml").encode({"cart": ["apple"]})
        assert "cart:" in payload
        assert "- apple" in payload

    def test_yaml_decode(self) -> None:
        assert AttributeSerializer("yaml").decode("count: 3\n") == {"count": 3}

    def test_yaml_scalar_raises(self) -> None:
        with pytest.raises(ValueError):
            AttributeSerializer("yaml").decode("just a string")


def test_unknown_format_rejected() -> None:
    with pytest.raises(ValueError, match="Unsupported"):
        AttributeSerializer("xml")  # type: ignore[arg-type]
