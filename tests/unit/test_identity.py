"""Unit tests for session_switchboard.session.identity."""
from __future__ import annotations

import hashlib
import re

import pytest

from session_switchboard.errors import SessionIdCollisionError
from session_switchboard.session.identity import (
    create_sid,
    generate_unique,
    is_valid_sid,
    resolve_session_id,
)

_HEX32 = re.compile(r"^[0-9a-f]{32}$")


class TestCreateSid:
    def test_is_md5_of_concatenated_material(self) -> None:
        expected = hashlib.md5(b"10.0.0.117000000000.25abcdefghij").hexdigest()
        assert create_sid("10.0.0.1", 1700000000, 0.25, "abcdefghij") == expected

    def test_missing_ip_contributes_nothing(self) -> None:
        expected = hashlib.md5(b"17000000000.5xyz").hexdigest()
        assert create_sid(None, 1700000000, 0.5, "xyz") == expected

    def test_zero_values_are_used_verbatim(self) -> None:
        expected = hashlib.md5(b"00.0").hexdigest()
        assert create_sid(None, 0, 0.0, "") == expected

    def test_defaults_produce_32_hex_chars(self) -> None:
        assert _HEX32.match(create_sid())

    def test_successive_ids_differ(self) -> None:
        assert create_sid("127.0.0.1") != create_sid("127.0.0.1")


class TestResolveSessionId:
    def test_first_non_empty_wins(self) -> None:
        assert resolve_session_id([lambda: None, lambda: "", lambda: "b", lambda: "c"]) == "b"

    def test_later_sources_are_not_called(self) -> None:
        calls: list[str] = []

        def generator() -> str:
            calls.append("generated")
            return "fresh"

        assert resolve_session_id([lambda: "explicit", generator]) == "explicit"
        assert calls == []

    def test_all_empty_returns_none(self) -> None:
        assert resolve_session_id([lambda: None, lambda: ""]) is None


class TestGenerateUnique:
    def test_skips_ids_in_use(self) -> None:
        candidates = iter(["taken", "also-taken", "free"])
        in_use = {"taken", "also-taken"}
        assert generate_unique(lambda: next(candidates), in_use.__contains__) == "free"

    def test_exhausted_attempts_raise(self) -> None:
        with pytest.raises(SessionIdCollisionError) as excinfo:
            generate_unique(lambda: "same", lambda _sid: True, attempts=3)
        assert excinfo.value.attempts == 3


class TestIsValidSid:
    @pytest.mark.parametrize("session_id", ["abc123", "A-b,c", "f" * 128, create_sid()])
    def test_accepts_id_charset(self, session_id: str) -> None:
        assert is_valid_sid(session_id)

    @pytest.mark.parametrize(
        "session_id", [None, "", "session_index", "../etc", "a b", "abc\n", "f" * 129]
    )
    def test_rejects_everything_else(self, session_id: str | None) -> None:
        assert not is_valid_sid(session_id)
