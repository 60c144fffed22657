"""Shared fixtures and test doubles for the unit tests."""
from __future__ import annotations

import pytest

from session_switchboard.storage.memory import MemorySessionDriver


class FakeClock:
    """Manually advanced clock returning epoch seconds."""

    def __init__(self, now: int = 1_700_000_000) -> None:
        self.now = now

    def __call__(self) -> float:
        return float(self.now)

    def advance(self, seconds: int) -> None:
        self.now += seconds


class RecordingDriver(MemorySessionDriver):
    """MemorySessionDriver that records every lifecycle call."""

    def __init__(self, clock: FakeClock | None = None) -> None:
        super().__init__(clock or FakeClock())
        self.calls: list[tuple[str, ...]] = []

    def open(self, save_path: str = "", session_name: str = "") -> bool:
        self.calls.append(("open", save_path, session_name))
        return super().open(save_path, session_name)

    def close(self) -> bool:
        self.calls.append(("close",))
        return super().close()

    def read(self, session_id: str) -> str:
        self.calls.append(("read", session_id))
        return super().read(session_id)

    def write(self, session_id: str, data: str) -> bool:
        self.calls.append(("write", session_id))
        return super().write(session_id, data)

    def destroy(self, session_id: str) -> bool:
        self.calls.append(("destroy", session_id))
        return super().destroy(session_id)

    def gc(self, max_lifetime: int) -> bool:
        self.calls.append(("gc", str(max_lifetime)))
        return super().gc(max_lifetime)

    def called(self, operation: str) -> list[tuple[str, ...]]:
        return [call for call in self.calls if call[0] == operation]


class FailingDriver(MemorySessionDriver):
    """Driver whose backend is unreachable for every mutating call."""

    def read(self, session_id: str) -> str:
        raise OSError("backend unreachable")

    def write(self, session_id: str, data: str) -> bool:
        raise OSError("backend unreachable")

    def destroy(self, session_id: str) -> bool:
        raise OSError("backend unreachable")

    def gc(self, max_lifetime: int) -> bool:
        raise OSError("backend unreachable")


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()
