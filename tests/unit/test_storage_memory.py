"""Unit tests for session_switchboard.storage.memory.MemorySessionDriver."""
from __future__ import annotations

import pytest

from conftest import FakeClock
from session_switchboard.storage.memory import MemorySessionDriver


@pytest.fixture()
def driver(clock: FakeClock) -> MemorySessionDriver:
    return MemorySessionDriver(clock=clock)


class TestMemoryDriverReadWrite:
    def test_roundtrip(self, driver: MemorySessionDriver) -> None:
        driver.write("s1", '{"k": 1}')
        assert driver.read("s1") == '{"k": 1}'

    def test_read_unknown_returns_empty(self, driver: MemorySessionDriver) -> None:
        assert driver.read("ghost") == ""

    def test_destroy(self, driver: MemorySessionDriver) -> None:
        driver.write("s1", "x")
        assert driver.destroy("s1") is True
        assert driver.read("s1") == ""

    def test_destroy_unknown_is_not_an_error(self, driver: MemorySessionDriver) -> None:
        assert driver.destroy("ghost") is True


class TestMemoryDriverGc:
    def test_boundary_is_inclusive(self, driver: MemorySessionDriver, clock: FakeClock) -> None:
        driver.write("s1", "x")
        clock.advance(60)
        driver.gc(60)
        assert driver.read("s1") == ""

    def test_younger_record_survives(self, driver: MemorySessionDriver, clock: FakeClock) -> None:
        driver.write("s1", "x")
        clock.advance(59)
        driver.gc(60)
        assert driver.read("s1") == "x"


class TestMemoryDriverExtras:
    def test_session_ids_in_insertion_order(self, driver: MemorySessionDriver) -> None:
        driver.write("b", "1")
        driver.write("a", "2")
        assert driver.session_ids() == ["b", "a"]

    def test_clear_and_len(self, driver: MemorySessionDriver) -> None:
        driver.write("a", "1")
        driver.write("b", "2")
        assert len(driver) == 2
        driver.clear()
        assert len(driver) == 0

    def test_repr_contains_session_count(self, driver: MemorySessionDriver) -> None:
        driver.write("x", "y")
        assert "1" in repr(driver)
