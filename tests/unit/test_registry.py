"""Unit tests for session_switchboard.session.registry.DriverRegistry."""
from __future__ import annotations

import pytest

from session_switchboard.errors import (
    ConfigurationError,
    DriverNotFoundError,
    DuplicateDriverError,
)
from session_switchboard.session.registry import DriverRegistry
from session_switchboard.storage.memory import MemorySessionDriver

from conftest import RecordingDriver


@pytest.fixture()
def registry() -> DriverRegistry:
    return DriverRegistry()


class TestRegister:
    def test_register_binds_driver(self, registry: DriverRegistry) -> None:
        driver = MemorySessionDriver()
        assert registry.register("mem", driver) is driver
        assert "mem" in registry
        assert len(registry) == 1

    def test_duplicate_name_raises_and_keeps_first(self, registry: DriverRegistry) -> None:
        first = MemorySessionDriver()
        second = MemorySessionDriver()
        registry.register("mem", first)
        with pytest.raises(DuplicateDriverError) as excinfo:
            registry.register("mem", second)
        assert excinfo.value.name == "mem"
        assert registry.get("mem") is first

    def test_duplicate_is_configuration_error(self, registry: DriverRegistry) -> None:
        registry.register("mem", MemorySessionDriver())
        with pytest.raises(ConfigurationError):
            registry.register("mem", MemorySessionDriver())

    def test_all_preserves_registration_order(self, registry: DriverRegistry) -> None:
        registry.register("b", MemorySessionDriver())
        registry.register("a", MemorySessionDriver())
        assert list(registry.all()) == ["b", "a"]
        assert registry.names() == ["b", "a"]

    def test_all_returns_a_copy(self, registry: DriverRegistry) -> None:
        registry.register("a", MemorySessionDriver())
        registry.all().clear()
        assert "a" in registry


class TestResolve:
    def test_resolve_without_default_raises(self, registry: DriverRegistry) -> None:
        registry.register("a", MemorySessionDriver())
        with pytest.raises(DriverNotFoundError, match="No default"):
            registry.resolve()

    def test_resolve_with_name_sets_default(self, registry: DriverRegistry) -> None:
        driver = MemorySessionDriver()
        registry.register("a", driver)
        assert registry.resolve("a") is driver
        assert registry.get_default() == "a"
        assert registry.resolve() is driver

    def test_resolve_unknown_name_raises(self, registry: DriverRegistry) -> None:
        with pytest.raises(DriverNotFoundError, match="ghost"):
            registry.resolve("ghost")

    def test_not_found_is_key_error(self, registry: DriverRegistry) -> None:
        with pytest.raises(KeyError):
            registry.resolve("ghost")


class TestDefault:
    def test_set_default_unknown_keeps_previous(self, registry: DriverRegistry) -> None:
        registry.register("a", MemorySessionDriver())
        registry.set_default("a")
        with pytest.raises(DriverNotFoundError):
            registry.set_default("ghost")
        assert registry.get_default() == "a"

    def test_get_default_unset_raises(self, registry: DriverRegistry) -> None:
        with pytest.raises(DriverNotFoundError):
            registry.get_default()

    def test_mirrors_exclude_default(self, registry: DriverRegistry) -> None:
        registry.register("file", MemorySessionDriver())
        registry.register("cache", MemorySessionDriver())
        registry.set_default("file")
        assert list(registry.mirrors()) == ["cache"]


class TestUnregister:
    def test_unregister_does_not_close(self, registry: DriverRegistry) -> None:
        driver = RecordingDriver()
        driver.open()
        registry.register("a", driver)
        assert registry.unregister("a") is driver
        assert "a" not in registry
        assert driver.called("close") == []
        assert driver.is_open is True

    def test_unregister_default_clears_default(self, registry: DriverRegistry) -> None:
        registry.register("a", MemorySessionDriver())
        registry.set_default("a")
        registry.unregister("a")
        with pytest.raises(DriverNotFoundError):
            registry.get_default()

    def test_unregister_unknown_raises(self, registry: DriverRegistry) -> None:
        with pytest.raises(DriverNotFoundError):
            registry.unregister("ghost")
