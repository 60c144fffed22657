"""Unit tests for session_switchboard.cli.main.

Uses Click's test runner (CliRunner).  Driver construction is patched where
a command would otherwise need a host cache.
"""
from __future__ import annotations

import re
from pathlib import Path
from unittest.mock import patch

import click
import pytest
from click.testing import CliRunner

from conftest import FailingDriver, FakeClock
from session_switchboard.cli.main import _make_driver, cli
from session_switchboard.errors import BackendUnavailableError
from session_switchboard.storage.cache import CacheSessionDriver
from session_switchboard.storage.filesystem import FileSessionDriver
from session_switchboard.storage.kv import MemoryCache
from session_switchboard.storage.memory import MemorySessionDriver


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def sessions_dir(tmp_path: Path) -> Path:
    return tmp_path / "sessions"


# ---------------------------------------------------------------------------
# _make_driver factory
# ---------------------------------------------------------------------------


class TestMakeDriver:
    def test_memory_driver(self) -> None:
        assert isinstance(_make_driver("memory", None, None, None), MemorySessionDriver)

    def test_file_driver_uses_directory(self, sessions_dir: Path) -> None:
        driver = _make_driver("file", str(sessions_dir), None, None)
        assert isinstance(driver, FileSessionDriver)
        assert driver.storage_dir == sessions_dir

    def test_unknown_driver(self) -> None:
        with pytest.raises(click.BadParameter):
            _make_driver("sqlite", None, None, None)

    def test_invalid_choice_rejected(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["read", "abc", "--storage", "sqlite"])
        assert result.exit_code != 0


# ---------------------------------------------------------------------------
# version / new-id
# ---------------------------------------------------------------------------


class TestVersionCommand:
    def test_lists_available_caches(self, runner: CliRunner) -> None:
        with patch("session_switchboard.storage.kv.available_caches", return_value=["redis"]):
            result = runner.invoke(cli, ["version"])
        assert result.exit_code == 0
        assert "session-switchboard" in result.output
        assert "caches: redis" in result.output

    def test_no_caches_installed(self, runner: CliRunner) -> None:
        with patch("session_switchboard.storage.kv.available_caches", return_value=[]):
            result = runner.invoke(cli, ["version"])
        assert "(none installed)" in result.output


class TestNewIdCommand:
    def test_prints_hex_id(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["new-id", "--ip", "10.0.0.1"])
        assert result.exit_code == 0
        assert re.match(r"^[0-9a-f]{32}$", result.output.strip())

    def test_uses_config_file(self, runner: CliRunner, tmp_path: Path) -> None:
        config = tmp_path / "session.yaml"
        config.write_text("client_address: 10.0.0.1\n", encoding="utf-8")
        result = runner.invoke(cli, ["--config", str(config), "new-id"])
        assert result.exit_code == 0

    def test_invalid_config_file(self, runner: CliRunner, tmp_path: Path) -> None:
        config = tmp_path / "session.yaml"
        config.write_text("- not a mapping\n", encoding="utf-8")
        result = runner.invoke(cli, ["--config", str(config), "new-id"])
        assert result.exit_code != 0


# ---------------------------------------------------------------------------
# read
# ---------------------------------------------------------------------------


class TestReadCommand:
    def test_prints_payload(self, runner: CliRunner, sessions_dir: Path) -> None:
        FileSessionDriver(sessions_dir).write("abc", '{"user": 42}')
        result = runner.invoke(cli, ["read", "abc", "--storage-dir", str(sessions_dir)])
        assert result.exit_code == 0
        assert '{"user": 42}' in result.output

    def test_missing_session(self, runner: CliRunner, sessions_dir: Path) -> None:
        result = runner.invoke(cli, ["read", "ghost", "--storage-dir", str(sessions_dir)])
        assert result.exit_code == 0
        assert "No data stored for session" in result.output

    def test_backend_unavailable(self, runner: CliRunner) -> None:
        error = BackendUnavailableError("The 'redis' cache is not available.", backend="redis")
        with patch("session_switchboard.cli.main._make_driver", side_effect=error):
            result = runner.invoke(cli, ["read", "abc", "--storage", "redis"])
        assert result.exit_code == 1
        assert "not available" in result.output


# ---------------------------------------------------------------------------
# gc
# ---------------------------------------------------------------------------


class TestGcCommand:
    def test_removes_expired_files(self, runner: CliRunner, sessions_dir: Path) -> None:
        FileSessionDriver(sessions_dir, clock=FakeClock(now=1_000)).write("old", "payload")
        result = runner.invoke(cli, ["gc", "--storage-dir", str(sessions_dir)])
        assert result.exit_code == 0
        assert "gc ok:" in result.output
        assert not (sessions_dir / "sess_old").exists()

    def test_max_lifetime_keeps_fresh_files(
        self, runner: CliRunner, sessions_dir: Path
    ) -> None:
        FileSessionDriver(sessions_dir).write("fresh", "payload")
        result = runner.invoke(
            cli, ["gc", "--storage-dir", str(sessions_dir), "--max-lifetime", "3600"]
        )
        assert result.exit_code == 0
        assert (sessions_dir / "sess_fresh").exists()

    def test_failure_sets_exit_code(self, runner: CliRunner) -> None:
        with patch("session_switchboard.cli.main._make_driver", return_value=FailingDriver()):
            result = runner.invoke(cli, ["gc", "--storage", "memory"])
        assert result.exit_code == 1
        assert "gc failed:" in result.output

    def test_several_drivers(self, runner: CliRunner, sessions_dir: Path) -> None:
        result = runner.invoke(
            cli,
            ["gc", "--storage", "file", "--storage", "memory", "--storage-dir", str(sessions_dir)],
        )
        assert result.exit_code == 0
        assert "gc ok: file" in result.output
        assert "gc ok: memory" in result.output


# ---------------------------------------------------------------------------
# index
# ---------------------------------------------------------------------------


class TestIndexCommand:
    def test_renders_table(self, runner: CliRunner) -> None:
        driver = CacheSessionDriver(MemoryCache(), clock=FakeClock())
        driver.write("first", "a")
        driver.write("second", "b")
        with patch("session_switchboard.cli.main._make_driver", return_value=driver):
            result = runner.invoke(cli, ["index"])
        assert result.exit_code == 0
        assert "Shadow index (2 sessions)" in result.output
        assert "first" in result.output
        assert "second" in result.output

    def test_empty_index(self, runner: CliRunner) -> None:
        driver = CacheSessionDriver(MemoryCache())
        with patch("session_switchboard.cli.main._make_driver", return_value=driver):
            result = runner.invoke(cli, ["index"])
        assert result.exit_code == 0
        assert "No sessions indexed." in result.output

    def test_backend_unavailable(self, runner: CliRunner) -> None:
        error = BackendUnavailableError("No session cache is available.")
        with patch("session_switchboard.cli.main._make_driver", side_effect=error):
            result = runner.invoke(cli, ["index"])
        assert result.exit_code == 1
