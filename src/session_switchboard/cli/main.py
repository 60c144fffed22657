"""CLI entry point for session-switchboard.

Invoked as::

    session-switchboard [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m session_switchboard.cli.main

Commands
--------
- version  — Show version information
- new-id   — Print a freshly generated session id
- read     — Print the stored payload of a session
- gc       — Run a garbage-collection sweep over one or more drivers
- index    — Show a cache driver's shadow index
"""
from __future__ import annotations

import sys
from datetime import datetime, timezone

import click
from rich.console import Console
from rich.table import Table

from session_switchboard.config import SessionConfig, load_config
from session_switchboard.errors import BackendUnavailableError, SessionError
from session_switchboard.storage.base import SessionDriver

console = Console()

_STORAGE_CHOICES = ["memory", "file", "diskcache", "redis"]

# ---------------------------------------------------------------------------
# Storage driver factory
# ---------------------------------------------------------------------------


def _make_driver(
    storage: str,
    storage_dir: str | None,
    cache_dir: str | None,
    redis_url: str | None,
) -> SessionDriver:
    """Instantiate the requested session driver.

    Parameters
    ----------
    storage:
        ``"memory"``, ``"file"``, ``"diskcache"`` or ``"redis"``.
    storage_dir:
        Directory for the file driver.
    cache_dir:
        Directory for the diskcache-backed cache driver.
    redis_url:
        Connection URL for the redis-backed cache driver.

    Raises
    ------
    BackendUnavailableError
        If the cache client library for ``storage`` is not installed.
    """
    from session_switchboard.storage.cache import CacheSessionDriver
    from session_switchboard.storage.filesystem import FileSessionDriver
    from session_switchboard.storage.kv import DiskCache, RedisCache
    from session_switchboard.storage.memory import MemorySessionDriver

    if storage == "memory":
        return MemorySessionDriver()
    if storage == "file":
        return FileSessionDriver(storage_dir=storage_dir)
    if storage == "diskcache":
        return CacheSessionDriver(DiskCache(directory=cache_dir))
    if storage == "redis":
        return CacheSessionDriver(RedisCache(url=redis_url) if redis_url else RedisCache())
    raise click.BadParameter(f"Unknown storage driver: {storage!r}")


def _storage_options(command: click.Command) -> click.Command:
    """Attach the options shared by every driver-backed command."""
    options = [
        click.option("--storage-dir", default=None, help="Directory for the file driver."),
        click.option("--cache-dir", default=None, help="Directory for the diskcache driver."),
        click.option("--redis-url", default=None, help="Redis URL for the redis driver."),
    ]
    for option in reversed(options):
        command = option(command)
    return command


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="session-switchboard")
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="YAML session configuration file.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: str | None) -> None:
    """Pluggable multi-driver session storage."""
    ctx.ensure_object(dict)
    ctx.obj["config"] = load_config(config_path) if config_path else SessionConfig()


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from session_switchboard import __version__
    from session_switchboard.storage.kv import available_caches

    console.print(f"[bold]session-switchboard[/bold] v{__version__}")
    caches = available_caches()
    console.print(f"  caches: {', '.join(caches) if caches else '(none installed)'}")


# ---------------------------------------------------------------------------
# new-id
# ---------------------------------------------------------------------------


@cli.command(name="new-id")
@click.option("--ip", default=None, help="Client address mixed into the id.")
@click.pass_context
def new_id_command(ctx: click.Context, ip: str | None) -> None:
    """Print a freshly generated session id."""
    from session_switchboard.session.identity import create_sid

    config: SessionConfig = ctx.obj["config"]
    click.echo(create_sid(ip or config.client_address or None))


# ---------------------------------------------------------------------------
# read
# ---------------------------------------------------------------------------


@cli.command(name="read")
@click.argument("session_id")
@click.option(
    "--storage",
    default="file",
    show_default=True,
    type=click.Choice(_STORAGE_CHOICES, case_sensitive=False),
    help="Driver to read from.",
)
@_storage_options
def read_command(
    session_id: str,
    storage: str,
    storage_dir: str | None,
    cache_dir: str | None,
    redis_url: str | None,
) -> None:
    """Print the raw payload stored for SESSION_ID."""
    try:
        driver = _make_driver(storage, storage_dir, cache_dir, redis_url)
    except BackendUnavailableError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)

    payload = driver.read(session_id)
    if not payload:
        console.print(f"[yellow]No data stored for session:[/yellow] {session_id}")
        return
    click.echo(payload)


# ---------------------------------------------------------------------------
# gc
# ---------------------------------------------------------------------------


@cli.command(name="gc")
@click.option(
    "--storage",
    "storages",
    multiple=True,
    default=("file",),
    show_default=True,
    type=click.Choice(_STORAGE_CHOICES, case_sensitive=False),
    help="Driver to sweep.  Repeat to sweep several drivers.",
)
@click.option(
    "--max-lifetime",
    default=None,
    type=click.IntRange(min=0),
    help="Seconds a session may stay idle.  Defaults to the configured value.",
)
@_storage_options
@click.pass_context
def gc_command(
    ctx: click.Context,
    storages: tuple[str, ...],
    max_lifetime: int | None,
    storage_dir: str | None,
    cache_dir: str | None,
    redis_url: str | None,
) -> None:
    """Remove expired sessions from every selected driver."""
    from session_switchboard.session.store import SessionStore

    store = SessionStore(ctx.obj["config"])
    try:
        for storage in dict.fromkeys(storages):
            store.add_driver(storage, _make_driver(storage, storage_dir, cache_dir, redis_url))
    except SessionError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)

    results = store.gc_all(max_lifetime)
    for name, ok in results.items():
        if ok:
            console.print(f"[green]gc ok:[/green] {name}")
        else:
            console.print(f"[red]gc failed:[/red] {name}")
    if not all(results.values()):
        sys.exit(1)


# ---------------------------------------------------------------------------
# index
# ---------------------------------------------------------------------------


@cli.command(name="index")
@click.option(
    "--storage",
    default="diskcache",
    show_default=True,
    type=click.Choice(["diskcache", "redis"], case_sensitive=False),
    help="Cache driver whose index to show.",
)
@_storage_options
def index_command(
    storage: str,
    storage_dir: str | None,
    cache_dir: str | None,
    redis_url: str | None,
) -> None:
    """Show the live sessions recorded in a cache driver's shadow index."""
    from session_switchboard.storage.cache import CacheSessionDriver

    try:
        driver = _make_driver(storage, storage_dir, cache_dir, redis_url)
    except BackendUnavailableError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)
    if not isinstance(driver, CacheSessionDriver):
        console.print(f"[red]Driver {storage!r} has no shadow index.[/red]")
        sys.exit(1)

    entries = driver.index()
    if not entries:
        console.print("[yellow]No sessions indexed.[/yellow]")
        return

    table = Table(title=f"Shadow index ({len(entries)} sessions)", show_lines=False)
    table.add_column("Session ID", style="cyan")
    table.add_column("Last update")
    for session_id, last_update in sorted(entries.items(), key=lambda item: item[1]):
        stamp = datetime.fromtimestamp(last_update, tz=timezone.utc)
        table.add_row(session_id, stamp.strftime("%Y-%m-%d %H:%M:%S"))
    console.print(table)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


if __name__ == "__main__":
    cli()
