"""CLI entry point for opencode-auto-update.

Invoked as::

    opencode-auto-update [OPTIONS] COMMAND [ARGS]...

or during development::

    python -m opencode_auto_update.cli.main

Commands
--------
- run       Run one update pass now
- status    Show lock and throttle state
- history   Show recent update runs
- unlock    Remove a stale (or, with --force, live) lock
- parse     Classify plugin specs
- version   Show version information
"""
from __future__ import annotations

import asyncio
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

import click
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from opencode_auto_update.plugin.config_loader import AutoUpdateSettings

console = Console()
err_console = Console(stderr=True)

_OUTCOME_STYLES: dict[str, str] = {
    "completed": "green",
    "failed": "red",
    "throttled": "yellow",
    "locked": "yellow",
    "disabled": "dim",
    "no_config": "dim",
    "no_plugins": "dim",
}


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _resolve_settings(
    config_dir: str | None,
    settings_path: str | None,
    **overrides: object,
) -> AutoUpdateSettings:
    from opencode_auto_update.plugin.config_loader import SETTINGS_FILENAME, SettingsLoader

    loader = SettingsLoader()
    directory = Path(config_dir) if config_dir else None
    try:
        base = loader.resolve(config_dir=directory)
        path = Path(settings_path) if settings_path else base.config_dir / SETTINGS_FILENAME
        return loader.resolve(path, config_dir=directory, **overrides)
    except ValueError as exc:
        err_console.print(f"[red]{exc}[/red]")
        sys.exit(2)


def _format_epoch_ms(value: int | None) -> str:
    if value is None:
        return "never"
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc).isoformat(timespec="seconds")


_config_dir_option = click.option(
    "--config-dir",
    "-d",
    type=click.Path(file_okay=False),
    default=None,
    help="opencode configuration directory (default: ~/.config/opencode).",
)


# ---------------------------------------------------------------------------
# Root command group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="opencode-auto-update")
def cli() -> None:
    """opencode plugin auto-updater: run, inspect and unlock update passes."""


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from opencode_auto_update import __version__

    console.print(
        Panel(
            f"[bold]opencode-auto-update[/bold]  v[cyan]{__version__}[/cyan]\n"
            "Background plugin auto-updater for opencode.",
            title="Version",
            border_style="blue",
        )
    )


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------


@cli.command(name="run")
@_config_dir_option
@click.option("--settings", "settings_path", type=click.Path(dir_okay=False), default=None,
              help="Settings file (.json, .yaml or .yml).")
@click.option("--ignore-throttle", is_flag=True, default=False, help="Run even if the interval has not elapsed.")
@click.option("--preserve-pinned", is_flag=True, default=False, help="Leave version-pinned plugins untouched.")
@click.option("--interval-hours", type=float, default=None, help="Minimum hours between runs.")
@click.option("--force-stale-lock", is_flag=True, default=False, help="Reclaim a lock older than two hours.")
@click.option("--debug", is_flag=True, default=False, help="Verbose logging.")
def run_command(
    config_dir: str | None,
    settings_path: str | None,
    ignore_throttle: bool,
    preserve_pinned: bool,
    interval_hours: float | None,
    force_stale_lock: bool,
    debug: bool,
) -> None:
    """Run one update pass now."""
    from opencode_auto_update.update.orchestrator import AutoUpdater, RunContext

    _configure_logging(debug)
    settings = _resolve_settings(
        config_dir,
        settings_path,
        ignore_throttle=ignore_throttle or None,
        preserve_pinned=preserve_pinned or None,
        interval_hours=interval_hours,
        force_stale_lock=force_stale_lock or None,
        debug=debug or None,
    )

    report = asyncio.run(AutoUpdater(RunContext.from_settings(settings)).run())

    style = _OUTCOME_STYLES.get(report.outcome.value, "white")
    console.print(
        Panel(
            f"[{style}]{report.outcome.value.upper()}[/{style}]",
            title="Auto-update",
            border_style="blue",
        )
    )

    if report.result is not None:
        table = Table(title="Plugins", box=box.SIMPLE)
        table.add_column("Entry", style="cyan")
        for entry in report.result.plugins:
            table.add_row(str(entry))
        console.print(table)
        console.print(f"  Changed: [cyan]{report.result.changed}[/cyan]")
        for message in report.result.errors:
            console.print(f"  [yellow]Error:[/yellow] {message}")

    if report.error:
        err_console.print(f"[red]Run failed:[/red] {report.error}")
    console.print(f"  Duration: [cyan]{report.duration_ms} ms[/cyan]")
    sys.exit(0 if report.success else 1)


# ---------------------------------------------------------------------------
# status
# ---------------------------------------------------------------------------


@cli.command(name="status")
@_config_dir_option
def status_command(config_dir: str | None) -> None:
    """Show lock and throttle state."""
    from opencode_auto_update.state.lock import LockManager
    from opencode_auto_update.state.throttle import ThrottlePolicy, ThrottleStore

    settings = _resolve_settings(config_dir, None)
    lock_manager = LockManager(settings.config_dir)
    lock = lock_manager.read()
    state = ThrottleStore(settings.config_dir).read()
    policy = ThrottlePolicy(settings.interval_hours, settings.min_interval_hours)
    now_ms = int(datetime.now(tz=timezone.utc).timestamp() * 1000)

    table = Table(title="Auto-update Status", box=box.SIMPLE)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="bold")
    table.add_row("Config dir", str(settings.config_dir))
    if lock is None:
        table.add_row("Lock", "[green]free[/green]")
    else:
        stale = lock_manager.is_stale(lock, now_ms=now_ms)
        colour = "yellow" if stale else "red"
        label = "stale" if stale else "held"
        table.add_row(
            "Lock",
            f"[{colour}]{label}[/{colour}] by pid {lock.pid} on {lock.hostname} "
            f"since {_format_epoch_ms(lock.timestamp)}",
        )
    table.add_row("Last run", _format_epoch_ms(state.last_run))
    table.add_row("Last success", _format_epoch_ms(state.last_success))
    table.add_row("Interval", f"{policy.interval_ms / 3_600_000:g} h")
    due = policy.should_run(state, now_ms)
    table.add_row("Next run due", "[green]now[/green]" if due else _format_epoch_ms(
        (state.last_run or 0) + policy.interval_ms
    ))
    console.print(table)


# ---------------------------------------------------------------------------
# history
# ---------------------------------------------------------------------------


@cli.command(name="history")
@_config_dir_option
def history_command(config_dir: str | None) -> None:
    """Show recent update runs."""
    from opencode_auto_update.state.history import CircularLog

    settings = _resolve_settings(config_dir, None)
    entries = CircularLog(settings.effective_history_path).read()
    if not entries:
        console.print("[yellow]No update history found.[/yellow]")
        return

    table = Table(title="Recent Update Runs", box=box.SIMPLE)
    table.add_column("Timestamp", style="dim", no_wrap=True)
    table.add_column("Result")
    table.add_column("Updated", style="cyan")
    table.add_column("Errors", justify="right")
    table.add_column("Duration", justify="right")

    for entry in entries:
        ts = entry.timestamp[:19].replace("T", " ")
        result = "[green]ok[/green]" if entry.success else "[red]failed[/red]"
        table.add_row(
            ts,
            result,
            ", ".join(entry.plugins_updated) or "-",
            str(len(entry.errors)),
            f"{entry.duration} ms",
        )
    console.print(table)


# ---------------------------------------------------------------------------
# unlock
# ---------------------------------------------------------------------------


@cli.command(name="unlock")
@_config_dir_option
@click.option("--force", is_flag=True, default=False, help="Remove the lock even if it is not stale.")
def unlock_command(config_dir: str | None, force: bool) -> None:
    """Remove an abandoned update lock."""
    from opencode_auto_update.state.lock import LockManager

    settings = _resolve_settings(config_dir, None)
    lock_manager = LockManager(settings.config_dir)
    lock = lock_manager.read()
    if lock is None and not lock_manager.lock_path.exists():
        console.print("[green]No lock present.[/green]")
        return
    if lock is not None and not force and not lock_manager.is_stale(lock):
        err_console.print(
            f"[red]Lock is held by pid {lock.pid} on {lock.hostname}.[/red] Use --force to remove it."
        )
        sys.exit(1)
    lock_manager.release()
    console.print(f"[green]Removed[/green] lock [bold]{lock_manager.lock_path}[/bold]")


# ---------------------------------------------------------------------------
# parse
# ---------------------------------------------------------------------------


@cli.command(name="parse")
@click.argument("specs", nargs=-1, required=True)
def parse_command(specs: tuple[str, ...]) -> None:
    """Classify plugin SPECS the way the updater sees them."""
    from opencode_auto_update.specs.parser import classify, parse

    table = Table(title="Plugin Specs", box=box.SIMPLE)
    table.add_column("Spec", style="cyan")
    table.add_column("Kind", style="magenta")
    table.add_column("Name")
    table.add_column("Version")
    for raw in specs:
        kind = classify(raw)
        parsed = parse(raw)
        table.add_row(raw, kind.value, parsed.name, parsed.version or "-")
    console.print(table)


if __name__ == "__main__":
    cli()
