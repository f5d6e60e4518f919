"""
Scheduled scan management and the foreground orchestrator.
"""

from __future__ import annotations

import asyncio
import json
import logging
import signal
from datetime import datetime
from pathlib import Path
from typing import Any

import click

from hipaa_guardian.cli.base import console, json_option, open_store
from hipaa_guardian.exceptions import StorageError

logger = logging.getLogger(__name__)


def _load(store):
    try:
        return store.load()
    except StorageError as e:
        raise click.ClickException(str(e)) from e


def _save(store, config) -> None:
    try:
        store.save(config)
    except StorageError as e:
        raise click.ClickException(str(e)) from e


@click.group()
def schedule() -> None:
    """Scheduled scan management."""
    pass


@schedule.command("show")
@json_option
def schedule_show(as_json: bool) -> None:
    """Display the scan schedule."""
    store = open_store()
    try:
        config = _load(store)
    finally:
        store.close()

    next_run = config.next_run_after(datetime.now().astimezone())
    if as_json:
        data = config.model_dump(mode="json", exclude={"audit_history"})
        data["interval_seconds"] = config.interval_seconds()
        data["next_run"] = next_run.isoformat() if next_run else None
        click.echo(json.dumps(data, indent=2))
        return

    click.echo(f"Enabled:   {'yes' if config.enabled else 'no'}")
    if config.interval_value:
        click.echo(f"Interval:  every {config.interval_value} {config.interval_unit}")
    elif config.interval_hours:
        click.echo(f"Interval:  every {config.interval_hours} hours")
    else:
        click.echo("Interval:  not set")
    if config.time_of_day:
        click.echo(f"At:        {config.time_of_day} {config.timezone or '(local time)'}")
    click.echo(f"Next run:  {next_run.strftime('%Y-%m-%d %H:%M %Z') if next_run else '-'}")
    click.echo("Paths:")
    for p in config.scan_paths:
        click.echo(f"  {p}")
    if not config.scan_paths:
        click.echo("  (none)")


@schedule.command("enable")
def schedule_enable() -> None:
    """Enable periodic scans."""
    store = open_store()
    try:
        config = _load(store)
        config.enabled = True
        _save(store, config)
    finally:
        store.close()
    click.echo("Scheduled scanning enabled")
    if config.interval_seconds() == 0:
        click.echo("Warning: no interval set; use 'schedule set-interval'", err=True)


@schedule.command("disable")
def schedule_disable() -> None:
    """Disable periodic scans (manual triggers still run)."""
    store = open_store()
    try:
        config = _load(store)
        config.enabled = False
        _save(store, config)
    finally:
        store.close()
    click.echo("Scheduled scanning disabled")


@schedule.command("set-interval")
@click.argument("value", type=click.IntRange(0))
@click.argument("unit", type=click.Choice(["hours", "days", "weeks", "months"]), default="hours")
@click.option("--at", "time_of_day", default=None, help="Time of day, HH:MM (24-hour)")
@click.option("--timezone", "tz", default=None, help="IANA timezone, e.g. America/Chicago")
def schedule_set_interval(value: int, unit: str, time_of_day: str | None, tz: str | None) -> None:
    """Set how often scheduled scans run. A value of 0 disables the timer."""
    from pydantic import ValidationError

    from hipaa_guardian.storage import ScheduleConfig

    store = open_store()
    try:
        config = _load(store)
        data = config.model_dump()
        data.update(interval_value=value, interval_unit=unit)
        # interval_hours is the fallback when interval_value is 0
        data["interval_hours"] = value if unit == "hours" else 0
        if time_of_day is not None:
            data["time_of_day"] = time_of_day
        if tz is not None:
            data["timezone"] = tz
        try:
            updated = ScheduleConfig(**data)
        except ValidationError as e:
            raise click.BadParameter(str(e.errors()[0]["msg"])) from e
        _save(store, updated)
    finally:
        store.close()
    click.echo(f"Scan interval set to every {value} {unit}")


@schedule.command("add-path")
@click.argument("path", type=click.Path(exists=True, file_okay=False))
def schedule_add_path(path: str) -> None:
    """Add a directory to scheduled scans."""
    resolved = str(Path(path).resolve())
    store = open_store()
    try:
        added = store.add_scan_path(resolved)
    except StorageError as e:
        raise click.ClickException(str(e)) from e
    finally:
        store.close()
    click.echo(f"Added: {resolved}" if added else f"Already scheduled: {resolved}")


@schedule.command("remove-path")
@click.argument("path")
def schedule_remove_path(path: str) -> None:
    """Remove a directory from scheduled scans."""
    store = open_store()
    try:
        removed = store.remove_scan_path(path)
        if not removed and Path(path).exists():
            removed = store.remove_scan_path(str(Path(path).resolve()))
    except StorageError as e:
        raise click.ClickException(str(e)) from e
    finally:
        store.close()
    if not removed:
        raise click.ClickException(f"Not a scheduled path: {path}")
    click.echo(f"Removed: {path}")


def _print_event(event: str, payload: Any) -> None:
    """Notification sink for foreground runs."""
    if event == "log:info":
        console.print(payload)
    elif event == "scan:scheduled:start":
        console.print(f"Scanning {payload['total']} files in {len(payload['paths'])} paths")
    elif event == "scan:scheduled:progress":
        logger.debug(f"[{payload['current']}/{payload['total']}] {payload['file']}")
    elif event == "scan:scheduled:complete":
        style = "green" if payload["status"] == "PASSED" else "red"
        console.print(
            f"[{style}]{payload['status']}[/{style}]: {payload['total_files']} files, "
            f"risk score {payload['risk_score']}, {len(payload['risky_files'])} at-risk files "
            f"({payload['critical_count']} critical)"
        )
        if payload["certificate"]:
            console.print(f"Certificate: {payload['certificate']}")
    elif event == "scan:scheduled:cancelled":
        console.print("[yellow]Scan cancelled[/yellow]")
    elif event == "scan:scheduled:error":
        console.print(f"[red]Error:[/red] {payload.get('error')}")


async def _run_foreground(trigger: bool) -> None:
    from hipaa_guardian.config import get_settings
    from hipaa_guardian.jobs import ScanOrchestrator
    from hipaa_guardian.reporting import CertificateIssuer

    settings = get_settings()
    store = open_store()
    orchestrator = ScanOrchestrator(
        store,
        issuer=CertificateIssuer.from_settings(settings),
        notify=_print_event,
        stop_timeout=settings.scheduler.stop_timeout,
    )

    done = asyncio.Event()
    loop = asyncio.get_running_loop()
    handlers = {
        "SIGINT": done.set,
        "SIGTERM": done.set,
        "SIGUSR1": orchestrator.trigger_now,
        "SIGUSR2": orchestrator.cancel_active_scan,
    }
    installed = []
    for name, handler in handlers.items():
        sig = getattr(signal, name, None)
        if sig is None:
            continue
        try:
            loop.add_signal_handler(sig, handler)
            installed.append(sig)
        except (NotImplementedError, RuntimeError):
            logger.debug(f"Signal {name} not supported on this platform")

    try:
        await orchestrator.start()
        if trigger:
            orchestrator.trigger_now()
        console.print("Orchestrator running. Ctrl+C to stop.")
        await done.wait()
    finally:
        await orchestrator.stop()
        for sig in installed:
            loop.remove_signal_handler(sig)
        store.close()


@schedule.command("run")
@click.option("--now", "trigger", is_flag=True, help="Run one scan immediately, even if disabled")
def schedule_run(trigger: bool) -> None:
    """Run the scan orchestrator in the foreground.

    SIGINT/SIGTERM stop it; on POSIX, SIGUSR1 triggers a scan and SIGUSR2
    cancels the running one.
    """
    from hipaa_guardian.exceptions import ConfigLoadError

    try:
        asyncio.run(_run_foreground(trigger))
    except ConfigLoadError as e:
        raise click.ClickException(str(e)) from e
    except KeyboardInterrupt:
        pass
