"""
Audit history and cumulative statistics.
"""

from __future__ import annotations

import json

import click
from rich.table import Table

from hipaa_guardian.cli.base import console, json_option, open_store
from hipaa_guardian.exceptions import StorageError


@click.command()
@click.option("--limit", "-n", default=20, type=click.IntRange(1, 50), help="Number of entries")
@json_option
def history(limit: int, as_json: bool) -> None:
    """Show recent scan audit entries, newest first."""
    store = open_store()
    try:
        entries = store.get_audit_history(limit)
    except StorageError as e:
        raise click.ClickException(str(e)) from e
    finally:
        store.close()

    if as_json:
        click.echo(json.dumps([e.model_dump() for e in entries], indent=2))
        return

    if not entries:
        click.echo("No scans recorded yet.")
        return

    table = Table(title="Audit history")
    for column in ("Timestamp", "Files", "Risk", "User", "Status"):
        table.add_column(column)
    for e in entries:
        style = "green" if e.status == "PASSED" else "red"
        table.add_row(
            e.timestamp, str(e.total_files), str(e.risk_score), e.user,
            f"[{style}]{e.status}[/{style}]",
        )
    console.print(table)


@click.command()
@json_option
def stats(as_json: bool) -> None:
    """Show cumulative totals across every recorded scan."""
    store = open_store()
    try:
        config = store.load()
    except StorageError as e:
        raise click.ClickException(str(e)) from e
    finally:
        store.close()

    totals = {
        "total_files_scanned": config.total_files_scanned,
        "total_risks_found": config.total_risks_found,
        "total_liability": config.total_liability,
    }
    if as_json:
        click.echo(json.dumps(totals))
        return
    click.echo(f"Files scanned:       {totals['total_files_scanned']:,}")
    click.echo(f"At-risk files found: {totals['total_risks_found']:,}")
    click.echo(f"Potential liability: ${totals['total_liability']:,}")
