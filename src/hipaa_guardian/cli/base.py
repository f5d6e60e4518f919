"""Shared CLI decorators and utilities."""

from __future__ import annotations

import functools
from collections.abc import Callable
from typing import Any

import click
from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from rich.table import Table

from hipaa_guardian.core.types import RiskLabel, RiskProfile

console = Console()

LABEL_STYLES = {
    RiskLabel.SAFE: "green",
    RiskLabel.LOW: "yellow",
    RiskLabel.HIGH: "dark_orange",
    RiskLabel.CRITICAL: "bold red",
}


def json_option(f: Callable[..., Any]) -> Callable[..., Any]:
    """Add a ``--json`` flag; commands receive ``as_json``."""
    @click.option("--json", "as_json", is_flag=True, help="Print machine-readable JSON")
    @functools.wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return f(*args, **kwargs)
    return wrapper


def file_progress(total: int, description: str = "Processing") -> Progress:
    """Create a :class:`rich.progress.Progress` bar for file processing.

    Usage::

        with file_progress(total, "Scanning") as progress:
            task = progress.add_task("Scanning", total=total)
            for f in files:
                process(f)
                progress.advance(task)
    """
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        TimeRemainingColumn(),
        console=console,
        transient=True,
    )


def spinner(description: str = "Working...") -> Progress:
    """Create a spinner-style progress indicator for indeterminate operations."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )


def open_store():
    """Open the store configured in settings, exiting cleanly on failure."""
    from hipaa_guardian.config import get_settings
    from hipaa_guardian.exceptions import StorageError
    from hipaa_guardian.storage import Store

    try:
        return Store.from_settings(get_settings())
    except StorageError as e:
        raise click.ClickException(str(e)) from e


def print_profile(profile: RiskProfile) -> None:
    """Render one file's risk profile."""
    style = LABEL_STYLES[profile.risk_label]
    console.print(f"File: {profile.file_path}")
    console.print(f"Risk Score: {profile.risk_score}")
    console.print(f"Risk Label: [{style}]{profile.risk_label.value}[/{style}]")
    console.print(f"SSNs:       {profile.ssn_count}")
    console.print(f"Est. Fine:  ${profile.estimated_fine:,}")
    if profile.findings:
        console.print("\nFindings:")
        for finding in profile.findings:
            console.print(f"  - {finding}", markup=False)


def offenders_table(profiles: list[RiskProfile]) -> Table:
    table = Table(title="At-risk files")
    table.add_column("Risk")
    table.add_column("Score", justify="right")
    table.add_column("Est. Fine", justify="right")
    table.add_column("File")
    for p in sorted(profiles, key=lambda p: p.risk_score, reverse=True):
        style = LABEL_STYLES[p.risk_label]
        table.add_row(
            f"[{style}]{p.risk_label.value}[/{style}]",
            str(p.risk_score),
            f"${p.estimated_fine:,}",
            p.file_path,
        )
    return table
