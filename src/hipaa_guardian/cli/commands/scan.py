"""
Directory audit command.
"""

from __future__ import annotations

import json
from pathlib import Path

import click

from hipaa_guardian.cli.base import console, file_progress, json_option, offenders_table, spinner


@click.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False))
@click.option(
    "--report", "-r", "report_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write a compliance certificate (clean) or audit report (at risk) to this path",
)
@json_option
def scan(path: str, report_path: str | None, as_json: bool) -> None:
    """Audit every supported file under a directory.

    Examples:
        hipaa-guardian scan ~/Documents
        hipaa-guardian scan /srv/share --report audit.html
    """
    from hipaa_guardian.config import get_settings
    from hipaa_guardian.core import RiskEngine
    from hipaa_guardian.core.filesystem import count_scannable_files
    from hipaa_guardian.exceptions import AnalysisError, CertificateError
    from hipaa_guardian.identity import get_username
    from hipaa_guardian.reporting import CertificateIssuer

    engine = RiskEngine()

    if as_json:
        try:
            report = engine.analyze_directory(path)
        except AnalysisError as e:
            raise click.ClickException(e.message) from e
    else:
        with spinner() as progress:
            progress.add_task("Counting files...", total=None)
            total = count_scannable_files(path)

        with file_progress(total, "Scanning") as progress:
            task = progress.add_task("Scanning", total=total)

            def on_file(file_path: str) -> None:
                progress.update(task, advance=1, description=Path(file_path).name[:40])

            try:
                report = engine.analyze_directory(path, progress_callback=on_file)
            except AnalysisError as e:
                raise click.ClickException(e.message) from e

    document = None
    if report_path:
        issuer = CertificateIssuer.from_settings(get_settings())
        try:
            if report.is_clean:
                document = issuer.issue_compliance_certificate(
                    report.total_files, get_username(), [], output_path=Path(report_path)
                )
            else:
                document = issuer.issue_audit_report(
                    report.total_files,
                    report.critical_count,
                    report.potential_liability,
                    report.top_offenders,
                    output_path=Path(report_path),
                )
        except CertificateError as e:
            click.echo(f"Warning: {e.message}", err=True)

    if as_json:
        data = report.to_dict()
        data["report"] = str(document) if document else None
        click.echo(json.dumps(data, indent=2))
        return

    console.print(f"Files scanned:       {report.total_files:,}")
    console.print(f"Total risk score:    {report.total_risk_score:,}")
    console.print(f"Critical files:      {report.critical_count}")
    console.print(f"Potential liability: ${report.potential_liability:,}")
    if report.top_offenders:
        console.print(offenders_table(report.top_offenders))
    else:
        console.print("[green]No PHI risks detected.[/green]")
    if document:
        console.print(f"Report written: {document}")
