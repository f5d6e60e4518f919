"""
Write sanitized copies of files.
"""

from __future__ import annotations

import click


@click.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
def redact(paths: tuple[str, ...]) -> None:
    """Replace identifiers with placeholders and save a cleaned copy.

    Text formats keep their extension (report_CLEANED.csv); PDF, Word, Excel
    and RTF files become a text transcript (report_CLEANED_TRANSCRIPT.txt).
    """
    from hipaa_guardian.core import RiskEngine
    from hipaa_guardian.exceptions import ExtractionError

    engine = RiskEngine()
    failed = 0
    for path in paths:
        try:
            output = engine.redact_file(path)
        except (ExtractionError, OSError) as e:
            click.echo(f"Error: {path}: {e}", err=True)
            failed += 1
            continue
        click.echo(f"Sanitized copy written: {output}")

    if failed:
        raise SystemExit(1)
