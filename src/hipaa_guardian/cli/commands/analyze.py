"""
Single-file risk analysis.
"""

from __future__ import annotations

import json

import click

from hipaa_guardian.cli.base import json_option, print_profile


@click.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@json_option
def analyze(path: str, as_json: bool) -> None:
    """Score one file for PHI exposure.

    Examples:
        hipaa-guardian analyze ./intake_form.pdf
        hipaa-guardian analyze ./export.csv --json
    """
    from hipaa_guardian.core import RiskEngine
    from hipaa_guardian.exceptions import ExtractionError

    try:
        profile = RiskEngine().analyze_file(path)
    except ExtractionError as e:
        raise click.ClickException(e.message) from e

    if as_json:
        click.echo(json.dumps(profile.to_dict(), indent=2))
    else:
        print_profile(profile)
