"""
Document domain classification.
"""

from __future__ import annotations

import json

import click

from hipaa_guardian.cli.base import json_option


@click.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@json_option
def classify(path: str, as_json: bool) -> None:
    """Estimate whether a file is a Medical, Financial or Generic document."""
    from hipaa_guardian.core import RiskEngine
    from hipaa_guardian.exceptions import ExtractionError

    engine = RiskEngine()
    try:
        result = engine.classify(engine.extract_text(path))
    except ExtractionError as e:
        raise click.ClickException(e.message) from e

    if as_json:
        click.echo(json.dumps(result.to_dict()))
    else:
        click.echo(f"Category:   {result.category.value}")
        click.echo(f"Confidence: {result.confidence:.1f}%")
