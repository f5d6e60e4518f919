"""
HIPAA Guardian CLI entry point.

Usage:
    hipaa-guardian analyze FILE [--json]
    hipaa-guardian scan DIR [--report PATH] [--json]
    hipaa-guardian classify FILE
    hipaa-guardian redact FILE...
    hipaa-guardian schedule show|enable|disable|set-interval|add-path|remove-path|run
    hipaa-guardian history [--limit N]
    hipaa-guardian stats
    hipaa-guardian config show
"""

from typing import Optional

import click

from hipaa_guardian import __version__
from hipaa_guardian.cli.commands import (
    analyze,
    classify,
    config,
    history,
    redact,
    scan,
    schedule,
    stats,
)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Override the configured log level",
)
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON")
def cli(log_level: Optional[str], json_logs: bool):
    """HIPAA Guardian - find and score PHI exposure in local files"""
    from hipaa_guardian.config import get_settings
    from hipaa_guardian.logging import setup_logging

    settings = get_settings()
    setup_logging(
        level=log_level or settings.logging.level,
        json_format=json_logs or settings.logging.json_format,
        log_file=settings.logging.file,
    )


cli.add_command(analyze)
cli.add_command(classify)
cli.add_command(config)
cli.add_command(history)
cli.add_command(redact)
cli.add_command(scan)
cli.add_command(schedule)
cli.add_command(stats)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
