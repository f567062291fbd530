"""PrintForge CLI entry point."""

import logging

import click

from printforge.config import EngineConfig


@click.group()
def cli():
    """PrintForge template expression tooling."""
    try:
        config = EngineConfig.from_env()
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    logging.basicConfig(
        level=config.log_level,
        format="%(levelname)s %(name)s: %(message)s",
    )


# Register subcommands
from printforge.cli.expression_cmd import check, eval_cmd, filters  # noqa: E402

cli.add_command(eval_cmd)
cli.add_command(check)
cli.add_command(filters)
