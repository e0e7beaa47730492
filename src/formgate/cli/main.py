"""Formgate CLI entry point."""

import logging

import click


@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
def cli(verbose: bool):
    """Formgate — form definition and input validation CLI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# Register subcommands
from formgate.cli.check_cmd import check  # noqa: E402
from formgate.cli.definition_cmd import definition  # noqa: E402

cli.add_command(definition)
cli.add_command(check)
