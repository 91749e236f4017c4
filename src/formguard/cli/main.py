"""formguard CLI entry point."""

import logging

import click

from formguard.config import FormGuardConfig


@click.group()
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Override FORMGUARD_LOG_LEVEL.",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str | None):
    """formguard — dependent-field validation for forms."""
    try:
        config = FormGuardConfig.from_env()
    except ValueError as e:
        raise click.UsageError(str(e)) from e

    if log_level:
        config.log_level = log_level.upper()

    logging.basicConfig(
        level=config.log_level_number,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = config


# Register subcommands
from formguard.cli.check_cmd import check  # noqa: E402
from formguard.cli.rules_cmd import rules  # noqa: E402

cli.add_command(rules)
cli.add_command(check)
