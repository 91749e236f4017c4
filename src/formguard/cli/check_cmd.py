"""Check CLI command — validate a record against a rule set."""

import asyncio
from pathlib import Path
from typing import Any

import click
import yaml

from formguard.cli.rules_cmd import _load_or_exit
from formguard.config import FormGuardConfig
from formguard.forms.binding import FieldBinding
from formguard.forms.fields import Form, FormField
from formguard.validation.checks import register_canned_checks
from formguard.validation.coordinator import CascadeError, ValidationCoordinator
from formguard.validation.engine import RuleSetValidator
from formguard.validation.rules import RuleSet


def _load_record(path: Path) -> dict[str, Any]:
    try:
        with path.open() as fh:
            record = yaml.safe_load(fh)
    except yaml.YAMLError as e:
        click.echo(f"Error: cannot parse {path}: {e}", err=True)
        raise SystemExit(1)

    if not isinstance(record, dict):
        click.echo(f"Error: {path} must contain a mapping", err=True)
        raise SystemExit(1)
    return record


async def _run_check(
    rule_set: RuleSet,
    record: dict[str, Any],
    changed: tuple[str, ...],
    config: FormGuardConfig,
) -> dict[str, list[str]]:
    """Validate the record and return messages per property path."""
    validator = RuleSetValidator(rule_set)

    if not changed:
        result = await validator.validate(record)
        messages: dict[str, list[str]] = {}
        for error in result.errors:
            messages.setdefault(error.field or "", []).append(error.message)
        return messages

    # Simulate a mounted form: one field per rule property
    form = Form(record)
    for name in rule_set.property_names():
        form.mount(FormField(name, FieldBinding.of(name)))

    coordinator = ValidationCoordinator.from_config(validator, rule_set, config)
    form.validation = coordinator.property_hook()

    for property_name in changed:
        own = await coordinator.validate_with_dependents(record, property_name, form)
        field = form.field_for(property_name)
        if field is not None:
            field.errors = own

    return {f.name: f.errors for f in form if f.has_errors}


@click.command()
@click.argument("rule_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("record_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--property",
    "-p",
    "changed",
    multiple=True,
    help="Treat PROPERTY as changed: validate it and cascade to its dependents. Repeatable.",
)
@click.pass_obj
def check(config: FormGuardConfig | None, rule_file: Path, record_file: Path, changed: tuple[str, ...]):
    """Validate RECORD_FILE (YAML or JSON) against RULE_FILE."""
    config = config or FormGuardConfig()
    rule_set = _load_or_exit(rule_file)
    record = _load_record(record_file)

    register_canned_checks()
    try:
        messages = asyncio.run(_run_check(rule_set, record, changed, config))
    except CascadeError as e:
        click.echo(f"Error: {e}", err=True)
        for handle, failure in e.failures:
            click.echo(f"  {handle!r}: {failure}", err=True)
        raise SystemExit(1)
    except (TypeError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    if not messages:
        click.echo(click.style("Record is valid.", fg="green", bold=True))
        return

    count = 0
    for property_name in sorted(messages):
        for message in messages[property_name]:
            count += 1
            click.echo(click.style(f"  ✗ {property_name}: {message}", fg="red"))

    click.echo(click.style(f"\n{count} error(s) found", fg="red", bold=True))
    raise SystemExit(1)
