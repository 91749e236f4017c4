"""Rule set CLI commands — validate, dependents, graph."""

from pathlib import Path

import click

from formguard.metadata.loader import load_rule_set
from formguard.metadata.validator import validate_rule_dir, validate_rule_file
from formguard.validation.dependencies import dependency_map, dependents_of
from formguard.validation.rules import RuleSet, RuleSetError


def _load_or_exit(path: Path) -> RuleSet:
    try:
        return load_rule_set(path)
    except RuleSetError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)


@click.group()
def rules():
    """Rule set commands."""
    pass


@rules.command()
@click.argument("target_path", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Treat warnings as errors.",
)
def validate(target_path: Path, strict: bool):
    """Validate a rule file, or every rule file in a directory."""
    if target_path.is_dir():
        issues = validate_rule_dir(target_path, strict=strict)
        files = sorted(list(target_path.glob("*.yaml")) + list(target_path.glob("*.yml")))
    else:
        issues = validate_rule_file(target_path)
        if strict:
            for issue in issues:
                if issue.severity == "warning":
                    issue.severity = "error"
        files = [target_path]

    errors = [i for i in issues if i.severity == "error"]
    warnings = [i for i in issues if i.severity == "warning"]

    for issue in issues:
        colour = "red" if issue.severity == "error" else "yellow"
        click.echo(click.style(str(issue), fg=colour))

    if errors:
        click.echo(
            click.style(
                f"\n{len(errors)} error(s) found"
                + (f", {len(warnings)} warning(s)" if warnings else ""),
                fg="red",
                bold=True,
            )
        )
        raise SystemExit(1)

    if warnings:
        click.echo(click.style(f"{len(warnings)} warning(s) found.", fg="yellow"))

    click.echo(f"\nLoaded {len(files)} rule set(s):")
    for rule_file in files:
        rule_set = _load_or_exit(rule_file)
        click.echo(
            f"  ✓ {rule_set.name} ({len(rule_set)} rules, "
            f"{len(rule_set.property_names())} properties)"
        )

    click.echo(click.style("\nAll rule files are valid.", fg="green", bold=True))


@rules.command()
@click.argument("rule_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("property_name")
def dependents(rule_file: Path, property_name: str):
    """List properties revalidated when PROPERTY_NAME changes."""
    rule_set = _load_or_exit(rule_file)
    found = dependents_of(rule_set, property_name)

    if not found:
        click.echo(f"No properties depend on '{property_name}'.")
        return

    for name in sorted(found):
        click.echo(name)


@rules.command()
@click.argument("rule_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def graph(rule_file: Path):
    """Show every comparison dependency in a rule set."""
    rule_set = _load_or_exit(rule_file)
    edges = dependency_map(rule_set)

    if not edges:
        click.echo(f"Rule set '{rule_set.name}' has no comparison dependencies.")
        return

    click.echo(f"{rule_set.name}:")
    for target in sorted(edges):
        click.echo(f"  {target} -> {', '.join(sorted(edges[target]))}")
