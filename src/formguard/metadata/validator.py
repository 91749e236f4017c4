"""
metadata/validator.py — schema and consistency checks for rule set YAML files.

Two passes per file:
1. JSON Schema (Draft 2020-12) validation of the raw document
2. Consistency checks on the parsed RuleSet, only if the schema passed:
   - rule properties and comparison targets must be declared when the rule
     set lists its ``properties`` (error)
   - comparison cycles (warning; the coordinator cuts them, but they are
     usually a modelling mistake)
   - rules without components (warning)

Usage:
    from formguard.metadata.validator import validate_rule_dir, validate_rule_file

    issues = validate_rule_dir(Path("rules"))
    for issue in issues:
        print(issue)
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError

from formguard.validation.dependencies import find_cycles
from formguard.validation.rules import RuleSet, RuleSetError

logger = logging.getLogger(__name__)

_SCHEMA_PATH = Path(__file__).parent / "schemas" / "ruleset.schema.json"


@dataclass
class ValidationIssue:
    """A single finding for a rule set YAML file."""

    file: Path
    message: str
    path: str = ""           # Location within the document, e.g. "ruleSet/rules[0]"
    severity: str = "error"  # "error" | "warning"

    def __str__(self) -> str:
        loc = f" at {self.path}" if self.path else ""
        return f"[{self.severity.upper()}] {self.file}{loc}: {self.message}"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_schema() -> dict[str, Any]:
    with _SCHEMA_PATH.open() as fh:
        return json.load(fh)


def _json_path(error: ValidationError) -> str:
    """Convert a jsonschema ValidationError path to a readable string."""
    parts = []
    for p in error.absolute_path:
        if isinstance(p, int):
            parts.append(f"[{p}]")
        else:
            parts.append(str(p))
    return "/".join(parts).replace("/[", "[")


def _check_consistency(file: Path, rule_set: RuleSet) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []

    declared = set(rule_set.properties) if rule_set.properties is not None else None

    for i, rule in enumerate(rule_set.rules):
        location = f"ruleSet/rules[{i}]"

        if declared is not None and rule.property_name not in declared:
            issues.append(
                ValidationIssue(
                    file=file,
                    message=f"Rule property '{rule.property_name}' is not a declared property",
                    path=location,
                )
            )

        if not rule.components:
            issues.append(
                ValidationIssue(
                    file=file,
                    message=f"Rule for '{rule.property_name}' has no components",
                    path=location,
                    severity="warning",
                )
            )

        for j, component in enumerate(rule.components):
            target = component.target_member()
            if target is None or declared is None or target in declared:
                continue
            issues.append(
                ValidationIssue(
                    file=file,
                    message=f"Comparison target '{target}' is not a declared property",
                    path=f"{location}/components[{j}]",
                )
            )

    for cycle in find_cycles(rule_set):
        issues.append(
            ValidationIssue(
                file=file,
                message="Comparison cycle: " + " -> ".join(cycle + [cycle[0]]),
                severity="warning",
            )
        )

    return issues


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_rule_file(
    yaml_path: Path,
    *,
    schema: dict[str, Any] | None = None,
) -> list[ValidationIssue]:
    """
    Validate a single rule set YAML file.

    Args:
        yaml_path: Path to the YAML file to validate.
        schema:    Pre-loaded schema.  Loaded automatically if omitted.

    Returns:
        A list of :class:`ValidationIssue` objects (empty on success).
    """
    # 1. Parse YAML
    try:
        with yaml_path.open() as fh:
            raw = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        return [ValidationIssue(file=yaml_path, message=f"YAML parse error: {exc}")]

    if raw is None:
        return [
            ValidationIssue(file=yaml_path, message="File is empty or contains only whitespace")
        ]

    # 2. Schema validation
    if schema is None:
        schema = _load_schema()
    validator = Draft202012Validator(schema)

    issues = [
        ValidationIssue(file=yaml_path, message=error.message, path=_json_path(error))
        for error in sorted(validator.iter_errors(raw), key=_json_path)
    ]
    if issues:
        return issues

    # 3. Consistency checks on the parsed rule set
    try:
        rule_set = RuleSet.from_dict(raw["ruleSet"])
    except RuleSetError as exc:
        return [ValidationIssue(file=yaml_path, message=str(exc))]

    return _check_consistency(yaml_path, rule_set)


def validate_rule_dir(
    rules_dir: Path,
    *,
    strict: bool = False,
) -> list[ValidationIssue]:
    """
    Validate every ``*.yaml`` / ``*.yml`` file directly under *rules_dir*.

    Args:
        rules_dir: Directory holding rule set files.
        strict:    If ``True``, warnings are escalated to errors.

    Returns:
        A flat list of :class:`ValidationIssue` objects across all files.
        Empty list means all files are valid.
    """
    if not rules_dir.is_dir():
        return [
            ValidationIssue(
                file=rules_dir,
                message=f"Rules directory does not exist: {rules_dir}",
            )
        ]

    try:
        schema = _load_schema()
    except (FileNotFoundError, json.JSONDecodeError) as exc:
        return [
            ValidationIssue(
                file=_SCHEMA_PATH,
                message=f"Failed to load JSON Schema: {exc}",
            )
        ]

    all_issues: list[ValidationIssue] = []
    files = sorted(list(rules_dir.glob("*.yaml")) + list(rules_dir.glob("*.yml")))
    for yaml_file in files:
        file_issues = validate_rule_file(yaml_file, schema=schema)
        if strict:
            for issue in file_issues:
                if issue.severity == "warning":
                    issue.severity = "error"
        all_issues.extend(file_issues)

    logger.debug("Validated %d rule file(s) under %s", len(files), rules_dir)
    return all_issues
