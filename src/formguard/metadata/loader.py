"""Load rule sets from YAML files."""

import logging
from pathlib import Path
from typing import Any

import yaml

from formguard.validation.rules import RuleSet, RuleSetError

logger = logging.getLogger(__name__)


def read_document(path: Path) -> dict[str, Any]:
    """Parse a rule file and return its ``ruleSet`` mapping.

    Raises:
        RuleSetError: If the file is not valid YAML or has no ruleSet
    """
    try:
        with path.open() as fh:
            raw = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        raise RuleSetError(f"{path}: YAML parse error: {exc}") from exc

    if not isinstance(raw, dict) or "ruleSet" not in raw:
        raise RuleSetError(f"{path}: expected a top-level 'ruleSet' mapping")
    return raw["ruleSet"]


def load_rule_set(path: Path) -> RuleSet:
    """Load a single rule set from a YAML file.

    Raises:
        RuleSetError: If the document is malformed
    """
    data = read_document(path)
    try:
        return RuleSet.from_dict(data)
    except RuleSetError as exc:
        raise RuleSetError(f"{path}: {exc}") from exc


class RuleSetLoader:
    """Loads every rule set under a directory (``*.yaml`` / ``*.yml``)."""

    def __init__(self, rules_path: Path):
        self.rules_path = rules_path
        self.rule_sets: dict[str, RuleSet] = {}
        self.sources: dict[str, Path] = {}

    def load_all(self) -> None:
        """Load all rule files, in file-name order.

        Raises:
            RuleSetError: On a malformed file or a duplicate rule set name
        """
        if not self.rules_path.is_dir():
            raise RuleSetError(f"Rules directory does not exist: {self.rules_path}")

        files = sorted(
            list(self.rules_path.glob("*.yaml")) + list(self.rules_path.glob("*.yml"))
        )
        for rule_file in files:
            rule_set = load_rule_set(rule_file)
            if rule_set.name in self.rule_sets:
                raise RuleSetError(
                    f"Duplicate rule set '{rule_set.name}' in {rule_file} "
                    f"(already defined in {self.sources[rule_set.name]})"
                )
            self.rule_sets[rule_set.name] = rule_set
            self.sources[rule_set.name] = rule_file
            logger.debug("Loaded rule set '%s' from %s", rule_set.name, rule_file)

    def get_rule_set(self, name: str) -> RuleSet | None:
        return self.rule_sets.get(name)

    def list_rule_sets(self) -> list[str]:
        return sorted(self.rule_sets.keys())
