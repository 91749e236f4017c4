"""Rule set files: YAML loading and schema/consistency validation."""

from formguard.metadata.loader import RuleSetLoader, load_rule_set, read_document
from formguard.metadata.validator import (
    ValidationIssue,
    validate_rule_dir,
    validate_rule_file,
)

__all__ = [
    "RuleSetLoader",
    "ValidationIssue",
    "load_rule_set",
    "read_document",
    "validate_rule_dir",
    "validate_rule_file",
]
