"""formguard validation system.

This package provides:
- The declarative rule model (RuleSet, Rule, RuleComponent)
- A rule-set validator with canned component checks
- Dependent-property discovery over comparison components
- The ValidationCoordinator, which revalidates dependent form fields
  before validating a changed property

Usage:
    from formguard.validation import (
        register_canned_checks,
        RuleSetValidator,
        validate_value_and_dependent,
    )

    # At application startup
    register_canned_checks()

    # Per form
    validator = RuleSetValidator(rule_set)
    form.validation = validate_value_and_dependent(validator, rule_set, form)
"""

from formguard.validation.checks import (
    ComparisonCheck,
    LengthCheck,
    NotEmptyCheck,
    PatternCheck,
    PredicateCheck,
    RangeCheck,
    register_canned_checks,
)
from formguard.validation.coordinator import (
    CascadeError,
    CascadePolicy,
    ValidationCoordinator,
    validate_value,
    validate_value_and_dependent,
)
from formguard.validation.dependencies import (
    dependency_map,
    dependents_of,
    find_cycles,
)
from formguard.validation.engine import RuleSetValidator
from formguard.validation.interpolation import MessageInterpolator
from formguard.validation.registry import (
    BaseCheck,
    ComponentCheck,
    ComponentCheckRegistry,
)
from formguard.validation.rules import (
    ComparableRule,
    ComparisonOperator,
    ComponentKind,
    HasComparisonTarget,
    Rule,
    RuleComponent,
    RuleSet,
    RuleSetError,
    comparison_targets,
)
from formguard.validation.types import (
    Severity,
    ValidationContext,
    ValidationError,
    ValidationResult,
    Validator,
)

__all__ = [
    # Types
    "Severity",
    "ValidationContext",
    "ValidationError",
    "ValidationResult",
    "Validator",
    # Rules
    "ComparableRule",
    "ComparisonOperator",
    "ComponentKind",
    "HasComparisonTarget",
    "Rule",
    "RuleComponent",
    "RuleSet",
    "RuleSetError",
    "comparison_targets",
    # Checks
    "BaseCheck",
    "ComponentCheck",
    "ComponentCheckRegistry",
    "ComparisonCheck",
    "LengthCheck",
    "NotEmptyCheck",
    "PatternCheck",
    "PredicateCheck",
    "RangeCheck",
    "register_canned_checks",
    # Engine
    "MessageInterpolator",
    "RuleSetValidator",
    # Dependencies
    "dependency_map",
    "dependents_of",
    "find_cycles",
    # Coordinator
    "CascadeError",
    "CascadePolicy",
    "ValidationCoordinator",
    "validate_value",
    "validate_value_and_dependent",
]
