"""Canned component checks for formguard.

These are the ready-to-use checks behind each ComponentKind. They are
declared in rule metadata and configured via component params.

Available checks:
- notEmpty: Value must be present and non-blank
- length: String/collection length bounds
- range: Numeric (or any ordered) bounds
- pattern: Regex full match
- comparison: Compare against another property of the same instance
- predicate: Arbitrary callable, declared in code only
"""

import inspect
import operator
import re
from datetime import date, datetime
from typing import Any, Callable

from formguard.validation.registry import BaseCheck, ComponentCheckRegistry
from formguard.validation.rules import ComparisonOperator, ComponentKind, RuleComponent
from formguard.validation.types import ValidationContext


# =============================================================================
# Presence and shape
# =============================================================================


class NotEmptyCheck(BaseCheck):
    """Fails on None, blank strings and empty collections."""

    default_message = "{property:label} must not be empty"
    default_code = "REQUIRED"

    async def failed(self, ctx: ValidationContext, value: Any) -> bool:
        if value is None:
            return True
        if isinstance(value, str):
            return value.strip() == ""
        if isinstance(value, (list, tuple, set, frozenset, dict)):
            return len(value) == 0
        return False


class LengthCheck(BaseCheck):
    """Validates len(value) against min and/or max.

    Params:
        min: Minimum length (inclusive)
        max: Maximum length (inclusive)
    """

    default_message = "{property:label} must be between {min} and {max} characters"
    default_code = "INVALID_LENGTH"

    def __init__(self, component: RuleComponent):
        super().__init__(component)
        self.min = self.params.get("min")
        self.max = self.params.get("max")
        if not component.message:
            if self.max is None:
                self.default_message = "{property:label} must be at least {min} characters"
            elif self.min is None:
                self.default_message = "{property:label} must be at most {max} characters"

    async def failed(self, ctx: ValidationContext, value: Any) -> bool:
        if value is None:
            return False
        length = len(value)
        if self.min is not None and length < self.min:
            return True
        if self.max is not None and length > self.max:
            return True
        return False


class RangeCheck(BaseCheck):
    """Validates a value against min and/or max bounds.

    Params:
        min: Lower bound
        max: Upper bound
        inclusive: Whether the bounds themselves are allowed (default: true)
    """

    default_message = "{property:label} must be between {min} and {max}"
    default_code = "OUT_OF_RANGE"

    def __init__(self, component: RuleComponent):
        super().__init__(component)
        self.min = self.params.get("min")
        self.max = self.params.get("max")
        self.inclusive = self.params.get("inclusive", True)

    async def failed(self, ctx: ValidationContext, value: Any) -> bool:
        if value is None:
            return False
        if self.inclusive:
            below = self.min is not None and value < self.min
            above = self.max is not None and value > self.max
        else:
            below = self.min is not None and value <= self.min
            above = self.max is not None and value >= self.max
        return below or above


class PatternCheck(BaseCheck):
    """Validates a string against a regex (full match).

    Params:
        regex: The pattern
    """

    default_message = "{property:label} has an invalid format"
    default_code = "INVALID_FORMAT"

    def __init__(self, component: RuleComponent):
        super().__init__(component)
        self.pattern = re.compile(self.params.get("regex", ""))

    async def failed(self, ctx: ValidationContext, value: Any) -> bool:
        if value is None:
            return False
        return self.pattern.fullmatch(str(value)) is None


# =============================================================================
# Comparison
# =============================================================================


_OPERATORS: dict[ComparisonOperator, Callable[[Any, Any], bool]] = {
    ComparisonOperator.EQ: operator.eq,
    ComparisonOperator.NEQ: operator.ne,
    ComparisonOperator.LT: operator.lt,
    ComparisonOperator.LTE: operator.le,
    ComparisonOperator.GT: operator.gt,
    ComparisonOperator.GTE: operator.ge,
}

_OPERATOR_PHRASES: dict[ComparisonOperator, str] = {
    ComparisonOperator.EQ: "equal to",
    ComparisonOperator.NEQ: "different from",
    ComparisonOperator.LT: "less than",
    ComparisonOperator.LTE: "less than or equal to",
    ComparisonOperator.GT: "greater than",
    ComparisonOperator.GTE: "greater than or equal to",
}


class ComparisonCheck(BaseCheck):
    """Compares the property against another property of the same instance.

    Params:
        operator: eq, neq, lt, lte, gt, gte (default: eq)
        compareTo: Property path of the other side
    """

    default_code = "COMPARISON_FAILED"

    def __init__(self, component: RuleComponent):
        super().__init__(component)
        self.operator = ComparisonOperator(self.params.get("operator", "eq"))
        self.compare_to = component.target_member() or ""
        self.default_message = (
            "{property:label} must be "
            + _OPERATOR_PHRASES[self.operator]
            + " {compareTo:label}"
        )

    async def failed(self, ctx: ValidationContext, value: Any) -> bool:
        other = ctx.value_of(self.compare_to)

        # Missing values are notEmpty's job
        if value is None or other is None:
            return False

        # Date vs datetime compares on the date part
        if isinstance(value, datetime) != isinstance(other, datetime):
            if isinstance(value, datetime) and isinstance(other, date):
                value = value.date()
            elif isinstance(other, datetime) and isinstance(value, date):
                other = other.date()

        return not _OPERATORS[self.operator](value, other)


# =============================================================================
# Predicate
# =============================================================================


class PredicateCheck(BaseCheck):
    """Runs a callable ``(value, instance) -> bool``; False means failure.

    Params:
        predicate: Sync or async callable
    """

    default_code = "PREDICATE_FAILED"

    def __init__(self, component: RuleComponent):
        super().__init__(component)
        self.predicate = self.params["predicate"]

    async def failed(self, ctx: ValidationContext, value: Any) -> bool:
        outcome = self.predicate(value, ctx.instance)
        if inspect.isawaitable(outcome):
            outcome = await outcome
        return not outcome


# =============================================================================
# Registration
# =============================================================================


def register_canned_checks() -> None:
    """Register all canned checks with the ComponentCheckRegistry."""
    ComponentCheckRegistry.register_factory(ComponentKind.NOT_EMPTY, NotEmptyCheck)
    ComponentCheckRegistry.register_factory(ComponentKind.LENGTH, LengthCheck)
    ComponentCheckRegistry.register_factory(ComponentKind.RANGE, RangeCheck)
    ComponentCheckRegistry.register_factory(ComponentKind.PATTERN, PatternCheck)
    ComponentCheckRegistry.register_factory(ComponentKind.COMPARISON, ComparisonCheck)
    ComponentCheckRegistry.register_factory(ComponentKind.PREDICATE, PredicateCheck)
