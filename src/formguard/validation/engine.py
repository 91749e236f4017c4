"""Rule-set validator.

RuleSetValidator is the reference implementation of the Validator protocol:
it runs the components of a RuleSet against an instance, optionally
restricted to a set of property paths.
"""

import logging
from collections.abc import Collection
from typing import Any

from formguard.validation.interpolation import MessageInterpolator
from formguard.validation.registry import ComponentCheckRegistry
from formguard.validation.rules import Rule, RuleComponent, RuleSet
from formguard.validation.types import (
    Severity,
    ValidationContext,
    ValidationError,
    ValidationResult,
)

logger = logging.getLogger(__name__)


class RuleSetValidator:
    """Validates instances against a RuleSet.

    Rules run in declared order and their components run in declared order,
    so errors come back in a stable order. Checks are awaited one at a time;
    a check that raises propagates to the caller unchanged.

    Canned checks must be registered (register_canned_checks()) before use.
    """

    def __init__(
        self,
        rule_set: RuleSet,
        interpolator: MessageInterpolator | None = None,
    ):
        self.rule_set = rule_set
        self.interpolator = interpolator or MessageInterpolator()

    async def validate(
        self,
        instance: Any,
        include_properties: Collection[str] | None = None,
    ) -> ValidationResult:
        """Validate the instance.

        Args:
            instance: Mapping or attribute object to validate
            include_properties: Restrict validation to rules bound to these paths

        Returns:
            ValidationResult with errors and warnings split by severity
        """
        ctx = ValidationContext(
            instance=instance,
            include_properties=(
                frozenset(include_properties) if include_properties is not None else None
            ),
        )

        issues: list[ValidationError] = []
        for rule in self.rule_set:
            if not ctx.includes(rule.property_name):
                continue
            issues.extend(await self._validate_rule(ctx, rule))

        errors = [e for e in issues if e.severity == Severity.ERROR]
        warnings = [e for e in issues if e.severity == Severity.WARNING]

        logger.debug(
            "Validated %s (scope=%s): %d error(s), %d warning(s)",
            self.rule_set.name,
            sorted(ctx.include_properties) if ctx.include_properties is not None else "all",
            len(errors),
            len(warnings),
        )

        return ValidationResult(valid=len(errors) == 0, errors=errors, warnings=warnings)

    async def _validate_rule(
        self,
        ctx: ValidationContext,
        rule: Rule,
    ) -> list[ValidationError]:
        value = ctx.value_of(rule.property_name)
        issues: list[ValidationError] = []

        for component in rule.components:
            check = ComponentCheckRegistry.create(component)
            issue = await check.validate(ctx, rule.property_name, value)
            if issue is None:
                continue

            issues.append(
                ValidationError(
                    message=self.interpolator.interpolate(
                        issue.message,
                        self._message_variables(ctx, rule, component, value),
                    ),
                    code=issue.code,
                    field=issue.field,
                    severity=issue.severity,
                )
            )
            if rule.stop_on_failure:
                break

        return issues

    def _message_variables(
        self,
        ctx: ValidationContext,
        rule: Rule,
        component: RuleComponent,
        value: Any,
    ) -> dict[str, Any]:
        variables: dict[str, Any] = {
            k: v for k, v in component.params.items() if not callable(v)
        }
        variables["property"] = rule.property_name
        variables["value"] = value

        target = component.target_member()
        if target:
            variables["compareTo"] = target
            variables["comparisonValue"] = ctx.value_of(target)

        return variables
