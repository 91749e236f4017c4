"""Validation coordinator.

Bridges a Validator and a live field registry. When a property changes,
the coordinator revalidates the fields of every property whose rules
compare against it, then validates the changed property itself.

Cascade lifecycle:
1. Discover dependent properties from the rule set
2. Match them against the mounted fields (by resolved property path)
3. Revalidate matched fields sequentially, in registry order
4. Validate the changed property and return its messages
"""

import logging
from collections.abc import Iterable
from contextvars import ContextVar
from enum import Enum
from typing import TYPE_CHECKING, Any

from formguard.forms.binding import PathResolver
from formguard.forms.fields import FieldHandle, PropertyValidationFn
from formguard.validation.dependencies import dependents_of
from formguard.validation.rules import ComparableRule
from formguard.validation.types import Validator

if TYPE_CHECKING:
    from formguard.config import FormGuardConfig

logger = logging.getLogger(__name__)

# Properties whose cascade is currently running in this task
_active_cascade: ContextVar[frozenset[str]] = ContextVar(
    "formguard_active_cascade", default=frozenset()
)


class CascadePolicy(Enum):
    """How dependent-field failures are handled."""

    FAIL_FAST = "fail-fast"  # First failure propagates, the rest is skipped
    COLLECT = "collect"  # Run everything, then raise CascadeError


class CascadeError(Exception):
    """One or more dependent fields failed to revalidate.

    Only raised under CascadePolicy.COLLECT.

    Attributes:
        property_name: The property whose change started the cascade
        failures: (field handle, exception) pairs in registry order
        messages: Messages for the changed property itself
    """

    def __init__(
        self,
        property_name: str,
        failures: list[tuple[FieldHandle, Exception]],
        messages: list[str],
    ):
        self.property_name = property_name
        self.failures = failures
        self.messages = messages
        super().__init__(
            f"{len(failures)} dependent field(s) of '{property_name}' failed to revalidate"
        )


class ValidationCoordinator:
    """Runs property-level validation with dependent-field cascades.

    The rule set and field registry are read, never mutated; the registry
    is rescanned on every call. The coordinator provides no locking:
    callers must not run two cascades against one registry concurrently.
    """

    def __init__(
        self,
        validator: Validator,
        rule_set: Iterable[ComparableRule],
        path_resolver: PathResolver | None = None,
        cascade_policy: CascadePolicy = CascadePolicy.FAIL_FAST,
    ):
        self.validator = validator
        self.rule_set = rule_set
        self.path_resolver = path_resolver or PathResolver()
        self.cascade_policy = cascade_policy

    @classmethod
    def from_config(
        cls,
        validator: Validator,
        rule_set: Iterable[ComparableRule],
        config: "FormGuardConfig",
    ) -> "ValidationCoordinator":
        return cls(
            validator,
            rule_set,
            path_resolver=PathResolver(config.path_error_policy),
            cascade_policy=config.cascade_policy,
        )

    async def validate_only(self, instance: Any, property_name: str) -> list[str]:
        """Validate one property, without touching dependents.

        Returns:
            [] if valid, otherwise the error messages in validator order
        """
        result = await self.validator.validate(instance, [property_name])
        if result.valid:
            return []
        return [e.message for e in result.errors]

    def dependent_fields(
        self,
        property_name: str,
        field_registry: Iterable[FieldHandle],
    ) -> list[FieldHandle]:
        """Mounted fields bound to properties that depend on ``property_name``.

        Fields are returned in registry order. Unbound fields (and, under the
        default path policy, fields whose path cannot be resolved) never match.
        """
        dependents = dependents_of(self.rule_set, property_name)
        dependents -= _active_cascade.get()
        if not dependents:
            return []

        matched = []
        for handle in field_registry:
            path = self.path_resolver.resolve(handle)
            if path and path in dependents:
                matched.append(handle)

        logger.debug(
            "Dependents of '%s': %s (%d mounted field(s))",
            property_name,
            sorted(dependents),
            len(matched),
        )
        return matched

    async def validate_with_dependents(
        self,
        instance: Any,
        property_name: str,
        field_registry: Iterable[FieldHandle],
    ) -> list[str]:
        """Revalidate dependent fields, then validate ``property_name``.

        Dependent revalidations run one at a time in registry order. Under
        CascadePolicy.FAIL_FAST the first failure propagates unchanged and
        neither the remaining dependents nor ``property_name`` are validated.

        Returns:
            Messages for ``property_name`` ([] if valid). Display state for
            the changed field is left to the caller.

        Raises:
            CascadeError: Under CascadePolicy.COLLECT, if any dependent failed.
                If validating ``property_name`` also failed, that exception is
                chained as ``__cause__`` and ``messages`` is empty.
        """
        fields = self.dependent_fields(property_name, field_registry)
        failures: list[tuple[FieldHandle, Exception]] = []

        token = _active_cascade.set(_active_cascade.get() | {property_name})
        try:
            for handle in fields:
                if self.cascade_policy is CascadePolicy.FAIL_FAST:
                    await handle.trigger_revalidation()
                    continue
                try:
                    await handle.trigger_revalidation()
                except Exception as e:
                    logger.warning(
                        "Dependent field %r of '%s' failed to revalidate: %s",
                        handle,
                        property_name,
                        e,
                    )
                    failures.append((handle, e))
        finally:
            _active_cascade.reset(token)

        try:
            messages = await self.validate_only(instance, property_name)
        except Exception as e:
            if not failures:
                raise
            raise CascadeError(property_name, failures, []) from e

        if failures:
            raise CascadeError(property_name, failures, messages)
        return messages

    def property_hook(self) -> PropertyValidationFn:
        """Hook validating a single property."""
        return self.validate_only

    def cascading_hook(self, field_registry: Iterable[FieldHandle]) -> PropertyValidationFn:
        """Hook validating a property and cascading to dependent fields."""

        async def validate(instance: Any, property_name: str) -> list[str]:
            return await self.validate_with_dependents(instance, property_name, field_registry)

        return validate


def validate_value(validator: Validator) -> PropertyValidationFn:
    """Property-level validation hook for a validator.

    Usage:
        form.validation = validate_value(RuleSetValidator(rule_set))
    """
    return ValidationCoordinator(validator, ()).property_hook()


def validate_value_and_dependent(
    validator: Validator,
    rule_set: Iterable[ComparableRule],
    field_registry: Iterable[FieldHandle],
) -> PropertyValidationFn:
    """Property-level validation hook that also revalidates dependent fields.

    Usage:
        form.validation = validate_value_and_dependent(validator, rule_set, form)
    """
    return ValidationCoordinator(validator, rule_set).cascading_hook(field_registry)
