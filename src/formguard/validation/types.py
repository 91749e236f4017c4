"""Core types for the formguard validation system.

This module defines the types shared by the rule engine, the canned
component checks and the validation coordinator:
- Severity / ValidationError / ValidationResult: what a validator reports
- ValidationContext: the instance being validated plus the property scope
- Validator: the protocol any rule engine must implement
"""

from collections.abc import Collection
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from formguard.core.paths import get_path_value


class Severity(Enum):
    """Validation result severity.

    ERROR: Makes the result invalid
    WARNING: Reported, but does not affect validity
    """

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ValidationError:
    """A single validation error or warning.

    Attributes:
        message: Human-readable message (already interpolated)
        code: Machine-readable error code (e.g., "COMPARISON_FAILED")
        field: Property path this error relates to
        severity: ERROR invalidates the result, WARNING does not
    """

    message: str
    code: str
    field: str | None = None
    severity: Severity = Severity.ERROR

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "field": self.field,
            "severity": self.severity.value,
        }


@dataclass
class ValidationResult:
    """Result of validating an instance.

    Attributes:
        valid: True if no errors (warnings don't affect this)
        errors: List of ERROR severity issues, in the order they were found
        warnings: List of WARNING severity issues
    """

    valid: bool
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[ValidationError] = field(default_factory=list)

    @property
    def messages(self) -> list[str]:
        """Error messages in reporting order."""
        return [e.message for e in self.errors]

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
        }


@dataclass
class ValidationContext:
    """Context passed to component checks during validation.

    Attributes:
        instance: The object being validated (mapping or attribute object)
        include_properties: Property paths in scope, or None for all
    """

    instance: Any
    include_properties: frozenset[str] | None = None

    def includes(self, property_name: str) -> bool:
        if self.include_properties is None:
            return True
        return property_name in self.include_properties

    def value_of(self, path: str) -> Any:
        return get_path_value(self.instance, path)


class Validator(Protocol):
    """Protocol that rule engines must implement.

    The coordinator only ever calls validate with a single-property scope,
    but engines should accept any collection of property paths.
    """

    async def validate(
        self,
        instance: Any,
        include_properties: Collection[str] | None = None,
    ) -> ValidationResult:
        """Validate the instance.

        Args:
            instance: The object to validate
            include_properties: Restrict validation to these property paths

        Returns:
            ValidationResult; valid with no errors means the scope passed.
        """
        ...
