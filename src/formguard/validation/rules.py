"""Declarative rule model.

A RuleSet is an ordered collection of rules. Each Rule binds to one
property and holds zero or more RuleComponents. Component kinds are a
closed set of tagged variants; only COMPARISON components point at another
property, which is what dependency discovery looks for.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from formguard.validation.types import Severity


class RuleSetError(ValueError):
    """Raised when a rule document cannot be turned into a RuleSet."""


class ComponentKind(Enum):
    """The kinds of check a rule component can perform."""

    NOT_EMPTY = "notEmpty"
    LENGTH = "length"
    RANGE = "range"
    PATTERN = "pattern"
    COMPARISON = "comparison"
    PREDICATE = "predicate"


class ComparisonOperator(Enum):
    """Operators supported by comparison components."""

    EQ = "eq"
    NEQ = "neq"
    LT = "lt"
    LTE = "lte"
    GT = "gt"
    GTE = "gte"


def _require_mapping(data: Any, what: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise RuleSetError(f"{what} must be a mapping, got {type(data).__name__}")
    return data


def _require_list(data: Any, what: str) -> list[Any]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise RuleSetError(f"{what} must be a list, got {type(data).__name__}")
    return data


class HasComparisonTarget(Protocol):
    """Anything that may reference another property to compare against."""

    def target_member(self) -> str | None:
        ...


class ComparableRule(Protocol):
    """What dependency discovery needs from a rule."""

    @property
    def property_name(self) -> str:
        ...

    @property
    def components(self) -> Iterable[HasComparisonTarget]:
        ...


def comparison_targets(components: Iterable[HasComparisonTarget]) -> list[str]:
    """Target members of the given components, skipping non-comparisons."""
    return [t for t in (c.target_member() for c in components) if t is not None]


@dataclass
class RuleComponent:
    """One atomic check within a rule.

    Attributes:
        kind: Which check to perform
        params: Kind-specific parameters (e.g. {"operator": "gte", "compareTo": "start"})
        message: Message template; the check's default is used when empty
        code: Machine-readable code; the check's default is used when empty
        severity: ERROR or WARNING
    """

    kind: ComponentKind
    params: dict[str, Any] = field(default_factory=dict)
    message: str = ""
    code: str = ""
    severity: Severity = Severity.ERROR

    def target_member(self) -> str | None:
        """Property this component compares against, if any."""
        if self.kind is ComponentKind.COMPARISON:
            return self.params.get("compareTo") or None
        return None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuleComponent":
        """Create RuleComponent from YAML/JSON dict."""
        data = _require_mapping(data, "Rule component")
        try:
            kind = ComponentKind(data["type"])
        except KeyError:
            raise RuleSetError("Rule component is missing 'type'") from None
        except ValueError:
            raise RuleSetError(f"Unknown rule component type '{data['type']}'") from None

        params = data.get("params") or {}
        if not isinstance(params, dict):
            raise RuleSetError("Rule component params must be a mapping")
        params = dict(params)
        if kind is ComponentKind.PREDICATE:
            raise RuleSetError("Predicate components can only be declared in code")
        if kind is ComponentKind.COMPARISON:
            if not params.get("compareTo"):
                raise RuleSetError("Comparison components require params.compareTo")
            try:
                ComparisonOperator(params.get("operator", "eq"))
            except ValueError:
                raise RuleSetError(
                    f"Unknown comparison operator '{params.get('operator')}'"
                ) from None

        try:
            severity = Severity(data.get("severity", "error"))
        except ValueError:
            raise RuleSetError(f"Unknown severity '{data['severity']}'") from None

        return cls(
            kind=kind,
            params=params,
            message=data.get("message", ""),
            code=data.get("code", ""),
            severity=severity,
        )


@dataclass
class Rule:
    """A declarative constraint bound to one property.

    Attributes:
        property_name: Dotted property path the rule validates
        components: Checks run in declared order
        stop_on_failure: Skip remaining components after the first failure
    """

    property_name: str
    components: list[RuleComponent] = field(default_factory=list)
    stop_on_failure: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Rule":
        """Create Rule from YAML/JSON dict."""
        data = _require_mapping(data, "Rule")
        if not data.get("property"):
            raise RuleSetError("Rule is missing 'property'")
        components = _require_list(data.get("components"), "Rule components")
        return cls(
            property_name=data["property"],
            components=[RuleComponent.from_dict(c) for c in components],
            stop_on_failure=data.get("stopOnFailure", False),
        )


@dataclass
class RuleSet:
    """An ordered collection of rules for one object schema.

    Attributes:
        name: Schema name (e.g. "Booking")
        rules: Rules in declared order
        properties: Optional declared property names of the schema
    """

    name: str
    rules: list[Rule] = field(default_factory=list)
    properties: list[str] | None = None

    def __iter__(self) -> Iterator[Rule]:
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)

    def rules_for(self, property_name: str) -> list[Rule]:
        """Rules bound to the given property, in declared order."""
        return [r for r in self.rules if r.property_name == property_name]

    def property_names(self) -> list[str]:
        """Distinct rule properties in first-declared order."""
        seen: dict[str, None] = {}
        for rule in self.rules:
            seen.setdefault(rule.property_name, None)
        return list(seen)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuleSet":
        """Create RuleSet from the ``ruleSet`` YAML/JSON dict."""
        if not isinstance(data, dict):
            raise RuleSetError("Rule set document must be a mapping")
        if not data.get("name"):
            raise RuleSetError("Rule set is missing 'name'")
        rules = _require_list(data.get("rules"), "Rule set rules")
        properties = data.get("properties")
        if properties is not None:
            properties = list(_require_list(properties, "Rule set properties"))
        return cls(
            name=data["name"],
            rules=[Rule.from_dict(r) for r in rules],
            properties=properties,
        )
