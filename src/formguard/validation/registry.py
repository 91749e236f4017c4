"""Component check registry for formguard.

Maps rule component kinds to the factories that build executable checks.
The canned checks are registered by register_canned_checks(); applications
may register additional factories for their own kinds at startup.
"""

from typing import Any, Callable, Protocol

from formguard.validation.rules import ComponentKind, RuleComponent
from formguard.validation.types import ValidationContext, ValidationError


class ComponentCheck(Protocol):
    """Protocol that all component checks must implement.

    Checks are built per component and receive the value of the property
    the owning rule is bound to. They may be async to support callables
    that await.
    """

    async def validate(
        self,
        ctx: ValidationContext,
        property_name: str,
        value: Any,
    ) -> ValidationError | None:
        """Check the value.

        Args:
            ctx: Validation context with the instance being validated
            property_name: Property the owning rule is bound to
            value: Current value of that property

        Returns:
            A ValidationError when the check fails, otherwise None.
        """
        ...


CheckFactory = Callable[[RuleComponent], ComponentCheck]


class ComponentCheckRegistry:
    """Registry for component check factories.

    Example:
        ComponentCheckRegistry.register_factory(ComponentKind.RANGE, RangeCheck)

        # Later, build a check from a rule component
        check = ComponentCheckRegistry.create(component)
    """

    _factories: dict[ComponentKind, CheckFactory] = {}

    @classmethod
    def register_factory(cls, kind: ComponentKind, factory: CheckFactory) -> None:
        """Register a factory for a component kind.

        Idempotent - re-registering the same kind is a no-op.
        """
        if kind in cls._factories:
            return
        cls._factories[kind] = factory

    @classmethod
    def create(cls, component: RuleComponent) -> ComponentCheck:
        """Build the check for a rule component.

        Raises:
            ValueError: If no factory is registered for the component kind
        """
        if component.kind not in cls._factories:
            raise ValueError(
                f"Component kind '{component.kind.value}' is not registered. "
                "Available kinds: " + ", ".join(cls.list_registered())
            )
        return cls._factories[component.kind](component)

    @classmethod
    def is_registered(cls, kind: ComponentKind) -> bool:
        return kind in cls._factories

    @classmethod
    def list_registered(cls) -> list[str]:
        """List all registered kind names."""
        return sorted(kind.value for kind in cls._factories)

    @classmethod
    def clear(cls) -> None:
        """Clear all registrations. Primarily for testing."""
        cls._factories.clear()


class BaseCheck:
    """Base class for checks built from a RuleComponent.

    Subclasses implement `failed` and provide a default message and code;
    the component's own message and code win when set.
    """

    default_message = "{property:label} is not valid"
    default_code = "INVALID"

    def __init__(self, component: RuleComponent):
        self.component = component
        self.params = component.params

    async def validate(
        self,
        ctx: ValidationContext,
        property_name: str,
        value: Any,
    ) -> ValidationError | None:
        if not await self.failed(ctx, value):
            return None
        return ValidationError(
            message=self.component.message or self.default_message,
            code=self.component.code or self.default_code,
            field=property_name,
            severity=self.component.severity,
        )

    async def failed(self, ctx: ValidationContext, value: Any) -> bool:
        """Return True when the value fails the check. Override in subclasses."""
        raise NotImplementedError("Subclasses must implement failed()")

