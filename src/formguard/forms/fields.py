"""Form fields and the form-level field registry.

FieldHandle is the capability the validation coordinator consumes. FormField
and Form are a minimal reference implementation of it: a Form owns the
model, the mounted fields and the property-level validation hook, and each
FormField keeps its own error state.
"""

import logging
from collections.abc import Awaitable, Callable, Iterator
from typing import Any, Protocol

from formguard.forms.binding import FieldBinding, PathError

logger = logging.getLogger(__name__)

# Property-level validation hook: async (model, property_path) -> messages
PropertyValidationFn = Callable[[Any, str], Awaitable[list[str]]]


class FieldHandle(Protocol):
    """A live UI-bound field."""

    @property
    def is_unbound(self) -> bool:
        """True when the field has no binding."""
        ...

    def bound_property_path(self) -> str:
        """Dotted path of the bound property; may raise if it cannot be determined."""
        ...

    async def trigger_revalidation(self) -> None:
        """Re-run this field's validation and update its error state."""
        ...


class FormField:
    """A field mounted on a Form.

    Attributes:
        name: Field identifier for display/debugging
        binding: The bound model property, or None for unbound fields
        errors: Messages from the last validation run
    """

    def __init__(self, name: str, binding: FieldBinding | None = None):
        self.name = name
        self.binding = binding
        self.errors: list[str] = []
        self.form: Form | None = None

    def __repr__(self) -> str:
        return f"FormField({self.name!r})"

    @property
    def is_unbound(self) -> bool:
        return self.binding is None

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def value(self) -> Any:
        if self.binding is None or self.form is None:
            return None
        return self.binding.read(self.form.model)

    def bound_property_path(self) -> str:
        if self.binding is None:
            raise PathError(f"Field '{self.name}' is not bound")
        return self.binding.path()

    async def trigger_revalidation(self) -> None:
        """Run the form's validation hook for this field's property."""
        if self.form is None or self.form.validation is None or self.binding is None:
            self.clear_errors()
            return

        self.errors = list(
            await self.form.validation(self.form.model, self.bound_property_path())
        )

    def clear_errors(self) -> None:
        self.errors = []


class Form:
    """The field registry for one form session.

    Fields are kept in mount order; iteration order is the order the
    validation coordinator scans them in.

    Example:
        form = Form(booking)
        form.mount(FormField("start", FieldBinding.of("start")))
        form.validation = validate_value_and_dependent(validator, rule_set, form)
    """

    def __init__(self, model: Any, validation: PropertyValidationFn | None = None):
        self.model = model
        self.validation = validation
        self._fields: list[FormField] = []

    def __iter__(self) -> Iterator[FormField]:
        # Snapshot so fields may unmount while a cascade is running
        return iter(list(self._fields))

    def __len__(self) -> int:
        return len(self._fields)

    def mount(self, field: FormField) -> FormField:
        """Register a field. Idempotent."""
        if field not in self._fields:
            self._fields.append(field)
            field.form = self
        return field

    def unmount(self, field: FormField) -> None:
        """Remove a field. Unmounting an unknown field is a no-op."""
        if field in self._fields:
            self._fields.remove(field)
            field.form = None

    def field_for(self, path: str) -> FormField | None:
        """First mounted field bound to ``path``."""
        for field in self._fields:
            if field.binding is None:
                continue
            try:
                if field.bound_property_path() == path:
                    return field
            except PathError:
                continue
        return None

    async def validate(self) -> bool:
        """Revalidate every mounted field in mount order.

        Returns:
            True if no field has errors afterwards
        """
        for field in self:
            await field.trigger_revalidation()
        valid = not any(f.has_errors for f in self._fields)
        logger.debug("Form validation finished: %d field(s), valid=%s", len(self), valid)
        return valid
