"""Form-binding layer: field bindings, path resolution and the field registry."""

from formguard.forms.binding import (
    FieldBinding,
    PathError,
    PathErrorPolicy,
    PathResolver,
    PathResult,
    extract_path,
)
from formguard.forms.fields import FieldHandle, Form, FormField, PropertyValidationFn

__all__ = [
    "FieldBinding",
    "FieldHandle",
    "Form",
    "FormField",
    "PathError",
    "PathErrorPolicy",
    "PathResolver",
    "PathResult",
    "PropertyValidationFn",
    "extract_path",
]
