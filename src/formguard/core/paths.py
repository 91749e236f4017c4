"""Dotted property-path access shared by validation and form bindings."""

from collections.abc import Mapping
from typing import Any

_MISSING = object()


def get_path_value(instance: Any, path: str) -> Any:
    """Read a dotted property path from a mapping or attribute object.

    Mappings are read by key, everything else by attribute. A missing
    segment anywhere along the path yields None.
    """
    current = instance
    for segment in path.split("."):
        if current is None:
            return None
        if isinstance(current, Mapping):
            current = current.get(segment, _MISSING)
        else:
            current = getattr(current, segment, _MISSING)
        if current is _MISSING:
            return None
    return current
