"""Message interpolation for validation errors."""

import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any


class MessageInterpolator:
    """Interpolates values into error message templates.

    Supports:
    - {name} or {name:value} - Formatted value of a template variable
    - {name:raw} - Raw value
    - {name:label} - Display label for a property named by the variable

    Variables are supplied per message by the rule engine: ``property``,
    ``value``, ``compareTo``, ``comparisonValue`` and every component param.
    Unknown placeholders are left untouched.
    """

    PATTERN = re.compile(r"\{(?P<name>\w+)(?::(?P<modifier>value|raw|label))?\}")

    def __init__(self, labels: dict[str, str] | None = None):
        """Initialize the interpolator.

        Args:
            labels: Dict of property path -> display label
        """
        self.labels = labels or {}

    def interpolate(self, template: str, variables: dict[str, Any]) -> str:
        def replace(match: re.Match) -> str:
            name = match.group("name")
            modifier = match.group("modifier") or "value"

            if name not in variables:
                return match.group(0)

            value = variables[name]
            if modifier == "label":
                return self.label_for(str(value)) if value is not None else ""
            elif modifier == "raw":
                return str(value) if value is not None else ""
            else:
                return self._format_value(value)

        return self.PATTERN.sub(replace, template)

    def label_for(self, path: str) -> str:
        """Display label for a property path."""
        if path in self.labels:
            return self.labels[path]
        return self._to_title_case(path.rsplit(".", 1)[-1])

    def _format_value(self, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, bool):
            return "Yes" if value else "No"
        if isinstance(value, datetime):
            return value.strftime("%B %d, %Y %I:%M %p")
        if isinstance(value, date):
            return value.strftime("%B %d, %Y")
        if isinstance(value, Decimal):
            return f"{value:,.2f}"
        if isinstance(value, float):
            return f"{value:,.2f}"
        if isinstance(value, (list, tuple)):
            return ", ".join(str(v) for v in value)
        return str(value)

    def _to_title_case(self, name: str) -> str:
        """Convert camelCase / snake_case to Title Case."""
        result = re.sub(r"(?<=[a-z0-9])([A-Z])", r" \1", name.replace("_", " "))
        return result.strip().title()
