"""Placeholder substitution for error message templates."""

import re
from typing import Any

_KEY_REGEX = re.compile(r"{([^{}:]+)(?::([^{}]+))?}")


class MessageFormatter:
    """Collects placeholder values and applies them to a message template.

    Placeholders look like ``{PropertyName}`` or, with a format spec,
    ``{ComparisonValue:.2f}``. Unknown placeholders are left untouched.
    """

    PROPERTY_NAME = "PropertyName"
    PROPERTY_VALUE = "PropertyValue"

    def __init__(self):
        self._placeholder_values: dict[str, Any] = {}

    def append_argument(self, name: str, value: Any) -> "MessageFormatter":
        self._placeholder_values[name] = value
        return self

    def append_property_name(self, name: str | None) -> "MessageFormatter":
        return self.append_argument(self.PROPERTY_NAME, name)

    def append_property_value(self, value: Any) -> "MessageFormatter":
        return self.append_argument(self.PROPERTY_VALUE, value)

    @property
    def placeholder_values(self) -> dict[str, Any]:
        return self._placeholder_values

    def reset(self) -> None:
        self._placeholder_values = {}

    def build_message(self, message_template: str) -> str:
        return _KEY_REGEX.sub(self._replace, message_template)

    def _replace(self, match: re.Match) -> str:
        key = match.group(1)
        if key not in self._placeholder_values:
            return match.group(0)

        value = self._placeholder_values[key]
        format_spec = match.group(2)
        if format_spec is not None:
            try:
                return format(value, format_spec)
            except (TypeError, ValueError):
                return str(value)
        return "" if value is None else str(value)
