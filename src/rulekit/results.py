"""Validation failures and aggregated results."""

from dataclasses import dataclass, field, replace
from typing import Any, Iterable

from .enums import Severity


@dataclass(frozen=True)
class ValidationFailure:
    """A single failing check, created once and never mutated afterwards."""
    property_name: str
    error_message: str
    attempted_value: Any = None
    custom_state: Any = None
    severity: Severity = Severity.ERROR
    error_code: str | None = None
    formatted_message_placeholder_values: dict[str, Any] = field(default_factory=dict, compare=False)

    def with_message(self, error_message: str) -> "ValidationFailure":
        """Return a copy carrying a re-formatted message."""
        return replace(self, error_message=error_message)

    def with_property_name(self, property_name: str) -> "ValidationFailure":
        return replace(self, property_name=property_name)

    def __str__(self) -> str:
        return self.error_message


@dataclass
class ValidationResult:
    """Outcome of a validation pass."""
    errors: list[ValidationFailure] = field(default_factory=list)
    rule_sets_executed: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    @classmethod
    def merge(cls, results: Iterable["ValidationResult"]) -> "ValidationResult":
        """Combine several results into one, keeping failure order."""
        merged = cls()
        for result in results:
            merged.errors.extend(result.errors)
            for name in result.rule_sets_executed:
                if name not in merged.rule_sets_executed:
                    merged.rule_sets_executed.append(name)
        return merged

    def to_string(self, separator: str = "\n") -> str:
        return separator.join(failure.error_message for failure in self.errors)

    def __str__(self) -> str:
        return self.to_string()

    def to_dictionary(self) -> dict[str, list[str]]:
        """Group error messages by property name."""
        grouped: dict[str, list[str]] = {}
        for failure in self.errors:
            grouped.setdefault(failure.property_name, []).append(failure.error_message)
        return grouped

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "is_valid": self.is_valid,
            "rule_sets_executed": list(self.rule_sets_executed),
            "errors": [
                {
                    "property_name": failure.property_name,
                    "error_message": failure.error_message,
                    "attempted_value": _json_safe(failure.attempted_value),
                    "severity": failure.severity.value,
                    "error_code": failure.error_code,
                }
                for failure in self.errors
            ]
        }


def _json_safe(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    return str(value)
