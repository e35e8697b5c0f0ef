"""Capabilities a check must provide to take part in a rule.

New kinds of checks are added by implementing one (or both) of these
protocols; there is no base class to inherit from.
"""

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..context import ValidationContext
    from ..descriptor import ValidatorDescriptor
    from ..results import ValidationResult


@runtime_checkable
class PropertyValidator(Protocol):
    """A synchronous atomic check.

    ``name`` doubles as the default error code and as the message catalog key.
    Validator specific placeholders are added through
    ``context.message_formatter`` inside ``is_valid``.
    """

    name: str

    def is_valid(self, context: "ValidationContext", value: Any) -> bool:
        ...


@runtime_checkable
class AsyncPropertyValidator(Protocol):
    """An asynchronous atomic check."""

    name: str

    async def is_valid_async(self, context: "ValidationContext", value: Any) -> bool:
        ...


@runtime_checkable
class ObjectValidator(Protocol):
    """A whole-object validator, e.g. ``AbstractValidator`` subclasses."""

    def validate(self, instance: Any, options: Any = None) -> "ValidationResult":
        ...

    async def validate_async(self, instance: Any, options: Any = None) -> "ValidationResult":
        ...

    def create_descriptor(self) -> "ValidatorDescriptor":
        ...

    def can_validate_instances_of_type(self, type_: type) -> bool:
        ...


def validator_name(validator: Any) -> str:
    return getattr(validator, "name", None) or type(validator).__name__
