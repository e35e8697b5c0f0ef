"""Exception types raised by rulekit."""

from typing import Iterable

from .results import ValidationFailure


class RulekitError(Exception):
    """Base class for rulekit errors."""


class ValidationException(RulekitError):
    """Raised in throw-on-failure mode when a validation pass produced failures."""

    def __init__(self, errors: Iterable[ValidationFailure] | str, message: str | None = None,
                 append_default_message: bool = False):
        if isinstance(errors, str):
            message, errors = errors, []
        self.errors: list[ValidationFailure] = list(errors)

        if message is None:
            message = self.build_error_message(self.errors)
        elif append_default_message:
            message = f"{message} {self.build_error_message(self.errors)}"
        super().__init__(message)

    @staticmethod
    def build_error_message(errors: Iterable[ValidationFailure]) -> str:
        lines = "".join(f"\n -- {e.property_name}: {e.error_message} Severity: {e.severity.value}"
                        for e in errors)
        return f"Validation failed: {lines}"


class AsyncValidatorInvokedSynchronouslyError(RulekitError):
    """Raised when a rule set containing async-only logic is run through validate()."""

    def __init__(self, validator_type: str | None = None, offending: str | None = None):
        self.validator_type = validator_type
        self.offending = offending

        if validator_type:
            message = (
                f"Validator \"{validator_type}\" can't be run synchronously because it contains "
                f"asynchronous rules or conditions"
            )
        else:
            message = "An asynchronous validator or condition was invoked synchronously"
        if offending:
            message += f" (offending component: {offending})"
        message += ". Use validate_async() instead."
        super().__init__(message)
