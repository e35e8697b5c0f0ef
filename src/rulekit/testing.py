"""Assertion helpers for testing validators.

    result = validator.test_validate(Person(name=None))
    result.should_have_validation_error_for("name").with_error_code("NotNullValidator")
    result.should_not_have_validation_error_for("age")

Failed assertions raise ``ValidationTestException``, a subclass of
``AssertionError``, so pytest reports them as ordinary test failures.
"""

from typing import Any, Callable, Iterable

from .enums import Severity
from .internal.selectors import member_names_from
from .results import ValidationFailure, ValidationResult


class ValidationTestException(AssertionError):
    """Raised when a validation assertion does not hold."""

    def __init__(self, message: str, errors: Iterable[ValidationFailure] | None = None):
        self.errors = list(errors or [])
        super().__init__(message)


def _describe(failures: Iterable[ValidationFailure]) -> str:
    lines = [f"  - {f.property_name or '<model>'}: {f.error_message} [{f.error_code}]" for f in failures]
    return "\n".join(lines) if lines else "  (none)"


def _property_path(member: str | Callable) -> str:
    if isinstance(member, str):
        return member
    return member_names_from([member])[0]


class TestValidationErrors:
    """Failures matched by one assertion, with chained refinements.

    Each ``with_*`` call keeps only the failures matching it and raises when
    none remain.
    """

    __test__ = False

    def __init__(self, failures: list[ValidationFailure], description: str,
                 all_failures: list[ValidationFailure] | None = None):
        self.failures = failures
        self._description = description
        self._all_failures = all_failures if all_failures is not None else failures

    def _filter(self, predicate: Callable[[ValidationFailure], bool], expectation: str) -> "TestValidationErrors":
        matching = [f for f in self.failures if predicate(f)]
        if not matching:
            raise ValidationTestException(
                f"Expected {self._description} {expectation}. Actual failures:\n{_describe(self.failures)}",
                self.failures,
            )
        return TestValidationErrors(matching, self._description, self._all_failures)

    def with_error_message(self, message: str) -> "TestValidationErrors":
        return self._filter(lambda f: f.error_message == message, f"with message '{message}'")

    def with_error_code(self, error_code: str) -> "TestValidationErrors":
        return self._filter(lambda f: f.error_code == error_code, f"with error code '{error_code}'")

    def with_severity(self, severity: Severity) -> "TestValidationErrors":
        return self._filter(lambda f: f.severity == severity, f"with severity '{Severity(severity).value}'")

    def with_custom_state(self, state: Any) -> "TestValidationErrors":
        return self._filter(lambda f: f.custom_state == state, f"with custom state {state!r}")

    def with_attempted_value(self, value: Any) -> "TestValidationErrors":
        return self._filter(lambda f: f.attempted_value == value, f"with attempted value {value!r}")

    def only(self) -> "TestValidationErrors":
        """Fail when the result contains failures other than the matched ones."""
        unexpected = [f for f in self._all_failures if not any(f is m for m in self.failures)]
        if unexpected:
            raise ValidationTestException(
                f"Expected only {self._description}. Unexpected failures:\n{_describe(unexpected)}",
                unexpected,
            )
        return self

    def __iter__(self):
        return iter(self.failures)

    def __len__(self) -> int:
        return len(self.failures)


class TestValidationResult(ValidationResult):
    """A ``ValidationResult`` with assertion methods."""

    __test__ = False

    @classmethod
    def from_result(cls, result: ValidationResult) -> "TestValidationResult":
        return cls(errors=list(result.errors), rule_sets_executed=list(result.rule_sets_executed))

    def should_have_validation_error_for(self, member: str | Callable) -> TestValidationErrors:
        path = _property_path(member)
        matching = [f for f in self.errors if f.property_name == path]
        if not matching:
            raise ValidationTestException(
                f"Expected a validation error for property '{path}'. Actual failures:\n{_describe(self.errors)}",
                self.errors,
            )
        return TestValidationErrors(matching, f"a validation error for property '{path}'", list(self.errors))

    def should_not_have_validation_error_for(self, member: str | Callable) -> None:
        path = _property_path(member)
        matching = [f for f in self.errors if f.property_name == path]
        if matching:
            raise ValidationTestException(
                f"Expected no validation errors for property '{path}'. Found:\n{_describe(matching)}",
                matching,
            )

    def should_have_validation_errors(self) -> TestValidationErrors:
        if self.is_valid:
            raise ValidationTestException("Expected validation errors, but the result was valid")
        return TestValidationErrors(list(self.errors), "validation errors")

    def should_not_have_any_validation_errors(self) -> None:
        if not self.is_valid:
            raise ValidationTestException(
                f"Expected no validation errors. Found:\n{_describe(self.errors)}",
                self.errors,
            )


def test_validate(validator: Any, instance: Any, options: Any = None) -> TestValidationResult:
    """Validate synchronously and wrap the result for assertions."""
    return TestValidationResult.from_result(validator.validate(instance, options))


async def test_validate_async(validator: Any, instance: Any, options: Any = None) -> TestValidationResult:
    return TestValidationResult.from_result(await validator.validate_async(instance, options))


test_validate.__test__ = False
test_validate_async.__test__ = False
