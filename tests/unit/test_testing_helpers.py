"""Unit tests for the validator assertion helpers."""

from dataclasses import dataclass

import pytest

from rulekit.enums import Severity
from rulekit.testing import TestValidationResult, ValidationTestException, test_validate_async
from rulekit.validator import InlineValidator


@dataclass
class Person:
    name: str | None = None
    age: int | None = None


def surname(person):
    return person.name


@pytest.fixture
def validator():
    validator = InlineValidator(Person)
    validator.rule_for("name").not_null().with_error_code("NAME").with_state(lambda p: "state")
    validator.rule_for("age").greater_than(0).with_severity(Severity.WARNING)
    return validator


class TestShouldHaveValidationErrorFor:
    """Test asserting failures for a property."""

    def test_matching_failure(self, validator):
        result = validator.test_validate(Person(age=0))
        errors = result.should_have_validation_error_for("name")
        assert len(errors) == 1
        assert isinstance(result, TestValidationResult)

    def test_missing_failure(self, validator):
        result = validator.test_validate(Person(name="Ann", age=3))
        with pytest.raises(ValidationTestException, match="Expected a validation error for property 'name'"):
            result.should_have_validation_error_for("name")

    def test_named_function_member(self):
        validator = InlineValidator(Person)
        validator.rule_for(surname).not_null()
        validator.test_validate(Person()).should_have_validation_error_for(surname)

    def test_refinements(self, validator):
        result = validator.test_validate(Person(age=0))
        (result.should_have_validation_error_for("name")
         .with_error_code("NAME")
         .with_error_message("'Name' must not be empty.")
         .with_custom_state("state")
         .with_attempted_value(None)
         .with_severity(Severity.ERROR))
        result.should_have_validation_error_for("age").with_severity(Severity.WARNING).with_attempted_value(0)

    def test_failed_refinement(self, validator):
        result = validator.test_validate(Person(age=0))
        with pytest.raises(ValidationTestException, match="with error code 'OTHER'"):
            result.should_have_validation_error_for("name").with_error_code("OTHER")

    def test_assertions_are_assertion_errors(self, validator):
        result = validator.test_validate(Person(name="Ann", age=3))
        with pytest.raises(AssertionError):
            result.should_have_validation_errors()

    def test_only(self, validator):
        result = validator.test_validate(Person(age=5))
        result.should_have_validation_error_for("name").only()

        both = validator.test_validate(Person(age=0))
        with pytest.raises(ValidationTestException, match="Unexpected failures"):
            both.should_have_validation_error_for("name").only()


class TestShouldNotHaveErrors:
    """Test asserting the absence of failures."""

    def test_property_without_failures(self, validator):
        validator.test_validate(Person(age=3)).should_not_have_validation_error_for("age")

    def test_property_with_failures(self, validator):
        with pytest.raises(ValidationTestException) as exc_info:
            validator.test_validate(Person(age=0)).should_not_have_validation_error_for("age")
        assert [f.property_name for f in exc_info.value.errors] == ["age"]

    def test_no_failures(self, validator):
        validator.test_validate(Person(name="Ann", age=3)).should_not_have_any_validation_errors()
        with pytest.raises(ValidationTestException):
            validator.test_validate(Person(age=3)).should_not_have_any_validation_errors()

    def test_any_failures(self, validator):
        errors = validator.test_validate(Person(age=0)).should_have_validation_errors()
        assert [f.property_name for f in errors] == ["name", "age"]


class TestAsyncHelpers:
    """Test the async variant."""

    async def test_validate_async(self, validator):
        result = await test_validate_async(validator, Person(age=0))
        result.should_have_validation_error_for("age")

    async def test_validator_method(self, validator):
        result = await validator.test_validate_async(Person(name="Ann", age=1))
        result.should_not_have_any_validation_errors()
