"""Unit tests for validator entry points, results, descriptors and factories."""

from dataclasses import dataclass

import pytest

from rulekit import (
    AbstractValidator,
    InlineValidator,
    Severity,
    ValidationContext,
    ValidationException,
    ValidationFailure,
    ValidationResult,
    ValidatorConfig,
)
from rulekit.config import LanguageConfig
from rulekit.factory import ServiceValidatorFactory, ValidatorFactory
from rulekit.resources import LanguageManager


@dataclass
class Person:
    name: str | None = None
    age: int | None = None
    tags: list | None = None


@dataclass
class Employee(Person):
    employee_id: str | None = None


class PersonValidator(AbstractValidator):
    instance_type = Person

    def __init__(self, config=None):
        super().__init__(config)
        self.rule_for("name").not_null()
        self.rule_for("age").must(lambda age: age is not None and age >= 0).with_message("Age must be non-negative")


class TestValidateEntryPoint:
    """Test argument handling of validate."""

    def test_none_instance(self):
        with pytest.raises(ValueError, match="Cannot pass None model to validate."):
            PersonValidator().validate(None)

    def test_wrong_instance_type(self):
        with pytest.raises(TypeError, match="can only validate instances of type 'Person'"):
            PersonValidator().validate({"name": "Ann"})

    def test_subclass_instances_are_accepted(self):
        assert PersonValidator().validate(Employee(name="Ann", age=30)).is_valid

    def test_options_with_context(self):
        context = ValidationContext(Person())
        with pytest.raises(TypeError):
            PersonValidator().validate(context, lambda o: o.throw_on_failures())

    def test_existing_context(self):
        result = PersonValidator().validate(ValidationContext(Person(name="Ann", age=-2)))
        assert [f.property_name for f in result.errors] == ["age"]

    def test_invalid_options(self):
        with pytest.raises(TypeError):
            PersonValidator().validate(Person(), "name")

    def test_results_are_independent(self):
        validator = PersonValidator()
        first = validator.validate(Person())
        second = validator.validate(Person(name="Ann", age=1))
        assert len(first.errors) == 2
        assert second.is_valid

    def test_can_validate_instances_of_type(self):
        validator = PersonValidator()
        assert validator.can_validate_instances_of_type(Employee)
        assert not validator.can_validate_instances_of_type(dict)
        assert InlineValidator().can_validate_instances_of_type(dict)


class TestThrowMode:
    """Test throw-on-failure options and hooks."""

    def test_raises_with_failures(self):
        with pytest.raises(ValidationException) as exc_info:
            PersonValidator().validate(Person(age=-1), lambda o: o.throw_on_failures())

        error = exc_info.value
        assert [f.property_name for f in error.errors] == ["name", "age"]
        assert str(error) == (
            "Validation failed: \n"
            " -- name: 'Name' must not be empty. Severity: error\n"
            " -- age: Age must be non-negative Severity: error"
        )

    def test_valid_instance_does_not_raise(self):
        result = PersonValidator().validate(Person(name="Ann", age=1), lambda o: o.throw_on_failures())
        assert result.is_valid

    def test_custom_exception_hook(self):
        class StrictValidator(PersonValidator):
            def raise_validation_exception(self, context, result):
                raise RuntimeError(f"{len(result.errors)} problems")

        with pytest.raises(RuntimeError, match="2 problems"):
            StrictValidator().validate(Person(), lambda o: o.throw_on_failures())

    def test_exception_with_message(self):
        failure = ValidationFailure("name", "Required")
        error = ValidationException([failure], "Person invalid", append_default_message=True)
        assert str(error).startswith("Person invalid Validation failed:")
        assert ValidationException("plain").errors == []


class TestPreValidate:
    """Test the pre-validation hook."""

    def test_returning_false_skips_rules(self):
        class GuardedValidator(PersonValidator):
            def pre_validate(self, context, result):
                if context.instance_to_validate.name == "skip":
                    result.errors.append(ValidationFailure("", "Skipped"))
                    return False
                return True

        result = GuardedValidator().validate(Person(name="skip", age=-1))
        assert [f.error_message for f in result.errors] == ["Skipped"]
        assert len(GuardedValidator().validate(Person(age=-1)).errors) == 2


class TestValidationResult:
    """Test result aggregation and conversion."""

    def test_rule_sets_executed(self):
        validator = PersonValidator()
        validator.rule_set("extra", lambda: validator.rule_for("tags").not_null())
        result = validator.validate(Person(), lambda o: o.include_rule_sets("extra", "default"))
        assert result.rule_sets_executed == ["default", "extra"]

    def test_merge(self):
        first = ValidationResult([ValidationFailure("name", "a")], ["default"])
        second = ValidationResult([ValidationFailure("age", "b")], ["default", "extra"])
        merged = ValidationResult.merge([first, second])
        assert [f.property_name for f in merged.errors] == ["name", "age"]
        assert merged.rule_sets_executed == ["default", "extra"]

    def test_string_forms(self):
        result = PersonValidator().validate(Person(age=-1))
        assert str(result) == "'Name' must not be empty.\nAge must be non-negative"
        assert result.to_string(" | ") == "'Name' must not be empty. | Age must be non-negative"

    def test_to_dictionary(self):
        result = ValidationResult([
            ValidationFailure("name", "a"),
            ValidationFailure("name", "b"),
            ValidationFailure("age", "c"),
        ])
        assert result.to_dictionary() == {"name": ["a", "b"], "age": ["c"]}

    def test_to_dict(self):
        result = PersonValidator().validate(Person(age=-1))
        data = result.to_dict()
        assert data["is_valid"] is False
        assert data["rule_sets_executed"] == ["default"]
        assert data["errors"][1] == {
            "property_name": "age",
            "error_message": "Age must be non-negative",
            "attempted_value": -1,
            "severity": "error",
            "error_code": "PredicateValidator",
        }

    def test_failures_are_immutable(self):
        failure = ValidationFailure("name", "a")
        with pytest.raises(AttributeError):
            failure.error_message = "b"
        assert failure.with_message("b").error_message == "b"
        assert failure.error_message == "a"


class TestMessages:
    """Test message catalogs and per-validator language managers."""

    def test_translation_for_configured_culture(self):
        manager = LanguageManager()
        manager.add_translation("fr", "NotNullValidator", "'{PropertyName}' ne doit pas être vide.")
        config = ValidatorConfig(language=LanguageConfig(culture="fr"))

        validator = InlineValidator(Person, config=config, language_manager=manager)
        validator.rule_for("name").not_null()
        assert validator.validate(Person()).errors[0].error_message == "'Name' ne doit pas être vide."

    def test_regional_culture_falls_back_to_language(self):
        manager = LanguageManager()
        manager.add_translation("fr", "NotNullValidator", "vide")
        config = ValidatorConfig(language=LanguageConfig(culture="fr-CA"))

        validator = InlineValidator(Person, config=config, language_manager=manager)
        validator.rule_for("name").not_null()
        assert validator.validate(Person()).errors[0].error_message == "vide"

    def test_unknown_culture_uses_english(self):
        config = ValidatorConfig(language=LanguageConfig(culture="de"))
        validator = InlineValidator(Person, config=config, language_manager=LanguageManager())
        validator.rule_for("name").not_null()
        assert validator.validate(Person()).errors[0].error_message == "'Name' must not be empty."

    def test_error_code_selects_template(self):
        manager = LanguageManager()
        manager.add_translation("en", "NAME_REQUIRED", "Please tell us your {PropertyName}.")
        validator = InlineValidator(Person, language_manager=manager)
        validator.rule_for("name").not_null().with_error_code("NAME_REQUIRED")
        assert validator.validate(Person()).errors[0].error_message == "Please tell us your Name."

    def test_language_source(self):
        class Catalog:
            def get_string(self, key, culture=None):
                return "custom" if key == "NotNullValidator" else None

        manager = LanguageManager()
        manager.add_source(Catalog())
        validator = InlineValidator(Person, language_manager=manager)
        validator.rule_for("name").not_null()
        assert validator.validate(Person()).errors[0].error_message == "custom"

    def test_invalid_language_source(self):
        with pytest.raises(TypeError):
            LanguageManager().add_source(object())

    def test_configured_severity(self):
        validator = InlineValidator(Person, config=ValidatorConfig(severity=Severity.WARNING))
        validator.rule_for("name").not_null()
        assert validator.validate(Person()).errors[0].severity == Severity.WARNING


class TestDescriptor:
    """Test validator metadata."""

    @pytest.fixture
    def descriptor(self):
        validator = PersonValidator()
        validator.rule_for("name").max_length(10).with_name("Full name")
        validator.rule_set("extra", lambda: validator.rule_for_each("tags").not_empty())
        return validator.create_descriptor()

    def test_members_with_validators(self, descriptor):
        members = descriptor.get_members_with_validators()
        assert list(members) == ["name", "age", "tags"]
        assert [type(v).__name__ for v in members["name"]] == ["NotNullValidator", "MaximumLengthValidator"]

    def test_validators_for_member(self, descriptor):
        assert [type(v).__name__ for v in descriptor.get_validators_for_member("tags")] == ["NotEmptyValidator"]
        assert descriptor.get_validators_for_member("missing") == []

    def test_name(self, descriptor):
        assert descriptor.get_name("age") == "Age"
        assert descriptor.get_name("missing") is None

    def test_rules_by_rule_set(self, descriptor):
        rule_sets = descriptor.get_rules_by_rule_set()
        assert len(rule_sets["default"]) == 3
        assert [rule.property_name for rule in rule_sets["extra"]] == ["tags"]

    def test_to_dict(self, descriptor):
        members = descriptor.to_dict()["members"]
        assert members["name"]["validators"] == ["NotNullValidator", "MaximumLengthValidator"]
        assert members["tags"] == {
            "display_name": "Tags",
            "validators": ["NotEmptyValidator"],
            "rule_sets": ["extra"],
            "collection": True,
        }

    def test_included_rules_are_flattened(self):
        validator = InlineValidator(Person)
        validator.include(PersonValidator())
        assert list(validator.create_descriptor().get_members_with_validators()) == ["name", "age"]


class TestValidatorFactory:
    """Test looking up validators by type."""

    def test_shared_instance(self):
        factory = ServiceValidatorFactory()
        validator = PersonValidator()
        factory.register(Person, validator)
        assert factory.get_validator(Person) is validator
        assert isinstance(factory, ValidatorFactory)

    def test_class_registration_creates_new_validators(self):
        factory = ServiceValidatorFactory()
        factory.register(Person, PersonValidator)
        first, second = factory.get_validator(Person), factory.get_validator(Person)
        assert isinstance(first, PersonValidator)
        assert first is not second

    def test_lookup_walks_base_classes(self):
        factory = ServiceValidatorFactory()
        factory.register(Person, PersonValidator)
        assert isinstance(factory.get_validator_for(Employee()), PersonValidator)
        assert Employee in factory
        assert dict not in factory
        assert factory.get_validator(dict) is None

    def test_closest_registration_wins(self):
        factory = ServiceValidatorFactory()
        person_validator, employee_validator = PersonValidator(), InlineValidator(Employee)
        factory.register(Person, person_validator)
        factory.register(Employee, employee_validator)
        assert factory.get_validator(Employee) is employee_validator

    def test_invalid_registrations(self):
        factory = ServiceValidatorFactory()
        with pytest.raises(TypeError):
            factory.register("Person", PersonValidator)
        with pytest.raises(ValueError):
            factory.register(Person, None)
