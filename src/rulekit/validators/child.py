"""Checks that hand a property value to another whole-object validator."""

import logging
from typing import TYPE_CHECKING, Any, Callable

from ..internal.selectors import RulesetValidatorSelector, split_rule_set_names
from .base import ObjectValidator

if TYPE_CHECKING:
    from ..context import ValidationContext

logger = logging.getLogger(__name__)


class ChildValidatorAdaptor:
    """Validates a nested object and merges its failures under the current path.

    A ``None`` value, an instance the caller marked as already validated, and
    an instance the same validator is already validating further up the
    branch are all skipped without producing failures.
    """

    name = "ChildValidatorAdaptor"

    def __init__(self, validator: ObjectValidator | None = None,
                 validator_factory: Callable[[Any, Any], ObjectValidator | None] | None = None,
                 rule_sets: list[str] | str | None = None):
        if validator is None and validator_factory is None:
            raise ValueError("Either a validator or a validator factory must be specified")
        self.validator = validator
        self.validator_factory = validator_factory
        self.rule_sets = split_rule_set_names(rule_sets) if rule_sets else []

    @property
    def validator_type(self) -> type | None:
        return type(self.validator) if self.validator is not None else None

    def get_validator(self, context: "ValidationContext", value: Any) -> ObjectValidator | None:
        if self.validator is not None:
            return self.validator
        return self.validator_factory(context.instance_to_validate, value)

    def resolve(self, context: "ValidationContext", value: Any) -> tuple[ObjectValidator | None, list[str]]:
        """The validator to use for ``value`` and the rule sets it should run."""
        return self.get_validator(context, value), self.rule_sets

    def _create_child_context(self, context: "ValidationContext", value: Any, validator: ObjectValidator,
                              rule_sets: list[str]) -> "ValidationContext | None":
        if value is None:
            logger.debug(f"Skipping nested validation of '{context.property_path}': value is None")
            return None
        if id(value) in context.validated_instances:
            logger.debug(f"Skipping nested validation of '{context.property_path}': already validated")
            return None
        if context.is_validating(value, validator):
            logger.debug(f"Skipping nested validation of '{context.property_path}': cycle detected")
            return None

        selector = RulesetValidatorSelector(rule_sets) if rule_sets else None
        return context.clone_for_child_validator(value, preserve_parent_context=True, selector=selector)

    def _resolve(self, context: "ValidationContext", value: Any):
        if value is None:
            return None, None
        validator, rule_sets = self.resolve(context, value)
        if validator is None:
            return None, None
        return validator, self._create_child_context(context, value, validator, rule_sets)

    def is_valid(self, context: "ValidationContext", value: Any) -> bool:
        validator, child_context = self._resolve(context, value)
        if child_context is None:
            return True

        result = validator.validate(child_context)
        context.failures.extend(result.errors)
        return True

    async def is_valid_async(self, context: "ValidationContext", value: Any) -> bool:
        validator, child_context = self._resolve(context, value)
        if child_context is None:
            return True

        result = await validator.validate_async(child_context)
        context.failures.extend(result.errors)
        return True


class ChildRulesAdaptor(ChildValidatorAdaptor):
    """Runs rules declared inline with ``child_rules`` against the property value.

    The inline rules belong to the rule sets of the rule that declares them,
    so a pass selecting that rule also runs them.
    """

    name = "ChildRulesAdaptor"

    def __init__(self, validator: ObjectValidator, owner: Any):
        super().__init__(validator)
        self.owner = owner

    def resolve(self, context: "ValidationContext", value: Any) -> tuple[ObjectValidator | None, list[str]]:
        rule_sets = list(self.owner.rule_sets)
        for rule in self.validator.rules:
            if rule.rule_sets != rule_sets:
                rule.rule_sets = list(rule_sets)
        return self.validator, []

class PolymorphicValidator(ChildValidatorAdaptor):
    """Chooses the nested validator by the runtime type of the value.

    Types are tried in registration order; values of an unregistered type are
    not validated. Rule sets given to ``add`` apply to whichever validator the
    registration produces, including validators built by a factory.
    """

    name = "PolymorphicValidator"

    def __init__(self):
        self._derived: list[tuple[type, ObjectValidator | Callable, list[str]]] = []
        self.validator = None
        self.validator_factory = self._select
        self.rule_sets = []

    def add(self, subclass: type, validator: ObjectValidator | Callable[[Any, Any], ObjectValidator],
            *rule_sets: str) -> "PolymorphicValidator":
        if validator is None:
            raise ValueError("Cannot pass None as the validator for a subclass")
        self._derived.append((subclass, validator, split_rule_set_names(rule_sets)))
        return self

    def _registration_for(self, instance: Any, value: Any) -> tuple[ObjectValidator | None, list[str]]:
        for subclass, validator, rule_sets in self._derived:
            if isinstance(value, subclass):
                if not (isinstance(validator, ObjectValidator) and not isinstance(validator, type)):
                    validator = validator(instance, value)
                return validator, rule_sets
        return None, []

    def resolve(self, context: "ValidationContext", value: Any) -> tuple[ObjectValidator | None, list[str]]:
        return self._registration_for(context.instance_to_validate, value)

    def _select(self, instance: Any, value: Any) -> ObjectValidator | None:
        return self._registration_for(instance, value)[0]
