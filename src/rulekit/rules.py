"""Rules: a member of the validated object plus its ordered list of checks.

Execution is written once, as coroutines. The asynchronous entry points
await them; the synchronous ones drive them with ``run_synchronously``,
which is safe because on the synchronous path nothing awaited here ever
suspends.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from .enums import ApplyConditionTo, CascadeMode, Severity
from .exceptions import AsyncValidatorInvokedSynchronouslyError
from .internal.accessors import PropertyAccessor
from .internal.async_helpers import run_synchronously
from .internal.extensions import split_pascal_case
from .internal.message_formatter import MessageFormatter
from .resources import DEFAULT_CULTURE, global_language_manager
from .results import ValidationFailure
from .validators.base import validator_name

if TYPE_CHECKING:
    from .context import ValidationContext

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "The specified condition was not met for '{PropertyName}'."
COLLECTION_INDEX = "CollectionIndex"

Condition = Callable[["ValidationContext"], bool]
AsyncCondition = Callable[["ValidationContext"], Awaitable[bool]]


class RuleComponent:
    """One check inside a rule, with the options configured for it.

    A component wraps a synchronous check, an asynchronous one, or both (the
    built-in checks used by ``must_async`` style methods only have the
    asynchronous form). Conditions take the validation context and are
    combined with AND as they are added.
    """

    def __init__(self, validator: Any = None, async_validator: Any = None):
        if validator is None and async_validator is None:
            raise ValueError("A rule component needs a synchronous or an asynchronous validator")
        self._validator = validator
        self._async_validator = async_validator
        self._condition: Condition | None = None
        self._async_condition: AsyncCondition | None = None
        self._error_message: str | None = None
        self._message_factory: Callable[["ValidationContext", Any], str] | None = None
        self.error_code: str | None = None
        self.custom_state_provider: Callable[["ValidationContext", Any], Any] | None = None
        self.severity_provider: Callable[["ValidationContext", Any], Severity] | None = None
        self.on_failure: Callable[[Any, "ValidationContext", Any, str], None] | None = None

    @property
    def validator(self) -> Any:
        return self._validator if self._validator is not None else self._async_validator

    @property
    def name(self) -> str:
        return validator_name(self.validator)

    @property
    def supports_synchronous_validation(self) -> bool:
        return self._validator is not None

    @property
    def supports_asynchronous_validation(self) -> bool:
        return self._async_validator is not None

    @property
    def has_condition(self) -> bool:
        return self._condition is not None

    @property
    def has_async_condition(self) -> bool:
        return self._async_condition is not None

    @property
    def requires_async(self) -> bool:
        """True when this component cannot run on the synchronous path."""
        return not self.supports_synchronous_validation or self.has_async_condition

    def should_validate_asynchronously(self, context: "ValidationContext") -> bool:
        if context.is_async:
            return self.supports_asynchronous_validation
        if not self.supports_synchronous_validation:
            raise AsyncValidatorInvokedSynchronouslyError(offending=self.name)
        return False

    def apply_condition(self, condition: Condition) -> None:
        previous = self._condition
        if previous is None:
            self._condition = condition
        else:
            self._condition = lambda ctx: condition(ctx) and previous(ctx)

    def apply_async_condition(self, condition: AsyncCondition) -> None:
        previous = self._async_condition
        if previous is None:
            self._async_condition = condition
            return

        async def combined(ctx):
            return await condition(ctx) and await previous(ctx)

        self._async_condition = combined

    def invoke_condition(self, context: "ValidationContext") -> bool:
        return self._condition is None or bool(self._condition(context))

    async def invoke_async_condition(self, context: "ValidationContext") -> bool:
        if self._async_condition is None:
            return True
        if not context.is_async:
            raise AsyncValidatorInvokedSynchronouslyError(offending=f"async condition on {self.name}")
        return bool(await self._async_condition(context))

    def validate(self, context: "ValidationContext", value: Any) -> bool:
        return self._validator.is_valid(context, value)

    async def validate_async(self, context: "ValidationContext", value: Any) -> bool:
        return await self._async_validator.is_valid_async(context, value)

    def set_error_message(self, message: str | Callable[["ValidationContext", Any], str]) -> None:
        if message is None:
            raise ValueError("Cannot pass None as an error message")
        if callable(message):
            self._message_factory = message
            self._error_message = None
        else:
            self._error_message = message
            self._message_factory = None

    @property
    def has_custom_message(self) -> bool:
        return self._error_message is not None or self._message_factory is not None

    def get_unformatted_error_message(self, context: "ValidationContext | None" = None) -> str:
        """The template before placeholders are substituted."""
        if self._error_message is not None:
            return self._error_message

        manager = global_language_manager
        culture = None
        if context is not None:
            if context.language_manager is not None:
                manager = context.language_manager
            language = context.config.language
            culture = language.culture if language.enabled else DEFAULT_CULTURE

        template = None
        if self.error_code:
            template = manager.get_string(self.error_code, culture)
        if template is None:
            template = manager.get_string(self.name, culture)
        if template is None:
            template = getattr(self.validator, "default_message_template", None)
        return template or FALLBACK_MESSAGE

    def get_error_message(self, context: "ValidationContext", value: Any) -> str:
        if self._message_factory is not None:
            raw = self._message_factory(context, value)
        else:
            raw = self.get_unformatted_error_message(context)
        return context.message_formatter.build_message(raw)

    def __repr__(self) -> str:
        return f"RuleComponent({self.name})"


class PropertyRule:
    """Checks attached to one member of the validated object.

    ``accessor`` is None for model-level rules, which validate the instance
    itself and report failures under an empty property name.
    """

    is_include_rule = False

    def __init__(self, accessor: PropertyAccessor | None, property_name: str | None,
                 cascade_mode_thunk: Callable[[], CascadeMode] = lambda: CascadeMode.CONTINUE,
                 type_to_validate: type | None = None):
        self.accessor = accessor
        self.property_name = property_name
        self.type_to_validate = type_to_validate
        self.components: list[RuleComponent] = []
        self.dependent_rules: list[PropertyRule] = []
        self.rule_sets: list[str] = []
        self._cascade_mode_thunk = cascade_mode_thunk
        self._display_name: str | None = None
        self._display_name_factory: Callable[["ValidationContext"], str] | None = None
        self._condition: Condition | None = None
        self._async_condition: AsyncCondition | None = None
        self.transformer: Callable[[Any, Any], Any] | None = None
        self.on_any_failure: Callable[[Any, list[ValidationFailure]], None] | None = None

    @property
    def member_name(self) -> str | None:
        return self.accessor.member_name if self.accessor is not None else None

    @property
    def cascade_mode(self) -> CascadeMode:
        return self._cascade_mode_thunk()

    @cascade_mode.setter
    def cascade_mode(self, value: CascadeMode) -> None:
        self._cascade_mode_thunk = lambda: value

    @property
    def current(self) -> RuleComponent | None:
        return self.components[-1] if self.components else None

    @property
    def has_condition(self) -> bool:
        return self._condition is not None

    @property
    def has_async_condition(self) -> bool:
        return self._async_condition is not None

    def add_validator(self, validator: Any) -> RuleComponent:
        component = RuleComponent(validator=validator)
        self.components.append(component)
        return component

    def add_async_validator(self, async_validator: Any, fallback: Any = None) -> RuleComponent:
        component = RuleComponent(validator=fallback, async_validator=async_validator)
        self.components.append(component)
        return component

    def add_component(self, component: RuleComponent) -> RuleComponent:
        self.components.append(component)
        return component

    def clear_validators(self) -> None:
        self.components.clear()

    def set_display_name(self, name: str | Callable[["ValidationContext"], str]) -> None:
        if callable(name):
            self._display_name_factory = name
            self._display_name = None
        else:
            self._display_name = name
            self._display_name_factory = None

    def get_display_name(self, context: "ValidationContext | None" = None) -> str | None:
        if self._display_name_factory is not None and context is not None:
            return self._display_name_factory(context)
        if self._display_name is not None:
            return self._display_name
        return split_pascal_case(self.property_name)

    def apply_condition(self, condition: Condition,
                        apply_to: ApplyConditionTo = ApplyConditionTo.ALL_VALIDATORS) -> None:
        if apply_to == ApplyConditionTo.ALL_VALIDATORS:
            for component in self.components:
                component.apply_condition(condition)
            for rule in self.dependent_rules:
                rule.apply_shared_condition(condition)
        elif self.current is not None:
            self.current.apply_condition(condition)

    def apply_async_condition(self, condition: AsyncCondition,
                              apply_to: ApplyConditionTo = ApplyConditionTo.ALL_VALIDATORS) -> None:
        if apply_to == ApplyConditionTo.ALL_VALIDATORS:
            for component in self.components:
                component.apply_async_condition(condition)
            for rule in self.dependent_rules:
                rule.apply_shared_async_condition(condition)
        elif self.current is not None:
            self.current.apply_async_condition(condition)

    def apply_shared_condition(self, condition: Condition) -> None:
        """Condition guarding the whole rule, e.g. from a ``when`` block."""
        previous = self._condition
        if previous is None:
            self._condition = condition
        else:
            self._condition = lambda ctx: condition(ctx) and previous(ctx)

    def apply_shared_async_condition(self, condition: AsyncCondition) -> None:
        previous = self._async_condition
        if previous is None:
            self._async_condition = condition
            return

        async def combined(ctx):
            return await condition(ctx) and await previous(ctx)

        self._async_condition = combined

    def find_async_only(self) -> str | None:
        """Name of the first part of this rule that can only run asynchronously."""
        if self._async_condition is not None:
            return f"async condition on rule for '{self.property_name or '<model>'}'"
        for component in self.components:
            if component.requires_async:
                return component.name
        for rule in self.dependent_rules:
            offending = rule.find_async_only()
            if offending:
                return offending
        return None

    @property
    def requires_async(self) -> bool:
        return self.find_async_only() is not None

    def get_property_value(self, instance: Any) -> Any:
        """The member value, passed through ``transformer`` when one is set."""
        value = self.get_raw_value(instance)
        if self.transformer is not None:
            value = self.transformer(instance, value)
        return value

    def get_raw_value(self, instance: Any) -> Any:
        if self.accessor is None:
            return instance
        return self.accessor.get(instance)

    def property_path(self, context: "ValidationContext") -> str:
        return context.property_chain.build_property_name(self.property_name)

    def validate(self, context: "ValidationContext") -> list[ValidationFailure]:
        """Run the rule synchronously and return the failures it produced."""
        start = len(context.failures)
        run_synchronously(self.execute(context))
        return context.failures[start:]

    async def validate_async(self, context: "ValidationContext") -> list[ValidationFailure]:
        start = len(context.failures)
        await self.execute(context)
        return context.failures[start:]

    async def _rule_condition_passes(self, context: "ValidationContext") -> bool:
        if self._condition is not None and not self._condition(context):
            logger.debug(f"Rule for '{self.property_path(context)}' skipped by condition")
            return False
        if self._async_condition is not None:
            if not context.is_async:
                raise AsyncValidatorInvokedSynchronouslyError(
                    offending=f"async condition on rule for '{self.property_name or '<model>'}'"
                )
            if not await self._async_condition(context):
                logger.debug(f"Rule for '{self.property_path(context)}' skipped by async condition")
                return False
        return True

    async def execute(self, context: "ValidationContext") -> None:
        """Run the rule, appending failures to ``context.failures``."""
        if not await self._rule_condition_passes(context):
            return

        value = self.get_property_value(context.instance_to_validate)
        context.raw_property_name = self.property_name
        context.property_path = self.property_path(context)
        context.display_name = self.get_display_name(context)
        context.property_value = value
        context.collection_index = None

        before = len(context.failures)
        await self._run_components(context, value)
        if len(context.failures) == before:
            await self._run_dependent_rules(context)
        else:
            self._notify_failures(context, before)

    async def _run_components(self, context: "ValidationContext", value: Any) -> None:
        before = len(context.failures)
        stops = self.cascade_mode.stops

        for component in self.components:
            context.message_formatter.reset()

            if not component.invoke_condition(context):
                continue
            if component.has_async_condition and not await component.invoke_async_condition(context):
                continue

            if component.should_validate_asynchronously(context):
                valid = await component.validate_async(context, value)
            else:
                valid = component.validate(context, value)

            if not valid:
                failure = self.create_failure(context, value, component)
                context.failures.append(failure)
                if component.on_failure is not None:
                    component.on_failure(context.instance_to_validate, context, value, failure.error_message)

            if stops and len(context.failures) > before:
                break

    def _notify_failures(self, context: "ValidationContext", start: int) -> None:
        if self.on_any_failure is not None:
            self.on_any_failure(context.instance_to_validate, context.failures[start:])

    async def _run_dependent_rules(self, context: "ValidationContext") -> None:
        for rule in self.dependent_rules:
            if context.selector.is_satisfied_by(rule, rule.property_path(context), context):
                await rule.execute(context)

    def prepare_message_formatter(self, context: "ValidationContext", value: Any) -> MessageFormatter:
        formatter = context.message_formatter
        formatter.append_property_name(context.display_name)
        formatter.append_property_value(value)
        if context.collection_index is not None and COLLECTION_INDEX not in formatter.placeholder_values:
            formatter.append_argument(COLLECTION_INDEX, context.collection_index)
        return formatter

    def create_failure(self, context: "ValidationContext", value: Any,
                       component: RuleComponent) -> ValidationFailure:
        formatter = self.prepare_message_formatter(context, value)
        message = component.get_error_message(context, value)

        if component.severity_provider is not None:
            severity = component.severity_provider(context, value)
        else:
            severity = context.config.severity
        custom_state = None
        if component.custom_state_provider is not None:
            custom_state = component.custom_state_provider(context, value)

        return ValidationFailure(
            property_name=context.property_path,
            error_message=message,
            attempted_value=value,
            custom_state=custom_state,
            severity=severity,
            error_code=component.error_code or component.name,
            formatted_message_placeholder_values=dict(formatter.placeholder_values),
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.property_name or '<model>'}, {len(self.components)} checks)"


class CollectionPropertyRule(PropertyRule):
    """Applies its checks to every element of a collection member.

    Elements are visited in order; for each element every check runs (subject
    to the rule's cascade mode) before moving on to the next element. A
    ``None`` collection produces no failures. The filter sees each element as
    stored; ``transformer`` then maps it to the value the checks receive.
    """

    def __init__(self, accessor: PropertyAccessor | None, property_name: str | None,
                 cascade_mode_thunk: Callable[[], CascadeMode] = lambda: CascadeMode.CONTINUE,
                 type_to_validate: type | None = None):
        super().__init__(accessor, property_name, cascade_mode_thunk, type_to_validate)
        self.filter: Callable[[Any], bool] | None = None
        self.index_builder: Callable[[Any, list, Any, int], str] | None = None

    async def execute(self, context: "ValidationContext") -> None:
        if not await self._rule_condition_passes(context):
            return
        if not self.property_name:
            raise ValueError(
                "Could not automatically determine the property name of a collection rule. "
                "Use override_property_name() to give it one."
            )

        collection = self.get_raw_value(context.instance_to_validate)
        before = len(context.failures)

        if collection is not None:
            if isinstance(collection, (str, bytes)):
                raise TypeError(f"Property '{self.property_name}' is a string, not a collection")
            items = list(collection)
            display_name = self.get_display_name(context)

            for index, element in enumerate(items):
                if self.filter is not None and not self.filter(element):
                    continue

                element_context = context.clone_for_child_collection_validator(context.instance_to_validate)
                element_context.property_chain.add(self.property_name)
                if self.index_builder is not None:
                    indexer = self.index_builder(context.instance_to_validate, items, element, index)
                    element_context.property_chain.add_indexer(indexer, surround_with_brackets=False)
                else:
                    element_context.property_chain.add_indexer(index)

                element_context.raw_property_name = None
                element_context.property_path = str(element_context.property_chain)
                element_context.display_name = display_name
                value = element
                if self.transformer is not None:
                    value = self.transformer(context.instance_to_validate, element)

                element_context.property_value = value
                element_context.collection_index = index

                await self._run_components(element_context, value)

        if len(context.failures) == before:
            await self._run_dependent_rules(context)
        else:
            self._notify_failures(context, before)


class IncludeRule(PropertyRule):
    """Runs another validator's rules against the same instance and context."""

    is_include_rule = True

    def __init__(self, validator: Any = None, validator_factory: Callable[[Any], Any] | None = None,
                 cascade_mode_thunk: Callable[[], CascadeMode] = lambda: CascadeMode.CONTINUE):
        if validator is None and validator_factory is None:
            raise ValueError("Either a validator or a validator factory must be included")
        super().__init__(None, None, cascade_mode_thunk)
        self.validator = validator
        self.validator_factory = validator_factory

    def get_validator(self, instance: Any) -> Any:
        if self.validator is not None:
            return self.validator
        return self.validator_factory(instance)

    def find_async_only(self) -> str | None:
        offending = super().find_async_only()
        if offending or self.validator is None:
            return offending
        for rule in self.validator.rules:
            offending = rule.find_async_only()
            if offending:
                return offending
        return None

    async def execute(self, context: "ValidationContext") -> None:
        if not await self._rule_condition_passes(context):
            return

        validator = self.get_validator(context.instance_to_validate)
        if validator is None:
            return
        logger.debug(f"Including rules of {type(validator).__name__}")

        for rule in validator.rules:
            if context.is_async:
                await asyncio.sleep(0)
            if context.selector.is_satisfied_by(rule, rule.property_path(context), context):
                await rule.execute(context)
