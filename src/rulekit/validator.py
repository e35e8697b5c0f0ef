"""The root aggregate: a declared list of rules for one type of object."""

import asyncio
import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator

from . import testing
from .builder import RuleBuilder
from .config import ValidatorConfig, get_default_config
from .context import RULE_SETS_EXECUTED_KEY, ValidationContext
from .descriptor import ValidatorDescriptor
from .enums import CascadeMode
from .exceptions import AsyncValidatorInvokedSynchronouslyError, ValidationException
from .internal.accessors import accessor_cache
from .internal.async_helpers import run_synchronously
from .internal.extensions import instance_predicate, value_transformer
from .internal.selectors import split_rule_set_names
from .options import ValidationStrategy, as_strategy
from .resources import LanguageManager
from .results import ValidationResult
from .rules import CollectionPropertyRule, IncludeRule, PropertyRule

logger = logging.getLogger(__name__)


class AbstractValidator:
    """Base class for validators.

    Rules are declared in ``__init__`` of a subclass::

        class PersonValidator(AbstractValidator):
            instance_type = Person

            def __init__(self):
                super().__init__()
                self.rule_for("name").not_null()
                self.rule_for("age").must(lambda age: age >= 0).with_message("Age must be non-negative")

    Rules run in declaration order. ``instance_type``, when set, restricts
    which objects the validator accepts.
    """

    instance_type: type | None = None

    def __init__(self, config: ValidatorConfig | None = None, language_manager: LanguageManager | None = None):
        self.config = config if config is not None else get_default_config()
        self.language_manager = language_manager
        self.rules: list[PropertyRule] = []
        self._class_level_cascade_mode: CascadeMode | None = None
        self._rule_level_cascade_mode: CascadeMode | None = None
        self._captures: list[list[PropertyRule]] = []

    # Cascade modes

    @property
    def class_level_cascade_mode(self) -> CascadeMode:
        """STOP halts the validator after the first rule that produces failures."""
        if self._class_level_cascade_mode is not None:
            return self._class_level_cascade_mode
        return self.config.default_class_level_cascade_mode

    @class_level_cascade_mode.setter
    def class_level_cascade_mode(self, value: CascadeMode) -> None:
        value = CascadeMode(value)
        self._class_level_cascade_mode = CascadeMode.STOP if value.stops else value

    @property
    def rule_level_cascade_mode(self) -> CascadeMode:
        """Cascade mode of rules that do not set their own."""
        if self._rule_level_cascade_mode is not None:
            return self._rule_level_cascade_mode
        return self.config.default_rule_level_cascade_mode

    @rule_level_cascade_mode.setter
    def rule_level_cascade_mode(self, value: CascadeMode) -> None:
        value = CascadeMode(value)
        self._rule_level_cascade_mode = CascadeMode.STOP if value.stops else value

    @property
    def cascade_mode(self) -> CascadeMode:
        """Legacy combined setting.

        STOP_ON_FIRST_FAILURE stands for class level CONTINUE with rule level
        STOP; any other value sets both levels.
        """
        class_level, rule_level = self.class_level_cascade_mode, self.rule_level_cascade_mode
        if class_level == CascadeMode.CONTINUE and rule_level == CascadeMode.STOP:
            return CascadeMode.STOP_ON_FIRST_FAILURE
        return rule_level if class_level == rule_level else class_level

    @cascade_mode.setter
    def cascade_mode(self, value: CascadeMode) -> None:
        value = CascadeMode(value)
        if value == CascadeMode.STOP_ON_FIRST_FAILURE:
            self._class_level_cascade_mode = CascadeMode.CONTINUE
            self._rule_level_cascade_mode = CascadeMode.STOP
        else:
            self._class_level_cascade_mode = value
            self._rule_level_cascade_mode = value

    # Declaration

    def _accessor_for(self, member: str | Callable):
        if member is None:
            raise ValueError("Cannot pass None as the member to validate")
        return accessor_cache.get_or_add(member, enabled=not self.config.disable_accessor_cache)

    def rule_for(self, member: str | Callable) -> RuleBuilder:
        """Start a rule for a member.

        ``member`` is an attribute name, a dotted path (``"address.city"``) or
        a callable. Callables without a usable name (lambdas) declare a rule
        for the whole instance unless ``override_property_name`` is used.
        """
        accessor = self._accessor_for(member)
        rule = PropertyRule(accessor, accessor.member_name, lambda: self.rule_level_cascade_mode, self.instance_type)
        self.add_rule(rule)
        return RuleBuilder(rule, self)

    def rule_for_each(self, member: str | Callable) -> RuleBuilder:
        """Start a rule applied to every element of a collection member."""
        accessor = self._accessor_for(member)
        rule = CollectionPropertyRule(
            accessor, accessor.member_name, lambda: self.rule_level_cascade_mode, self.instance_type
        )
        self.add_rule(rule)
        return RuleBuilder(rule, self)

    def transform(self, member: str | Callable, transformer: Callable[..., Any]) -> RuleBuilder:
        """Start a rule that checks ``transformer``'s result instead of the member value.

        ``transformer`` receives ``(value)`` or ``(instance, value)``. Failures
        are still reported under the member's name.
        """
        builder = self.rule_for(member)
        builder.rule.transformer = value_transformer(transformer)
        return builder

    def transform_for_each(self, member: str | Callable, transformer: Callable[..., Any]) -> RuleBuilder:
        """Like ``rule_for_each``, mapping every element through ``transformer`` first."""
        builder = self.rule_for_each(member)
        builder.rule.transformer = value_transformer(transformer)
        return builder

    def include(self, validator: "AbstractValidator | Callable[[Any], AbstractValidator]") -> None:
        """Run another validator's rules as part of this one, on the same instance."""
        if validator is None:
            raise ValueError("Cannot include None")
        if isinstance(validator, AbstractValidator):
            rule = IncludeRule(validator, cascade_mode_thunk=lambda: self.rule_level_cascade_mode)
        elif callable(validator):
            rule = IncludeRule(validator_factory=validator, cascade_mode_thunk=lambda: self.rule_level_cascade_mode)
        else:
            raise TypeError(f"Cannot include {validator!r}; expected a validator or a callable returning one")
        self.add_rule(rule)

    def rule_set(self, rule_set_names: str | list[str], action: Callable[[], Any]) -> None:
        """Put every rule declared inside ``action`` into the named rule sets.

        Names may be given as a list or as a comma/semicolon separated string.
        An inner ``rule_set`` block wins over an outer one.
        """
        names = split_rule_set_names(rule_set_names or [])
        if not names:
            raise ValueError("A rule set name must be specified")
        if action is None:
            raise ValueError("Cannot pass None as the rule set action")

        with self.capture_rules() as captured:
            action()
        for rule in captured:
            if not rule.rule_sets:
                rule.rule_sets = list(names)

    def when(self, predicate: Callable[..., bool], action: Callable[[], Any]) -> "ConditionOtherwiseBuilder":
        """Only run the rules declared inside ``action`` when ``predicate`` holds.

        ``predicate`` receives ``(instance)`` or ``(instance, context)``.
        """
        condition = instance_predicate(predicate)
        self._apply_shared(action, lambda ctx: condition(ctx.instance_to_validate, ctx), asynchronous=False)
        return ConditionOtherwiseBuilder(self, lambda ctx: not condition(ctx.instance_to_validate, ctx), False)

    def unless(self, predicate: Callable[..., bool], action: Callable[[], Any]) -> "ConditionOtherwiseBuilder":
        condition = instance_predicate(predicate)
        return self.when(lambda instance, ctx: not condition(instance, ctx), action)

    def when_async(self, predicate: Callable[..., Any], action: Callable[[], Any]) -> "ConditionOtherwiseBuilder":
        condition = instance_predicate(predicate)

        async def matches(ctx):
            return await condition(ctx.instance_to_validate, ctx)

        async def does_not_match(ctx):
            return not await condition(ctx.instance_to_validate, ctx)

        self._apply_shared(action, matches, asynchronous=True)
        return ConditionOtherwiseBuilder(self, does_not_match, True)

    def unless_async(self, predicate: Callable[..., Any], action: Callable[[], Any]) -> "ConditionOtherwiseBuilder":
        condition = instance_predicate(predicate)

        async def negated(instance, ctx):
            return not await condition(instance, ctx)

        return self.when_async(negated, action)

    def _apply_shared(self, action: Callable[[], Any], condition: Callable, asynchronous: bool) -> None:
        if action is None:
            raise ValueError("Cannot pass None as the conditional action")
        with self.capture_rules() as captured:
            action()
        for rule in captured:
            if asynchronous:
                rule.apply_shared_async_condition(condition)
            else:
                rule.apply_shared_condition(condition)

    @contextmanager
    def capture_rules(self) -> Iterator[list[PropertyRule]]:
        """Collect the rules declared while the block is active."""
        captured: list[PropertyRule] = []
        self._captures.append(captured)
        try:
            yield captured
        finally:
            self._captures.remove(captured)

    def add_rule(self, rule: PropertyRule) -> None:
        self.rules.append(rule)
        for captured in self._captures:
            captured.append(rule)

    def remove_rule(self, rule: PropertyRule) -> None:
        self.rules.remove(rule)

    # Validation

    def validate(self, instance: Any, options: "ValidationStrategy | Callable | None" = None) -> ValidationResult:
        """Validate ``instance`` (or an existing ``ValidationContext``) synchronously.

        Raises ``AsyncValidatorInvokedSynchronouslyError`` when a rule in scope
        can only run asynchronously.
        """
        context = self._get_context(instance, options)
        context.is_async = False
        try:
            return run_synchronously(self._validate_core(context))
        except AsyncValidatorInvokedSynchronouslyError as error:
            if error.validator_type:
                raise
            raise AsyncValidatorInvokedSynchronouslyError(type(self).__name__, error.offending) from error

    async def validate_async(self, instance: Any,
                             options: "ValidationStrategy | Callable | None" = None) -> ValidationResult:
        """Validate ``instance`` (or an existing ``ValidationContext``), awaiting async checks."""
        context = self._get_context(instance, options)
        context.is_async = True
        return await self._validate_core(context)

    def _get_context(self, instance: Any, options: Any) -> ValidationContext:
        if isinstance(instance, ValidationContext):
            if options is not None:
                raise TypeError("Options cannot be combined with an existing ValidationContext")
            context = instance
        else:
            context = as_strategy(options).build_context(instance, self)

        if context.instance_to_validate is None:
            raise ValueError("Cannot pass None model to validate.")
        if self.instance_type is not None and not isinstance(context.instance_to_validate, self.instance_type):
            raise TypeError(
                f"Cannot validate instances of type '{type(context.instance_to_validate).__name__}'. "
                f"This validator can only validate instances of type '{self.instance_type.__name__}'."
            )
        return context

    async def _validate_core(self, context: ValidationContext) -> ValidationResult:
        context.validator_id = id(self)
        context.config = self.config
        if self.language_manager is not None:
            context.language_manager = self.language_manager

        result = ValidationResult(errors=context.failures)
        if not self.pre_validate(context, result):
            return self._finish(context, result)

        selected = [
            rule for rule in self.rules
            if context.selector.is_satisfied_by(rule, rule.property_path(context), context)
        ]
        if not context.is_async:
            self._ensure_synchronous(selected)

        name = type(self).__name__
        logger.debug(f"{name}: validating '{context.property_chain}' with {len(selected)} of {len(self.rules)} rules")

        stops = self.class_level_cascade_mode.stops
        for rule in selected:
            if context.is_async:
                # Cancellation point between rules.
                await asyncio.sleep(0)
            before = len(context.failures)
            await rule.execute(context)
            if stops and len(context.failures) > before:
                logger.debug(f"{name}: class level cascade stopped after rule for '{rule.property_name}'")
                break

        logger.debug(f"{name}: finished with {len(context.failures)} failures")
        return self._finish(context, result)

    def _ensure_synchronous(self, rules: list[PropertyRule]) -> None:
        for rule in rules:
            offending = rule.find_async_only()
            if offending:
                raise AsyncValidatorInvokedSynchronouslyError(type(self).__name__, offending)

    def _finish(self, context: ValidationContext, result: ValidationResult) -> ValidationResult:
        result = ValidationResult(
            errors=list(context.failures),
            rule_sets_executed=list(context.root_context_data.get(RULE_SETS_EXECUTED_KEY, [])),
        )
        if context.throw_on_failures and not result.is_valid:
            self.raise_validation_exception(context, result)
        return result

    def pre_validate(self, context: ValidationContext, result: ValidationResult) -> bool:
        """Hook run before any rule. Return False to skip the rules entirely.

        Failures appended to ``result.errors`` are kept.
        """
        return True

    def raise_validation_exception(self, context: ValidationContext, result: ValidationResult) -> None:
        """Hook used in throw mode; override to raise a different exception."""
        raise ValidationException(result.errors)

    def test_validate(self, instance: Any, options: "ValidationStrategy | Callable | None" = None):
        """Validate and return a ``TestValidationResult`` with assertion helpers."""
        return testing.test_validate(self, instance, options)

    async def test_validate_async(self, instance: Any, options: "ValidationStrategy | Callable | None" = None):
        return await testing.test_validate_async(self, instance, options)

    # Introspection

    def create_descriptor(self) -> ValidatorDescriptor:
        return ValidatorDescriptor(self.rules)

    def can_validate_instances_of_type(self, type_: type) -> bool:
        if self.instance_type is None:
            return True
        return isinstance(type_, type) and issubclass(type_, self.instance_type)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({len(self.rules)} rules)"


class InlineValidator(AbstractValidator):
    """A validator configured from outside instead of by subclassing.

    ``add(lambda v: v.rule_for("name").not_null())`` is equivalent to calling
    ``rule_for`` on the instance directly.
    """

    def __init__(self, instance_type: type | None = None, config: ValidatorConfig | None = None,
                 language_manager: LanguageManager | None = None):
        super().__init__(config, language_manager)
        self.instance_type = instance_type

    def add(self, declare: Callable[["InlineValidator"], Any]) -> "InlineValidator":
        declare(self)
        return self


class ConditionOtherwiseBuilder:
    """Returned by ``when``/``unless`` so an ``otherwise`` block can follow."""

    def __init__(self, validator: AbstractValidator, inverse: Callable, asynchronous: bool):
        self._validator = validator
        self._inverse = inverse
        self._asynchronous = asynchronous

    def otherwise(self, action: Callable[[], Any]) -> None:
        """Rules declared inside ``action`` run only when the condition does not hold."""
        self._validator._apply_shared(action, self._inverse, self._asynchronous)
