"""Fluent API returned by ``rule_for`` and ``rule_for_each``."""

import inspect
import re
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from .enums import ApplyConditionTo, CascadeMode, Severity
from .internal.accessors import PropertyAccessor
from .internal.extensions import instance_predicate, positional_arity, value_predicate
from .rules import CollectionPropertyRule, PropertyRule, RuleComponent
from .validators import (
    AsyncCustomValidator,
    AsyncPredicateValidator,
    ChildRulesAdaptor,
    ChildValidatorAdaptor,
    CreditCardValidator,
    CustomValidator,
    EmailValidator,
    EmptyValidator,
    EnumValidator,
    EqualValidator,
    ExactLengthValidator,
    ExclusiveBetweenValidator,
    GreaterThanOrEqualValidator,
    GreaterThanValidator,
    InclusiveBetweenValidator,
    LengthValidator,
    LessThanOrEqualValidator,
    LessThanValidator,
    MaximumLengthValidator,
    MinimumLengthValidator,
    NotEmptyValidator,
    NotEqualValidator,
    NotNullValidator,
    NullValidator,
    PolymorphicValidator,
    PredicateValidator,
    RegularExpressionValidator,
    ScalePrecisionValidator,
    StringEnumValidator,
)
from .validators.base import AsyncPropertyValidator, ObjectValidator, PropertyValidator
from .validators.core import _UNSET

if TYPE_CHECKING:
    from .validator import AbstractValidator


def _instance_or_value(func: Callable, what: str) -> Callable[[Any, Any], Any]:
    """Normalise an ``(instance)`` or ``(instance, value)`` callback."""
    if func is None:
        raise ValueError(f"Cannot pass None as {what}")
    if positional_arity(func, 2) <= 1:
        return lambda instance, value: func(instance)
    return func


class RuleBuilder:
    """Adds checks and options to one rule.

    Every method returns the builder so calls can be chained::

        self.rule_for("email").not_empty().email_address().with_severity(Severity.WARNING)

    Component options (``with_message``, ``when``...) apply to the check
    added just before them.
    """

    def __init__(self, rule: PropertyRule, parent: "AbstractValidator"):
        self.rule = rule
        self.parent = parent

    def _require_component(self) -> RuleComponent:
        component = self.rule.current
        if component is None:
            raise ValueError("A check must be added to the rule before configuring its options")
        return component

    # Generic checks

    def set_validator(self, validator: Any, *rule_sets: str) -> "RuleBuilder":
        """Attach a check, a nested object validator, or a callable producing one.

        Callables receive ``(instance)`` or ``(instance, value)`` and return
        the validator to use for the current value.
        """
        if validator is None:
            raise ValueError("Cannot pass None to set_validator")
        if isinstance(validator, type):
            raise TypeError(f"Pass an instance of {validator.__name__}, not the class itself")

        if isinstance(validator, ObjectValidator):
            adaptor = ChildValidatorAdaptor(validator, rule_sets=list(rule_sets))
            self.rule.add_component(RuleComponent(adaptor, adaptor))
        elif isinstance(validator, (PropertyValidator, AsyncPropertyValidator)):
            sync = validator if isinstance(validator, PropertyValidator) else None
            asynchronous = validator if isinstance(validator, AsyncPropertyValidator) else None
            self.rule.add_component(RuleComponent(sync, asynchronous))
        elif callable(validator):
            factory = _instance_or_value(validator, "a validator factory")
            adaptor = ChildValidatorAdaptor(validator_factory=factory, rule_sets=list(rule_sets))
            self.rule.add_component(RuleComponent(adaptor, adaptor))
        else:
            raise TypeError(f"{validator!r} is neither a check nor an object validator")
        return self

    def child_rules(self, action: Callable[[Any], Any]) -> "RuleBuilder":
        """Validate the value with rules declared inline.

        ``action`` receives an ``InlineValidator`` and declares rules on it::

            self.rule_for("address").child_rules(lambda v: v.rule_for("city").not_empty())
        """
        from .validator import InlineValidator

        if action is None:
            raise ValueError("Cannot pass None as the child rules action")
        child = InlineValidator(config=self.parent.config, language_manager=self.parent.language_manager)
        action(child)
        adaptor = ChildRulesAdaptor(child, self.rule)
        self.rule.add_component(RuleComponent(adaptor, adaptor))
        return self

    def set_inheritance_validator(self, configure: Callable[[PolymorphicValidator], Any]) -> "RuleBuilder":
        """Pick the nested validator by the runtime type of the value.

        ``configure`` receives a ``PolymorphicValidator`` and registers
        ``add(subclass, validator)`` pairs on it.
        """
        if configure is None:
            raise ValueError("Cannot pass None to set_inheritance_validator")
        polymorphic = PolymorphicValidator()
        configure(polymorphic)
        self.rule.add_component(RuleComponent(polymorphic, polymorphic))
        return self

    def must(self, predicate: Callable[..., bool]) -> "RuleBuilder":
        """``predicate`` receives ``(value)``, ``(instance, value)`` or ``(instance, value, context)``."""
        if inspect.iscoroutinefunction(predicate):
            raise TypeError("Use must_async() for coroutine functions")
        self.rule.add_validator(PredicateValidator(value_predicate(predicate)))
        return self

    def must_async(self, predicate: Callable[..., Awaitable[bool]]) -> "RuleBuilder":
        self.rule.add_async_validator(AsyncPredicateValidator(value_predicate(predicate)))
        return self

    def custom(self, action: Callable[[Any, Any], None]) -> "RuleBuilder":
        """``action(value, context)`` reports failures with ``context.add_failure``."""
        self.rule.add_validator(CustomValidator(action))
        return self

    def custom_async(self, action: Callable[[Any, Any], Awaitable[None]]) -> "RuleBuilder":
        self.rule.add_async_validator(AsyncCustomValidator(action))
        return self

    # Built-in checks

    def not_null(self) -> "RuleBuilder":
        return self.set_validator(NotNullValidator())

    def null(self) -> "RuleBuilder":
        return self.set_validator(NullValidator())

    def not_empty(self, default: Any = _UNSET) -> "RuleBuilder":
        return self.set_validator(NotEmptyValidator(default))

    def empty(self, default: Any = _UNSET) -> "RuleBuilder":
        return self.set_validator(EmptyValidator(default))

    def length(self, min_length: int, max_length: int) -> "RuleBuilder":
        return self.set_validator(LengthValidator(min_length, max_length))

    def min_length(self, min_length: int) -> "RuleBuilder":
        return self.set_validator(MinimumLengthValidator(min_length))

    def max_length(self, max_length: int) -> "RuleBuilder":
        return self.set_validator(MaximumLengthValidator(max_length))

    def exact_length(self, length: int) -> "RuleBuilder":
        return self.set_validator(ExactLengthValidator(length))

    def _comparison(self, validator_type: type, value: Any) -> "RuleBuilder":
        if callable(value) and not isinstance(value, (type, Enum)):
            accessor = PropertyAccessor.for_callable(value)
            validator = validator_type(member=accessor.get, member_display_name=accessor.member_name)
        else:
            validator = validator_type(value_to_compare=value)
        return self.set_validator(validator)

    def equal(self, value: Any) -> "RuleBuilder":
        """Compare with a constant, or with another member when given a callable."""
        return self._comparison(EqualValidator, value)

    def equal_to_member(self, member: str) -> "RuleBuilder":
        accessor = PropertyAccessor.for_path(member)
        return self.set_validator(EqualValidator(member=accessor.get, member_display_name=accessor.member_name))

    def not_equal(self, value: Any) -> "RuleBuilder":
        return self._comparison(NotEqualValidator, value)

    def not_equal_to_member(self, member: str) -> "RuleBuilder":
        accessor = PropertyAccessor.for_path(member)
        return self.set_validator(NotEqualValidator(member=accessor.get, member_display_name=accessor.member_name))

    def less_than(self, value: Any) -> "RuleBuilder":
        return self._comparison(LessThanValidator, value)

    def less_than_or_equal_to(self, value: Any) -> "RuleBuilder":
        return self._comparison(LessThanOrEqualValidator, value)

    def greater_than(self, value: Any) -> "RuleBuilder":
        return self._comparison(GreaterThanValidator, value)

    def greater_than_or_equal_to(self, value: Any) -> "RuleBuilder":
        return self._comparison(GreaterThanOrEqualValidator, value)

    def inclusive_between(self, from_value: Any, to_value: Any) -> "RuleBuilder":
        return self.set_validator(InclusiveBetweenValidator(from_value, to_value))

    def exclusive_between(self, from_value: Any, to_value: Any) -> "RuleBuilder":
        return self.set_validator(ExclusiveBetweenValidator(from_value, to_value))

    def matches(self, pattern: str | re.Pattern, flags: int = 0) -> "RuleBuilder":
        return self.set_validator(RegularExpressionValidator(pattern, flags))

    def email_address(self) -> "RuleBuilder":
        return self.set_validator(EmailValidator())

    def credit_card(self) -> "RuleBuilder":
        return self.set_validator(CreditCardValidator())

    def is_in_enum(self, enum_type: type[Enum]) -> "RuleBuilder":
        return self.set_validator(EnumValidator(enum_type))

    def is_enum_name(self, enum_type: type[Enum], case_sensitive: bool = True) -> "RuleBuilder":
        return self.set_validator(StringEnumValidator(enum_type, case_sensitive))

    def precision_scale(self, precision: int, scale: int, ignore_trailing_zeros: bool = False) -> "RuleBuilder":
        return self.set_validator(ScalePrecisionValidator(precision, scale, ignore_trailing_zeros))

    # Component options

    def with_message(self, message: str | Callable[..., str]) -> "RuleBuilder":
        """Override the message of the last check.

        Callables receive ``(instance)`` or ``(instance, value)``; the
        returned text is still run through placeholder substitution.
        """
        if message is None:
            raise ValueError("Cannot pass None as an error message")
        if callable(message):
            factory = _instance_or_value(message, "a message factory")
            self._require_component().set_error_message(lambda ctx, value: factory(ctx.instance_to_validate, value))
        else:
            self._require_component().set_error_message(message)
        return self

    def with_error_code(self, error_code: str) -> "RuleBuilder":
        if not error_code:
            raise ValueError("An error code must be specified")
        self._require_component().error_code = error_code
        return self

    def with_severity(self, severity: Severity | Callable[..., Severity]) -> "RuleBuilder":
        if severity is None:
            raise ValueError("Cannot pass None as a severity")
        if callable(severity) and not isinstance(severity, Severity):
            provider = _instance_or_value(severity, "a severity provider")
            self._require_component().severity_provider = lambda ctx, value: provider(ctx.instance_to_validate, value)
        else:
            severity = Severity(severity)
            self._require_component().severity_provider = lambda ctx, value: severity
        return self

    def with_state(self, provider: Callable[..., Any]) -> "RuleBuilder":
        """Attach custom state computed from ``(instance)`` or ``(instance, value)``."""
        state = _instance_or_value(provider, "a state provider")
        self._require_component().custom_state_provider = lambda ctx, value: state(ctx.instance_to_validate, value)
        return self

    def on_failure(self, callback: Callable[..., None]) -> "RuleBuilder":
        """Call ``callback`` after the last check fails.

        It receives ``(instance)``, ``(instance, context, value)`` or
        ``(instance, context, value, message)``.
        """
        if callback is None:
            raise ValueError("Cannot pass None as a failure callback")
        arity = positional_arity(callback, 4)
        if arity <= 1:
            self._require_component().on_failure = lambda instance, ctx, value, message: callback(instance)
        elif arity == 4:
            self._require_component().on_failure = callback
        else:
            self._require_component().on_failure = lambda instance, ctx, value, message: callback(instance, ctx, value)
        return self

    def when(self, predicate: Callable[..., bool],
             apply_condition_to: ApplyConditionTo = ApplyConditionTo.ALL_VALIDATORS) -> "RuleBuilder":
        """Only run the previous checks when ``predicate(instance[, context])`` is true."""
        condition = instance_predicate(predicate)
        self._require_component()
        self.rule.apply_condition(lambda ctx: condition(ctx.instance_to_validate, ctx), apply_condition_to)
        return self

    def unless(self, predicate: Callable[..., bool],
               apply_condition_to: ApplyConditionTo = ApplyConditionTo.ALL_VALIDATORS) -> "RuleBuilder":
        condition = instance_predicate(predicate)
        return self.when(lambda instance, ctx: not condition(instance, ctx), apply_condition_to)

    def when_async(self, predicate: Callable[..., Awaitable[bool]],
                   apply_condition_to: ApplyConditionTo = ApplyConditionTo.ALL_VALIDATORS) -> "RuleBuilder":
        condition = instance_predicate(predicate)
        self._require_component()
        self.rule.apply_async_condition(lambda ctx: condition(ctx.instance_to_validate, ctx), apply_condition_to)
        return self

    def unless_async(self, predicate: Callable[..., Awaitable[bool]],
                     apply_condition_to: ApplyConditionTo = ApplyConditionTo.ALL_VALIDATORS) -> "RuleBuilder":
        condition = instance_predicate(predicate)

        async def negated(instance, ctx):
            return not await condition(instance, ctx)

        return self.when_async(negated, apply_condition_to)

    # Rule options

    def with_name(self, name: str | Callable[[Any], str]) -> "RuleBuilder":
        """Display name used for ``{PropertyName}`` in messages."""
        if name is None:
            raise ValueError("A name must be specified")
        if callable(name):
            self.rule.set_display_name(lambda ctx: name(ctx.instance_to_validate))
        else:
            self.rule.set_display_name(name)
        return self

    def override_property_name(self, property_name: str) -> "RuleBuilder":
        """Change the property path failures are reported under."""
        if property_name is None:
            raise ValueError("A property name must be specified")
        self.rule.property_name = property_name
        return self

    def cascade(self, mode: CascadeMode) -> "RuleBuilder":
        self.rule.cascade_mode = CascadeMode(mode)
        return self

    def on_any_failure(self, callback: Callable[..., None]) -> "RuleBuilder":
        """Call ``callback`` once after the rule ran, when any of its checks failed.

        It receives ``(instance)`` or ``(instance, failures)``.
        """
        if callback is None:
            raise ValueError("Cannot pass None as a failure callback")
        if positional_arity(callback, 2) <= 1:
            self.rule.on_any_failure = lambda instance, failures: callback(instance)
        else:
            self.rule.on_any_failure = callback
        return self

    def dependent_rules(self, action: Callable[[], Any]) -> "RuleBuilder":
        """Rules declared inside ``action`` run only when this rule produced no failures."""
        if action is None:
            raise ValueError("Cannot pass None as the dependent rules action")
        with self.parent.capture_rules() as captured:
            action()
        for rule in captured:
            self.parent.remove_rule(rule)
            self.rule.dependent_rules.append(rule)
        return self

    def where(self, predicate: Callable[[Any], bool]) -> "RuleBuilder":
        """Only validate collection elements matching ``predicate(element)``."""
        rule = self._collection_rule("where")
        if predicate is None:
            raise ValueError("Cannot pass None as a filter")
        rule.filter = predicate
        return self

    def override_index(self, builder: Callable[..., str]) -> "RuleBuilder":
        """Build the path segment for each element instead of ``[index]``.

        ``builder`` receives ``(instance, collection, element, index)`` and its
        result is appended to the property name as-is.
        """
        rule = self._collection_rule("override_index")
        if builder is None:
            raise ValueError("Cannot pass None as an index builder")
        rule.index_builder = builder
        return self

    def _collection_rule(self, method: str) -> CollectionPropertyRule:
        if not isinstance(self.rule, CollectionPropertyRule):
            raise ValueError(f"{method}() can only be used on rules created with rule_for_each()")
        return self.rule

    def __repr__(self) -> str:
        return f"RuleBuilder({self.rule!r})"

