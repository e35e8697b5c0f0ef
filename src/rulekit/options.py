"""Per-call options: which rules to run and how to report the outcome."""

import logging
from typing import TYPE_CHECKING, Any, Callable

from .context import ValidationContext
from .internal.property_chain import PropertyChain
from .internal.selectors import (
    DEFAULT_RULE_SET_NAME,
    WILDCARD_RULE_SET_NAME,
    CompositeValidatorSelector,
    DefaultValidatorSelector,
    MemberNameValidatorSelector,
    RulesetValidatorSelector,
    ValidatorSelector,
    as_selector,
    member_names_from,
    split_rule_set_names,
)

if TYPE_CHECKING:
    from .validator import AbstractValidator

logger = logging.getLogger(__name__)


class ValidationStrategy:
    """Collects options for one ``validate`` call.

    Usually configured through a callable::

        validator.validate(order, lambda o: o.include_rule_sets("shipping").throw_on_failures())
    """

    def __init__(self):
        self._properties: list[str] = []
        self._rule_sets: list[str] = []
        self._custom_selector: ValidatorSelector | None = None
        self._throw = False
        self._skip: set[int] = set()

    def include_properties(self, *members: str | Callable) -> "ValidationStrategy":
        """Only run rules for these members (names, dotted paths or named callables)."""
        self._properties.extend(member_names_from(members))
        return self

    def include_rule_sets(self, *rule_sets: str) -> "ValidationStrategy":
        names = split_rule_set_names(rule_sets)
        if not names:
            raise ValueError("At least one rule set name must be specified")
        for name in names:
            if name not in self._rule_sets:
                self._rule_sets.append(name)
        return self

    def include_all_rule_sets(self) -> "ValidationStrategy":
        return self.include_rule_sets(WILDCARD_RULE_SET_NAME)

    def include_rules_not_in_rule_set(self) -> "ValidationStrategy":
        return self.include_rule_sets(DEFAULT_RULE_SET_NAME)

    def use_custom_selector(self, selector: ValidatorSelector | Callable) -> "ValidationStrategy":
        self._custom_selector = as_selector(selector)
        return self

    def throw_on_failures(self) -> "ValidationStrategy":
        self._throw = True
        return self

    def skip_instances(self, *instances: Any) -> "ValidationStrategy":
        """Treat these objects as already validated by an outer pass.

        Nested and collection-element validation is skipped for them wherever
        they appear in the object graph.
        """
        self._skip.update(id(instance) for instance in instances if instance is not None)
        return self

    def get_selector(self) -> ValidatorSelector:
        selectors: list[ValidatorSelector] = []
        if self._custom_selector is not None:
            selectors.append(self._custom_selector)
        if self._properties:
            selectors.append(MemberNameValidatorSelector(self._properties))
        if self._rule_sets:
            selectors.append(RulesetValidatorSelector(self._rule_sets))

        if not selectors:
            return DefaultValidatorSelector()
        if len(selectors) == 1:
            return selectors[0]
        return CompositeValidatorSelector(selectors)

    def build_context(self, instance: Any, validator: "AbstractValidator") -> ValidationContext:
        chain = PropertyChain(separator=validator.config.property_chain_separator)
        selector = self.get_selector()
        logger.debug(f"Validation options for {type(validator).__name__}: selector={selector!r}, throw={self._throw}")
        return ValidationContext(
            instance,
            chain,
            selector,
            throw_on_failures=self._throw,
            validated_instances=set(self._skip),
            language_manager=validator.language_manager,
            config=validator.config,
        )


def as_strategy(options: "ValidationStrategy | Callable[[ValidationStrategy], Any] | None") -> ValidationStrategy:
    if options is None:
        return ValidationStrategy()
    if isinstance(options, ValidationStrategy):
        return options
    if callable(options):
        strategy = ValidationStrategy()
        options(strategy)
        return strategy
    raise TypeError(f"Expected a ValidationStrategy or a callable configuring one, got {type(options).__name__}")
