"""Per-call validation state threaded through rule execution."""

import logging
import weakref
from typing import TYPE_CHECKING, Any

from .config import ValidatorConfig, get_default_config
from .internal.message_formatter import MessageFormatter
from .internal.property_chain import PropertyChain
from .resources import LanguageManager
from .results import ValidationFailure

if TYPE_CHECKING:
    from .internal.selectors import ValidatorSelector

logger = logging.getLogger(__name__)

RULE_SETS_EXECUTED_KEY = "_rulekit_rule_sets_executed"


class ValidationContext:
    """State bag for one level of a validation pass.

    ``root_context_data`` and ``validated_instances`` are shared by reference
    with every child context of the same pass. Neither is synchronised: a
    context tree must not be used by concurrent validations.
    """

    def __init__(self, instance_to_validate: Any, property_chain: PropertyChain | None = None,
                 selector: "ValidatorSelector | None" = None, *,
                 root_context_data: dict[str, Any] | None = None,
                 throw_on_failures: bool = False,
                 validated_instances: set[int] | None = None,
                 language_manager: LanguageManager | None = None,
                 config: "ValidatorConfig | None" = None):
        if selector is None:
            from .internal.selectors import DefaultValidatorSelector
            selector = DefaultValidatorSelector()

        self.instance_to_validate = instance_to_validate
        self.property_chain = PropertyChain(property_chain) if property_chain is not None else PropertyChain()
        self.selector = selector
        self.root_context_data: dict[str, Any] = root_context_data if root_context_data is not None else {}
        self.throw_on_failures = throw_on_failures
        self.validated_instances: set[int] = validated_instances if validated_instances is not None else set()
        self.language_manager = language_manager
        self.config = config if config is not None else get_default_config()
        self.is_child_context = False
        self.is_child_collection_context = False
        self.is_async = False
        self.failures: list[ValidationFailure] = []
        self.message_formatter = MessageFormatter()

        # Per-property state, set by the rule currently executing.
        self.property_path: str = str(self.property_chain)
        self.raw_property_name: str | None = None
        self.display_name: str | None = None
        self.property_value: Any = None
        self.collection_index: int | None = None

        self._parent_ref: weakref.ReferenceType | None = None
        self.validator_id: int | None = None

    @property
    def parent_context(self) -> "ValidationContext | None":
        return self._parent_ref() if self._parent_ref is not None else None

    @property
    def is_root_context(self) -> bool:
        return self._parent_ref is None and not self.is_child_context

    def _derive(self, instance: Any, chain: PropertyChain | None, selector: "ValidatorSelector | None",
                preserve_parent_context: bool) -> "ValidationContext":
        child = ValidationContext(
            instance,
            chain,
            selector or self.selector,
            root_context_data=self.root_context_data,
            validated_instances=self.validated_instances,
            language_manager=self.language_manager,
            config=self.config,
        )
        child.is_async = self.is_async
        if preserve_parent_context:
            child._parent_ref = weakref.ref(self)
        return child

    def clone(self, instance_to_validate: Any = None, property_chain: PropertyChain | None = None,
              selector: "ValidatorSelector | None" = None) -> "ValidationContext":
        """Copy this context, keeping shared data and linking back to it."""
        instance = self.instance_to_validate if instance_to_validate is None else instance_to_validate
        return self._derive(instance, property_chain or self.property_chain, selector, True)

    def clone_for_child_validator(self, instance_to_validate: Any, preserve_parent_context: bool = True,
                                  selector: "ValidatorSelector | None" = None) -> "ValidationContext":
        """Context for validating a nested object under the current property."""
        child = self._derive(instance_to_validate, self.chain_for_children(), selector, preserve_parent_context)
        child.is_child_context = True
        return child

    def clone_for_child_collection_validator(self, instance_to_validate: Any,
                                             preserve_parent_context: bool = True) -> "ValidationContext":
        """Context for one element of a collection rule.

        The element context writes its failures into this context's list.
        """
        child = self._derive(instance_to_validate, self.property_chain, None, preserve_parent_context)
        child.is_child_context = True
        child.is_child_collection_context = True
        child.failures = self.failures
        child.validator_id = self.validator_id
        return child

    def chain_for_children(self) -> PropertyChain:
        """Chain a nested validator should start from for the current property."""
        chain = PropertyChain(self.property_chain)
        if self.raw_property_name:
            chain.add(self.raw_property_name)
        return chain

    def is_validating(self, instance: Any, validator: Any) -> bool:
        """True when ``validator`` is already validating ``instance`` further up this branch."""
        target_id, validator_id = id(instance), id(validator)
        context: ValidationContext | None = self
        while context is not None:
            if context.validator_id == validator_id and id(context.instance_to_validate) == target_id:
                return True
            context = context.parent_context
        return False

    def add_failure(self, failure: ValidationFailure | str | None = None, error_message: str | None = None,
                    *, property_name: str | None = None, attempted_value: Any = None) -> ValidationFailure:
        """Record a failure from a custom validator.

        Accepts a ready-made ``ValidationFailure``, or a message (optionally with
        a property name relative to the current property's parent chain).
        """
        if isinstance(failure, ValidationFailure):
            self.failures.append(failure)
            return failure

        if isinstance(failure, str) and error_message is None:
            error_message = failure
        elif isinstance(failure, str):
            property_name = failure

        if error_message is None:
            raise ValueError("An error message must be specified when adding a failure")

        if property_name is None:
            path = self.property_path
        else:
            path = self.property_chain.build_property_name(property_name)

        formatter = self.message_formatter
        if formatter.PROPERTY_NAME not in formatter.placeholder_values:
            formatter.append_property_name(self.display_name)
            formatter.append_property_value(self.property_value)

        created = ValidationFailure(
            property_name=path,
            error_message=formatter.build_message(error_message),
            attempted_value=self.property_value if attempted_value is None else attempted_value,
            severity=self.config.severity,
            formatted_message_placeholder_values=dict(formatter.placeholder_values),
        )
        self.failures.append(created)
        return created

    def __repr__(self) -> str:
        return (f"ValidationContext(instance={type(self.instance_to_validate).__name__}, "
                f"chain={str(self.property_chain)!r}, child={self.is_child_context})")
