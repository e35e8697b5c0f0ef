"""Strategies deciding which declared rules take part in a validation pass."""

import logging
import re
from typing import TYPE_CHECKING, Any, Callable, Iterable, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..context import ValidationContext

logger = logging.getLogger(__name__)

DEFAULT_RULE_SET_NAME = "default"
WILDCARD_RULE_SET_NAME = "*"

_INDEXER = re.compile(r"\[[^\]]*\]")


@runtime_checkable
class ValidatorSelector(Protocol):
    """Anything able to say whether a rule is in scope for this pass."""

    def is_satisfied_by(self, rule: Any, property_path: str, context: "ValidationContext") -> bool:
        ...


def _rule_sets_of(rule: Any) -> list[str]:
    return list(getattr(rule, "rule_sets", None) or [])


def _is_include_rule(rule: Any) -> bool:
    return getattr(rule, "is_include_rule", False)


def _record_executed(context: "ValidationContext", names: Iterable[str]) -> None:
    from ..context import RULE_SETS_EXECUTED_KEY
    executed = context.root_context_data.setdefault(RULE_SETS_EXECUTED_KEY, [])
    for name in names:
        if name not in executed:
            executed.append(name)


def split_rule_set_names(names: Iterable[str] | str) -> list[str]:
    """Split legacy ``"a,b;c"`` strings into discrete ruleset names."""
    if isinstance(names, str):
        names = [names]
    result: list[str] = []
    for name in names:
        if name is None:
            continue
        for part in re.split(r"[,;]", name):
            part = part.strip()
            if part and part not in result:
                result.append(part)
    return result


class DefaultValidatorSelector:
    """Selects only rules that are not part of a named ruleset."""

    def is_satisfied_by(self, rule: Any, property_path: str, context: "ValidationContext") -> bool:
        rule_sets = _rule_sets_of(rule)
        if not rule_sets or any(r.lower() == DEFAULT_RULE_SET_NAME for r in rule_sets):
            _record_executed(context, [DEFAULT_RULE_SET_NAME])
            return True
        return False

    def __repr__(self) -> str:
        return "DefaultValidatorSelector()"


class RulesetValidatorSelector:
    """Selects rules belonging to the requested rulesets.

    ``"default"`` additionally selects rules without a ruleset and ``"*"``
    selects everything.
    """

    def __init__(self, rule_sets_to_execute: Iterable[str] | str):
        self.rule_sets = split_rule_set_names(rule_sets_to_execute)
        self._lowered = {r.lower() for r in self.rule_sets}

    def is_satisfied_by(self, rule: Any, property_path: str, context: "ValidationContext") -> bool:
        rule_sets = _rule_sets_of(rule)

        if not rule_sets and self.rule_sets and _is_include_rule(rule):
            return True

        if not rule_sets and not self.rule_sets:
            _record_executed(context, [DEFAULT_RULE_SET_NAME])
            return True

        if DEFAULT_RULE_SET_NAME in self._lowered:
            if not rule_sets or any(r.lower() == DEFAULT_RULE_SET_NAME for r in rule_sets):
                _record_executed(context, [DEFAULT_RULE_SET_NAME])
                return True

        if rule_sets and self.rule_sets:
            intersection = [r for r in rule_sets if r.lower() in self._lowered]
            if intersection:
                _record_executed(context, intersection)
                return True

        if WILDCARD_RULE_SET_NAME in self.rule_sets:
            _record_executed(context, rule_sets or [DEFAULT_RULE_SET_NAME])
            return True

        return False

    def __repr__(self) -> str:
        return f"RulesetValidatorSelector({self.rule_sets!r})"


class MemberNameValidatorSelector:
    """Selects rules by (possibly nested) property path.

    A requested ``address.city`` selects the ``address`` rule so that its
    child validator runs, and inside the child only ``address.city``. Once a
    top-level property has been selected, every rule of its child validator
    runs unless a nested path was requested. Requested paths may use ``.`` or
    the separator the property chain was built with.
    """

    def __init__(self, member_names: Iterable[str]):
        self.member_names = [name for name in member_names if name]

    @classmethod
    def from_members(cls, members: Iterable[str | Callable]) -> "MemberNameValidatorSelector":
        return cls(member_names_from(members))

    def names_for(self, separator: str) -> list[str]:
        """Requested paths as given and with ``separator`` between segments."""
        if separator == ".":
            return self.member_names
        names = list(self.member_names)
        for name in self.member_names:
            converted = name.replace(".", separator)
            if converted not in names:
                names.append(converted)
        return names

    def is_satisfied_by(self, rule: Any, property_path: str, context: "ValidationContext") -> bool:
        separator = context.property_chain.separator
        names = self.names_for(separator)

        if context.is_child_context and not any(separator in name for name in names):
            return True
        if _is_include_rule(rule):
            return True

        candidates = {property_path, _INDEXER.sub("", property_path)}
        for name in names:
            for path in candidates:
                if name == path or path.startswith(name + separator) or name.startswith(path + separator):
                    return True
        return False

    def __repr__(self) -> str:
        return f"MemberNameValidatorSelector({self.member_names!r})"


class CompositeValidatorSelector:
    """Selects a rule when any of the wrapped selectors does."""

    def __init__(self, selectors: Iterable[ValidatorSelector]):
        self.selectors = list(selectors)

    def is_satisfied_by(self, rule: Any, property_path: str, context: "ValidationContext") -> bool:
        return any(s.is_satisfied_by(rule, property_path, context) for s in self.selectors)

    def __repr__(self) -> str:
        return f"CompositeValidatorSelector({self.selectors!r})"


class PredicateValidatorSelector:
    """Adapts a plain ``(rule, property_path, context) -> bool`` callable."""

    def __init__(self, predicate: Callable[[Any, str, "ValidationContext"], bool]):
        if predicate is None:
            raise ValueError("Cannot pass None as a selector predicate")
        self.predicate = predicate

    def is_satisfied_by(self, rule: Any, property_path: str, context: "ValidationContext") -> bool:
        return bool(self.predicate(rule, property_path, context))


def as_selector(selector: ValidatorSelector | Callable) -> ValidatorSelector:
    if isinstance(selector, ValidatorSelector):
        return selector
    if callable(selector):
        return PredicateValidatorSelector(selector)
    raise TypeError(f"{selector!r} is neither a selector nor a callable")


def member_names_from(members: Iterable[str | Callable]) -> list[str]:
    """Resolve member references (names, dotted paths, named callables) to paths."""
    from .accessors import PropertyAccessor

    names = []
    for member in members:
        if isinstance(member, str):
            names.append(member)
            continue
        name = PropertyAccessor.for_callable(member).member_name
        if not name:
            raise ValueError(f"'{member!r}' does not specify a valid property or field.")
        names.append(name)
    return names
