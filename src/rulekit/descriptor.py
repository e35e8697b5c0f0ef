"""Read-only view of a validator's rules, for tooling that needs metadata without validating."""

from collections import defaultdict
from typing import Any

from .internal.selectors import DEFAULT_RULE_SET_NAME
from .rules import CollectionPropertyRule
from .validators.base import validator_name


class ValidatorDescriptor:
    """Describes the rules of one validator, keyed by property name.

    Rules pulled in with ``include`` are flattened in; model-level rules are
    listed under the empty property name.
    """

    def __init__(self, rules: list[Any]):
        self.rules = list(rules)

    def _flattened(self) -> list[Any]:
        flattened = []
        for rule in self.rules:
            if rule.is_include_rule:
                if rule.validator is not None:
                    flattened.extend(ValidatorDescriptor(rule.validator.rules)._flattened())
                continue
            flattened.append(rule)
        return flattened

    def get_name(self, property_name: str) -> str | None:
        """Display name of the first rule declared for ``property_name``."""
        for rule in self.get_rules_for_member(property_name):
            return rule.get_display_name()
        return None

    def get_members_with_validators(self) -> dict[str, list[Any]]:
        members: dict[str, list[Any]] = defaultdict(list)
        for rule in self._flattened():
            members[rule.property_name or ""].extend(c.validator for c in rule.components)
        return dict(members)

    def get_validators_for_member(self, property_name: str) -> list[Any]:
        return self.get_members_with_validators().get(property_name, [])

    def get_rules_for_member(self, property_name: str) -> list[Any]:
        return [rule for rule in self._flattened() if (rule.property_name or "") == property_name]

    def get_rules_by_rule_set(self) -> dict[str, list[Any]]:
        rule_sets: dict[str, list[Any]] = defaultdict(list)
        for rule in self._flattened():
            for name in rule.rule_sets or [DEFAULT_RULE_SET_NAME]:
                rule_sets[name].append(rule)
        return dict(rule_sets)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        members = {}
        for rule in self._flattened():
            entry = members.setdefault(rule.property_name or "", {
                "display_name": rule.get_display_name(),
                "validators": [],
                "rule_sets": [],
                "collection": False,
            })
            entry["validators"].extend(validator_name(c.validator) for c in rule.components)
            for name in rule.rule_sets or [DEFAULT_RULE_SET_NAME]:
                if name not in entry["rule_sets"]:
                    entry["rule_sets"].append(name)
            entry["collection"] = entry["collection"] or isinstance(rule, CollectionPropertyRule)
        return {"members": members}
