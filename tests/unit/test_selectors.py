"""Unit tests for validator selectors and rule set handling."""

from types import SimpleNamespace

import pytest

from rulekit.config import ValidatorConfig
from rulekit.context import RULE_SETS_EXECUTED_KEY, ValidationContext
from rulekit.internal.property_chain import PropertyChain
from rulekit.internal.selectors import (
    CompositeValidatorSelector,
    DefaultValidatorSelector,
    MemberNameValidatorSelector,
    PredicateValidatorSelector,
    RulesetValidatorSelector,
    as_selector,
    member_names_from,
    split_rule_set_names,
)
from rulekit.validator import InlineValidator


def make_rule(*rule_sets, include=False):
    return SimpleNamespace(rule_sets=list(rule_sets), is_include_rule=include)


@pytest.fixture
def context():
    return ValidationContext(object())


class TestSplitRuleSetNames:
    """Test legacy delimited rule set strings."""

    def test_splits_on_commas_and_semicolons(self):
        assert split_rule_set_names("a, b;c") == ["a", "b", "c"]

    def test_removes_duplicates_and_blanks(self):
        assert split_rule_set_names(["a", "a,", " ", "b"]) == ["a", "b"]


class TestDefaultValidatorSelector:
    """Test the default selector."""

    def test_selects_rules_without_rule_set(self, context):
        assert DefaultValidatorSelector().is_satisfied_by(make_rule(), "name", context)
        assert context.root_context_data[RULE_SETS_EXECUTED_KEY] == ["default"]

    def test_selects_explicit_default_rule_set(self, context):
        assert DefaultValidatorSelector().is_satisfied_by(make_rule("Default"), "name", context)

    def test_excludes_named_rule_sets(self, context):
        assert not DefaultValidatorSelector().is_satisfied_by(make_rule("A"), "name", context)


class TestRulesetValidatorSelector:
    """Test selection by rule set."""

    def test_excludes_other_rule_sets(self, context):
        selector = RulesetValidatorSelector(["B"])
        assert not selector.is_satisfied_by(make_rule("A"), "name", context)

    def test_includes_requested_rule_set(self, context):
        selector = RulesetValidatorSelector(["A"])
        assert selector.is_satisfied_by(make_rule("A"), "name", context)
        assert context.root_context_data[RULE_SETS_EXECUTED_KEY] == ["A"]

    def test_match_is_case_insensitive(self, context):
        assert RulesetValidatorSelector("a").is_satisfied_by(make_rule("A"), "name", context)

    def test_requested_set_excludes_unnamed_rules(self, context):
        assert not RulesetValidatorSelector(["A"]).is_satisfied_by(make_rule(), "name", context)

    def test_default_selects_unnamed_rules(self, context):
        selector = RulesetValidatorSelector(["default", "A"])
        assert selector.is_satisfied_by(make_rule(), "name", context)
        assert selector.is_satisfied_by(make_rule("A"), "age", context)
        assert not selector.is_satisfied_by(make_rule("B"), "email", context)

    def test_wildcard_selects_everything(self, context):
        selector = RulesetValidatorSelector("*")
        assert selector.is_satisfied_by(make_rule(), "name", context)
        assert selector.is_satisfied_by(make_rule("B"), "age", context)
        assert context.root_context_data[RULE_SETS_EXECUTED_KEY] == ["default", "B"]

    def test_include_rules_are_always_selected(self, context):
        assert RulesetValidatorSelector(["A"]).is_satisfied_by(make_rule(include=True), "", context)

    def test_delimited_string(self, context):
        selector = RulesetValidatorSelector("A;B")
        assert selector.rule_sets == ["A", "B"]
        assert selector.is_satisfied_by(make_rule("B"), "name", context)


class TestMemberNameValidatorSelector:
    """Test selection by property path."""

    def test_exact_match(self, context):
        selector = MemberNameValidatorSelector(["name"])
        assert selector.is_satisfied_by(make_rule(), "name", context)
        assert not selector.is_satisfied_by(make_rule(), "age", context)

    def test_nested_request_selects_parent_rule(self, context):
        selector = MemberNameValidatorSelector(["address.city"])
        assert selector.is_satisfied_by(make_rule(), "address", context)
        assert not selector.is_satisfied_by(make_rule(), "name", context)

    def test_indexers_are_ignored(self, context):
        selector = MemberNameValidatorSelector(["orders.amount"])
        assert selector.is_satisfied_by(make_rule(), "orders[3].amount", context)

    def test_child_context_runs_everything_without_nested_request(self, context):
        child = context.clone_for_child_validator(object())
        selector = MemberNameValidatorSelector(["address"])
        assert selector.is_satisfied_by(make_rule(), "address.street", child)

    def test_nonexistent_property_selects_nothing(self, context):
        selector = MemberNameValidatorSelector(["does_not_exist"])
        assert not selector.is_satisfied_by(make_rule(), "name", context)

    def test_from_members_with_named_function(self):
        def surname(person):
            return person.surname

        assert MemberNameValidatorSelector.from_members(["name", surname]).member_names == ["name", "surname"]

    def test_lambda_members_are_rejected(self):
        with pytest.raises(ValueError):
            member_names_from([lambda p: p.name])


class TestCompositeAndCustomSelectors:
    """Test combining and adapting selectors."""

    def test_composite_selects_when_any_matches(self, context):
        selector = CompositeValidatorSelector([
            MemberNameValidatorSelector(["name"]),
            RulesetValidatorSelector(["A"]),
        ])
        assert selector.is_satisfied_by(make_rule(), "name", context)
        assert selector.is_satisfied_by(make_rule("A"), "age", context)
        assert not selector.is_satisfied_by(make_rule("B"), "age", context)

    def test_callable_becomes_predicate_selector(self, context):
        selector = as_selector(lambda rule, path, ctx: path.startswith("a"))
        assert isinstance(selector, PredicateValidatorSelector)
        assert selector.is_satisfied_by(make_rule(), "age", context)
        assert not selector.is_satisfied_by(make_rule(), "name", context)

    def test_invalid_selector(self):
        with pytest.raises(TypeError):
            as_selector(42)


class TestSelectionThroughValidator:
    """Test selectors applied by a validator."""

    @pytest.fixture
    def validator(self):
        validator = InlineValidator()
        validator.rule_for("name").not_null()
        validator.rule_set("A", lambda: validator.rule_for("age").not_null())
        validator.rule_set("B", lambda: validator.rule_for("email").not_null())
        return validator

    def test_default_pass_skips_rule_sets(self, validator):
        result = validator.validate({})
        assert [f.property_name for f in result.errors] == ["name"]
        assert result.rule_sets_executed == ["default"]

    def test_filter_on_other_rule_set(self, validator):
        result = validator.validate({}, lambda o: o.include_rule_sets("B"))
        assert [f.property_name for f in result.errors] == ["email"]
        assert result.rule_sets_executed == ["B"]

    def test_filter_on_rule_set_and_default(self, validator):
        result = validator.validate({}, lambda o: o.include_rule_sets("A").include_rules_not_in_rule_set())
        assert [f.property_name for f in result.errors] == ["name", "age"]

    def test_all_rule_sets(self, validator):
        result = validator.validate({}, lambda o: o.include_all_rule_sets())
        assert [f.property_name for f in result.errors] == ["name", "age", "email"]

    def test_property_filter(self, validator):
        result = validator.validate({}, lambda o: o.include_properties("name"))
        assert [f.property_name for f in result.errors] == ["name"]

    def test_unknown_property_filter_is_valid(self, validator):
        result = validator.validate({}, lambda o: o.include_properties("nope"))
        assert result.is_valid

    def test_custom_selector(self, validator):
        result = validator.validate({}, lambda o: o.use_custom_selector(lambda rule, path, ctx: path == "email"))
        assert [f.property_name for f in result.errors] == ["email"]


class TestCustomSeparator:
    """Test property filters when the chain uses a configured separator."""

    @pytest.fixture
    def validator(self):
        config = ValidatorConfig(property_chain_separator="/")
        address = InlineValidator(config=config)
        address.rule_for("city").not_null()
        address.rule_for("zip").not_null()

        validator = InlineValidator(config=config)
        validator.rule_for("name").not_null()
        validator.rule_for("address").set_validator(address)
        return validator

    @pytest.fixture
    def person(self):
        return {"name": None, "address": {"city": None, "zip": None}}

    def test_full_pass_uses_separator(self, validator, person):
        result = validator.validate(person)
        assert [f.property_name for f in result.errors] == ["name", "address/city", "address/zip"]

    def test_nested_path_with_separator(self, validator, person):
        result = validator.validate(person, lambda o: o.include_properties("address/city"))
        assert [f.property_name for f in result.errors] == ["address/city"]

    def test_nested_path_with_dots(self, validator, person):
        result = validator.validate(person, lambda o: o.include_properties("address.city"))
        assert [f.property_name for f in result.errors] == ["address/city"]

    def test_parent_path_runs_whole_child(self, validator, person):
        result = validator.validate(person, lambda o: o.include_properties("address"))
        assert [f.property_name for f in result.errors] == ["address/city", "address/zip"]

    def test_selector_reads_separator_from_chain(self):
        chain = PropertyChain(separator="/")
        context = ValidationContext(object(), chain)
        selector = MemberNameValidatorSelector(["address/city"])
        assert selector.is_satisfied_by(make_rule(), "address", context)
        assert not selector.is_satisfied_by(make_rule(), "name", context)
