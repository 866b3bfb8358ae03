"""
Tests for rule parsing and evaluation.

Tests:
- Parse table (booleans, strings, lists, any/all objects)
- Empty and single-entry collapsing
- Invalid definitions
- Dependency introspection
"""

import pytest

from ..engine_core import (
    Combinator,
    ConstantRule,
    InvalidRuleDefinitionError,
    ListRule,
    LookupRule,
    Rule,
    parse_rule,
)


class TestParse:
    """Tests for Rule.parse()."""

    def test_booleans_are_shared_constants(self):
        assert Rule.parse(True) is Rule.TRUE
        assert Rule.parse(False) is Rule.FALSE

    def test_none_is_false(self):
        assert Rule.parse(None) is Rule.FALSE

    def test_string_is_lookup(self):
        assert Rule.parse("hookshot") == LookupRule("hookshot")

    def test_list_is_all(self):
        rule = Rule.parse(["foo", "bar"])
        assert rule == ListRule((LookupRule("foo"), LookupRule("bar")), Combinator.ALL)

    def test_all_object(self):
        rule = Rule.parse({"all": ["foo", "bar"]})
        assert isinstance(rule, ListRule)
        assert rule.all

    def test_any_object(self):
        rule = Rule.parse({"any": ["foo", "bar"]})
        assert isinstance(rule, ListRule)
        assert rule.combinator is Combinator.ANY
        assert not rule.all

    def test_any_and_all_object(self):
        """Both parts must hold: ALL(ANY(any-items), ALL(all-items))."""
        rule = Rule.parse({"any": ["a", "b"], "all": ["c", "d"]})
        assert rule == ListRule(
            (
                ListRule((LookupRule("a"), LookupRule("b")), Combinator.ANY),
                ListRule((LookupRule("c"), LookupRule("d")), Combinator.ALL),
            ),
            Combinator.ALL,
        )

    def test_all_string_shorthand_with_any(self):
        """A bare string for "all" is a single-field ALL."""
        rule = Rule.parse({"any": ["a", "b"], "all": "c"})
        assert rule == ListRule(
            (ListRule((LookupRule("a"), LookupRule("b")), Combinator.ANY), LookupRule("c")),
            Combinator.ALL,
        )

    def test_nested_definitions(self):
        rule = Rule.parse({"any": ["hookshot", ["hammer", "gloves"]]})
        assert rule.combinator is Combinator.ANY
        assert rule.children[1] == ListRule(
            (LookupRule("hammer"), LookupRule("gloves")), Combinator.ALL
        )

    def test_single_entry_collapses(self):
        assert Rule.parse(["foo"]) == LookupRule("foo")
        assert Rule.parse({"any": ["foo"]}) == LookupRule("foo")

    def test_requires_declaration(self):
        rule = parse_rule({"requires": ["foo", "bar"], "name": "Foo and Bar"})
        assert rule.unique_dependencies() == ["foo", "bar"]
        assert rule.name == "Foo and Bar"

    def test_name_does_not_affect_equality(self):
        assert Rule.parse({"all": ["a", "b"], "name": "Named"}) == Rule.parse(["a", "b"])

    def test_parse_passes_rules_through(self):
        rule = LookupRule("foo")
        assert Rule.parse(rule) is rule


class TestEmptyRules:
    """Tests for empty any/all."""

    def test_empty_any_is_always_false(self, env):
        rule = Rule.parse({"any": []})
        env.set("anything", True)
        assert rule.evaluate(env) is False
        assert rule.is_always_false()

    def test_empty_any_ignores_all(self, env):
        rule = Rule.parse({"any": [], "all": ["foo"]})
        env.set("foo", True)
        assert rule.evaluate(env) is False

    def test_empty_all_is_always_true(self, env):
        rule = Rule.parse({"all": []})
        assert rule.evaluate(env) is True
        assert rule.is_always_true()

    def test_empty_list_is_always_true(self, env):
        assert Rule.parse([]).evaluate(env) is True

    def test_direct_empty_list_rule_fails(self):
        with pytest.raises(InvalidRuleDefinitionError):
            ListRule((), Combinator.ANY)


class TestInvalidDefinitions:
    """Tests for malformed definitions."""

    @pytest.mark.parametrize("definition", [
        42,
        3.5,
        {"name": "nothing to combine"},
        {"none": ["a"]},
        ["a", 1],
        ["a", None],
        {"any": [1]},
        {"all": {"any": "a"}},
    ])
    def test_invalid_definition_raises(self, definition):
        with pytest.raises(InvalidRuleDefinitionError) as exc_info:
            Rule.parse(definition)
        assert exc_info.value.definition == definition

    def test_error_is_raised_at_parse_time(self):
        """No rule is produced from a bad fragment nested deep inside."""
        with pytest.raises(InvalidRuleDefinitionError):
            Rule.parse({"any": ["a", {"all": ["b", {"any": [7]}]}]})


class TestEvaluate:
    """Tests for rule evaluation."""

    def test_lookup_of_unknown_fact_is_false(self, env):
        assert LookupRule("never").evaluate(env) is False

    def test_all_requires_every_child(self, env):
        rule = Rule.parse(["foo", "bar"])
        env.set("foo", True)
        assert rule.evaluate(env) is False
        env.set("bar", True)
        assert rule.evaluate(env) is True

    def test_any_requires_one_child(self, env):
        rule = Rule.parse({"any": ["foo", "bar"]})
        assert rule.evaluate(env) is False
        env.set("bar", True)
        assert rule.evaluate(env) is True

    def test_evaluate_does_not_create_facts(self, env):
        Rule.parse({"any": ["foo", ["bar", "baz"]]}).evaluate(env)
        assert len(env) == 0


class TestDependencies:
    """Tests for dependency introspection."""

    def test_unique_dependencies_first_seen_order(self):
        rule = Rule.parse({"any": ["b", ["a", "b"]], "all": ["c", "a"]})
        assert rule.unique_dependencies() == ["b", "a", "c"]
        assert rule.unique_dependency_set() == {"a", "b", "c"}

    def test_constants_contribute_nothing(self):
        rule = Rule.parse([True, "foo", {"any": [False, "bar"]}])
        assert rule.unique_dependency_set() == {"foo", "bar"}

    def test_depends_on(self):
        rule = Rule.parse({"any": ["foo", ["bar", "baz"]]})
        assert rule.depends_on("baz")
        assert not rule.depends_on("qux")

    def test_independent_rules(self):
        assert Rule.TRUE.is_independent()
        assert Rule.parse([True, True]).is_always_true()
        assert Rule.parse({"any": [False, False]}).is_always_false()

    def test_dependent_rule_is_neither_always_true_nor_false(self):
        rule = Rule.parse("foo")
        assert not rule.is_independent()
        assert not rule.is_always_true()
        assert not rule.is_always_false()


class TestRendering:
    """Tests for str() and to_definition()."""

    def test_str(self):
        assert str(Rule.parse(["a", {"any": ["b", "c"]}])) == "[Rule all (a, (any (b, c)))]"
        assert str(Rule.TRUE) == "[Rule true]"

    def test_to_definition_reparses_equal(self):
        rule = Rule.parse({"any": ["a", ["b", "c"]], "all": ["d", "e"]})
        assert Rule.parse(rule.to_definition()) == rule

    def test_constant_rule_equality(self):
        assert ConstantRule(True) == Rule.TRUE
        assert ConstantRule(True, name="Yes") == Rule.TRUE
