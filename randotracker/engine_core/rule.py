"""
Rules - Immutable boolean expressions over named facts.

A rule is a tree:
- ConstantRule: always evaluates to its value
- LookupRule: evaluates to the environment's current value for a fact
- ListRule: combines its children with ALL (and) or ANY (or)

Rules hold no reference to an environment. They are pure, stateless and can
be shared by any number of facts bound to them at the same time. The optional
name is metadata for explanation UIs and never affects evaluation.

Rules are normally created with Rule.parse() from a configuration value:

    rule = Rule.parse({"any": ["hookshot", ["hammer", "gloves"]]})
    rule.evaluate(environment)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TYPE_CHECKING

from .definition import RuleDefinition, RuleObject, validate_rule_definition
from .errors import InvalidRuleDefinitionError

if TYPE_CHECKING:
    from .environment import Environment


class Combinator(Enum):
    """How a ListRule combines its children."""
    ALL = "all"
    ANY = "any"


class Rule:
    """
    Base class for all rules.

    Subclasses implement evaluate() and _collect_dependencies(); everything
    else is derived from those two.
    """
    name: str | None = None

    TRUE: ConstantRule
    FALSE: ConstantRule

    def evaluate(self, environment: Environment) -> bool:
        """Evaluate this rule against the environment's current facts."""
        raise NotImplementedError

    def _collect_dependencies(self, names: dict[str, None]) -> None:
        raise NotImplementedError

    def unique_dependencies(self) -> list[str]:
        """Names of every fact this rule reads, in first-seen order."""
        names: dict[str, None] = {}
        self._collect_dependencies(names)
        return list(names)

    def unique_dependency_set(self) -> set[str]:
        """Set of every fact name this rule reads."""
        return set(self.unique_dependencies())

    def depends_on(self, name: str) -> bool:
        """Whether evaluating this rule reads the given fact."""
        return name in self.unique_dependency_set()

    def is_independent(self) -> bool:
        """True if the rule reads no facts at all (its value never changes)."""
        return not self.unique_dependencies()

    def is_always_true(self) -> bool:
        """True if the rule is independent and evaluates to True."""
        return self.is_independent() and self._constant_value() is True

    def is_always_false(self) -> bool:
        """True if the rule is independent and evaluates to False."""
        return self.is_independent() and self._constant_value() is False

    def _constant_value(self) -> bool | None:
        return None

    def to_definition(self) -> Any:
        """Convert back into a configuration value Rule.parse() accepts."""
        raise NotImplementedError

    @classmethod
    def parse(cls, definition: Any) -> Rule:
        """
        Parse a rule from a configuration value.

        | definition                  | result                              |
        |-----------------------------|-------------------------------------|
        | True / False / None         | Rule.TRUE / Rule.FALSE / Rule.FALSE |
        | "name"                      | LookupRule("name")                  |
        | [a, b, ...]                 | ALL of the parsed entries           |
        | {"all": [...]}              | ALL of the parsed entries           |
        | {"any": [...]}              | ANY of the parsed entries           |
        | {"any": [...], "all": [...]}| ALL(ANY(...), ALL(...))             |
        | {"requires": <definition>}  | the parsed "requires" definition    |

        Empty "any" is always False, empty "all" (with no "any") is always
        True, and a list of a single entry is that entry's rule.

        Raises:
            InvalidRuleDefinitionError: for any other shape
        """
        return parse_rule(definition)


@dataclass(frozen=True)
class ConstantRule(Rule):
    """A rule that always evaluates to the same value."""
    value: bool
    name: str | None = field(default=None, compare=False)

    def evaluate(self, environment: Environment) -> bool:
        return self.value

    def _collect_dependencies(self, names: dict[str, None]) -> None:
        pass

    def _constant_value(self) -> bool | None:
        return self.value

    def to_definition(self) -> Any:
        return self.value

    def __str__(self) -> str:
        return f"[Rule {_render(self)}]"


@dataclass(frozen=True)
class LookupRule(Rule):
    """A rule that reads a single fact from the environment."""
    field: str
    name: str | None = field(default=None, compare=False)

    def evaluate(self, environment: Environment) -> bool:
        return environment.is_true(self.field)

    def _collect_dependencies(self, names: dict[str, None]) -> None:
        names[self.field] = None

    def depends_on(self, name: str) -> bool:
        return self.field == name

    def to_definition(self) -> Any:
        return self.field

    def __str__(self) -> str:
        return f"[Rule {_render(self)}]"


@dataclass(frozen=True)
class ListRule(Rule):
    """
    A rule combining child rules.

    Never empty: parse() collapses empty lists into constants, and building
    an empty ListRule directly is an error.
    """
    children: tuple[Rule, ...]
    combinator: Combinator = Combinator.ALL
    name: str | None = field(default=None, compare=False)

    def __post_init__(self):
        if not isinstance(self.children, tuple):
            object.__setattr__(self, "children", tuple(self.children))
        if not self.children:
            raise InvalidRuleDefinitionError(
                f"A {self.combinator.value} rule needs at least one child",
                definition=[],
            )

    @property
    def all(self) -> bool:
        """True when this is an ALL (and) rule."""
        return self.combinator is Combinator.ALL

    def evaluate(self, environment: Environment) -> bool:
        if self.combinator is Combinator.ALL:
            return all(child.evaluate(environment) for child in self.children)
        return any(child.evaluate(environment) for child in self.children)

    def _collect_dependencies(self, names: dict[str, None]) -> None:
        for child in self.children:
            child._collect_dependencies(names)

    def _constant_value(self) -> bool | None:
        values = [child._constant_value() for child in self.children]
        if self.combinator is Combinator.ALL:
            return all(values)
        return any(values)

    def to_definition(self) -> Any:
        definition: dict[str, Any] = {
            self.combinator.value: [child.to_definition() for child in self.children]
        }
        if self.name:
            definition["name"] = self.name
        return definition

    def __str__(self) -> str:
        return f"[Rule {_render(self)}]"


Rule.TRUE = ConstantRule(True)
Rule.FALSE = ConstantRule(False)


def _render(rule: Rule) -> str:
    """Compact rendering used by __str__."""
    if isinstance(rule, ConstantRule):
        return "true" if rule.value else "false"
    if isinstance(rule, LookupRule):
        return rule.field
    if isinstance(rule, ListRule):
        inner = ", ".join(
            _render(c) if not isinstance(c, ListRule) else f"({_render(c)})"
            for c in rule.children
        )
        return f"{rule.combinator.value} ({inner})"
    return repr(rule)


def parse_rule(definition: Any) -> Rule:
    """Parse a configuration value into a Rule. See Rule.parse()."""
    if definition is True:
        return Rule.TRUE
    if definition is False or definition is None:
        return Rule.FALSE
    if isinstance(definition, Rule):
        return definition
    if isinstance(definition, dict) and "requires" in definition:
        # Logic file rule declaration: {"name": ..., "requires": ...}
        rule = parse_rule(definition["requires"])
        return _with_name(rule, definition.get("name"))

    validated = validate_rule_definition(definition)
    return _build(validated.root)


def _build(node: Any) -> Rule:
    """Build a Rule from a validated definition node."""
    if isinstance(node, RuleDefinition):
        node = node.root

    if isinstance(node, bool):
        return Rule.TRUE if node else Rule.FALSE

    if isinstance(node, str):
        return LookupRule(node)

    if isinstance(node, list):
        return _combine(_build_list(node), Combinator.ALL)

    if isinstance(node, RuleObject):
        return _with_name(_build_object(node), node.name)

    raise InvalidRuleDefinitionError(f"Invalid rule definition: {node!r}", definition=node)


def _build_list(entries: str | list) -> list[Rule]:
    if isinstance(entries, str):
        # A bare string stands for a one-entry list
        return [LookupRule(entries)]
    return [_build(entry) for entry in entries]


def _build_object(node: RuleObject) -> Rule:
    any_rules = _build_list(node.any_of) if node.any_of is not None else None
    all_rules = _build_list(node.all_of) if node.all_of is not None else None

    # Empty "any" can never match, whatever "all" says
    if any_rules is not None and not any_rules:
        return Rule.FALSE

    if any_rules is None:
        return _combine(all_rules, Combinator.ALL)

    any_rule = _combine(any_rules, Combinator.ANY)
    if not all_rules:
        return any_rule
    return ListRule((any_rule, _combine(all_rules, Combinator.ALL)), Combinator.ALL)


def _combine(rules: list[Rule], combinator: Combinator) -> Rule:
    """Combine rules, collapsing the empty and single-entry cases."""
    if not rules:
        return Rule.TRUE if combinator is Combinator.ALL else Rule.FALSE
    if len(rules) == 1:
        return rules[0]
    return ListRule(tuple(rules), combinator)


def _with_name(rule: Rule, name: str | None) -> Rule:
    if not name:
        return rule
    if isinstance(rule, ConstantRule):
        return ConstantRule(rule.value, name=name)
    if isinstance(rule, LookupRule):
        return LookupRule(rule.field, name=name)
    if isinstance(rule, ListRule):
        return ListRule(rule.children, rule.combinator, name=name)
    return rule
