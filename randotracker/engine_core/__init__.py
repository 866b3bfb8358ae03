"""
Engine Core - Reactive boolean rule/dependency engine.

The engine is the runtime that:
1. Parses rule definitions into immutable Rule trees
2. Binds rules to named facts in an Environment
3. Re-evaluates exactly the facts affected when another fact changes
4. Notifies listeners only when a fact's value actually changes
"""

from .errors import RuleError, CircularDependencyError, InvalidRuleDefinitionError
from .rule import Rule, ConstantRule, LookupRule, ListRule, Combinator, parse_rule
from .definition import RuleDefinition, RuleObject, validate_rule_definition
from .environment import Environment, Value, ListenerHandle
from .coalesce import (
    Scheduler,
    TurnScheduler,
    AsyncioScheduler,
    ImmediateScheduler,
    CoalescedObserver,
)

__all__ = [
    "RuleError",
    "CircularDependencyError",
    "InvalidRuleDefinitionError",
    "Rule",
    "ConstantRule",
    "LookupRule",
    "ListRule",
    "Combinator",
    "parse_rule",
    "RuleDefinition",
    "RuleObject",
    "validate_rule_definition",
    "Environment",
    "Value",
    "ListenerHandle",
    "Scheduler",
    "TurnScheduler",
    "AsyncioScheduler",
    "ImmediateScheduler",
    "CoalescedObserver",
]
