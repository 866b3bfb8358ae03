"""
Environment - Mutable store of named boolean facts.

Each fact is held by a Value node owned by the environment. A fact either
holds a literal boolean or is bound to a Rule, in which case its value is
always the rule's evaluation against the environment.

The environment keeps a dependency graph: every fact records the names of
the facts whose bound rules read it (its dependents). Changing a fact
re-evaluates exactly those dependents, cascading further as needed, and
only then notifies the fact's listeners. A fact whose value does not change
fires nothing.

Everything runs synchronously: a call to set() completes the whole cascade
before returning. Binding rules never creates cycles, so cascades are finite.

Usage:
    env = Environment()
    env.set("foo", True)
    env.set("rule", Rule.parse(["foo", "bar"]))
    env.add_listener("rule", lambda name, value, env: print(name, value))
    env.set("bar", True)   # prints: rule True
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Iterator
import itertools
import logging

from .errors import CircularDependencyError
from .rule import Rule

logger = logging.getLogger(__name__)

Listener = Callable[[str, bool, "Environment"], None]

_handle_ids = itertools.count(1)


@dataclass(frozen=True)
class ListenerHandle:
    """
    Token identifying one listener registration.

    Returned by Environment.add_listener() so a registration can be removed
    exactly, even when the same function was registered more than once.
    """
    name: str
    handle_id: int


@dataclass
class _Registration:
    handle: ListenerHandle
    listener: Listener


@dataclass
class Value:
    """
    A single fact within an environment.

    Invariant: when bound_rule is set, current equals
    bound_rule.evaluate(environment), and this fact's name is registered as
    a dependent of every name in bound_rule.unique_dependency_set().
    """
    name: str
    current: bool = False
    bound_rule: Rule | None = None

    # Names of facts whose bound rule reads this fact (insertion ordered)
    dependents: dict[str, None] = field(default_factory=dict)
    listeners: list[_Registration] = field(default_factory=list)

    @property
    def is_bound(self) -> bool:
        return self.bound_rule is not None


class Environment:
    """
    Maps fact names to values, with bound rules and change listeners.
    """

    def __init__(self):
        self._values: dict[str, Value] = {}

    # =========================================================================
    # Reads
    # =========================================================================

    def is_true(self, name: str) -> bool:
        """Current value of a fact, False if it was never referenced."""
        value = self._values.get(name)
        return value.current if value is not None else False

    def get(self, name: str) -> bool | None:
        """Current value of a fact, None if it was never referenced."""
        value = self._values.get(name)
        return value.current if value is not None else None

    def keys(self) -> Iterator[str]:
        """Names of every created fact, including ones only listened to."""
        return iter(list(self._values))

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)

    def is_bound_to_rule(self, name: str) -> bool:
        value = self._values.get(name)
        return value is not None and value.is_bound

    def get_bound_rule(self, name: str) -> Rule | None:
        value = self._values.get(name)
        return value.bound_rule if value is not None else None

    def bound_rules(self) -> dict[str, Rule]:
        """Every bound fact mapped to its rule, sorted by name."""
        return {
            name: value.bound_rule
            for name, value in sorted(self._values.items())
            if value.bound_rule is not None
        }

    def dependents_of(self, name: str) -> list[str]:
        """Names of the facts whose bound rules read this fact."""
        value = self._values.get(name)
        return list(value.dependents) if value is not None else []

    # =========================================================================
    # Writes
    # =========================================================================

    def set(self, name: str, value: bool | Rule) -> None:
        """
        Set a fact to a boolean or bind it to a rule.

        Binding a rule severs the edges of any rule previously bound to the
        fact, links the new rule's dependencies, and applies its evaluation.
        Setting a boolean detaches the fact from any rule first.

        Raises:
            CircularDependencyError: if the rule reads the fact it is bound
                to, directly or through other bound rules. The environment
                is left exactly as it was.
        """
        if isinstance(value, Rule):
            self._check_circular(name, value)
            node = self._get_or_create(name)
            self._unbind(node)
            self._bind(node, value)
            self._set_evaluated_value(node, value.evaluate(self))
        else:
            node = self._get_or_create(name)
            self._unbind(node)
            self._set_evaluated_value(node, value)

    def unbind(self, name: str) -> None:
        """Detach a fact from its rule, keeping its current value."""
        node = self._values.get(name)
        if node is not None:
            self._unbind(node)

    def clear(self) -> None:
        """Discard every fact with its rule, edges and listeners."""
        self._values = {}

    # =========================================================================
    # Listeners
    # =========================================================================

    def add_listener(self, name: str, listener: Listener) -> ListenerHandle:
        """
        Call listener(name, value, environment) whenever the fact changes.

        A listener added several times is called once per registration.
        """
        node = self._get_or_create(name)
        handle = ListenerHandle(name=name, handle_id=next(_handle_ids))
        node.listeners.append(_Registration(handle=handle, listener=listener))
        return handle

    def remove_listener(self, name: str, listener: Listener | ListenerHandle) -> bool:
        """
        Remove a listener registration.

        Given a handle, removes exactly that registration. Given a function,
        removes its first registration only. Returns whether anything was
        removed.
        """
        node = self._values.get(name)
        if node is None:
            return False
        for i, registration in enumerate(node.listeners):
            if isinstance(listener, ListenerHandle):
                matched = registration.handle == listener
            else:
                matched = registration.listener == listener
            if matched:
                del node.listeners[i]
                return True
        return False

    # =========================================================================
    # Internals
    # =========================================================================

    def _get_or_create(self, name: str) -> Value:
        node = self._values.get(name)
        if node is None:
            node = Value(name=name)
            self._values[name] = node
        return node

    def _check_circular(self, name: str, rule: Rule) -> None:
        """Raise if binding rule under name would make name reach itself."""
        path = self._find_path(rule.unique_dependencies(), name, [name], set())
        if path is not None:
            raise CircularDependencyError(name, path)

    def _find_path(
        self,
        names: list[str],
        target: str,
        path: list[str],
        seen: set[str],
    ) -> list[str] | None:
        for dep in names:
            if dep == target:
                return path + [dep]
            if dep in seen:
                continue
            seen.add(dep)
            rule = self.get_bound_rule(dep)
            if rule is not None:
                found = self._find_path(rule.unique_dependencies(), target, path + [dep], seen)
                if found is not None:
                    return found
        return None

    def _bind(self, node: Value, rule: Rule) -> None:
        node.bound_rule = rule
        for dep in rule.unique_dependencies():
            self._get_or_create(dep).dependents[node.name] = None

    def _unbind(self, node: Value) -> None:
        if node.bound_rule is None:
            return
        for dep in node.bound_rule.unique_dependencies():
            dep_node = self._values.get(dep)
            if dep_node is not None:
                dep_node.dependents.pop(node.name, None)
        node.bound_rule = None

    def _dependency_changed(self, node: Value) -> None:
        if node.bound_rule is not None:
            self._set_evaluated_value(node, node.bound_rule.evaluate(self))

    def _set_evaluated_value(self, node: Value, value: object) -> None:
        """
        Apply a new value and propagate it.

        Dependents are recomputed before listeners run, so a listener sees
        the fact only after its derived consequences are applied.
        """
        value = bool(value)
        if node.current == value:
            return
        node.current = value

        for dependent in list(node.dependents):
            dependent_node = self._values.get(dependent)
            if dependent_node is not None:
                self._dependency_changed(dependent_node)

        for registration in list(node.listeners):
            try:
                registration.listener(node.name, node.current, self)
            except Exception:
                logger.exception("Listener for '%s' failed", node.name)
