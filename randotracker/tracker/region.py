"""
Regions - Areas of the map reachable when their rule holds.
"""

from __future__ import annotations
from typing import Any

from ..engine_core.environment import Environment, ListenerHandle
from ..engine_core.rule import Rule
from .events import EventEmitter


class Region(EventEmitter):
    """
    A region of the map.

    Binding makes the fact named after the region's id reflect its
    "requires" rule. Listeners are called with (id, new_state, old_state).
    """

    def __init__(self, id: str, name: str, requires: Any = True):
        super().__init__()
        self.id = id
        self.name = name
        self.rule = Rule.parse(requires)
        self._env: Environment | None = None
        self._handle: ListenerHandle | None = None
        self._state = False

    def is_available(self, environment: Environment | None = None) -> bool:
        environment = self._env if environment is None else environment
        if environment is None:
            return False
        return self.rule.evaluate(environment)

    def bind(self, environment: Environment) -> None:
        if self._env is not None and self._handle is not None:
            self._env.remove_listener(self.id, self._handle)
        self._env = environment
        environment.set(self.id, self.rule)
        self._state = environment.is_true(self.id)
        self._handle = environment.add_listener(self.id, self._on_fact_changed)

    def _on_fact_changed(self, name: str, value: bool, environment: Environment) -> None:
        if value != self._state:
            old, self._state = self._state, value
            self.fire(self.id, value, old)

    def __repr__(self) -> str:
        return f"Region({self.id!r})"
