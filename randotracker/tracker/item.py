"""
Items - Things the player holds.
"""

from __future__ import annotations

from ..engine_core.environment import Environment, ListenerHandle
from .events import EventEmitter


class Item(EventEmitter):
    """
    An item. The environment fact named after the item's id mirrors held.

    Listeners are called with (id, old_held, new_held).
    """

    def __init__(self, id: str, name: str, default: bool = False, type: str | None = None):
        super().__init__()
        self.id = id
        self.name = name
        self.default = default
        self.type = type
        self._held = default
        self._env: Environment | None = None
        self._handle: ListenerHandle | None = None

    @property
    def held(self) -> bool:
        return self._held

    @held.setter
    def held(self, value: bool):
        value = bool(value)
        if value == self._held:
            return
        old = self._held
        self._held = value
        self.fire(self.id, old, value)
        if self._env is not None:
            self._env.set(self.id, value)

    def reset(self) -> None:
        """Return to the default without touching the environment."""
        env, self._env = self._env, None
        self.held = self.default
        self._env = env

    def bind(self, environment: Environment) -> None:
        """Publish the held state as a fact and follow outside changes to it."""
        if self._env is not None and self._handle is not None:
            self._env.remove_listener(self.id, self._handle)
        self._env = environment
        environment.set(self.id, self._held)
        self._handle = environment.add_listener(self.id, self._on_fact_changed)

    def _on_fact_changed(self, name: str, value: bool, environment: Environment) -> None:
        self.held = value

    def __repr__(self) -> str:
        return f"Item({self.id!r}, held={self._held})"
