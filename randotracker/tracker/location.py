"""
Locations - Pins on the map holding one or more items.

A location binds two facts:
- <id>: its items can be taken
- <id>.visible: its items can be seen, even if not taken

A MergeLocation groups several locations into a single pin, available
only when all of them are and partially available when some are.
"""

from __future__ import annotations
from enum import Enum
from typing import Any

from ..engine_core.environment import Environment, ListenerHandle
from ..engine_core.rule import Combinator, ListRule, LookupRule, Rule
from .events import EventEmitter


class LocationState(Enum):
    """Display state of a location."""
    UNAVAILABLE = "unavailable"  # Neither obtainable nor visible
    VISIBLE = "visible"  # Can see what it is, can't take it
    AVAILABLE = "available"  # Everything can be taken
    PARTIAL = "partial"  # Some (merged) items can be taken


def visible_id(location_id: str) -> str:
    return location_id + ".visible"


class Location(EventEmitter):
    """
    A location on the map.

    Listeners are called with (id, new_state, old_state).
    """

    def __init__(
        self,
        id: str,
        name: str,
        requires: Any = True,
        visible: Any = False,
        x: float = 0,
        y: float = 0,
        items: int = 1,
        type: str = "item",
        cost: int = 0,
    ):
        super().__init__()
        self.id = id
        self.name = name
        self.available_rule = Rule.parse(requires)
        self.visible_rule = Rule.parse(visible)
        self.x = x
        self.y = y
        self.items = items
        self.type = type
        self.cost = cost
        self._env: Environment | None = None
        self._handles: list[ListenerHandle] = []
        self._old_state: LocationState | None = None

    @property
    def total_item_count(self) -> int:
        return self.items

    def is_available(self, environment: Environment | None = None) -> bool:
        environment = self._env if environment is None else environment
        if environment is None:
            return False
        return self.available_rule.evaluate(environment)

    def is_visible(self, environment: Environment | None = None) -> bool:
        environment = self._env if environment is None else environment
        if environment is None:
            return False
        return self.visible_rule.evaluate(environment)

    def get_state(self, environment: Environment | None = None) -> LocationState:
        if self.is_available(environment):
            return LocationState.AVAILABLE
        if self.is_visible(environment):
            return LocationState.VISIBLE
        return LocationState.UNAVAILABLE

    @property
    def state(self) -> LocationState:
        return self.get_state()

    def get_accessible_item_count(self, environment: Environment | None = None) -> int:
        return self.items if self.is_available(environment) else 0

    def get_visible_item_count(self, environment: Environment | None = None) -> int:
        """Items that can be seen but not taken."""
        if self.is_available(environment):
            return 0
        return self.items if self.is_visible(environment) else 0

    def bind(self, environment: Environment) -> None:
        """Bind <id> to the requires rule and <id>.visible to the visible rule."""
        self._unlisten()
        self._env = environment
        environment.set(self.id, self.available_rule)
        environment.set(visible_id(self.id), self.visible_rule)
        self._old_state = self.get_state(environment)
        self._listen(environment, [self.id, visible_id(self.id)])

    def _listen(self, environment: Environment, names: list[str]) -> None:
        for name in names:
            self._handles.append(environment.add_listener(name, self._on_fact_changed))

    def _unlisten(self) -> None:
        if self._env is not None:
            for handle in self._handles:
                self._env.remove_listener(handle.name, handle)
        self._handles = []

    def _on_fact_changed(self, name: str, value: bool, environment: Environment) -> None:
        self._check_state()

    def _check_state(self) -> None:
        new_state = self.get_state()
        if new_state != self._old_state:
            old, self._old_state = self._old_state, new_state
            self.fire(self.id, new_state, old)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.id!r})"

    @staticmethod
    def merge(id: str, name: str, x: float, y: float, locations: list[Location]) -> MergeLocation:
        return MergeLocation(id, name, x, y, locations)


class MergeLocation(Location):
    """A single pin standing for several locations."""

    def __init__(self, id: str, name: str, x: float, y: float, locations: list[Location]):
        if not locations:
            raise ValueError(f"Merge location '{id}' needs at least one location")
        self.sub_locations = list(locations)
        super().__init__(
            id,
            name,
            requires=_all_of([loc.id for loc in self.sub_locations]),
            visible=_all_of([visible_id(loc.id) for loc in self.sub_locations]),
            x=x,
            y=y,
            items=0,
        )

    @property
    def total_item_count(self) -> int:
        return sum(loc.total_item_count for loc in self.sub_locations)

    def get_state(self, environment: Environment | None = None) -> LocationState:
        environment = self._env if environment is None else environment
        partial = False
        available = True
        visible = True
        for location in self.sub_locations:
            if location.is_available(environment):
                partial = True
            else:
                available = False
            if not location.is_visible(environment):
                visible = False
        if available:
            return LocationState.AVAILABLE
        if partial:
            return LocationState.PARTIAL
        return LocationState.VISIBLE if visible else LocationState.UNAVAILABLE

    def get_accessible_item_count(self, environment: Environment | None = None) -> int:
        return sum(loc.get_accessible_item_count(environment) for loc in self.sub_locations)

    def get_visible_item_count(self, environment: Environment | None = None) -> int:
        return sum(loc.get_visible_item_count(environment) for loc in self.sub_locations)

    def bind(self, environment: Environment) -> None:
        super().bind(environment)
        names: list[str] = []
        for location in self.sub_locations:
            names.extend([location.id, visible_id(location.id)])
        self._listen(environment, names)


def _all_of(names: list[str]) -> Rule:
    if len(names) == 1:
        return LookupRule(names[0])
    return ListRule(tuple(LookupRule(n) for n in names), Combinator.ALL)
