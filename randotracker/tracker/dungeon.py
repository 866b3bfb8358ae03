"""
Dungeons - Entry rule, boss and chests, tracked as a unit.

A dungeon binds:
- <id>.enter: the dungeon can be entered
- <boss>.access / <boss>.defeat: the boss can be reached / beaten
- <id>.<chest>: each chest can be opened

Its own change event aggregates all of those. Since one user action can
flip many of them, the dungeon recomputes through a CoalescedObserver and
fires at most once per scheduler turn.

The medallion, if any, names a rule the database binds (and rebinds when a
medallion is picked). The prize names the prize collection the dungeon
adds to once it is cleared.
"""

from __future__ import annotations
from typing import Any

from ..engine_core.coalesce import CoalescedObserver, ImmediateScheduler, Scheduler
from ..engine_core.environment import Environment, ListenerHandle
from ..engine_core.rule import Rule
from .events import EventEmitter

# Map, compass and big key are never counted as treasure
DUNGEON_ITEMS = 3


class Boss:
    """A boss, with a rule for reaching it and a separate rule for beating it."""

    def __init__(self, name: str, defeat: Any = True, access: Any = True, has_prize: bool = True):
        self.name = name
        self.defeat_rule = Rule.parse(defeat)
        self.access_rule = Rule.parse(access)
        self.has_prize = has_prize
        self._env: Environment | None = None

    @property
    def access_id(self) -> str:
        return self.name + ".access"

    @property
    def defeat_id(self) -> str:
        return self.name + ".defeat"

    def is_accessible(self, environment: Environment | None = None) -> bool:
        environment = self._env if environment is None else environment
        return environment is not None and self.access_rule.evaluate(environment)

    def is_defeatable(self, environment: Environment | None = None) -> bool:
        environment = self._env if environment is None else environment
        if environment is None:
            return False
        return self.access_rule.evaluate(environment) and self.defeat_rule.evaluate(environment)

    def bind(self, environment: Environment) -> None:
        self._env = environment
        environment.set(self.access_id, self.access_rule)
        environment.set(self.defeat_id, self.defeat_rule)


class DungeonItem:
    """A chest (or other item location) inside a dungeon."""

    def __init__(self, name: str, access: Any = True, type: str = "chest"):
        self.name = name
        self.access_rule = Rule.parse(access)
        self.type = type
        self.id: str | None = None
        self._env: Environment | None = None

    def is_accessible(self, environment: Environment | None = None) -> bool:
        environment = self._env if environment is None else environment
        return environment is not None and self.access_rule.evaluate(environment)

    def bind(self, dungeon_id: str, environment: Environment) -> str:
        """Bind <dungeon_id>.<name> and return that fact name."""
        self._env = environment
        self.id = f"{dungeon_id}.{self.name}"
        environment.set(self.id, self.access_rule)
        return self.id


class Dungeon(EventEmitter):
    """
    A dungeon.

    Listeners are called with (id,) when any of: enterable, boss
    defeatable, or the accessible chest count changed.
    """

    def __init__(
        self,
        id: str,
        name: str,
        enter: Any = True,
        boss: Boss | None = None,
        items: list[DungeonItem] | None = None,
        keys: int = 0,
        x: float = 0,
        y: float = 0,
        not_in_pool: list[str] | None = None,
        medallion: str | None = None,
        prize: str | None = None,
    ):
        super().__init__()
        self.id = id
        self.name = name
        self.enter_rule = Rule.parse(enter)
        self.boss = boss
        self.items = list(items or [])
        self.keys = keys
        self.x = x
        self.y = y
        self.not_in_pool = list(not_in_pool or [])
        self.medallion = medallion
        self.default_prize = prize
        self.prize = prize

        self._item_count = len(self.items) - self.keys - DUNGEON_ITEMS
        if self.boss is not None and self.boss.has_prize:
            self._item_count += 1
        self._item_count += len(self.not_in_pool)

        self._env: Environment | None = None
        self._handles: list[ListenerHandle] = []
        self._observer: CoalescedObserver | None = None
        self._snapshot: tuple[bool, bool, int] | None = None

    @property
    def enter_id(self) -> str:
        return self.id + ".enter"

    @property
    def cleared_id(self) -> str:
        return self.id + ".cleared"

    @property
    def has_prize(self) -> bool:
        return self.boss is not None and self.boss.has_prize

    @property
    def treasure_count(self) -> int:
        """Items that aren't keys, the map, or the compass."""
        return self._item_count

    @property
    def total_item_count(self) -> int:
        """Every randomizer location, keys, map and compass included."""
        return len(self.items)

    @property
    def cleared(self) -> bool:
        return self._env is not None and self._env.is_true(self.cleared_id)

    @cleared.setter
    def cleared(self, value: bool):
        if self._env is None:
            raise RuntimeError(f"Dungeon '{self.id}' is not bound to an environment")
        self._env.set(self.cleared_id, value)

    def reset(self) -> None:
        """Return the prize assignment to its default."""
        self.prize = self.default_prize

    def is_enterable(self, environment: Environment | None = None) -> bool:
        environment = self._env if environment is None else environment
        return environment is not None and self.enter_rule.evaluate(environment)

    def get_accessible_item_count(self, environment: Environment | None = None) -> int:
        """Chests that can be opened (keys, map and compass included)."""
        environment = self._env if environment is None else environment
        if not self.is_enterable(environment):
            return 0
        return sum(1 for item in self.items if item.is_accessible(environment))

    def is_completable(self, environment: Environment | None = None) -> bool:
        """Every chest can be opened (the boss is not considered)."""
        return self.get_accessible_item_count(environment) >= len(self.items)

    def is_boss_defeatable(self, environment: Environment | None = None) -> bool:
        if self.boss is None:
            return True
        environment = self._env if environment is None else environment
        return self.is_enterable(environment) and self.boss.is_defeatable(environment)

    def bind(self, environment: Environment, scheduler: Scheduler | None = None) -> None:
        """
        Bind the dungeon's facts and start watching them.

        Change notifications are coalesced through the scheduler; without
        one the dungeon recomputes on every notification.
        """
        self._unlisten()
        self._env = environment
        self._observer = CoalescedObserver(scheduler or ImmediateScheduler(), self._process_change)

        names = [self.enter_id]
        environment.set(self.enter_id, self.enter_rule)
        if self.boss is not None:
            self.boss.bind(environment)
            names.extend([self.boss.access_id, self.boss.defeat_id])
        for item in self.items:
            names.append(item.bind(self.id, environment))

        self._snapshot = self._take_snapshot()
        for name in names:
            self._handles.append(environment.add_listener(name, self._observer.notify))

    def _unlisten(self) -> None:
        if self._observer is not None:
            self._observer.cancel()
        if self._env is not None:
            for handle in self._handles:
                self._env.remove_listener(handle.name, handle)
        self._handles = []

    def _take_snapshot(self) -> tuple[bool, bool, int]:
        return (
            self.is_enterable(),
            self.is_boss_defeatable(),
            self.get_accessible_item_count(),
        )

    def _process_change(self) -> None:
        snapshot = self._take_snapshot()
        if snapshot != self._snapshot:
            self._snapshot = snapshot
            self.fire(self.id)

    def __repr__(self) -> str:
        return f"Dungeon({self.id!r})"
