"""
Tracker Database - Every entity of a logic description bound to one
environment.

The database owns:
- The Environment every entity publishes its facts into
- Named rules, items, regions, locations and dungeons
- Prize collections (facts counting how many pendants/crystals are held),
  filled in from the prizes assigned to cleared dungeons
- Slots: equipment listed in upgrade order, and the medallions a dungeon
  may require
- Default facts that start out true
- The TurnScheduler that coalesced observers (dungeons) defer to

Usage:
    db = build_database(load_logic("logic.yaml"))
    db.environment.set("hookshot", True)
    db.run_pending()   # let dungeons publish their coalesced changes
    db.select_medallion("miseryMire", 0)
"""

from __future__ import annotations
from typing import Iterable
import logging

from ..engine_core.coalesce import TurnScheduler
from ..engine_core.environment import Environment
from ..engine_core.rule import Rule, parse_rule
from ..spec_schema.logic import MEDALLIONS_SLOT, LogicSpec
from ..spec_schema.validation import validate_logic
from .dungeon import Boss, Dungeon, DungeonItem
from .item import Item
from .location import Location
from .region import Region

logger = logging.getLogger(__name__)


class Database:
    """
    Entities and the environment they are bound to.

    Entities are bound once on creation and again by every reset(), which
    discards the whole environment first so no listener from an earlier
    binding survives.
    """

    def __init__(
        self,
        rules: dict[str, Rule] | None = None,
        items: Iterable[Item] = (),
        regions: Iterable[Region] = (),
        locations: Iterable[Location] = (),
        dungeons: Iterable[Dungeon] = (),
        prizes: dict[str, list[str]] | None = None,
        slots: dict[str, list[str | None]] | None = None,
        defaults: Iterable[str] = (),
        name: str = "logic",
        scheduler: TurnScheduler | None = None,
    ):
        self.name = name
        self.environment = Environment()
        self.scheduler = scheduler or TurnScheduler()
        self.rules: dict[str, Rule] = dict(rules or {})
        self.items: dict[str, Item] = {item.id: item for item in items}
        self.regions: dict[str, Region] = {region.id: region for region in regions}
        self.locations: dict[str, Location] = {loc.id: loc for loc in locations}
        self.dungeons: dict[str, Dungeon] = {dungeon.id: dungeon for dungeon in dungeons}
        self.prizes: dict[str, list[str]] = dict(prizes or {})
        self.slots: dict[str, list[str | None]] = dict(slots or {})
        self.defaults: list[str] = list(defaults)
        # Dungeon id to the medallion picked for it; absent means unknown
        self.selected_medallions: dict[str, str] = {}
        self.reset()

    def reset(self) -> None:
        """
        Reset everything to defaults.

        The environment is cleared (dropping every listener, including ones
        added by display layers) and every entity is bound again. Medallion
        picks and dungeon prize assignments return to their defaults.
        """
        self.scheduler.clear()
        env = self.environment
        env.clear()

        for rule_id, rule in self.rules.items():
            env.set(rule_id, rule)
        self.selected_medallions = {}
        for dungeon in self.dungeons.values():
            dungeon.reset()
            if dungeon.medallion and dungeon.medallion not in self.rules and self._medallions():
                env.set(dungeon.medallion, self._medallion_rule(None))
        for item in self.items.values():
            item.reset()
            item.bind(env)
        for region in self.regions.values():
            region.bind(env)
        for location in self.locations.values():
            location.bind(env)
        for dungeon in self.dungeons.values():
            dungeon.bind(env, self.scheduler)
            env.add_listener(dungeon.cleared_id, self._on_cleared)
        for fact in self.defaults:
            env.set(fact, True)

        logger.debug("Database '%s' reset: %d facts", self.name, len(env))

    def soft_reset(self) -> None:
        """
        Return every fact not bound to a rule to its default.

        Listeners are kept and fire as facts change back. Medallion picks
        and dungeon prize assignments are kept.
        """
        defaults = set(self.defaults)
        env = self.environment
        for fact in env.keys():
            if not env.is_bound_to_rule(fact):
                env.set(fact, fact in defaults)

    def set_prize_count(self, prize: str, count: int) -> None:
        """
        Mark the first `count` facts of a prize collection as held.

        Raises:
            KeyError: if the prize collection does not exist
        """
        collection = self.prizes[prize]
        for i, fact in enumerate(collection):
            self.environment.set(fact, i < count)

    def set_dungeon_prize(self, dungeon_id: str, prize: str | None) -> dict[str, int]:
        """
        Assign the prize a dungeon awards once cleared (None for no prize).

        Returns the prize counts update_prizes() derived.

        Raises:
            KeyError: if the dungeon or the prize collection does not exist
        """
        dungeon = self.dungeons[dungeon_id]
        if prize is not None and prize not in self.prizes:
            raise KeyError(prize)
        dungeon.prize = prize
        return self.update_prizes()

    def update_prizes(self) -> dict[str, int]:
        """
        Set every prize collection from the dungeons that have been cleared.

        Each cleared dungeon counts once towards the prize assigned to it.
        """
        counts = dict.fromkeys(self.prizes, 0)
        for dungeon in self.dungeons.values():
            if dungeon.prize in counts and dungeon.cleared:
                counts[dungeon.prize] += 1
        for prize, count in counts.items():
            self.set_prize_count(prize, count)
        return counts

    def _on_cleared(self, name: str, value: bool, environment: Environment) -> None:
        dungeon = self.dungeons[name[: -len(".cleared")]]
        # Collections are only derived once a cleared dungeon has a prize
        if dungeon.prize is not None:
            self.update_prizes()

    def select_medallion(self, dungeon_id: str, index: int | None = None) -> Rule:
        """
        Rebind a dungeon's medallion rule.

        Args:
            dungeon_id: The dungeon
            index: Position in the medallions slot, or None when the
                medallion is unknown (every medallion is then required)

        Returns:
            The rule now bound to the medallion fact

        Raises:
            KeyError: if the dungeon does not exist
            ValueError: if the dungeon has no medallion, no medallions slot
                is declared, or the index is out of range
        """
        dungeon = self.dungeons[dungeon_id]
        if not dungeon.medallion:
            raise ValueError(f"Dungeon '{dungeon_id}' has no medallion")
        medallions = self._medallions()
        if not medallions:
            raise ValueError(f"No '{MEDALLIONS_SLOT}' slot declared")
        if index is not None and not 0 <= index < len(medallions):
            raise ValueError(
                f"Medallion index {index} out of range (0-{len(medallions) - 1})"
            )

        rule = self._medallion_rule(index)
        self.environment.set(dungeon.medallion, rule)
        if index is None:
            self.selected_medallions.pop(dungeon_id, None)
        else:
            self.selected_medallions[dungeon_id] = medallions[index]
        logger.info("Medallion for '%s' set to %s", dungeon_id, rule)
        return rule

    def _medallions(self) -> list[str]:
        return [m for m in self.slots.get(MEDALLIONS_SLOT, []) if m is not None]

    def _medallion_rule(self, index: int | None) -> Rule:
        medallions = self._medallions()
        if index is None:
            return Rule.parse(medallions)
        return Rule.parse(medallions[index])

    def slot_level(self, slot: str) -> int:
        """
        How far along a slot the held items reach: the position after the
        last held item, 0 if none is held.

        Raises:
            KeyError: if the slot does not exist
        """
        level = 0
        for i, item_id in enumerate(self.slots[slot]):
            if item_id is not None and self.environment.is_true(item_id):
                level = i + 1
        return level

    def set_slot_level(self, slot: str, level: int) -> None:
        """
        Hold the first `level` items of a slot and none of the rest.

        Raises:
            KeyError: if the slot does not exist
            ValueError: if the level is negative or past the end of the slot
        """
        entries = self.slots[slot]
        if not 0 <= level <= len(entries):
            raise ValueError(f"Slot '{slot}' level {level} out of range (0-{len(entries)})")
        for i, item_id in enumerate(entries):
            if item_id is not None:
                self.environment.set(item_id, i < level)

    def run_pending(self) -> int:
        """Run coalesced observers waiting on the scheduler."""
        return self.scheduler.run_pending()

    def display_name(self, fact: str) -> str | None:
        """Human readable name of the entity publishing a fact, if any."""
        for entities in (self.items, self.regions, self.locations, self.dungeons):
            entity = entities.get(fact)
            if entity is not None:
                return entity.name
        return None


def build_database(
    spec: LogicSpec,
    logic: str | None = None,
    scheduler: TurnScheduler | None = None,
) -> Database:
    """
    Build and bind a Database from a logic description.

    Args:
        spec: The logic description
        logic: Optional logic variant whose rules replace the base rules
        scheduler: Scheduler for coalesced observers (a new TurnScheduler
            if not given)

    Raises:
        LogicValidationError: if the description has errors
        CircularDependencyError: if its rules depend on themselves
        KeyError: if the logic variant does not exist
    """
    result = validate_logic(spec)
    for warning in result.warnings:
        logger.warning("%s", warning)
    result.raise_for_errors()

    rules = {
        rule_id: parse_rule({"requires": config.requires, "name": config.name})
        for rule_id, config in spec.rules_for(logic).items()
    }

    items = [
        Item(item_id, config.name, default=config.default, type=config.type)
        for item_id, config in spec.items.items()
    ]

    regions = [
        Region(region_id, config.name, config.requires)
        for region_id, config in spec.regions.items()
    ]

    locations: dict[str, Location] = {}
    for loc_id, config in spec.locations.items():
        if config.merge:
            continue
        locations[loc_id] = Location(
            loc_id,
            config.name,
            requires=config.requires,
            visible=config.visible,
            x=config.location[0],
            y=config.location[1],
            items=config.items,
            type=config.type,
            cost=config.rupees,
        )
    for loc_id, config in spec.locations.items():
        if config.merge:
            locations[loc_id] = Location.merge(
                loc_id,
                config.name,
                config.location[0],
                config.location[1],
                [locations[sub_id] for sub_id in config.merge],
            )

    dungeons = []
    for dungeon_id, config in spec.dungeons.items():
        boss = None
        if config.boss is not None:
            boss = Boss(
                config.boss.name,
                defeat=config.boss.defeat,
                access=config.boss.access,
                has_prize=config.boss.prize,
            )
        dungeons.append(Dungeon(
            dungeon_id,
            config.name,
            enter=config.enter,
            boss=boss,
            items=[DungeonItem(chest.name, chest.access, chest.type) for chest in config.items],
            keys=config.keys,
            x=config.location[0],
            y=config.location[1],
            not_in_pool=config.not_in_pool,
            medallion=config.medallion,
            prize=config.prize,
        ))

    defaults = list(spec.defaults)
    defaults.extend(item_id for item_id, config in spec.items.items() if config.default)

    logger.info(
        "Building database '%s' (%s): %d rules, %d items, %d regions, %d locations, %d dungeons",
        spec.name, logic or "base", len(rules), len(items), len(regions),
        len(locations), len(dungeons),
    )

    return Database(
        rules=rules,
        items=items,
        regions=regions,
        locations=locations.values(),
        dungeons=dungeons,
        prizes=spec.prizes,
        slots=spec.slots_for(logic),
        defaults=defaults,
        name=spec.name,
        scheduler=scheduler,
    )
