"""
Logic Description - Schema for game-logic files.

A logic description declares every entity the tracker knows about and the
rules that say when each becomes available:

    {
      "items":     {"hookshot": {"name": "Hookshot"}},
      "rules":     {"canLift": {"requires": {"any": ["gloves", "mitts"]}}},
      "regions":   {"darkWorld": {"name": "Dark World", "requires": "moonPearl"}},
      "locations": {"kingsTomb": {"name": "King's Tomb", "location": [10, 20],
                                  "requires": ["boots", "canLift"]}},
      "dungeons":  {"easternPalace": {"name": "Eastern Palace", ...}},
      "slots":     {"medallions": ["bombos", "ether", "quake"]},
      "prizes":    {"pendant": ["pendant1", "pendant2", "pendant3"]},
      "defaults":  ["sword"]
    }

Rule declarations are kept as raw definitions here; they are parsed (and
their shape validated) when the database is built or validate_logic() runs.
Logic files are JSON or YAML.
"""

from __future__ import annotations
from pathlib import Path
from typing import Any, Optional
import json

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Slot listing the medallions a dungeon's medallion rule can be set to
MEDALLIONS_SLOT = "medallions"


class _ConfigModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class ItemConfig(_ConfigModel):
    """An item the player can hold, optionally one step of an equipment slot."""
    name: str
    type: Optional[str] = None
    default: bool = False
    slot: Optional[str] = None
    upgrades: Optional[str] = None


class RuleConfig(_ConfigModel):
    """A named rule, bound under its key in the environment."""
    requires: Any = True
    name: Optional[str] = None
    description: Optional[str] = None


class RegionConfig(_ConfigModel):
    """A region of the map, reachable when its rule holds."""
    name: str
    requires: Any = True


class LocationConfig(_ConfigModel):
    """A pinned location on the map."""
    name: str
    location: tuple[float, float] = (0, 0)
    type: str = "item"
    requires: Any = True
    visible: Any = False
    items: int = 1
    rupees: int = 0
    merge: Optional[list[str]] = None


def _wrap_rule_shorthand(value: Any) -> Any:
    # A rule may be given as a bare definition instead of {"requires": ...}
    if isinstance(value, dict):
        return {
            key: rule if isinstance(rule, dict) and "requires" in rule else {"requires": rule}
            for key, rule in value.items()
        }
    return value


class ChestConfig(_ConfigModel):
    """An item location inside a dungeon."""
    name: str
    access: Any = True
    type: str = "chest"


class BossConfig(_ConfigModel):
    """A dungeon boss: a rule to reach it and a rule to defeat it."""
    name: str
    defeat: Any = True
    access: Any = True
    after_big_key: bool = Field(default=True, alias="afterBigKey")
    prize: bool = True


class DungeonConfig(_ConfigModel):
    """A dungeon with its entry rule, boss and chests."""
    name: str
    location: tuple[float, float] = (0, 0)
    enter: Any = True
    boss: Optional[BossConfig] = None
    items: list[ChestConfig] = Field(default_factory=list)
    keys: int = 0
    not_in_pool: list[str] = Field(default_factory=list, alias="notInPool")
    medallion: Optional[str] = None
    prize: Optional[str] = None

    @field_validator("items", mode="before")
    @classmethod
    def _chest_shorthand(cls, value: Any) -> Any:
        # A bare string is a chest that is always accessible
        if isinstance(value, list):
            return [{"name": v} if isinstance(v, str) else v for v in value]
        return value

    @field_validator("not_in_pool", mode="before")
    @classmethod
    def _single_not_in_pool(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value


class LogicVariant(_ConfigModel):
    """An alternate logic: rules and slots replacing the base ones of the same key."""
    name: str
    rules: dict[str, RuleConfig] = Field(default_factory=dict)
    slots: dict[str, list[Optional[str]]] = Field(default_factory=dict)

    @field_validator("rules", mode="before")
    @classmethod
    def _rule_shorthand(cls, value: Any) -> Any:
        return _wrap_rule_shorthand(value)


class LogicSpec(_ConfigModel):
    """
    A complete game-logic description.

    Entity dicts are keyed by id; the id is the fact name the entity binds.

    Slots list items in upgrade order (null is an empty step). The
    "medallions" slot lists the medallions a dungeon's medallion rule can
    be set to.
    """
    name: str = "logic"
    items: dict[str, ItemConfig] = Field(default_factory=dict)
    rules: dict[str, RuleConfig] = Field(default_factory=dict)
    regions: dict[str, RegionConfig] = Field(default_factory=dict)
    locations: dict[str, LocationConfig] = Field(default_factory=dict)
    dungeons: dict[str, DungeonConfig] = Field(default_factory=dict)
    slots: dict[str, list[Optional[str]]] = Field(default_factory=dict)
    prizes: dict[str, list[str]] = Field(default_factory=dict)
    defaults: list[str] = Field(default_factory=list)
    logics: dict[str, LogicVariant] = Field(default_factory=dict)

    @field_validator("rules", mode="before")
    @classmethod
    def _rule_shorthand(cls, value: Any) -> Any:
        return _wrap_rule_shorthand(value)

    def rules_for(self, logic: str | None = None) -> dict[str, RuleConfig]:
        """
        Base rules with a logic variant applied on top.

        Raises:
            KeyError: if the logic variant does not exist
        """
        rules = dict(self.rules)
        if logic:
            rules.update(self.logics[logic].rules)
        return rules

    def slots_for(self, logic: str | None = None) -> dict[str, list[Optional[str]]]:
        """
        Base slots with a logic variant applied on top.

        Raises:
            KeyError: if the logic variant does not exist
        """
        slots = dict(self.slots)
        if logic:
            slots.update(self.logics[logic].slots)
        return slots

    def entity_ids(self) -> set[str]:
        """Every fact name an entity or named rule declares."""
        ids: set[str] = set(self.items) | set(self.rules) | set(self.regions)
        ids |= set(self.locations)
        ids |= {f"{loc_id}.visible" for loc_id in self.locations}
        for dungeon_id, dungeon in self.dungeons.items():
            ids.add(f"{dungeon_id}.enter")
            ids.add(f"{dungeon_id}.cleared")
            ids |= {f"{dungeon_id}.{chest.name}" for chest in dungeon.items}
            if dungeon.medallion:
                ids.add(dungeon.medallion)
            if dungeon.boss:
                ids.add(f"{dungeon.boss.name}.access")
                ids.add(f"{dungeon.boss.name}.defeat")
        for collection in self.prizes.values():
            ids |= set(collection)
        ids |= set(self.defaults)
        return ids


def load_logic(path: str | Path) -> LogicSpec:
    """
    Load a logic description from a JSON or YAML file.

    Raises:
        FileNotFoundError: if the file does not exist
        pydantic.ValidationError: if the file does not match the schema
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        if path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(f)
        else:
            data = json.load(f)
    return LogicSpec.model_validate(data or {})
