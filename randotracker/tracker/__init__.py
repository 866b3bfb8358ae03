"""
Tracker - Entities that publish their facts into an environment.

Entities wrap the engine for display layers:
- Items mirror a held flag into a fact
- Regions, locations and dungeons bind their rules under their ids
- Each fires its own change events for UI updates

The Database binds all of them to one environment and can reset it.
"""

from .events import EventEmitter
from .item import Item
from .region import Region
from .location import Location, MergeLocation, LocationState
from .dungeon import Dungeon, Boss, DungeonItem
from .database import Database, build_database
from .explain import explain, describe_items

__all__ = [
    "EventEmitter",
    "Item",
    "Region",
    "Location",
    "MergeLocation",
    "LocationState",
    "Dungeon",
    "Boss",
    "DungeonItem",
    "Database",
    "build_database",
    "explain",
    "describe_items",
]
