"""
Pytest fixtures for Randotracker tests.
"""

import pytest

from ..engine_core.environment import Environment
from ..spec_schema import LogicSpec
from ..tracker import Database, build_database


@pytest.fixture
def env() -> Environment:
    """An empty environment."""
    return Environment()


@pytest.fixture
def sample_logic_data() -> dict:
    """A small logic description covering every entity kind."""
    return {
        "name": "Sample",
        "items": {
            "sword": {"name": "Fighter's Sword", "default": True},
            "bow": {"name": "Bow"},
            "boots": {"name": "Pegasus Boots"},
            "gloves": {"name": "Power Glove"},
            "mitts": {"name": "Titan's Mitt"},
            "hammer": {"name": "Magic Hammer"},
            "hookshot": {"name": "Hookshot"},
            "lamp": {"name": "Lamp"},
            "moonPearl": {"name": "Moon Pearl"},
        },
        "rules": {
            "canLift": {"any": ["gloves", "mitts"]},
        },
        "regions": {
            "darkWorld": {
                "name": "Dark World",
                "requires": ["moonPearl", {"any": ["hammer", "canLift"]}],
            },
        },
        "locations": {
            "kingsTomb": {
                "name": "King's Tomb",
                "location": [10, 20],
                "requires": ["boots", "mitts"],
            },
            "spectacleRock": {
                "name": "Spectacle Rock",
                "location": [30, 5],
                "requires": "hookshot",
                "visible": True,
            },
            "bumperCave": {
                "name": "Bumper Cave",
                "location": [40, 12],
                "requires": ["darkWorld", "hookshot"],
                "visible": "darkWorld",
            },
            "sahasrahla": {
                "name": "Sahasrahla",
                "requires": "greenPendant",
            },
            "sahasrahlaHut": {
                "name": "Sahasrahla's Hut",
                "requires": "boots",
                "items": 3,
            },
            "sahasrahlaArea": {
                "name": "Sahasrahla and Hut",
                "location": [70, 30],
                "merge": ["sahasrahla", "sahasrahlaHut"],
            },
        },
        "dungeons": {
            "easternPalace": {
                "name": "Eastern Palace",
                "location": [90, 40],
                "boss": {
                    "name": "Armos Knights",
                    "access": "lamp",
                    "defeat": "bow",
                },
                "items": [
                    "compass",
                    "map",
                    "cannonball",
                    {"name": "bigKeyChest", "access": "lamp"},
                    {"name": "bigChest", "access": ["lamp", "bow"]},
                ],
            },
        },
        "prizes": {
            "pendant": ["greenPendant", "bluePendant", "redPendant"],
        },
        "logics": {
            "easy": {
                "name": "Easy",
                "rules": {"canLift": "mitts"},
            },
        },
    }


@pytest.fixture
def sample_logic(sample_logic_data: dict) -> LogicSpec:
    """The sample logic description, validated."""
    return LogicSpec.model_validate(sample_logic_data)


@pytest.fixture
def db(sample_logic: LogicSpec) -> Database:
    """A database built and bound from the sample logic."""
    return build_database(sample_logic)


@pytest.fixture
def tracker_logic_data(sample_logic_data: dict) -> dict:
    """The sample logic with equipment slots, a medallion dungeon and dungeon prizes."""
    data = sample_logic_data
    data["items"].update({
        "masterSword": {"name": "Master Sword", "slot": "sword", "upgrades": "sword"},
        "temperedSword": {"name": "Tempered Sword", "slot": "sword", "upgrades": "masterSword"},
        "bombos": {"name": "Bombos", "type": "medallion"},
        "ether": {"name": "Ether", "type": "medallion"},
        "quake": {"name": "Quake", "type": "medallion"},
    })
    data["items"]["sword"]["slot"] = "sword"
    data["items"]["gloves"]["slot"] = "gloves"
    data["items"]["mitts"].update({"slot": "gloves", "upgrades": "gloves"})
    data["slots"] = {
        "sword": ["sword", "masterSword", "temperedSword"],
        "gloves": [None, "gloves", "mitts"],
        "medallions": ["bombos", "ether", "quake"],
    }
    data["dungeons"]["easternPalace"]["prize"] = "pendant"
    data["dungeons"]["miseryMire"] = {
        "name": "Misery Mire",
        "location": [10, 80],
        "medallion": "mireMedallion",
        "enter": ["darkWorld", "mireMedallion", "sword"],
        "boss": {"name": "Vitreous", "defeat": "sword"},
        "items": ["compass", "map", "bigKeyChest", "bigChest"],
    }
    data["prizes"]["crystal"] = ["crystal1", "crystal2"]
    return data


@pytest.fixture
def tracker_db(tracker_logic_data: dict) -> Database:
    """A database built from the logic with slots, medallions and dungeon prizes."""
    return build_database(LogicSpec.model_validate(tracker_logic_data))
