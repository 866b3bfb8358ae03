"""Logic description schema - the game-logic file format and its validation."""

from .logic import (
    LogicSpec,
    LogicVariant,
    ItemConfig,
    RuleConfig,
    RegionConfig,
    LocationConfig,
    DungeonConfig,
    BossConfig,
    ChestConfig,
    MEDALLIONS_SLOT,
    load_logic,
)
from .validation import validate_logic, ValidationResult, LogicValidationError

__all__ = [
    "LogicSpec",
    "LogicVariant",
    "ItemConfig",
    "RuleConfig",
    "RegionConfig",
    "LocationConfig",
    "DungeonConfig",
    "BossConfig",
    "ChestConfig",
    "MEDALLIONS_SLOT",
    "load_logic",
    "validate_logic",
    "ValidationResult",
    "LogicValidationError",
]
