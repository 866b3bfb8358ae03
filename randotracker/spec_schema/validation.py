"""
Logic Validation - Checks a logic description before it is loaded.

Validates that:
1. Every rule declaration parses
2. Ids are unique across entity kinds
3. Merge locations reference declared, unmerged locations
4. Logic variants only replace declared rules
5. Rules look up facts something declares (warning only)
6. Chest names don't shadow a dungeon's own facts
7. Slots hold declared items, and dungeon prizes name prize collections
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any

from ..engine_core.errors import InvalidRuleDefinitionError
from ..engine_core.rule import Rule, parse_rule
from .logic import MEDALLIONS_SLOT, LogicSpec

# Facts every dungeon binds under its own id
RESERVED_CHEST_NAMES = ("enter", "cleared")


class LogicValidationError(Exception):
    """Raised when a logic description fails validation."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Logic validation failed with {len(errors)} error(s)")


@dataclass
class ValidationResult:
    """Result of validation, with errors and warnings."""
    valid: bool
    errors: list[str]
    warnings: list[str]

    def raise_for_errors(self):
        if self.errors:
            raise LogicValidationError(self.errors)


def validate_logic(spec: LogicSpec) -> ValidationResult:
    """
    Validate a complete logic description.

    Returns ValidationResult with errors and warnings.
    """
    errors: list[str] = []
    warnings: list[str] = []

    declared = spec.entity_ids()

    # Duplicate ids across entity kinds
    seen: dict[str, str] = {}
    for kind, ids in (
        ("item", spec.items),
        ("rule", spec.rules),
        ("region", spec.regions),
        ("location", spec.locations),
        ("dungeon", spec.dungeons),
    ):
        for entity_id in ids:
            if entity_id in seen:
                errors.append(
                    f"{kind.capitalize()} '{entity_id}' reuses the id of a {seen[entity_id]}"
                )
            else:
                seen[entity_id] = kind

    # Parse every rule declaration
    rules: list[tuple[str, Rule]] = []
    for where, definition in _collect_definitions(spec):
        try:
            rules.append((where, parse_rule(definition)))
        except InvalidRuleDefinitionError as e:
            errors.append(f"{where}: {e}")

    for where, rule in rules:
        for name in rule.unique_dependencies():
            if name not in declared:
                warnings.append(f"{where} looks up undeclared fact '{name}'")

    # Merge locations
    for loc_id, location in spec.locations.items():
        for sub_id in location.merge or []:
            if sub_id not in spec.locations:
                errors.append(f"Location '{loc_id}' merges unknown location '{sub_id}'")
            elif sub_id == loc_id:
                errors.append(f"Location '{loc_id}' merges itself")
            elif spec.locations[sub_id].merge:
                errors.append(f"Location '{loc_id}' merges merge location '{sub_id}'")

    # Logic variants
    for logic_id, variant in spec.logics.items():
        for rule_id in variant.rules:
            if rule_id not in spec.rules:
                warnings.append(f"Logic '{logic_id}' adds rule '{rule_id}' missing from base rules")

    for dungeon_id, dungeon in spec.dungeons.items():
        if dungeon.keys < 0:
            errors.append(f"Dungeon '{dungeon_id}' has a negative key count")
        names = [chest.name for chest in dungeon.items]
        if len(names) != len(set(names)):
            errors.append(f"Dungeon '{dungeon_id}' has duplicate chest names")
        for name in names:
            if name in RESERVED_CHEST_NAMES:
                errors.append(
                    f"Dungeon '{dungeon_id}' chest '{name}' collides with the dungeon's own "
                    f"'{dungeon_id}.{name}' fact"
                )
        if dungeon.prize is not None and dungeon.prize not in spec.prizes:
            errors.append(f"Dungeon '{dungeon_id}' awards unknown prize '{dungeon.prize}'")
        if (
            dungeon.medallion
            and dungeon.medallion not in spec.rules
            and not spec.slots.get(MEDALLIONS_SLOT)
        ):
            warnings.append(
                f"Dungeon '{dungeon_id}' medallion '{dungeon.medallion}' has no rule "
                f"and no '{MEDALLIONS_SLOT}' slot to choose from"
            )

    # Slots
    slots = [("Slot", spec.slots)]
    slots.extend(
        (f"Logic '{logic_id}' slot", variant.slots) for logic_id, variant in spec.logics.items()
    )
    for label, declared_slots in slots:
        for slot_id, entries in declared_slots.items():
            for item_id in entries:
                if item_id is not None and item_id not in spec.items:
                    errors.append(f"{label} '{slot_id}' holds unknown item '{item_id}'")
    for item_id, item in spec.items.items():
        if item.slot is not None and item.slot not in spec.slots:
            warnings.append(f"Item '{item_id}' belongs to undeclared slot '{item.slot}'")
        if item.upgrades is not None and item.upgrades not in spec.items:
            warnings.append(f"Item '{item_id}' upgrades unknown item '{item.upgrades}'")

    if not spec.items:
        warnings.append("No items defined - logic may be incomplete")

    return ValidationResult(
        valid=len(errors) == 0,
        errors=errors,
        warnings=warnings,
    )


def _collect_definitions(spec: LogicSpec) -> list[tuple[str, Any]]:
    """Every rule declaration in the logic description, labelled with where it came from."""
    definitions: list[tuple[str, Any]] = []

    for rule_id, rule in spec.rules.items():
        definitions.append((f"Rule '{rule_id}'", rule.requires))
    for logic_id, variant in spec.logics.items():
        for rule_id, rule in variant.rules.items():
            definitions.append((f"Logic '{logic_id}' rule '{rule_id}'", rule.requires))
    for region_id, region in spec.regions.items():
        definitions.append((f"Region '{region_id}'", region.requires))
    for loc_id, location in spec.locations.items():
        definitions.append((f"Location '{loc_id}'", location.requires))
        definitions.append((f"Location '{loc_id}' visibility", location.visible))
    for dungeon_id, dungeon in spec.dungeons.items():
        definitions.append((f"Dungeon '{dungeon_id}'", dungeon.enter))
        if dungeon.boss:
            definitions.append((f"Dungeon '{dungeon_id}' boss access", dungeon.boss.access))
            definitions.append((f"Dungeon '{dungeon_id}' boss defeat", dungeon.boss.defeat))
        for chest in dungeon.items:
            definitions.append((f"Dungeon '{dungeon_id}' chest '{chest.name}'", chest.access))

    return definitions
