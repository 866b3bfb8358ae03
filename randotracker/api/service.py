"""
API Service - Business logic layer between the API and the tracker.

The service:
1. Translates API requests to environment reads and writes
2. Drains coalesced observers after every write
3. Formats responses for display clients

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
Lookups that fail, and requests the database rejects, return an
ErrorResponse instead of raising.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
import logging

from .. import __version__
from ..engine_core.rule import Rule
from ..spec_schema.logic import load_logic
from ..tracker.database import Database, build_database
from ..tracker.dungeon import Dungeon
from ..tracker.explain import describe_items, explain
from ..tracker.location import MergeLocation
from .schemas import (
    DungeonInfo,
    DungeonListResponse,
    ErrorCode,
    ErrorResponse,
    FactInfo,
    FactListResponse,
    HealthResponse,
    LocationInfo,
    LocationListResponse,
    LocationStatus,
    PrizeCountsResponse,
    PrizeResponse,
    ResetResponse,
    RuleInfo,
    RuleListResponse,
    SlotInfo,
    SlotListResponse,
)

logger = logging.getLogger(__name__)


@dataclass
class TrackerService:
    """
    Tracker service for display clients.

    Usage:
        service = TrackerService.from_logic_file("logic.yaml")
        service.set_fact("hookshot", True)
        service.list_locations()
    """
    database: Database = field(default_factory=Database)

    @classmethod
    def from_logic_file(cls, path: str | Path, logic: str | None = None) -> TrackerService:
        return cls(database=build_database(load_logic(path), logic=logic))

    @property
    def environment(self):
        return self.database.environment

    def health(self) -> HealthResponse:
        return HealthResponse(version=__version__, logic_name=self.database.name)

    # =========================================================================
    # Facts
    # =========================================================================

    def list_facts(self) -> FactListResponse:
        facts = [self._fact_info(name) for name in sorted(self.environment.keys())]
        return FactListResponse(facts=facts, count=len(facts))

    def get_fact(self, name: str) -> FactInfo | ErrorResponse:
        if name not in self.environment:
            return _error(ErrorCode.FACT_NOT_FOUND, f"Fact '{name}' not found")
        return self._fact_info(name)

    def set_fact(self, name: str, value: bool) -> FactInfo | ErrorResponse:
        """Set an unbound fact. Rules belong to the logic and can't be replaced."""
        if self.environment.is_bound_to_rule(name):
            return _error(
                ErrorCode.FACT_BOUND_TO_RULE,
                f"Fact '{name}' is derived from a rule",
                details={"rule": str(self.environment.get_bound_rule(name))},
            )
        self.environment.set(name, value)
        self.database.run_pending()
        logger.info("Fact '%s' set to %s", name, value)
        return self._fact_info(name)

    def reset(self) -> ResetResponse:
        self.database.reset()
        self.database.run_pending()
        return ResetResponse(success=True, fact_count=len(self.environment))

    def soft_reset(self) -> ResetResponse:
        self.database.soft_reset()
        self.database.run_pending()
        return ResetResponse(success=True, fact_count=len(self.environment))

    def set_prize_count(self, prize: str, count: int) -> PrizeResponse | ErrorResponse:
        if prize not in self.database.prizes:
            return _error(ErrorCode.PRIZE_NOT_FOUND, f"Prize '{prize}' not found")
        self.database.set_prize_count(prize, count)
        self.database.run_pending()
        collection = self.database.prizes[prize]
        return PrizeResponse(
            prize=prize,
            count=min(count, len(collection)),
            facts={fact: self.environment.is_true(fact) for fact in collection},
        )

    # =========================================================================
    # Rules
    # =========================================================================

    def list_rules(self) -> RuleListResponse:
        rules = [
            self._rule_info(name, rule)
            for name, rule in self.environment.bound_rules().items()
        ]
        return RuleListResponse(rules=rules, count=len(rules))

    def explain_rule(self, name: str) -> RuleInfo | ErrorResponse:
        rule = self.environment.get_bound_rule(name)
        if rule is None:
            return _error(ErrorCode.RULE_NOT_FOUND, f"No rule bound to '{name}'")
        return self._rule_info(name, rule)

    # =========================================================================
    # Entities
    # =========================================================================

    def list_locations(self) -> LocationListResponse:
        locations = []
        for location in self.database.locations.values():
            visible_rule = location.visible_rule
            sub_locations = (
                [sub.id for sub in location.sub_locations]
                if isinstance(location, MergeLocation) else []
            )
            locations.append(LocationInfo(
                location_id=location.id,
                name=location.name,
                x=location.x,
                y=location.y,
                type=location.type,
                state=LocationStatus(location.get_state(self.environment).value),
                cost=location.cost,
                accessible_items=location.get_accessible_item_count(self.environment),
                total_items=location.total_item_count,
                items_description=describe_items(location, self.database),
                requires=explain(location.available_rule, self.database),
                visible_with=(
                    None if visible_rule.is_independent()
                    else explain(visible_rule, self.database)
                ),
                sub_locations=sub_locations,
            ))
        return LocationListResponse(locations=locations, count=len(locations))

    def list_dungeons(self) -> DungeonListResponse:
        dungeons = [self._dungeon_info(dungeon) for dungeon in self.database.dungeons.values()]
        return DungeonListResponse(dungeons=dungeons, count=len(dungeons))

    def select_medallion(self, dungeon_id: str, index: int | None) -> DungeonInfo | ErrorResponse:
        """Pick the medallion a dungeon requires (None: unknown, so all of them)."""
        if dungeon_id not in self.database.dungeons:
            return _error(ErrorCode.DUNGEON_NOT_FOUND, f"Dungeon '{dungeon_id}' not found")
        try:
            self.database.select_medallion(dungeon_id, index)
        except ValueError as e:
            return _error(ErrorCode.VALIDATION_ERROR, str(e), details={"index": index})
        self.database.run_pending()
        return self._dungeon_info(self.database.dungeons[dungeon_id])

    def set_dungeon_prize(
        self, dungeon_id: str, prize: str | None
    ) -> PrizeCountsResponse | ErrorResponse:
        """Assign a dungeon's prize and recount prizes from cleared dungeons."""
        if dungeon_id not in self.database.dungeons:
            return _error(ErrorCode.DUNGEON_NOT_FOUND, f"Dungeon '{dungeon_id}' not found")
        if prize is not None and prize not in self.database.prizes:
            return _error(ErrorCode.PRIZE_NOT_FOUND, f"Prize '{prize}' not found")
        counts = self.database.set_dungeon_prize(dungeon_id, prize)
        self.database.run_pending()
        return PrizeCountsResponse(
            counts=counts,
            dungeon=self._dungeon_info(self.database.dungeons[dungeon_id]),
        )

    # =========================================================================
    # Slots
    # =========================================================================

    def list_slots(self) -> SlotListResponse:
        slots = [self._slot_info(slot) for slot in self.database.slots]
        return SlotListResponse(slots=slots, count=len(slots))

    def set_slot_level(self, slot: str, level: int) -> SlotInfo | ErrorResponse:
        if slot not in self.database.slots:
            return _error(ErrorCode.SLOT_NOT_FOUND, f"Slot '{slot}' not found")
        try:
            self.database.set_slot_level(slot, level)
        except ValueError as e:
            return _error(ErrorCode.VALIDATION_ERROR, str(e), details={"level": level})
        self.database.run_pending()
        logger.info("Slot '%s' set to level %d", slot, level)
        return self._slot_info(slot)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _fact_info(self, name: str) -> FactInfo:
        env = self.environment
        rule = env.get_bound_rule(name)
        return FactInfo(
            name=name,
            value=env.is_true(name),
            bound=rule is not None,
            rule=str(rule) if rule is not None else None,
            dependents=env.dependents_of(name),
        )

    def _rule_info(self, name: str, rule: Rule) -> RuleInfo:
        return RuleInfo(
            name=name,
            value=self.environment.is_true(name),
            rule=str(rule),
            definition=rule.to_definition(),
            explanation=explain(rule, self.database),
            dependencies=rule.unique_dependencies(),
        )

    def _dungeon_info(self, dungeon: Dungeon) -> DungeonInfo:
        env = self.environment
        medallion_rule = env.get_bound_rule(dungeon.medallion) if dungeon.medallion else None
        return DungeonInfo(
            dungeon_id=dungeon.id,
            name=dungeon.name,
            enterable=dungeon.is_enterable(env),
            completable=dungeon.is_completable(env),
            boss_defeatable=dungeon.is_boss_defeatable(env),
            cleared=dungeon.cleared,
            accessible_items=dungeon.get_accessible_item_count(env),
            total_items=dungeon.total_item_count,
            treasure_count=dungeon.treasure_count,
            boss=dungeon.boss.name if dungeon.boss else None,
            medallion=dungeon.medallion,
            medallion_selected=self.database.selected_medallions.get(dungeon.id),
            medallion_requires=(
                explain(medallion_rule, self.database) if medallion_rule is not None else None
            ),
            prize=dungeon.prize,
        )

    def _slot_info(self, slot: str) -> SlotInfo:
        items = self.database.slots[slot]
        return SlotInfo(
            slot=slot,
            level=self.database.slot_level(slot),
            items=items,
            held={item: self.environment.is_true(item) for item in items if item is not None},
        )


def _error(code: ErrorCode, message: str, details: dict | None = None) -> ErrorResponse:
    return ErrorResponse(error=message, error_code=code, details=details)
