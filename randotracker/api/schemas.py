"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between display clients and the tracker.

Error Codes:
- FACT_NOT_FOUND: The fact was never referenced by anything
- FACT_BOUND_TO_RULE: The fact is derived from a rule and can't be set
- RULE_NOT_FOUND: No rule is bound under that name
- PRIZE_NOT_FOUND: The prize collection does not exist
- DUNGEON_NOT_FOUND: No dungeon has that id
- SLOT_NOT_FOUND: No slot has that id
- VALIDATION_ERROR: The request is well formed but can't be applied
  (a medallion index or slot level out of range)
"""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class ErrorCode(str, Enum):
    """Structured error codes."""
    FACT_NOT_FOUND = "FACT_NOT_FOUND"
    FACT_BOUND_TO_RULE = "FACT_BOUND_TO_RULE"
    RULE_NOT_FOUND = "RULE_NOT_FOUND"
    PRIZE_NOT_FOUND = "PRIZE_NOT_FOUND"
    DUNGEON_NOT_FOUND = "DUNGEON_NOT_FOUND"
    SLOT_NOT_FOUND = "SLOT_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"


class LocationStatus(str, Enum):
    """Location display states."""
    UNAVAILABLE = "unavailable"
    VISIBLE = "visible"
    AVAILABLE = "available"
    PARTIAL = "partial"


# =============================================================================
# Request Models
# =============================================================================

class SetFactRequest(BaseModel):
    """Set a fact that is not bound to a rule."""
    value: bool


class SetPrizeRequest(BaseModel):
    """Set how many prizes of a collection are held."""
    count: int = Field(ge=0, description="Number of prizes held")


class SetSlotRequest(BaseModel):
    """Hold the first `level` items of a slot."""
    level: int = Field(ge=0, description="Number of slot steps held")


class SelectMedallionRequest(BaseModel):
    """Pick the medallion a dungeon requires."""
    index: Optional[int] = Field(
        default=None,
        ge=0,
        description="Position in the medallions slot (null: unknown, all are required)",
    )


class SetDungeonPrizeRequest(BaseModel):
    """Assign the prize a dungeon awards once cleared."""
    prize: Optional[str] = None


# =============================================================================
# Response Models
# =============================================================================

class FactInfo(BaseModel):
    """A single fact."""
    name: str
    value: bool
    bound: bool = Field(description="True if the value is derived from a rule")
    rule: Optional[str] = None
    dependents: list[str] = Field(default_factory=list)


class FactListResponse(BaseModel):
    facts: list[FactInfo]
    count: int


class RuleInfo(BaseModel):
    """A rule bound to a fact."""
    name: str
    value: bool
    rule: str
    definition: Any = None
    explanation: str = ""
    dependencies: list[str] = Field(default_factory=list)


class RuleListResponse(BaseModel):
    rules: list[RuleInfo]
    count: int


class LocationInfo(BaseModel):
    """A map location and what can be done there."""
    location_id: str
    name: str
    x: float
    y: float
    type: str
    state: LocationStatus
    cost: int = 0
    accessible_items: int = 0
    total_items: int = 0
    items_description: str = ""
    requires: str = ""
    visible_with: Optional[str] = None
    sub_locations: list[str] = Field(default_factory=list)


class LocationListResponse(BaseModel):
    locations: list[LocationInfo]
    count: int


class DungeonInfo(BaseModel):
    """A dungeon's progress."""
    dungeon_id: str
    name: str
    enterable: bool
    completable: bool
    boss_defeatable: bool
    cleared: bool
    accessible_items: int
    total_items: int
    treasure_count: int
    boss: Optional[str] = None
    medallion: Optional[str] = None
    medallion_selected: Optional[str] = Field(
        default=None, description="The medallion picked, null while unknown"
    )
    medallion_requires: Optional[str] = None
    prize: Optional[str] = None


class DungeonListResponse(BaseModel):
    dungeons: list[DungeonInfo]
    count: int


class SlotInfo(BaseModel):
    """An equipment slot and how far along it the held items reach."""
    slot: str
    level: int
    items: list[Optional[str]]
    held: dict[str, bool] = Field(default_factory=dict)


class SlotListResponse(BaseModel):
    slots: list[SlotInfo]
    count: int


class ResetResponse(BaseModel):
    success: bool
    fact_count: int


class PrizeResponse(BaseModel):
    prize: str
    count: int
    facts: dict[str, bool]


class PrizeCountsResponse(BaseModel):
    """Prize counts derived from cleared dungeons."""
    counts: dict[str, int]
    dungeon: Optional[DungeonInfo] = None


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    logic_name: str


class ErrorResponse(BaseModel):
    """Standard error body."""
    error: str
    error_code: ErrorCode
    details: Optional[dict[str, Any]] = None
