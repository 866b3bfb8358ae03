"""
API Module - Display client interface.

Exposes the tracker via REST API. A display client:
1. Reads locations and dungeons to draw the map
2. Sets facts (or whole slots) as the player collects items, picks
   medallions and marks dungeons cleared
3. Asks for explanations of why something is (un)available

The service holds one Database; it is process-scoped.
"""

from .schemas import (
    # Requests
    SetFactRequest,
    SetPrizeRequest,
    SetSlotRequest,
    SelectMedallionRequest,
    SetDungeonPrizeRequest,
    # Responses
    FactInfo,
    FactListResponse,
    RuleInfo,
    RuleListResponse,
    LocationInfo,
    LocationListResponse,
    DungeonInfo,
    DungeonListResponse,
    SlotInfo,
    SlotListResponse,
    ResetResponse,
    PrizeResponse,
    PrizeCountsResponse,
    HealthResponse,
    ErrorResponse,
    # Enums
    ErrorCode,
    LocationStatus,
)
from .service import TrackerService
from .app import create_app

__all__ = [
    # Requests
    "SetFactRequest",
    "SetPrizeRequest",
    "SetSlotRequest",
    "SelectMedallionRequest",
    "SetDungeonPrizeRequest",
    # Responses
    "FactInfo",
    "FactListResponse",
    "RuleInfo",
    "RuleListResponse",
    "LocationInfo",
    "LocationListResponse",
    "DungeonInfo",
    "DungeonListResponse",
    "SlotInfo",
    "SlotListResponse",
    "ResetResponse",
    "PrizeResponse",
    "PrizeCountsResponse",
    "HealthResponse",
    "ErrorResponse",
    # Enums
    "ErrorCode",
    "LocationStatus",
    # Service
    "TrackerService",
    "create_app",
]
