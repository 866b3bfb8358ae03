"""
FastAPI Application - REST API for tracker display clients.

Endpoints:
    GET    /api/v1/health                    Service health and loaded logic
    GET    /api/v1/facts                     All facts
    GET    /api/v1/facts/{name}              One fact
    PUT    /api/v1/facts/{name}              Set an unbound fact
    POST   /api/v1/reset                     Rebind everything to defaults
    POST   /api/v1/soft-reset                Restore unbound facts to defaults
    PUT    /api/v1/prizes/{prize}            Set how many prizes are held
    GET    /api/v1/rules                     Bound rules
    GET    /api/v1/rules/{name}/explain      Explain a bound rule
    GET    /api/v1/locations                 Map locations and their state
    GET    /api/v1/dungeons                  Dungeon progress
    PUT    /api/v1/dungeons/{id}/medallion   Pick the medallion a dungeon requires
    PUT    /api/v1/dungeons/{id}/prize       Assign a dungeon's prize
    GET    /api/v1/slots                     Equipment slots
    PUT    /api/v1/slots/{slot}              Hold the first N items of a slot

Rules are owned by the logic file: facts bound to a rule can be read but
not set (409 FACT_BOUND_TO_RULE). A dungeon's medallion rule is the one
exception, rebound through its own endpoint.

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Optional
import logging
import os

# Environment configuration
RANDOTRACKER_LOGIC = os.getenv("RANDOTRACKER_LOGIC", None)
RANDOTRACKER_LOGIC_NAME = os.getenv("RANDOTRACKER_LOGIC_NAME", None)
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

logger = logging.getLogger(__name__)


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional TrackerService instance (loads RANDOTRACKER_LOGIC,
            or starts empty, if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from .. import __version__
    from .service import TrackerService
    from .schemas import (
        # Request models
        SelectMedallionRequest,
        SetDungeonPrizeRequest,
        SetFactRequest,
        SetPrizeRequest,
        SetSlotRequest,
        # Response models
        DungeonInfo,
        DungeonListResponse,
        ErrorResponse,
        FactInfo,
        FactListResponse,
        HealthResponse,
        LocationListResponse,
        PrizeCountsResponse,
        PrizeResponse,
        ResetResponse,
        RuleInfo,
        RuleListResponse,
        SlotInfo,
        SlotListResponse,
        # Enums
        ErrorCode,
    )

    app = FastAPI(
        title="Randotracker API",
        description="""
Randomizer tracker - reactive item logic for display clients.

Set the items you hold with `PUT /facts/{name}`; every rule depending on
them is recomputed before the response is sent.

## Error Codes

| Code | Description |
|------|-------------|
| `FACT_NOT_FOUND` | The fact was never referenced |
| `FACT_BOUND_TO_RULE` | The fact is derived from a rule |
| `RULE_NOT_FOUND` | No rule is bound under that name |
| `PRIZE_NOT_FOUND` | The prize collection does not exist |
| `DUNGEON_NOT_FOUND` | No dungeon has that id |
| `SLOT_NOT_FOUND` | No slot has that id |
| `VALIDATION_ERROR` | A medallion index or slot level is out of range |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    # CORS for browser overlays
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Service instance
    if service is not None:
        api_service = service
    elif RANDOTRACKER_LOGIC:
        api_service = TrackerService.from_logic_file(RANDOTRACKER_LOGIC, RANDOTRACKER_LOGIC_NAME)
    else:
        logger.warning("RANDOTRACKER_LOGIC not set; starting with an empty database")
        api_service = TrackerService()

    # =========================================================================
    # Error helpers
    # =========================================================================

    status_codes = {
        ErrorCode.FACT_NOT_FOUND: 404,
        ErrorCode.RULE_NOT_FOUND: 404,
        ErrorCode.PRIZE_NOT_FOUND: 404,
        ErrorCode.DUNGEON_NOT_FOUND: 404,
        ErrorCode.SLOT_NOT_FOUND: 404,
        ErrorCode.FACT_BOUND_TO_RULE: 409,
        ErrorCode.VALIDATION_ERROR: 400,
    }

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code or status_codes.get(error_code, 400),
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    def respond(result):
        if isinstance(result, ErrorResponse):
            return make_error_response(result.error_code, result.error, details=result.details)
        return result

    # =========================================================================
    # Health
    # =========================================================================

    @app.get(
        "/api/v1/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Service health",
    )
    async def health() -> HealthResponse:
        return api_service.health()

    # =========================================================================
    # Fact Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/facts",
        response_model=FactListResponse,
        tags=["Facts"],
        summary="List all facts",
    )
    async def list_facts() -> FactListResponse:
        return api_service.list_facts()

    @app.get(
        "/api/v1/facts/{name}",
        response_model=FactInfo,
        responses={404: {"model": ErrorResponse, "description": "Fact not found"}},
        tags=["Facts"],
        summary="Get a fact",
    )
    async def get_fact(name: str):
        return respond(api_service.get_fact(name))

    @app.put(
        "/api/v1/facts/{name}",
        response_model=FactInfo,
        responses={409: {"model": ErrorResponse, "description": "Fact is bound to a rule"}},
        tags=["Facts"],
        summary="Set an unbound fact",
    )
    async def set_fact(name: str, request: SetFactRequest):
        """
        Set a fact (usually an item) to true or false.

        Everything depending on it is recomputed, and coalesced dungeon
        updates are flushed, before the new value is returned.
        """
        return respond(api_service.set_fact(name, request.value))

    @app.post(
        "/api/v1/reset",
        response_model=ResetResponse,
        tags=["Facts"],
        summary="Reset the tracker",
    )
    async def reset() -> ResetResponse:
        return api_service.reset()

    @app.post(
        "/api/v1/soft-reset",
        response_model=ResetResponse,
        tags=["Facts"],
        summary="Restore unbound facts to their defaults",
    )
    async def soft_reset() -> ResetResponse:
        return api_service.soft_reset()

    @app.put(
        "/api/v1/prizes/{prize}",
        response_model=PrizeResponse,
        responses={404: {"model": ErrorResponse, "description": "Prize not found"}},
        tags=["Facts"],
        summary="Set how many prizes of a collection are held",
    )
    async def set_prize_count(prize: str, request: SetPrizeRequest):
        return respond(api_service.set_prize_count(prize, request.count))

    # =========================================================================
    # Rule Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/rules",
        response_model=RuleListResponse,
        tags=["Rules"],
        summary="List bound rules",
    )
    async def list_rules() -> RuleListResponse:
        return api_service.list_rules()

    @app.get(
        "/api/v1/rules/{name}/explain",
        response_model=RuleInfo,
        responses={404: {"model": ErrorResponse, "description": "Rule not found"}},
        tags=["Rules"],
        summary="Explain a bound rule",
    )
    async def explain_rule(name: str):
        return respond(api_service.explain_rule(name))

    # =========================================================================
    # Entity Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/locations",
        response_model=LocationListResponse,
        tags=["Map"],
        summary="List locations and their state",
    )
    async def list_locations() -> LocationListResponse:
        return api_service.list_locations()

    @app.get(
        "/api/v1/dungeons",
        response_model=DungeonListResponse,
        tags=["Map"],
        summary="List dungeons and their progress",
    )
    async def list_dungeons() -> DungeonListResponse:
        return api_service.list_dungeons()

    @app.put(
        "/api/v1/dungeons/{dungeon_id}/medallion",
        response_model=DungeonInfo,
        responses={
            400: {"model": ErrorResponse, "description": "Medallion can't be picked"},
            404: {"model": ErrorResponse, "description": "Dungeon not found"},
        },
        tags=["Map"],
        summary="Pick the medallion a dungeon requires",
    )
    async def select_medallion(dungeon_id: str, request: SelectMedallionRequest):
        """
        Rebind the dungeon's medallion rule to one medallion, or (index
        null) back to requiring every medallion.
        """
        return respond(api_service.select_medallion(dungeon_id, request.index))

    @app.put(
        "/api/v1/dungeons/{dungeon_id}/prize",
        response_model=PrizeCountsResponse,
        responses={404: {"model": ErrorResponse, "description": "Dungeon or prize not found"}},
        tags=["Map"],
        summary="Assign the prize a dungeon awards",
    )
    async def set_dungeon_prize(dungeon_id: str, request: SetDungeonPrizeRequest):
        return respond(api_service.set_dungeon_prize(dungeon_id, request.prize))

    # =========================================================================
    # Slot Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/slots",
        response_model=SlotListResponse,
        tags=["Slots"],
        summary="List equipment slots",
    )
    async def list_slots() -> SlotListResponse:
        return api_service.list_slots()

    @app.put(
        "/api/v1/slots/{slot}",
        response_model=SlotInfo,
        responses={
            400: {"model": ErrorResponse, "description": "Level out of range"},
            404: {"model": ErrorResponse, "description": "Slot not found"},
        },
        tags=["Slots"],
        summary="Hold the first N items of a slot",
    )
    async def set_slot_level(slot: str, request: SetSlotRequest):
        return respond(api_service.set_slot_level(slot, request.level))

    return app


# For running directly: uvicorn randotracker.api.app:app
app = None
try:
    app = create_app()
except ImportError:
    # FastAPI not installed
    pass
