"""
Tests for API layer.

Tests:
- TrackerService methods
- Medallions, slots and dungeon prizes
- Error responses
- HTTP routes
"""

import pytest

from ..api.schemas import ErrorCode, ErrorResponse, LocationStatus
from ..api.service import TrackerService
from ..spec_schema import LogicSpec
from ..tracker import build_database


@pytest.fixture
def service(db):
    """A service over the sample database."""
    return TrackerService(database=db)


class TestTrackerService:
    """Tests for TrackerService."""

    def test_health(self, service):
        response = service.health()
        assert response.status == "ok"
        assert response.logic_name == "Sample"

    def test_list_facts(self, service):
        response = service.list_facts()
        names = [fact.name for fact in response.facts]
        assert names == sorted(names)
        assert response.count == len(service.environment)

    def test_get_fact(self, service):
        fact = service.get_fact("darkWorld")
        assert fact.bound
        assert fact.value is False
        assert fact.rule.startswith("[Rule all")

        fact = service.get_fact("canLift")
        assert fact.dependents == ["darkWorld"]

    def test_get_unknown_fact(self, service):
        response = service.get_fact("nothing")
        assert isinstance(response, ErrorResponse)
        assert response.error_code == ErrorCode.FACT_NOT_FOUND

    def test_set_fact_cascades(self, service):
        service.set_fact("moonPearl", True)
        fact = service.set_fact("hammer", True)
        assert fact.value is True
        assert not fact.bound
        assert service.get_fact("darkWorld").value is True
        assert service.database.items["hammer"].held

    def test_set_bound_fact_rejected(self, service):
        response = service.set_fact("darkWorld", True)
        assert isinstance(response, ErrorResponse)
        assert response.error_code == ErrorCode.FACT_BOUND_TO_RULE
        assert service.environment.is_bound_to_rule("darkWorld")

    def test_set_fact_flushes_dungeons(self, service):
        events = []
        service.database.dungeons["easternPalace"].add_listener(events.append)
        service.set_fact("lamp", True)
        assert events == ["easternPalace"]
        assert service.database.scheduler.pending == 0

    def test_reset(self, service):
        service.set_fact("hookshot", True)
        response = service.reset()
        assert response.success
        assert service.get_fact("hookshot").value is False

    def test_reset_flushes_dungeons(self, sample_logic_data):
        # Applied after the dungeons are bound, so their update is queued
        sample_logic_data["defaults"] = ["lamp"]
        db = build_database(LogicSpec.model_validate(sample_logic_data))
        service = TrackerService(database=db)
        events = []
        service.database.dungeons["easternPalace"].add_listener(events.append)

        service.reset()
        assert service.database.scheduler.pending == 0
        assert events == ["easternPalace"]
        (dungeon,) = service.list_dungeons().dungeons
        assert dungeon.accessible_items == 4

    def test_soft_reset(self, service):
        service.set_fact("hookshot", True)
        service.soft_reset()
        assert service.get_fact("hookshot").value is False
        assert service.get_fact("sword").value is True

    def test_set_prize_count(self, service):
        response = service.set_prize_count("pendant", 1)
        assert response.facts == {
            "greenPendant": True,
            "bluePendant": False,
            "redPendant": False,
        }
        assert service.set_prize_count("crystal", 1).error_code == ErrorCode.PRIZE_NOT_FOUND

    def test_list_rules(self, service):
        response = service.list_rules()
        names = [rule.name for rule in response.rules]
        assert "canLift" in names
        assert "darkWorld" in names

    def test_explain_rule(self, service):
        info = service.explain_rule("canLift")
        assert info.explanation == "Power Glove or Titan's Mitt"
        assert info.dependencies == ["gloves", "mitts"]
        assert info.definition == {"any": ["gloves", "mitts"]}

    def test_explain_unknown_rule(self, service):
        response = service.explain_rule("hookshot")
        assert response.error_code == ErrorCode.RULE_NOT_FOUND

    def test_list_locations(self, service):
        locations = {loc.location_id: loc for loc in service.list_locations().locations}
        assert locations["spectacleRock"].state == LocationStatus.VISIBLE
        assert locations["spectacleRock"].visible_with is None
        assert locations["bumperCave"].visible_with == "Access to Dark World"
        assert locations["sahasrahlaArea"].sub_locations == ["sahasrahla", "sahasrahlaHut"]
        assert locations["sahasrahlaArea"].total_items == 4

    def test_list_dungeons(self, service):
        (dungeon,) = service.list_dungeons().dungeons
        assert dungeon.dungeon_id == "easternPalace"
        assert dungeon.enterable
        assert dungeon.accessible_items == 3
        assert dungeon.treasure_count == 3
        assert dungeon.boss == "Armos Knights"

    def test_from_logic_file(self, tmp_path, sample_logic_data):
        import json
        path = tmp_path / "logic.json"
        path.write_text(json.dumps(sample_logic_data), encoding="utf-8")
        service = TrackerService.from_logic_file(path, logic="easy")
        assert service.explain_rule("canLift").explanation == "Titan's Mitt"


@pytest.fixture
def tracker_service(tracker_db):
    """A service over the database with slots, medallions and dungeon prizes."""
    return TrackerService(database=tracker_db)


class TestTrackerServiceEquipment:
    """Tests for medallions, slots and dungeon prizes through the service."""

    def test_select_medallion(self, tracker_service):
        tracker_service.set_fact("ether", True)
        info = tracker_service.select_medallion("miseryMire", 1)
        assert info.medallion == "mireMedallion"
        assert info.medallion_selected == "ether"
        assert info.medallion_requires == "Ether"
        assert tracker_service.get_fact("mireMedallion").value is True

        info = tracker_service.select_medallion("miseryMire", None)
        assert info.medallion_selected is None
        assert info.medallion_requires == "Bombos and Ether and Quake"

    def test_select_medallion_errors(self, tracker_service):
        response = tracker_service.select_medallion("miseryMire", 5)
        assert response.error_code == ErrorCode.VALIDATION_ERROR
        assert response.details == {"index": 5}
        response = tracker_service.select_medallion("easternPalace", 0)
        assert response.error_code == ErrorCode.VALIDATION_ERROR
        response = tracker_service.select_medallion("nowhere", 0)
        assert response.error_code == ErrorCode.DUNGEON_NOT_FOUND

    def test_medallion_still_not_settable_as_fact(self, tracker_service):
        response = tracker_service.set_fact("mireMedallion", True)
        assert response.error_code == ErrorCode.FACT_BOUND_TO_RULE

    def test_slots(self, tracker_service):
        slots = {slot.slot: slot for slot in tracker_service.list_slots().slots}
        assert slots["sword"].level == 1
        assert slots["gloves"].items == [None, "gloves", "mitts"]

        info = tracker_service.set_slot_level("gloves", 3)
        assert info.level == 3
        assert info.held == {"gloves": True, "mitts": True}
        assert tracker_service.get_fact("canLift").value is True

    def test_slot_errors(self, tracker_service):
        response = tracker_service.set_slot_level("sword", 4)
        assert response.error_code == ErrorCode.VALIDATION_ERROR
        assert tracker_service.set_slot_level("shield", 1).error_code == ErrorCode.SLOT_NOT_FOUND

    def test_cleared_fact_awards_prize(self, tracker_service):
        tracker_service.set_fact("easternPalace.cleared", True)
        assert tracker_service.get_fact("greenPendant").value is True
        (eastern,) = [
            d for d in tracker_service.list_dungeons().dungeons if d.dungeon_id == "easternPalace"
        ]
        assert eastern.cleared
        assert eastern.prize == "pendant"

    def test_set_dungeon_prize(self, tracker_service):
        tracker_service.set_fact("miseryMire.cleared", True)
        response = tracker_service.set_dungeon_prize("miseryMire", "crystal")
        assert response.counts == {"pendant": 0, "crystal": 1}
        assert response.dungeon.prize == "crystal"
        assert tracker_service.get_fact("crystal1").value is True

        response = tracker_service.set_dungeon_prize("miseryMire", "heartContainer")
        assert response.error_code == ErrorCode.PRIZE_NOT_FOUND
        response = tracker_service.set_dungeon_prize("nowhere", None)
        assert response.error_code == ErrorCode.DUNGEON_NOT_FOUND


class TestApp:
    """Tests for the HTTP routes."""

    @pytest.fixture
    def client(self, service):
        pytest.importorskip("httpx")
        from fastapi.testclient import TestClient
        from ..api.app import create_app
        return TestClient(create_app(service))

    def test_health(self, client):
        response = client.get("/api/v1/health")
        assert response.status_code == 200
        assert response.json()["logic_name"] == "Sample"

    def test_set_and_get_fact(self, client):
        response = client.put("/api/v1/facts/hookshot", json={"value": True})
        assert response.status_code == 200
        assert client.get("/api/v1/facts/hookshot").json()["value"] is True

    def test_unknown_fact_is_404(self, client):
        response = client.get("/api/v1/facts/nothing")
        assert response.status_code == 404
        assert response.json()["error_code"] == "FACT_NOT_FOUND"

    def test_bound_fact_is_409(self, client):
        response = client.put("/api/v1/facts/darkWorld", json={"value": True})
        assert response.status_code == 409
        assert response.json()["error_code"] == "FACT_BOUND_TO_RULE"

    def test_explain(self, client):
        response = client.get("/api/v1/rules/darkWorld/explain")
        assert response.status_code == 200
        assert response.json()["explanation"].startswith("Moon Pearl and")

    def test_reset_routes(self, client):
        assert client.post("/api/v1/reset").json()["success"]
        assert client.post("/api/v1/soft-reset").json()["success"]

    def test_prize_route(self, client):
        response = client.put("/api/v1/prizes/pendant", json={"count": 3})
        assert response.status_code == 200
        assert all(response.json()["facts"].values())
        assert client.put("/api/v1/prizes/pendant", json={"count": -1}).status_code == 422

    def test_locations_and_dungeons(self, client):
        assert client.get("/api/v1/locations").json()["count"] == 6
        assert client.get("/api/v1/dungeons").json()["count"] == 1


class TestAppEquipment:
    """Tests for the medallion, prize and slot routes."""

    @pytest.fixture
    def client(self, tracker_service):
        pytest.importorskip("httpx")
        from fastapi.testclient import TestClient
        from ..api.app import create_app
        return TestClient(create_app(tracker_service))

    def test_medallion_route(self, client):
        client.put("/api/v1/facts/quake", json={"value": True})
        response = client.put("/api/v1/dungeons/miseryMire/medallion", json={"index": 2})
        assert response.status_code == 200
        assert response.json()["medallion_selected"] == "quake"
        assert client.get("/api/v1/facts/mireMedallion").json()["value"] is True

        response = client.put("/api/v1/dungeons/miseryMire/medallion", json={})
        assert response.json()["medallion_selected"] is None

    def test_medallion_route_errors(self, client):
        response = client.put("/api/v1/dungeons/miseryMire/medallion", json={"index": 3})
        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"
        response = client.put("/api/v1/dungeons/nowhere/medallion", json={"index": 0})
        assert response.status_code == 404
        assert response.json()["error_code"] == "DUNGEON_NOT_FOUND"

    def test_slot_routes(self, client):
        assert client.get("/api/v1/slots").json()["count"] == 3
        response = client.put("/api/v1/slots/sword", json={"level": 2})
        assert response.status_code == 200
        assert response.json()["held"]["masterSword"] is True

        response = client.put("/api/v1/slots/sword", json={"level": 9})
        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"
        assert client.put("/api/v1/slots/shield", json={"level": 1}).status_code == 404
        assert client.put("/api/v1/slots/sword", json={"level": -1}).status_code == 422

    def test_dungeon_prize_route(self, client):
        client.put("/api/v1/facts/easternPalace.cleared", json={"value": True})
        response = client.put("/api/v1/dungeons/easternPalace/prize", json={"prize": "crystal"})
        assert response.status_code == 200
        assert response.json()["counts"] == {"pendant": 0, "crystal": 1}

        response = client.put("/api/v1/dungeons/easternPalace/prize", json={"prize": "bottle"})
        assert response.status_code == 404
        assert response.json()["error_code"] == "PRIZE_NOT_FOUND"
