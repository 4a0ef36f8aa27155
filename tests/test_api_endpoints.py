"""
API endpoint tests for the Notification Triage API.

These tests drive the routes through FastAPI's TestClient with the triage
service dependency replaced by one pinned to a fixed clock and timezone
and using keyword classification, so delivery times are deterministic.

Testing Strategy:
- Verify message submission and the resulting delivery plans
- Confirm pending notifications are ordered by delivery time
- Exercise focus and calendar management endpoints
- Confirm error responses for invalid input and transport failures
"""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient

from api.main import app
from api.services.triage_service import TriageService, get_triage_service
from src.config.settings import TriageSettings
from src.notification_triage import (
    BasePriorityClassifier,
    ClassificationResult,
    DuplicateMessageError,
    KeywordPriorityClassifier,
    MessagePriority,
    RecordingDeliverySink
)

TZ = ZoneInfo("Asia/Taipei")
NOW = datetime(2026, 10, 19, 14, 0, tzinfo=TZ)


def make_service(**overrides):
    return TriageService(
        settings=TriageSettings(TIMEZONE="Asia/Taipei"),
        classifier=KeywordPriorityClassifier(),
        clock=lambda: NOW,
        **overrides
    )


@pytest.fixture
def triage_service():
    return make_service()


@pytest.fixture
def client(triage_service):
    """Test client bound to a fresh triage service."""
    app.dependency_overrides[get_triage_service] = lambda: triage_service
    yield TestClient(app)
    app.dependency_overrides.clear()


def parse_time(value):
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


class TestMessageSubmission:
    """Tests for POST /notifications/messages."""

    def test_urgent_message_delivered_immediately(self, client, triage_service):
        response = client.post("/notifications/messages", json={
            "sender": "Ops",
            "content": "URGENT: production database is down",
            "message_id": "msg-1"
        })

        assert response.status_code == 201
        data = response.json()
        assert data["message_id"] == "msg-1"
        assert data["priority"] == "urgent"
        assert data["strategy"] == "immediate"
        assert data["reason"] == "Delivered immediately"
        assert parse_time(data["target_time"]) == NOW
        assert triage_service.delivery_sink.immediate()[0].is_critical is True

    def test_low_priority_batched_when_focused(self, client):
        client.put("/context/focus", json={"is_focused": True})
        client.post("/context/events", json={
            "title": "Project meeting",
            "start": "2026-10-19T13:30:00",
            "end": "2026-10-19T15:00:00"
        })

        response = client.post("/notifications/messages", json={
            "sender": "Shop",
            "content": "Weekend sale, 50% discount"
        })

        assert response.status_code == 201
        data = response.json()
        assert data["priority"] == "low"
        assert data["strategy"] == "batch_end_of_day"
        assert parse_time(data["target_time"]) == datetime(2026, 10, 19, 18, 0, tzinfo=TZ)

    def test_generated_message_id(self, client):
        response = client.post("/notifications/messages", json={"sender": "Amy", "content": "hi"})
        assert response.status_code == 201
        assert response.json()["message_id"]

    def test_duplicate_submission_returns_same_plan(self, client):
        payload = {"sender": "Amy", "content": "hi", "message_id": "dup"}
        first = client.post("/notifications/messages", json=payload).json()
        second = client.post("/notifications/messages", json=payload).json()
        assert first == second

    def test_invalid_submission(self, client):
        response = client.post("/notifications/messages", json={"sender": "", "content": "hi"})

        assert response.status_code == 422
        data = response.json()
        assert data["error_code"] == "VALIDATION_ERROR"
        assert any("sender" in item["loc"] for item in data["validation_errors"])

    def test_delivery_failure_reported(self):
        sink = MagicMock()
        sink.deliver_now = AsyncMock(side_effect=ConnectionError("push service unreachable"))
        service = make_service(delivery_sink=sink)
        app.dependency_overrides[get_triage_service] = lambda: service
        try:
            client = TestClient(app)
            response = client.post("/notifications/messages", json={
                "sender": "Amy", "content": "hi", "message_id": "msg-fail"
            })
            status_response = client.get("/notifications/messages/msg-fail")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 502
        data = response.json()
        assert data["error_code"] == "DELIVERY_FAILED"
        assert data["details"]["message_id"] == "msg-fail"
        assert "unreachable" in data["details"]["transport_error"]
        assert status_response.json()["state"] == "delivery_failed"

    def test_duplicate_in_flight_conflict(self):
        service = MagicMock()
        service.submit = AsyncMock(side_effect=DuplicateMessageError("Message dup is still being processed"))
        app.dependency_overrides[get_triage_service] = lambda: service
        try:
            response = TestClient(app).post("/notifications/messages", json={
                "sender": "Amy", "content": "hi", "message_id": "dup"
            })
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 409
        assert response.json()["error_code"] == "DUPLICATE_MESSAGE"

    def test_batch_submission(self, client):
        response = client.post("/notifications/messages/batch", json={"messages": [
            {"sender": "A", "content": "emergency at home"},
            {"sender": "B", "content": "newsletter"},
            {"sender": "C", "content": "hello"}
        ]})

        assert response.status_code == 200
        data = response.json()
        assert data["errors"] == []
        assert sorted(p["priority"] for p in data["plans"]) == ["low", "normal", "urgent"]

    def test_empty_batch_rejected(self, client):
        response = client.post("/notifications/messages/batch", json={"messages": []})
        assert response.status_code == 422


class TestPlansAndStatus:
    """Tests for pending, history, and message status endpoints."""

    @pytest.fixture
    def busy_client(self, client):
        client.put("/context/focus", json={"is_focused": True})
        client.post("/context/events", json={
            "title": "Client review",
            "start": "2026-10-19T13:00:00+08:00",
            "end": "2026-10-19T16:00:00+08:00"
        })
        return client

    def test_pending_ordered_by_target_time(self, busy_client):
        busy_client.post("/notifications/messages", json={
            "sender": "Shop", "content": "promotion", "message_id": "low"
        })
        busy_client.post("/notifications/messages", json={
            "sender": "Amy", "content": "lunch?", "message_id": "normal"
        })

        data = busy_client.get("/notifications/pending").json()

        assert data["total"] == 2
        assert [p["message_id"] for p in data["plans"]] == ["normal", "low"]
        assert parse_time(data["plans"][0]["target_time"]) == NOW + timedelta(minutes=15)

    def test_plans_include_suppressed_and_immediate(self, busy_client):
        busy_client.post("/notifications/messages", json={
            "sender": "Ops", "content": "asap please", "message_id": "urgent"
        })
        busy_client.post("/notifications/messages", json={
            "sender": "Amy", "content": "lunch?", "message_id": "normal"
        })

        data = busy_client.get("/notifications/plans").json()

        assert [p["message_id"] for p in data["plans"]] == ["urgent", "normal"]
        pending = busy_client.get("/notifications/pending").json()
        assert [p["message_id"] for p in pending["plans"]] == ["normal"]

    def test_message_status(self, busy_client):
        busy_client.post("/notifications/messages", json={
            "sender": "Amy", "content": "lunch?", "message_id": "m1"
        })

        data = busy_client.get("/notifications/messages/m1").json()

        assert data["state"] == "scheduled"
        assert data["priority"] == "normal"
        assert data["plan"]["strategy"] == "delay_until_free"
        assert data["classification_fallback"] is False

    def test_unknown_message_status(self, client):
        response = client.get("/notifications/messages/missing")

        assert response.status_code == 404
        assert response.json()["error_code"] == "MESSAGE_NOT_FOUND"

    def test_cancel_pending(self, busy_client, triage_service):
        busy_client.post("/notifications/messages", json={
            "sender": "Amy", "content": "lunch?", "message_id": "m1"
        })

        assert busy_client.delete("/notifications/pending/m1").status_code == 204
        assert busy_client.get("/notifications/pending").json()["total"] == 0
        assert triage_service.delivery_sink.cancelled == ["m1"]

        status_data = busy_client.get("/notifications/messages/m1").json()
        assert status_data["cancelled"] is True
        plans = busy_client.get("/notifications/plans").json()["plans"]
        assert [p["cancelled"] for p in plans] == [True]

        again = busy_client.delete("/notifications/pending/m1")
        assert again.status_code == 404
        assert again.json()["error_code"] == "HTTP_404"


class TestContextEndpoints:
    """Tests for focus and calendar management."""

    def test_free_context(self, client):
        data = client.get("/context/").json()

        assert data["work_status"] == "free"
        assert data["is_focused"] is False
        assert data["next_free_time"] is None

    def test_focus_toggle(self, client):
        response = client.put("/context/focus", json={"is_focused": True})

        assert response.status_code == 200
        assert response.json()["is_focused"] is True

    def test_context_reflects_calendar(self, client):
        client.post("/context/events", json={
            "title": "Dentist",
            "start": "2026-10-19T13:45:00",
            "end": "2026-10-19T14:30:00"
        })
        client.post("/context/events", json={
            "title": "Yoga",
            "start": "2026-10-19T14:50:00",
            "end": "2026-10-19T15:50:00"
        })

        data = client.get("/context/").json()

        assert data["work_status"] == "inMeeting"
        assert data["current_event"] == "Dentist"
        assert data["upcoming_event_titles"] == ["Yoga"]
        assert parse_time(data["next_free_time"]) == datetime(2026, 10, 19, 14, 50, tzinfo=TZ)

    def test_event_lifecycle(self, client):
        created = client.post("/context/events", json={
            "title": "Call",
            "start": "2026-10-19T16:00:00",
            "end": "2026-10-19T16:30:00"
        })
        assert created.status_code == 201
        event_id = created.json()["event_id"]
        assert parse_time(created.json()["start"]) == datetime(2026, 10, 19, 16, 0, tzinfo=TZ)

        updated = client.put(f"/context/events/{event_id}", json={"title": "Client call"})
        assert updated.status_code == 200
        assert updated.json()["title"] == "Client call"

        listed = client.get("/context/events").json()
        assert [e["title"] for e in listed] == ["Client call"]

        assert client.delete(f"/context/events/{event_id}").status_code == 204
        assert client.get("/context/events").json() == []

    def test_event_with_inverted_range(self, client):
        response = client.post("/context/events", json={
            "title": "Call",
            "start": "2026-10-19T16:00:00",
            "end": "2026-10-19T15:00:00"
        })
        assert response.status_code == 422

    def test_update_with_inverted_range(self, client):
        event_id = client.post("/context/events", json={
            "title": "Call",
            "start": "2026-10-19T16:00:00",
            "end": "2026-10-19T16:30:00"
        }).json()["event_id"]

        response = client.put(f"/context/events/{event_id}", json={"end": "2026-10-19T15:00:00"})
        assert response.status_code == 422

    def test_unknown_event(self, client):
        response = client.put("/context/events/missing", json={"title": "x"})

        assert response.status_code == 404
        assert response.json()["error_code"] == "EVENT_NOT_FOUND"


class TestDecisionTime:
    """Delivery decisions use the time after classification completes."""

    def test_batch_hour_passed_while_classifying(self):
        current = {"now": datetime(2026, 10, 19, 17, 59, 58, tzinfo=TZ)}

        class SlowLowClassifier(BasePriorityClassifier):
            async def classify(self, message, context):
                current["now"] += timedelta(seconds=5)
                return ClassificationResult(priority=MessagePriority.LOW, confidence=0.9, reasoning="promo")

        sink = RecordingDeliverySink()
        service = TriageService(
            settings=TriageSettings(TIMEZONE="Asia/Taipei"),
            classifier=SlowLowClassifier(),
            delivery_sink=sink,
            clock=lambda: current["now"]
        )
        service.set_focus(True)
        app.dependency_overrides[get_triage_service] = lambda: service
        try:
            client = TestClient(app)
            response = client.post("/notifications/messages", json={"sender": "Shop", "content": "promo"})
            pending = client.get("/notifications/pending").json()
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 201
        data = response.json()
        assert data["strategy"] == "batch_end_of_day"
        assert data["delivered_immediately"] is True
        assert parse_time(data["target_time"]) == datetime(2026, 10, 19, 18, 0, 3, tzinfo=TZ)
        assert sink.deferred() == []
        assert len(sink.immediate()) == 1
        assert pending["total"] == 0
