from __future__ import annotations

from uuid import uuid4

import pytest
from starlette.testclient import TestClient

from shiptrack.core.entities.shipment import STATUS_DESCRIPTIONS, ShipmentStatus
from shiptrack.main import app
from shiptrack.tests.helpers import iso_ago


@pytest.fixture()
def client(clean_app_store: None) -> TestClient:
    return TestClient(app)


def _shipment_id() -> str:
    return f"SHIP-{uuid4().int % 10**9:09d}"


def test_record_event_then_identical_triple_conflicts(client: TestClient) -> None:
    shipment_id = "SHIP-100000"
    timestamp = iso_ago(hours=1)

    first = client.post(f"/shipments/{shipment_id}/events", json={"timestamp": timestamp, "status": "created"})

    assert first.status_code == 201
    body = first.json()
    assert body["success"] is True
    assert body["message"] == "Event created successfully"
    assert body["data"]["shipmentId"] == shipment_id
    assert body["data"]["timestamp"] == timestamp
    assert body["data"]["details"] == STATUS_DESCRIPTIONS[ShipmentStatus.CREATED]
    assert body["data"]["createdAt"].endswith("Z")
    assert "location" not in body["data"]

    second = client.post(
        f"/shipments/{shipment_id}/events",
        json={"timestamp": timestamp, "status": "created", "details": "resent"},
    )

    assert second.status_code == 409
    assert second.json() == {
        "success": False,
        "error": "Event with this shipment ID, status and timestamp already exists",
    }

    history = client.get(f"/shipments/{shipment_id}/events").json()
    assert len(history["data"]) == 1


def test_history_paginates_with_opaque_cursor(client: TestClient) -> None:
    shipment_id = _shipment_id()
    for hours, status in ((3, "created"), (2, "picked_up"), (1, "in_transit")):
        r = client.post(f"/shipments/{shipment_id}/events", json={"timestamp": iso_ago(hours=hours), "status": status})
        assert r.status_code == 201

    first = client.get(f"/shipments/{shipment_id}/events", params={"limit": 2})

    assert first.status_code == 200
    page1 = first.json()
    assert len(page1["data"]) == 2
    assert page1["pagination"]["hasMore"] is True
    assert page1["message"] == f"Retrieved 2 events for shipment {shipment_id}"
    stamps = [e["timestamp"] for e in page1["data"]]
    assert stamps == sorted(stamps)

    second = client.get(
        f"/shipments/{shipment_id}/events",
        params={"limit": 2, "startKey": page1["pagination"]["nextKey"]},
    )

    assert second.status_code == 200
    page2 = second.json()
    assert len(page2["data"]) == 1
    assert page2["pagination"] == {"hasMore": False}

    seen = {e["id"] for e in page1["data"]} | {e["id"] for e in page2["data"]}
    assert len(seen) == 3


def test_history_unknown_shipment_first_page_vs_later_page(client: TestClient) -> None:
    shipment_id = _shipment_id()
    for hours in (2, 1):
        client.post(f"/shipments/{shipment_id}/events", json={"timestamp": iso_ago(hours=hours), "status": "on_hold"})
    next_key = client.get(f"/shipments/{shipment_id}/events", params={"limit": 1}).json()["pagination"]["nextKey"]

    first_page = client.get("/shipments/UNKNOWN/events", params={"limit": 50})

    assert first_page.status_code == 404
    assert first_page.json() == {"success": False, "error": "No events found for shipment UNKNOWN"}

    later_page = client.get("/shipments/UNKNOWN/events", params={"limit": 50, "startKey": next_key})

    assert later_page.status_code == 200
    assert later_page.json()["data"] == []
    assert later_page.json()["pagination"] == {"hasMore": False}


def test_latest_returns_most_recent_occurrence(client: TestClient) -> None:
    shipment_id = _shipment_id()
    # written out of chronological order
    for hours, status in ((1, "delivered"), (5, "created"), (3, "out_for_delivery")):
        client.post(f"/shipments/{shipment_id}/events", json={"timestamp": iso_ago(hours=hours), "status": status})

    r = client.get(f"/shipments/{shipment_id}/events/latest")

    assert r.status_code == 200
    assert r.json()["message"] == "Latest event retrieved successfully"
    assert r.json()["data"]["status"] == "delivered"


def test_latest_for_shipment_without_events_is_404(client: TestClient) -> None:
    r = client.get("/shipments/SHIP-404404/events/latest")

    assert r.status_code == 404
    assert r.json() == {"success": False, "error": "No events found for shipment SHIP-404404"}


@pytest.mark.parametrize("path", ["/shipments/bad!id/events", "/shipments/bad!id/events/latest"])
def test_invalid_shipment_id_is_400_on_reads(client: TestClient, path: str) -> None:
    r = client.get(path)

    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "Validation failed", "message": "Invalid shipment ID"}


def test_invalid_shipment_id_is_400_on_write(client: TestClient) -> None:
    r = client.post("/shipments/x/events", json={"timestamp": iso_ago(minutes=1), "status": "created"})

    assert r.status_code == 400
    assert r.json()["error"] == "Validation failed"


def test_write_reports_all_field_errors(client: TestClient) -> None:
    r = client.post(
        "/shipments/SHIP-100000/events",
        json={"timestamp": "2026-06-01T10:00:00+02:00", "status": "lost", "location": "x" * 201},
    )

    assert r.status_code == 400
    body = r.json()
    assert body["error"] == "Validation failed"
    assert "timestamp: Timestamp must be in ISO 8601 format" in body["message"]
    assert "status: Status must be one of:" in body["message"]
    assert "location: Location must be less than 200 characters" in body["message"]


def test_write_with_missing_or_broken_body(client: TestClient) -> None:
    empty = client.post("/shipments/SHIP-100000/events", content=b"")
    broken = client.post(
        "/shipments/SHIP-100000/events",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert empty.status_code == 400
    assert empty.json() == {"success": False, "error": "Request body is required"}
    assert broken.status_code == 400
    assert broken.json() == {"success": False, "error": "Invalid JSON in request body"}


def test_write_with_future_timestamp_is_rejected(client: TestClient) -> None:
    r = client.post("/shipments/SHIP-100000/events", json={"timestamp": iso_ago(minutes=-10), "status": "created"})

    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "Event timestamp cannot be in the future"}


def test_history_limit_validation(client: TestClient) -> None:
    for limit in ("0", "101", "many"):
        r = client.get("/shipments/SHIP-100000/events", params={"limit": limit})
        assert r.status_code == 400
        assert r.json()["error"] == "Validation failed"
        assert r.json()["message"].startswith("limit: ")


def test_history_with_garbage_cursor_is_400(client: TestClient) -> None:
    r = client.get("/shipments/SHIP-100000/events", params={"startKey": "%%%"})

    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "Invalid shipment ID or query parameters"}


def test_jsonl_backend_serves_the_same_api(client: TestClient, monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    from shiptrack.infrastructure.config import settings

    log_path = tmp_path / "event_log.jsonl"
    monkeypatch.setattr(settings, "event_store", "jsonl")
    monkeypatch.setattr(settings, "event_log_path", log_path)

    timestamp = iso_ago(minutes=30)
    created = client.post("/shipments/RR123456789SE/events", json={"timestamp": timestamp, "status": "returned"})
    duplicate = client.post("/shipments/RR123456789SE/events", json={"timestamp": timestamp, "status": "returned"})
    latest = client.get("/shipments/RR123456789SE/events/latest")

    assert created.status_code == 201
    assert duplicate.status_code == 409
    assert latest.json()["data"]["id"] == created.json()["data"]["id"]
    assert len(log_path.read_text(encoding="utf-8").splitlines()) == 1


def test_shipment_id_with_non_ascii_digits_is_rejected(client: TestClient) -> None:
    shipment_id = "SHIP-١٢٣٤٥٦"

    r = client.post(f"/shipments/{shipment_id}/events", json={"timestamp": iso_ago(minutes=1), "status": "created"})

    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "Validation failed", "message": "Invalid shipment ID"}
    assert client.get(f"/shipments/{shipment_id}/events").status_code == 400
