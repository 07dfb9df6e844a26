from datetime import date, time, timedelta

from fastapi.testclient import TestClient

from api import clock_routes
from conftest import NOW, OTHER_DRIVER, make_card
from main import app
from models.booking import Booking, BookingStatus
from services.clock_service import ClockService


def test_clock_requires_authentication():
    app.dependency_overrides.clear()
    client = TestClient(app)

    response = client.post("/workflow/clock", json={"action": "clock_in"})

    assert response.status_code == 401


def test_invalid_action_is_rejected(client):
    response = client.post("/workflow/clock", json={"action": "lunch"})

    assert response.status_code == 422


def test_clock_in_and_status_round_trip(client, vehicles):
    response = client.post(
        "/workflow/clock",
        json={
            "action": "clock_in",
            "vehicleId": vehicles["transit"].id,
            "location": {"latitude": 46.0654, "longitude": -118.343},
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert body["vehicle"] == "Ford Transit (Transit 1)"
    assert body["time_card"]["status"] == "on_duty"
    assert body["time_card"]["clock_in_time"].endswith("Z")

    status_body = client.get("/workflow/clock").json()
    assert status_body["status"] == "clocked_in"
    assert status_body["can_clock_out"] is True


def test_expected_workflow_branches_are_not_http_errors(client):
    response = client.post("/workflow/clock", json={"action": "clock_out", "signature": "Test Driver"})

    assert response.status_code == 200
    assert response.json()["status"] == "not_clocked_in"

    client.post("/workflow/clock", json={"action": "clock_in"})
    response = client.post("/workflow/clock", json={"action": "clock_out", "signature": " "})

    assert response.status_code == 200
    assert response.json()["status"] == "signature_required"


def test_unexpected_failure_returns_error_id(client, monkeypatch):
    def explode(*args, **kwargs):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(ClockService, "clock_in", staticmethod(explode))

    response = client.post("/workflow/clock", json={"action": "clock_in"})

    assert response.status_code == 500
    detail = response.json()["detail"]
    assert detail["error_id"].startswith("ERR-")
    assert "contact support" in detail["error"]


def test_available_vehicles_exclude_inactive_and_held(client, session, vehicles):
    make_card(session, NOW - timedelta(hours=1), driver=OTHER_DRIVER, vehicle_id=vehicles["sprinter"].id)

    response = client.get("/vehicles/available")

    assert response.status_code == 200
    assert [v["vehicle_number"] for v in response.json()] == ["Transit 1"]


def test_hos_summary_endpoint(client):
    response = client.get("/workflow/hos")

    assert response.status_code == 200
    body = response.json()
    assert body["rolling_on_duty_hours"] == 0.0
    assert body["remaining_hours"] == 70.0


def test_post_trip_endpoint_links_inspection_to_shift(client, vehicles):
    client.post("/workflow/clock", json={"action": "clock_in", "vehicleId": vehicles["sprinter"].id})

    response = client.post(
        "/inspections/post-trip",
        json={
            "vehicleId": vehicles["sprinter"].id,
            "mileage": 50100,
            "inspectionData": {"items": {"tires": True}, "defectSeverity": "none"},
        },
    )

    assert response.status_code == 200
    assert response.json()["data"]["type"] == "post_trip"

    response = client.post("/workflow/clock", json={"action": "clock_out", "signature": "Test Driver"})
    assert response.json()["status"] == "success"


def test_booking_conflicts_are_admin_only(client):
    response = client.get("/admin/bookings/conflicts", params={"start_date": "2024-10-16", "end_date": "2024-10-16"})

    assert response.status_code == 403


def test_booking_conflicts_endpoint(admin_client, session):
    for booking in [
        Booking(customer_name="Smith", tour_date=date(2024, 10, 16), start_time=time(10), end_time=time(12), driver_id="5"),
        Booking(customer_name="Jones", tour_date=date(2024, 10, 16), start_time=time(11), end_time=time(13), driver_id="5"),
        Booking(customer_name="Lee", tour_date=date(2024, 10, 16), start_time=time(13), end_time=time(15), driver_id="5"),
        Booking(
            customer_name="Park",
            tour_date=date(2024, 10, 16),
            start_time=time(10),
            end_time=time(16),
            driver_id="5",
            status=BookingStatus.CANCELLED,
        ),
    ]:
        session.add(booking)
    session.commit()

    response = admin_client.get(
        "/admin/bookings/conflicts", params={"start_date": "2024-10-16", "end_date": "2024-10-16"}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["conflict_count"] == 2
    flagged = {b["customer_name"] for b in body["bookings"] if b["has_conflict"]}
    assert flagged == {"Smith", "Jones"}


def test_shift_guard_endpoint(admin_client, session):
    stale = make_card(session, NOW - timedelta(days=30))

    response = admin_client.post("/admin/time-cards/run-shift-guard")

    assert response.status_code == 200
    assert response.json()["closed_time_card_ids"] == [stale.id]


def test_hos_summary_failure_returns_error_id(client, monkeypatch):
    def explode(*args, **kwargs):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(clock_routes, "hos_summary", explode)

    response = client.get("/workflow/hos")

    assert response.status_code == 500
    detail = response.json()["detail"]
    assert detail["error_id"].startswith("ERR-")
    assert detail["error"] == "Unable to load hours of service"
