# backend/tests/routes/test_booking_routes.py
"""Route tests for slot listing and booking requests."""

from datetime import date, datetime, timedelta, timezone

from fastapi.testclient import TestClient
import pytest

pytestmark = pytest.mark.integration

MENTOR = "01J0MENTOR0000000000000022"
BASE = f"/api/v1/mentors/{MENTOR}/availability"


def _booking_day() -> date:
    """A Wednesday at least three days out, well inside the default window."""
    day = datetime.now(timezone.utc).date() + timedelta(days=3)
    while day.weekday() != 2:
        day += timedelta(days=1)
    return day


def _instant(day: date, hour: int) -> str:
    return datetime(day.year, day.month, day.day, hour, tzinfo=timezone.utc).isoformat()


def _booking(day: date, start: int, end: int, mentee: str = "mentee-1") -> dict:
    return {"menteeId": mentee, "start": _instant(day, start), "end": _instant(day, end)}


@pytest.fixture
def saved_schedule(client: TestClient) -> None:
    assert client.put(f"{BASE}/days/3/enabled", json={"isEnabled": True}).status_code == 200


def test_book_and_double_book(client: TestClient, saved_schedule):
    day = _booking_day()
    response = client.post(f"{BASE}/bookings", json=_booking(day, 10, 11))
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "confirmed"
    assert body["mentorId"] == MENTOR
    assert body["menteeId"] == "mentee-1"

    again = client.post(f"{BASE}/bookings", json=_booking(day, 10, 11, mentee="mentee-2"))
    assert again.status_code == 409
    assert again.json()["details"]["reason"] == "fully_booked"


def test_pending_when_confirmation_required(client: TestClient, saved_schedule):
    client.patch(f"{BASE}/settings", json={"requireConfirmation": True})
    response = client.post(f"{BASE}/bookings", json=_booking(_booking_day(), 9, 10))
    assert response.json()["status"] == "pending"


def test_no_schedule_is_unavailable(client: TestClient):
    response = client.post(f"{BASE}/bookings", json=_booking(_booking_day(), 10, 11))
    assert response.status_code == 422


def test_too_soon(client: TestClient, saved_schedule):
    soon = datetime.now(timezone.utc) + timedelta(hours=2)
    payload = {
        "menteeId": "mentee-1",
        "start": soon.isoformat(),
        "end": (soon + timedelta(hours=1)).isoformat(),
    }
    response = client.post(f"{BASE}/bookings", json=payload)
    assert response.status_code == 422
    assert response.json()["details"]["reason"] == "too_soon"


def test_outside_coverage(client: TestClient, saved_schedule):
    response = client.post(f"{BASE}/bookings", json=_booking(_booking_day(), 12, 13))
    assert response.status_code == 409
    assert response.json()["details"]["reason"] == "no_coverage"


def test_end_before_start_is_422(client: TestClient):
    day = _booking_day()
    response = client.post(f"{BASE}/bookings", json=_booking(day, 11, 10))
    assert response.status_code == 422
    assert response.json()["code"] == "validation_error"


def test_slots_for_unknown_mentor_are_empty(client: TestClient):
    day = _booking_day().isoformat()
    response = client.get(f"{BASE}/slots", params={"startDate": day, "endDate": day})
    assert response.status_code == 200
    assert response.json() == {"mentorId": MENTOR, "slots": []}


def test_booked_slot_shows_as_taken(client: TestClient, saved_schedule):
    day = _booking_day()
    client.post(f"{BASE}/bookings", json=_booking(day, 10, 11))
    slots = client.get(
        f"{BASE}/slots", params={"startDate": day.isoformat(), "endDate": day.isoformat()}
    ).json()["slots"]
    assert slots
    assert all(s["date"] == day.isoformat() for s in slots)
    taken = [s for s in slots if not s["isAvailable"]]
    assert taken
    assert any(s["reason"] == "Already booked" for s in taken)
    assert any(s["isAvailable"] for s in slots)


def test_slots_reject_reversed_range(client: TestClient):
    day = _booking_day()
    response = client.get(
        f"{BASE}/slots",
        params={"startDate": day.isoformat(), "endDate": (day - timedelta(days=1)).isoformat()},
    )
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_DATE_RANGE"


def test_slots_reject_unoffered_duration(client: TestClient, saved_schedule):
    day = _booking_day().isoformat()
    response = client.get(
        f"{BASE}/slots", params={"startDate": day, "endDate": day, "durationMinutes": 45}
    )
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_DURATION"


def test_slots_reject_unknown_output_timezone(client: TestClient, saved_schedule):
    day = _booking_day().isoformat()
    response = client.get(
        f"{BASE}/slots", params={"startDate": day, "endDate": day, "timezone": "Mars/Olympus"}
    )
    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "INVALID_TIMEZONE"
    assert body["errors"] == ["Unknown timezone: Mars/Olympus"]
