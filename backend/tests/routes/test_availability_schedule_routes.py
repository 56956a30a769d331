# backend/tests/routes/test_availability_schedule_routes.py
"""
Route tests for schedule, weekly pattern and effective availability endpoints.

Routes run on the real clock, so dates are computed relative to today (UTC).
"""

from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient
import pytest

from tests.helpers.schedule_builders import next_weekday

pytestmark = pytest.mark.integration

MENTOR = "01J0MENTOR00000000000000FF"
BASE = f"/api/v1/mentors/{MENTOR}/availability"


def _today():
    return datetime.now(timezone.utc).date()


def _full_payload(version=None):
    payload = {
        "schedule": {"timezone": "Europe/Madrid", "bufferMinutesBetweenSessions": 10},
        "weeklyPatterns": [
            {
                "dayOfWeek": 2,
                "isEnabled": True,
                "timeBlocks": [{"startTime": "09:00", "endTime": "13:00"}],
            }
        ],
    }
    if version is not None:
        payload["version"] = version
    return payload


class TestScheduleEndpoints:
    def test_get_without_schedule_returns_null(self, client: TestClient):
        response = client.get(BASE)
        assert response.status_code == 200
        assert response.json() == {"schedule": None, "weeklyPatterns": []}

    def test_create_and_get(self, client: TestClient):
        response = client.post(BASE, json=_full_payload())
        assert response.status_code == 201
        body = response.json()
        assert body["schedule"]["mentorId"] == MENTOR
        assert body["schedule"]["timezone"] == "Europe/Madrid"
        assert body["schedule"]["bufferMinutesBetweenSessions"] == 10
        assert body["schedule"]["version"] == 1
        assert len(body["weeklyPatterns"]) == 7

        tuesday = client.get(BASE).json()["weeklyPatterns"][2]
        assert tuesday["isEnabled"] is True
        assert tuesday["timeBlocks"][0] == {
            "startTime": "09:00",
            "endTime": "13:00",
            "type": "AVAILABLE",
            "maxConcurrentBookings": None,
        }

    def test_create_twice_conflicts(self, client: TestClient):
        client.post(BASE, json=_full_payload())
        response = client.post(BASE, json=_full_payload())
        assert response.status_code == 409
        assert response.json()["code"] == "SCHEDULE_EXISTS"

    def test_replace_with_stale_version(self, client: TestClient):
        client.post(BASE, json=_full_payload())
        assert client.put(BASE, json=_full_payload(version=1)).status_code == 200
        response = client.put(BASE, json=_full_payload(version=1))
        assert response.status_code == 409
        assert response.json()["code"] == "SCHEDULE_VERSION_CONFLICT"

    def test_replace_missing_schedule(self, client: TestClient):
        assert client.put(BASE, json=_full_payload()).status_code == 404

    def test_invalid_settings_listed(self, client: TestClient):
        payload = _full_payload()
        payload["schedule"].update({"timezone": "Nowhere/City", "maxAdvanceBookingDays": 0})
        response = client.post(BASE, json=payload)
        assert response.status_code == 400
        assert len(response.json()["errors"]) == 2

    def test_unknown_fields_rejected(self, client: TestClient):
        payload = _full_payload()
        payload["schedule"]["colour"] = "blue"
        response = client.post(BASE, json=payload)
        assert response.status_code == 422
        assert response.json()["code"] == "validation_error"

    def test_patch_settings(self, client: TestClient):
        response = client.patch(f"{BASE}/settings", json={"requireConfirmation": True})
        assert response.status_code == 200
        schedule = response.json()["schedule"]
        assert schedule["requireConfirmation"] is True
        assert schedule["version"] == 2


class TestWeeklyPatternEndpoints:
    def test_overlapping_block_reports_every_error(self, client: TestClient):
        response = client.post(
            f"{BASE}/days/1/blocks", json={"startTime": "11:30", "endTime": "13:30"}
        )
        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "SCHEDULE_VALIDATION_FAILED"
        assert len(body["errors"]) == 3
        # Rejected first write leaves nothing behind
        assert client.get(BASE).json()["schedule"] is None

    def test_bad_time_format_is_422(self, client: TestClient):
        response = client.post(f"{BASE}/days/1/blocks", json={"startTime": "9am", "endTime": "10:00"})
        assert response.status_code == 422

    def test_day_out_of_range(self, client: TestClient):
        response = client.put(f"{BASE}/days/7/enabled", json={"isEnabled": True})
        assert response.status_code == 422

    def test_add_edit_remove(self, client: TestClient):
        added = client.post(
            f"{BASE}/days/0/blocks",
            json={"startTime": "18:00", "endTime": "24:00", "maxConcurrentBookings": 3},
        )
        assert added.status_code == 201
        sunday = added.json()["weeklyPatterns"][0]
        assert sunday["timeBlocks"][0]["endTime"] == "24:00"

        edited = client.put(
            f"{BASE}/days/0/blocks/0", json={"startTime": "19:00", "endTime": "21:00"}
        )
        assert edited.json()["weeklyPatterns"][0]["timeBlocks"][0]["startTime"] == "19:00"

        removed = client.delete(f"{BASE}/days/0/blocks/0")
        assert removed.json()["removed"] is True
        assert client.delete(f"{BASE}/days/0/blocks/0").json()["removed"] is False

    def test_toggle_day(self, client: TestClient):
        response = client.put(f"{BASE}/days/6/enabled", json={"isEnabled": True})
        assert response.json()["weeklyPatterns"][6]["isEnabled"] is True

    def test_quick_setup_and_copy(self, client: TestClient):
        response = client.post(
            f"{BASE}/quick-setup",
            json={"preset": "weekends", "timeBlocks": [{"startTime": "10:00", "endTime": "12:00"}]},
        )
        assert response.status_code == 200
        patterns = response.json()["weeklyPatterns"]
        assert patterns[0]["isEnabled"] and patterns[6]["isEnabled"]

        copied = client.post(f"{BASE}/days/0/copy", json={"targetDays": [3]}).json()
        assert copied["weeklyPatterns"][3]["timeBlocks"] == patterns[0]["timeBlocks"]

    def test_copy_needs_targets(self, client: TestClient):
        assert client.post(f"{BASE}/days/0/copy", json={"targetDays": []}).status_code == 422


class TestEffectiveAvailability:
    def test_weekly_source_for_default_weekday(self, client: TestClient):
        client.put(f"{BASE}/days/0/enabled", json={"isEnabled": False})
        wednesday = next_weekday(_today(), 2)
        response = client.get(f"{BASE}/effective", params={"date": wednesday.isoformat()})
        assert response.status_code == 200
        body = response.json()
        assert body["source"] == "weekly"
        assert [b["type"] for b in body["timeBlocks"]] == ["AVAILABLE", "BREAK", "AVAILABLE"]

    def test_unsaved_mentor_is_consistently_unbookable(self, client: TestClient):
        wednesday = next_weekday(_today() + timedelta(days=2), 2)
        day = wednesday.isoformat()

        effective = client.get(f"{BASE}/effective", params={"date": day}).json()
        assert effective["source"] == "unset"
        assert effective["timeBlocks"] == []

        slots = client.get(f"{BASE}/slots", params={"startDate": day, "endDate": day}).json()
        assert slots["slots"] == []

        booking = client.post(
            f"{BASE}/bookings",
            json={
                "menteeId": "mentee-1",
                "start": f"{day}T10:00:00+00:00",
                "end": f"{day}T11:00:00+00:00",
            },
        )
        assert booking.status_code == 422
        assert booking.json()["code"] == "MENTOR_UNAVAILABLE"
        assert client.get(BASE).json()["schedule"] is None

    def test_exception_source(self, client: TestClient):
        day = _today() + timedelta(days=5)
        created = client.post(
            f"{BASE}/exceptions", json={"startDate": day.isoformat(), "endDate": day.isoformat()}
        ).json()
        body = client.get(f"{BASE}/effective", params={"date": day.isoformat()}).json()
        assert body["source"] == "exception"
        assert body["exceptionId"] == created["id"]
        assert body["timeBlocks"] == []
