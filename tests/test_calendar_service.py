"""Tests for the HTTP calendar client, using httpx.MockTransport."""

import json

import httpx
import pytest

from interview_scheduler.exceptions import IntegrationError
from interview_scheduler.services.calendar_service import HttpCalendarSync


def _client(handler):
    return HttpCalendarSync(
        "https://calendar.example.com/api/",
        "secret-token",
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def booking(make_booking, at):
    booking = make_booking(at(14), at(15), ["alice@example.com", "bob@example.com"], title="Interview: Bob")
    booking.meeting_type = "VIDEO"
    booking.notes = "Bring a laptop"
    return booking


class TestCreateEvent:
    def test_posts_event_to_organizer_calendar(self, booking, interviewer):
        captured = []

        def handler(request):
            captured.append(request)
            return httpx.Response(200, json={"id": "evt_123", "meetingLink": "https://meet.example.com/x"})

        event = _client(handler).create_event(booking, interviewer, booking.attendee_emails)

        assert event["id"] == "evt_123"
        request = captured[0]
        assert request.method == "POST"
        assert request.url.path.startswith("/api/calendars/")
        assert request.url.path.endswith("/events")
        assert request.headers["Authorization"] == "Bearer secret-token"
        body = json.loads(request.content)
        assert body["summary"] == "Interview: Bob"
        assert body["start"] == {"dateTime": booking.start.isoformat(), "timeZone": "UTC"}
        assert [a["email"] for a in body["attendees"]] == ["alice@example.com", "bob@example.com"]
        assert body["conferenceData"] == {"createRequest": {"requestId": booking.id}}
        assert "Bring a laptop" in body["description"]

    def test_in_person_has_no_conference(self, booking, interviewer):
        booking.meeting_type = "IN_PERSON"
        booking.location = "Room 4"
        captured = []

        def handler(request):
            captured.append(json.loads(request.content))
            return httpx.Response(201, json={"id": "evt_1"})

        _client(handler).create_event(booking, interviewer, booking.attendee_emails)

        assert "conferenceData" not in captured[0]
        assert captured[0]["location"] == "Room 4"

    def test_missing_event_id(self, booking, interviewer):
        client = _client(lambda request: httpx.Response(200, json={}))
        with pytest.raises(IntegrationError):
            client.create_event(booking, interviewer, booking.attendee_emails)

    def test_http_error_status(self, booking, interviewer):
        client = _client(lambda request: httpx.Response(503, json={"error": "unavailable"}))
        with pytest.raises(IntegrationError) as exc_info:
            client.create_event(booking, interviewer, booking.attendee_emails)
        assert "503" in exc_info.value.message

    def test_transport_error(self, booking, interviewer):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(IntegrationError):
            _client(handler).create_event(booking, interviewer, booking.attendee_emails)


class TestUpdateAndDelete:
    def test_update_patches_event(self, booking, interviewer):
        captured = []

        def handler(request):
            captured.append(request)
            return httpx.Response(200, json={"id": "evt_9"})

        _client(handler).update_event("evt_9", booking, interviewer)

        assert captured[0].method == "PATCH"
        assert captured[0].url.path == "/api/events/evt_9"

    def test_delete(self):
        captured = []

        def handler(request):
            captured.append(request)
            return httpx.Response(204)

        _client(handler).delete_event("evt_9")

        assert captured[0].method == "DELETE"
        assert captured[0].url.path == "/api/events/evt_9"


def test_base_url_required(monkeypatch):
    monkeypatch.delenv("CALENDAR_API_BASE_URL", raising=False)
    with pytest.raises(ValueError):
        HttpCalendarSync()


def test_base_url_from_environment(monkeypatch):
    monkeypatch.setenv("CALENDAR_API_BASE_URL", "https://cal.example.com/")
    assert HttpCalendarSync().base_url == "https://cal.example.com"
