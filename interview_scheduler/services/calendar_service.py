"""External calendar sync over HTTP."""

import logging
import os
from typing import Any, Dict, List, Optional, Protocol

import httpx

from interview_scheduler.exceptions import IntegrationError
from interview_scheduler.models.entities import Booking, Participant

logger = logging.getLogger(__name__)


class CalendarSync(Protocol):
    """Calendar operations the scheduler performs after a booking is committed."""

    def create_event(self, booking: Booking, organizer: Participant, attendees: List[str]) -> Dict[str, Any]: ...

    def update_event(self, event_id: str, booking: Booking, organizer: Participant) -> Dict[str, Any]: ...

    def delete_event(self, event_id: str) -> None: ...


class HttpCalendarSync:
    """Client for a REST calendar API that creates events in the organizer's calendar."""

    def __init__(
        self,
        base_url: str = None,
        api_token: str = None,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize calendar API client.

        Args:
            base_url: API root (defaults to env var CALENDAR_API_BASE_URL)
            api_token: Bearer token (defaults to env var CALENDAR_API_TOKEN)
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport, used by tests
        """
        self.base_url = (base_url or os.getenv("CALENDAR_API_BASE_URL", "")).rstrip("/")
        self.api_token = api_token or os.getenv("CALENDAR_API_TOKEN", "")
        self.timeout = timeout
        self.transport = transport
        if not self.base_url:
            raise ValueError("Calendar API base URL is not configured")

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.request(method, url, json=payload, headers=self._get_headers())
                response.raise_for_status()
                return response
        except httpx.HTTPStatusError as e:
            raise IntegrationError(
                f"Calendar API returned {e.response.status_code} for {method} {path}"
            ) from e
        except httpx.RequestError as e:
            raise IntegrationError(f"Calendar API request failed: {e}") from e

    def _event_payload(self, booking: Booking, organizer: Participant, attendees: List[str]) -> Dict[str, Any]:
        description_lines = [
            "Interview Details:",
            f"- Type: {booking.meeting_type or 'N/A'}",
            f"- Duration: {booking.duration_minutes} minutes",
        ]
        if booking.meeting_link:
            description_lines.append(f"- Meeting Link: {booking.meeting_link}")
        if booking.location and booking.meeting_type == "IN_PERSON":
            description_lines.append(f"- Location: {booking.location}")
        if booking.notes:
            description_lines.extend(["", "Notes:", booking.notes])

        payload = {
            "summary": booking.title or "Interview",
            "description": "\n".join(description_lines),
            "start": {"dateTime": booking.start.isoformat(), "timeZone": organizer.timezone},
            "end": {"dateTime": booking.end.isoformat(), "timeZone": organizer.timezone},
            "attendees": [{"email": email} for email in attendees],
            "location": booking.location if booking.meeting_type == "IN_PERSON" else booking.meeting_link,
            "reminders": {
                "useDefault": False,
                "overrides": [
                    {"method": "email", "minutes": 24 * 60},
                    {"method": "email", "minutes": 60},
                    {"method": "popup", "minutes": 15},
                ],
            },
        }
        if booking.meeting_type == "VIDEO":
            payload["conferenceData"] = {"createRequest": {"requestId": booking.id}}
        return payload

    def create_event(self, booking: Booking, organizer: Participant, attendees: List[str]) -> Dict[str, Any]:
        """
        Create the interview event in the organizer's calendar.

        Returns:
            dict with at least "id"; "meetingLink" when the API generated one
        """
        response = self._request(
            "POST",
            f"/calendars/{organizer.email}/events",
            self._event_payload(booking, organizer, attendees),
        )
        event = response.json()
        if not event.get("id"):
            raise IntegrationError("Calendar API response did not include an event id")
        logger.info("Created calendar event %s for booking %s", event["id"], booking.id)
        return event

    def update_event(self, event_id: str, booking: Booking, organizer: Participant) -> Dict[str, Any]:
        payload = {
            "start": {"dateTime": booking.start.isoformat(), "timeZone": organizer.timezone},
            "end": {"dateTime": booking.end.isoformat(), "timeZone": organizer.timezone},
            "location": booking.location or booking.meeting_link,
        }
        response = self._request("PATCH", f"/events/{event_id}", payload)
        logger.info("Updated calendar event %s", event_id)
        return response.json()

    def delete_event(self, event_id: str) -> None:
        self._request("DELETE", f"/events/{event_id}")
        logger.info("Deleted calendar event %s", event_id)
