"""Booking persistence with commit-time double-booking protection."""

import logging
import threading
import uuid
from dataclasses import replace
from typing import Any, Iterable, Optional, Protocol

from interview_scheduler.exceptions import BookingCollisionError, NotFoundError
from interview_scheduler.models.entities import Booking, Reminder

logger = logging.getLogger(__name__)


class BookingStore(Protocol):
    """Storage used by the scheduling core."""

    def create_booking(self, booking: Booking, acknowledged_ids: Iterable[str] = ()) -> Booking: ...

    def get_booking(self, booking_id: str) -> Optional[Booking]: ...

    def update_booking(self, booking_id: str, acknowledged_ids: Optional[Iterable[str]] = None, **changes: Any) -> Booking: ...

    def list_bookings_for_participant(self, email: str) -> list[Booking]: ...

    def create_reminder(self, reminder: Reminder) -> Reminder: ...

    def list_reminders(self, booking_id: str) -> list[Reminder]: ...


def new_booking_id() -> str:
    return uuid.uuid4().hex


class InMemoryBookingStore:
    """
    Thread-safe in-memory booking store.

    create_booking re-checks the interviewer's calendar while holding the store
    lock, so two requests racing for the same interviewer and interval cannot
    both commit. Bookings the caller already saw and chose to override are
    passed as acknowledged_ids and do not count as collisions.
    """

    def __init__(self, bookings: Iterable[Booking] = ()):
        self._lock = threading.Lock()
        self._bookings: dict[str, Booking] = {}
        self._reminders: list[Reminder] = []
        for booking in bookings:
            self._bookings[booking.id] = booking

    def create_booking(self, booking: Booking, acknowledged_ids: Iterable[str] = ()) -> Booking:
        with self._lock:
            if booking.id in self._bookings:
                raise ValueError(f"Booking {booking.id} already exists")
            self._check_collisions(booking, set(acknowledged_ids))
            self._bookings[booking.id] = booking
        logger.info("Stored booking %s (%s) %s-%s", booking.id, booking.kind, booking.start, booking.end)
        return booking

    def _check_collisions(self, booking: Booking, acknowledged: set[str]):
        """Caller holds the lock."""
        if booking.kind != "INTERVIEW" or booking.status != "SCHEDULED" or not booking.interviewer_id:
            return
        colliding = [
            existing.id
            for existing in self._bookings.values()
            if existing.id != booking.id
            and existing.kind == "INTERVIEW"
            and existing.status == "SCHEDULED"
            and existing.interviewer_id == booking.interviewer_id
            and existing.id not in acknowledged
            and existing.overlaps(booking.start, booking.end)
        ]
        if colliding:
            raise BookingCollisionError(booking.interviewer_id, colliding)

    def add(self, booking: Booking) -> Booking:
        """Insert without collision checks (external calendar entries, time off, fixtures)."""
        with self._lock:
            self._bookings[booking.id] = booking
        return booking

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        return self._bookings.get(booking_id)

    def update_booking(self, booking_id: str, acknowledged_ids: Optional[Iterable[str]] = None, **changes: Any) -> Booking:
        """
        Apply field changes. A change of start or end is re-checked for
        interviewer collisions under the lock, like create_booking.
        """
        with self._lock:
            existing = self._bookings.get(booking_id)
            if existing is None:
                raise NotFoundError("booking", booking_id)
            updated = replace(existing, **changes)
            if "start" in changes or "end" in changes:
                self._check_collisions(updated, set(acknowledged_ids or ()))
            self._bookings[booking_id] = updated
        return updated

    def list_bookings(self) -> list[Booking]:
        with self._lock:
            bookings = list(self._bookings.values())
        return sorted(bookings, key=lambda b: b.start)

    def list_bookings_for_participant(self, email: str) -> list[Booking]:
        email = email.lower()
        return [
            booking
            for booking in self.list_bookings()
            if email in (e.lower() for e in booking.attendee_emails)
        ]

    def create_reminder(self, reminder: Reminder) -> Reminder:
        with self._lock:
            self._reminders.append(reminder)
        return reminder

    def list_reminders(self, booking_id: str) -> list[Reminder]:
        return [r for r in self._reminders if r.booking_id == booking_id]
