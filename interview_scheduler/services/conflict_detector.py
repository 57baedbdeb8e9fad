"""Conflict detection against existing bookings, time off and external calendars."""

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Iterable, Optional

from interview_scheduler.models.entities import (
    Booking,
    Conflict,
    ConflictCheckResult,
    Participant,
    intervals_overlap,
)
from interview_scheduler.services.availability_resolver import AvailabilityResolver, day_of_week
from interview_scheduler.services.booking_store import BookingStore
from interview_scheduler.services.participant_directory import ParticipantDirectory

if TYPE_CHECKING:
    from interview_scheduler.services.slot_suggester import SlotSuggester

logger = logging.getLogger(__name__)

CHECKED_KINDS = ("INTERVIEW", "EXTERNAL_CALENDAR", "PTO")


class ConflictDetector:
    """Finds and classifies commitments that overlap a proposed interval."""

    def __init__(
        self,
        directory: ParticipantDirectory,
        booking_store: BookingStore,
        resolver: AvailabilityResolver,
        slot_suggester: Optional["SlotSuggester"] = None,
    ):
        self.directory = directory
        self.booking_store = booking_store
        self.resolver = resolver
        self.slot_suggester = slot_suggester

    def check(
        self,
        participant_emails: Iterable[str],
        start: datetime,
        end: datetime,
        exclude_booking_id: Optional[str] = None,
        suggest: bool = True,
    ) -> ConflictCheckResult:
        """
        Check every participant's commitments against [start, end).

        Args:
            participant_emails: Emails of everyone attending
            start: Proposed start (aware)
            end: Proposed end (aware)
            exclude_booking_id: Booking to ignore, used when re-checking an update
            suggest: Ask the slot suggester for alternatives when hard conflicts exist

        Returns:
            ConflictCheckResult with conflicts, advisory warnings and suggestions
        """
        if start >= end:
            raise ValueError("Conflict check needs start < end")

        emails = _unique(participant_emails)
        conflicts: list[Conflict] = []
        warnings: list[str] = []
        seen: set[tuple[str, str]] = set()
        participants: list[Participant] = []

        for email in emails:
            participant = self.directory.find_by_email(email) or _unknown_participant(email)
            participants.append(participant)

            for booking in self.booking_store.list_bookings_for_participant(email):
                if booking.id == exclude_booking_id:
                    continue
                conflict = self._classify(participant, booking, start, end)
                if conflict is None:
                    continue
                key = (participant.email.lower(), booking.id)
                if key in seen:
                    continue
                seen.add(key)
                conflicts.append(conflict)

        conflicts.sort(key=lambda c: (c.overlap_start, c.participant.email))

        for conflict in conflicts:
            if not conflict.is_hard:
                warnings.append(
                    f"{conflict.participant.name} has a tentative calendar entry "
                    f"'{conflict.booking.title or 'Busy'}' overlapping this time"
                )
        for participant in participants:
            if participant.role != "external":
                for warning in self._time_of_day_warnings(participant, start, end):
                    if warning not in warnings:
                        warnings.append(warning)

        result = ConflictCheckResult(conflicts=conflicts, warnings=warnings)

        if result.hard_conflicts and suggest and self.slot_suggester is not None:
            duration_minutes = int((end - start).total_seconds() // 60)
            result.suggested_times = self.slot_suggester.suggest(
                participants,
                start,
                duration_minutes,
                exclude_booking_id=exclude_booking_id,
            )

        logger.debug(
            "Conflict check %s-%s for %s: %d hard, %d soft, %d warnings",
            start, end, emails,
            len(result.hard_conflicts), len(result.soft_conflicts), len(warnings),
        )
        return result

    def _classify(
        self,
        participant: Participant,
        booking: Booking,
        start: datetime,
        end: datetime,
    ) -> Optional[Conflict]:
        if booking.kind not in CHECKED_KINDS or booking.status != "SCHEDULED":
            return None
        if not intervals_overlap(start, end, booking.start, booking.end):
            return None

        if booking.kind == "INTERVIEW":
            conflict_type, severity = "EXISTING_BOOKING", "HARD"
        elif booking.kind == "PTO":
            conflict_type, severity = "PTO", "HARD"
        else:
            if booking.busy_status == "free":
                return None
            conflict_type = "EXTERNAL_CALENDAR_BUSY"
            severity = "SOFT" if booking.busy_status == "tentative" else "HARD"

        return Conflict(
            type=conflict_type,
            severity=severity,
            participant=participant,
            booking=booking,
            overlap_start=max(start, booking.start),
            overlap_end=min(end, booking.end),
        )

    def _time_of_day_warnings(self, participant: Participant, start: datetime, end: datetime) -> list[str]:
        """Advisory notes about awkward local times; never blocking."""
        local_start = self.resolver.to_local(participant, start)
        local_end = self.resolver.to_local(participant, end)
        hour = local_start.hour
        end_minutes = local_end.hour * 60 + local_end.minute
        if local_end.date() > local_start.date():
            end_minutes += 24 * 60
        dow = day_of_week(local_start)
        who = participant.name

        warnings = []
        if hour == 12 or (hour < 12 and end_minutes > 12 * 60):
            warnings.append(f"Scheduled during typical lunch hours (12pm-1pm) for {who}")
        if hour < 9:
            warnings.append(f"Scheduled before typical business hours (before 9am) for {who}")
        if hour >= 17:
            warnings.append(f"Scheduled after typical business hours (after 5pm) for {who}")
        if dow == 5 and hour >= 15:
            warnings.append(f"Scheduled on Friday afternoon for {who}")
        if dow == 1 and hour < 10:
            warnings.append(f"Scheduled early Monday morning for {who}")
        return warnings


def _unique(emails: Iterable[str]) -> list[str]:
    result = []
    seen = set()
    for email in emails:
        if not email:
            continue
        key = email.strip().lower()
        if key not in seen:
            seen.add(key)
            result.append(email.strip())
    return result


def _unknown_participant(email: str) -> Participant:
    return Participant(id=email, name=email, email=email, timezone="UTC", role="external")
