"""Custom exceptions for the Interview Scheduler."""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from interview_scheduler.models.entities import (
        AvailabilityResult,
        Conflict,
        ProposedSlot,
    )


class SchedulingError(Exception):
    """Base exception for all interview scheduler errors."""

    def __init__(self, message: str, states: Optional[list[str]] = None):
        super().__init__(message)
        self.message = message
        self.states = list(states or [])

    @property
    def state(self) -> Optional[str]:
        return self.states[-1] if self.states else None


class ValidationError(SchedulingError):
    """Raised when a request is malformed or incomplete."""

    def __init__(self, message: str, field_errors: Optional[dict[str, str]] = None, states=None):
        super().__init__(message, states)
        self.field_errors = dict(field_errors or {})


class NotFoundError(SchedulingError):
    """Raised when a candidate, interviewer or booking does not exist."""

    def __init__(self, kind: str, identifier: str, states=None):
        super().__init__(f"{kind.capitalize()} '{identifier}' not found", states)
        self.kind = kind
        self.identifier = identifier


class AvailabilityError(SchedulingError):
    """Raised when the interviewer has no open window matching the request."""

    def __init__(
        self,
        message: str,
        availability: "AvailabilityResult",
        suggestion_days: list[str],
        available_slots: list[str],
        suggestion_text: str,
        states=None,
    ):
        super().__init__(message, states)
        self.availability = availability
        self.suggestion_days = suggestion_days
        self.available_slots = available_slots
        self.suggestion_text = suggestion_text


class ConflictError(SchedulingError):
    """Raised when hard conflicts block a booking and no valid override was given."""

    def __init__(
        self,
        message: str,
        conflicts: list["Conflict"],
        soft_conflicts: Optional[list["Conflict"]] = None,
        warnings: Optional[list[str]] = None,
        suggested_times: Optional[list["ProposedSlot"]] = None,
        states=None,
    ):
        super().__init__(message, states)
        self.conflicts = conflicts
        self.soft_conflicts = list(soft_conflicts or [])
        self.warnings = list(warnings or [])
        self.suggested_times = list(suggested_times or [])


class IntegrationError(SchedulingError):
    """Raised by calendar or email integrations; never fatal to a booking."""


class BookingCollisionError(SchedulingError):
    """Raised by a booking store when a commit would double-book an interviewer."""

    def __init__(self, interviewer_id: str, colliding_ids: list[str]):
        super().__init__(
            f"Interviewer '{interviewer_id}' was booked concurrently "
            f"({', '.join(colliding_ids)})"
        )
        self.interviewer_id = interviewer_id
        self.colliding_ids = colliding_ids
