"""Domain models for the Interview Scheduler."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Literal, Optional

from interview_scheduler.exceptions import ValidationError

MIN_DURATION_MINUTES = 15
MAX_DURATION_MINUTES = 480
MIN_REMINDER_HOURS = 1
MAX_REMINDER_HOURS = 168

ParticipantRole = Literal["interviewer", "candidate", "external"]
BookingKind = Literal["INTERVIEW", "EXTERNAL_CALENDAR", "PTO"]
BookingStatus = Literal["SCHEDULED", "CANCELLED", "COMPLETED", "NO_SHOW"]
BusyStatus = Literal["busy", "tentative", "free"]
MeetingType = Literal["PHONE", "VIDEO", "IN_PERSON"]
ConflictType = Literal["EXISTING_BOOKING", "PTO", "EXTERNAL_CALENDAR_BUSY"]
Severity = Literal["HARD", "SOFT"]
SchedulingState = Literal[
    "VALIDATING",
    "CHECKING_AVAILABILITY",
    "CHECKING_CONFLICTS",
    "BLOCKED",
    "CONFIRMED",
    "BOOKED",
]
ReminderRecipient = Literal["CANDIDATE", "INTERVIEWER"]

MEETING_TYPES = ("PHONE", "VIDEO", "IN_PERSON")
DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


@dataclass(frozen=True)
class Participant:
    """A person taking part in an interview (interviewer, candidate, or external guest)."""
    id: str
    name: str
    email: str
    timezone: str  # IANA identifier, e.g. "America/Los_Angeles"
    role: ParticipantRole = "interviewer"

    @property
    def has_availability_model(self) -> bool:
        return self.role == "interviewer"


@dataclass(frozen=True)
class Actor:
    """The requester on whose behalf an operation runs."""
    id: str
    email: str
    role: str


@dataclass
class AvailabilityWindow:
    """A recurring weekly window, in the participant's local time."""
    participant_id: str
    day_of_week: int  # 0=Sunday .. 6=Saturday
    start_time: str  # "HH:MM"
    end_time: str  # "HH:MM", "24:00" allowed
    is_active: bool = True

    def contains(self, local_start: str, local_end: str) -> bool:
        return self.start_time <= local_start and local_end <= self.end_time


@dataclass
class Booking:
    """A persisted commitment: an interview, an external calendar entry, or time off."""
    id: str
    kind: BookingKind
    start: datetime
    end: datetime
    attendee_emails: list[str]
    status: BookingStatus = "SCHEDULED"
    title: str = ""
    candidate_id: Optional[str] = None
    interviewer_id: Optional[str] = None
    custom_interviewer_name: Optional[str] = None
    busy_status: BusyStatus = "busy"
    meeting_type: Optional[MeetingType] = None
    location: Optional[str] = None
    meeting_link: Optional[str] = None
    notes: Optional[str] = None
    reminder_hours: Optional[int] = None
    calendar_event_id: Optional[str] = None

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Booking {self.id} must start before it ends")

    @property
    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return intervals_overlap(self.start, self.end, start, end)


@dataclass(frozen=True)
class ProposedSlot:
    """A candidate (start, duration) pair under evaluation."""
    start: datetime
    duration_minutes: int

    @property
    def end(self) -> datetime:
        return self.start + timedelta(minutes=self.duration_minutes)


@dataclass
class Conflict:
    """An overlap between a proposed interval and an existing booking."""
    type: ConflictType
    severity: Severity
    participant: Participant
    booking: Booking
    overlap_start: datetime
    overlap_end: datetime

    @property
    def is_hard(self) -> bool:
        return self.severity == "HARD"


@dataclass(frozen=True)
class InterviewerRef:
    """Either a directory interviewer (by id) or an external interviewer (by name)."""
    interviewer_id: Optional[str] = None
    custom_name: Optional[str] = None

    def __post_init__(self):
        has_id = bool(self.interviewer_id and self.interviewer_id.strip())
        has_name = bool(self.custom_name and self.custom_name.strip())
        if has_id == has_name:
            raise ValueError("InterviewerRef needs exactly one of interviewer_id or custom_name")

    @classmethod
    def by_id(cls, interviewer_id: str) -> "InterviewerRef":
        return cls(interviewer_id=interviewer_id)

    @classmethod
    def by_name(cls, name: str) -> "InterviewerRef":
        return cls(custom_name=name)

    @property
    def is_directory_user(self) -> bool:
        return self.interviewer_id is not None


@dataclass
class SchedulingRequest:
    """Request to schedule an interview."""
    candidate_id: str
    interviewer: InterviewerRef
    start: datetime
    duration_minutes: int
    meeting_type: MeetingType = "VIDEO"
    location: Optional[str] = None
    meeting_link: Optional[str] = None
    notes: Optional[str] = None
    reminder_hours: Optional[int] = None
    send_reminders: bool = True
    force_schedule: bool = False

    @property
    def end(self) -> datetime:
        return self.start + timedelta(minutes=self.duration_minutes)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "SchedulingRequest":
        """
        Build a request from a camelCase payload.

        Every problem is collected into a single ValidationError so callers can
        report all field errors at once.
        """
        errors: dict[str, str] = {}

        candidate_id = payload.get("candidateId")
        if not candidate_id or not str(candidate_id).strip():
            errors["candidateId"] = "candidateId is required"

        interviewer_id = payload.get("interviewerId") or None
        custom_name = payload.get("customInterviewerName") or None
        interviewer = None
        if interviewer_id and custom_name:
            errors["interviewerId"] = "Provide either interviewerId or customInterviewerName, not both"
        elif not interviewer_id and not custom_name:
            errors["interviewerId"] = "Either interviewerId or customInterviewerName is required"
        else:
            try:
                interviewer = InterviewerRef(interviewer_id=interviewer_id, custom_name=custom_name)
            except ValueError as e:
                errors["interviewerId"] = str(e)

        start = None
        raw_start = payload.get("start")
        if not raw_start:
            errors["start"] = "start is required"
        else:
            try:
                start = parse_instant(raw_start)
            except ValueError as e:
                errors["start"] = str(e)

        duration = payload.get("durationMinutes")
        if not isinstance(duration, int) or isinstance(duration, bool):
            errors["durationMinutes"] = "durationMinutes must be an integer"
        elif not MIN_DURATION_MINUTES <= duration <= MAX_DURATION_MINUTES:
            errors["durationMinutes"] = (
                f"durationMinutes must be between {MIN_DURATION_MINUTES} and {MAX_DURATION_MINUTES}"
            )

        meeting_type = payload.get("meetingType", "VIDEO")
        if meeting_type not in MEETING_TYPES:
            errors["meetingType"] = f"meetingType must be one of {', '.join(MEETING_TYPES)}"

        reminder_hours = payload.get("reminderHours")
        if reminder_hours is not None and (
            not isinstance(reminder_hours, int)
            or not MIN_REMINDER_HOURS <= reminder_hours <= MAX_REMINDER_HOURS
        ):
            errors["reminderHours"] = (
                f"reminderHours must be between {MIN_REMINDER_HOURS} and {MAX_REMINDER_HOURS}"
            )

        if errors:
            raise ValidationError("Invalid interview data", field_errors=errors)

        return cls(
            candidate_id=str(candidate_id).strip(),
            interviewer=interviewer,
            start=start,
            duration_minutes=duration,
            meeting_type=meeting_type,
            location=payload.get("location"),
            meeting_link=payload.get("meetingLink"),
            notes=payload.get("notes"),
            reminder_hours=reminder_hours,
            send_reminders=bool(payload.get("sendReminders", True)),
            force_schedule=bool(payload.get("forceSchedule", False)),
        )


@dataclass
class Reminder:
    """A pending reminder for one party of a booking."""
    booking_id: str
    recipient: ReminderRecipient
    scheduled_at: datetime
    status: str = "PENDING"


@dataclass
class AvailabilityResult:
    """Outcome of matching an interval against a participant's weekly windows."""
    is_open: bool
    day_of_week: int
    local_start: str
    local_end: str
    available_windows: list[AvailabilityWindow] = field(default_factory=list)
    suggestion_days: list[int] = field(default_factory=list)
    crosses_midnight: bool = False


@dataclass
class ConflictCheckResult:
    """Outcome of scanning existing commitments for a proposed interval."""
    conflicts: list[Conflict] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    suggested_times: list[ProposedSlot] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    @property
    def hard_conflicts(self) -> list[Conflict]:
        return [c for c in self.conflicts if c.is_hard]

    @property
    def soft_conflicts(self) -> list[Conflict]:
        return [c for c in self.conflicts if not c.is_hard]


@dataclass
class SideEffectResult:
    """Outcome of one best-effort integration call."""
    name: str
    ok: bool
    error: Optional[str] = None
    action: str = "Interview scheduled"  # what succeeded before this call ran

    @property
    def warning(self) -> Optional[str]:
        if self.ok:
            return None
        return f"{self.action} but {self.name} failed: {self.error}"


@dataclass
class DispatchReport:
    """What the alert dispatcher managed to send."""
    was_forced: bool
    recipients: list[str] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


@dataclass
class SchedulingResult:
    """A successfully booked interview plus everything that happened on the way."""
    booking: Booking
    states: list[SchedulingState]
    forced: bool = False
    conflicts: list[Conflict] = field(default_factory=list)
    reminders: list[Reminder] = field(default_factory=list)
    side_effects: list[SideEffectResult] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    advisories: list[str] = field(default_factory=list)  # soft conflicts, awkward local times

    @property
    def state(self) -> SchedulingState:
        return self.states[-1]


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open overlap test; intervals that only touch do not overlap."""
    return a_start < b_end and b_start < a_end


def parse_instant(value: Any) -> datetime:
    """Parse an ISO 8601 instant; the value must carry a UTC offset."""
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValueError(f"'{value}' is not a valid ISO 8601 instant")
    if parsed.tzinfo is None or parsed.utcoffset() is None:
        raise ValueError("start must include a timezone offset")
    return parsed
