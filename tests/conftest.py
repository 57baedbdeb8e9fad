"""
Shared fixtures for the scheduler tests.

All dates are fixed in the future. 2030-06-03 is a Monday; participants
live in UTC unless a test says otherwise.
"""

import itertools
from datetime import datetime

import pytest
import pytz

from interview_scheduler.config import Settings
from interview_scheduler.models.entities import (
    Actor,
    Booking,
    InterviewerRef,
    Participant,
    SchedulingRequest,
)
from interview_scheduler.services.audit_sink import LoggingAuditSink
from interview_scheduler.services.availability_resolver import AvailabilityResolver
from interview_scheduler.services.booking_store import InMemoryBookingStore
from interview_scheduler.services.conflict_detector import ConflictDetector
from interview_scheduler.services.email_service_mock import EmailServiceMock
from interview_scheduler.services.participant_directory import (
    InMemoryParticipantDirectory,
    weekday_windows,
)
from interview_scheduler.services.scheduling_orchestrator import create_orchestrator
from interview_scheduler.services.slot_suggester import SlotSuggester


@pytest.fixture
def at():
    """Build a UTC instant; defaults to Monday 2030-06-03."""

    def _at(hour, minute=0, day=3, month=6, year=2030):
        return datetime(year, month, day, hour, minute, tzinfo=pytz.UTC)

    return _at


@pytest.fixture
def interviewer():
    return Participant("int_1", "Alice Interviewer", "alice@example.com", "UTC")


@pytest.fixture
def second_interviewer():
    return Participant("int_2", "Carol Interviewer", "carol@example.com", "UTC")


@pytest.fixture
def candidate():
    return Participant("cand_1", "Bob Candidate", "bob@example.com", "UTC", "candidate")


@pytest.fixture
def directory(interviewer, second_interviewer, candidate):
    windows = weekday_windows("int_1", "09:00", "17:00") + weekday_windows("int_2", "09:00", "17:00")
    return InMemoryParticipantDirectory([interviewer, second_interviewer, candidate], windows)


@pytest.fixture
def store():
    return InMemoryBookingStore()


@pytest.fixture
def settings():
    return Settings(default_timezone="UTC", admin_emails=[], integration_timeout_seconds=2.0)


@pytest.fixture
def notifier():
    return EmailServiceMock()


@pytest.fixture
def audit_sink():
    return LoggingAuditSink()


@pytest.fixture
def resolver(directory):
    return AvailabilityResolver(directory, "UTC")


@pytest.fixture
def detector(directory, store, resolver):
    detector = ConflictDetector(directory, store, resolver)
    detector.slot_suggester = SlotSuggester(resolver, detector)
    return detector


@pytest.fixture
def suggester(detector):
    return detector.slot_suggester


@pytest.fixture
def orchestrator(settings, directory, store, notifier, audit_sink):
    orchestrator = create_orchestrator(settings, directory, store, notifier=notifier, audit_sink=audit_sink)
    yield orchestrator
    orchestrator.close()


@pytest.fixture
def hr_actor():
    return Actor(id="u_hr", email="hr.admin@example.com", role="HR_ADMIN")


@pytest.fixture
def recruiter_actor():
    return Actor(id="u_rec", email="recruiter@example.com", role="RECRUITER")


@pytest.fixture
def make_booking():
    counter = itertools.count(1)

    def _make(
        start,
        end,
        emails,
        kind="INTERVIEW",
        status="SCHEDULED",
        busy_status="busy",
        interviewer_id=None,
        title="",
        booking_id=None,
    ):
        return Booking(
            id=booking_id or f"bk_{next(counter)}",
            kind=kind,
            start=start,
            end=end,
            attendee_emails=list(emails),
            status=status,
            busy_status=busy_status,
            interviewer_id=interviewer_id,
            title=title,
        )

    return _make


@pytest.fixture
def make_request(at):
    def _make(start=None, duration_minutes=60, interviewer_id="int_1", custom_name=None, candidate_id="cand_1", **kwargs):
        if custom_name:
            interviewer = InterviewerRef.by_name(custom_name)
        else:
            interviewer = InterviewerRef.by_id(interviewer_id)
        return SchedulingRequest(
            candidate_id=candidate_id,
            interviewer=interviewer,
            start=start or at(14),
            duration_minutes=duration_minutes,
            **kwargs,
        )

    return _make
