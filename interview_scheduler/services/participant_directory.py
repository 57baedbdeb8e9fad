"""Participant directory: identities, timezones and weekly availability."""

import logging
from typing import Iterable, Optional, Protocol

from interview_scheduler.config import DEFAULT_PRIVILEGED_ROLES
from interview_scheduler.models.entities import Actor, AvailabilityWindow, Participant

logger = logging.getLogger(__name__)


class ParticipantDirectory(Protocol):
    """What the scheduling core needs to know about people."""

    def get_participant(self, participant_id: str) -> Optional[Participant]: ...

    def find_by_email(self, email: str) -> Optional[Participant]: ...

    def get_availability_windows(self, participant_id: str) -> list[AvailabilityWindow]: ...

    def is_privileged(self, actor: Actor) -> bool: ...


class InMemoryParticipantDirectory:
    """Directory backed by plain dicts."""

    def __init__(
        self,
        participants: Iterable[Participant] = (),
        windows: Iterable[AvailabilityWindow] = (),
        privileged_roles: Iterable[str] = DEFAULT_PRIVILEGED_ROLES,
    ):
        self._participants: dict[str, Participant] = {}
        self._windows: dict[str, list[AvailabilityWindow]] = {}
        self.privileged_roles = set(privileged_roles)
        for participant in participants:
            self.add_participant(participant)
        for window in windows:
            self.add_window(window)

    def add_participant(self, participant: Participant):
        self._participants[participant.id] = participant

    def add_window(self, window: AvailabilityWindow):
        if window.start_time >= window.end_time:
            raise ValueError(
                f"Window {window.start_time}-{window.end_time} for {window.participant_id} is empty"
            )
        self._windows.setdefault(window.participant_id, []).append(window)

    def get_participant(self, participant_id: str) -> Optional[Participant]:
        return self._participants.get(participant_id)

    def find_by_email(self, email: str) -> Optional[Participant]:
        email = email.strip().lower()
        for participant in self._participants.values():
            if participant.email.lower() == email:
                return participant
        return None

    def list_participants(self) -> list[Participant]:
        return list(self._participants.values())

    def get_availability_windows(self, participant_id: str) -> list[AvailabilityWindow]:
        return list(self._windows.get(participant_id, []))

    def is_privileged(self, actor: Actor) -> bool:
        return actor.role in self.privileged_roles


def weekday_windows(
    participant_id: str,
    start_time: str = "09:00",
    end_time: str = "17:00",
    days: Iterable[int] = (1, 2, 3, 4, 5),
) -> list[AvailabilityWindow]:
    """Same window on each of the given days (0=Sunday)."""
    return [
        AvailabilityWindow(participant_id, day, start_time, end_time)
        for day in days
    ]


def demo_directory(privileged_roles: Iterable[str] = DEFAULT_PRIVILEGED_ROLES) -> InMemoryParticipantDirectory:
    """Synthetic interviewers and candidates for the command line demo."""
    interviewers = [
        Participant("int_001", "Vikram Singh", "vikram.singh@example.com", "Asia/Kolkata"),
        Participant("int_002", "David Thompson", "david.thompson@example.com", "America/Los_Angeles"),
        Participant("int_003", "Lisa Anderson", "lisa.anderson@example.com", "America/New_York"),
        Participant("int_004", "James Wilson", "james.wilson@example.com", "Europe/London"),
    ]
    candidates = [
        Participant("cand_001", "Rajesh Kumar", "rajesh.kumar@example.com", "Asia/Kolkata", "candidate"),
        Participant("cand_002", "Priya Sharma", "priya.sharma@example.com", "Asia/Kolkata", "candidate"),
        Participant("cand_003", "Michael Chen", "michael.chen@example.com", "America/Los_Angeles", "candidate"),
        Participant("cand_004", "Sarah Johnson", "sarah.johnson@example.com", "America/New_York", "candidate"),
        Participant("cand_005", "Emma Wilson", "emma.wilson@example.com", "Europe/London", "candidate"),
    ]

    windows = []
    windows += weekday_windows("int_001", "10:00", "18:00")
    windows += weekday_windows("int_002", "09:00", "12:00")
    windows += weekday_windows("int_002", "13:00", "17:00")
    windows += weekday_windows("int_003", "09:00", "17:00", days=(1, 3, 5))
    windows += weekday_windows("int_004", "08:30", "16:30", days=(2, 3, 4))

    logger.debug("Built demo directory with %d participants", len(interviewers) + len(candidates))
    return InMemoryParticipantDirectory(interviewers + candidates, windows, privileged_roles)
