"""Weekly availability matching in each participant's own timezone."""

import logging
from datetime import datetime, time, timedelta

import pytz

from interview_scheduler.models.entities import AvailabilityResult, Participant
from interview_scheduler.services.participant_directory import ParticipantDirectory

logger = logging.getLogger(__name__)

END_OF_DAY = "24:00"


def day_of_week(local_dt: datetime) -> int:
    """0=Sunday .. 6=Saturday."""
    return local_dt.isoweekday() % 7


class AvailabilityResolver:
    """Decides whether an interval falls inside a participant's weekly windows."""

    def __init__(self, directory: ParticipantDirectory, default_timezone: str = "America/New_York"):
        self.directory = directory
        self.default_timezone = default_timezone

    def timezone_for(self, participant: Participant):
        try:
            return pytz.timezone(participant.timezone)
        except pytz.UnknownTimeZoneError:
            logger.warning(
                "Unknown timezone %r for %s, falling back to %s",
                participant.timezone, participant.id, self.default_timezone,
            )
            return pytz.timezone(self.default_timezone)

    def to_local(self, participant: Participant, instant: datetime) -> datetime:
        return instant.astimezone(self.timezone_for(participant))

    def resolve(self, participant: Participant, instant: datetime, duration_minutes: int) -> AvailabilityResult:
        """
        Match [instant, instant + duration) against the participant's windows.

        The weekday and times of day are taken from the participant's local
        calendar. An interval that ends after local midnight is never open.
        """
        local_start_dt = self.to_local(participant, instant)
        local_end_dt = self.to_local(participant, instant + timedelta(minutes=duration_minutes))
        dow = day_of_week(local_start_dt)
        local_start = local_start_dt.strftime("%H:%M")

        crosses_midnight = False
        if local_end_dt.date() == local_start_dt.date():
            local_end = local_end_dt.strftime("%H:%M")
        elif (
            local_end_dt.date() == local_start_dt.date() + timedelta(days=1)
            and local_end_dt.time() == time(0, 0)
        ):
            local_end = END_OF_DAY
        else:
            local_end = local_end_dt.strftime("%H:%M")
            crosses_midnight = True

        active = [w for w in self.directory.get_availability_windows(participant.id) if w.is_active]
        day_windows = sorted(
            (w for w in active if w.day_of_week == dow),
            key=lambda w: w.start_time,
        )

        if not day_windows:
            return AvailabilityResult(
                is_open=False,
                day_of_week=dow,
                local_start=local_start,
                local_end=local_end,
                available_windows=[],
                suggestion_days=sorted({w.day_of_week for w in active}),
                crosses_midnight=crosses_midnight,
            )

        is_open = not crosses_midnight and any(w.contains(local_start, local_end) for w in day_windows)
        if crosses_midnight:
            logger.debug(
                "Interval for %s starting %s local runs past midnight; not matched",
                participant.id, local_start,
            )

        return AvailabilityResult(
            is_open=is_open,
            day_of_week=dow,
            local_start=local_start,
            local_end=local_end,
            available_windows=day_windows,
            suggestion_days=[],
            crosses_midnight=crosses_midnight,
        )
