"""Conflict alert emails and their audit trail."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from interview_scheduler.models.entities import Actor, Conflict, DispatchReport, Participant
from interview_scheduler.services.audit_sink import CONFLICT_DETECTED, CONFLICT_OVERRIDDEN, AuditSink
from interview_scheduler.services.email_service_mock import Notifier
from interview_scheduler.services.participant_directory import ParticipantDirectory
from interview_scheduler.services.response_formatter import ResponseFormatter

logger = logging.getLogger(__name__)


@dataclass
class AlertContext:
    """The interview a conflict alert is about."""
    candidate: Participant
    interviewer_name: str
    start: datetime
    duration_minutes: int
    meeting_type: str
    interviewer: Optional[Participant] = None
    booking_id: Optional[str] = None


class AlertDispatcher:
    """Sends conflict alerts; never lets a delivery failure escape."""

    def __init__(
        self,
        notifier: Notifier,
        audit_sink: AuditSink,
        directory: ParticipantDirectory,
        admin_emails: Iterable[str] = (),
        app_url: str = "",
    ):
        self.notifier = notifier
        self.audit_sink = audit_sink
        self.directory = directory
        self.admin_emails = list(admin_emails)
        self.app_url = app_url

    def notify(
        self,
        conflicts: list[Conflict],
        context: AlertContext,
        was_forced: bool,
        from_actor: Optional[Actor] = None,
    ) -> DispatchReport:
        """
        Send one round of alerts for a detection (was_forced=False) or an
        override (was_forced=True).

        The interviewer and configured admins always receive the alert; the
        candidate only hears about it once a booking was forced over their own
        conflicts.
        """
        report = DispatchReport(was_forced=was_forced)
        try:
            lines = [
                ResponseFormatter.format_conflict_message(c, self._other_party(c))
                for c in conflicts
            ]
            tz = (context.interviewer or context.candidate).timezone
            scheduled_time = ResponseFormatter.format_datetime(
                context.start, tz, "%A, %B %d, %Y at %I:%M %p %Z"
            )
            from_email = from_actor.email if from_actor else None

            for name, email in self._recipients(conflicts, context, was_forced):
                subject, body = ResponseFormatter.format_alert_email(
                    name,
                    context.candidate.name,
                    context.interviewer_name,
                    scheduled_time,
                    lines,
                    was_forced,
                    self.app_url,
                )
                try:
                    self.notifier.send_email(email, subject, body, from_email=from_email)
                    report.recipients.append(email)
                except Exception as e:
                    logger.exception("Failed to send conflict alert to %s", email)
                    report.failures.append(f"{email}: {e}")

            self.audit_sink.record(
                CONFLICT_OVERRIDDEN if was_forced else CONFLICT_DETECTED,
                actor_id=from_actor.id if from_actor else None,
                details={
                    "candidate_id": context.candidate.id,
                    "interviewer": context.interviewer_name,
                    "start": context.start.isoformat(),
                    "duration_minutes": context.duration_minutes,
                    "booking_id": context.booking_id,
                    "conflicting_booking_ids": sorted({c.booking.id for c in conflicts}),
                    "recipients": list(report.recipients),
                },
            )
        except Exception as e:
            logger.exception("Conflict alert dispatch failed")
            report.failures.append(str(e))

        return report

    def _recipients(
        self,
        conflicts: list[Conflict],
        context: AlertContext,
        was_forced: bool,
    ) -> list[tuple[str, str]]:
        recipients: list[tuple[str, str]] = []
        seen: set[str] = set()

        def add(name: str, email: Optional[str]):
            if email and email.lower() not in seen:
                seen.add(email.lower())
                recipients.append((name, email))

        if context.interviewer:
            add(context.interviewer.name, context.interviewer.email)
        for email in self.admin_emails:
            admin = self.directory.find_by_email(email)
            add(admin.name if admin else "HR Team", email)
        if was_forced:
            candidate_email = context.candidate.email.lower()
            if any(c.participant.email.lower() == candidate_email for c in conflicts):
                add(context.candidate.name, context.candidate.email)
        return recipients

    def _other_party(self, conflict: Conflict) -> Optional[str]:
        own = conflict.participant.email.lower()
        names = []
        for email in conflict.booking.attendee_emails:
            if email.lower() == own:
                continue
            other = self.directory.find_by_email(email)
            names.append(other.name if other else email)
        if not names and conflict.booking.custom_interviewer_name:
            names.append(conflict.booking.custom_interviewer_name)
        return ", ".join(names) or None
