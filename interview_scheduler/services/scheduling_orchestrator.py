"""Scheduling workflow: validation, availability, conflicts, booking and side effects."""

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import timedelta
from typing import Any, Callable, Optional

from interview_scheduler.config import Settings
from interview_scheduler.exceptions import (
    AvailabilityError,
    BookingCollisionError,
    ConflictError,
    IntegrationError,
    NotFoundError,
    ValidationError,
)
from interview_scheduler.models.entities import (
    DAY_NAMES,
    MAX_DURATION_MINUTES,
    MAX_REMINDER_HOURS,
    MIN_DURATION_MINUTES,
    MIN_REMINDER_HOURS,
    Actor,
    Booking,
    ConflictCheckResult,
    Participant,
    Reminder,
    SchedulingRequest,
    SchedulingResult,
    SideEffectResult,
)
from interview_scheduler.services.alert_dispatcher import AlertContext, AlertDispatcher
from interview_scheduler.services.audit_sink import AuditSink, LoggingAuditSink
from interview_scheduler.services.availability_resolver import AvailabilityResolver
from interview_scheduler.services.booking_store import BookingStore, new_booking_id
from interview_scheduler.services.calendar_service import CalendarSync
from interview_scheduler.services.conflict_detector import ConflictDetector
from interview_scheduler.services.email_service_mock import Notifier
from interview_scheduler.services.participant_directory import InMemoryParticipantDirectory, ParticipantDirectory
from interview_scheduler.services.response_formatter import ResponseFormatter
from interview_scheduler.services.slot_suggester import SlotSuggester

logger = logging.getLogger(__name__)

BOOKING_STATUSES = ("SCHEDULED", "CANCELLED", "COMPLETED", "NO_SHOW")
UPDATABLE_FIELDS = ("start", "duration_minutes", "location", "meeting_link", "status", "notes")
TERMINAL_CALENDAR_STATUSES = ("CANCELLED", "NO_SHOW")


class SchedulingOrchestrator:
    """
    Runs one scheduling request through
    VALIDATING -> CHECKING_AVAILABILITY -> CHECKING_CONFLICTS -> BLOCKED | CONFIRMED -> BOOKED.

    Blocked and failed runs raise; the exception carries the visited states.
    Calendar and email work happens after the booking is committed and can
    only add warnings to the result.
    """

    def __init__(
        self,
        directory: ParticipantDirectory,
        booking_store: BookingStore,
        resolver: AvailabilityResolver,
        detector: ConflictDetector,
        alert_dispatcher: AlertDispatcher,
        settings: Optional[Settings] = None,
        calendar_sync: Optional[CalendarSync] = None,
        notifier: Optional[Notifier] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.directory = directory
        self.booking_store = booking_store
        self.resolver = resolver
        self.detector = detector
        self.alert_dispatcher = alert_dispatcher
        self.settings = settings or Settings()
        self.calendar_sync = calendar_sync
        self.notifier = notifier
        self._executor = executor or ThreadPoolExecutor(max_workers=4, thread_name_prefix="side-effect")

    def close(self):
        self._executor.shutdown(wait=False)

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def schedule(self, request: SchedulingRequest, actor: Actor) -> SchedulingResult:
        """Book an interview, or raise explaining why it cannot be booked."""
        states: list[str] = []
        self._enter(states, "VALIDATING")
        self._validate(request, states)
        candidate, interviewer = self._resolve_participants(request, states)
        interviewer_name = interviewer.name if interviewer else request.interviewer.custom_name

        if interviewer is not None:
            self._enter(states, "CHECKING_AVAILABILITY")
            self._check_availability(request, interviewer, states)

        self._enter(states, "CHECKING_CONFLICTS")
        emails = self._participant_emails(candidate, interviewer)
        check = self.detector.check(emails, request.start, request.end)
        hard = check.hard_conflicts
        context = AlertContext(
            candidate=candidate,
            interviewer_name=interviewer_name,
            start=request.start,
            duration_minutes=request.duration_minutes,
            meeting_type=request.meeting_type,
            interviewer=interviewer,
        )
        warnings: list[str] = []

        forced = False
        if hard:
            report = self.alert_dispatcher.notify(hard, context, was_forced=False, from_actor=actor)
            warnings.extend(f"Conflict alert delivery failed: {f}" for f in report.failures)
            if not (request.force_schedule and self.directory.is_privileged(actor)):
                if request.force_schedule:
                    logger.warning("Actor %s (%s) may not override conflicts", actor.id, actor.role)
                self._enter(states, "BLOCKED")
                raise ConflictError(
                    "The selected time has conflicts. Please choose another time or confirm to override.",
                    conflicts=hard,
                    soft_conflicts=check.soft_conflicts,
                    warnings=check.warnings,
                    suggested_times=check.suggested_times,
                    states=states,
                )
            forced = True
            logger.warning(
                "Actor %s is overriding %d hard conflict(s) for candidate %s",
                actor.id, len(hard), candidate.id,
            )

        self._enter(states, "CONFIRMED")
        booking = self._build_booking(request, candidate, interviewer, interviewer_name)
        try:
            booking = self.booking_store.create_booking(
                booking, acknowledged_ids={c.booking.id for c in hard}
            )
        except BookingCollisionError as e:
            logger.warning("Commit collision for booking %s: %s", booking.id, e)
            self._raise_commit_conflict(emails, request.start, request.end, context, actor, states, e)
        self._enter(states, "BOOKED")

        reminders = self._schedule_reminders(booking, request) if request.send_reminders else []

        if forced:
            context.booking_id = booking.id
            report = self.alert_dispatcher.notify(hard, context, was_forced=True, from_actor=actor)
            warnings.extend(f"Conflict alert delivery failed: {f}" for f in report.failures)

        side_effects = self._run_side_effects(booking, candidate, interviewer, interviewer_name)
        warnings.extend(s.warning for s in side_effects if not s.ok)
        booking = self.booking_store.get_booking(booking.id) or booking

        logger.info(
            "Interview %s booked for candidate %s with %s at %s (forced=%s, warnings=%d)",
            booking.id, candidate.id, interviewer_name, booking.start.isoformat(), forced, len(warnings),
        )
        return SchedulingResult(
            booking=booking,
            states=states,
            forced=forced,
            conflicts=check.conflicts,
            reminders=reminders,
            side_effects=side_effects,
            warnings=warnings,
            advisories=check.warnings,
        )

    def preview_conflicts(self, request: SchedulingRequest) -> ConflictCheckResult:
        """Read-only conflict check for a request; books nothing and sends nothing."""
        states: list[str] = []
        self._enter(states, "VALIDATING")
        self._validate(request, states)
        candidate, interviewer = self._resolve_participants(request, states)
        self._enter(states, "CHECKING_CONFLICTS")
        return self.detector.check(
            self._participant_emails(candidate, interviewer), request.start, request.end
        )

    # ------------------------------------------------------------------
    # Updates made outside the core
    # ------------------------------------------------------------------

    def revalidate(
        self,
        booking_id: str,
        start=None,
        duration_minutes: Optional[int] = None,
        location: Optional[str] = None,
        meeting_link: Optional[str] = None,
    ) -> ConflictCheckResult:
        """
        Re-run the conflict check for a changed booking.

        Availability is not re-checked; the slot was already accepted once.
        The booking itself is excluded from its own check.
        """
        booking = self._get_booking(booking_id)
        changed = (
            (start is not None and start != booking.start)
            or (duration_minutes is not None and duration_minutes != booking.duration_minutes)
            or (location is not None and location != booking.location)
            or (meeting_link is not None and meeting_link != booking.meeting_link)
        )
        if not changed:
            return ConflictCheckResult()

        if duration_minutes is not None:
            _check_duration(duration_minutes, [])
        new_start = start if start is not None else booking.start
        _check_aware(new_start, [])
        minutes = duration_minutes if duration_minutes is not None else booking.duration_minutes
        new_end = new_start + timedelta(minutes=minutes)
        return self.detector.check(
            booking.attendee_emails, new_start, new_end, exclude_booking_id=booking.id
        )

    def apply_update(self, booking_id: str, changes: dict[str, Any], actor: Actor, force: bool = False) -> SchedulingResult:
        """
        Apply a reschedule/cancel/complete update.

        Schedule changes are re-checked for hard conflicts first; the stored
        booking and its calendar event are then updated. Calendar failures
        come back as warnings.
        """
        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(
                "Invalid interview update",
                field_errors={name: "Field cannot be updated" for name in sorted(unknown)},
            )
        status = changes.get("status")
        if status is not None and status not in BOOKING_STATUSES:
            raise ValidationError(
                "Invalid interview update",
                field_errors={"status": f"status must be one of {', '.join(BOOKING_STATUSES)}"},
            )

        booking = self._get_booking(booking_id)
        states: list[str] = []
        self._enter(states, "CHECKING_CONFLICTS")
        check = self.revalidate(
            booking_id,
            start=changes.get("start"),
            duration_minutes=changes.get("duration_minutes"),
            location=changes.get("location"),
            meeting_link=changes.get("meeting_link"),
        )
        new_start = changes.get("start", booking.start)
        minutes = changes.get("duration_minutes", booking.duration_minutes)
        context = self._update_context(booking, new_start, minutes)
        warnings: list[str] = []

        hard = check.hard_conflicts
        if hard:
            report = self.alert_dispatcher.notify(hard, context, was_forced=False, from_actor=actor)
            warnings.extend(f"Conflict alert delivery failed: {f}" for f in report.failures)
            if not (force and self.directory.is_privileged(actor)):
                self._enter(states, "BLOCKED")
                raise ConflictError(
                    "The updated time has conflicts. Please choose another time or confirm to override.",
                    conflicts=hard,
                    soft_conflicts=check.soft_conflicts,
                    warnings=check.warnings,
                    suggested_times=check.suggested_times,
                    states=states,
                )
            logger.warning(
                "Actor %s is overriding %d hard conflict(s) for booking %s",
                actor.id, len(hard), booking_id,
            )

        stored_changes: dict[str, Any] = {
            k: changes[k] for k in ("location", "meeting_link", "status", "notes") if k in changes
        }
        schedule_changed = "start" in changes or "duration_minutes" in changes
        if schedule_changed:
            stored_changes["start"] = new_start
            stored_changes["end"] = new_start + timedelta(minutes=minutes)
        try:
            updated = self.booking_store.update_booking(
                booking_id, acknowledged_ids={c.booking.id for c in hard}, **stored_changes
            )
        except BookingCollisionError as e:
            logger.warning("Reschedule collision for booking %s: %s", booking_id, e)
            self._raise_commit_conflict(
                booking.attendee_emails, new_start, new_start + timedelta(minutes=minutes),
                context, actor, states, e, exclude_booking_id=booking_id,
            )
        self._enter(states, "BOOKED")

        if hard:
            report = self.alert_dispatcher.notify(hard, context, was_forced=True, from_actor=actor)
            warnings.extend(f"Conflict alert delivery failed: {f}" for f in report.failures)

        side_effects = []
        if updated.calendar_event_id and self.calendar_sync is not None:
            if updated.status in TERMINAL_CALENDAR_STATUSES:
                side_effects.append(self._run_effect(
                    "calendar event deletion",
                    lambda: self.calendar_sync.delete_event(updated.calendar_event_id),
                    action="Interview updated",
                ))
            elif schedule_changed or "location" in changes or "meeting_link" in changes:
                organizer = self.directory.get_participant(updated.interviewer_id) if updated.interviewer_id else None
                if organizer is not None:
                    side_effects.append(self._run_effect(
                        "calendar event update",
                        lambda: self.calendar_sync.update_event(updated.calendar_event_id, updated, organizer),
                        action="Interview updated",
                    ))
        warnings.extend(s.warning for s in side_effects if not s.ok)

        logger.info("Booking %s updated by %s: %s", booking_id, actor.id, sorted(changes))
        return SchedulingResult(
            booking=updated,
            states=states,
            forced=bool(hard),
            conflicts=check.conflicts,
            side_effects=side_effects,
            warnings=warnings,
            advisories=check.warnings,
        )

    def _update_context(self, booking: Booking, start, duration_minutes: int) -> AlertContext:
        """Alert context for a stored booking moving to a new time."""
        candidate = self.directory.get_participant(booking.candidate_id) if booking.candidate_id else None
        if candidate is None:
            candidate = Participant(
                id=booking.candidate_id or "",
                name="Unknown candidate",
                email="",
                timezone=self.settings.default_timezone,
                role="candidate",
            )
        interviewer = self.directory.get_participant(booking.interviewer_id) if booking.interviewer_id else None
        return AlertContext(
            candidate=candidate,
            interviewer_name=interviewer.name if interviewer else (booking.custom_interviewer_name or "Interviewer"),
            start=start,
            duration_minutes=duration_minutes,
            meeting_type=booking.meeting_type or "VIDEO",
            interviewer=interviewer,
            booking_id=booking.id,
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _enter(self, states: list[str], state: str):
        states.append(state)
        logger.debug("Scheduling state -> %s", state)

    def _validate(self, request: SchedulingRequest, states: list[str]):
        errors: dict[str, str] = {}
        if not request.candidate_id or not request.candidate_id.strip():
            errors["candidateId"] = "candidateId is required"
        if request.interviewer is None:
            errors["interviewerId"] = "Either interviewerId or customInterviewerName is required"
        if not isinstance(request.duration_minutes, int) or not (
            MIN_DURATION_MINUTES <= request.duration_minutes <= MAX_DURATION_MINUTES
        ):
            errors["durationMinutes"] = (
                f"durationMinutes must be between {MIN_DURATION_MINUTES} and {MAX_DURATION_MINUTES}"
            )
        if request.start is None or request.start.tzinfo is None or request.start.utcoffset() is None:
            errors["start"] = "start must include a timezone offset"
        if request.reminder_hours is not None and not (
            MIN_REMINDER_HOURS <= request.reminder_hours <= MAX_REMINDER_HOURS
        ):
            errors["reminderHours"] = (
                f"reminderHours must be between {MIN_REMINDER_HOURS} and {MAX_REMINDER_HOURS}"
            )
        if errors:
            raise ValidationError("Invalid interview data", field_errors=errors, states=states)

    def _resolve_participants(self, request: SchedulingRequest, states: list[str]):
        candidate = self.directory.get_participant(request.candidate_id)
        if candidate is None:
            raise NotFoundError("candidate", request.candidate_id, states=states)

        interviewer = None
        if request.interviewer.is_directory_user:
            interviewer = self.directory.get_participant(request.interviewer.interviewer_id)
            if interviewer is None:
                raise NotFoundError("interviewer", request.interviewer.interviewer_id, states=states)
        return candidate, interviewer

    def _check_availability(self, request: SchedulingRequest, interviewer: Participant, states: list[str]):
        result = self.resolver.resolve(interviewer, request.start, request.duration_minutes)
        if result.is_open:
            return

        day_names = ResponseFormatter.format_day_names(result.suggestion_days)
        slots = [ResponseFormatter.format_window(w) for w in result.available_windows]
        requested = (
            f"{ResponseFormatter.format_time_12h(result.local_start)} - "
            f"{ResponseFormatter.format_time_12h(result.local_end)}"
        )
        if not result.available_windows:
            message = f"{interviewer.name} is not available on {DAY_NAMES[result.day_of_week]}s."
        elif result.crosses_midnight:
            message = f"The selected time ({requested}) runs past midnight for {interviewer.name}."
        else:
            message = f"The selected time ({requested}) is outside {interviewer.name}'s available hours."

        self._enter(states, "BLOCKED")
        logger.info("Availability check failed for %s: %s", interviewer.id, message)
        raise AvailabilityError(
            message,
            availability=result,
            suggestion_days=day_names,
            available_slots=slots,
            suggestion_text=ResponseFormatter.format_availability_suggestion(interviewer.name, day_names, slots),
            states=states,
        )

    def _participant_emails(self, candidate: Participant, interviewer: Optional[Participant]) -> list[str]:
        emails = []
        if interviewer is not None and interviewer.email:
            emails.append(interviewer.email)
        if candidate.email:
            emails.append(candidate.email)
        return emails

    def _build_booking(
        self,
        request: SchedulingRequest,
        candidate: Participant,
        interviewer: Optional[Participant],
        interviewer_name: str,
    ) -> Booking:
        return Booking(
            id=new_booking_id(),
            kind="INTERVIEW",
            start=request.start,
            end=request.end,
            attendee_emails=self._participant_emails(candidate, interviewer),
            title=f"Interview: {candidate.name} with {interviewer_name}",
            candidate_id=candidate.id,
            interviewer_id=interviewer.id if interviewer else None,
            custom_interviewer_name=None if interviewer else request.interviewer.custom_name,
            meeting_type=request.meeting_type,
            location=request.location,
            meeting_link=request.meeting_link,
            notes=request.notes,
            reminder_hours=request.reminder_hours or self.settings.default_reminder_hours,
        )

    def _raise_commit_conflict(self, emails, start, end, context, actor, states, cause, exclude_booking_id=None):
        """A concurrent booking won the race; report it like any other hard conflict."""
        recheck = self.detector.check(emails, start, end, exclude_booking_id=exclude_booking_id)
        hard = recheck.hard_conflicts
        if hard:
            self.alert_dispatcher.notify(hard, context, was_forced=False, from_actor=actor)
        self._enter(states, "BLOCKED")
        raise ConflictError(
            "The selected time was booked by another request. Please choose another time.",
            conflicts=hard,
            soft_conflicts=recheck.soft_conflicts,
            warnings=recheck.warnings,
            suggested_times=recheck.suggested_times,
            states=states,
        ) from cause

    def _schedule_reminders(self, booking: Booking, request: SchedulingRequest) -> list[Reminder]:
        hours = request.reminder_hours or self.settings.default_reminder_hours
        scheduled_at = booking.start - timedelta(hours=hours)
        return [
            self.booking_store.create_reminder(Reminder(booking.id, recipient, scheduled_at))
            for recipient in ("CANDIDATE", "INTERVIEWER")
        ]

    # ------------------------------------------------------------------
    # Best-effort side effects
    # ------------------------------------------------------------------

    def _run_side_effects(
        self,
        booking: Booking,
        candidate: Participant,
        interviewer: Optional[Participant],
        interviewer_name: str,
    ) -> list[SideEffectResult]:
        results = []
        if self.calendar_sync is not None:
            if interviewer is not None:
                results.append(self._run_effect(
                    "calendar event creation",
                    lambda: self._create_calendar_event(booking, interviewer),
                ))
            else:
                logger.info("Skipping calendar event for booking %s: external interviewer", booking.id)
        if self.notifier is not None:
            results.append(self._run_effect(
                "confirmation email",
                lambda: self._send_confirmations(booking.id, candidate, interviewer, interviewer_name),
            ))
        return results

    def _run_effect(self, name: str, effect: Callable[[], Any], action: str = "Interview scheduled") -> SideEffectResult:
        timeout = self.settings.integration_timeout_seconds
        future = self._executor.submit(effect)
        try:
            future.result(timeout=timeout)
        except FutureTimeoutError:
            logger.warning("%s timed out after %ss", name, timeout)
            return SideEffectResult(name, ok=False, error=f"timed out after {timeout:g}s", action=action)
        except Exception as e:
            logger.warning("%s failed: %s", name, e)
            return SideEffectResult(name, ok=False, error=str(e), action=action)
        return SideEffectResult(name, ok=True, action=action)

    def _create_calendar_event(self, booking: Booking, interviewer: Participant):
        event = self.calendar_sync.create_event(booking, interviewer, booking.attendee_emails)
        changes = {"calendar_event_id": event["id"]}
        if booking.meeting_type == "VIDEO" and event.get("meetingLink"):
            changes["meeting_link"] = event["meetingLink"]
        self.booking_store.update_booking(booking.id, **changes)

    def _send_confirmations(
        self,
        booking_id: str,
        candidate: Participant,
        interviewer: Optional[Participant],
        interviewer_name: str,
    ):
        booking = self.booking_store.get_booking(booking_id)
        subject, body = ResponseFormatter.format_confirmation_email(
            booking, candidate, interviewer_name, interviewer
        )
        recipients = [candidate.email] + ([interviewer.email] if interviewer else [])
        errors = []
        for email in recipients:
            try:
                self.notifier.send_email(email, subject, body)
            except Exception as e:
                errors.append(f"{email}: {e}")
        if errors:
            raise IntegrationError("; ".join(errors))

    def _get_booking(self, booking_id: str) -> Booking:
        booking = self.booking_store.get_booking(booking_id)
        if booking is None:
            raise NotFoundError("booking", booking_id)
        return booking


def _check_duration(duration_minutes: int, states: list[str]):
    if not MIN_DURATION_MINUTES <= duration_minutes <= MAX_DURATION_MINUTES:
        raise ValidationError(
            "Invalid interview update",
            field_errors={
                "durationMinutes": f"durationMinutes must be between {MIN_DURATION_MINUTES} and {MAX_DURATION_MINUTES}"
            },
            states=states,
        )


def _check_aware(start, states: list[str]):
    if start.tzinfo is None or start.utcoffset() is None:
        raise ValidationError(
            "Invalid interview update",
            field_errors={"start": "start must include a timezone offset"},
            states=states,
        )


def create_orchestrator(
    settings: Settings,
    directory: ParticipantDirectory,
    booking_store: BookingStore,
    notifier: Optional[Notifier] = None,
    audit_sink: Optional[AuditSink] = None,
    calendar_sync: Optional[CalendarSync] = None,
) -> SchedulingOrchestrator:
    """
    Wire the resolver, detector, suggester and dispatcher together.

    An InMemoryParticipantDirectory takes its override roles from
    settings.privileged_roles. Other directories answer is_privileged
    themselves.
    """
    if isinstance(directory, InMemoryParticipantDirectory):
        directory.privileged_roles = set(settings.privileged_roles)
    resolver = AvailabilityResolver(directory, settings.default_timezone)
    detector = ConflictDetector(directory, booking_store, resolver)
    detector.slot_suggester = SlotSuggester(
        resolver,
        detector,
        increment_minutes=settings.slot_increment_minutes,
        max_results=settings.max_suggestions,
        horizon_days=settings.suggestion_horizon_days,
    )
    alert_notifier = notifier
    if alert_notifier is None:
        from interview_scheduler.services.email_service_mock import EmailServiceMock
        alert_notifier = EmailServiceMock()
    dispatcher = AlertDispatcher(
        alert_notifier,
        audit_sink or LoggingAuditSink(),
        directory,
        admin_emails=settings.admin_emails,
        app_url=settings.app_url,
    )
    return SchedulingOrchestrator(
        directory,
        booking_store,
        resolver,
        detector,
        dispatcher,
        settings=settings,
        calendar_sync=calendar_sync,
        notifier=notifier,
    )
