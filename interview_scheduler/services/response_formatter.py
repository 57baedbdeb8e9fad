"""Structured response formatter for consistent scheduler responses and messages."""

from datetime import datetime
from typing import Any, Dict, List, Optional

import pytz

from interview_scheduler.exceptions import (
    AvailabilityError,
    ConflictError,
    NotFoundError,
    SchedulingError,
    ValidationError,
)
from interview_scheduler.models.entities import (
    DAY_NAMES,
    AvailabilityWindow,
    Booking,
    Conflict,
    ConflictCheckResult,
    Participant,
    ProposedSlot,
    SchedulingResult,
)


def _local(dt: datetime, timezone: str) -> datetime:
    try:
        tz = pytz.timezone(timezone)
    except pytz.UnknownTimeZoneError:
        tz = pytz.UTC
    return dt.astimezone(tz)


class ResponseFormatter:
    """Formats scheduler results, errors and notification text."""

    @staticmethod
    def format_time_12h(time_24: str) -> str:
        """'14:30' -> '2:30 PM'. '24:00' reads as midnight."""
        hours, minutes = (int(part) for part in time_24.split(":"))
        hours %= 24
        period = "PM" if hours >= 12 else "AM"
        hours_12 = hours % 12 or 12
        return f"{hours_12}:{minutes:02d} {period}"

    @staticmethod
    def format_window(window: AvailabilityWindow) -> str:
        return (
            f"{ResponseFormatter.format_time_12h(window.start_time)} - "
            f"{ResponseFormatter.format_time_12h(window.end_time)}"
        )

    @staticmethod
    def format_day_names(days: List[int]) -> List[str]:
        return [DAY_NAMES[d] for d in days]

    @staticmethod
    def format_datetime(dt: datetime, timezone: str, fmt: str = "%b %d, %I:%M %p") -> str:
        return _local(dt, timezone).strftime(fmt)

    @staticmethod
    def format_conflict_message(conflict: Conflict, other_party: Optional[str] = None) -> str:
        """One line describing a conflict, with times in the participant's timezone."""
        tz = conflict.participant.timezone
        start_str = ResponseFormatter.format_datetime(conflict.booking.start, tz)
        end_str = ResponseFormatter.format_datetime(conflict.booking.end, tz, "%I:%M %p %Z")
        who = conflict.participant.name
        icon = "❌" if conflict.is_hard else "⚠️"

        if conflict.type == "PTO":
            return f"{icon} {who} is on PTO from {start_str} to {end_str}"
        if conflict.type == "EXISTING_BOOKING":
            title = conflict.booking.title or "Interview"
            with_part = f" with {other_party}" if other_party else ""
            return f"{icon} {who} already has {title}{with_part} from {start_str} to {end_str}"
        status = "tentative" if not conflict.is_hard else "busy"
        title = conflict.booking.title or "Busy"
        return f"{icon} {who} is {status} ({title}) from {start_str} to {end_str}"

    @staticmethod
    def booking_to_dict(booking: Booking) -> Dict[str, Any]:
        return {
            "id": booking.id,
            "kind": booking.kind,
            "status": booking.status,
            "title": booking.title,
            "candidateId": booking.candidate_id,
            "interviewerId": booking.interviewer_id,
            "customInterviewerName": booking.custom_interviewer_name,
            "start": booking.start.isoformat(),
            "end": booking.end.isoformat(),
            "durationMinutes": booking.duration_minutes,
            "meetingType": booking.meeting_type,
            "location": booking.location,
            "meetingLink": booking.meeting_link,
            "reminderHours": booking.reminder_hours,
            "calendarEventId": booking.calendar_event_id,
        }

    @staticmethod
    def slot_to_dict(slot: ProposedSlot) -> Dict[str, Any]:
        return {
            "start": slot.start.isoformat(),
            "end": slot.end.isoformat(),
            "durationMinutes": slot.duration_minutes,
        }

    @staticmethod
    def conflict_to_dict(conflict: Conflict) -> Dict[str, Any]:
        return {
            "message": ResponseFormatter.format_conflict_message(conflict),
            "type": conflict.type,
            "severity": conflict.severity,
            "participant": conflict.participant.email,
            "start": conflict.booking.start.isoformat(),
            "end": conflict.booking.end.isoformat(),
        }

    @staticmethod
    def to_success_response(result: SchedulingResult) -> Dict[str, Any]:
        response: Dict[str, Any] = {"booking": ResponseFormatter.booking_to_dict(result.booking)}
        if result.warnings:
            response["warnings"] = list(result.warnings)
        return response

    @staticmethod
    def to_conflict_check_response(result: ConflictCheckResult) -> Dict[str, Any]:
        return {
            "hasConflicts": result.has_conflicts,
            "conflicts": [ResponseFormatter.conflict_to_dict(c) for c in result.conflicts],
            "suggestedTimes": [ResponseFormatter.slot_to_dict(s) for s in result.suggested_times],
            "warnings": list(result.warnings),
        }

    @staticmethod
    def to_error_response(error: Exception) -> Dict[str, Any]:
        """Map an exception onto the response shape callers expect."""
        if isinstance(error, ValidationError):
            return {"error": error.message, "fieldErrors": dict(error.field_errors)}
        if isinstance(error, NotFoundError):
            return {"error": error.message, "notFound": {"kind": error.kind, "id": error.identifier}}
        if isinstance(error, AvailabilityError):
            response: Dict[str, Any] = {
                "error": "Outside interviewer availability",
                "outsideAvailability": True,
                "message": error.message,
                "suggestionText": error.suggestion_text,
            }
            if error.available_slots:
                response["availableSlots"] = list(error.available_slots)
            else:
                response["suggestionDays"] = list(error.suggestion_days)
            return response
        if isinstance(error, ConflictError):
            return {
                "error": "Schedule conflicts detected",
                "message": error.message,
                "conflicts": [
                    ResponseFormatter.conflict_to_dict(c)
                    for c in error.conflicts + error.soft_conflicts
                ],
                "suggestedTimes": [ResponseFormatter.slot_to_dict(s) for s in error.suggested_times],
                "warnings": list(error.warnings),
            }
        if isinstance(error, SchedulingError):
            return {"error": error.message}
        return {"error": "Failed to schedule interview"}

    @staticmethod
    def format_availability_suggestion(interviewer_name: str, day_names: List[str], slots: List[str]) -> str:
        if slots:
            return f"Available times: {', '.join(slots)}"
        if day_names:
            return f"{interviewer_name} is available on: {', '.join(day_names)}"
        return "Please contact them to set up their availability."

    @staticmethod
    def format_confirmation_email(
        booking: Booking,
        candidate: Participant,
        interviewer_name: str,
        interviewer: Optional[Participant] = None,
    ) -> tuple[str, str]:
        """Generate confirmation subject and body, with the time shown in each party's timezone."""
        time_fmt = "%A, %B %d, %Y at %I:%M %p %Z"
        candidate_time_str = ResponseFormatter.format_datetime(booking.start, candidate.timezone, time_fmt)
        interviewer_time_str = None
        if interviewer:
            interviewer_time_str = ResponseFormatter.format_datetime(booking.start, interviewer.timezone, time_fmt)

        subject = f"Interview Scheduled: {candidate.name} with {interviewer_name}"

        body = f"Hi {candidate.name} and {interviewer_name},\n\n"
        body += "Your interview has been scheduled. Here are the details:\n\n"
        if interviewer_time_str and interviewer_time_str != candidate_time_str:
            body += f"• {candidate.name}: {candidate_time_str}\n"
            body += f"• {interviewer_name}: {interviewer_time_str}\n"
        else:
            body += f"• {candidate_time_str}\n"
        body += f"• Duration: {booking.duration_minutes} minutes\n"
        if booking.meeting_type:
            body += f"• Format: {booking.meeting_type.replace('_', ' ').title()}\n"
        if booking.meeting_link:
            body += f"• Meeting Link: {booking.meeting_link}\n"
        if booking.location and booking.meeting_type == "IN_PERSON":
            body += f"• Location: {booking.location}\n"
        body += "\nIf you need to reschedule, just reply to this email.\n\nBest regards,\nRecruiting Team"
        return subject, body

    @staticmethod
    def format_alert_email(
        recipient_name: str,
        candidate_name: str,
        interviewer_name: str,
        scheduled_time: str,
        conflict_lines: List[str],
        was_forced: bool,
        app_url: str = "",
    ) -> tuple[str, str]:
        """Generate a conflict alert. Detection and override notices read differently."""
        if was_forced:
            subject = f"⚠️ Interview Scheduled Despite Conflicts - {candidate_name}"
        else:
            subject = f"⚠️ Interview Conflict Alert - {candidate_name}"

        lines = [
            f"Dear {recipient_name},",
            "",
            "Calendar conflicts were detected for the following interview:",
            "",
            f"• Candidate: {candidate_name}",
            f"• Interviewer: {interviewer_name}",
            f"• Scheduled Time: {scheduled_time}",
            f"• Status: {'Scheduled despite conflicts' if was_forced else 'Requires attention'}",
            "",
            "Detected Conflicts:",
        ]
        lines.extend(f"  {line}" for line in conflict_lines)
        lines.append("")
        if was_forced:
            lines.append("The interview has been scheduled as requested. Please review the conflicts above.")
        else:
            lines.append("Action Required: choose an alternative time or confirm to proceed despite the conflicts.")
        if app_url:
            lines.extend(["", f"View in HR System: {app_url.rstrip('/')}/recruiting"])
        lines.extend(["", "This is an automated notification. Please do not reply to this email."])
        return subject, "\n".join(lines)
