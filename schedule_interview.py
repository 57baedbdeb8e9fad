"""Interview Scheduler - command line entry point."""

import argparse
import json
import logging
import sys

from interview_scheduler.config import load_settings
from interview_scheduler.exceptions import SchedulingError
from interview_scheduler.models.entities import Actor, SchedulingRequest
from interview_scheduler.services.audit_sink import LoggingAuditSink
from interview_scheduler.services.booking_store import InMemoryBookingStore
from interview_scheduler.services.calendar_service import HttpCalendarSync
from interview_scheduler.services.email_service_mock import EmailServiceMock
from interview_scheduler.services.participant_directory import demo_directory
from interview_scheduler.services.response_formatter import ResponseFormatter
from interview_scheduler.services.scheduling_orchestrator import create_orchestrator

logger = logging.getLogger("schedule_interview")

# ============================================================================
# CONFIGURATION
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Schedule an interview against the demo directory.")
    parser.add_argument("--candidate", required=True, help="Candidate id, e.g. cand_001")
    interviewer = parser.add_mutually_exclusive_group(required=True)
    interviewer.add_argument("--interviewer", help="Interviewer id, e.g. int_002")
    interviewer.add_argument("--interviewer-name", help="Name of an interviewer outside the directory")
    parser.add_argument("--start", required=True, help="ISO 8601 start with offset, e.g. 2030-06-03T17:00:00Z")
    parser.add_argument("--duration", type=int, default=60, help="Duration in minutes (15-480)")
    parser.add_argument("--meeting-type", default="VIDEO", choices=["PHONE", "VIDEO", "IN_PERSON"])
    parser.add_argument("--location")
    parser.add_argument("--meeting-link")
    parser.add_argument("--notes")
    parser.add_argument("--reminder-hours", type=int)
    parser.add_argument("--no-reminders", action="store_true")
    parser.add_argument("--force", action="store_true", help="Book despite hard conflicts (privileged roles only)")
    parser.add_argument("--check-only", action="store_true", help="Preview conflicts without booking")
    parser.add_argument("--actor-role", default="HR_ADMIN")
    parser.add_argument("--actor-email", default="recruiter@example.com")
    parser.add_argument("--env-file", help="Path to a .env file")
    return parser


def payload_from_args(args: argparse.Namespace) -> dict:
    payload = {
        "candidateId": args.candidate,
        "interviewerId": args.interviewer,
        "customInterviewerName": args.interviewer_name,
        "start": args.start,
        "durationMinutes": args.duration,
        "meetingType": args.meeting_type,
        "location": args.location,
        "meetingLink": args.meeting_link,
        "notes": args.notes,
        "sendReminders": not args.no_reminders,
        "forceSchedule": args.force,
    }
    if args.reminder_hours is not None:
        payload["reminderHours"] = args.reminder_hours
    return payload


# ============================================================================
# MAIN
# ============================================================================


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings(args.env_file)
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    directory = demo_directory(settings.privileged_roles)
    calendar_sync = None
    if settings.calendar_api_base_url:
        calendar_sync = HttpCalendarSync(
            settings.calendar_api_base_url,
            settings.calendar_api_token,
            timeout=settings.integration_timeout_seconds,
        )
    notifier = EmailServiceMock()
    orchestrator = create_orchestrator(
        settings,
        directory,
        InMemoryBookingStore(),
        notifier=notifier,
        audit_sink=LoggingAuditSink(),
        calendar_sync=calendar_sync,
    )
    actor = Actor(id=args.actor_email, email=args.actor_email, role=args.actor_role)

    try:
        request = SchedulingRequest.from_payload(payload_from_args(args))
        if args.check_only:
            response = ResponseFormatter.to_conflict_check_response(orchestrator.preview_conflicts(request))
        else:
            response = ResponseFormatter.to_success_response(orchestrator.schedule(request, actor))
        exit_code = 0
    except SchedulingError as e:
        logger.info("Scheduling stopped in state %s: %s", e.state, e.message)
        response = ResponseFormatter.to_error_response(e)
        exit_code = 1
    except Exception as e:
        logger.exception("Unexpected scheduling failure")
        response = ResponseFormatter.to_error_response(e)
        exit_code = 2
    finally:
        orchestrator.close()

    print(json.dumps(response, indent=2, default=str, ensure_ascii=False))
    if notifier.get_sent_emails():
        logger.info("%d email(s) recorded by the mock notifier", len(notifier.get_sent_emails()))
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
