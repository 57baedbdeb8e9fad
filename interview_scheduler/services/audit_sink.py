"""Audit trail for conflict alerts."""

import logging
from datetime import datetime
from typing import Any, Optional, Protocol

import pytz

CONFLICT_DETECTED = "conflict_detected"
CONFLICT_OVERRIDDEN = "conflict_overridden"


class AuditSink(Protocol):
    def record(self, event_type: str, actor_id: Optional[str] = None, details: Optional[dict[str, Any]] = None) -> dict: ...


class LoggingAuditSink:
    """Writes audit events to the "audit" logger and keeps them in memory."""

    def __init__(self):
        self.logger = logging.getLogger("audit")
        self.events: list[dict[str, Any]] = []

    def record(self, event_type: str, actor_id: Optional[str] = None, details: Optional[dict[str, Any]] = None) -> dict:
        entry = {
            "timestamp": datetime.now(pytz.UTC).isoformat(),
            "event_type": event_type,
            "actor_id": actor_id,
            "details": details or {},
        }
        self.events.append(entry)

        log_message = f"Audit Event: {event_type}"
        if actor_id:
            log_message += f" | Actor: {actor_id}"
        if details:
            log_message += f" | Details: {details}"
        self.logger.info(log_message)
        return entry

    def events_of(self, event_type: str) -> list[dict[str, Any]]:
        return [e for e in self.events if e["event_type"] == event_type]
