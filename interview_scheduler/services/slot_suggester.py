"""Forward search for alternative interview slots."""

import logging
from datetime import datetime, timedelta
from typing import Optional

from interview_scheduler.models.entities import Participant, ProposedSlot
from interview_scheduler.services.availability_resolver import AvailabilityResolver
from interview_scheduler.services.conflict_detector import ConflictDetector

logger = logging.getLogger(__name__)


class SlotSuggester:
    """Finds the earliest slots that are open and hard-conflict free for everyone."""

    def __init__(
        self,
        resolver: AvailabilityResolver,
        detector: ConflictDetector,
        increment_minutes: int = 30,
        max_results: int = 3,
        horizon_days: int = 14,
    ):
        self.resolver = resolver
        self.detector = detector
        self.increment_minutes = increment_minutes
        self.max_results = max_results
        self.horizon_days = horizon_days

    def suggest(
        self,
        participants: list[Participant],
        original_start: datetime,
        duration_minutes: int,
        max_results: Optional[int] = None,
        horizon_days: Optional[int] = None,
        exclude_booking_id: Optional[str] = None,
    ) -> list[ProposedSlot]:
        """
        Walk forward from original_start in fixed increments.

        A candidate qualifies when every participant with an availability model
        is open and no participant has a hard conflict. Fewer than max_results
        (even none) is a normal outcome when the horizon runs out.
        """
        max_results = self.max_results if max_results is None else max_results
        horizon_days = self.horizon_days if horizon_days is None else horizon_days
        if max_results <= 0:
            return []

        step = timedelta(minutes=self.increment_minutes)
        duration = timedelta(minutes=duration_minutes)
        horizon_end = original_start + timedelta(days=horizon_days)
        gated = [p for p in participants if p.has_availability_model]
        emails = [p.email for p in participants]

        found: list[ProposedSlot] = []
        candidate = original_start
        checked = 0
        while candidate < horizon_end and len(found) < max_results:
            checked += 1
            if self._is_open_for_all(gated, candidate, duration_minutes):
                result = self.detector.check(
                    emails,
                    candidate,
                    candidate + duration,
                    exclude_booking_id=exclude_booking_id,
                    suggest=False,
                )
                if not result.hard_conflicts:
                    found.append(ProposedSlot(start=candidate, duration_minutes=duration_minutes))
            candidate += step

        logger.info(
            "Suggested %d slot(s) after checking %d candidate(s) from %s",
            len(found), checked, original_start,
        )
        return found

    def _is_open_for_all(self, participants: list[Participant], start: datetime, duration_minutes: int) -> bool:
        return all(
            self.resolver.resolve(participant, start, duration_minutes).is_open
            for participant in participants
        )
