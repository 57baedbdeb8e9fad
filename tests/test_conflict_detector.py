"""Tests for conflict detection and classification."""

import pytest


ALICE = "alice@example.com"
BOB = "bob@example.com"


class TestConflictDetector:
    def test_overlapping_interview_is_hard_conflict(self, detector, store, make_booking, at):
        store.add(make_booking(at(14), at(14, 30), [ALICE], interviewer_id="int_1"))

        result = detector.check([ALICE], at(14, 15), at(14, 45))

        assert len(result.conflicts) == 1
        conflict = result.conflicts[0]
        assert conflict.type == "EXISTING_BOOKING"
        assert conflict.severity == "HARD"
        assert conflict.participant.id == "int_1"
        assert (conflict.overlap_start, conflict.overlap_end) == (at(14, 15), at(14, 30))

    def test_touching_interval_is_not_a_conflict(self, detector, store, make_booking, at):
        store.add(make_booking(at(14), at(14, 30), [ALICE]))

        result = detector.check([ALICE], at(14, 30), at(15))

        assert not result.has_conflicts
        assert result.suggested_times == []

    def test_pto_is_hard(self, detector, store, make_booking, at):
        store.add(make_booking(at(0), at(23, 59), [BOB], kind="PTO", title="Vacation"))

        result = detector.check([ALICE, BOB], at(14), at(15))

        assert [(c.type, c.severity) for c in result.conflicts] == [("PTO", "HARD")]
        assert result.conflicts[0].participant.id == "cand_1"

    @pytest.mark.parametrize(
        "busy_status, expected",
        [("busy", [("EXTERNAL_CALENDAR_BUSY", "HARD")]), ("tentative", [("EXTERNAL_CALENDAR_BUSY", "SOFT")]), ("free", [])],
    )
    def test_external_calendar_classification(self, detector, store, make_booking, at, busy_status, expected):
        store.add(make_booking(at(14), at(15), [ALICE], kind="EXTERNAL_CALENDAR", busy_status=busy_status))

        result = detector.check([ALICE], at(14), at(15))

        assert [(c.type, c.severity) for c in result.conflicts] == expected

    def test_tentative_entry_adds_warning_without_suggestions(self, detector, store, make_booking, at):
        store.add(make_booking(
            at(14), at(15), [ALICE], kind="EXTERNAL_CALENDAR", busy_status="tentative", title="Maybe sync"
        ))

        result = detector.check([ALICE], at(14), at(15))

        assert result.hard_conflicts == []
        assert len(result.soft_conflicts) == 1
        assert any("Maybe sync" in w for w in result.warnings)
        assert result.suggested_times == []

    def test_only_scheduled_bookings_count(self, detector, store, make_booking, at):
        store.add(make_booking(at(14), at(15), [ALICE], status="CANCELLED"))
        store.add(make_booking(at(14), at(15), [ALICE], status="COMPLETED"))

        assert not detector.check([ALICE], at(14), at(15)).has_conflicts

    def test_excluded_booking_is_ignored(self, detector, store, make_booking, at):
        store.add(make_booking(at(14), at(15), [ALICE], booking_id="bk_self"))

        result = detector.check([ALICE], at(14, 30), at(15, 30), exclude_booking_id="bk_self")

        assert not result.has_conflicts

    def test_shared_booking_reported_once_per_participant(self, detector, store, make_booking, at):
        store.add(make_booking(at(14), at(15), [ALICE, BOB], interviewer_id="int_1"))

        result = detector.check([ALICE, BOB, "ALICE@example.com"], at(14), at(15))

        assert sorted(c.participant.email for c in result.conflicts) == [ALICE, BOB]

    def test_unknown_email_checked_as_external_participant(self, detector, store, make_booking, at):
        store.add(make_booking(at(14), at(15), ["guest@partner.com"], kind="EXTERNAL_CALENDAR"))

        result = detector.check([ALICE, "guest@partner.com"], at(14), at(15))

        assert len(result.conflicts) == 1
        assert result.conflicts[0].participant.role == "external"

    def test_hard_conflict_comes_with_verified_suggestions(self, detector, store, make_booking, at):
        store.add(make_booking(at(14), at(15), [ALICE], interviewer_id="int_1"))

        result = detector.check([ALICE, BOB], at(14), at(15))

        assert [s.start for s in result.suggested_times] == [at(15), at(15, 30), at(16)]
        for slot in result.suggested_times:
            assert not detector.check([ALICE, BOB], slot.start, slot.end, suggest=False).hard_conflicts

    def test_conflicts_sorted_by_overlap_start(self, detector, store, make_booking, at):
        store.add(make_booking(at(14, 30), at(15), [ALICE], title="Later"))
        store.add(make_booking(at(13), at(14, 15), [BOB], title="Earlier"))

        result = detector.check([ALICE, BOB], at(14), at(15))

        assert [c.booking.title for c in result.conflicts] == ["Earlier", "Later"]

    def test_empty_interval_rejected(self, detector, at):
        with pytest.raises(ValueError):
            detector.check([ALICE], at(14), at(14))


class TestTimeOfDayWarnings:
    def test_lunch_hour(self, detector, at):
        result = detector.check([ALICE], at(12), at(12, 30))
        assert any("lunch" in w and "Alice Interviewer" in w for w in result.warnings)
        assert not result.has_conflicts

    def test_early_monday(self, detector, at):
        result = detector.check([ALICE], at(8), at(8, 30))
        assert any("before 9am" in w for w in result.warnings)
        assert any("Monday morning" in w for w in result.warnings)

    def test_friday_afternoon(self, detector, at):
        result = detector.check([ALICE], at(15, day=7), at(16, day=7))
        assert any("Friday afternoon" in w for w in result.warnings)

    def test_plain_afternoon_has_no_warnings(self, detector, at):
        assert detector.check([ALICE, BOB], at(14), at(15)).warnings == []

    def test_external_participants_get_no_time_warnings(self, detector, at):
        assert detector.check(["guest@partner.com"], at(18), at(19)).warnings == []
