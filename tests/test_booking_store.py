"""Tests for the in-memory booking store and participant directory."""

import threading

import pytest

from interview_scheduler.exceptions import BookingCollisionError, NotFoundError
from interview_scheduler.models.entities import Actor, AvailabilityWindow, Reminder
from interview_scheduler.services.booking_store import InMemoryBookingStore, new_booking_id
from interview_scheduler.services.participant_directory import InMemoryParticipantDirectory, demo_directory

ALICE = "alice@example.com"


class TestCreateBooking:
    def test_overlapping_interview_for_same_interviewer_collides(self, store, make_booking, at):
        first = store.create_booking(make_booking(at(14), at(15), [ALICE], interviewer_id="int_1"))

        with pytest.raises(BookingCollisionError) as exc_info:
            store.create_booking(make_booking(at(14, 30), at(15, 30), [ALICE], interviewer_id="int_1"))

        assert exc_info.value.colliding_ids == [first.id]
        assert len(store.list_bookings()) == 1

    def test_acknowledged_booking_does_not_collide(self, store, make_booking, at):
        first = store.create_booking(make_booking(at(14), at(15), [ALICE], interviewer_id="int_1"))

        store.create_booking(
            make_booking(at(14), at(15), [ALICE], interviewer_id="int_1"), acknowledged_ids=[first.id]
        )

        assert len(store.list_bookings()) == 2

    @pytest.mark.parametrize(
        "interviewer_id, start_hour, status",
        [("int_2", 14, "SCHEDULED"), ("int_1", 15, "SCHEDULED"), ("int_1", 14, "CANCELLED")],
    )
    def test_no_collision(self, store, make_booking, at, interviewer_id, start_hour, status):
        store.add(make_booking(at(14), at(15), [ALICE], interviewer_id="int_1", status=status))

        store.create_booking(make_booking(at(start_hour), at(start_hour + 1), [ALICE], interviewer_id=interviewer_id))

        assert len(store.list_bookings()) == 2

    def test_duplicate_id_rejected(self, store, make_booking, at):
        store.create_booking(make_booking(at(14), at(15), [ALICE], booking_id="same"))
        with pytest.raises(ValueError):
            store.create_booking(make_booking(at(16), at(17), [ALICE], booking_id="same"))

    def test_concurrent_commits_for_one_slot(self, make_booking, at):
        store = InMemoryBookingStore()
        barrier = threading.Barrier(8)
        outcomes = []

        def commit():
            booking = make_booking(at(14), at(15), [ALICE], interviewer_id="int_1", booking_id=new_booking_id())
            barrier.wait()
            try:
                store.create_booking(booking)
                outcomes.append("ok")
            except BookingCollisionError:
                outcomes.append("collision")

        threads = [threading.Thread(target=commit) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert outcomes.count("ok") == 1
        assert outcomes.count("collision") == 7


class TestRescheduleGuard:
    def test_moving_into_another_interview_collides(self, store, make_booking, at):
        other = store.create_booking(make_booking(at(10), at(11), [ALICE], interviewer_id="int_1"))
        moving = store.create_booking(make_booking(at(14), at(15), [ALICE], interviewer_id="int_1"))

        with pytest.raises(BookingCollisionError) as exc_info:
            store.update_booking(moving.id, start=at(10, 30), end=at(11, 30))

        assert exc_info.value.colliding_ids == [other.id]
        assert store.get_booking(moving.id).start == at(14)

    def test_acknowledged_move_is_stored(self, store, make_booking, at):
        other = store.create_booking(make_booking(at(10), at(11), [ALICE], interviewer_id="int_1"))
        moving = store.create_booking(make_booking(at(14), at(15), [ALICE], interviewer_id="int_1"))

        store.update_booking(moving.id, acknowledged_ids=[other.id], start=at(10, 30), end=at(11, 30))

        assert store.get_booking(moving.id).start == at(10, 30)

    def test_overlapping_itself_is_not_a_collision(self, store, make_booking, at):
        booking = store.create_booking(make_booking(at(14), at(15), [ALICE], interviewer_id="int_1"))

        store.update_booking(booking.id, start=at(14, 30), end=at(15, 30))

        assert store.get_booking(booking.id).end == at(15, 30)

    def test_non_time_changes_skip_the_check(self, store, make_booking, at):
        store.add(make_booking(at(14), at(15), [ALICE], interviewer_id="int_1"))
        overlapping = store.add(make_booking(at(14), at(15), [ALICE], interviewer_id="int_1"))

        store.update_booking(overlapping.id, calendar_event_id="evt_1")

        assert store.get_booking(overlapping.id).calendar_event_id == "evt_1"


class TestQueries:
    def test_update_booking(self, store, make_booking, at):
        booking = store.add(make_booking(at(14), at(15), [ALICE]))

        updated = store.update_booking(booking.id, status="CANCELLED")

        assert updated.status == "CANCELLED"
        assert store.get_booking(booking.id).status == "CANCELLED"

    def test_update_unknown_booking(self, store):
        with pytest.raises(NotFoundError):
            store.update_booking("missing", status="CANCELLED")

    def test_list_for_participant_is_case_insensitive(self, store, make_booking, at):
        store.add(make_booking(at(16), at(17), ["Alice@Example.com"]))
        store.add(make_booking(at(9), at(10), [ALICE]))
        store.add(make_booking(at(11), at(12), ["someone@example.com"]))

        bookings = store.list_bookings_for_participant(ALICE)

        assert [b.start for b in bookings] == [at(9), at(16)]

    def test_reminders_by_booking(self, store, at):
        store.create_reminder(Reminder("bk_1", "CANDIDATE", at(9)))
        store.create_reminder(Reminder("bk_2", "CANDIDATE", at(9)))

        assert [r.booking_id for r in store.list_reminders("bk_1")] == ["bk_1"]


class TestParticipantDirectory:
    def test_find_by_email_ignores_case(self, directory):
        assert directory.find_by_email("  ALICE@example.com ").id == "int_1"
        assert directory.find_by_email("nobody@example.com") is None

    def test_empty_window_rejected(self):
        directory = InMemoryParticipantDirectory()
        with pytest.raises(ValueError):
            directory.add_window(AvailabilityWindow("int_1", 1, "17:00", "09:00"))

    def test_privileged_roles(self, directory):
        assert directory.is_privileged(Actor("u1", "a@example.com", "HR_ADMIN"))
        assert not directory.is_privileged(Actor("u2", "b@example.com", "RECRUITER"))

    def test_demo_directory(self):
        directory = demo_directory()

        assert directory.get_participant("int_002").timezone == "America/Los_Angeles"
        assert directory.get_participant("cand_001").role == "candidate"
        assert not directory.get_participant("cand_001").has_availability_model
        days = {w.day_of_week for w in directory.get_availability_windows("int_004")}
        assert days == {2, 3, 4}
