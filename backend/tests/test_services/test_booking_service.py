"""
Tests for BookingScheduler
"""
import threading
from datetime import date, timedelta

import pytest
from sqlalchemy import func, select

from storefront.core.database import session_scope
from storefront.core.errors import Conflict, NotFound
from storefront.domain.booking import BookingRequest, BookingStatus
from storefront.domain.notification import NotificationType
from storefront.models import Booking as BookingRow
from storefront.services.booking_service import BookingScheduler

NEXT_WEEK = date.today() + timedelta(days=7)


def _request(**overrides) -> BookingRequest:
    payload = {
        "full_name": "Youssef Alaoui",
        "email": "youssef@example.com",
        "phone": "+212 600 111 222",
        "date": NEXT_WEEK,
        "time_slot": "10:30",
        "project_type": "Living room",
        "budget": "20000-50000",
    }
    payload.update(overrides)
    return BookingRequest(**payload)


class TestCreateBooking:
    def test_creates_pending_booking_and_notifies(self, booking_scheduler, dispatcher):
        # Act
        booking = booking_scheduler.create(_request())

        # Assert
        assert booking.status == BookingStatus.PENDING
        assert booking.date == NEXT_WEEK
        events = dispatcher.of_type(NotificationType.BOOKING_REQUEST)
        assert [event.booking_id for event in events] == [booking.id]

    def test_double_booking_allowed_by_default(self, booking_scheduler):
        booking_scheduler.create(_request())
        booking_scheduler.create(_request(email="other@example.com"))

        _, total = booking_scheduler.list()
        assert total == 2

    def test_unique_slots_rejects_taken_slot(self, session_factory, dispatcher, settings):
        scheduler = BookingScheduler(
            session_factory, dispatcher, settings.model_copy(update={"BOOKING_UNIQUE_SLOTS": True})
        )
        scheduler.create(_request())

        with pytest.raises(Conflict):
            scheduler.create(_request(email="other@example.com"))

        # A different slot on the same day is fine
        scheduler.create(_request(time_slot="14:00"))

    def test_cancelled_booking_frees_the_slot(self, session_factory, dispatcher, settings):
        scheduler = BookingScheduler(
            session_factory, dispatcher, settings.model_copy(update={"BOOKING_UNIQUE_SLOTS": True})
        )
        first = scheduler.create(_request())
        scheduler.update(first.id, actor="admin@example.com", status=BookingStatus.CANCELLED)

        second = scheduler.create(_request(email="other@example.com"))

        assert second.status == BookingStatus.PENDING

    def test_reopening_cancelled_booking_on_taken_slot(self, session_factory, dispatcher, settings):
        scheduler = BookingScheduler(
            session_factory, dispatcher, settings.model_copy(update={"BOOKING_UNIQUE_SLOTS": True})
        )
        first = scheduler.create(_request())
        scheduler.update(first.id, actor="admin@example.com", status=BookingStatus.CANCELLED)
        scheduler.create(_request(email="other@example.com"))

        with pytest.raises(Conflict):
            scheduler.update(first.id, actor="admin@example.com", status=BookingStatus.CONFIRMED)

        assert scheduler.get(first.id).status == BookingStatus.CANCELLED

    def test_concurrent_requests_for_one_slot(self, file_session_factory, dispatcher, settings):
        """Test N parallel requests for the same slot: exactly one succeeds"""
        # Arrange
        scheduler = BookingScheduler(
            file_session_factory, dispatcher, settings.model_copy(update={"BOOKING_UNIQUE_SLOTS": True})
        )
        clients = 8
        barrier = threading.Barrier(clients)
        outcomes = []
        lock = threading.Lock()

        def book(index):
            barrier.wait()
            try:
                scheduler.create(_request(email=f"client{index}@example.com"))
                outcome = "ok"
            except Conflict:
                outcome = "conflict"
            except Exception as e:  # anything else fails the test below
                outcome = repr(e)
            with lock:
                outcomes.append(outcome)

        # Act
        threads = [threading.Thread(target=book, args=(index,)) for index in range(clients)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=60)

        # Assert
        assert sorted(outcomes) == ["conflict"] * 7 + ["ok"]
        with session_scope(file_session_factory) as session:
            assert session.execute(select(func.count()).select_from(BookingRow)).scalar_one() == 1


class TestAdminBookings:
    def test_list_filters_by_status(self, booking_scheduler):
        first = booking_scheduler.create(_request())
        booking_scheduler.create(_request(time_slot="15:00"))
        booking_scheduler.update(first.id, actor="admin@example.com", status=BookingStatus.CONFIRMED)

        confirmed, total = booking_scheduler.list(status="confirmed")

        assert total == 1
        assert confirmed[0].id == first.id

    def test_update_notes_only(self, booking_scheduler):
        booking = booking_scheduler.create(_request())

        updated = booking_scheduler.update(booking.id, actor="admin@example.com", internal_notes="bring samples")

        assert updated.internal_notes == "bring samples"
        assert updated.status == BookingStatus.PENDING
        assert booking_scheduler.get(booking.id).internal_notes == "bring samples"

    def test_unknown_booking(self, booking_scheduler):
        with pytest.raises(NotFound):
            booking_scheduler.get("missing")
        with pytest.raises(NotFound):
            booking_scheduler.update("missing", actor="admin@example.com", status=BookingStatus.CONFIRMED)
