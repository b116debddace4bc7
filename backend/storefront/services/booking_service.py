"""
Booking Scheduler
Consultation appointment requests and their admin workflow
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from storefront.core.config import Settings
from storefront.core.database import session_scope
from storefront.core.errors import Conflict, InfrastructureError, NotFound, StorefrontError
from storefront.domain.booking import Booking, BookingRequest, BookingStatus
from storefront.domain.notification import NotificationEvent
from storefront.repositories.booking_repository import BookingRepository

logger = logging.getLogger(__name__)


def slot_key(booking_date, time_slot: str) -> str:
    return f"{booking_date.isoformat()} {time_slot}"


class BookingScheduler:
    def __init__(self, session_factory, dispatcher, settings: Settings):
        self.session_factory = session_factory
        self.dispatcher = dispatcher
        self.settings = settings

    def create(self, request: BookingRequest) -> Booking:
        """
        Persist a pending booking and notify the studio

        Raises:
            Conflict: slot already taken (only with BOOKING_UNIQUE_SLOTS)
        """
        try:
            with session_scope(self.session_factory) as session:
                bookings = BookingRepository(session)
                if self.settings.BOOKING_UNIQUE_SLOTS and bookings.slot_taken(request.date, request.time_slot):
                    raise self._slot_conflict(request.date, request.time_slot)
                booking = bookings.add(
                    full_name=request.full_name,
                    email=str(request.email),
                    phone=request.phone,
                    project_type=request.project_type,
                    budget=request.budget,
                    message=request.message,
                    date=request.date,
                    time_slot=request.time_slot,
                    slot_key=slot_key(request.date, request.time_slot) if self.settings.BOOKING_UNIQUE_SLOTS else None,
                    status=BookingStatus.PENDING.value,
                )
        except StorefrontError:
            raise
        except IntegrityError as e:
            logger.warning(f"Slot {request.date.isoformat()} {request.time_slot} taken concurrently: {e}")
            raise self._slot_conflict(request.date, request.time_slot) from e
        except SQLAlchemyError as e:
            logger.exception(f"Booking for {request.email} failed: {e}")
            raise InfrastructureError() from e

        logger.info(f"Booking {booking.id} requested for {booking.date.isoformat()} {booking.time_slot}")
        self.dispatcher.enqueue(NotificationEvent.booking_request(booking))
        return booking

    @staticmethod
    def _slot_conflict(booking_date, time_slot: str) -> Conflict:
        return Conflict(
            "This time slot is no longer available",
            {"date": booking_date.isoformat(), "time_slot": time_slot},
        )

    def list(
        self,
        status: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Booking], int]:
        try:
            with session_scope(self.session_factory) as session:
                return BookingRepository(session).find_all(status=status, limit=limit, offset=offset)
        except SQLAlchemyError as e:
            logger.exception(f"Booking listing failed: {e}")
            raise InfrastructureError() from e

    def get(self, booking_id: str) -> Booking:
        try:
            with session_scope(self.session_factory) as session:
                booking = BookingRepository(session).find_by_id(booking_id)
        except SQLAlchemyError as e:
            logger.exception(f"Booking lookup {booking_id} failed: {e}")
            raise InfrastructureError() from e
        if booking is None:
            raise NotFound(f"Booking {booking_id} not found", {"booking_id": booking_id})
        return booking

    def update(
        self,
        booking_id: str,
        actor: str,
        status: Optional[BookingStatus] = None,
        internal_notes: Optional[str] = None,
    ) -> Booking:
        """Admin update of status and/or internal notes"""
        try:
            with session_scope(self.session_factory) as session:
                bookings = BookingRepository(session)
                row = bookings.get_row(booking_id)
                if row is None:
                    raise NotFound(f"Booking {booking_id} not found", {"booking_id": booking_id})
                if status is not None:
                    row.status = BookingStatus(status).value
                    if row.status == BookingStatus.CANCELLED.value:
                        row.slot_key = None
                    elif self.settings.BOOKING_UNIQUE_SLOTS and row.slot_key is None:
                        row.slot_key = slot_key(row.date, row.time_slot)
                if internal_notes is not None:
                    row.internal_notes = internal_notes
                session.flush()
                booking = Booking.model_validate(row)
        except StorefrontError:
            raise
        except IntegrityError as e:
            logger.warning(f"Booking {booking_id} cannot reopen a slot held by another booking: {e}")
            raise Conflict(
                "Another booking already holds this time slot",
                {"booking_id": booking_id},
            ) from e
        except SQLAlchemyError as e:
            logger.exception(f"Booking update {booking_id} failed: {e}")
            raise InfrastructureError() from e

        logger.info(f"Booking {booking_id} updated by {actor}: status={booking.status.value}")
        return booking
