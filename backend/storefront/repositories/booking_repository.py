"""
Booking Repository - Data Access Layer for consultation bookings
"""
from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from storefront.domain.booking import Booking, BookingStatus
from storefront.models import Booking as BookingRow


class BookingRepository:
    def __init__(self, session: Session):
        self.session = session

    def add(self, **fields) -> Booking:
        row = BookingRow(**fields)
        self.session.add(row)
        self.session.flush()
        return Booking.model_validate(row)

    def get_row(self, booking_id: str) -> Optional[BookingRow]:
        return self.session.get(BookingRow, booking_id)

    def find_by_id(self, booking_id: str) -> Optional[Booking]:
        row = self.session.get(BookingRow, booking_id)
        return Booking.model_validate(row) if row else None

    def slot_taken(self, booking_date: date, time_slot: str) -> bool:
        """True if a non-cancelled booking already holds the slot"""
        count = self.session.execute(
            select(func.count())
            .select_from(BookingRow)
            .where(
                BookingRow.date == booking_date,
                BookingRow.time_slot == time_slot,
                BookingRow.status != BookingStatus.CANCELLED.value,
            )
        ).scalar_one()
        return count > 0

    def find_all(
        self,
        status: Optional[str] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        limit: int = 50,
        offset: int = 0
    ) -> Tuple[List[Booking], int]:
        """
        Find bookings with filters

        Returns:
            Tuple of (list of bookings, total count)
        """
        conditions = []
        if status:
            conditions.append(BookingRow.status == status)
        if from_date:
            conditions.append(BookingRow.date >= from_date)
        if to_date:
            conditions.append(BookingRow.date <= to_date)

        total = self.session.execute(
            select(func.count()).select_from(BookingRow).where(*conditions)
        ).scalar_one()

        rows = self.session.execute(
            select(BookingRow)
            .where(*conditions)
            .order_by(BookingRow.date, BookingRow.time_slot, BookingRow.id)
            .limit(limit)
            .offset(offset)
        ).scalars().all()

        return [Booking.model_validate(row) for row in rows], total
