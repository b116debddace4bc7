"""
Unit tests for booking request validation
"""
from datetime import date, timedelta

import pytest
from pydantic import ValidationError as PydanticValidationError

from storefront.domain.booking import BookingRequest, BookingStatus, BookingUpdateRequest


def _payload(**overrides) -> dict:
    payload = {
        "full_name": "Youssef Alaoui",
        "email": "youssef@example.com",
        "date": (date.today() + timedelta(days=7)).isoformat(),
        "time_slot": "10:30",
        "project_type": "Living room",
    }
    payload.update(overrides)
    return payload


class TestBookingRequest:
    def test_valid_request(self):
        request = BookingRequest(**_payload())

        assert request.time_slot == "10:30"
        assert request.phone is None

    def test_today_is_allowed(self):
        request = BookingRequest(**_payload(date=date.today().isoformat()))
        assert request.date == date.today()

    @pytest.mark.parametrize("booking_date", [
        date.today() - timedelta(days=1),
        date.today() + timedelta(days=366),
    ])
    def test_date_outside_window_is_rejected(self, booking_date):
        with pytest.raises(PydanticValidationError):
            BookingRequest(**_payload(date=booking_date.isoformat()))

    @pytest.mark.parametrize("slot", ["9:30", "24:00", "10:60", "ten"])
    def test_bad_time_slot(self, slot):
        with pytest.raises(PydanticValidationError):
            BookingRequest(**_payload(time_slot=slot))

    def test_phone_format(self):
        assert BookingRequest(**_payload(phone="(+212) 600 12 34 56")).phone == "(+212) 600 12 34 56"
        with pytest.raises(PydanticValidationError):
            BookingRequest(**_payload(phone="phone: 123456"))

    def test_markup_in_message_is_rejected(self):
        with pytest.raises(PydanticValidationError):
            BookingRequest(**_payload(message="<img src=x onerror=alert(1)>"))


class TestBookingUpdateRequest:
    def test_status_normalized(self):
        assert BookingUpdateRequest(status="CONFIRMED").status == BookingStatus.CONFIRMED

    def test_empty_update_is_valid(self):
        update = BookingUpdateRequest()
        assert update.status is None
        assert update.internal_notes is None
