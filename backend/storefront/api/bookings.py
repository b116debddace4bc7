"""
Bookings API Endpoint
Public consultation booking form
"""
import logging
import uuid

from fastapi import APIRouter, Depends, status

from storefront.core.dependencies import get_booking_scheduler
from storefront.core.rate_limit import rate_limit
from storefront.domain.booking import BookingRequest
from storefront.services.booking_service import BookingScheduler

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/bookings", status_code=status.HTTP_201_CREATED)
def create_booking(
    body: BookingRequest,
    scheduler: BookingScheduler = Depends(get_booking_scheduler),
    _: None = Depends(rate_limit("booking")),
):
    if body.is_bot_submission():
        logger.info("Honeypot triggered on booking, submission discarded")
        return {"status": "success", "data": {"booking_id": uuid.uuid4().hex}}

    booking = scheduler.create(body)
    return {"status": "success", "data": {"booking_id": booking.id}}
