"""
Admin Bookings API Endpoints
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from storefront.core.auth import AdminPrincipal, require_admin
from storefront.core.dependencies import get_booking_scheduler
from storefront.domain.booking import BookingUpdateRequest
from storefront.services.booking_service import BookingScheduler

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/bookings")
def list_bookings(
    status: Optional[str] = Query(None, description="Filter by booking status"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    scheduler: BookingScheduler = Depends(get_booking_scheduler),
):
    bookings, total = scheduler.list(
        status=status.lower() if status else None,
        limit=limit,
        offset=offset,
    )
    return {
        "status": "success",
        "total": total,
        "limit": limit,
        "offset": offset,
        "count": len(bookings),
        "data": [booking.to_dict() for booking in bookings],
    }


@router.get("/bookings/{booking_id}")
def get_booking(
    booking_id: str,
    scheduler: BookingScheduler = Depends(get_booking_scheduler),
):
    return {"status": "success", "data": scheduler.get(booking_id).to_dict()}


@router.patch("/bookings/{booking_id}")
def update_booking(
    booking_id: str,
    body: BookingUpdateRequest,
    admin: AdminPrincipal = Depends(require_admin),
    scheduler: BookingScheduler = Depends(get_booking_scheduler),
):
    booking = scheduler.update(
        booking_id,
        actor=admin.email or admin.id,
        status=body.status,
        internal_notes=body.internal_notes,
    )
    return {"status": "success", "data": booking.to_dict()}
