"""
Notification events

Events are built by the services once their transaction has committed and
handed to the NotificationDispatcher. Delivery is best-effort.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from storefront.domain.booking import Booking
from storefront.domain.contact import ContactMessage
from storefront.domain.order import Order, OrderStatus


class NotificationType(str, Enum):
    ORDER_CONFIRMATION = "order_confirmation"
    ORDER_STATUS_UPDATE = "order_status_update"
    PAYMENT_CONFIRMATION = "payment_confirmation"
    QUOTE_REQUEST = "quote_request"
    BOOKING_REQUEST = "booking_request"
    CONTACT_MESSAGE = "contact_message"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class NotificationEvent(BaseModel):
    type: NotificationType
    recipient_email: Optional[str] = None
    order_id: Optional[str] = None
    booking_id: Optional[str] = None
    contact_id: Optional[str] = None
    old_status: Optional[str] = None
    new_status: Optional[str] = None
    payload: Dict[str, Any] = Field(default_factory=dict)
    occurred_at: datetime = Field(default_factory=_now)

    @classmethod
    def order_confirmation(cls, order: Order) -> "NotificationEvent":
        return cls(
            type=NotificationType.ORDER_CONFIRMATION,
            recipient_email=order.customer_email,
            order_id=order.id,
            new_status=order.status.value,
            payload=order.to_public_dict(),
        )

    @classmethod
    def quote_request(cls, order: Order) -> "NotificationEvent":
        return cls(
            type=NotificationType.QUOTE_REQUEST,
            recipient_email=order.customer_email,
            order_id=order.id,
            new_status=order.status.value,
            payload=order.to_public_dict(),
        )

    @classmethod
    def status_update(
        cls, order: Order, old_status: OrderStatus, note: Optional[str] = None
    ) -> "NotificationEvent":
        return cls(
            type=NotificationType.ORDER_STATUS_UPDATE,
            recipient_email=order.customer_email,
            order_id=order.id,
            old_status=old_status.value,
            new_status=order.status.value,
            payload={
                "customer_name": order.customer_name,
                "total_amount": order.total_amount,
                "currency": order.currency,
                "note": note,
            },
        )

    @classmethod
    def payment_confirmation(cls, order: Order) -> "NotificationEvent":
        return cls(
            type=NotificationType.PAYMENT_CONFIRMATION,
            recipient_email=order.customer_email,
            order_id=order.id,
            new_status=order.status.value,
            payload={
                "customer_name": order.customer_name,
                "total_amount": order.total_amount,
                "currency": order.currency,
                "paid_at": order.paid_at.isoformat() if order.paid_at else None,
            },
        )

    @classmethod
    def booking_request(cls, booking: Booking) -> "NotificationEvent":
        return cls(
            type=NotificationType.BOOKING_REQUEST,
            recipient_email=booking.email,
            booking_id=booking.id,
            new_status=booking.status.value,
            payload=booking.to_dict(),
        )

    @classmethod
    def contact_message(cls, message: ContactMessage) -> "NotificationEvent":
        return cls(
            type=NotificationType.CONTACT_MESSAGE,
            recipient_email=message.email,
            contact_id=message.id,
            payload=message.to_dict(),
        )

    def describe(self) -> str:
        """Short identification used in delivery logs"""
        if self.order_id:
            target = f"order={self.order_id}"
        elif self.booking_id:
            target = f"booking={self.booking_id}"
        else:
            target = f"contact={self.contact_id}"
        transition = ""
        if self.old_status or self.new_status:
            transition = f" {self.old_status or '-'}->{self.new_status or '-'}"
        return f"{self.type.value} {target}{transition} at {self.occurred_at.isoformat()}"
