"""
Payment gateway interface

The reconciler talks to the gateway only through this interface so the
provider can be swapped (or faked in tests).
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from storefront.domain.order import Order
from storefront.domain.payment import PaymentConfirmation


class GatewayError(Exception):
    """Gateway unreachable or rejected the request"""


@dataclass
class GatewaySession:
    session_id: str
    url: str


@dataclass
class GatewayLineItem:
    name: str
    unit_amount: int
    quantity: int


@dataclass
class CheckoutSessionRequest:
    order_id: str
    currency: str
    customer_email: str
    success_url: str
    cancel_url: str
    line_items: List[GatewayLineItem] = field(default_factory=list)

    @classmethod
    def from_order(cls, order: Order, site_url: str) -> "CheckoutSessionRequest":
        site_url = site_url.rstrip("/")
        return cls(
            order_id=order.id,
            currency=order.currency,
            customer_email=order.customer_email,
            success_url=f"{site_url}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{site_url}/checkout/cancel?order_id={order.id}",
            line_items=[
                GatewayLineItem(
                    name=item.product_name,
                    unit_amount=item.unit_price,
                    quantity=item.quantity,
                )
                for item in order.items
            ],
        )


class PaymentGateway(ABC):
    @abstractmethod
    async def create_checkout_session(self, request: CheckoutSessionRequest) -> GatewaySession:
        """Open a hosted payment session; raises GatewayError"""

    @abstractmethod
    async def retrieve_session(self, session_id: str) -> PaymentConfirmation:
        """Read a session back from the gateway; raises GatewayError"""

    async def close(self) -> None:
        return None


class UnconfiguredGateway(PaymentGateway):
    """Used when no gateway key is configured: every card payment fails cleanly"""

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason or "Payment gateway is not configured"

    async def create_checkout_session(self, request: CheckoutSessionRequest) -> GatewaySession:
        raise GatewayError(self.reason)

    async def retrieve_session(self, session_id: str) -> PaymentConfirmation:
        raise GatewayError(self.reason)
