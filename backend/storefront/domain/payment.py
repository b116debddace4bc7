"""
Payment domain models
"""
from typing import Optional

from pydantic import BaseModel


class PaymentConfirmation(BaseModel):
    """
    What the gateway reports for a checkout session

    Fields:
        session_id: Gateway session ID
        order_id: Order the session was created for (client_reference_id)
        paid: True when the gateway reports the session as paid
        amount: Amount charged (minor units)
        currency: Currency code, upper case
        customer_email: Email captured by the gateway
    """

    session_id: str
    order_id: Optional[str] = None
    paid: bool
    amount: Optional[int] = None
    currency: Optional[str] = None
    customer_email: Optional[str] = None


class PaymentStart(BaseModel):
    """Card payment session handed back to the client after checkout"""

    order_id: str
    session_id: str
    payment_url: str
