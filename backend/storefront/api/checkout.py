"""
Checkout API Endpoint
Public order placement from the storefront cart
"""
import logging
import uuid

from fastapi import APIRouter, Depends, Response, status
from starlette.concurrency import run_in_threadpool

from storefront.core.dependencies import get_checkout_service, get_payment_reconciler
from storefront.core.rate_limit import rate_limit
from storefront.domain.order import CheckoutRequest, PaymentMethod
from storefront.services.checkout_service import CheckoutOrchestrator
from storefront.services.payment_reconciler import PaymentReconciler

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/checkout", status_code=status.HTTP_201_CREATED)
async def create_checkout(
    body: CheckoutRequest,
    response: Response,
    checkout: CheckoutOrchestrator = Depends(get_checkout_service),
    reconciler: PaymentReconciler = Depends(get_payment_reconciler),
    _: None = Depends(rate_limit("checkout")),
):
    """
    Place an order

    Prices and stock are re-read server-side; any price sent by the client
    is ignored. CARD orders also get a hosted payment URL.
    """
    if body.is_bot_submission():
        logger.info("Honeypot triggered on checkout, submission discarded")
        return {
            "status": "success",
            "data": {"order_id": uuid.uuid4().hex, "total_amount": 0, "payment_url": None},
        }

    # Sync DB work runs in the threadpool
    result = await run_in_threadpool(checkout.checkout, body)
    order = result.order

    if result.replayed:
        response.status_code = status.HTTP_200_OK

    payment_url = None
    if order.payment_method == PaymentMethod.CARD and not order.is_paid and not order.is_terminal:
        payment = await reconciler.start_card_payment(order)
        payment_url = payment.payment_url

    return {
        "status": "success",
        "replayed": result.replayed,
        "data": {
            "order_id": order.id,
            "total_amount": order.total_amount,
            "currency": order.currency,
            "status": order.status.value,
            "payment_method": order.payment_method.value,
            "payment_url": payment_url,
        },
    }

