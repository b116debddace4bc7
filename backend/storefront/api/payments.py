"""
Payments API Endpoints
Card payment confirmation and gateway webhooks
"""
from fastapi import APIRouter, Depends, Query, Request

from storefront.core.dependencies import get_payment_reconciler
from storefront.services.payment_reconciler import PaymentReconciler

router = APIRouter()


@router.get("/payments/confirmation")
async def get_payment_confirmation(
    session_id: str = Query(..., min_length=1, max_length=255, description="Gateway session ID"),
    reconciler: PaymentReconciler = Depends(get_payment_reconciler),
):
    """
    Confirmation for the checkout success page

    Re-queries the gateway; a session that is not paid yields 402
    PAYMENT_INCOMPLETE and the page must not show the order as paid.
    """
    order, confirmation = await reconciler.confirm_card_payment(session_id)
    return {
        "status": "success",
        "data": {
            "paid": confirmation.paid,
            "amount": confirmation.amount,
            "currency": confirmation.currency,
            "customer_email": confirmation.customer_email,
            "session_id": confirmation.session_id,
            "order_id": order.id,
            "order_status": order.status.value,
        },
    }


@router.post("/payments/webhook")
async def payment_webhook(
    request: Request,
    reconciler: PaymentReconciler = Depends(get_payment_reconciler),
):
    """Gateway webhook; signature checked against PAYMENT_WEBHOOK_SECRET"""
    payload = await request.body()
    return await reconciler.handle_webhook(payload, request.headers.get("Stripe-Signature"))
