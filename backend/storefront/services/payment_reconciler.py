"""
Payment Reconciler

Card payments are only ever marked paid from what the gateway reports for
the session, never from client redirect parameters or webhook bodies.
Non-card methods skip the gateway; an admin records their payment manually.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from storefront.connectors.payment_gateway import CheckoutSessionRequest, GatewayError, PaymentGateway
from storefront.connectors.stripe_connector import WebhookSignatureError, verify_webhook
from storefront.core.config import Settings
from storefront.core.database import session_scope
from storefront.core.errors import (
    Conflict,
    InfrastructureError,
    NotFound,
    PaymentIncomplete,
    StorefrontError,
    ValidationError,
)
from storefront.domain.notification import NotificationEvent
from storefront.domain.order import Order, OrderStatus, PaymentMethod, PaymentStatus
from storefront.domain.payment import PaymentConfirmation, PaymentStart
from storefront.repositories.order_repository import OrderRepository
from storefront.services.order_state_machine import OrderStateMachine

logger = logging.getLogger(__name__)

# Gateway events that may mean a session has been paid
PAID_SESSION_EVENTS = (
    "checkout.session.completed",
    "checkout.session.async_payment_succeeded",
)


class PaymentReconciler:
    """
    Service reconciling orders with the payment gateway

    Handles:
    - Opening a hosted payment session for a CARD order
    - Cancelling (and restocking) the order if the session cannot be opened
    - Confirming card payments from the gateway's own session record
    - Signed gateway webhooks
    - Manual payment recording for non-card methods
    """

    def __init__(
        self,
        session_factory,
        gateway: PaymentGateway,
        state_machine: OrderStateMachine,
        dispatcher,
        settings: Settings,
    ):
        self.session_factory = session_factory
        self.gateway = gateway
        self.state_machine = state_machine
        self.dispatcher = dispatcher
        self.settings = settings

    async def start_card_payment(self, order: Order) -> PaymentStart:
        """
        Open a gateway session for a freshly placed CARD order

        Raises:
            InfrastructureError: gateway failed; the order has been cancelled
        """
        if order.payment_method != PaymentMethod.CARD:
            raise ValidationError(f"Order {order.id} is not a card order")

        request = CheckoutSessionRequest.from_order(order, self.settings.SITE_URL)
        try:
            session = await self.gateway.create_checkout_session(request)
        except GatewayError as e:
            logger.error(f"Payment session for order {order.id} failed, cancelling order: {e}")
            await asyncio.to_thread(self._compensate, order.id)
            raise InfrastructureError() from e
        except Exception as e:
            logger.exception(f"Unexpected gateway error for order {order.id}, cancelling order: {e}")
            await asyncio.to_thread(self._compensate, order.id)
            raise InfrastructureError() from e

        await asyncio.to_thread(self._store_session, order.id, session.session_id)
        logger.info(f"Order {order.id} awaiting card payment in session {session.session_id}")
        return PaymentStart(order_id=order.id, session_id=session.session_id, payment_url=session.url)

    def _compensate(self, order_id: str) -> None:
        try:
            self.state_machine.transition(
                order_id,
                OrderStatus.CANCELLED,
                actor="system",
                note="Payment session could not be created",
            )
        except StorefrontError as e:
            logger.error(f"Compensation for order {order_id} failed: {e.message}")

    def _store_session(self, order_id: str, session_id: str) -> None:
        try:
            with session_scope(self.session_factory) as session:
                row = OrderRepository(session).get_row(order_id)
                if row is None:
                    raise NotFound(f"Order {order_id} not found", {"order_id": order_id})
                row.payment_session_id = session_id
        except SQLAlchemyError as e:
            logger.exception(f"Storing payment session {session_id} on order {order_id} failed: {e}")
            raise InfrastructureError() from e

    async def retrieve_confirmation(self, session_id: str) -> PaymentConfirmation:
        """Authoritative session state from the gateway"""
        if not session_id:
            raise ValidationError("session_id is required")
        try:
            return await self.gateway.retrieve_session(session_id)
        except GatewayError as e:
            logger.error(f"Payment session {session_id} lookup failed: {e}")
            raise InfrastructureError() from e

    async def confirm_card_payment(self, session_id: str) -> Tuple[Order, PaymentConfirmation]:
        """
        Mark the session's order paid if, and only if, the gateway says so

        Safe to call repeatedly (redirect page and webhook both do).

        Raises:
            PaymentIncomplete: session not paid, or amount/currency mismatch
            NotFound: no order for the session
        """
        confirmation = await self.retrieve_confirmation(session_id)
        if not confirmation.paid:
            logger.info(f"Payment session {session_id} not paid yet")
            raise PaymentIncomplete(
                "Payment has not been completed",
                {"session_id": session_id},
            )

        order, newly_paid = await asyncio.to_thread(self._record_card_payment, confirmation)
        if newly_paid:
            logger.info(f"Order {order.id} paid by card (session {session_id})")
            self.dispatcher.enqueue(NotificationEvent.payment_confirmation(order))
        return order, confirmation

    def _record_card_payment(self, confirmation: PaymentConfirmation) -> Tuple[Order, bool]:
        try:
            with session_scope(self.session_factory) as session:
                orders = OrderRepository(session)
                row = orders.find_by_payment_session(confirmation.session_id)
                if row is None and confirmation.order_id:
                    # An idempotent replay replaces the stored session id, but the
                    # gateway's own metadata still names the order of older sessions
                    row = orders.get_row(confirmation.order_id)
                if row is None or row.payment_method != PaymentMethod.CARD.value:
                    raise NotFound(
                        "No card order for this payment session",
                        {"session_id": confirmation.session_id},
                    )

                if confirmation.amount != row.total_amount or (confirmation.currency or "").upper() != row.currency.upper():
                    logger.error(
                        f"Payment mismatch on order {row.id}: gateway {confirmation.amount} "
                        f"{confirmation.currency}, order {row.total_amount} {row.currency}"
                    )
                    raise PaymentIncomplete(
                        "Payment does not match the order",
                        {"session_id": confirmation.session_id},
                    )

                if row.payment_status == PaymentStatus.PAID.value:
                    if row.payment_session_id != confirmation.session_id:
                        logger.warning(
                            f"Order {row.id} already paid in session {row.payment_session_id}; "
                            f"session {confirmation.session_id} is a duplicate payment, refund required"
                        )
                    return Order.model_validate(row), False

                if row.status == OrderStatus.CANCELLED.value:
                    logger.warning(f"Order {row.id} was paid after cancellation; refund required")

                row.payment_session_id = confirmation.session_id
                newly_paid = orders.mark_paid(row.id, datetime.now(timezone.utc))
                session.flush()
                return orders.find_by_id(row.id), newly_paid
        except StorefrontError:
            raise
        except SQLAlchemyError as e:
            logger.exception(f"Recording payment for session {confirmation.session_id} failed: {e}")
            raise InfrastructureError() from e

    async def handle_webhook(self, payload: bytes, signature_header: Optional[str]) -> dict:
        """
        Process a signed gateway webhook

        The body only tells us which session to look at; payment state is
        re-read from the gateway.
        """
        try:
            event = verify_webhook(
                payload,
                signature_header,
                self.settings.PAYMENT_WEBHOOK_SECRET or "",
                self.settings.PAYMENT_WEBHOOK_TOLERANCE_SECONDS,
            )
        except WebhookSignatureError as e:
            logger.warning(f"Rejected payment webhook: {e}")
            raise ValidationError("Invalid webhook signature")

        event_type = event.get("type")
        if event_type not in PAID_SESSION_EVENTS:
            logger.debug(f"Ignoring payment webhook {event_type}")
            return {"received": True, "handled": False}

        session_id = ((event.get("data") or {}).get("object") or {}).get("id")
        if not session_id:
            raise ValidationError("Webhook event has no session id")

        try:
            await self.confirm_card_payment(session_id)
        except PaymentIncomplete as e:
            logger.info(f"Webhook {event_type} for session {session_id}: {e.message}")
            return {"received": True, "handled": False}
        except NotFound:
            logger.warning(f"Webhook {event_type} for unknown session {session_id}")
            return {"received": True, "handled": False}

        return {"received": True, "handled": True}

    def record_manual_payment(self, order_id: str, actor: str, note: Optional[str] = None) -> Order:
        """
        Admin action marking a non-card order as paid

        Raises:
            ValidationError: CARD orders are confirmed by the gateway only
            Conflict: the order is cancelled
            NotFound: unknown order
        """
        try:
            with session_scope(self.session_factory) as session:
                orders = OrderRepository(session)
                row = orders.get_row(order_id)
                if row is None:
                    raise NotFound(f"Order {order_id} not found", {"order_id": order_id})
                if row.payment_method == PaymentMethod.CARD.value:
                    raise ValidationError(
                        "Card payments are confirmed by the payment gateway",
                        {"order_id": order_id},
                    )
                if row.status == OrderStatus.CANCELLED.value:
                    raise Conflict("Cannot record payment for a cancelled order", {"order_id": order_id})

                newly_paid = orders.mark_paid(order_id, datetime.now(timezone.utc))
                if newly_paid and note:
                    row.internal_notes = f"{row.internal_notes}\n{note}" if row.internal_notes else note
                session.flush()
                order = orders.find_by_id(order_id)
        except StorefrontError:
            raise
        except SQLAlchemyError as e:
            logger.exception(f"Manual payment for order {order_id} failed: {e}")
            raise InfrastructureError() from e

        if newly_paid:
            logger.info(f"Payment for order {order_id} ({order.payment_method.value}) recorded by {actor}")
            self.dispatcher.enqueue(NotificationEvent.payment_confirmation(order))
        return order
