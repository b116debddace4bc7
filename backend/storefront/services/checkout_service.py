"""
Checkout Orchestrator
Turns a validated cart submission into an order, atomically with the stock decrement

Flow (one unit of work):
1. Validate request limits
2. Re-fetch every product server-side
3. Reject missing/unpublished products
4. Reject quantities above current stock
5. Conditional stock decrement + order/items insert
6. Total from server-side prices only
7. After commit, enqueue the confirmation notification
"""
import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from storefront.core.config import Settings
from storefront.core.database import session_scope
from storefront.core.errors import (
    IdempotencyConflict,
    InfrastructureError,
    ProductUnavailable,
    StockConflict,
    ValidationError,
)
from storefront.domain.notification import NotificationEvent
from storefront.domain.order import CheckoutRequest, CheckoutResult, Order, PaymentMethod
from storefront.domain.product import Product
from storefront.models import Order as OrderRow
from storefront.models import OrderItem as OrderItemRow
from storefront.repositories.order_repository import OrderRepository
from storefront.repositories.product_repository import ProductRepository

logger = logging.getLogger(__name__)


class CheckoutOrchestrator:
    """
    Service for placing orders

    Handles:
    - Server-side price and stock checks
    - Race-safe stock decrement
    - Idempotent replays keyed by the client idempotency key
    - Confirmation / quote notification after commit
    """

    def __init__(self, session_factory: sessionmaker, dispatcher, settings: Settings):
        self.session_factory = session_factory
        self.dispatcher = dispatcher
        self.settings = settings

    def checkout(self, request: CheckoutRequest) -> CheckoutResult:
        """
        Place an order

        Args:
            request: Validated checkout submission

        Returns:
            CheckoutResult with the order; replayed=True for an idempotent retry

        Raises:
            ValidationError, ProductUnavailable, StockConflict, IdempotencyConflict,
            InfrastructureError
        """
        self._check_limits(request)
        fingerprint = request.fingerprint()

        if request.idempotency_key:
            replay = self._find_replay(request.idempotency_key, fingerprint)
            if replay is not None:
                logger.info(f"Checkout replayed for idempotency key, order {replay.id}")
                return CheckoutResult(order=replay, replayed=True)

        try:
            with session_scope(self.session_factory) as session:
                order = self._place_order(session, request, fingerprint)
        except IntegrityError as e:
            # Lost the race on the idempotency key: return the winner's order
            if request.idempotency_key:
                replay = self._find_replay(request.idempotency_key, fingerprint)
                if replay is not None:
                    logger.info(f"Concurrent checkout with same idempotency key resolved to order {replay.id}")
                    return CheckoutResult(order=replay, replayed=True)
            logger.exception(f"Checkout integrity failure for {request.customer_email}: {e}")
            raise InfrastructureError() from e
        except SQLAlchemyError as e:
            logger.exception(f"Checkout failed for {request.customer_email}: {e}")
            raise InfrastructureError() from e

        logger.info(
            f"Order {order.id} placed: {order.item_count} line(s), "
            f"total {order.total_amount} {order.currency}, {order.payment_method.value}"
        )

        if order.payment_method == PaymentMethod.QUOTE_ONLY:
            self.dispatcher.enqueue(NotificationEvent.quote_request(order))
        else:
            self.dispatcher.enqueue(NotificationEvent.order_confirmation(order))

        return CheckoutResult(order=order)

    def _check_limits(self, request: CheckoutRequest) -> None:
        if len(request.items) > self.settings.MAX_CHECKOUT_LINES:
            raise ValidationError(
                f"A checkout can contain at most {self.settings.MAX_CHECKOUT_LINES} lines",
                {"lines": len(request.items)},
            )
        for line, item in enumerate(request.items):
            if item.quantity > self.settings.MAX_LINE_QUANTITY:
                raise ValidationError(
                    f"Quantity for line {line} exceeds {self.settings.MAX_LINE_QUANTITY}",
                    {"line": line, "product_id": item.product_id, "quantity": item.quantity},
                )

    def _find_replay(self, idempotency_key: str, fingerprint: str) -> Optional[Order]:
        try:
            with session_scope(self.session_factory) as session:
                row = OrderRepository(session).find_by_idempotency_key(idempotency_key)
                if row is None:
                    return None
                if row.request_fingerprint != fingerprint:
                    raise IdempotencyConflict(
                        "Idempotency key was already used for a different request",
                        {"order_id": row.id},
                    )
                return Order.model_validate(row)
        except SQLAlchemyError as e:
            logger.exception(f"Idempotency lookup failed: {e}")
            raise InfrastructureError() from e

    @staticmethod
    def _check_stock(request: CheckoutRequest, catalog: Dict[str, Product]) -> Dict[str, Tuple[int, int]]:
        """
        Sum requested units per product across lines

        Returns:
            product_id -> (total requested, index of its last line)
        """
        totals: Dict[str, Tuple[int, int]] = {}
        for line, item in enumerate(request.items):
            product = catalog.get(item.product_id)
            if product is None or not product.is_published:
                raise ProductUnavailable(item.product_id, line)

            requested = totals.get(item.product_id, (0, line))[0] + item.quantity
            totals[item.product_id] = (requested, line)
            if requested > product.stock:
                raise StockConflict(item.product_id, line, requested, product.stock)
        return totals

    def _place_order(self, session: Session, request: CheckoutRequest, fingerprint: str) -> Order:
        products = ProductRepository(session)
        catalog = products.find_many(item.product_id for item in request.items)

        totals = self._check_stock(request, catalog)

        # Conditional decrement; losing a race here rolls back the whole unit of work
        for product_id, (quantity, line) in totals.items():
            if not products.decrement_stock(product_id, quantity):
                available = products.current_stock([product_id]).get(product_id)
                logger.info(f"Stock race lost on {product_id}: wanted {quantity}, {available} left")
                raise StockConflict(product_id, line, quantity, available)

        items: List[OrderItemRow] = []
        for item in request.items:
            product = catalog[item.product_id]
            items.append(OrderItemRow(
                product_id=product.id,
                product_name=product.name,
                selected_material=item.selected_material,
                selected_color=item.selected_color,
                quantity=item.quantity,
                unit_price=product.price,
                subtotal=product.price * item.quantity,
            ))

        row = OrderRow(
            customer_name=request.customer_name,
            customer_email=str(request.customer_email),
            customer_phone=request.customer_phone,
            address_line1=request.address_line1,
            address_line2=request.address_line2,
            city=request.city,
            postal_code=request.postal_code,
            country=request.country,
            total_amount=sum(item.subtotal for item in items),
            currency=self.settings.CURRENCY,
            status="PENDING",
            payment_method=request.payment_method.value,
            payment_status="pending",
            stock_reserved=True,
            idempotency_key=request.idempotency_key,
            request_fingerprint=fingerprint,
            notes=request.notes,
            items=items,
        )
        OrderRepository(session).add(row)
        return Order.model_validate(row)
