"""
Order State Machine
The only writer of order status after checkout

PENDING -> CONFIRMED -> PREPARING -> SHIPPED -> COMPLETED
CANCELLED from any non-terminal status. COMPLETED and CANCELLED are terminal.

Cancelling from PENDING, CONFIRMED or PREPARING returns the order's units to
stock in the same transaction. A SHIPPED order is cancelled without restock.
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from storefront.core.database import session_scope
from storefront.core.errors import InfrastructureError, InvalidTransition, NotFound, StorefrontError
from storefront.domain.notification import NotificationEvent
from storefront.domain.order import Order, OrderStatus, OrderStatusChange, can_transition
from storefront.models import Order as OrderRow
from storefront.repositories.order_repository import OrderRepository
from storefront.repositories.product_repository import ProductRepository

logger = logging.getLogger(__name__)


class OrderStateMachine:
    def __init__(self, session_factory: sessionmaker, dispatcher):
        self.session_factory = session_factory
        self.dispatcher = dispatcher

    def transition(
        self,
        order_id: str,
        new_status: OrderStatus,
        actor: str,
        note: Optional[str] = None,
    ) -> Order:
        """
        Move an order to new_status

        Args:
            order_id: Order ID
            new_status: Target status
            actor: Who requested the change (admin email, API key id, "system")
            note: Optional reason, stored in the audit trail

        Returns:
            The order after the change (unchanged for a same-status request)

        Raises:
            NotFound: unknown order
            InvalidTransition: edge not in the graph, or lost a concurrent race
        """
        new_status = OrderStatus(new_status)
        try:
            with session_scope(self.session_factory) as session:
                order, old_status = self._apply(session, order_id, new_status, actor, note)
        except StorefrontError:
            raise
        except SQLAlchemyError as e:
            logger.exception(f"Status change of order {order_id} to {new_status.value} failed: {e}")
            raise InfrastructureError() from e

        if old_status is None:
            logger.info(f"Order {order_id} already {new_status.value}, nothing to do")
            return order

        logger.info(f"Order {order_id}: {old_status.value} -> {new_status.value} by {actor}")
        self.dispatcher.enqueue(NotificationEvent.status_update(order, old_status, note))
        return order

    def _apply(
        self,
        session: Session,
        order_id: str,
        new_status: OrderStatus,
        actor: str,
        note: Optional[str],
    ) -> Tuple[Order, Optional[OrderStatus]]:
        """Returns (order, old status) or (order, None) when nothing changed"""
        orders = OrderRepository(session)
        row = orders.get_for_update(order_id)
        if row is None:
            raise NotFound(f"Order {order_id} not found", {"order_id": order_id})

        current = OrderStatus(row.status)

        if current == new_status:
            return Order.model_validate(row), None

        if not can_transition(current, new_status):
            raise InvalidTransition(order_id, current.value, new_status.value)

        restock = new_status == OrderStatus.CANCELLED and current.holds_stock and row.stock_reserved
        values = {"stock_reserved": False} if restock else {}

        if not orders.compare_and_set_status(order_id, current, new_status, **values):
            # Someone else moved it first; judge the request against what they left
            latest = orders.find_by_id(order_id)
            latest_status = latest.status.value if latest else "DELETED"
            raise InvalidTransition(order_id, latest_status, new_status.value)

        if restock:
            self._restock_items(session, row)

        orders.add_status_change(order_id, current, new_status, actor, note)
        session.flush()
        return orders.find_by_id(order_id), current

    @staticmethod
    def _restock_items(session: Session, row: OrderRow) -> None:
        products = ProductRepository(session)
        for item in row.items:
            if not products.restock(item.product_id, item.quantity):
                logger.warning(f"Restock skipped for order {row.id}: product {item.product_id} no longer exists")
        logger.info(f"Order {row.id} cancelled: {sum(i.quantity for i in row.items)} unit(s) returned to stock")

    def update_notes(self, order_id: str, internal_notes: Optional[str], actor: str) -> Order:
        """Replace an order's internal notes; status is untouched"""
        try:
            with session_scope(self.session_factory) as session:
                orders = OrderRepository(session)
                row = orders.get_row(order_id)
                if row is None:
                    raise NotFound(f"Order {order_id} not found", {"order_id": order_id})
                row.internal_notes = internal_notes
                session.flush()
                order = orders.find_by_id(order_id)
        except StorefrontError:
            raise
        except SQLAlchemyError as e:
            logger.exception(f"Notes update of order {order_id} failed: {e}")
            raise InfrastructureError() from e

        logger.info(f"Internal notes of order {order_id} updated by {actor}")
        return order

    def purge(self, order_id: str, actor: str) -> None:
        """Delete an order with its items and history. Stock is not returned."""
        try:
            with session_scope(self.session_factory) as session:
                if not OrderRepository(session).delete(order_id):
                    raise NotFound(f"Order {order_id} not found", {"order_id": order_id})
        except StorefrontError:
            raise
        except SQLAlchemyError as e:
            logger.exception(f"Purge of order {order_id} failed: {e}")
            raise InfrastructureError() from e

        logger.warning(f"Order {order_id} purged by {actor}")

    def history(self, order_id: str) -> List[OrderStatusChange]:
        try:
            with session_scope(self.session_factory) as session:
                return OrderRepository(session).history(order_id)
        except SQLAlchemyError as e:
            logger.exception(f"History lookup of order {order_id} failed: {e}")
            raise InfrastructureError() from e
