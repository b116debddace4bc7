"""
Order queries: customer tracking and admin listing
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from storefront.core.database import session_scope
from storefront.core.errors import InfrastructureError, NotFound
from storefront.domain.order import Order
from storefront.repositories.order_repository import OrderRepository

logger = logging.getLogger(__name__)


class OrderQueryService:
    def __init__(self, session_factory):
        self.session_factory = session_factory

    def track(self, order_id: str, email: str) -> Order:
        """
        Customer order lookup

        Unknown id and wrong email give the same NotFound so order ids
        cannot be enumerated.
        """
        order = self._find(order_id)
        if order is None or order.customer_email.strip().lower() != email.strip().lower():
            logger.info(f"Order tracking miss for {order_id}")
            raise NotFound("Order not found")
        return order

    def get(self, order_id: str) -> Order:
        order = self._find(order_id)
        if order is None:
            raise NotFound(f"Order {order_id} not found", {"order_id": order_id})
        return order

    def list(
        self,
        status: Optional[str] = None,
        payment_method: Optional[str] = None,
        payment_status: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Order], int]:
        try:
            with session_scope(self.session_factory) as session:
                return OrderRepository(session).find_all(
                    status=status,
                    payment_method=payment_method,
                    payment_status=payment_status,
                    search=search,
                    limit=limit,
                    offset=offset,
                )
        except SQLAlchemyError as e:
            logger.exception(f"Order listing failed: {e}")
            raise InfrastructureError() from e

    def _find(self, order_id: str) -> Optional[Order]:
        try:
            with session_scope(self.session_factory) as session:
                return OrderRepository(session).find_by_id(order_id)
        except SQLAlchemyError as e:
            logger.exception(f"Order lookup {order_id} failed: {e}")
            raise InfrastructureError() from e
