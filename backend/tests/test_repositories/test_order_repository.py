"""
Tests for OrderRepository and ProductRepository stock primitives
"""
from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from storefront.core.database import session_scope
from storefront.domain.order import OrderStatus
from storefront.models import Order as OrderRow
from storefront.models import OrderItem as OrderItemRow
from storefront.repositories.order_repository import OrderRepository
from storefront.repositories.product_repository import ProductRepository


def _order_row(**overrides) -> OrderRow:
    fields = {
        "customer_name": "Amina Benali",
        "customer_email": "amina@example.com",
        "address_line1": "12 Rue des Orangers",
        "city": "Casablanca",
        "country": "Morocco",
        "total_amount": 10000,
        "currency": "MAD",
        "status": "PENDING",
        "payment_method": "CASH_ON_DELIVERY",
        "items": [OrderItemRow(
            product_id="P1", product_name="Oak Dining Table", quantity=1, unit_price=10000, subtotal=10000,
        )],
    }
    fields.update(overrides)
    return OrderRow(**fields)


@pytest.fixture
def order_id(session_factory):
    with session_scope(session_factory) as session:
        return OrderRepository(session).add(_order_row()).id


class TestOrderRepository:
    """Order reads and conditional writes"""

    def test_find_by_id_returns_domain_order(self, session_factory, order_id):
        with session_scope(session_factory) as session:
            order = OrderRepository(session).find_by_id(order_id)

        assert order.status == OrderStatus.PENDING
        assert order.items[0].product_id == "P1"
        assert order.stock_reserved

    def test_find_by_id_unknown(self, session_factory):
        with session_scope(session_factory) as session:
            assert OrderRepository(session).find_by_id("missing") is None

    def test_compare_and_set_only_from_expected_status(self, session_factory, order_id):
        with session_scope(session_factory) as session:
            orders = OrderRepository(session)

            assert orders.compare_and_set_status(order_id, OrderStatus.PENDING, OrderStatus.CONFIRMED)
            # Second writer still believes the order is PENDING
            assert not orders.compare_and_set_status(order_id, OrderStatus.PENDING, OrderStatus.CANCELLED)

            assert orders.find_by_id(order_id).status == OrderStatus.CONFIRMED

    def test_mark_paid_once(self, session_factory, order_id):
        paid_at = datetime.now(timezone.utc)
        with session_scope(session_factory) as session:
            orders = OrderRepository(session)
            assert orders.mark_paid(order_id, paid_at)
            assert not orders.mark_paid(order_id, paid_at)
            assert orders.find_by_id(order_id).is_paid

    def test_find_all_filters_and_paginates(self, session_factory, order_id):
        with session_scope(session_factory) as session:
            orders = OrderRepository(session)
            orders.add(_order_row(customer_name="Youssef Alaoui", city="Rabat", payment_method="CARD"))
            orders.add(_order_row(customer_name="Salma Idrissi", city="Fes"))

        with session_scope(session_factory) as session:
            orders = OrderRepository(session)
            page, total = orders.find_all(limit=2)
            cards, card_total = orders.find_all(payment_method="CARD")
            found, _ = orders.find_all(search="salma")

        assert total == 3
        assert len(page) == 2
        assert card_total == 1
        assert cards[0].city == "Rabat"
        assert [order.customer_name for order in found] == ["Salma Idrissi"]

    def test_delete_cascades_items_and_history(self, session_factory, order_id):
        with session_scope(session_factory) as session:
            OrderRepository(session).add_status_change(
                order_id, OrderStatus.PENDING, OrderStatus.CONFIRMED, "admin@example.com"
            )

        with session_scope(session_factory) as session:
            orders = OrderRepository(session)
            assert orders.delete(order_id)
            assert orders.history(order_id) == []
            assert session.query(OrderItemRow).filter_by(order_id=order_id).count() == 0

    def test_idempotency_key_is_unique(self, session_factory):
        with session_scope(session_factory) as session:
            OrderRepository(session).add(_order_row(idempotency_key="dup-key-0001"))

        with pytest.raises(IntegrityError):
            with session_scope(session_factory) as session:
                OrderRepository(session).add(_order_row(idempotency_key="dup-key-0001"))


class TestProductStockPrimitives:
    def test_decrement_never_goes_negative(self, session_factory):
        with session_scope(session_factory) as session:
            products = ProductRepository(session)

            assert products.decrement_stock("P2", 2)
            assert not products.decrement_stock("P2", 1)
            assert products.current_stock(["P2"]) == {"P2": 0}

    def test_restock_unknown_product(self, session_factory):
        with session_scope(session_factory) as session:
            assert not ProductRepository(session).restock("missing", 1)

    def test_find_many_skips_unknown_ids(self, session_factory):
        with session_scope(session_factory) as session:
            found = ProductRepository(session).find_many(["P1", "P2", "nope", "P1"])

        assert set(found) == {"P1", "P2"}
