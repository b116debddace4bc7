"""
Order Repository - Data Access Layer for Orders

Handles all database queries for orders. Read methods return Order domain
models; the write path works on ORM rows inside the caller's unit of work.
"""
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session, selectinload

from storefront.domain.order import Order, OrderStatus, OrderStatusChange
from storefront.models import Order as OrderRow
from storefront.models import OrderStatusChange as OrderStatusChangeRow


class OrderRepository:
    """
    Repository for Order data access

    All order queries are centralized here. The caller owns the session
    and decides when to commit.
    """

    def __init__(self, session: Session):
        self.session = session

    def add(self, row: OrderRow) -> OrderRow:
        """Insert an order with its items; flushes so DB constraints fire now"""
        self.session.add(row)
        self.session.flush()
        return row

    def get_row(self, order_id: str) -> Optional[OrderRow]:
        return self.session.get(OrderRow, order_id)

    def get_for_update(self, order_id: str) -> Optional[OrderRow]:
        """
        Load an order row, locking it where the backend supports row locks

        SQLite ignores FOR UPDATE; the compare-and-set in
        compare_and_set_status still guards concurrent writers there.
        """
        return self.session.execute(
            select(OrderRow)
            .where(OrderRow.id == order_id)
            .options(selectinload(OrderRow.items))
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def find_by_id(self, order_id: str) -> Optional[Order]:
        """
        Find order by ID with its items

        Args:
            order_id: Order ID

        Returns:
            Order or None if not found
        """
        row = self.session.execute(
            select(OrderRow)
            .where(OrderRow.id == order_id)
            .options(selectinload(OrderRow.items))
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        return Order.model_validate(row) if row else None

    def find_by_idempotency_key(self, idempotency_key: str) -> Optional[OrderRow]:
        return self.session.execute(
            select(OrderRow)
            .where(OrderRow.idempotency_key == idempotency_key)
            .options(selectinload(OrderRow.items))
        ).scalar_one_or_none()

    def find_by_payment_session(self, session_id: str) -> Optional[OrderRow]:
        return self.session.execute(
            select(OrderRow)
            .where(OrderRow.payment_session_id == session_id)
            .options(selectinload(OrderRow.items))
        ).scalar_one_or_none()

    def find_all(
        self,
        status: Optional[str] = None,
        payment_method: Optional[str] = None,
        payment_status: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> Tuple[List[Order], int]:
        """
        Find orders with filters

        Args:
            status: Filter by order status
            payment_method: Filter by payment method
            payment_status: Filter by payment status
            search: Search by order id, customer name, email, phone or city
            limit: Maximum results to return
            offset: Number of results to skip

        Returns:
            Tuple of (list of orders, total count)
        """
        conditions = []

        if status:
            conditions.append(OrderRow.status == status)

        if payment_method:
            conditions.append(OrderRow.payment_method == payment_method)

        if payment_status:
            conditions.append(OrderRow.payment_status == payment_status)

        if search:
            pattern = f"%{search}%"
            conditions.append(or_(
                OrderRow.id.ilike(pattern),
                OrderRow.customer_name.ilike(pattern),
                OrderRow.customer_email.ilike(pattern),
                OrderRow.customer_phone.ilike(pattern),
                OrderRow.city.ilike(pattern),
            ))

        total = self.session.execute(
            select(func.count()).select_from(OrderRow).where(*conditions)
        ).scalar_one()

        # Items loaded in one extra query for the whole page
        rows = self.session.execute(
            select(OrderRow)
            .where(*conditions)
            .options(selectinload(OrderRow.items))
            .order_by(OrderRow.created_at.desc(), OrderRow.id)
            .limit(limit)
            .offset(offset)
        ).scalars().all()

        return [Order.model_validate(row) for row in rows], total

    def compare_and_set_status(self, order_id: str, expected: OrderStatus, new: OrderStatus, **values) -> bool:
        """
        Move an order from `expected` to `new` only if it is still `expected`

        Returns:
            True if this call won; False if another writer changed it first
        """
        result = self.session.execute(
            update(OrderRow)
            .where(OrderRow.id == order_id, OrderRow.status == expected.value)
            .values(status=new.value, **values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def mark_paid(self, order_id: str, paid_at) -> bool:
        """Set payment_status=paid once; False when already paid"""
        result = self.session.execute(
            update(OrderRow)
            .where(OrderRow.id == order_id, OrderRow.payment_status != "paid")
            .values(payment_status="paid", paid_at=paid_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def add_status_change(
        self,
        order_id: str,
        old_status: OrderStatus,
        new_status: OrderStatus,
        changed_by: str,
        note: Optional[str] = None,
    ) -> None:
        self.session.add(OrderStatusChangeRow(
            order_id=order_id,
            old_status=old_status.value,
            new_status=new_status.value,
            changed_by=changed_by,
            note=note,
        ))

    def history(self, order_id: str) -> List[OrderStatusChange]:
        rows = self.session.execute(
            select(OrderStatusChangeRow)
            .where(OrderStatusChangeRow.order_id == order_id)
            .order_by(OrderStatusChangeRow.id)
        ).scalars()
        return [OrderStatusChange.model_validate(row) for row in rows]

    def delete(self, order_id: str) -> bool:
        """Delete an order; items and audit rows go with it (ORM cascade)"""
        row = self.session.get(OrderRow, order_id)
        if row is None:
            return False
        self.session.delete(row)
        self.session.flush()
        return True
