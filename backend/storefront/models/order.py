"""
Modelos relacionados con órdenes/pedidos
"""
from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from storefront.core.database import Base
from storefront.models.catalog import generate_id, utcnow


class Order(Base):
    """
    Tabla principal de órdenes

    Created once by checkout together with its items and the stock
    decrement; afterwards only status, payment state and notes change.
    """
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="ck_orders_total_non_negative"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)

    # Cliente
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), nullable=False, index=True)
    customer_phone = Column(String(50))

    # Envío
    address_line1 = Column(String(255), nullable=False)
    address_line2 = Column(String(255))
    city = Column(String(100), nullable=False)
    postal_code = Column(String(20))
    country = Column(String(100), nullable=False)

    # Montos (minor units)
    total_amount = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False)

    # Estados
    status = Column(String(20), nullable=False, default="PENDING", index=True)
    payment_method = Column(String(30), nullable=False, index=True)
    payment_status = Column(String(20), nullable=False, default="pending", index=True)
    payment_session_id = Column(String(255), unique=True, index=True)
    paid_at = Column(DateTime(timezone=True))

    # True while the order holds decremented units
    stock_reserved = Column(Boolean, nullable=False, default=True)

    # Idempotent checkout
    idempotency_key = Column(String(255), unique=True, index=True)
    request_fingerprint = Column(String(64))

    # Notas
    notes = Column(Text)
    internal_notes = Column(Text)

    # Metadata
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)

    # Relationships
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )
    status_changes = relationship(
        "OrderStatusChange",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderStatusChange.id",
    )


class OrderItem(Base):
    """
    Items/productos de cada orden
    """
    __tablename__ = "order_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False)
    product_id = Column(String(36), ForeignKey("products.id"), index=True, nullable=False)

    # Datos del producto al momento de venta
    product_name = Column(String(255), nullable=False)
    selected_material = Column(String(100))
    selected_color = Column(String(100))

    # Cantidades
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Integer, nullable=False)
    subtotal = Column(Integer, nullable=False)

    # Relationships
    order = relationship("Order", back_populates="items")
    product = relationship("Product", back_populates="order_items")


class OrderStatusChange(Base):
    """
    Auditoría de cambios de estado de órdenes
    """
    __tablename__ = "order_status_changes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False)

    old_status = Column(String(20), nullable=False)
    new_status = Column(String(20), nullable=False)

    # Quién y cuándo
    changed_by = Column(String(255), nullable=False)
    changed_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)

    # Por qué
    note = Column(Text)

    order = relationship("Order", back_populates="status_changes")
