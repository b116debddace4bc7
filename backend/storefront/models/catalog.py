"""
Modelos del catálogo: categorías y productos (stock ledger)
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from storefront.core.database import Base


def generate_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Category(Base):
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    # No cascade: deleting a category with products is rejected by policy
    products = relationship("Product", back_populates="category")


class Product(Base):
    """
    Producto vendible - la columna stock es el stock ledger autoritativo
    """
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    description = Column(Text)

    # Minor currency units
    price = Column(Integer, nullable=False)
    stock = Column(Integer, nullable=False, default=0)

    category_id = Column(String(36), ForeignKey("categories.id"), index=True, nullable=False)
    is_published = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)

    category = relationship("Category", back_populates="products")
    order_items = relationship("OrderItem", back_populates="product")
