"""
Product Repository - Data Access Layer for the catalog and stock ledger

Stock is only ever changed through conditional UPDATE statements so that
concurrent checkouts cannot drive it below zero.
"""
from typing import Dict, Iterable, Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from storefront.domain.product import Product
from storefront.models import Product as ProductRow


class ProductRepository:
    """
    Repository for Product data access
    """

    def __init__(self, session: Session):
        self.session = session

    def find_by_id(self, product_id: str) -> Optional[Product]:
        row = self.session.get(ProductRow, product_id, populate_existing=True)
        return Product.model_validate(row) if row else None

    def find_many(self, product_ids: Iterable[str]) -> Dict[str, Product]:
        """
        Fetch products by ID in one query

        Returns:
            Mapping of product ID to Product; unknown IDs are simply absent
        """
        ids = list(set(product_ids))
        if not ids:
            return {}
        rows = self.session.execute(
            select(ProductRow)
            .where(ProductRow.id.in_(ids))
            .execution_options(populate_existing=True)
        ).scalars()
        return {row.id: Product.model_validate(row) for row in rows}

    def find_by_slug(self, slug: str) -> Optional[Product]:
        row = self.session.execute(
            select(ProductRow).where(ProductRow.slug == slug)
        ).scalar_one_or_none()
        return Product.model_validate(row) if row else None

    def count_by_category(self, category_id: str) -> int:
        return self.session.execute(
            select(func.count()).select_from(ProductRow).where(ProductRow.category_id == category_id)
        ).scalar_one()

    def add(self, **fields) -> Product:
        row = ProductRow(**fields)
        self.session.add(row)
        self.session.flush()
        return Product.model_validate(row)

    def decrement_stock(self, product_id: str, quantity: int) -> bool:
        """
        Take units out of stock if enough remain

        Returns:
            True when the row was updated; False when stock < quantity
        """
        result = self.session.execute(
            update(ProductRow)
            .where(ProductRow.id == product_id, ProductRow.stock >= quantity)
            .values(stock=ProductRow.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def restock(self, product_id: str, quantity: int) -> bool:
        """Return units to stock. False if the product no longer exists."""
        result = self.session.execute(
            update(ProductRow)
            .where(ProductRow.id == product_id)
            .values(stock=ProductRow.stock + quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def current_stock(self, product_ids: Iterable[str]) -> Dict[str, int]:
        ids = list(set(product_ids))
        if not ids:
            return {}
        rows = self.session.execute(
            select(ProductRow.id, ProductRow.stock).where(ProductRow.id.in_(ids))
        ).all()
        return {row.id: row.stock for row in rows}
