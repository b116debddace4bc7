from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.domain.product import Category
from storefront.models import Category as CategoryRow


class CategoryRepository:
    def __init__(self, session: Session):
        self.session = session

    def find_by_id(self, category_id: str) -> Optional[Category]:
        row = self.session.get(CategoryRow, category_id)
        return Category.model_validate(row) if row else None

    def find_by_slug(self, slug: str) -> Optional[Category]:
        row = self.session.execute(
            select(CategoryRow).where(CategoryRow.slug == slug)
        ).scalar_one_or_none()
        return Category.model_validate(row) if row else None

    def add(self, name: str, slug: str) -> Category:
        row = CategoryRow(name=name, slug=slug)
        self.session.add(row)
        self.session.flush()
        return Category.model_validate(row)

    def delete(self, category_id: str) -> bool:
        row = self.session.get(CategoryRow, category_id)
        if row is None:
            return False
        self.session.delete(row)
        self.session.flush()
        return True
