"""
Inventory Service
Catalog administration and the admin side of the stock ledger

Admin restock is the only stock increment outside of order cancellation.
"""
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from storefront.core.database import session_scope
from storefront.core.errors import Conflict, InfrastructureError, NotFound, StorefrontError, ValidationError
from storefront.domain.product import Category, CategoryCreate, Product, ProductCreate
from storefront.repositories.category_repository import CategoryRepository
from storefront.repositories.product_repository import ProductRepository

logger = logging.getLogger(__name__)


class InventoryService:
    """
    Service for catalog and stock administration

    Handles:
    - Category create/delete (delete refused while products reference it)
    - Product creation
    - Admin restock
    - Public stock/price snapshot for the cart
    """

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def get_product(self, product_id: str) -> Product:
        """Published product, as shown to the cart"""
        try:
            with session_scope(self.session_factory) as session:
                product = ProductRepository(session).find_by_id(product_id)
        except SQLAlchemyError as e:
            logger.exception(f"Product lookup {product_id} failed: {e}")
            raise InfrastructureError() from e
        if product is None or not product.is_published:
            raise NotFound(f"Product {product_id} not found", {"product_id": product_id})
        return product

    def restock(self, product_id: str, quantity: int, actor: str) -> Product:
        """
        Add units to a product's stock

        Raises:
            ValidationError: quantity not positive
            NotFound: unknown product
        """
        if quantity <= 0:
            raise ValidationError("Restock quantity must be positive", {"quantity": quantity})
        try:
            with session_scope(self.session_factory) as session:
                products = ProductRepository(session)
                if not products.restock(product_id, quantity):
                    raise NotFound(f"Product {product_id} not found", {"product_id": product_id})
                product = products.find_by_id(product_id)
        except StorefrontError:
            raise
        except SQLAlchemyError as e:
            logger.exception(f"Restock of {product_id} failed: {e}")
            raise InfrastructureError() from e

        logger.info(f"Product {product_id} restocked +{quantity} by {actor}, now {product.stock}")
        return product

    def create_category(self, data: CategoryCreate, actor: str) -> Category:
        try:
            with session_scope(self.session_factory) as session:
                categories = CategoryRepository(session)
                if categories.find_by_slug(data.slug) is not None:
                    raise Conflict(f"Category slug '{data.slug}' already exists", {"slug": data.slug})
                category = categories.add(name=data.name, slug=data.slug)
        except StorefrontError:
            raise
        except IntegrityError as e:
            logger.warning(f"Category slug '{data.slug}' taken concurrently: {e}")
            raise Conflict(f"Category slug '{data.slug}' already exists", {"slug": data.slug}) from e
        except SQLAlchemyError as e:
            logger.exception(f"Category creation failed: {e}")
            raise InfrastructureError() from e

        logger.info(f"Category {category.id} ({category.slug}) created by {actor}")
        return category

    def delete_category(self, category_id: str, actor: str) -> None:
        """
        Raises:
            Conflict: products still belong to the category
            NotFound: unknown category
        """
        try:
            with session_scope(self.session_factory) as session:
                product_count = ProductRepository(session).count_by_category(category_id)
                if product_count:
                    raise Conflict(
                        f"Category has {product_count} product(s); move or delete them first",
                        {"category_id": category_id, "products": product_count},
                    )
                if not CategoryRepository(session).delete(category_id):
                    raise NotFound(f"Category {category_id} not found", {"category_id": category_id})
        except StorefrontError:
            raise
        except SQLAlchemyError as e:
            logger.exception(f"Category deletion {category_id} failed: {e}")
            raise InfrastructureError() from e

        logger.info(f"Category {category_id} deleted by {actor}")

    def create_product(self, data: ProductCreate, actor: str) -> Product:
        try:
            with session_scope(self.session_factory) as session:
                if CategoryRepository(session).find_by_id(data.category_id) is None:
                    raise ValidationError(
                        f"Category {data.category_id} does not exist",
                        {"category_id": data.category_id},
                    )
                products = ProductRepository(session)
                if products.find_by_slug(data.slug) is not None:
                    raise Conflict(f"Product slug '{data.slug}' already exists", {"slug": data.slug})
                product = products.add(**data.model_dump())
        except StorefrontError:
            raise
        except IntegrityError as e:
            logger.warning(f"Product slug '{data.slug}' taken concurrently: {e}")
            raise Conflict(f"Product slug '{data.slug}' already exists", {"slug": data.slug}) from e
        except SQLAlchemyError as e:
            logger.exception(f"Product creation failed: {e}")
            raise InfrastructureError() from e

        logger.info(f"Product {product.id} ({product.slug}) created by {actor} with stock {product.stock}")
        return product
