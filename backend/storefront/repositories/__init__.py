"""
Repository Layer - Data Access

Repositories take the caller's SQLAlchemy session; the service that opened
the unit of work decides when to commit.
"""
from storefront.repositories.booking_repository import BookingRepository
from storefront.repositories.category_repository import CategoryRepository
from storefront.repositories.contact_repository import ContactRepository
from storefront.repositories.order_repository import OrderRepository
from storefront.repositories.product_repository import ProductRepository

__all__ = ['BookingRepository', 'CategoryRepository', 'ContactRepository', 'OrderRepository', 'ProductRepository']
