"""
Domain Layer - Business Entities

Pydantic models and value objects shared by services, repositories and
the API. Money is always an integer amount of minor currency units.
"""
from storefront.domain.booking import Booking, BookingRequest, BookingStatus
from storefront.domain.cart import Cart, CartKey, CartLine
from storefront.domain.contact import ContactMessage, ContactRequest
from storefront.domain.notification import NotificationEvent, NotificationType
from storefront.domain.order import (
    CheckoutItem,
    CheckoutRequest,
    CheckoutResult,
    Order,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    can_transition,
)
from storefront.domain.payment import PaymentConfirmation, PaymentStart
from storefront.domain.product import Category, Product

__all__ = [
    'Booking', 'BookingRequest', 'BookingStatus',
    'Cart', 'CartKey', 'CartLine',
    'ContactMessage', 'ContactRequest',
    'NotificationEvent', 'NotificationType',
    'CheckoutItem', 'CheckoutRequest', 'CheckoutResult',
    'Order', 'OrderItem', 'OrderStatus', 'PaymentMethod', 'PaymentStatus', 'can_transition',
    'PaymentConfirmation', 'PaymentStart',
    'Category', 'Product',
]
