"""
Modelos de base de datos
"""
from .catalog import Category, Product
from .order import Order, OrderItem, OrderStatusChange
from .booking import Booking
from .contact import ContactMessage

__all__ = [
    "Category",
    "Product",
    "Order",
    "OrderItem",
    "OrderStatusChange",
    "Booking",
    "ContactMessage",
]
