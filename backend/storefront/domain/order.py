"""
Order Domain Models

Order entities, the order status graph and the checkout request/result
schemas. These are the single source of truth for order data structure.

Money fields are integers in minor currency units.
"""
import hashlib
import json
from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from storefront.core.honeypot import HoneypotFields
from storefront.domain.validation import clean_phone, clean_required_text, clean_text


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PREPARING = "PREPARING"
    SHIPPED = "SHIPPED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.COMPLETED, OrderStatus.CANCELLED)

    @property
    def holds_stock(self) -> bool:
        """Statuses whose cancellation returns units to stock"""
        return self in (OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.PREPARING)


class PaymentMethod(str, Enum):
    CASH_ON_DELIVERY = "CASH_ON_DELIVERY"
    CARD = "CARD"
    BANK_TRANSFER = "BANK_TRANSFER"
    QUOTE_ONLY = "QUOTE_ONLY"

    @classmethod
    def parse(cls, value) -> "PaymentMethod":
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().upper().replace("-", "_").replace(" ", "_")
        if normalized == "COD":
            return cls.CASH_ON_DELIVERY
        return cls(normalized)


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


# Forward edges of the lifecycle; CANCELLED is reachable from any non-terminal status
ORDER_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    """True if `new` is reachable from `current` in one step"""
    return new in ORDER_TRANSITIONS[current]


class OrderItem(BaseModel):
    """
    Order Item domain model - a line item with prices frozen at checkout

    Fields:
        id: Internal order item ID
        order_id: Parent order ID
        product_id: Reference to product catalog
        product_name: Product name at order time
        selected_material: Chosen material option, if any
        selected_color: Chosen color option, if any
        quantity: Number of units ordered
        unit_price: Server-side price per unit at order time
        subtotal: unit_price * quantity
    """

    id: int = Field(..., description="Order item ID")
    order_id: str = Field(..., description="Parent order ID")
    product_id: str = Field(..., description="Product catalog ID")
    product_name: str = Field(..., description="Product name at order time")
    selected_material: Optional[str] = Field(None, description="Selected material")
    selected_color: Optional[str] = Field(None, description="Selected color")
    quantity: int = Field(..., description="Quantity ordered", ge=1)
    unit_price: int = Field(..., description="Price per unit (minor units)", ge=0)
    subtotal: int = Field(..., description="Line subtotal (minor units)", ge=0)

    model_config = ConfigDict(from_attributes=True)


class OrderStatusChange(BaseModel):
    """Audit row for a status change"""

    id: int
    order_id: str
    old_status: OrderStatus
    new_status: OrderStatus
    changed_by: str
    changed_at: Optional[datetime] = None
    note: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class Order(BaseModel):
    """
    Order domain model - represents a customer order

    Fields:
        id: Order ID
        customer_*: Contact data captured at checkout
        address_*, city, postal_code, country: Shipping address
        total_amount: Sum of item subtotals (minor units)
        currency: ISO currency code
        status: Lifecycle status
        payment_method: How the customer pays
        payment_status: pending until payment is recorded
        payment_session_id: Gateway session for card payments
        stock_reserved: True while the order holds decremented units
        idempotency_key: Client key used to deduplicate retries
        notes: Customer notes
        internal_notes: Staff-only notes
        items: Order items
    """

    id: str = Field(..., description="Order ID")

    # Customer
    customer_name: str = Field(..., description="Customer name")
    customer_email: str = Field(..., description="Customer email")
    customer_phone: Optional[str] = Field(None, description="Customer phone")

    # Shipping
    address_line1: str = Field(..., description="Address line 1")
    address_line2: Optional[str] = Field(None, description="Address line 2")
    city: str = Field(..., description="City")
    postal_code: Optional[str] = Field(None, description="Postal code")
    country: str = Field(..., description="Country")

    # Money
    total_amount: int = Field(..., description="Order total (minor units)", ge=0)
    currency: str = Field(..., description="Currency code")

    # Status tracking
    status: OrderStatus = Field(..., description="Order status")
    payment_method: PaymentMethod = Field(..., description="Payment method")
    payment_status: PaymentStatus = Field(PaymentStatus.PENDING, description="Payment status")
    payment_session_id: Optional[str] = Field(None, description="Gateway session ID")
    paid_at: Optional[datetime] = Field(None, description="When payment was recorded")
    stock_reserved: bool = Field(True, description="Order holds decremented stock")

    idempotency_key: Optional[str] = Field(None, description="Client idempotency key")

    notes: Optional[str] = Field(None, description="Customer notes")
    internal_notes: Optional[str] = Field(None, description="Staff notes")

    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    items: List[OrderItem] = Field(default_factory=list, description="Order items")

    model_config = ConfigDict(from_attributes=True)

    @property
    def item_count(self) -> int:
        """Number of lines in the order"""
        return len(self.items)

    @property
    def total_quantity(self) -> int:
        """Total quantity of all items"""
        return sum(item.quantity for item in self.items)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def to_dict(self) -> dict:
        """
        Convert to JSON-safe dictionary with computed fields
        """
        data = self.model_dump(mode="json")
        data["item_count"] = self.item_count
        data["total_quantity"] = self.total_quantity
        data["is_paid"] = self.is_paid
        return data

    def to_public_dict(self) -> dict:
        """Customer-facing view: no staff notes or idempotency data"""
        data = self.to_dict()
        for field in ("internal_notes", "idempotency_key", "payment_session_id", "stock_reserved"):
            data.pop(field, None)
        return data


class CheckoutItem(BaseModel):
    """
    One requested line. Any price the client sends is ignored; checkout
    always charges the server-side price.
    """

    product_id: str = Field(..., min_length=1, max_length=36)
    quantity: int = Field(..., ge=1, le=100)
    selected_material: Optional[str] = Field(None, max_length=100)
    selected_color: Optional[str] = Field(None, max_length=100)

    @field_validator("product_id")
    @classmethod
    def _clean_product_id(cls, value: str) -> str:
        return clean_required_text(value)

    @field_validator("selected_material", "selected_color")
    @classmethod
    def _clean_options(cls, value: Optional[str]) -> Optional[str]:
        return clean_text(value)


class CheckoutRequest(HoneypotFields):
    """
    Checkout submission from the storefront
    """

    customer_name: str = Field(..., min_length=2, max_length=100)
    customer_email: EmailStr
    customer_phone: Optional[str] = Field(None, min_length=6, max_length=50)

    address_line1: str = Field(..., min_length=3, max_length=255)
    address_line2: Optional[str] = Field(None, max_length=255)
    city: str = Field(..., min_length=2, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    country: str = Field(..., min_length=2, max_length=100)

    notes: Optional[str] = Field(None, max_length=500)
    payment_method: PaymentMethod
    items: List[CheckoutItem] = Field(..., min_length=1, max_length=50)

    idempotency_key: Optional[str] = Field(None, min_length=8, max_length=255)

    @field_validator("customer_name", "address_line1", "city", "country")
    @classmethod
    def _clean_required(cls, value: str) -> str:
        return clean_required_text(value)

    @field_validator("address_line2", "postal_code", "notes")
    @classmethod
    def _clean_optional(cls, value: Optional[str]) -> Optional[str]:
        return clean_text(value)

    @field_validator("customer_phone")
    @classmethod
    def _clean_phone(cls, value: Optional[str]) -> Optional[str]:
        return clean_phone(value)

    @field_validator("payment_method", mode="before")
    @classmethod
    def _parse_payment_method(cls, value):
        try:
            return PaymentMethod.parse(value)
        except ValueError:
            raise ValueError(
                f"must be one of: {', '.join(m.value for m in PaymentMethod)}"
            )

    @field_validator("idempotency_key")
    @classmethod
    def _clean_idempotency_key(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if value else None

    def fingerprint(self) -> str:
        """
        Stable hash of the business content of the request

        Two submissions with the same idempotency key must also share this
        fingerprint, otherwise the retry is treated as a key reuse.
        """
        content = {
            "customer_name": self.customer_name,
            "customer_email": str(self.customer_email).lower(),
            "customer_phone": self.customer_phone,
            "address_line1": self.address_line1,
            "address_line2": self.address_line2,
            "city": self.city,
            "postal_code": self.postal_code,
            "country": self.country,
            "notes": self.notes,
            "payment_method": self.payment_method.value,
            "items": [item.model_dump() for item in self.items],
        }
        encoded = json.dumps(content, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


class CheckoutResult(BaseModel):
    """Outcome of a checkout; replayed is True for an idempotent retry"""

    order: Order
    replayed: bool = False


class StatusUpdateRequest(BaseModel):
    status: OrderStatus
    note: Optional[str] = Field(None, max_length=1000)

    @field_validator("status", mode="before")
    @classmethod
    def _upper_status(cls, value):
        return value.strip().upper() if isinstance(value, str) else value


class NotesUpdateRequest(BaseModel):
    internal_notes: Optional[str] = Field(None, max_length=5000)


class ManualPaymentRequest(BaseModel):
    note: Optional[str] = Field(None, max_length=1000)
