"""
Cart Aggregator

Client-held cart. Lines are keyed by (product, material, color) so the same
product in two finishes stays as two lines. Each line carries the price and
stock seen when it was added; that snapshot only drives UI-side limits,
checkout re-reads prices and stock on the server.
"""
from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Optional

from storefront.core.errors import ValidationError
from storefront.domain.order import CheckoutItem


class CartKey(NamedTuple):
    product_id: str
    selected_material: Optional[str] = None
    selected_color: Optional[str] = None


@dataclass
class CartLine:
    product_id: str
    name: str
    unit_price: int
    quantity: int
    stock: int
    selected_material: Optional[str] = None
    selected_color: Optional[str] = None

    @property
    def key(self) -> CartKey:
        return CartKey(self.product_id, self.selected_material, self.selected_color)

    @property
    def subtotal(self) -> int:
        return self.unit_price * self.quantity

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "unit_price": self.unit_price,
            "quantity": self.quantity,
            "stock": self.stock,
            "selected_material": self.selected_material,
            "selected_color": self.selected_color,
            "subtotal": self.subtotal,
        }


@dataclass
class Cart:
    lines: Dict[CartKey, CartLine] = field(default_factory=dict)

    def add(
        self,
        product_id: str,
        name: str,
        unit_price: int,
        stock: int,
        quantity: int = 1,
        selected_material: Optional[str] = None,
        selected_color: Optional[str] = None,
    ) -> CartLine:
        """
        Add units of a product/option combination.

        Adding an existing combination merges into its line and refreshes
        the price/stock snapshot. Out-of-stock products and merged quantities
        above the snapshot are rejected and the cart stays unchanged.
        """
        if quantity <= 0:
            raise ValidationError("Quantity must be positive", {"quantity": quantity})

        if stock <= 0:
            raise ValidationError(f"{name} is out of stock", {"product_id": product_id, "available": 0})

        key = CartKey(product_id, selected_material, selected_color)
        line = self.lines.get(key)
        requested = quantity + (line.quantity if line else 0)
        if requested > stock:
            raise ValidationError(
                f"Only {stock} units of {name} available",
                {"product_id": product_id, "requested": requested, "available": stock},
            )

        if line is None:
            line = CartLine(
                product_id=product_id,
                name=name,
                unit_price=unit_price,
                quantity=quantity,
                stock=stock,
                selected_material=selected_material,
                selected_color=selected_color,
            )
            self.lines[key] = line
        else:
            line.quantity += quantity
            line.unit_price = unit_price
            line.stock = stock
            line.name = name
        return line

    def update_quantity(self, key: CartKey, quantity: int) -> Optional[CartLine]:
        """
        Set a line's quantity. Zero removes the line; a value above the
        stock snapshot is rejected and the line stays unchanged.
        """
        if quantity < 0:
            raise ValidationError("Quantity cannot be negative", {"quantity": quantity})

        line = self.lines.get(key)
        if line is None:
            return None

        if quantity == 0:
            self.remove(key)
            return None

        if quantity > line.stock:
            raise ValidationError(
                f"Only {line.stock} units of {line.name} available",
                {"product_id": line.product_id, "requested": quantity, "available": line.stock},
            )

        line.quantity = quantity
        return line

    def remove(self, key: CartKey) -> None:
        self.lines.pop(key, None)

    def clear(self) -> None:
        self.lines.clear()

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines.values())

    @property
    def subtotal(self) -> int:
        """Display-only total from the snapshot prices"""
        return sum(line.subtotal for line in self.lines.values())

    def to_checkout_items(self) -> List[CheckoutItem]:
        return [
            CheckoutItem(
                product_id=line.product_id,
                quantity=line.quantity,
                selected_material=line.selected_material,
                selected_color=line.selected_color,
            )
            for line in self.lines.values()
        ]

    def to_dict(self) -> dict:
        return {
            "items": [line.to_dict() for line in self.lines.values()],
            "item_count": self.item_count,
            "subtotal": self.subtotal,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Cart":
        """Rebuild a persisted cart; malformed lines are dropped"""
        cart = cls()
        for raw in data.get("items") or []:
            try:
                line = CartLine(
                    product_id=str(raw["product_id"]),
                    name=str(raw.get("name", "")),
                    unit_price=int(raw["unit_price"]),
                    quantity=int(raw["quantity"]),
                    stock=int(raw.get("stock", 0)),
                    selected_material=raw.get("selected_material"),
                    selected_color=raw.get("selected_color"),
                )
            except (KeyError, TypeError, ValueError):
                continue
            if line.quantity <= 0:
                continue
            existing = cart.lines.get(line.key)
            if existing is not None:
                existing.quantity += line.quantity
            else:
                cart.lines[line.key] = line
        return cart
