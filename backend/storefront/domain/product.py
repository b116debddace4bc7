"""
Catalog Domain Models

Product and category as seen by checkout, the cart and catalog admin.
Prices are integers in minor currency units.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from storefront.domain.validation import clean_required_text, clean_text

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


class Category(BaseModel):
    id: str
    name: str
    slug: str

    model_config = ConfigDict(from_attributes=True)


class Product(BaseModel):
    """
    Product domain model

    Fields:
        id: Product ID
        name: Display name
        slug: Unique URL slug
        price: Unit price in minor currency units
        stock: Sellable units in the stock ledger (never negative)
        category_id: Owning category
        is_published: Only published products can be bought
    """

    id: str = Field(..., description="Product ID")
    name: str = Field(..., description="Product name")
    slug: str = Field(..., description="Unique slug")
    description: Optional[str] = Field(None, description="Product description")
    price: int = Field(..., description="Unit price (minor units)", ge=0)
    stock: int = Field(..., description="Units in stock", ge=0)
    category_id: str = Field(..., description="Category ID")
    is_published: bool = Field(True, description="Visible and purchasable")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def in_stock(self) -> bool:
        return self.stock > 0

    def snapshot(self) -> dict:
        """Price/stock snapshot handed to the client-side cart"""
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "price": self.price,
            "stock": self.stock,
            "in_stock": self.in_stock,
        }


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    slug: str = Field(..., min_length=1, max_length=255, pattern=SLUG_PATTERN)

    @field_validator("name")
    @classmethod
    def _clean_name(cls, value: str) -> str:
        return clean_required_text(value)


class ProductCreate(BaseModel):
    """Schema for creating a new product"""
    name: str = Field(..., min_length=2, max_length=255)
    slug: str = Field(..., min_length=1, max_length=255, pattern=SLUG_PATTERN)
    description: Optional[str] = Field(None, max_length=5000)
    price: int = Field(..., ge=0)
    stock: int = Field(0, ge=0)
    category_id: str
    is_published: bool = True

    @field_validator("name")
    @classmethod
    def _clean_name(cls, value: str) -> str:
        return clean_required_text(value)

    @field_validator("description")
    @classmethod
    def _clean_description(cls, value: Optional[str]) -> Optional[str]:
        return clean_text(value)


class RestockRequest(BaseModel):
    quantity: int = Field(..., gt=0, le=100000)
