"""
Product Domain Model

Represents a catalog product. The base price is what every shopper pays
unless a tenant's pricing rules say otherwise.
"""
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal


def normalize_category(category: Optional[str]) -> str:
    """'TOOLS' / 'tools' -> 'Tools'; empty -> 'General'"""
    if not category or not category.strip():
        return "General"
    category = category.strip()
    return category[0].upper() + category[1:].lower()


class Product(BaseModel):
    """
    Product domain model - represents a product in the catalog

    Fields:
        id: Internal product ID (primary key)
        sku: Stock Keeping Unit (unique identifier)
        name: Product name
        description: Product description (optional)
        category: Product category (drives category discounts)
        price: Base unit price
        stock: Units available
        image: Image URL
        rating / review_count: Review aggregate (from JOIN, optional)
    """

    id: int = Field(..., description="Internal product ID")
    sku: Optional[str] = Field(None, description="Stock Keeping Unit")
    name: str = Field(..., description="Product name")
    description: Optional[str] = Field(None, description="Product description")
    category: Optional[str] = Field(None, description="Product category")
    price: Decimal = Field(..., description="Base unit price", ge=0)
    stock: int = Field(0, description="Units in stock")
    image: Optional[str] = Field(None, description="Image URL")
    rating: Optional[Decimal] = Field(None, description="Average review rating")
    review_count: int = Field(0, description="Number of reviews")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_out_of_stock(self) -> bool:
        return self.stock <= 0

    def to_dict(self) -> dict:
        """
        Convert to dictionary with computed fields

        Decimals become floats for JSON compatibility.
        """
        data = self.model_dump()
        data['price'] = float(self.price)
        data['rating'] = float(self.rating) if self.rating is not None else None
        data['is_out_of_stock'] = self.is_out_of_stock
        if self.created_at:
            data['created_at'] = self.created_at.isoformat()
        if self.updated_at:
            data['updated_at'] = self.updated_at.isoformat()
        return data


class ProductCreate(BaseModel):
    """Schema for creating a new product"""
    sku: Optional[str] = None
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    category: Optional[str] = Field(None, validate_default=True)
    price: Decimal = Field(..., ge=0)
    stock: int = Field(100, ge=0)
    image: Optional[str] = None

    @field_validator('category')
    @classmethod
    def _normalize_category(cls, v: Optional[str]) -> str:
        return normalize_category(v)


class ProductUpdate(BaseModel):
    """Schema for updating an existing product"""
    sku: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    image: Optional[str] = None

    @field_validator('category')
    @classmethod
    def _normalize_category(cls, v: Optional[str]) -> Optional[str]:
        return normalize_category(v) if v is not None else None
