"""
Shopper Domain Models

Cart, wishlist and review entities owned by a signed-in shopper.
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime
from decimal import Decimal


class CartItem(BaseModel):
    """Cart line as stored; prices are attached at read time"""
    id: Optional[int] = None
    cart_id: Optional[int] = None
    product_id: int
    quantity: int = Field(..., ge=1)

    # From product catalog (JOIN)
    name: Optional[str] = None
    image: Optional[str] = None
    base_price: Optional[Decimal] = None

    model_config = ConfigDict(from_attributes=True)


class CartItemAdd(BaseModel):
    product_id: int
    quantity: int = Field(1, ge=1)


class CartItemQuantity(BaseModel):
    quantity: int = Field(..., ge=1)


class WishlistItem(BaseModel):
    id: Optional[int] = None
    user_id: str
    product_id: int
    created_at: Optional[datetime] = None

    # From product catalog (JOIN)
    name: Optional[str] = None
    price: Optional[Decimal] = None
    image: Optional[str] = None

    def to_dict(self) -> dict:
        data = self.model_dump()
        data['price'] = float(self.price) if self.price is not None else None
        if self.created_at:
            data['created_at'] = self.created_at.isoformat()
        return data


class Review(BaseModel):
    id: int
    product_id: int
    user_id: str
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None
    created_at: Optional[datetime] = None

    # From JOIN
    user_name: Optional[str] = None

    def to_dict(self) -> dict:
        data = self.model_dump()
        if self.created_at:
            data['created_at'] = self.created_at.isoformat()
        return data


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)
