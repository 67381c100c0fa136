"""
Quote Request Domain Models

A shopper asks for a price on a quantity of one product; an admin quotes
a unit price and may convert the quote into an order.
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime
from decimal import Decimal
from enum import Enum


class QuoteStatus(str, Enum):
    REQUESTED = "requested"
    QUOTED = "quoted"
    REJECTED = "rejected"
    ORDERED = "ordered"


class QuoteRequest(BaseModel):
    id: int
    product_id: int
    requester_id: str
    quantity: int = Field(1, ge=1)
    message: Optional[str] = None
    price: Optional[Decimal] = Field(None, description="Quoted unit price", ge=0)
    status: QuoteStatus = QuoteStatus.REQUESTED
    order_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # From JOIN (optional)
    product_name: Optional[str] = None
    requester_email: Optional[str] = None

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    @property
    def is_converted(self) -> bool:
        return self.status == QuoteStatus.ORDERED.value and self.order_id is not None

    def to_dict(self) -> dict:
        data = self.model_dump()
        data['price'] = float(self.price) if self.price is not None else None
        if self.created_at:
            data['created_at'] = self.created_at.isoformat()
        if self.updated_at:
            data['updated_at'] = self.updated_at.isoformat()
        return data


class QuoteCreate(BaseModel):
    product_id: int
    quantity: int = Field(1, ge=1)
    message: Optional[str] = None


class QuoteUpdate(BaseModel):
    """Admin edits; 'ordered' is only reachable through conversion"""
    price: Optional[Decimal] = Field(None, ge=0)
    quantity: Optional[int] = Field(None, ge=1)
    status: Optional[QuoteStatus] = None
