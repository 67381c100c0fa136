"""
Order Domain Models

Represents orders, their line items and status history.
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from enum import Enum


class OrderStatus(str, Enum):
    """Order lifecycle states"""
    PENDING_PAYMENT = "pending_payment"
    PENDING = "pending"
    PROCESSING = "processing"
    PAID = "paid"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}


def can_transition(current: str, new: str) -> bool:
    """An order may move to any other status until it is delivered or cancelled"""
    return OrderStatus(current) not in TERMINAL_STATUSES and OrderStatus(new) != OrderStatus(current)


class OrderItem(BaseModel):
    """
    Order Item domain model - represents a line item in an order

    Fields:
        price: Unit price charged (tenant pricing applied)
        base_price: Catalog price at order time
    """

    id: Optional[int] = Field(None, description="Order item ID")
    order_id: Optional[int] = Field(None, description="Parent order ID")
    product_id: int = Field(..., description="Product ID")
    quantity: int = Field(..., description="Quantity ordered", ge=1)
    price: Decimal = Field(..., description="Unit price charged", ge=0)
    base_price: Optional[Decimal] = Field(None, description="Catalog price at order time", ge=0)

    # From product catalog (optional, from JOIN)
    product_name: Optional[str] = Field(None, description="Product name")
    product_sku: Optional[str] = Field(None, description="Product SKU")

    model_config = ConfigDict(from_attributes=True)

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    def to_dict(self) -> dict:
        """Convert to dictionary with Decimal to float conversion"""
        data = self.model_dump()
        data['price'] = float(self.price)
        data['base_price'] = float(self.base_price) if self.base_price is not None else None
        data['line_total'] = float(self.line_total)
        return data


class ShippingInfo(BaseModel):
    name: str = ""
    phone: str = ""
    postal_code: str = ""
    address1: str = ""
    address2: str = ""


class Order(BaseModel):
    """
    Order domain model

    Fields:
        id: Internal order ID
        user_id: Buyer (session user id)
        distributor_id: Tenant the order was priced for (optional)
        total_price: Sum of line totals
        status: Lifecycle status (see OrderStatus)
        payment_reference: Opaque payment gateway reference
        shipping: Recipient and address
        items: Line items
    """

    id: int = Field(..., description="Internal order ID")
    user_id: Optional[str] = Field(None, description="Buyer user ID")
    distributor_id: Optional[int] = Field(None, description="Tenant the order was priced for")
    total_price: Decimal = Field(..., description="Order total", ge=0)
    status: OrderStatus = Field(OrderStatus.PENDING, description="Order status")
    payment_reference: Optional[str] = Field(None, description="Payment gateway reference")
    shipping: ShippingInfo = Field(default_factory=ShippingInfo)
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    items: List[OrderItem] = Field(default_factory=list, description="Order items")

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    @property
    def item_count(self) -> int:
        return len(self.items)

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)

    def to_dict(self) -> dict:
        data = self.model_dump()
        data['total_price'] = float(self.total_price)
        data['item_count'] = self.item_count
        data['total_quantity'] = self.total_quantity
        if self.created_at:
            data['created_at'] = self.created_at.isoformat()
        if self.updated_at:
            data['updated_at'] = self.updated_at.isoformat()
        data['items'] = [item.to_dict() for item in self.items]
        return data


class OrderStatusChange(BaseModel):
    """Audit entry for a status transition"""
    id: Optional[int] = None
    order_id: int
    old_status: Optional[str] = None
    new_status: str
    changed_by: str
    note: Optional[str] = None
    changed_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        data = self.model_dump()
        if self.changed_at:
            data['changed_at'] = self.changed_at.isoformat()
        return data


class CheckoutItem(BaseModel):
    product_id: int
    quantity: int = Field(..., ge=1)


class CheckoutRequest(BaseModel):
    """
    Checkout payload

    Unit prices are never taken from the client; they are recomputed with
    the tenant's pricing rules.
    """
    items: List[CheckoutItem] = Field(..., min_length=1)
    shipping: ShippingInfo
    payment_reference: str = Field(..., min_length=1)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    note: Optional[str] = None
