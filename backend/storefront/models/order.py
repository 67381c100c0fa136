"""
Order and quote tables
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, DECIMAL, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from storefront.core.database import Base


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), ForeignKey("users.id"), index=True)
    distributor_id = Column(Integer, ForeignKey("distributors.id"), index=True)

    total_price = Column(DECIMAL(12, 2), nullable=False)
    status = Column(String(30), nullable=False, default="pending", index=True)
    payment_reference = Column(String(255))

    # Shipping
    recipient_name = Column(String(255))
    recipient_phone = Column(String(50))
    shipping_postal_code = Column(String(20))
    shipping_address1 = Column(String(255))
    shipping_address2 = Column(String(255))

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")
    status_history = relationship("OrderStatusHistory", back_populates="order", cascade="all, delete-orphan")


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), index=True, nullable=False)

    quantity = Column(Integer, nullable=False)
    # Unit price charged and the catalog price at order time
    price = Column(DECIMAL(12, 2), nullable=False)
    base_price = Column(DECIMAL(12, 2))

    order = relationship("Order", back_populates="items")


class OrderStatusHistory(Base):
    """
    Audit trail of order status changes
    """
    __tablename__ = "order_status_history"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False)

    old_status = Column(String(30))
    new_status = Column(String(30), nullable=False)
    changed_by = Column(String(64), nullable=False)
    note = Column(Text)
    changed_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    order = relationship("Order", back_populates="status_history")


class QuoteRequest(Base):
    __tablename__ = "quote_requests"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), index=True, nullable=False)
    requester_id = Column(String(64), ForeignKey("users.id"), index=True, nullable=False)

    quantity = Column(Integer, nullable=False, default=1)
    message = Column(Text)
    # Quoted unit price
    price = Column(DECIMAL(12, 2))
    status = Column(String(20), nullable=False, default="requested", index=True)  # requested | quoted | rejected | ordered
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="SET NULL"))

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
