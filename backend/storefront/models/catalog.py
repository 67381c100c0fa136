"""
Catalog and distributor pricing tables
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, DECIMAL, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from storefront.core.database import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    sku = Column(String(100), unique=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    category = Column(String(100), index=True)

    # Base unit price
    price = Column(DECIMAL(12, 2), nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    image = Column(String(500))

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class DistributorPrice(Base):
    """
    Custom price per (product, distributor)

    discount_tiers: [{"min_qty": 1, "max_qty": 9, "price": 90.0}, ...]
    ordered by min_qty, non-overlapping, last tier may have max_qty null
    """
    __tablename__ = "distributor_prices"
    __table_args__ = (UniqueConstraint("product_id", "distributor_id", name="uq_distributor_price"),)

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    distributor_id = Column(Integer, ForeignKey("distributors.id", ondelete="CASCADE"), nullable=False, index=True)
    custom_price = Column(DECIMAL(12, 2), nullable=False)
    discount_tiers = Column(JSONB)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class CategoryDiscount(Base):
    __tablename__ = "category_discounts"
    __table_args__ = (UniqueConstraint("distributor_id", "category", name="uq_category_discount"),)

    id = Column(Integer, primary_key=True, index=True)
    distributor_id = Column(Integer, ForeignKey("distributors.id", ondelete="CASCADE"), nullable=False, index=True)
    category = Column(String(100), nullable=False)
    discount_percent = Column(DECIMAL(5, 2), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
