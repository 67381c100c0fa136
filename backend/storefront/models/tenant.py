"""
Distributor (tenant) tables
"""
from sqlalchemy import Column, Integer, String, DateTime, DECIMAL, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from storefront.core.database import Base


class Distributor(Base):
    __tablename__ = "distributors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email_domain = Column(String(255), nullable=False, unique=True, index=True)

    # Branding
    logo_url = Column(String(500))
    brand_color = Column(String(20))

    # Distributor-wide discount, 0..100
    default_discount_percent = Column(DECIMAL(5, 2))

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    domains = relationship("DistributorDomain", back_populates="distributor", cascade="all, delete-orphan")


class DistributorDomain(Base):
    """
    Custom domains; only status='verified' rows resolve tenants
    """
    __tablename__ = "distributor_domains"
    __table_args__ = (UniqueConstraint("distributor_id", "domain", name="uq_distributor_domain"),)

    id = Column(Integer, primary_key=True, index=True)
    distributor_id = Column(Integer, ForeignKey("distributors.id", ondelete="CASCADE"), nullable=False, index=True)
    domain = Column(String(255), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="pending", index=True)  # pending | verified | failed
    last_checked_at = Column(DateTime(timezone=True))
    details = Column(JSONB)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    distributor = relationship("Distributor", back_populates="domains")
