"""
Users as known to the backend (accounts are managed by the frontend auth)
"""
from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from storefront.core.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255))
    role = Column(String(20), nullable=False, default="customer", index=True)  # customer | distributor | admin

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
