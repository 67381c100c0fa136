"""
Database models (schema declaration)

Repositories query these tables with psycopg2; the models are the single
place the schema is declared and are used by scripts/create_tables.py.
"""
from .user import User
from .tenant import Distributor, DistributorDomain
from .catalog import Product, DistributorPrice, CategoryDiscount
from .order import Order, OrderItem, OrderStatusHistory, QuoteRequest
from .shopper import Cart, CartItem, WishlistItem, Review

__all__ = [
    "User",
    "Distributor",
    "DistributorDomain",
    "Product",
    "DistributorPrice",
    "CategoryDiscount",
    "Order",
    "OrderItem",
    "OrderStatusHistory",
    "QuoteRequest",
    "Cart",
    "CartItem",
    "WishlistItem",
    "Review",
]
