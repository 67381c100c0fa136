"""
Domain Layer - Business Entities

This layer contains Pydantic models representing business entities.
These models enforce type safety and validation across the application.
"""
from storefront.domain.product import Product
from storefront.domain.tenant import Tenant, Distributor, DistributorDomain, DomainStatus
from storefront.domain.pricing import (
    DiscountTier,
    DistributorPrice,
    CategoryDiscount,
    PriceResolution,
    PricingRule,
)
from storefront.domain.order import Order, OrderItem, OrderStatus, OrderStatusChange
from storefront.domain.quote import QuoteRequest, QuoteStatus
from storefront.domain.shopper import CartItem, WishlistItem, Review
from storefront.domain.user import User

__all__ = [
    'Product',
    'Tenant',
    'Distributor',
    'DistributorDomain',
    'DomainStatus',
    'DiscountTier',
    'DistributorPrice',
    'CategoryDiscount',
    'PriceResolution',
    'PricingRule',
    'Order',
    'OrderItem',
    'OrderStatus',
    'OrderStatusChange',
    'QuoteRequest',
    'QuoteStatus',
    'CartItem',
    'WishlistItem',
    'Review',
    'User',
]
