"""
Repository Layer - Data Access

This layer handles all database queries and returns domain models.
Repositories abstract away SQL details from business logic.
"""
from storefront.repositories.product_repository import ProductRepository
from storefront.repositories.order_repository import OrderRepository
from storefront.repositories.tenant_repository import TenantRepository
from storefront.repositories.pricing_repository import PricingRepository
from storefront.repositories.cart_repository import CartRepository
from storefront.repositories.quote_repository import QuoteRepository
from storefront.repositories.wishlist_repository import WishlistRepository
from storefront.repositories.review_repository import ReviewRepository
from storefront.repositories.stats_repository import StatsRepository
from storefront.repositories.user_repository import UserRepository

__all__ = [
    'ProductRepository',
    'OrderRepository',
    'TenantRepository',
    'PricingRepository',
    'CartRepository',
    'QuoteRepository',
    'WishlistRepository',
    'ReviewRepository',
    'StatsRepository',
    'UserRepository'
]
