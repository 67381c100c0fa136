"""
Pricing Service
Effective unit price of a product for a tenant and quantity

Precedence (first match wins):
1. Distributor custom price: the tier whose bracket holds the quantity,
   else the flat custom price
2. Category discount: percent off the base price
3. Distributor default discount: percent off the base price
4. Base price

Percent discounts always apply to the base price and never compound.
Tenant lookups fail open: a database error prices at base.
"""
import logging
from typing import Iterable, List, Optional, Sequence, Tuple

import psycopg2

from storefront.core.exceptions import ProductNotFoundError
from storefront.domain.product import Product
from storefront.domain.pricing import (
    DistributorPrice,
    PriceResolution,
    PricingRule,
    apply_percent_discount,
    find_applicable_tier,
)
from storefront.repositories.product_repository import ProductRepository
from storefront.repositories.pricing_repository import PricingRepository

logger = logging.getLogger(__name__)


class PricingService:
    """
    Distributor-aware price resolution
    """

    def __init__(
        self,
        product_repository: Optional[ProductRepository] = None,
        pricing_repository: Optional[PricingRepository] = None
    ):
        self.product_repository = product_repository or ProductRepository()
        self.pricing_repository = pricing_repository or PricingRepository()

    def resolve_price(self, product_id: int, tenant_id: Optional[int] = None, quantity: int = 1) -> PriceResolution:
        """
        Args:
            product_id: Product to price
            tenant_id: Resolved distributor id, or None for anonymous/base pricing
            quantity: Units being bought (selects the tier)

        Raises:
            ValueError: quantity < 1
            ProductNotFoundError: unknown product
        """
        _check_quantity(quantity)

        product = self.product_repository.find_by_id(product_id)
        if not product:
            raise ProductNotFoundError(product_id)

        return self.price_product(product, tenant_id, quantity)

    def resolve_prices(
        self,
        items: Iterable[Tuple[int, int]],
        tenant_id: Optional[int] = None
    ) -> List[PriceResolution]:
        """
        Bulk variant for carts and checkout

        Args:
            items: (product_id, quantity) pairs

        Returns:
            One PriceResolution per item, in input order
        """
        items = list(items)
        for _, quantity in items:
            _check_quantity(quantity)

        products = self.product_repository.find_by_ids(product_id for product_id, _ in items)

        resolutions = []
        for product_id, quantity in items:
            product = products.get(product_id)
            if not product:
                raise ProductNotFoundError(product_id)
            resolutions.append(self.price_product(product, tenant_id, quantity))
        return resolutions

    def price_product(self, product: Product, tenant_id: Optional[int], quantity: int = 1) -> PriceResolution:
        """Resolve for an already loaded product"""
        base = _base_resolution(product, tenant_id, quantity)

        if tenant_id is None:
            return base

        try:
            resolution = self._apply_tenant_rules(product, tenant_id, quantity, base)
        except psycopg2.Error as e:
            logger.warning(
                f"Pricing lookup failed for product {product.id}, tenant {tenant_id}; using base price: {e}"
            )
            return base

        logger.debug(
            f"Priced product {product.id} for tenant {tenant_id} x{quantity}: "
            f"{resolution.price} ({resolution.rule.value}, base {resolution.base_price})"
        )
        return resolution

    def price_products(
        self,
        products: Sequence[Product],
        tenant_id: Optional[int],
        quantity: int = 1
    ) -> List[PriceResolution]:
        """
        Price a page of already loaded products

        The tenant's custom prices, category discounts and default discount
        are loaded once for the whole page.
        """
        _check_quantity(quantity)
        products = list(products)
        if tenant_id is None or not products:
            return [self.price_product(product, tenant_id, quantity) for product in products]

        try:
            custom_prices = self.pricing_repository.find_distributor_prices_for_products(
                tenant_id, [product.id for product in products]
            )
            category_discounts = {
                c.category.lower(): c for c in self.pricing_repository.find_category_discounts(tenant_id)
            }
            default_percent = self.pricing_repository.find_default_discount(tenant_id)
        except psycopg2.Error as e:
            logger.warning(f"Pricing lookup failed for tenant {tenant_id}; using base prices: {e}")
            return [_base_resolution(product, tenant_id, quantity) for product in products]

        resolutions = []
        for product in products:
            base = _base_resolution(product, tenant_id, quantity)
            custom = custom_prices.get(product.id)
            if custom:
                resolutions.append(_with_custom_price(base, custom, quantity))
                continue

            category_discount = category_discounts.get(product.category.lower()) if product.category else None
            if category_discount:
                resolutions.append(
                    _with_percent_off(base, PricingRule.CATEGORY, category_discount.discount_percent)
                )
            elif default_percent:
                resolutions.append(_with_percent_off(base, PricingRule.DEFAULT, default_percent))
            else:
                resolutions.append(base)

        logger.debug(f"Priced {len(resolutions)} products for tenant {tenant_id} x{quantity}")
        return resolutions

    def _apply_tenant_rules(
        self,
        product: Product,
        tenant_id: int,
        quantity: int,
        base: PriceResolution
    ) -> PriceResolution:
        custom = self.pricing_repository.find_distributor_price(product.id, tenant_id)
        if custom:
            return _with_custom_price(base, custom, quantity)

        if product.category:
            category_discount = self.pricing_repository.find_category_discount(tenant_id, product.category)
            if category_discount:
                return _with_percent_off(base, PricingRule.CATEGORY, category_discount.discount_percent)

        default_percent = self.pricing_repository.find_default_discount(tenant_id)
        if default_percent:
            return _with_percent_off(base, PricingRule.DEFAULT, default_percent)

        return base


def _base_resolution(product: Product, tenant_id: Optional[int], quantity: int) -> PriceResolution:
    return PriceResolution(
        product_id=product.id,
        tenant_id=tenant_id,
        quantity=quantity,
        base_price=product.price,
        price=product.price,
        rule=PricingRule.BASE
    )


def _with_custom_price(base: PriceResolution, custom: DistributorPrice, quantity: int) -> PriceResolution:
    tier = find_applicable_tier(custom.discount_tiers, quantity)
    return base.model_copy(update={
        'price': tier.price if tier else custom.custom_price,
        'rule': PricingRule.TIER if tier else PricingRule.CUSTOM,
        'tier': tier,
        'discount_tiers': custom.discount_tiers
    })


def _with_percent_off(base: PriceResolution, rule: PricingRule, percent) -> PriceResolution:
    return base.model_copy(update={
        'price': apply_percent_discount(base.base_price, percent),
        'rule': rule,
        'discount_percent': percent
    })


def _check_quantity(quantity: int) -> None:
    if quantity < 1:
        raise ValueError(f"quantity must be >= 1, got {quantity}")
