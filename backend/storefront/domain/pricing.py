"""
Pricing Domain Models

Distributor-aware pricing: per-product custom prices with optional
quantity tiers, per-category discounts and a distributor-wide default
discount. The rules that combine them live in
storefront.services.pricing_service.
"""
from pydantic import BaseModel, Field, ConfigDict, AliasChoices, field_validator, model_validator
from typing import Optional, List, Sequence
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum

CENTS = Decimal('0.01')
HUNDRED = Decimal('100')


class PricingRule(str, Enum):
    """Which rule produced an effective price"""
    BASE = "base"
    TIER = "tier"
    CUSTOM = "custom"
    CATEGORY = "category"
    DEFAULT = "default"


class DiscountTier(BaseModel):
    """
    Quantity bracket with its own unit price

    max_qty=None means "min_qty and above".
    Accepts camelCase keys (minQty/maxQty) as stored by older records.
    """
    min_qty: int = Field(..., ge=1, validation_alias=AliasChoices('min_qty', 'minQty'))
    max_qty: Optional[int] = Field(None, ge=1, validation_alias=AliasChoices('max_qty', 'maxQty'))
    price: Decimal = Field(..., ge=0)

    @model_validator(mode='after')
    def _check_bracket(self):
        if self.max_qty is not None and self.max_qty < self.min_qty:
            raise ValueError(f"max_qty ({self.max_qty}) must be >= min_qty ({self.min_qty})")
        return self

    def contains(self, quantity: int) -> bool:
        return quantity >= self.min_qty and (self.max_qty is None or quantity <= self.max_qty)

    def to_dict(self) -> dict:
        return {
            'min_qty': self.min_qty,
            'max_qty': self.max_qty,
            'price': float(self.price)
        }


def validate_tiers(tiers: Sequence[DiscountTier]) -> List[DiscountTier]:
    """
    Check tiers are ordered by min_qty ascending and do not overlap.

    Only the last tier may be unbounded.

    Raises:
        ValueError describing the first offending tier
    """
    tiers = list(tiers)
    for i in range(1, len(tiers)):
        prev, cur = tiers[i - 1], tiers[i]
        if prev.max_qty is None:
            raise ValueError(f"Tier {i} follows an unbounded tier (only the last tier may omit max_qty)")
        if cur.min_qty <= prev.max_qty:
            raise ValueError(
                f"Tier {i + 1} (min_qty={cur.min_qty}) overlaps or precedes tier {i} (max_qty={prev.max_qty})"
            )
    return tiers


def find_applicable_tier(tiers: Optional[Sequence[DiscountTier]], quantity: int) -> Optional[DiscountTier]:
    """First tier whose [min_qty, max_qty] bracket contains quantity"""
    for tier in tiers or []:
        if tier.contains(quantity):
            return tier
    return None


def apply_percent_discount(base_price: Decimal, percent) -> Decimal:
    """
    Percent off the base price, rounded half-up to cents.

    Percent is clamped to [0, 100] so the result never exceeds the base.
    """
    percent = min(max(Decimal(str(percent)), Decimal('0')), HUNDRED)
    discounted = Decimal(base_price) * (HUNDRED - percent) / HUNDRED
    return discounted.quantize(CENTS, rounding=ROUND_HALF_UP)


class DistributorPrice(BaseModel):
    """Custom price record for one (product, distributor) pair"""
    id: Optional[int] = None
    product_id: int
    distributor_id: int
    custom_price: Decimal = Field(..., ge=0)
    discount_tiers: Optional[List[DiscountTier]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # From JOIN (optional)
    product_name: Optional[str] = None
    product_sku: Optional[str] = None
    base_price: Optional[Decimal] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'product_id': self.product_id,
            'distributor_id': self.distributor_id,
            'custom_price': float(self.custom_price),
            'discount_tiers': [t.to_dict() for t in self.discount_tiers] if self.discount_tiers else None,
            'product_name': self.product_name,
            'product_sku': self.product_sku,
            'base_price': float(self.base_price) if self.base_price is not None else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }


class DistributorPriceUpdate(BaseModel):
    """
    Admin payload for a custom price

    Prices above the product's base price are rejected unless
    allow_markup is set.
    """
    custom_price: Decimal = Field(..., ge=0)
    discount_tiers: Optional[List[DiscountTier]] = None
    allow_markup: bool = False

    @field_validator('discount_tiers')
    @classmethod
    def _validate_tiers(cls, v):
        if v:
            return validate_tiers(v)
        return None

    def highest_price(self) -> Decimal:
        prices = [self.custom_price] + [t.price for t in self.discount_tiers or []]
        return max(prices)


class CategoryDiscount(BaseModel):
    """Percent off base price for every product of a category"""
    id: Optional[int] = None
    distributor_id: int
    category: str
    discount_percent: Decimal = Field(..., ge=0, le=100)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'distributor_id': self.distributor_id,
            'category': self.category,
            'discount_percent': float(self.discount_percent)
        }


class CategoryDiscountUpsert(BaseModel):
    category: str = Field(..., min_length=1)
    discount_percent: Decimal = Field(..., ge=0, le=100)


class DefaultDiscountUpdate(BaseModel):
    default_discount_percent: Optional[Decimal] = Field(None, ge=0, le=100)


class PriceResolution(BaseModel):
    """
    Outcome of resolving a unit price for (product, tenant, quantity)
    """
    product_id: int
    tenant_id: Optional[int] = None
    quantity: int
    base_price: Decimal
    price: Decimal
    rule: PricingRule = PricingRule.BASE
    discount_percent: Optional[Decimal] = None
    tier: Optional[DiscountTier] = None
    discount_tiers: Optional[List[DiscountTier]] = None

    @property
    def line_total(self) -> Decimal:
        return (self.price * self.quantity).quantize(CENTS, rounding=ROUND_HALF_UP)

    def to_dict(self) -> dict:
        return {
            'product_id': self.product_id,
            'tenant_id': self.tenant_id,
            'quantity': self.quantity,
            'base_price': float(self.base_price),
            'price': float(self.price),
            'pricing_rule': self.rule.value,
            'discount_percent': float(self.discount_percent) if self.discount_percent is not None else None,
            'tier': self.tier.to_dict() if self.tier else None,
            'discount_tiers': [t.to_dict() for t in self.discount_tiers] if self.discount_tiers else None,
            'line_total': float(self.line_total)
        }
