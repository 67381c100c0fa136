"""
Pricing Repository - Data Access Layer for distributor pricing rules

Custom prices (with quantity tiers), category discounts and the
distributor-wide default discount.
"""
import logging
from typing import Dict, Iterable, List, Optional, Sequence
from decimal import Decimal

from psycopg2.extras import Json
from pydantic import ValidationError

from storefront.domain.pricing import DistributorPrice, CategoryDiscount, DiscountTier
from storefront.core.database import get_db_connection_dict

logger = logging.getLogger(__name__)

DISTRIBUTOR_PRICE_SELECT = """
    SELECT
        dp.id, dp.product_id, dp.distributor_id,
        dp.custom_price, dp.discount_tiers,
        dp.created_at, dp.updated_at,
        p.name as product_name, p.sku as product_sku, p.price as base_price
    FROM distributor_prices dp
    JOIN products p ON p.id = dp.product_id
"""


class PricingRepository:
    """
    Repository for tenant pricing rules
    """

    @staticmethod
    def _map_row_to_distributor_price(row: dict) -> DistributorPrice:
        data = dict(row)
        tiers = data.get('discount_tiers')
        try:
            data['discount_tiers'] = [DiscountTier.model_validate(t) for t in tiers] if tiers else None
        except ValidationError as e:
            # Unreadable tiers price at the flat custom price
            logger.warning(
                f"Ignoring invalid discount tiers for product {data.get('product_id')}, "
                f"distributor {data.get('distributor_id')}: {e.error_count()} error(s)"
            )
            data['discount_tiers'] = None
        return DistributorPrice(**data)

    # ------------------------------------------------------------------
    # Distributor prices
    # ------------------------------------------------------------------

    def find_distributor_price(self, product_id: int, distributor_id: int) -> Optional[DistributorPrice]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(DISTRIBUTOR_PRICE_SELECT + """
                WHERE dp.product_id = %s AND dp.distributor_id = %s
            """, (product_id, distributor_id))

            row = cursor.fetchone()
            return self._map_row_to_distributor_price(row) if row else None

        finally:
            cursor.close()
            conn.close()

    def find_distributor_prices(self, distributor_id: int) -> List[DistributorPrice]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(DISTRIBUTOR_PRICE_SELECT + """
                WHERE dp.distributor_id = %s
                ORDER BY p.name
            """, (distributor_id,))

            return [self._map_row_to_distributor_price(r) for r in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def find_distributor_prices_for_products(
        self,
        distributor_id: int,
        product_ids: Iterable[int]
    ) -> Dict[int, DistributorPrice]:
        """Custom prices for a page of products, keyed by product id"""
        product_ids = list(product_ids)
        if not product_ids:
            return {}

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(DISTRIBUTOR_PRICE_SELECT + """
                WHERE dp.distributor_id = %s AND dp.product_id = ANY(%s)
            """, (distributor_id, product_ids))

            prices = [self._map_row_to_distributor_price(r) for r in cursor.fetchall()]
            return {p.product_id: p for p in prices}

        finally:
            cursor.close()
            conn.close()

    def upsert_distributor_price(
        self,
        product_id: int,
        distributor_id: int,
        custom_price: Decimal,
        discount_tiers: Optional[Sequence[DiscountTier]] = None
    ) -> DistributorPrice:
        tiers_json = Json([
            {'min_qty': t.min_qty, 'max_qty': t.max_qty, 'price': str(t.price)}
            for t in discount_tiers
        ]) if discount_tiers else None

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO distributor_prices (product_id, distributor_id, custom_price, discount_tiers)
                VALUES (%s, %s, %s, %s)
                ON CONFLICT (product_id, distributor_id) DO UPDATE SET
                    custom_price = EXCLUDED.custom_price,
                    discount_tiers = EXCLUDED.discount_tiers,
                    updated_at = NOW()
                RETURNING id, product_id, distributor_id, custom_price, discount_tiers,
                          created_at, updated_at
            """, (product_id, distributor_id, custom_price, tiers_json))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_distributor_price(row)

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def delete_distributor_price(self, product_id: int, distributor_id: int) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                DELETE FROM distributor_prices
                WHERE product_id = %s AND distributor_id = %s
            """, (product_id, distributor_id))
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    # ------------------------------------------------------------------
    # Category discounts
    # ------------------------------------------------------------------

    def find_category_discount(self, distributor_id: int, category: str) -> Optional[CategoryDiscount]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT id, distributor_id, category, discount_percent, created_at, updated_at
                FROM category_discounts
                WHERE distributor_id = %s AND LOWER(category) = LOWER(%s)
            """, (distributor_id, category))

            row = cursor.fetchone()
            return CategoryDiscount(**dict(row)) if row else None

        finally:
            cursor.close()
            conn.close()

    def find_category_discounts(self, distributor_id: int) -> List[CategoryDiscount]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT id, distributor_id, category, discount_percent, created_at, updated_at
                FROM category_discounts
                WHERE distributor_id = %s
                ORDER BY category ASC
            """, (distributor_id,))

            return [CategoryDiscount(**dict(r)) for r in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def upsert_category_discount(self, distributor_id: int, category: str, percent: Decimal) -> CategoryDiscount:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO category_discounts (distributor_id, category, discount_percent)
                VALUES (%s, %s, %s)
                ON CONFLICT (distributor_id, category) DO UPDATE SET
                    discount_percent = EXCLUDED.discount_percent,
                    updated_at = NOW()
                RETURNING id, distributor_id, category, discount_percent, created_at, updated_at
            """, (distributor_id, category, percent))
            row = cursor.fetchone()
            conn.commit()
            return CategoryDiscount(**dict(row))

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def delete_category_discount(self, distributor_id: int, category: str) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                DELETE FROM category_discounts
                WHERE distributor_id = %s AND LOWER(category) = LOWER(%s)
            """, (distributor_id, category))
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    # ------------------------------------------------------------------
    # Default discount
    # ------------------------------------------------------------------

    def find_default_discount(self, distributor_id: int) -> Optional[Decimal]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT default_discount_percent
                FROM distributors
                WHERE id = %s
            """, (distributor_id,))

            row = cursor.fetchone()
            return row['default_discount_percent'] if row else None

        finally:
            cursor.close()
            conn.close()
