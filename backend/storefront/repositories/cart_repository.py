"""
Cart Repository - Data Access Layer for shopping carts

One cart per user, created on first use.
"""
from typing import List

from storefront.domain.shopper import CartItem
from storefront.core.database import get_db_connection_dict


class CartRepository:
    """
    Repository for cart data access
    """

    @staticmethod
    def _ensure_cart(cursor, user_id: str) -> int:
        """Return the user's cart id, creating the cart if needed"""
        cursor.execute("""
            INSERT INTO carts (user_id)
            VALUES (%s)
            ON CONFLICT (user_id) DO UPDATE SET updated_at = NOW()
            RETURNING id
        """, (user_id,))
        return cursor.fetchone()['id']

    def find_items(self, user_id: str) -> List[CartItem]:
        """Cart lines with product name, image and base price"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cart_id = self._ensure_cart(cursor, user_id)
            conn.commit()

            cursor.execute("""
                SELECT
                    ci.id, ci.cart_id, ci.product_id, ci.quantity,
                    p.name, p.image, p.price as base_price
                FROM cart_items ci
                JOIN products p ON p.id = ci.product_id
                WHERE ci.cart_id = %s
                ORDER BY ci.id
            """, (cart_id,))

            return [CartItem(**dict(row)) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def add_item(self, user_id: str, product_id: int, quantity: int) -> CartItem:
        """Add a product; an existing line accumulates the quantity"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cart_id = self._ensure_cart(cursor, user_id)
            cursor.execute("""
                INSERT INTO cart_items (cart_id, product_id, quantity)
                VALUES (%s, %s, %s)
                ON CONFLICT (cart_id, product_id) DO UPDATE SET
                    quantity = cart_items.quantity + EXCLUDED.quantity,
                    updated_at = NOW()
                RETURNING id, cart_id, product_id, quantity
            """, (cart_id, product_id, quantity))
            row = cursor.fetchone()
            conn.commit()
            return CartItem(**dict(row))

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def set_quantity(self, user_id: str, product_id: int, quantity: int) -> bool:
        """Returns False when the product is not in the cart"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE cart_items ci
                SET quantity = %s, updated_at = NOW()
                FROM carts c
                WHERE c.id = ci.cart_id AND c.user_id = %s AND ci.product_id = %s
            """, (quantity, user_id, product_id))
            updated = cursor.rowcount > 0
            conn.commit()
            return updated

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def remove_item(self, user_id: str, product_id: int) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                DELETE FROM cart_items ci
                USING carts c
                WHERE c.id = ci.cart_id AND c.user_id = %s AND ci.product_id = %s
            """, (user_id, product_id))
            removed = cursor.rowcount > 0
            conn.commit()
            return removed

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()
