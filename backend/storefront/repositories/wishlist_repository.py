"""
Wishlist Repository
"""
from typing import List

from storefront.domain.shopper import WishlistItem
from storefront.core.database import get_db_connection_dict


class WishlistRepository:
    """
    Repository for a shopper's wishlist
    """

    def find_items(self, user_id: str) -> List[WishlistItem]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT w.id, w.user_id, w.product_id, w.created_at,
                       p.name, p.price, p.image
                FROM wishlist_items w
                JOIN products p ON p.id = w.product_id
                WHERE w.user_id = %s
                ORDER BY w.created_at DESC
            """, (user_id,))
            return [WishlistItem(**dict(r)) for r in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def add(self, user_id: str, product_id: int) -> bool:
        """
        Idempotent add

        Returns:
            True if the item was added, False if it was already there
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO wishlist_items (user_id, product_id)
                VALUES (%s, %s)
                ON CONFLICT (user_id, product_id) DO NOTHING
            """, (user_id, product_id))
            added = cursor.rowcount > 0
            conn.commit()
            return added

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def remove(self, user_id: str, product_id: int) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                DELETE FROM wishlist_items
                WHERE user_id = %s AND product_id = %s
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
