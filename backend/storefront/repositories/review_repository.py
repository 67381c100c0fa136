"""
Review Repository - one review per user and product
"""
from typing import List, Optional, Tuple
from decimal import Decimal

import psycopg2

from storefront.domain.shopper import Review, ReviewCreate
from storefront.core.database import get_db_connection_dict


class ReviewRepository:
    """
    Repository for product reviews (one per user and product)
    """

    def find_by_product(self, product_id: int) -> Tuple[List[Review], Optional[Decimal]]:
        """
        Returns:
            (reviews newest first, average rating or None)
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT r.id, r.product_id, r.user_id, r.rating, r.comment, r.created_at,
                       u.name as user_name
                FROM reviews r
                LEFT JOIN users u ON u.id = r.user_id
                WHERE r.product_id = %s
                ORDER BY r.created_at DESC
            """, (product_id,))
            reviews = [Review(**dict(r)) for r in cursor.fetchall()]

            cursor.execute("""
                SELECT ROUND(AVG(rating)::numeric, 2) as average
                FROM reviews
                WHERE product_id = %s
            """, (product_id,))
            average = cursor.fetchone()['average']

            return reviews, average

        finally:
            cursor.close()
            conn.close()

    def find_by_id(self, review_id: int) -> Optional[Review]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT id, product_id, user_id, rating, comment, created_at
                FROM reviews
                WHERE id = %s
            """, (review_id,))
            row = cursor.fetchone()
            return Review(**dict(row)) if row else None

        finally:
            cursor.close()
            conn.close()

    def create(self, product_id: int, user_id: str, payload: ReviewCreate) -> Optional[Review]:
        """
        Returns:
            The new review, or None when the user already reviewed this product
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO reviews (product_id, user_id, rating, comment)
                VALUES (%s, %s, %s, %s)
                RETURNING id, product_id, user_id, rating, comment, created_at
            """, (product_id, user_id, payload.rating, payload.comment))
            row = cursor.fetchone()
            conn.commit()
            return Review(**dict(row))

        except psycopg2.IntegrityError:
            conn.rollback()
            return None
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def delete(self, review_id: int) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM reviews WHERE id = %s", (review_id,))
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()
