"""
Quote Repository - Data Access Layer for quote requests

Includes quote-to-order conversion, done in one transaction.
"""
from typing import List, Optional, Tuple

from storefront.domain.quote import QuoteRequest, QuoteCreate, QuoteUpdate, QuoteStatus
from storefront.domain.order import OrderItem, OrderStatus
from storefront.core.database import get_db_connection_dict
from storefront.core.exceptions import InvalidStateError, ProductNotFoundError, QuoteNotFoundError
from storefront.repositories.order_repository import insert_order

QUOTE_SELECT = """
    SELECT
        q.id, q.product_id, q.requester_id, q.quantity, q.message, q.price,
        q.status, q.order_id, q.created_at, q.updated_at,
        p.name as product_name, u.email as requester_email
    FROM quote_requests q
    LEFT JOIN products p ON p.id = q.product_id
    LEFT JOIN users u ON u.id = q.requester_id
"""


class QuoteRepository:
    """
    Repository for quote requests
    """

    def create(self, requester_id: str, payload: QuoteCreate) -> QuoteRequest:
        """
        Raises:
            ProductNotFoundError: the product does not exist
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT id FROM products WHERE id = %s", (payload.product_id,))
            if not cursor.fetchone():
                raise ProductNotFoundError(payload.product_id)

            cursor.execute("""
                INSERT INTO quote_requests (product_id, requester_id, quantity, message, status)
                VALUES (%s, %s, %s, %s, %s)
                RETURNING id
            """, (
                payload.product_id,
                requester_id,
                payload.quantity,
                payload.message,
                QuoteStatus.REQUESTED.value
            ))
            quote_id = cursor.fetchone()['id']
            conn.commit()

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

        return self.find_by_id(quote_id)

    def find_by_id(self, quote_id: int) -> Optional[QuoteRequest]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                {QUOTE_SELECT}
                WHERE q.id = %s
            """, (quote_id,))
            row = cursor.fetchone()
            return QuoteRequest(**dict(row)) if row else None

        finally:
            cursor.close()
            conn.close()

    def find_all(
        self,
        status: Optional[str] = None,
        requester_id: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> Tuple[List[QuoteRequest], int]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []

            if status:
                conditions.append("q.status = %s")
                params.append(status)

            if requester_id:
                conditions.append("q.requester_id = %s")
                params.append(requester_id)

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM quote_requests q
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                {QUOTE_SELECT}
                WHERE {where_clause}
                ORDER BY q.created_at DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            return [QuoteRequest(**dict(r)) for r in cursor.fetchall()], total

        finally:
            cursor.close()
            conn.close()

    def update(self, quote_id: int, payload: QuoteUpdate) -> Optional[QuoteRequest]:
        """
        Admin edit of price / quantity / status

        Raises:
            InvalidStateError: the quote is already ordered, or payload asks for 'ordered'
        """
        fields = payload.model_dump(exclude_unset=True)
        if fields.get('status') == QuoteStatus.ORDERED:
            raise InvalidStateError("Use conversion to mark a quote as ordered")
        if 'status' in fields and fields['status'] is not None:
            fields['status'] = QuoteStatus(fields['status']).value

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT status FROM quote_requests WHERE id = %s FOR UPDATE", (quote_id,))
            row = cursor.fetchone()
            if not row:
                return None
            if row['status'] == QuoteStatus.ORDERED.value:
                raise InvalidStateError(f"Quote {quote_id} was already converted to an order")

            if fields:
                set_clause = ", ".join(f"{column} = %s" for column in fields)
                cursor.execute(f"""
                    UPDATE quote_requests
                    SET {set_clause}, updated_at = NOW()
                    WHERE id = %s
                """, list(fields.values()) + [quote_id])
            conn.commit()

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

        return self.find_by_id(quote_id)

    def convert_to_order(self, quote_id: int, converted_by: str) -> Tuple[QuoteRequest, int]:
        """
        Turn a quote into a pending_payment order with one item at the quoted price

        A stale order still linked to the quote is replaced.

        Returns:
            (updated quote, new order id)

        Raises:
            QuoteNotFoundError: unknown quote
            InvalidStateError: already converted, or no price has been quoted
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT q.id, q.product_id, q.requester_id, q.quantity, q.price,
                       q.status, q.order_id, p.price as base_price
                FROM quote_requests q
                LEFT JOIN products p ON p.id = q.product_id
                WHERE q.id = %s
                FOR UPDATE OF q
            """, (quote_id,))
            quote = cursor.fetchone()
            if not quote:
                raise QuoteNotFoundError(quote_id)

            if quote['status'] == QuoteStatus.ORDERED.value and quote['order_id']:
                raise InvalidStateError("Quote already converted to order")
            if quote['price'] is None:
                raise InvalidStateError("Quote has no price yet")

            if quote['order_id']:
                cursor.execute("DELETE FROM orders WHERE id = %s", (quote['order_id'],))

            order_id = insert_order(
                cursor,
                user_id=quote['requester_id'],
                distributor_id=None,
                items=[OrderItem(
                    product_id=quote['product_id'],
                    quantity=quote['quantity'] or 1,
                    price=quote['price'],
                    base_price=quote['base_price']
                )],
                status=OrderStatus.PENDING_PAYMENT,
                changed_by=converted_by
            )

            cursor.execute("""
                UPDATE quote_requests
                SET status = %s, order_id = %s, updated_at = NOW()
                WHERE id = %s
            """, (QuoteStatus.ORDERED.value, order_id, quote_id))

            conn.commit()

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

        return self.find_by_id(quote_id), order_id
