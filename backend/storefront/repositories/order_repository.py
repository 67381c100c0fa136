"""
Order Repository - Data Access Layer for Orders

Handles all database queries for orders, their items and status history,
and returns Order domain models.
"""
from typing import List, Optional, Tuple, Sequence

from storefront.domain.order import (
    Order,
    OrderItem,
    OrderStatus,
    OrderStatusChange,
    ShippingInfo,
    can_transition,
)
from storefront.core.database import get_db_connection_dict
from storefront.core.exceptions import InsufficientStockError, InvalidStateError, OrderNotFoundError

ORDER_COLUMNS = """
    o.id, o.user_id, o.distributor_id, o.total_price, o.status, o.payment_reference,
    o.recipient_name, o.recipient_phone, o.shipping_postal_code,
    o.shipping_address1, o.shipping_address2,
    o.created_at, o.updated_at
"""


def insert_order(
    cursor,
    user_id: Optional[str],
    distributor_id: Optional[int],
    items: Sequence[OrderItem],
    status: OrderStatus,
    changed_by: str,
    payment_reference: Optional[str] = None,
    shipping: Optional[ShippingInfo] = None
) -> int:
    """
    Insert an order, its items and the initial history entry on an open cursor

    The caller owns the transaction.

    Returns:
        New order id
    """
    shipping = shipping or ShippingInfo()
    total_price = sum(item.price * item.quantity for item in items)

    cursor.execute("""
        INSERT INTO orders (
            user_id, distributor_id, total_price, status, payment_reference,
            recipient_name, recipient_phone, shipping_postal_code,
            shipping_address1, shipping_address2
        ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
        RETURNING id
    """, (
        user_id,
        distributor_id,
        total_price,
        OrderStatus(status).value,
        payment_reference,
        shipping.name,
        shipping.phone,
        shipping.postal_code,
        shipping.address1,
        shipping.address2
    ))
    order_id = cursor.fetchone()['id']

    for item in items:
        cursor.execute("""
            INSERT INTO order_items (order_id, product_id, quantity, price, base_price)
            VALUES (%s, %s, %s, %s, %s)
        """, (order_id, item.product_id, item.quantity, item.price, item.base_price))

    cursor.execute("""
        INSERT INTO order_status_history (order_id, old_status, new_status, changed_by, note)
        VALUES (%s, NULL, %s, %s, %s)
    """, (order_id, OrderStatus(status).value, changed_by, "Order created"))

    return order_id


class OrderRepository:
    """
    Repository for Order data access

    Returns Order domain models with their items.
    """

    @staticmethod
    def _map_row_to_order(row: dict, items: List[OrderItem]) -> Order:
        return Order(
            id=row['id'],
            user_id=row.get('user_id'),
            distributor_id=row.get('distributor_id'),
            total_price=row['total_price'],
            status=row['status'],
            payment_reference=row.get('payment_reference'),
            shipping=ShippingInfo(
                name=row.get('recipient_name') or "",
                phone=row.get('recipient_phone') or "",
                postal_code=row.get('shipping_postal_code') or "",
                address1=row.get('shipping_address1') or "",
                address2=row.get('shipping_address2') or ""
            ),
            created_at=row.get('created_at'),
            updated_at=row.get('updated_at'),
            items=items
        )

    @staticmethod
    def _fetch_items(cursor, order_ids: List[int]) -> dict:
        """Items for several orders in one query (avoids N+1)"""
        items_by_order = {order_id: [] for order_id in order_ids}
        if not order_ids:
            return items_by_order

        cursor.execute("""
            SELECT
                oi.id, oi.order_id, oi.product_id, oi.quantity, oi.price, oi.base_price,
                p.name as product_name, p.sku as product_sku
            FROM order_items oi
            LEFT JOIN products p ON p.id = oi.product_id
            WHERE oi.order_id = ANY(%s)
            ORDER BY oi.id
        """, (order_ids,))

        for row in cursor.fetchall():
            items_by_order.setdefault(row['order_id'], []).append(OrderItem(**dict(row)))
        return items_by_order

    def create_order(
        self,
        user_id: str,
        distributor_id: Optional[int],
        items: Sequence[OrderItem],
        shipping: ShippingInfo,
        payment_reference: str,
        status: OrderStatus = OrderStatus.PENDING
    ) -> Order:
        """
        Check and decrement stock, write the order and clear the user's cart
        in a single transaction.

        Raises:
            InsufficientStockError: a product is missing or short on stock
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        requested = {}
        for item in items:
            requested[item.product_id] = requested.get(item.product_id, 0) + item.quantity
        product_ids = sorted(requested)

        try:
            # Rows are locked in id order so concurrent checkouts cannot deadlock
            cursor.execute("""
                SELECT id, stock FROM products
                WHERE id = ANY(%s)
                ORDER BY id
                FOR UPDATE
            """, (product_ids,))
            stock = {row['id']: row['stock'] for row in cursor.fetchall()}

            for product_id in product_ids:
                available = stock.get(product_id, 0)
                if available < requested[product_id]:
                    raise InsufficientStockError(product_id, requested[product_id], available)

                cursor.execute("""
                    UPDATE products SET stock = stock - %s, updated_at = NOW()
                    WHERE id = %s
                """, (requested[product_id], product_id))

            order_id = insert_order(
                cursor,
                user_id=user_id,
                distributor_id=distributor_id,
                items=items,
                status=status,
                changed_by=user_id,
                payment_reference=payment_reference,
                shipping=shipping
            )

            cursor.execute("""
                DELETE FROM cart_items ci
                USING carts c
                WHERE c.id = ci.cart_id AND c.user_id = %s
            """, (user_id,))

            conn.commit()

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

        return self.find_by_id(order_id)

    def find_by_id(self, order_id: int) -> Optional[Order]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {ORDER_COLUMNS}
                FROM orders o
                WHERE o.id = %s
            """, (order_id,))

            row = cursor.fetchone()
            if not row:
                return None

            items = self._fetch_items(cursor, [order_id])
            return self._map_row_to_order(row, items[order_id])

        finally:
            cursor.close()
            conn.close()

    def find_by_user(self, user_id: str) -> List[Order]:
        """A user's own orders, newest first"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {ORDER_COLUMNS}
                FROM orders o
                WHERE o.user_id = %s
                ORDER BY o.created_at DESC
            """, (user_id,))
            rows = cursor.fetchall()

            items = self._fetch_items(cursor, [r['id'] for r in rows])
            return [self._map_row_to_order(r, items[r['id']]) for r in rows]

        finally:
            cursor.close()
            conn.close()

    def find_all(
        self,
        status: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> Tuple[List[Order], int]:
        """
        Find orders with filters (admin listing)

        Returns:
            Tuple of (list of orders, total count)
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []

            if status:
                conditions.append("o.status = %s")
                params.append(status)

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM orders o
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT {ORDER_COLUMNS}
                FROM orders o
                WHERE {where_clause}
                ORDER BY o.created_at DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])
            rows = cursor.fetchall()

            items = self._fetch_items(cursor, [r['id'] for r in rows])
            return [self._map_row_to_order(r, items[r['id']]) for r in rows], total

        finally:
            cursor.close()
            conn.close()

    def update_status(
        self,
        order_id: int,
        new_status: OrderStatus,
        changed_by: str,
        note: Optional[str] = None
    ) -> Order:
        """
        Move an order to a new status and record the change

        Raises:
            OrderNotFoundError: unknown order
            InvalidStateError: order is delivered/cancelled or already in new_status
        """
        new_status = OrderStatus(new_status)

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT status FROM orders WHERE id = %s FOR UPDATE
            """, (order_id,))
            row = cursor.fetchone()
            if not row:
                raise OrderNotFoundError(order_id)

            old_status = row['status']
            if not can_transition(old_status, new_status.value):
                raise InvalidStateError(
                    f"Cannot change order {order_id} from '{old_status}' to '{new_status.value}'"
                )

            cursor.execute("""
                UPDATE orders SET status = %s, updated_at = NOW()
                WHERE id = %s
            """, (new_status.value, order_id))

            cursor.execute("""
                INSERT INTO order_status_history (order_id, old_status, new_status, changed_by, note)
                VALUES (%s, %s, %s, %s, %s)
            """, (order_id, old_status, new_status.value, changed_by, note))

            conn.commit()

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

        return self.find_by_id(order_id)

    def get_status_history(self, order_id: int) -> List[OrderStatusChange]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT id, order_id, old_status, new_status, changed_by, note, changed_at
                FROM order_status_history
                WHERE order_id = %s
                ORDER BY changed_at ASC, id ASC
            """, (order_id,))
            return [OrderStatusChange(**dict(r)) for r in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()
