"""
Stats Repository - aggregate queries behind the admin statistics dashboard

compute_statistics() is the fetcher handed to the stats cache; it runs
every aggregate on one connection and returns a JSON-ready dict.
"""
from typing import Dict, Any

from storefront.core.config import settings
from storefront.core.database import get_db_connection_dict
from storefront.domain.order import OrderStatus
from storefront.domain.quote import QuoteStatus

# Orders that never turned into revenue
EXCLUDED_REVENUE_STATUSES = (OrderStatus.CANCELLED.value, OrderStatus.PENDING_PAYMENT.value)

TOP_PRODUCTS_LIMIT = 5
REVENUE_WINDOW_DAYS = 30


def _as_float(value) -> float:
    return float(value) if value is not None else 0.0


class StatsRepository:
    """
    Read-only aggregates over orders, products, quotes and users
    """

    def compute_statistics(self) -> Dict[str, Any]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT
                    COUNT(*) as total_orders,
                    COALESCE(SUM(total_price) FILTER (WHERE status <> ALL(%s)), 0) as total_revenue,
                    COUNT(*) FILTER (WHERE status <> ALL(%s)) as paid_orders,
                    COUNT(*) FILTER (WHERE status = %s) as pending_orders
                FROM orders
            """, (
                list(EXCLUDED_REVENUE_STATUSES),
                list(EXCLUDED_REVENUE_STATUSES),
                OrderStatus.PENDING.value
            ))
            order_totals = cursor.fetchone()

            total_revenue = _as_float(order_totals['total_revenue'])
            paid_orders = order_totals['paid_orders'] or 0
            average_order_value = round(total_revenue / paid_orders, 2) if paid_orders else 0.0

            cursor.execute("""
                SELECT status, COUNT(*) as count
                FROM orders
                GROUP BY status
            """)
            orders_by_status = {row['status']: row['count'] for row in cursor.fetchall()}

            cursor.execute("""
                SELECT
                    COUNT(*) as total_products,
                    COUNT(*) FILTER (WHERE stock <= %s) as low_stock
                FROM products
            """, (settings.LOW_STOCK_THRESHOLD,))
            product_totals = cursor.fetchone()

            cursor.execute("""
                SELECT
                    p.id, p.name, p.sku,
                    SUM(oi.quantity) as units_sold,
                    SUM(oi.quantity * oi.price) as revenue
                FROM order_items oi
                JOIN orders o ON o.id = oi.order_id
                JOIN products p ON p.id = oi.product_id
                WHERE o.status <> ALL(%s)
                GROUP BY p.id, p.name, p.sku
                ORDER BY revenue DESC, units_sold DESC
                LIMIT %s
            """, (list(EXCLUDED_REVENUE_STATUSES), TOP_PRODUCTS_LIMIT))
            top_products = [
                {
                    'id': row['id'],
                    'name': row['name'],
                    'sku': row['sku'],
                    'units_sold': int(row['units_sold'] or 0),
                    'revenue': _as_float(row['revenue'])
                }
                for row in cursor.fetchall()
            ]

            cursor.execute("""
                SELECT
                    COUNT(*) as total_quotes,
                    COUNT(*) FILTER (WHERE status = %s) as converted,
                    COUNT(*) FILTER (WHERE status IN (%s, %s)) as open_quotes,
                    COUNT(*) FILTER (
                        WHERE status IN (%s, %s) AND created_at >= NOW() - INTERVAL '3 days'
                    ) as age_0_3,
                    COUNT(*) FILTER (
                        WHERE status IN (%s, %s)
                          AND created_at < NOW() - INTERVAL '3 days'
                          AND created_at >= NOW() - INTERVAL '7 days'
                    ) as age_4_7,
                    COUNT(*) FILTER (
                        WHERE status IN (%s, %s) AND created_at < NOW() - INTERVAL '7 days'
                    ) as age_8_plus
                FROM quote_requests
            """, (
                QuoteStatus.ORDERED.value,
                QuoteStatus.REQUESTED.value, QuoteStatus.QUOTED.value,
                QuoteStatus.REQUESTED.value, QuoteStatus.QUOTED.value,
                QuoteStatus.REQUESTED.value, QuoteStatus.QUOTED.value,
                QuoteStatus.REQUESTED.value, QuoteStatus.QUOTED.value,
            ))
            quotes = cursor.fetchone()
            total_quotes = quotes['total_quotes'] or 0
            conversion_rate = round(quotes['converted'] * 100.0 / total_quotes, 1) if total_quotes else 0.0

            cursor.execute("""
                SELECT
                    DATE(created_at) as day,
                    COALESCE(SUM(total_price), 0) as revenue,
                    COUNT(*) as orders
                FROM orders
                WHERE created_at >= CURRENT_DATE - %s * INTERVAL '1 day'
                  AND status <> ALL(%s)
                GROUP BY DATE(created_at)
                ORDER BY day ASC
            """, (REVENUE_WINDOW_DAYS - 1, list(EXCLUDED_REVENUE_STATUSES)))
            daily_revenue = [
                {
                    'date': row['day'].isoformat(),
                    'revenue': _as_float(row['revenue']),
                    'orders': row['orders']
                }
                for row in cursor.fetchall()
            ]

            cursor.execute("""
                SELECT role, COUNT(*) as count
                FROM users
                GROUP BY role
            """)
            users_by_role = {row['role']: row['count'] for row in cursor.fetchall()}

            cursor.execute("SELECT COUNT(*) as total FROM distributors")
            total_distributors = cursor.fetchone()['total']

        finally:
            cursor.close()
            conn.close()

        return {
            'total_orders': order_totals['total_orders'],
            'total_revenue': total_revenue,
            'average_order_value': average_order_value,
            'pending_orders': order_totals['pending_orders'],
            'pending_quotes': quotes['open_quotes'],
            'orders_by_status': orders_by_status,
            'total_products': product_totals['total_products'],
            'low_stock_products': product_totals['low_stock'],
            'low_stock_threshold': settings.LOW_STOCK_THRESHOLD,
            'top_products': top_products,
            'quotes': {
                'total': total_quotes,
                'open': quotes['open_quotes'],
                'converted': quotes['converted'],
                'conversion_rate': conversion_rate,
                'aging': {
                    '0_3_days': quotes['age_0_3'],
                    '4_7_days': quotes['age_4_7'],
                    '8_plus_days': quotes['age_8_plus']
                }
            },
            'daily_revenue': daily_revenue,
            'users_by_role': users_by_role,
            'total_distributors': total_distributors
        }
