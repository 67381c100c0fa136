"""
Unit tests for OrderRepository and QuoteRepository conversion

These tests validate repository logic without requiring a database connection.
"""
import pytest
from decimal import Decimal
from unittest.mock import MagicMock, patch

from storefront.core.exceptions import InsufficientStockError, InvalidStateError, OrderNotFoundError, QuoteNotFoundError
from storefront.domain.order import OrderItem, OrderStatus, ShippingInfo
from storefront.repositories.order_repository import OrderRepository, insert_order
from storefront.repositories.quote_repository import QuoteRepository


def executed_sql(mock_cursor):
    return [c[0][0] for c in mock_cursor.execute.call_args_list]


class TestInsertOrder:

    def test_writes_order_items_and_history(self):
        cursor = MagicMock()
        cursor.fetchone.return_value = {'id': 55}
        items = [
            OrderItem(product_id=1, quantity=2, price=Decimal('90.00'), base_price=Decimal('100.00')),
            OrderItem(product_id=2, quantity=1, price=Decimal('5.50'), base_price=Decimal('5.50')),
        ]

        order_id = insert_order(cursor, "user-1", 7, items, OrderStatus.PENDING, changed_by="user-1")

        assert order_id == 55
        order_params = cursor.execute.call_args_list[0][0][1]
        assert order_params[2] == Decimal('185.50')
        assert order_params[3] == 'pending'
        # 1 order + 2 items + 1 history
        assert cursor.execute.call_count == 4
        assert "order_status_history" in cursor.execute.call_args_list[-1][0][0]


class TestCreateOrder:

    @patch('storefront.repositories.order_repository.get_db_connection_dict')
    def test_insufficient_stock_rolls_back(self, mock_get_conn, mock_db):
        # Arrange
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchall.return_value = [{'id': 1, 'stock': 1}]
        items = [OrderItem(product_id=1, quantity=3, price=Decimal('10'))]

        # Act / Assert
        with pytest.raises(InsufficientStockError) as exc_info:
            OrderRepository().create_order("user-1", None, items, ShippingInfo(), "pay_123")

        assert exc_info.value.available == 1
        mock_conn.rollback.assert_called_once()
        mock_conn.commit.assert_not_called()
        mock_conn.close.assert_called_once()

    @patch('storefront.repositories.order_repository.get_db_connection_dict')
    def test_unknown_product_has_no_stock(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchall.return_value = []
        items = [OrderItem(product_id=42, quantity=1, price=Decimal('10'))]

        with pytest.raises(InsufficientStockError) as exc_info:
            OrderRepository().create_order("user-1", None, items, ShippingInfo(), "pay_123")

        assert exc_info.value.available == 0

    @patch.object(OrderRepository, 'find_by_id')
    @patch('storefront.repositories.order_repository.get_db_connection_dict')
    def test_locks_products_in_id_order(self, mock_get_conn, mock_find, mock_db):
        # Arrange: checkout lists product 9 before product 2
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchall.return_value = [{'id': 2, 'stock': 5}, {'id': 9, 'stock': 5}]
        mock_cursor.fetchone.return_value = {'id': 77}
        items = [
            OrderItem(product_id=9, quantity=1, price=Decimal('10')),
            OrderItem(product_id=2, quantity=2, price=Decimal('20')),
        ]

        # Act
        OrderRepository().create_order("user-1", None, items, ShippingInfo(), "pay_123")

        # Assert: one locking query, ids sorted, decrements follow the same order
        lock_sql, lock_params = mock_cursor.execute.call_args_list[0][0]
        assert "ORDER BY id" in lock_sql
        assert "FOR UPDATE" in lock_sql
        assert lock_params == ([2, 9],)
        decrements = [
            c[0][1] for c in mock_cursor.execute.call_args_list
            if "stock = stock - %s" in c[0][0]
        ]
        assert decrements == [(2, 2), (1, 9)]

    @patch.object(OrderRepository, 'find_by_id')
    @patch('storefront.repositories.order_repository.get_db_connection_dict')
    def test_decrements_stock_and_clears_cart(self, mock_get_conn, mock_find, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchall.return_value = [{'id': 1, 'stock': 10}]
        mock_cursor.fetchone.return_value = {'id': 77}
        mock_find.return_value = MagicMock(id=77)
        items = [OrderItem(product_id=1, quantity=3, price=Decimal('10'))]

        order = OrderRepository().create_order("user-1", 7, items, ShippingInfo(name="Kim"), "pay_123")

        assert order.id == 77
        statements = executed_sql(mock_cursor)
        assert any("FOR UPDATE" in s for s in statements)
        assert any("stock = stock - %s" in s for s in statements)
        assert any("DELETE FROM cart_items" in s for s in statements)
        mock_conn.commit.assert_called_once()
        mock_find.assert_called_once_with(77)


class TestUpdateStatus:

    @patch('storefront.repositories.order_repository.get_db_connection_dict')
    def test_unknown_order(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = None

        with pytest.raises(OrderNotFoundError):
            OrderRepository().update_status(1, OrderStatus.SHIPPED, changed_by="admin-1")

    @pytest.mark.parametrize("current", ['delivered', 'cancelled'])
    @patch('storefront.repositories.order_repository.get_db_connection_dict')
    def test_terminal_status_rejected(self, mock_get_conn, current, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = {'status': current}

        with pytest.raises(InvalidStateError):
            OrderRepository().update_status(1, OrderStatus.PROCESSING, changed_by="admin-1")

        mock_conn.rollback.assert_called_once()

    @patch.object(OrderRepository, 'find_by_id')
    @patch('storefront.repositories.order_repository.get_db_connection_dict')
    def test_records_history(self, mock_get_conn, mock_find, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = {'status': 'pending'}

        OrderRepository().update_status(1, OrderStatus.SHIPPED, changed_by="admin-1", note="UPS 1Z")

        history_params = mock_cursor.execute.call_args_list[-1][0][1]
        assert history_params == (1, 'pending', 'shipped', 'admin-1', 'UPS 1Z')
        mock_conn.commit.assert_called_once()


class TestQuoteConversion:

    QUOTE_ROW = {
        'id': 9, 'product_id': 1, 'requester_id': 'user-1', 'quantity': 40,
        'price': Decimal('70.00'), 'status': 'quoted', 'order_id': None,
        'base_price': Decimal('100.00')
    }

    @patch.object(QuoteRepository, 'find_by_id')
    @patch('storefront.repositories.quote_repository.insert_order')
    @patch('storefront.repositories.quote_repository.get_db_connection_dict')
    def test_creates_pending_payment_order(self, mock_get_conn, mock_insert, mock_find, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = dict(self.QUOTE_ROW)
        mock_insert.return_value = 501

        quote, order_id = QuoteRepository().convert_to_order(9, converted_by="admin-1")

        assert order_id == 501
        kwargs = mock_insert.call_args.kwargs
        assert kwargs['status'] == OrderStatus.PENDING_PAYMENT
        assert kwargs['user_id'] == 'user-1'
        item = kwargs['items'][0]
        assert (item.quantity, item.price, item.base_price) == (40, Decimal('70.00'), Decimal('100.00'))
        assert mock_cursor.execute.call_args[0][1] == ('ordered', 501, 9)
        mock_conn.commit.assert_called_once()

    @patch('storefront.repositories.quote_repository.insert_order')
    @patch('storefront.repositories.quote_repository.get_db_connection_dict')
    def test_already_converted_rejected(self, mock_get_conn, mock_insert, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = dict(self.QUOTE_ROW, status='ordered', order_id=500)

        with pytest.raises(InvalidStateError):
            QuoteRepository().convert_to_order(9, converted_by="admin-1")

        mock_insert.assert_not_called()
        mock_conn.rollback.assert_called_once()

    @patch.object(QuoteRepository, 'find_by_id')
    @patch('storefront.repositories.quote_repository.insert_order')
    @patch('storefront.repositories.quote_repository.get_db_connection_dict')
    def test_stale_linked_order_is_replaced(self, mock_get_conn, mock_insert, mock_find, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = dict(self.QUOTE_ROW, order_id=480)
        mock_insert.return_value = 502

        QuoteRepository().convert_to_order(9, converted_by="admin-1")

        delete_call = mock_cursor.execute.call_args_list[1][0]
        assert delete_call[0] == "DELETE FROM orders WHERE id = %s"
        assert delete_call[1] == (480,)

    @patch('storefront.repositories.quote_repository.get_db_connection_dict')
    def test_unpriced_quote_rejected(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = dict(self.QUOTE_ROW, price=None)

        with pytest.raises(InvalidStateError, match="no price"):
            QuoteRepository().convert_to_order(9, converted_by="admin-1")

    @patch('storefront.repositories.quote_repository.get_db_connection_dict')
    def test_unknown_quote(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = None

        with pytest.raises(QuoteNotFoundError):
            QuoteRepository().convert_to_order(9, converted_by="admin-1")
