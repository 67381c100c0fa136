"""
API tests for checkout, order visibility and the admin surface

Repositories and services are patched where the routes import them.
"""
from decimal import Decimal
from unittest.mock import patch

from storefront.core.config import settings
from storefront.core.exceptions import InsufficientStockError, InvalidStateError
from storefront.domain.order import Order, OrderItem, OrderStatus
from storefront.domain.quote import QuoteRequest
from storefront.domain.tenant import Distributor
from storefront.domain.user import User

CHECKOUT = {
    "items": [{"product_id": 1, "quantity": 2}],
    "shipping": {"name": "Kim", "address1": "1 Main St"},
    "payment_reference": "pay_123"
}


def make_order(user_id="user-1", status=OrderStatus.PENDING):
    return Order(
        id=5,
        user_id=user_id,
        total_price=Decimal('180.00'),
        status=status,
        payment_reference="pay_123",
        items=[OrderItem(product_id=1, quantity=2, price=Decimal('90.00'), base_price=Decimal('100.00'))]
    )


class TestCheckout:

    @patch('storefront.api.orders.refresh_statistics_after_write')
    @patch('storefront.api.orders.OrderService')
    def test_place_order(self, mock_service_cls, mock_refresh, customer_client):
        mock_service_cls.return_value.place_order.return_value = make_order()

        response = customer_client.post("/api/v1/orders/", json=CHECKOUT)

        assert response.status_code == 201
        assert response.json()['data']['total_price'] == 180.0
        mock_refresh.assert_called_once()

    @patch('storefront.api.orders.OrderService')
    def test_insufficient_stock_is_conflict(self, mock_service_cls, customer_client):
        mock_service_cls.return_value.place_order.side_effect = InsufficientStockError(1, 2, 1)

        response = customer_client.post("/api/v1/orders/", json=CHECKOUT)

        assert response.status_code == 409
        assert "out of stock" in response.json()['detail']

    def test_checkout_requires_authentication(self, client):
        assert client.post("/api/v1/orders/", json=CHECKOUT).status_code == 401

    @patch('storefront.api.orders.OrderRepository')
    def test_other_users_order_is_hidden(self, mock_repo_cls, customer_client):
        mock_repo_cls.return_value.find_by_id.return_value = make_order(user_id="user-2")

        assert customer_client.get("/api/v1/orders/5").status_code == 404

    @patch('storefront.api.orders.OrderRepository')
    def test_admin_sees_any_order(self, mock_repo_cls, admin_client):
        mock_repo_cls.return_value.find_by_id.return_value = make_order(user_id="user-2")

        assert admin_client.get("/api/v1/orders/5").status_code == 200


class TestAdminOrders:

    def test_customer_is_forbidden(self, customer_client):
        response = customer_client.get("/api/v1/admin/orders")

        assert response.status_code == 403

    @patch('storefront.api.admin.OrderRepository')
    def test_final_status_cannot_change(self, mock_repo_cls, admin_client):
        mock_repo_cls.return_value.update_status.side_effect = InvalidStateError(
            "Cannot change order 5 from delivered to pending"
        )

        response = admin_client.patch("/api/v1/admin/orders/5", json={"status": "pending"})

        assert response.status_code == 400

    @patch('storefront.api.admin.OrderRepository')
    def test_status_change_records_admin(self, mock_repo_cls, admin_client):
        repo = mock_repo_cls.return_value
        repo.update_status.return_value = make_order(status=OrderStatus.SHIPPED)
        repo.get_status_history.return_value = []

        response = admin_client.patch(
            "/api/v1/admin/orders/5", json={"status": "shipped", "note": "DHL 123"}
        )

        assert response.status_code == 200
        repo.update_status.assert_called_once_with(5, OrderStatus.SHIPPED, changed_by="admin-1", note="DHL 123")

    @patch('storefront.api.admin.OrderRepository')
    def test_mark_paid(self, mock_repo_cls, admin_client):
        repo = mock_repo_cls.return_value
        repo.update_status.return_value = make_order(status=OrderStatus.PAID)
        repo.get_status_history.return_value = []

        response = admin_client.patch("/api/v1/admin/orders/5", json={"status": "paid"})

        assert response.status_code == 200
        assert response.json()['data']['status'] == "paid"


class TestAdminQuotes:

    @patch('storefront.api.admin.QuoteRepository')
    def test_convert_already_converted(self, mock_repo_cls, admin_client):
        mock_repo_cls.return_value.convert_to_order.side_effect = InvalidStateError(
            "Quote already converted to order"
        )

        response = admin_client.post("/api/v1/admin/quotes/3/convert")

        assert response.status_code == 400
        assert response.json()['detail'] == "Quote already converted to order"

    @patch('storefront.api.admin.QuoteRepository')
    def test_convert_returns_order_id(self, mock_repo_cls, admin_client):
        quote = QuoteRequest(
            id=3, product_id=1, requester_id="user-1", quantity=50,
            price=Decimal('70.00'), status="ordered", order_id=12
        )
        mock_repo_cls.return_value.convert_to_order.return_value = (quote, 12)

        response = admin_client.post("/api/v1/admin/quotes/3/convert")

        assert response.status_code == 200
        assert response.json()['order_id'] == 12
        mock_repo_cls.return_value.convert_to_order.assert_called_once_with(3, converted_by="admin-1")

    def test_cannot_set_ordered_directly(self, admin_client):
        with patch('storefront.api.admin.QuoteRepository') as mock_repo_cls:
            mock_repo_cls.return_value.update.side_effect = InvalidStateError(
                "Quotes become 'ordered' only through conversion"
            )

            response = admin_client.patch("/api/v1/admin/quotes/3", json={"status": "ordered"})

        assert response.status_code == 400


class TestAdminUsers:

    def test_customer_is_forbidden(self, customer_client):
        assert customer_client.get("/api/v1/admin/users").status_code == 403

    @patch('storefront.api.admin.UserRepository')
    def test_list_filters_by_role(self, mock_repo_cls, admin_client):
        mock_repo_cls.return_value.find_all.return_value = (
            [User(id="user-1", email="kim@acme.com", role="distributor", distributor_id=7, distributor_name="Acme Supply")], 1
        )

        response = admin_client.get("/api/v1/admin/users?role=distributor")

        assert response.status_code == 200
        assert response.json()['data'][0]['distributor'] == {'id': 7, 'name': 'Acme Supply'}
        mock_repo_cls.return_value.find_all.assert_called_once_with(role="distributor", limit=100, offset=0)

    @patch('storefront.api.admin.refresh_statistics_after_write')
    @patch('storefront.api.admin.UserRepository')
    def test_invalid_role_rejected(self, mock_repo_cls, mock_refresh, admin_client):
        response = admin_client.patch("/api/v1/admin/users/user-1", json={"role": "superuser"})

        assert response.status_code == 400
        assert response.json()['detail'] == "Invalid role"
        mock_repo_cls.return_value.update.assert_not_called()
        mock_refresh.assert_not_called()

    @patch('storefront.api.admin.refresh_statistics_after_write')
    @patch('storefront.api.admin.UserRepository')
    def test_role_change_refreshes_stats(self, mock_repo_cls, mock_refresh, admin_client):
        # Arrange
        mock_repo_cls.return_value.update.return_value = User(id="user-1", email="kim@acme.com", role="admin")

        # Act
        response = admin_client.patch("/api/v1/admin/users/user-1", json={"role": "admin", "name": "Kim"})

        # Assert
        assert response.status_code == 200
        assert response.json()['data']['role'] == "admin"
        user_id, payload = mock_repo_cls.return_value.update.call_args[0]
        assert user_id == "user-1"
        assert (payload.role, payload.name) == ("admin", "Kim")
        mock_refresh.assert_called_once()

    @patch('storefront.api.admin.refresh_statistics_after_write')
    @patch('storefront.api.admin.UserRepository')
    def test_unknown_user(self, mock_repo_cls, mock_refresh, admin_client):
        mock_repo_cls.return_value.update.return_value = None

        response = admin_client.patch("/api/v1/admin/users/nobody", json={"name": "X"})

        assert response.status_code == 404
        mock_refresh.assert_not_called()


class TestStatistics:

    @patch('storefront.api.admin.stats_cache')
    def test_served_from_cache(self, mock_cache, admin_client):
        mock_cache.get.return_value = {"total_orders": 10}

        response = admin_client.get("/api/v1/admin/statistics")

        assert response.json()['data'] == {"total_orders": 10}
        mock_cache.get.assert_called_once()


class TestDistributorAdmin:

    @patch('storefront.api.distributors.PricingRepository')
    @patch('storefront.api.distributors.ProductRepository')
    @patch('storefront.api.distributors.TenantRepository')
    def test_markup_rejected_without_flag(self, mock_tenant_cls, mock_product_cls, mock_pricing_cls,
                                          admin_client, sample_product):
        mock_tenant_cls.return_value.find_by_id.return_value = Distributor(
            id=7, name="Acme Supply", email_domain="acme.com"
        )
        mock_product_cls.return_value.find_by_id.return_value = sample_product

        response = admin_client.put(
            "/api/v1/admin/distributors/7/pricing/1",
            json={"custom_price": 90, "discount_tiers": [{"min_qty": 10, "price": 120}]}
        )

        assert response.status_code == 400
        mock_pricing_cls.return_value.upsert_distributor_price.assert_not_called()

    def test_overlapping_tiers_rejected(self, admin_client):
        response = admin_client.put(
            "/api/v1/admin/distributors/7/pricing/1",
            json={"custom_price": 90, "discount_tiers": [
                {"min_qty": 1, "max_qty": 10, "price": 90},
                {"min_qty": 5, "price": 80}
            ]}
        )

        assert response.status_code == 422

    @patch('storefront.api.distributors.TenantRepository')
    def test_duplicate_domain(self, mock_tenant_cls, admin_client):
        repo = mock_tenant_cls.return_value
        repo.find_by_id.return_value = Distributor(id=7, name="Acme Supply", email_domain="acme.com")
        repo.add_domain.return_value = None

        response = admin_client.post("/api/v1/admin/distributors/7/domains", json={"domain": "Shop.Acme.io"})

        assert response.status_code == 400
        repo.add_domain.assert_called_once_with(7, "shop.acme.io")

    @patch('storefront.api.distributors.TenantRepository')
    def test_unknown_distributor(self, mock_tenant_cls, admin_client):
        mock_tenant_cls.return_value.find_by_id.return_value = None

        assert admin_client.get("/api/v1/admin/distributors/99").status_code == 404


class TestDebug:

    def test_disabled_in_production(self, client):
        with patch.object(settings, 'ENVIRONMENT', 'production'):
            response = client.get("/api/v1/debug/stats-info")

        assert response.status_code == 403

    @patch('storefront.api.debug.stats_cache')
    def test_stats_get_empty(self, mock_cache, client):
        mock_cache.peek.return_value = None

        assert client.get("/api/v1/debug/stats-get").json() == {"cached": False}


class TestHealth:

    @patch('storefront.main.get_db_connection_with_retry')
    def test_degraded_without_database(self, mock_get_conn, client):
        mock_get_conn.side_effect = Exception("connection refused")

        body = client.get("/health").json()

        assert body['status'] == 'degraded'
        assert body['database']['status'] == 'disconnected'
