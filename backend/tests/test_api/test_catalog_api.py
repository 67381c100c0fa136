"""
API tests for tenant branding, products, reviews and the cart

Repositories are patched where the routes import them; pricing runs the
real PricingService over a mocked PricingRepository.
"""
import pytest
from decimal import Decimal
from unittest.mock import patch

from storefront.core.tenancy import get_current_tenant
from storefront.domain.pricing import CategoryDiscount, DiscountTier, DistributorPrice
from storefront.domain.shopper import CartItem, Review


@pytest.fixture
def mock_pricing_repo():
    with patch('storefront.services.pricing_service.PricingRepository') as mock_cls:
        repo = mock_cls.return_value
        repo.find_distributor_price.return_value = None
        repo.find_category_discount.return_value = None
        repo.find_default_discount.return_value = None
        repo.find_distributor_prices_for_products.return_value = {}
        repo.find_category_discounts.return_value = []
        yield repo


class TestTenantEndpoint:

    def test_returns_branding(self, app, client, tenant):
        app.dependency_overrides[get_current_tenant] = lambda: tenant

        response = client.get("/api/v1/tenant/")

        assert response.status_code == 200
        assert response.json()['data'] == {
            'id': 7, 'name': 'Acme Supply',
            'logo_url': 'https://cdn.example.com/acme.png', 'brand_color': '#ff6600'
        }

    def test_no_tenant(self, client):
        response = client.get("/api/v1/tenant/")

        assert response.json() == {"status": "success", "data": None}


class TestProducts:

    @patch('storefront.api.products.ProductRepository')
    def test_list_anonymous_is_base_price(self, mock_repo_cls, client, sample_product, mock_pricing_repo):
        mock_repo_cls.return_value.find_all.return_value = ([sample_product], 1)

        response = client.get("/api/v1/products/?category=tools")

        assert response.status_code == 200
        body = response.json()
        assert body['total'] == 1
        assert body['data'][0]['price'] == 100.0
        assert body['data'][0]['base_price'] == 100.0
        assert body['data'][0]['pricing_rule'] == 'base'
        mock_pricing_repo.find_distributor_price.assert_not_called()

    @patch('storefront.api.products.ProductRepository')
    def test_list_with_tenant_category_discount(self, mock_repo_cls, app, client, tenant, sample_product,
                                                mock_pricing_repo):
        app.dependency_overrides[get_current_tenant] = lambda: tenant
        mock_repo_cls.return_value.find_all.return_value = ([sample_product], 1)
        mock_pricing_repo.find_category_discounts.return_value = [
            CategoryDiscount(distributor_id=7, category='Tools', discount_percent=Decimal('20'))
        ]

        response = client.get("/api/v1/products/")

        product = response.json()['data'][0]
        assert product['price'] == 80.0
        assert product['base_price'] == 100.0
        assert product['pricing_rule'] == 'category'
        mock_pricing_repo.find_category_discounts.assert_called_once_with(7)
        mock_pricing_repo.find_category_discount.assert_not_called()

    @patch('storefront.api.products.ProductRepository')
    def test_detail_picks_tier_for_quantity(self, mock_repo_cls, app, client, tenant, sample_product,
                                            mock_pricing_repo):
        app.dependency_overrides[get_current_tenant] = lambda: tenant
        mock_repo_cls.return_value.find_by_id.return_value = sample_product
        mock_pricing_repo.find_distributor_price.return_value = DistributorPrice(
            product_id=1, distributor_id=7, custom_price=Decimal('95'),
            discount_tiers=[DiscountTier(min_qty=10, max_qty=None, price=Decimal('85'))]
        )

        response = client.get("/api/v1/products/1?quantity=12")

        product = response.json()['data']
        assert product['price'] == 85.0
        assert product['pricing_rule'] == 'tier'
        assert product['discount_tiers'] == [{'min_qty': 10, 'max_qty': None, 'price': 85.0}]

    @patch('storefront.api.products.ProductRepository')
    def test_detail_not_found(self, mock_repo_cls, client):
        mock_repo_cls.return_value.find_by_id.return_value = None

        assert client.get("/api/v1/products/999").status_code == 404

    def test_price_endpoint_unknown_product(self, client, mock_pricing_repo):
        with patch('storefront.services.pricing_service.ProductRepository') as mock_repo_cls:
            mock_repo_cls.return_value.find_by_id.return_value = None

            response = client.get("/api/v1/products/999/price?quantity=2")

        assert response.status_code == 404

    def test_create_requires_authentication(self, client):
        response = client.post("/api/v1/products/", json={"name": "Hammer", "price": 12})

        assert response.status_code == 401

    @patch('storefront.api.products.refresh_statistics_after_write')
    @patch('storefront.api.products.ProductRepository')
    def test_admin_create_refreshes_stats(self, mock_repo_cls, mock_refresh, admin_client, sample_product):
        mock_repo_cls.return_value.create.return_value = sample_product

        response = admin_client.post("/api/v1/products/", json={"name": "Drill", "price": 100, "category": "TOOLS"})

        assert response.status_code == 201
        payload = mock_repo_cls.return_value.create.call_args[0][0]
        assert payload.category == "Tools"
        mock_refresh.assert_called_once()


class TestReviews:

    @patch('storefront.api.products.ReviewRepository')
    @patch('storefront.api.products.ProductRepository')
    def test_duplicate_review_conflict(self, mock_product_cls, mock_review_cls, customer_client, sample_product):
        mock_product_cls.return_value.find_by_id.return_value = sample_product
        mock_review_cls.return_value.create.return_value = None

        response = customer_client.post("/api/v1/products/1/reviews", json={"rating": 5})

        assert response.status_code == 409

    def test_rating_out_of_range(self, customer_client):
        response = customer_client.post("/api/v1/products/1/reviews", json={"rating": 6})

        assert response.status_code == 422

    @patch('storefront.api.reviews.ReviewRepository')
    def test_cannot_delete_someone_elses_review(self, mock_review_cls, customer_client):
        mock_review_cls.return_value.find_by_id.return_value = Review(
            id=3, product_id=1, user_id="someone-else", rating=2
        )

        response = customer_client.delete("/api/v1/reviews/3")

        assert response.status_code == 403
        mock_review_cls.return_value.delete.assert_not_called()


class TestCart:

    @patch('storefront.services.pricing_service.ProductRepository')
    @patch('storefront.api.cart.CartRepository')
    def test_cart_is_priced_for_tenant(self, mock_cart_cls, mock_product_cls, app, customer_client, tenant,
                                       sample_product, mock_pricing_repo):
        app.dependency_overrides[get_current_tenant] = lambda: tenant
        mock_cart_cls.return_value.find_items.return_value = [
            CartItem(cart_id=3, product_id=1, quantity=2, name='Cordless Drill 18V', base_price=Decimal('100.00'))
        ]
        mock_product_cls.return_value.find_by_ids.return_value = {1: sample_product}
        mock_pricing_repo.find_default_discount.return_value = Decimal('10')

        response = customer_client.get("/api/v1/cart/")

        body = response.json()
        assert response.status_code == 200
        assert body['subtotal'] == 180.0
        assert body['data'][0]['price'] == 90.0
        assert body['data'][0]['line_total'] == 180.0

    @patch('storefront.api.cart.ProductRepository')
    def test_add_unknown_product(self, mock_product_cls, customer_client):
        mock_product_cls.return_value.find_by_id.return_value = None

        response = customer_client.post("/api/v1/cart/", json={"product_id": 42, "quantity": 1})

        assert response.status_code == 404

    def test_add_zero_quantity_rejected(self, customer_client):
        response = customer_client.post("/api/v1/cart/", json={"product_id": 1, "quantity": 0})

        assert response.status_code == 422
