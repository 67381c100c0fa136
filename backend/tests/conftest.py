"""
Pytest fixtures and configuration for Storefront backend tests

Shared fixtures for repository unit tests (mocked psycopg2 connection)
and API tests (TestClient with dependency overrides). No database needed.
"""
import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient

from storefront.core.auth import TokenUser, get_current_user, get_current_user_optional, require_admin
from storefront.core.tenancy import get_current_tenant
from storefront.domain.product import Product
from storefront.domain.tenant import Tenant


@pytest.fixture
def mock_db():
    """
    Provides (mock_conn, mock_cursor) wired like get_db_connection_dict()

    Usage:
        @patch('storefront.repositories.x.get_db_connection_dict')
        def test_something(self, mock_get_conn, mock_db):
            mock_conn, mock_cursor = mock_db
            mock_get_conn.return_value = mock_conn
    """
    mock_conn = MagicMock()
    mock_cursor = MagicMock()
    mock_conn.cursor.return_value = mock_cursor
    return mock_conn, mock_cursor


@pytest.fixture
def sample_product_row():
    """A products row as returned by RealDictCursor"""
    return {
        'id': 1,
        'sku': 'DRL-18V',
        'name': 'Cordless Drill 18V',
        'description': 'Brushless drill with two batteries',
        'category': 'Tools',
        'price': Decimal('100.00'),
        'stock': 25,
        'image': 'https://cdn.example.com/drill.png',
        'rating': Decimal('4.50'),
        'review_count': 2,
        'created_at': datetime(2025, 1, 10, 9, 30),
        'updated_at': None
    }


@pytest.fixture
def sample_product(sample_product_row):
    return Product(**sample_product_row)


@pytest.fixture
def tenant():
    return Tenant(id=7, name="Acme Supply", logo_url="https://cdn.example.com/acme.png", brand_color="#ff6600")


@pytest.fixture
def customer():
    return TokenUser(id="user-1", email="buyer@example.com", name="Buyer", role="customer")


@pytest.fixture
def admin_user():
    return TokenUser(id="admin-1", email="admin@example.com", name="Admin", role="admin")


@pytest.fixture
def app():
    from storefront.main import app as fastapi_app
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """Anonymous client, no tenant"""
    app.dependency_overrides[get_current_tenant] = lambda: None
    with patch('storefront.core.stats_cache.stats_cache.refresh_after_write'):
        yield TestClient(app)


@pytest.fixture
def customer_client(app, customer):
    """Signed-in customer, no tenant"""
    app.dependency_overrides[get_current_user] = lambda: customer
    app.dependency_overrides[get_current_user_optional] = lambda: customer
    app.dependency_overrides[get_current_tenant] = lambda: None
    with patch('storefront.core.stats_cache.stats_cache.refresh_after_write'):
        yield TestClient(app)


@pytest.fixture
def admin_client(app, admin_user):
    """Signed-in admin, no tenant"""
    app.dependency_overrides[get_current_user] = lambda: admin_user
    app.dependency_overrides[require_admin] = lambda: admin_user
    app.dependency_overrides[get_current_tenant] = lambda: None
    with patch('storefront.core.stats_cache.stats_cache.refresh_after_write'):
        yield TestClient(app)
