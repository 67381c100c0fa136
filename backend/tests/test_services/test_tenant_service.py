"""
Unit tests for host normalization and tenant resolution order
"""
import pytest
from unittest.mock import MagicMock

import psycopg2

from storefront.domain.tenant import Tenant
from storefront.services.tenant_service import TenantResolver, extract_subdomain, normalize_host

ACME = Tenant(id=7, name="Acme Supply")


class TestNormalizeHost:

    def test_strips_port_and_lowercases(self):
        assert normalize_host("Example.COM:3000") == "example.com"

    def test_trims_whitespace(self):
        assert normalize_host("  Shop.Acme.com ") == "shop.acme.com"

    @pytest.mark.parametrize("host", [None, "", "   "])
    def test_empty(self, host):
        assert normalize_host(host) == ""


class TestExtractSubdomain:

    @pytest.mark.parametrize("host,expected", [
        ("acme.shop.com", "acme"),
        ("acme.eu.shop.com", "acme"),
        ("acme.localhost", "acme"),
        ("shop.com", None),
        ("localhost", None),
        ("www.shop.com", None),
        ("", None),
    ])
    def test_labels(self, host, expected):
        assert extract_subdomain(host) == expected

    def test_custom_local_suffix(self):
        assert extract_subdomain("acme.test", local_suffix="test") == "acme"
        assert extract_subdomain("acme.test") is None


@pytest.fixture
def repo():
    repo = MagicMock()
    repo.find_by_email_domains.return_value = None
    repo.find_by_name_fragment.return_value = None
    repo.find_by_verified_domain.return_value = None
    return repo


class TestTenantResolver:

    def test_email_domain_match_first(self, repo):
        repo.find_by_email_domains.return_value = ACME

        tenant = TenantResolver(repo).resolve("ACME.com:443")

        assert tenant == ACME
        repo.find_by_email_domains.assert_called_once_with(["acme.com"])
        repo.find_by_name_fragment.assert_not_called()
        repo.find_by_verified_domain.assert_not_called()

    def test_www_host_also_tries_bare_domain(self, repo):
        TenantResolver(repo).resolve("www.acme.com")

        repo.find_by_email_domains.assert_called_once_with(["www.acme.com", "acme.com"])
        # "www" is not a tenant label
        repo.find_by_name_fragment.assert_not_called()

    def test_subdomain_matches_name(self, repo):
        repo.find_by_name_fragment.return_value = ACME

        tenant = TenantResolver(repo).resolve("acme.shop.com")

        assert tenant == ACME
        repo.find_by_name_fragment.assert_called_once_with("acme")
        repo.find_by_verified_domain.assert_not_called()

    def test_local_development_subdomain(self, repo):
        repo.find_by_name_fragment.return_value = ACME

        assert TenantResolver(repo, local_suffix="localhost").resolve("acme.localhost:3000") == ACME

    def test_verified_domain_last(self, repo):
        repo.find_by_verified_domain.return_value = ACME

        tenant = TenantResolver(repo).resolve("store.acme-tools.io")

        assert tenant == ACME
        repo.find_by_name_fragment.assert_called_once_with("store")
        repo.find_by_verified_domain.assert_called_once_with("store.acme-tools.io")

    def test_unresolved_host_is_none(self, repo):
        assert TenantResolver(repo).resolve("unknown.com") is None

    def test_empty_host_skips_lookups(self, repo):
        assert TenantResolver(repo).resolve("") is None
        repo.find_by_email_domains.assert_not_called()

    def test_database_error_fails_open(self, repo):
        repo.find_by_email_domains.side_effect = psycopg2.OperationalError("timeout")

        assert TenantResolver(repo).resolve("acme.com") is None
