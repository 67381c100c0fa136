"""
Tenant Service
Resolves which distributor (tenant) a request belongs to from its host

Resolution order:
1. Distributor email domain equals the host (with or without "www.")
2. Distributor name contains the host's subdomain label
3. Verified custom domain equals the host

An unresolved host is not an error: callers get None and price at base.
"""
import logging
from typing import Optional

import psycopg2

from storefront.core.config import settings
from storefront.domain.tenant import Tenant
from storefront.repositories.tenant_repository import TenantRepository

logger = logging.getLogger(__name__)


def normalize_host(host: Optional[str]) -> str:
    """Strip the port, trim and lowercase. "Example.COM:3000" -> "example.com" """
    if not host:
        return ""
    return host.strip().split(":")[0].strip().lower()


def extract_subdomain(host_only: str, local_suffix: str = "localhost") -> Optional[str]:
    """
    Leading label that may name a tenant

    acme.shop.com -> acme, acme.localhost -> acme, shop.com -> None.
    A leading "www" is never a tenant label.
    """
    if not host_only:
        return None

    parts = host_only.split(".")
    if len(parts) > 2 or (len(parts) == 2 and parts[1] == local_suffix):
        label = parts[0]
        if label and label != "www":
            return label
    return None


class TenantResolver:
    """
    Host -> Tenant, fail-open on database errors
    """

    def __init__(self, repository: Optional[TenantRepository] = None, local_suffix: Optional[str] = None):
        self.repository = repository or TenantRepository()
        self.local_suffix = local_suffix or settings.TENANT_LOCAL_SUFFIX

    def resolve(self, host: Optional[str]) -> Optional[Tenant]:
        host_only = normalize_host(host)
        if not host_only:
            return None

        try:
            return self._resolve(host_only)
        except psycopg2.Error as e:
            logger.warning(f"Tenant lookup failed for host '{host_only}', continuing without tenant: {e}")
            return None

    def _resolve(self, host_only: str) -> Optional[Tenant]:
        candidates = [host_only]
        if host_only.startswith("www."):
            candidates.append(host_only[len("www."):])

        tenant = self.repository.find_by_email_domains(candidates)
        if tenant:
            logger.debug(f"Host '{host_only}' matched email domain of tenant {tenant.id}")
            return tenant

        subdomain = extract_subdomain(host_only, self.local_suffix)
        if subdomain:
            tenant = self.repository.find_by_name_fragment(subdomain)
            if tenant:
                logger.debug(f"Subdomain '{subdomain}' matched tenant {tenant.id}")
                return tenant

        tenant = self.repository.find_by_verified_domain(host_only)
        if tenant:
            logger.debug(f"Host '{host_only}' matched verified domain of tenant {tenant.id}")
        return tenant
