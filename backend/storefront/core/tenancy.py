"""
Tenant dependency for FastAPI routes

Usage:
    @router.get("/")
    async def list_products(tenant: Optional[Tenant] = Depends(get_current_tenant)):
        ...
"""
import logging
from typing import Optional

from fastapi import Request

from storefront.domain.tenant import Tenant
from storefront.services.tenant_service import TenantResolver

logger = logging.getLogger(__name__)

TENANT_HOST_HEADER = "x-tenant-host"


def get_tenant_host(request: Request) -> str:
    """Host the storefront was served under; a proxy may forward it in x-tenant-host"""
    return request.headers.get(TENANT_HOST_HEADER) or request.headers.get("host") or ""


def get_current_tenant(request: Request) -> Optional[Tenant]:
    """Resolved tenant for the request, or None. Never raises."""
    host = get_tenant_host(request)
    try:
        return TenantResolver().resolve(host)
    except Exception as e:
        logger.error(f"Unexpected error resolving tenant for '{host}': {e}")
        return None
