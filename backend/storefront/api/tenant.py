"""
Tenant API Endpoints
Branding for the storefront the request was served under
"""
from fastapi import APIRouter, Depends
from typing import Optional

from storefront.core.tenancy import get_current_tenant
from storefront.domain.tenant import Tenant

router = APIRouter()


@router.get("/")
async def get_tenant(tenant: Optional[Tenant] = Depends(get_current_tenant)):
    """
    Resolved tenant branding (id, name, logo_url, brand_color)

    data is null when the host does not belong to any distributor.
    """
    return {
        "status": "success",
        "data": tenant.model_dump() if tenant else None
    }
