"""
Distributors API Endpoints (admin only)
Distributor profiles, discounts, B2B custom prices and custom domains
"""
from fastapi import APIRouter, HTTPException, Depends, BackgroundTasks, status

from storefront.core.auth import TokenUser, require_admin
from storefront.core.stats_cache import refresh_statistics_after_write
from storefront.domain.pricing import CategoryDiscountUpsert, DefaultDiscountUpdate, DistributorPriceUpdate
from storefront.domain.product import normalize_category
from storefront.domain.tenant import DistributorCreate, DistributorUpdate, DomainCreate, DomainStatusUpdate
from storefront.repositories.pricing_repository import PricingRepository
from storefront.repositories.product_repository import ProductRepository
from storefront.repositories.tenant_repository import TenantRepository

router = APIRouter()


def _require_distributor(repo: TenantRepository, distributor_id: int, include_domains: bool = False):
    distributor = repo.find_by_id(distributor_id, include_domains=include_domains)
    if not distributor:
        raise HTTPException(status_code=404, detail=f"Distributor {distributor_id} not found")
    return distributor


# =============================================================================
# Distributors
# =============================================================================

@router.get("/")
async def list_distributors(user: TokenUser = Depends(require_admin)):
    try:
        distributors = TenantRepository().find_all()

        return {
            "status": "success",
            "count": len(distributors),
            "data": [d.to_dict() for d in distributors]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching distributors: {str(e)}")


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_distributor(
    payload: DistributorCreate,
    background_tasks: BackgroundTasks,
    user: TokenUser = Depends(require_admin)
):
    try:
        distributor = TenantRepository().create(payload)
        refresh_statistics_after_write(background_tasks)

        return {
            "status": "success",
            "data": distributor.to_dict()
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating distributor: {str(e)}")


@router.get("/{distributor_id}")
async def get_distributor(distributor_id: int, user: TokenUser = Depends(require_admin)):
    """Distributor with its domains and category discounts"""
    try:
        distributor = _require_distributor(TenantRepository(), distributor_id, include_domains=True)
        category_discounts = PricingRepository().find_category_discounts(distributor_id)

        data = distributor.to_dict()
        data['category_discounts'] = [c.to_dict() for c in category_discounts]

        return {
            "status": "success",
            "data": data
        }

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching distributor: {str(e)}")


@router.put("/{distributor_id}")
async def update_distributor(
    distributor_id: int,
    payload: DistributorUpdate,
    user: TokenUser = Depends(require_admin)
):
    try:
        distributor = TenantRepository().update(distributor_id, payload)
        if not distributor:
            raise HTTPException(status_code=404, detail=f"Distributor {distributor_id} not found")

        return {
            "status": "success",
            "data": distributor.to_dict()
        }

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating distributor: {str(e)}")


@router.put("/{distributor_id}/default-discount")
async def update_default_discount(
    distributor_id: int,
    payload: DefaultDiscountUpdate,
    background_tasks: BackgroundTasks,
    user: TokenUser = Depends(require_admin)
):
    """Distributor-wide percent off base price (0..100, null clears it)"""
    try:
        distributor = TenantRepository().update_default_discount(
            distributor_id, payload.default_discount_percent
        )
        if not distributor:
            raise HTTPException(status_code=404, detail=f"Distributor {distributor_id} not found")

        refresh_statistics_after_write(background_tasks)

        return {
            "status": "success",
            "data": distributor.to_dict()
        }

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating default discount: {str(e)}")


# =============================================================================
# Category discounts
# =============================================================================

@router.get("/{distributor_id}/category-discounts")
async def list_category_discounts(distributor_id: int, user: TokenUser = Depends(require_admin)):
    try:
        discounts = PricingRepository().find_category_discounts(distributor_id)

        return {
            "status": "success",
            "data": [d.to_dict() for d in discounts]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching category discounts: {str(e)}")


@router.post("/{distributor_id}/category-discounts")
async def upsert_category_discount(
    distributor_id: int,
    payload: CategoryDiscountUpsert,
    background_tasks: BackgroundTasks,
    user: TokenUser = Depends(require_admin)
):
    try:
        _require_distributor(TenantRepository(), distributor_id)

        discount = PricingRepository().upsert_category_discount(
            distributor_id,
            normalize_category(payload.category),
            payload.discount_percent
        )
        refresh_statistics_after_write(background_tasks)

        return {
            "status": "success",
            "data": discount.to_dict()
        }

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error saving category discount: {str(e)}")


@router.delete("/{distributor_id}/category-discounts/{category}")
async def delete_category_discount(
    distributor_id: int,
    category: str,
    background_tasks: BackgroundTasks,
    user: TokenUser = Depends(require_admin)
):
    try:
        if not PricingRepository().delete_category_discount(distributor_id, category):
            raise HTTPException(status_code=404, detail=f"No discount for category '{category}'")

        refresh_statistics_after_write(background_tasks)

        return {
            "status": "success",
            "message": f"Category discount '{category}' deleted"
        }

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting category discount: {str(e)}")


# =============================================================================
# B2B custom prices
# =============================================================================

@router.get("/{distributor_id}/pricing")
async def list_distributor_prices(distributor_id: int, user: TokenUser = Depends(require_admin)):
    try:
        prices = PricingRepository().find_distributor_prices(distributor_id)

        return {
            "status": "success",
            "count": len(prices),
            "data": [p.to_dict() for p in prices]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching distributor prices: {str(e)}")


@router.get("/{distributor_id}/pricing/{product_id}")
async def get_distributor_price(
    distributor_id: int,
    product_id: int,
    user: TokenUser = Depends(require_admin)
):
    try:
        price = PricingRepository().find_distributor_price(product_id, distributor_id)
        if not price:
            raise HTTPException(status_code=404, detail=f"No custom price for product {product_id}")

        return {
            "status": "success",
            "data": price.to_dict()
        }

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching distributor price: {str(e)}")


@router.put("/{distributor_id}/pricing/{product_id}")
async def set_distributor_price(
    distributor_id: int,
    product_id: int,
    payload: DistributorPriceUpdate,
    background_tasks: BackgroundTasks,
    user: TokenUser = Depends(require_admin)
):
    """
    Set the custom price and optional quantity tiers for a product

    Tiers must be ordered by min_qty and non-overlapping. Prices above the
    product's base price are refused unless allow_markup is true.
    """
    try:
        _require_distributor(TenantRepository(), distributor_id)

        product = ProductRepository().find_by_id(product_id)
        if not product:
            raise HTTPException(status_code=404, detail=f"Product {product_id} not found")

        if not payload.allow_markup and payload.highest_price() > product.price:
            raise HTTPException(
                status_code=400,
                detail=(
                    f"Custom price {payload.highest_price()} exceeds base price {product.price}; "
                    f"send allow_markup=true to allow it"
                )
            )

        price = PricingRepository().upsert_distributor_price(
            product_id,
            distributor_id,
            payload.custom_price,
            payload.discount_tiers
        )
        refresh_statistics_after_write(background_tasks)

        return {
            "status": "success",
            "data": price.to_dict()
        }

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error saving distributor price: {str(e)}")


@router.delete("/{distributor_id}/pricing/{product_id}")
async def delete_distributor_price(
    distributor_id: int,
    product_id: int,
    background_tasks: BackgroundTasks,
    user: TokenUser = Depends(require_admin)
):
    try:
        if not PricingRepository().delete_distributor_price(product_id, distributor_id):
            raise HTTPException(status_code=404, detail=f"No custom price for product {product_id}")

        refresh_statistics_after_write(background_tasks)

        return {
            "status": "success",
            "message": f"Custom price for product {product_id} deleted"
        }

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting distributor price: {str(e)}")


# =============================================================================
# Custom domains
# =============================================================================

@router.get("/{distributor_id}/domains")
async def list_domains(distributor_id: int, user: TokenUser = Depends(require_admin)):
    try:
        domains = TenantRepository().find_domains(distributor_id)

        return {
            "status": "success",
            "data": [d.model_dump(mode="json") for d in domains]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching domains: {str(e)}")


@router.post("/{distributor_id}/domains", status_code=status.HTTP_201_CREATED)
async def add_domain(
    distributor_id: int,
    payload: DomainCreate,
    user: TokenUser = Depends(require_admin)
):
    """Register a custom domain; it stays pending until verified"""
    try:
        repo = TenantRepository()
        _require_distributor(repo, distributor_id)

        domain = repo.add_domain(distributor_id, payload.domain)
        if domain is None:
            raise HTTPException(status_code=400, detail=f"Domain '{payload.domain}' already registered")

        return {
            "status": "success",
            "data": domain.model_dump(mode="json")
        }

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error adding domain: {str(e)}")


@router.delete("/{distributor_id}/domains/{domain_id}")
async def delete_domain(
    distributor_id: int,
    domain_id: int,
    user: TokenUser = Depends(require_admin)
):
    try:
        if not TenantRepository().delete_domain(distributor_id, domain_id):
            raise HTTPException(status_code=404, detail=f"Domain {domain_id} not found")

        return {
            "status": "success",
            "message": f"Domain {domain_id} deleted"
        }

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting domain: {str(e)}")


@router.patch("/{distributor_id}/domains/{domain_id}/status")
async def update_domain_status(
    distributor_id: int,
    domain_id: int,
    payload: DomainStatusUpdate,
    user: TokenUser = Depends(require_admin)
):
    """Record an external verification outcome; only verified domains resolve tenants"""
    try:
        domain = TenantRepository().update_domain_status(
            distributor_id, domain_id, payload.status, payload.details
        )
        if not domain:
            raise HTTPException(status_code=404, detail=f"Domain {domain_id} not found")

        return {
            "status": "success",
            "data": domain.model_dump(mode="json")
        }

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating domain status: {str(e)}")
