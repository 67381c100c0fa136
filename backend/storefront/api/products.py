"""
Products API Endpoints
Catalog browsing with tenant pricing, admin catalog management and reviews
"""
from fastapi import APIRouter, HTTPException, Query, Depends, BackgroundTasks, status
from typing import Optional

from storefront.core.auth import TokenUser, get_current_user, require_admin
from storefront.core.exceptions import ProductNotFoundError
from storefront.core.stats_cache import refresh_statistics_after_write
from storefront.core.tenancy import get_current_tenant
from storefront.domain.product import Product, ProductCreate, ProductUpdate
from storefront.domain.shopper import ReviewCreate
from storefront.domain.tenant import Tenant
from storefront.repositories.product_repository import ProductRepository
from storefront.repositories.review_repository import ReviewRepository
from storefront.services.pricing_service import PricingService

router = APIRouter()


def _priced_product(product: Product, resolution) -> dict:
    data = product.to_dict()
    data.update({
        'base_price': float(resolution.base_price),
        'price': float(resolution.price),
        'pricing_rule': resolution.rule.value,
        'discount_percent': float(resolution.discount_percent) if resolution.discount_percent is not None else None,
        'discount_tiers': [t.to_dict() for t in resolution.discount_tiers] if resolution.discount_tiers else None
    })
    return data


@router.get("/")
async def get_products(
    category: Optional[str] = Query(None, description="Filter by category"),
    search: Optional[str] = Query(None, description="Search by name or SKU"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    tenant: Optional[Tenant] = Depends(get_current_tenant)
):
    """
    Get products with optional filters

    Every product carries base_price and the tenant's effective price.
    """
    try:
        repo = ProductRepository()
        products, total = repo.find_all(
            category=category,
            search=search,
            limit=limit,
            offset=offset
        )

        resolutions = PricingService(product_repository=repo).price_products(
            products, tenant.id if tenant else None
        )
        products_data = [
            _priced_product(product, resolution)
            for product, resolution in zip(products, resolutions)
        ]

        return {
            "status": "success",
            "total": total,
            "limit": limit,
            "offset": offset,
            "count": len(products),
            "data": products_data
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching products: {str(e)}")


@router.get("/{product_id}")
async def get_product(
    product_id: int,
    quantity: int = Query(1, ge=1, description="Quantity used to pick a discount tier"),
    tenant: Optional[Tenant] = Depends(get_current_tenant)
):
    """Single product with price, base_price, pricing_rule and the tenant's tiers"""
    try:
        repo = ProductRepository()
        product = repo.find_by_id(product_id)
        if not product:
            raise HTTPException(status_code=404, detail=f"Product {product_id} not found")

        resolution = PricingService(product_repository=repo).price_product(
            product, tenant.id if tenant else None, quantity
        )

        return {
            "status": "success",
            "data": _priced_product(product, resolution)
        }

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching product: {str(e)}")


@router.get("/{product_id}/price")
async def get_product_price(
    product_id: int,
    quantity: int = Query(1, ge=1),
    tenant: Optional[Tenant] = Depends(get_current_tenant)
):
    """Price resolution details for a quantity"""
    try:
        resolution = PricingService().resolve_price(
            product_id, tenant.id if tenant else None, quantity
        )
        return {
            "status": "success",
            "data": resolution.to_dict()
        }

    except ProductNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error resolving price: {str(e)}")


# =============================================================================
# Admin catalog management
# =============================================================================

@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_product(
    payload: ProductCreate,
    background_tasks: BackgroundTasks,
    user: TokenUser = Depends(require_admin)
):
    try:
        product = ProductRepository().create(payload)
        refresh_statistics_after_write(background_tasks)

        return {
            "status": "success",
            "data": product.to_dict()
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating product: {str(e)}")


@router.put("/{product_id}")
async def update_product(
    product_id: int,
    payload: ProductUpdate,
    background_tasks: BackgroundTasks,
    user: TokenUser = Depends(require_admin)
):
    try:
        product = ProductRepository().update(product_id, payload)
        if not product:
            raise HTTPException(status_code=404, detail=f"Product {product_id} not found")

        refresh_statistics_after_write(background_tasks)

        return {
            "status": "success",
            "data": product.to_dict()
        }

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating product: {str(e)}")


@router.delete("/{product_id}")
async def delete_product(
    product_id: int,
    background_tasks: BackgroundTasks,
    user: TokenUser = Depends(require_admin)
):
    try:
        if not ProductRepository().delete(product_id):
            raise HTTPException(status_code=404, detail=f"Product {product_id} not found")

        refresh_statistics_after_write(background_tasks)

        return {
            "status": "success",
            "message": f"Product {product_id} deleted"
        }

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting product: {str(e)}")


# =============================================================================
# Reviews
# =============================================================================

@router.get("/{product_id}/reviews")
async def get_product_reviews(product_id: int):
    """Reviews newest first, with the average rating"""
    try:
        reviews, average = ReviewRepository().find_by_product(product_id)

        return {
            "status": "success",
            "average_rating": float(average) if average is not None else None,
            "count": len(reviews),
            "data": [review.to_dict() for review in reviews]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching reviews: {str(e)}")


@router.post("/{product_id}/reviews", status_code=status.HTTP_201_CREATED)
async def create_product_review(
    product_id: int,
    payload: ReviewCreate,
    user: TokenUser = Depends(get_current_user)
):
    """One review per user per product; a second one is a 409"""
    try:
        if not ProductRepository().find_by_id(product_id):
            raise HTTPException(status_code=404, detail=f"Product {product_id} not found")

        review = ReviewRepository().create(product_id, user.id, payload)
        if review is None:
            raise HTTPException(status_code=409, detail="You have already reviewed this product")

        return {
            "status": "success",
            "data": review.to_dict()
        }

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating review: {str(e)}")
