"""
Cart API Endpoints
The signed-in shopper's cart, priced for the current tenant
"""
from fastapi import APIRouter, HTTPException, Depends, status
from typing import Optional

from storefront.core.auth import TokenUser, get_current_user
from storefront.core.tenancy import get_current_tenant
from storefront.domain.shopper import CartItemAdd, CartItemQuantity
from storefront.domain.tenant import Tenant
from storefront.repositories.cart_repository import CartRepository
from storefront.repositories.product_repository import ProductRepository
from storefront.services.pricing_service import PricingService

router = APIRouter()


@router.get("/")
async def get_cart(
    user: TokenUser = Depends(get_current_user),
    tenant: Optional[Tenant] = Depends(get_current_tenant)
):
    """
    Cart lines with price, base_price and line_total, plus the subtotal
    """
    try:
        items = CartRepository().find_items(user.id)

        resolutions = PricingService().resolve_prices(
            [(item.product_id, item.quantity) for item in items],
            tenant.id if tenant else None
        )

        lines = []
        for item, resolution in zip(items, resolutions):
            lines.append({
                'product_id': item.product_id,
                'name': item.name,
                'image': item.image,
                'quantity': item.quantity,
                'base_price': float(resolution.base_price),
                'price': float(resolution.price),
                'pricing_rule': resolution.rule.value,
                'line_total': float(resolution.line_total)
            })

        subtotal = sum(r.line_total for r in resolutions)

        return {
            "status": "success",
            "count": len(lines),
            "subtotal": float(subtotal),
            "data": lines
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching cart: {str(e)}")


@router.post("/", status_code=status.HTTP_201_CREATED)
async def add_to_cart(
    payload: CartItemAdd,
    user: TokenUser = Depends(get_current_user)
):
    """Add a product; adding it again accumulates the quantity"""
    try:
        if not ProductRepository().find_by_id(payload.product_id):
            raise HTTPException(status_code=404, detail=f"Product {payload.product_id} not found")

        item = CartRepository().add_item(user.id, payload.product_id, payload.quantity)

        return {
            "status": "success",
            "data": item.model_dump()
        }

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error adding to cart: {str(e)}")


@router.put("/{product_id}")
async def update_cart_item(
    product_id: int,
    payload: CartItemQuantity,
    user: TokenUser = Depends(get_current_user)
):
    try:
        if not CartRepository().set_quantity(user.id, product_id, payload.quantity):
            raise HTTPException(status_code=404, detail=f"Product {product_id} is not in the cart")

        return {
            "status": "success",
            "data": {"product_id": product_id, "quantity": payload.quantity}
        }

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating cart: {str(e)}")


@router.delete("/{product_id}")
async def remove_cart_item(
    product_id: int,
    user: TokenUser = Depends(get_current_user)
):
    try:
        if not CartRepository().remove_item(user.id, product_id):
            raise HTTPException(status_code=404, detail=f"Product {product_id} is not in the cart")

        return {
            "status": "success",
            "message": f"Product {product_id} removed from cart"
        }

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error removing from cart: {str(e)}")
