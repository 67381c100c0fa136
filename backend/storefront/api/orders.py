"""
Orders API Endpoints
Checkout and the shopper's own orders
"""
from fastapi import APIRouter, HTTPException, Depends, BackgroundTasks, status
from typing import Optional

from storefront.core.auth import TokenUser, get_current_user
from storefront.core.exceptions import InsufficientStockError, ProductNotFoundError
from storefront.core.stats_cache import refresh_statistics_after_write
from storefront.core.tenancy import get_current_tenant
from storefront.domain.order import CheckoutRequest
from storefront.domain.tenant import Tenant
from storefront.repositories.order_repository import OrderRepository
from storefront.services.order_service import OrderService

router = APIRouter()


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: CheckoutRequest,
    background_tasks: BackgroundTasks,
    user: TokenUser = Depends(get_current_user),
    tenant: Optional[Tenant] = Depends(get_current_tenant)
):
    """
    Place an order

    Prices are recomputed server-side for the tenant; stock is checked and
    decremented and the cart cleared in the same transaction.
    payment_reference is the gateway's id, recorded as-is.
    """
    try:
        order = OrderService().place_order(user, tenant, payload)
        refresh_statistics_after_write(background_tasks)

        return {
            "status": "success",
            "data": order.to_dict()
        }

    except ProductNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InsufficientStockError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating order: {str(e)}")


@router.get("/")
async def get_my_orders(user: TokenUser = Depends(get_current_user)):
    try:
        orders = OrderRepository().find_by_user(user.id)

        return {
            "status": "success",
            "count": len(orders),
            "data": [order.to_dict() for order in orders]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching orders: {str(e)}")


@router.get("/{order_id}")
async def get_order(order_id: int, user: TokenUser = Depends(get_current_user)):
    """Order detail; visible to its buyer and to admins"""
    try:
        order = OrderRepository().find_by_id(order_id)
        if not order or (order.user_id != user.id and not user.is_admin):
            raise HTTPException(status_code=404, detail=f"Order {order_id} not found")

        return {
            "status": "success",
            "data": order.to_dict()
        }

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching order: {str(e)}")
