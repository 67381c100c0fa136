"""
Admin API Endpoints
Order fulfilment, quote handling, user roles and the statistics dashboard (admin only)
"""
from fastapi import APIRouter, HTTPException, Query, Depends, BackgroundTasks
from typing import Optional

from storefront.core.auth import ROLE_HIERARCHY, TokenUser, require_admin
from storefront.core.exceptions import InvalidStateError, OrderNotFoundError, QuoteNotFoundError
from storefront.core.stats_cache import stats_cache, refresh_statistics_after_write
from storefront.domain.order import OrderStatus, OrderStatusUpdate
from storefront.domain.quote import QuoteStatus, QuoteUpdate
from storefront.domain.user import UserUpdate
from storefront.repositories.order_repository import OrderRepository
from storefront.repositories.quote_repository import QuoteRepository
from storefront.repositories.stats_repository import StatsRepository
from storefront.repositories.user_repository import UserRepository

router = APIRouter()


# =============================================================================
# Orders
# =============================================================================

@router.get("/orders")
async def list_orders(
    status: Optional[OrderStatus] = Query(None, description="Filter by order status"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user: TokenUser = Depends(require_admin)
):
    try:
        orders, total = OrderRepository().find_all(
            status=status.value if status else None,
            limit=limit,
            offset=offset
        )

        return {
            "status": "success",
            "total": total,
            "limit": limit,
            "offset": offset,
            "count": len(orders),
            "data": [order.to_dict() for order in orders]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching orders: {str(e)}")


@router.patch("/orders/{order_id}")
async def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    background_tasks: BackgroundTasks,
    user: TokenUser = Depends(require_admin)
):
    """
    Move an order to a new status

    Delivered and cancelled orders are final. Every change is written to
    the order's status history with the admin's id and optional note.
    """
    try:
        repo = OrderRepository()
        order = repo.update_status(order_id, payload.status, changed_by=user.id, note=payload.note)
        refresh_statistics_after_write(background_tasks)

        return {
            "status": "success",
            "data": order.to_dict(),
            "history": [change.to_dict() for change in repo.get_status_history(order_id)]
        }

    except OrderNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidStateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating order: {str(e)}")


@router.get("/orders/{order_id}/history")
async def get_order_history(order_id: int, user: TokenUser = Depends(require_admin)):
    try:
        history = OrderRepository().get_status_history(order_id)

        return {
            "status": "success",
            "data": [change.to_dict() for change in history]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching order history: {str(e)}")


# =============================================================================
# Quotes
# =============================================================================

@router.get("/quotes")
async def list_quotes(
    status: Optional[QuoteStatus] = Query(None, description="Filter by quote status"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user: TokenUser = Depends(require_admin)
):
    try:
        quotes, total = QuoteRepository().find_all(
            status=status.value if status else None,
            limit=limit,
            offset=offset
        )

        return {
            "status": "success",
            "total": total,
            "limit": limit,
            "offset": offset,
            "count": len(quotes),
            "data": [quote.to_dict() for quote in quotes]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching quotes: {str(e)}")


@router.get("/quotes/{quote_id}")
async def get_quote(quote_id: int, user: TokenUser = Depends(require_admin)):
    try:
        quote = QuoteRepository().find_by_id(quote_id)
        if not quote:
            raise HTTPException(status_code=404, detail=f"Quote {quote_id} not found")

        return {
            "status": "success",
            "data": quote.to_dict()
        }

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching quote: {str(e)}")


@router.patch("/quotes/{quote_id}")
async def update_quote(
    quote_id: int,
    payload: QuoteUpdate,
    background_tasks: BackgroundTasks,
    user: TokenUser = Depends(require_admin)
):
    """Set the quoted unit price, quantity or status (requested|quoted|rejected)"""
    try:
        quote = QuoteRepository().update(quote_id, payload)
        if not quote:
            raise HTTPException(status_code=404, detail=f"Quote {quote_id} not found")

        refresh_statistics_after_write(background_tasks)

        return {
            "status": "success",
            "data": quote.to_dict()
        }

    except HTTPException:
        raise
    except InvalidStateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating quote: {str(e)}")


@router.post("/quotes/{quote_id}/convert")
async def convert_quote(
    quote_id: int,
    background_tasks: BackgroundTasks,
    user: TokenUser = Depends(require_admin)
):
    """
    Convert a quote into a pending_payment order at the quoted price

    Rejected when the quote was already converted or has no price yet.
    """
    try:
        quote, order_id = QuoteRepository().convert_to_order(quote_id, converted_by=user.id)
        refresh_statistics_after_write(background_tasks)

        return {
            "status": "success",
            "order_id": order_id,
            "data": quote.to_dict()
        }

    except QuoteNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidStateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error converting quote: {str(e)}")


# =============================================================================
# Users
# =============================================================================

@router.get("/users")
async def list_users(
    role: Optional[str] = Query(None, description="Filter by role"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user: TokenUser = Depends(require_admin)
):
    """Users newest first, each with the distributor matched by email domain"""
    try:
        users, total = UserRepository().find_all(role=role, limit=limit, offset=offset)

        return {
            "status": "success",
            "total": total,
            "limit": limit,
            "offset": offset,
            "count": len(users),
            "data": [u.to_dict() for u in users]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching users: {str(e)}")


@router.patch("/users/{user_id}")
async def update_user(
    user_id: str,
    payload: UserUpdate,
    background_tasks: BackgroundTasks,
    user: TokenUser = Depends(require_admin)
):
    """Change a user's role and/or name"""
    try:
        if payload.role is not None and payload.role not in ROLE_HIERARCHY:
            raise HTTPException(status_code=400, detail="Invalid role")

        updated = UserRepository().update(user_id, payload)
        if not updated:
            raise HTTPException(status_code=404, detail=f"User {user_id} not found")

        # Role counts feed the dashboard
        refresh_statistics_after_write(background_tasks)

        return {
            "status": "success",
            "data": updated.to_dict()
        }

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating user: {str(e)}")


# =============================================================================
# Statistics
# =============================================================================

@router.get("/statistics")
async def get_statistics(user: TokenUser = Depends(require_admin)):
    """Dashboard aggregates, served from the short-TTL stats cache"""
    try:
        stats = stats_cache.get(StatsRepository().compute_statistics)

        return {
            "status": "success",
            "data": stats
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching statistics: {str(e)}")
