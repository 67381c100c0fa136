"""
Wishlist API Endpoints
"""
from fastapi import APIRouter, HTTPException, Depends

from storefront.core.auth import TokenUser, get_current_user
from storefront.repositories.product_repository import ProductRepository
from storefront.repositories.wishlist_repository import WishlistRepository

router = APIRouter()


@router.get("/")
async def get_wishlist(user: TokenUser = Depends(get_current_user)):
    try:
        items = WishlistRepository().find_items(user.id)

        return {
            "status": "success",
            "count": len(items),
            "data": [item.to_dict() for item in items]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching wishlist: {str(e)}")


@router.post("/{product_id}")
async def add_to_wishlist(product_id: int, user: TokenUser = Depends(get_current_user)):
    """Idempotent: adding a product twice is not an error"""
    try:
        if not ProductRepository().find_by_id(product_id):
            raise HTTPException(status_code=404, detail=f"Product {product_id} not found")

        added = WishlistRepository().add(user.id, product_id)

        return {
            "status": "success",
            "added": added,
            "product_id": product_id
        }

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error adding to wishlist: {str(e)}")


@router.delete("/{product_id}")
async def remove_from_wishlist(product_id: int, user: TokenUser = Depends(get_current_user)):
    try:
        removed = WishlistRepository().remove(user.id, product_id)

        return {
            "status": "success",
            "removed": removed,
            "product_id": product_id
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error removing from wishlist: {str(e)}")
