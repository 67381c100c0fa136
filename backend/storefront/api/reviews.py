"""
Reviews API Endpoints
Listing and posting live under /products/{id}/reviews; this router deletes.
"""
from fastapi import APIRouter, HTTPException, Depends

from storefront.core.auth import TokenUser, get_current_user
from storefront.repositories.review_repository import ReviewRepository

router = APIRouter()


@router.delete("/{review_id}")
async def delete_review(review_id: int, user: TokenUser = Depends(get_current_user)):
    """Authors delete their own reviews; admins delete any"""
    try:
        repo = ReviewRepository()
        review = repo.find_by_id(review_id)
        if not review:
            raise HTTPException(status_code=404, detail=f"Review {review_id} not found")

        if review.user_id != user.id and not user.is_admin:
            raise HTTPException(status_code=403, detail="You can only delete your own reviews")

        repo.delete(review_id)

        return {
            "status": "success",
            "message": f"Review {review_id} deleted"
        }

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting review: {str(e)}")
