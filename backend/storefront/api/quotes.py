"""
Quotes API Endpoints
Shoppers ask for a price on a quantity of a product
"""
from fastapi import APIRouter, HTTPException, Depends, BackgroundTasks, status

from storefront.core.auth import TokenUser, get_current_user
from storefront.core.exceptions import ProductNotFoundError
from storefront.core.stats_cache import refresh_statistics_after_write
from storefront.domain.quote import QuoteCreate
from storefront.repositories.quote_repository import QuoteRepository

router = APIRouter()


@router.post("/", status_code=status.HTTP_201_CREATED)
async def request_quote(
    payload: QuoteCreate,
    background_tasks: BackgroundTasks,
    user: TokenUser = Depends(get_current_user)
):
    try:
        quote = QuoteRepository().create(user.id, payload)
        refresh_statistics_after_write(background_tasks)

        return {
            "status": "success",
            "data": quote.to_dict()
        }

    except ProductNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error requesting quote: {str(e)}")


@router.get("/")
async def get_my_quotes(user: TokenUser = Depends(get_current_user)):
    try:
        quotes, total = QuoteRepository().find_all(requester_id=user.id, limit=200)

        return {
            "status": "success",
            "total": total,
            "data": [quote.to_dict() for quote in quotes]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching quotes: {str(e)}")
