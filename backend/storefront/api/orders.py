"""
Orders API Endpoints
Customer order tracking
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field

from storefront.core.dependencies import get_order_queries
from storefront.core.rate_limit import rate_limit
from storefront.services.order_query_service import OrderQueryService

router = APIRouter()


class TrackOrderRequest(BaseModel):
    order_id: str = Field(..., min_length=1, max_length=36)
    email: EmailStr


@router.post("/orders/track")
def track_order(
    body: TrackOrderRequest,
    queries: OrderQueryService = Depends(get_order_queries),
    _: None = Depends(rate_limit("default")),
):
    """Order status for the customer; email must match the order"""
    order = queries.track(body.order_id.strip(), str(body.email))
    return {"status": "success", "data": order.to_public_dict()}
