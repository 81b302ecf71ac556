"""
Customer dine-in ordering from a table QR code - POST /api/public/orders
No authentication; rate limited per client IP.
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from rest_api.repositories import get_vendor
from rest_api.routers._common import get_broadcaster
from rest_api.services.domain import OrderService
from rest_api.services.outputs import build_order_output
from shared.infrastructure.db import get_db
from shared.infrastructure.events import EventBroadcaster
from shared.security.rate_limit import PUBLIC_ORDER_LIMIT, limiter
from shared.utils.exceptions import VendorNotFoundError
from shared.utils.schemas import OrderOutput, PublicCreateOrderRequest

router = APIRouter(prefix="/api/public", tags=["public-orders"])


@router.post("/orders", response_model=OrderOutput, status_code=status.HTTP_201_CREATED)
@limiter.limit(PUBLIC_ORDER_LIMIT)
async def create_public_order(
    request: Request,
    body: PublicCreateOrderRequest,
    db: Session = Depends(get_db),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
) -> OrderOutput:
    """Order starts pending; the vendor accepts it from the dashboard."""
    if get_vendor(db, body.vendor_id) is None:
        raise VendorNotFoundError(body.vendor_id)

    service = OrderService(db, broadcaster)
    order = service.create(body.vendor_id, body)
    return build_order_output(service.get(order.id, order.vendor_id))
