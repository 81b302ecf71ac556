"""
Consumer app checkout for delivery and pickup.
- POST /api/booking/confirm: delivery order
- POST /api/pickup/order: pickup order

Items are priced server-side; any client total is ignored.
"""

from typing import Any

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from rest_api.routers._common import get_broadcaster
from rest_api.services.domain import FulfillmentService
from rest_api.services.domain.pricing_service import money_str
from shared.infrastructure.db import get_db
from shared.infrastructure.events import EventBroadcaster
from shared.security.rate_limit import PUBLIC_ORDER_LIMIT, limiter
from shared.utils.schemas import DeliveryBookingRequest, PickupOrderRequest

router = APIRouter(prefix="/api", tags=["booking"])


@router.post("/booking/confirm")
@limiter.limit(PUBLIC_ORDER_LIMIT)
async def confirm_delivery_booking(
    request: Request,
    body: DeliveryBookingRequest,
    db: Session = Depends(get_db),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
) -> dict[str, Any]:
    order = FulfillmentService(db, broadcaster).create_delivery(body)
    return {
        "success": True,
        "order_id": order.id,
        "status": order.status,
        "total_amount": money_str(order.total_amount),
        "message": "Order placed successfully",
    }


@router.post("/pickup/order")
@limiter.limit(PUBLIC_ORDER_LIMIT)
async def place_pickup_order(
    request: Request,
    body: PickupOrderRequest,
    db: Session = Depends(get_db),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
) -> dict[str, Any]:
    order = FulfillmentService(db, broadcaster).create_pickup(body)
    return {
        "success": True,
        "order_id": order.id,
        "status": order.status,
        "pickup_reference": order.pickup_reference,
        "total_amount": money_str(order.total_amount),
        "message": "Pickup order placed successfully",
    }
