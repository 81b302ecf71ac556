"""
Staff order endpoints - /api/orders/*
Thin router delegating to OrderService (dine-in) and FulfillmentService
(delivery, pickup). Endpoints that publish events are async so the
broadcaster is only touched from the event loop.
"""

from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from rest_api.repositories import OrderFilters, get_vendor
from rest_api.routers._common import (
    Pagination,
    get_broadcaster,
    get_pagination,
    is_captain_only,
    order_manager_context,
    staff_context,
    vendor_id_of,
)
from rest_api.services.domain import FulfillmentService, OrderService
from rest_api.services.domain.fulfillment_service import locate_order_type
from rest_api.services.notifications import STATUS_MESSAGES, SmsNotifier, get_notifier
from rest_api.services.outputs import OUTPUT_BUILDERS, build_order_output
from rest_api.services.receipt import format_receipt
from shared.config.constants import ORDER_STATUSES, OrderStatus, OrderType
from shared.infrastructure.db import get_db
from shared.infrastructure.events import EventBroadcaster
from shared.utils.exceptions import OrderNotFoundError, ValidationError
from shared.utils.schemas import (
    CreateOrderRequest,
    OrderOutput,
    OrderTypeLiteral,
    ReceiptOutput,
    UpdateOrderRequest,
    UpdateOrderStatusRequest,
)

router = APIRouter(prefix="/api/orders", tags=["orders"])

ALL_STATUSES = {s for statuses in ORDER_STATUSES.values() for s in statuses}


@router.post("", response_model=OrderOutput, status_code=status.HTTP_201_CREATED)
async def create_order(
    body: CreateOrderRequest,
    db: Session = Depends(get_db),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
    ctx: dict[str, Any] = Depends(staff_context),
) -> OrderOutput:
    """
    Place a dine-in order for one of the vendor's tables.
    Orders placed by a captain skip the pending step and go straight to the kitchen.
    """
    initial_status = OrderStatus.ACCEPTED if is_captain_only(ctx) else OrderStatus.PENDING
    service = OrderService(db, broadcaster)
    order = service.create(vendor_id_of(ctx), body, initial_status=initial_status)
    return build_order_output(service.get(order.id, order.vendor_id))


@router.get("", response_model=list[OrderOutput])
async def list_orders(
    order_type: OrderTypeLiteral = Query(default=OrderType.DINE_IN, alias="orderType"),
    status_filter: str | None = Query(default=None, alias="status"),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
    ctx: dict[str, Any] = Depends(staff_context),
) -> list[OrderOutput]:
    """
    List the vendor's orders of one family, newest first.
    Orders past acceptance that are missing a kitchen ticket get one here.
    """
    vendor_id = vendor_id_of(ctx)
    filters = OrderFilters(limit=pagination.limit, offset=pagination.offset, status=status_filter)

    if order_type == OrderType.DINE_IN:
        orders = OrderService(db, broadcaster).list_orders(vendor_id, filters)
    else:
        orders = FulfillmentService(db, broadcaster).list_orders(order_type, vendor_id, filters)
    build = OUTPUT_BUILDERS[order_type]
    return [build(order) for order in orders]


@router.get("/{order_id}", response_model=OrderOutput)
def get_order(
    order_id: int,
    order_type: OrderTypeLiteral | None = Query(default=None, alias="orderType"),
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(staff_context),
) -> OrderOutput:
    vendor_id = vendor_id_of(ctx)
    order_type = order_type or locate_order_type(db, order_id, vendor_id)
    if order_type is None:
        raise OrderNotFoundError(order_id, vendor_id=vendor_id)

    if order_type == OrderType.DINE_IN:
        order = OrderService(db).get(order_id, vendor_id)
    else:
        order = FulfillmentService(db).get(order_type, order_id, vendor_id)
    return OUTPUT_BUILDERS[order_type](order)


@router.put("/{order_id}", response_model=OrderOutput)
async def update_order(
    order_id: int,
    body: UpdateOrderRequest,
    db: Session = Depends(get_db),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
    ctx: dict[str, Any] = Depends(order_manager_context),
) -> OrderOutput:
    """Replace a dine-in order's items, optionally moving it to another table."""
    vendor_id = vendor_id_of(ctx)
    service = OrderService(db, broadcaster)
    service.update_items(order_id, vendor_id, body)
    return build_order_output(service.get(order_id, vendor_id))


@router.put("/{order_id}/status", response_model=OrderOutput)
async def update_order_status(
    order_id: int,
    body: UpdateOrderStatusRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
    notifier: SmsNotifier = Depends(get_notifier),
    ctx: dict[str, Any] = Depends(order_manager_context),
) -> OrderOutput:
    """
    Move an order to a new status. orderType selects the family; without it
    dine-in, delivery and pickup are tried in that order.
    """
    vendor_id = vendor_id_of(ctx)
    new_status = body.status.strip().lower()
    if new_status not in ALL_STATUSES:
        raise ValidationError(f"Invalid status '{body.status}'", status=body.status)

    order_type = body.order_type or locate_order_type(db, order_id, vendor_id)
    if order_type is None:
        raise OrderNotFoundError(order_id, vendor_id=vendor_id)

    if order_type == OrderType.DINE_IN:
        service = OrderService(db, broadcaster)
        service.update_status(order_id, vendor_id, new_status)
        order = service.get(order_id, vendor_id)
    else:
        fulfillment = FulfillmentService(db, broadcaster)
        fulfillment.update_status(order_type, order_id, vendor_id, new_status)
        order = fulfillment.get(order_type, order_id, vendor_id)

    if new_status in STATUS_MESSAGES and order.customer_phone:
        vendor = get_vendor(db, vendor_id)
        background_tasks.add_task(
            notifier.send_order_notification,
            order.customer_phone,
            new_status,
            vendor.restaurant_name if vendor else "the restaurant",
        )
    return OUTPUT_BUILDERS[order_type](order)


# =============================================================================
# Receipts
# =============================================================================


def _render_receipt(db: Session, order_id: int, vendor_id: int) -> str:
    order = OrderService(db).get(order_id, vendor_id)
    vendor = get_vendor(db, vendor_id)
    table_number = order.table.table_number if order.table else None
    return format_receipt(order, vendor, table_number)


@router.get("/{order_id}/receipt", response_model=ReceiptOutput)
def get_receipt(
    order_id: int,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(staff_context),
) -> ReceiptOutput:
    """48-column thermal receipt for a dine-in order."""
    text = _render_receipt(db, order_id, vendor_id_of(ctx))
    return ReceiptOutput(order_id=order_id, receipt=text, plain_text=text)


@router.get("/{order_id}/print", response_class=PlainTextResponse)
def print_receipt(
    order_id: int,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(staff_context),
) -> PlainTextResponse:
    return PlainTextResponse(_render_receipt(db, order_id, vendor_id_of(ctx)))
