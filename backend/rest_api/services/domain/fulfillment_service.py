"""
Delivery and pickup order service.

Same status vocabulary and forward-only progression as dine-in orders, but
no table effects: these orders never sit on a physical table. Their kitchen
tickets hang off synthetic rows on the vendor's sentinel tables (see
ticket_service).
"""

from __future__ import annotations

import secrets
from typing import Sequence, Union

from sqlalchemy.orm import Session

from rest_api.models import DeliveryOrder, PickupOrder
from rest_api.repositories import (
    OrderFilters,
    get_delivery_order_repository,
    get_order_repository,
    get_pickup_order_repository,
    get_vendor,
)
from rest_api.services.domain.order_service import stamp_status_time, validate_status
from rest_api.services.domain.pricing_service import PricingService
from rest_api.services.domain.ticket_service import KitchenTicketService
from shared.config.constants import (
    ACTIONABLE_STATUSES,
    OrderStatus,
    OrderType,
    is_forward_transition,
)
from shared.config.logging import mask_phone, order_logger as logger
from shared.infrastructure.db import safe_commit
from shared.infrastructure.events import (
    ORDER_CREATED,
    ORDER_STATUS_CHANGED,
    EventBroadcaster,
    OrderEvent,
)
from shared.utils.exceptions import (
    InvalidTransitionError,
    OrderNotFoundError,
    ValidationError,
    VendorNotFoundError,
)
from shared.utils.schemas import DeliveryBookingRequest, PickupOrderRequest

FulfillmentOrder = Union[DeliveryOrder, PickupOrder]


def new_pickup_reference() -> str:
    """Short code the customer quotes at the counter."""
    return f"PU-{secrets.token_hex(3).upper()}"


class FulfillmentService:
    """Delivery and pickup orders for one request/session."""

    def __init__(self, db: Session, broadcaster: EventBroadcaster | None = None):
        self._db = db
        self._broadcaster = broadcaster
        self._repos = {
            OrderType.DELIVERY: get_delivery_order_repository(db),
            OrderType.PICKUP: get_pickup_order_repository(db),
        }
        self._pricing = PricingService(db)
        self._tickets = KitchenTicketService(db, broadcaster)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def find(self, order_type: str, order_id: int, vendor_id: int) -> FulfillmentOrder | None:
        return self._repos[order_type].find_by_id(order_id, vendor_id)

    def get(self, order_type: str, order_id: int, vendor_id: int) -> FulfillmentOrder:
        order = self.find(order_type, order_id, vendor_id)
        if order is None:
            raise OrderNotFoundError(order_id, vendor_id=vendor_id, order_type=order_type)
        return order

    def list_orders(
        self,
        order_type: str,
        vendor_id: int,
        filters: OrderFilters | None = None,
    ) -> Sequence[FulfillmentOrder]:
        """Newest first. Listed orders past acceptance get their ticket if missing."""
        orders = self._repos[order_type].find_all(vendor_id, filters or OrderFilters())
        for order in orders:
            if order.status in ACTIONABLE_STATUSES:
                self._issue_ticket(order_type, order)
        return orders

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    def create_delivery(self, request: DeliveryBookingRequest) -> DeliveryOrder:
        vendor = get_vendor(self._db, request.restaurant_id)
        if vendor is None:
            raise VendorNotFoundError(request.restaurant_id)
        if not vendor.is_delivery_enabled:
            raise ValidationError("This restaurant does not accept delivery orders", vendor_id=vendor.id)

        priced = self._pricing.normalize(vendor.id, request.items)
        order = DeliveryOrder(
            user_id=request.user_id,
            vendor_id=vendor.id,
            items=priced.items,
            total_amount=priced.total_amount,
            customer_name=request.customer_name,
            delivery_address=request.delivery_address,
            delivery_latitude=request.delivery_latitude,
            delivery_longitude=request.delivery_longitude,
            delivery_phone=request.delivery_phone,
            notes=request.notes,
            status=OrderStatus.PENDING,
        )
        self._repos[OrderType.DELIVERY].save(order)
        safe_commit(self._db)

        logger.info(
            "Delivery order created",
            order_id=order.id,
            vendor_id=vendor.id,
            total_amount=priced.total_amount_str,
            phone=mask_phone(order.delivery_phone),
        )
        self._publish_created(order, OrderType.DELIVERY)
        return order

    def create_pickup(self, request: PickupOrderRequest) -> PickupOrder:
        vendor = get_vendor(self._db, request.restaurant_id)
        if vendor is None:
            raise VendorNotFoundError(request.restaurant_id)
        if not vendor.is_pickup_enabled:
            raise ValidationError("This restaurant does not accept pickup orders", vendor_id=vendor.id)

        priced = self._pricing.normalize(vendor.id, request.items)
        order = PickupOrder(
            user_id=request.user_id,
            vendor_id=vendor.id,
            items=priced.items,
            total_amount=priced.total_amount,
            customer_name=request.customer_name,
            customer_phone=request.customer_phone,
            pickup_time=request.pickup_time,
            pickup_reference=new_pickup_reference(),
            notes=request.notes,
            status=OrderStatus.PENDING,
        )
        self._repos[OrderType.PICKUP].save(order)
        safe_commit(self._db)

        logger.info(
            "Pickup order created",
            order_id=order.id,
            vendor_id=vendor.id,
            pickup_reference=order.pickup_reference,
            total_amount=priced.total_amount_str,
            phone=mask_phone(order.customer_phone),
        )
        self._publish_created(order, OrderType.PICKUP)
        return order

    # -------------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------------

    def update_status(
        self,
        order_type: str,
        order_id: int,
        vendor_id: int,
        new_status: str,
    ) -> FulfillmentOrder:
        """
        Raises:
            ValidationError: status unknown for this family.
            OrderNotFoundError: no such order for this vendor.
            InvalidTransitionError: backward move or move out of a terminal status.
        """
        validate_status(order_type, new_status)
        order = self.get(order_type, order_id, vendor_id)
        previous = order.status
        if previous == new_status:
            return order
        if not is_forward_transition(previous, new_status):
            raise InvalidTransitionError(
                f"{order_type} order", previous, new_status, order_id=order_id
            )

        order.status = new_status
        stamp_status_time(order, order_type, new_status)
        safe_commit(self._db)

        logger.info(
            "Order status changed",
            order_id=order.id,
            order_type=order_type,
            vendor_id=vendor_id,
            from_status=previous,
            to_status=new_status,
        )
        if self._broadcaster is not None:
            self._broadcaster.publish(OrderEvent(
                type=ORDER_STATUS_CHANGED,
                vendor_id=vendor_id,
                order_id=order.id,
                order_type=order_type,
                status=new_status,
            ))

        if new_status in ACTIONABLE_STATUSES:
            self._issue_ticket(order_type, order)
        return order

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _issue_ticket(self, order_type: str, order: FulfillmentOrder) -> None:
        order_id, vendor_id = order.id, order.vendor_id
        try:
            if order_type == OrderType.DELIVERY:
                self._tickets.ensure_delivery_ticket(order)
            else:
                self._tickets.ensure_pickup_ticket(order)
        except Exception as e:
            self._db.rollback()
            logger.error(
                "Kitchen ticket issuance failed",
                order_id=order_id,
                order_type=order_type,
                vendor_id=vendor_id,
                error=str(e),
            )

    def _publish_created(self, order: FulfillmentOrder, order_type: str) -> None:
        if self._broadcaster is None:
            return
        self._broadcaster.publish(OrderEvent(
            type=ORDER_CREATED,
            vendor_id=order.vendor_id,
            order_id=order.id,
            order_type=order_type,
            status=order.status,
        ))


def locate_order_type(db: Session, order_id: int, vendor_id: int) -> str | None:
    """
    Family of the vendor's order with this id, trying dine-in, delivery,
    then pickup. Ids are per table, so the first family that matches wins.
    """
    if get_order_repository(db).find_dine_in_by_id(order_id, vendor_id) is not None:
        return OrderType.DINE_IN
    if get_delivery_order_repository(db).find_by_id(order_id, vendor_id) is not None:
        return OrderType.DELIVERY
    if get_pickup_order_repository(db).find_by_id(order_id, vendor_id) is not None:
        return OrderType.PICKUP
    return None
