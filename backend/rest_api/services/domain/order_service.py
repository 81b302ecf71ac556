"""
Dine-in Order Domain Service.

Owns the dine-in lifecycle: create, item edits, status progression. Every
mutation and its table lock/refresh share one transaction; events go out
after the commit, and the kitchen ticket is ensured last so a ticket
failure can never undo the order change.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence

from sqlalchemy.orm import Session

from rest_api.models import Order, Table
from rest_api.repositories import OrderFilters, get_order_repository, get_table_repository
from rest_api.services.domain.pricing_service import PricingService
from rest_api.services.domain.table_lock_service import TableAvailability, TableLockService
from rest_api.services.domain.ticket_service import KitchenTicketService
from shared.config.constants import (
    ACTIONABLE_STATUSES,
    NON_EDITABLE_STATUSES,
    OCCUPYING_STATUSES,
    ORDER_STATUSES,
    STATUS_TIMESTAMP_FIELDS,
    OrderStatus,
    OrderType,
    is_forward_transition,
)
from shared.config.logging import order_logger as logger
from shared.infrastructure.db import safe_commit
from shared.infrastructure.events import (
    ORDER_CREATED,
    ORDER_STATUS_CHANGED,
    ORDER_UPDATED,
    TABLE_STATUS_CHANGED,
    EventBroadcaster,
    OrderEvent,
)
from shared.utils.exceptions import (
    InvalidTransitionError,
    OrderNotEditableError,
    OrderNotFoundError,
    TableNotFoundError,
    ValidationError,
)
from shared.utils.schemas import CreateOrderRequest, UpdateOrderRequest


def validate_status(order_type: str, status: str) -> None:
    if status not in ORDER_STATUSES[order_type]:
        raise ValidationError(
            f"Invalid status '{status}' for {order_type} orders",
            order_type=order_type,
            status=status,
        )


def stamp_status_time(order, order_type: str, status: str) -> None:
    """Set the status's one-shot timestamp unless it is already set."""
    field_name = STATUS_TIMESTAMP_FIELDS[order_type].get(status)
    if field_name and getattr(order, field_name) is None:
        setattr(order, field_name, datetime.now(timezone.utc))


class OrderService:
    """
    Domain service for dine-in orders.

    Usage:
        service = OrderService(db, broadcaster)
        order = service.create(vendor_id, request)
        service.update_status(order.id, vendor_id, "accepted")
    """

    def __init__(self, db: Session, broadcaster: EventBroadcaster | None = None):
        self._db = db
        self._broadcaster = broadcaster
        self._orders = get_order_repository(db)
        self._tables = get_table_repository(db)
        self._pricing = PricingService(db)
        self._locks = TableLockService(db)
        self._tickets = KitchenTicketService(db, broadcaster)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get(self, order_id: int, vendor_id: int) -> Order:
        """Real dine-in order only; the rows backing delivery/pickup tickets are not found."""
        order = self._orders.find_dine_in_by_id(order_id, vendor_id)
        if order is None:
            raise OrderNotFoundError(order_id, vendor_id=vendor_id)
        return order

    def list_orders(self, vendor_id: int, filters: OrderFilters | None = None) -> Sequence[Order]:
        """Vendor's dine-in orders, newest first. Missing tickets are issued first."""
        self._tickets.backfill_vendor(vendor_id)
        return self._orders.find_all(vendor_id, filters or OrderFilters())

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def create(
        self,
        vendor_id: int,
        request: CreateOrderRequest,
        initial_status: str = OrderStatus.PENDING,
    ) -> Order:
        """
        Price and persist a dine-in order and lock its table.

        Raises:
            TableNotFoundError: table missing or owned by another vendor.
            ValidationError: empty order, unknown item, bad price.
        """
        table = self._physical_table(request.table_id, vendor_id)
        if table is None:
            raise TableNotFoundError(request.table_id, vendor_id=vendor_id)

        priced = self._pricing.normalize(vendor_id, request.items)
        order = Order(
            vendor_id=vendor_id,
            table_id=table.id,
            items=priced.items,
            total_amount=priced.total_amount,
            customer_name=request.customer_name,
            customer_phone=request.customer_phone,
            customer_notes=request.customer_notes,
            status=initial_status,
        )
        stamp_status_time(order, OrderType.DINE_IN, initial_status)
        self._orders.save(order)
        availability = self._locks.lock(table.id)
        safe_commit(self._db)

        logger.info(
            "Order created",
            order_id=order.id,
            vendor_id=vendor_id,
            table_id=table.id,
            status=initial_status,
            total_amount=priced.total_amount_str,
            lines=len(priced.items),
        )
        self._publish(OrderEvent(
            type=ORDER_CREATED,
            vendor_id=vendor_id,
            order_id=order.id,
            order_type=OrderType.DINE_IN,
            table_id=table.id,
            status=initial_status,
        ))
        self._publish_table_change(availability)

        if initial_status in ACTIONABLE_STATUSES:
            self._issue_ticket(order)
        return order

    def update_status(self, order_id: int, vendor_id: int, new_status: str) -> Order:
        """
        Move the order forward (or cancel it) and re-derive its table.

        Raises:
            ValidationError: status unknown for dine-in orders.
            OrderNotFoundError: no such order for this vendor.
            InvalidTransitionError: backward move or move out of a terminal status.
        """
        validate_status(OrderType.DINE_IN, new_status)
        order = self.get(order_id, vendor_id)
        previous = order.status
        if previous == new_status:
            return order
        if not is_forward_transition(previous, new_status):
            raise InvalidTransitionError("order", previous, new_status, order_id=order_id)

        order.status = new_status
        stamp_status_time(order, OrderType.DINE_IN, new_status)
        self._db.flush()

        availability = None
        if not order.table.is_sentinel:
            if new_status in OCCUPYING_STATUSES:
                availability = self._locks.lock(order.table_id)
            else:
                availability = self._locks.refresh(order.table_id)
        safe_commit(self._db)

        logger.info(
            "Order status changed",
            order_id=order.id,
            vendor_id=vendor_id,
            from_status=previous,
            to_status=new_status,
        )
        self._publish(OrderEvent(
            type=ORDER_STATUS_CHANGED,
            vendor_id=vendor_id,
            order_id=order.id,
            order_type=OrderType.DINE_IN,
            table_id=order.table_id,
            status=new_status,
        ))
        self._publish_table_change(availability)

        if new_status in ACTIONABLE_STATUSES:
            self._issue_ticket(order)
        return order

    def update_items(self, order_id: int, vendor_id: int, request: UpdateOrderRequest) -> Order:
        """
        Replace the order's items (re-priced) and optionally move it to
        another table. Last write wins.

        Raises:
            OrderNotFoundError: no such order for this vendor.
            OrderNotEditableError: order already completed or delivered.
            ValidationError: empty order, unknown item, bad price, bad table.
        """
        order = self.get(order_id, vendor_id)
        if order.status in NON_EDITABLE_STATUSES:
            raise OrderNotEditableError(order.id, order.status, vendor_id=vendor_id)

        priced = self._pricing.normalize(vendor_id, request.items)

        old_table_id = order.table_id
        new_table_id = old_table_id
        if request.table_id is not None and request.table_id != old_table_id:
            new_table = self._physical_table(request.table_id, vendor_id)
            if new_table is None:
                raise ValidationError(
                    "Invalid table for this restaurant",
                    table_id=request.table_id,
                    vendor_id=vendor_id,
                )
            new_table_id = new_table.id

        order.table_id = new_table_id
        order.items = priced.items
        order.total_amount = priced.total_amount
        for field_name in ("customer_name", "customer_phone", "customer_notes"):
            if field_name in request.model_fields_set:
                setattr(order, field_name, getattr(request, field_name))
        self._db.flush()

        changes: list[TableAvailability] = []
        if new_table_id != old_table_id:
            if order.status in OCCUPYING_STATUSES:
                changes.append(self._locks.lock(new_table_id))
            else:
                changes.append(self._locks.refresh(new_table_id))
            changes.append(self._locks.refresh(old_table_id))

        # A ticket's snapshot is frozen once the order reaches a terminal status
        if order.status not in OrderStatus.TERMINAL:
            self._tickets.update_ticket_items(
                order.id,
                priced.items,
                order.customer_notes,
                table_id=new_table_id if new_table_id != old_table_id else None,
            )
        safe_commit(self._db)

        logger.info(
            "Order items updated",
            order_id=order.id,
            vendor_id=vendor_id,
            table_id=new_table_id,
            moved_from=old_table_id if new_table_id != old_table_id else None,
            total_amount=priced.total_amount_str,
        )
        self._publish(OrderEvent(
            type=ORDER_UPDATED,
            vendor_id=vendor_id,
            order_id=order.id,
            order_type=OrderType.DINE_IN,
            table_id=new_table_id,
            status=order.status,
        ))
        for availability in changes:
            self._publish_table_change(availability)
        return order

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _physical_table(self, table_id: int, vendor_id: int) -> Table | None:
        table = self._tables.find_by_id(table_id, vendor_id)
        if table is None or table.is_sentinel:
            return None
        return table

    def _issue_ticket(self, order: Order) -> None:
        """Ensure a kitchen ticket; failures are logged, never raised."""
        order_id, vendor_id = order.id, order.vendor_id
        try:
            self._tickets.ensure_ticket(order)
        except Exception as e:
            self._db.rollback()
            logger.error(
                "Kitchen ticket issuance failed",
                order_id=order_id,
                vendor_id=vendor_id,
                error=str(e),
            )

    def _publish(self, event: OrderEvent) -> None:
        if self._broadcaster is not None:
            self._broadcaster.publish(event)

    def _publish_table_change(self, availability: TableAvailability | None) -> None:
        if availability is None or not availability.changed:
            return
        self._publish(OrderEvent(
            type=TABLE_STATUS_CHANGED,
            vendor_id=availability.vendor_id,
            table_id=availability.table_id,
            is_active=availability.is_active,
        ))
