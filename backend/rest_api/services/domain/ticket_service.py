"""
Kitchen ticket (KOT) issuer.

At most one ticket per row in `orders`, guaranteed by the unique order_id
and ticket_number columns plus insert-or-ignore: two callers that both find
no ticket both try the insert, one wins, and both return the winner's row.
Every ensure_* method is idempotent and commits its own work.

Delivery and pickup orders live in their own tables, but the ticket's
foreign key points at `orders`. For them a synthetic dine-in row is created
on the vendor's sentinel table (0 delivery, -1 pickup) and tagged through
its customer_notes prefix so order listings can hide it.
"""

from __future__ import annotations

from typing import Any, Sequence

from sqlalchemy import Table as CoreTable
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from rest_api.models import DeliveryOrder, KitchenTicket, Order, PickupOrder, Table
from rest_api.repositories import (
    TicketFilters,
    get_order_repository,
    get_table_repository,
    get_ticket_repository,
)
from shared.config.constants import (
    DELIVERY_NOTES_PREFIX,
    PICKUP_NOTES_PREFIX,
    OrderStatus,
    OrderType,
    SentinelTable,
    TicketStatus,
)
from shared.config.logging import kitchen_logger as logger
from shared.infrastructure.db import safe_commit
from shared.infrastructure.events import KOT_CREATED, EventBroadcaster, OrderEvent
from shared.utils.exceptions import FatalInvariantError, InternalError

# Dialects with a native INSERT ... ON CONFLICT DO NOTHING
INSERT_BUILDERS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def dine_in_ticket_number(vendor_id: int, order_id: int) -> str:
    return f"KOT-{vendor_id}-{order_id}"


def delivery_ticket_number(vendor_id: int, delivery_order_id: int) -> str:
    return f"KOT-DEL-{vendor_id}-{delivery_order_id}"


def pickup_ticket_number(vendor_id: int, pickup_order_id: int) -> str:
    return f"KOT-PICKUP-{vendor_id}-{pickup_order_id}"


def _pickup_label(pickup_order: PickupOrder) -> str:
    ref = f" - {pickup_order.pickup_reference}" if pickup_order.pickup_reference else ""
    return f"#{pickup_order.id}{ref}"


class KitchenTicketService:
    def __init__(self, db: Session, broadcaster: EventBroadcaster | None = None):
        self._db = db
        self._broadcaster = broadcaster
        self._tickets = get_ticket_repository(db)
        self._tables = get_table_repository(db)
        self._orders = get_order_repository(db)

    # -------------------------------------------------------------------------
    # Issuance
    # -------------------------------------------------------------------------

    def ensure_ticket(self, order: Order) -> KitchenTicket:
        """Ticket for a dine-in order, created on first call."""
        existing = self._tickets.find_by_order_id(order.id)
        if existing is not None:
            return existing

        inserted = self._insert_ignoring_conflicts(KitchenTicket.__table__, {
            "order_id": order.id,
            "vendor_id": order.vendor_id,
            "table_id": order.table_id,
            "ticket_number": dine_in_ticket_number(order.vendor_id, order.id),
            "status": TicketStatus.PENDING,
            "items": order.items,
            "customer_notes": order.customer_notes,
        })
        ticket = self._tickets.find_by_order_id(order.id)
        if ticket is None:
            raise FatalInvariantError("Kitchen ticket missing after insert", order_id=order.id)
        safe_commit(self._db)

        if inserted:
            self._announce(ticket, order.id, OrderType.DINE_IN)
        return ticket

    def ensure_delivery_ticket(self, delivery_order: DeliveryOrder) -> KitchenTicket:
        """Ticket for a delivery order, backed by a synthetic row on table 0."""
        ticket_number = delivery_ticket_number(delivery_order.vendor_id, delivery_order.id)
        address = delivery_order.delivery_address or ""
        return self._ensure_synthetic_ticket(
            ticket_number=ticket_number,
            source_id=delivery_order.id,
            order_type=OrderType.DELIVERY,
            vendor_id=delivery_order.vendor_id,
            sentinel_number=SentinelTable.DELIVERY,
            sentinel_qr=f"DELIVERY-{delivery_order.vendor_id}",
            synthetic=Order(
                vendor_id=delivery_order.vendor_id,
                items=delivery_order.items,
                total_amount=delivery_order.total_amount,
                customer_name=delivery_order.customer_name,
                customer_phone=delivery_order.delivery_phone,
                status=OrderStatus.ACCEPTED,
                customer_notes=(
                    f"{DELIVERY_NOTES_PREFIX}{delivery_order.id}] {delivery_order.notes or address}"
                ),
            ),
            ticket_notes=f"Delivery Order #{delivery_order.id} - {address}",
        )

    def ensure_pickup_ticket(self, pickup_order: PickupOrder) -> KitchenTicket:
        """Ticket for a pickup order, backed by a synthetic row on table -1."""
        label = _pickup_label(pickup_order)
        ticket_notes = f"Pickup Order {label}"
        if pickup_order.pickup_time:
            ticket_notes += f" - Pickup: {pickup_order.pickup_time:%Y-%m-%d %H:%M}"
        return self._ensure_synthetic_ticket(
            ticket_number=pickup_ticket_number(pickup_order.vendor_id, pickup_order.id),
            source_id=pickup_order.id,
            order_type=OrderType.PICKUP,
            vendor_id=pickup_order.vendor_id,
            sentinel_number=SentinelTable.PICKUP,
            sentinel_qr=f"PICKUP-{pickup_order.vendor_id}",
            synthetic=Order(
                vendor_id=pickup_order.vendor_id,
                items=pickup_order.items,
                total_amount=pickup_order.total_amount,
                customer_name=pickup_order.customer_name,
                customer_phone=pickup_order.customer_phone,
                status=OrderStatus.ACCEPTED,
                customer_notes=f"{PICKUP_NOTES_PREFIX}{label[1:]}] {pickup_order.notes or ''}".rstrip(),
            ),
            ticket_notes=ticket_notes,
        )

    def _ensure_synthetic_ticket(
        self,
        *,
        ticket_number: str,
        source_id: int,
        order_type: str,
        vendor_id: int,
        sentinel_number: int,
        sentinel_qr: str,
        synthetic: Order,
        ticket_notes: str,
    ) -> KitchenTicket:
        existing = self._tickets.find_by_ticket_number(ticket_number)
        if existing is not None:
            return existing

        sentinel = self._sentinel_table(vendor_id, sentinel_number, sentinel_qr)
        synthetic.table_id = sentinel.id
        self._db.add(synthetic)
        self._db.flush()

        inserted = self._insert_ignoring_conflicts(KitchenTicket.__table__, {
            "order_id": synthetic.id,
            "vendor_id": vendor_id,
            "table_id": sentinel.id,
            "ticket_number": ticket_number,
            "status": TicketStatus.PENDING,
            "items": synthetic.items,
            "customer_notes": ticket_notes,
        })
        if not inserted:
            # Another caller issued this ticket first; drop our unused row
            self._db.delete(synthetic)
            self._db.flush()

        ticket = self._tickets.find_by_ticket_number(ticket_number)
        if ticket is None:
            raise FatalInvariantError(
                "Kitchen ticket missing after insert",
                ticket_number=ticket_number,
            )
        safe_commit(self._db)

        if inserted:
            self._announce(ticket, source_id, order_type)
        return ticket

    def _sentinel_table(self, vendor_id: int, table_number: int, qr_data: str) -> Table:
        """Get-or-create the vendor's reserved table, tolerating a concurrent create."""
        table = self._tables.find_by_number(vendor_id, table_number)
        if table is not None:
            return table

        self._insert_ignoring_conflicts(Table.__table__, {
            "vendor_id": vendor_id,
            "table_number": table_number,
            "qr_data": qr_data,
            "is_active": True,
            "is_manual": False,
        })
        table = self._tables.find_by_number(vendor_id, table_number)
        if table is None:
            raise FatalInvariantError(
                "Sentinel table missing after insert",
                vendor_id=vendor_id,
                table_number=table_number,
            )
        return table

    def _insert_ignoring_conflicts(self, table: CoreTable, values: dict[str, Any]) -> bool:
        """INSERT ... ON CONFLICT DO NOTHING. True if this call inserted the row."""
        dialect = self._db.get_bind().dialect.name
        build_insert = INSERT_BUILDERS.get(dialect)
        if build_insert is None:
            raise InternalError(
                f"Unsupported database dialect '{dialect}' (supported: {', '.join(sorted(INSERT_BUILDERS))})",
                log_level="critical",
                dialect=dialect,
            )
        stmt = build_insert(table)

        result = self._db.connection().execute(stmt.values(**values).on_conflict_do_nothing())
        return result.rowcount == 1

    def _announce(self, ticket: KitchenTicket, order_id: int, order_type: str) -> None:
        logger.info(
            "Kitchen ticket issued",
            ticket_id=ticket.id,
            ticket_number=ticket.ticket_number,
            order_id=order_id,
            order_type=order_type,
            vendor_id=ticket.vendor_id,
        )
        if self._broadcaster is not None:
            self._broadcaster.publish(OrderEvent(
                type=KOT_CREATED,
                vendor_id=ticket.vendor_id,
                order_id=order_id,
                order_type=order_type,
                table_id=ticket.table_id,
                ticket_id=ticket.id,
            ))

    # -------------------------------------------------------------------------
    # Edits and reads
    # -------------------------------------------------------------------------

    def update_ticket_items(
        self,
        order_id: int,
        items: list[dict[str, Any]],
        notes: str | None,
        table_id: int | None = None,
    ) -> KitchenTicket | None:
        """
        Refresh the snapshot after an item edit. Flushes only; the caller
        commits with the order update. Returns None when no ticket exists yet.
        """
        ticket = self._tickets.find_by_order_id(order_id)
        if ticket is None:
            return None
        ticket.items = items
        ticket.customer_notes = notes
        if table_id is not None:
            ticket.table_id = table_id
        self._db.flush()
        logger.info("Kitchen ticket items updated", ticket_id=ticket.id, order_id=order_id)
        return ticket

    def backfill_vendor(self, vendor_id: int) -> int:
        """
        Issue tickets for dine-in orders that reached an actionable status
        without one (a failed issuance earlier). Returns how many were issued.
        """
        issued = 0
        for order in self._orders.find_actionable_without_ticket(vendor_id):
            order_id = order.id
            try:
                self.ensure_ticket(order)
                issued += 1
            except Exception as e:
                self._db.rollback()
                logger.error(
                    "Kitchen ticket backfill failed",
                    order_id=order_id,
                    vendor_id=vendor_id,
                    error=str(e),
                )
        if issued:
            logger.info("Kitchen tickets backfilled", vendor_id=vendor_id, issued=issued)
        return issued

    def list_for_vendor(
        self,
        vendor_id: int,
        filters: TicketFilters | None = None,
    ) -> Sequence[KitchenTicket]:
        return self._tickets.find_all(vendor_id, filters or TicketFilters())
