"""
Tests for kitchen ticket issuance: idempotency, the insert race, and the
synthetic rows behind delivery and pickup tickets.
"""

from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from rest_api.models import DeliveryOrder, KitchenTicket, Order, PickupOrder, Table
from rest_api.repositories import OrderFilters, TicketFilters, get_order_repository
from rest_api.services.domain import KitchenTicketService
from rest_api.services.domain import ticket_service
from rest_api.services.domain.ticket_service import (
    delivery_ticket_number,
    dine_in_ticket_number,
    pickup_ticket_number,
)
from shared.utils.exceptions import InternalError

ITEMS = [{"itemId": 1, "name": "Margherita", "quantity": 1, "lineTotal": "210.00"}]


def count(db_session, model) -> int:
    return db_session.scalar(select(func.count()).select_from(model))


@pytest.fixture
def tickets(db_session, broadcaster):
    return KitchenTicketService(db_session, broadcaster)


@pytest.fixture
def accepted_order(db_session, seed_table):
    order = Order(
        vendor_id=7,
        table_id=seed_table.id,
        items=ITEMS,
        total_amount=Decimal("210.00"),
        status="accepted",
        customer_notes="table by the window",
    )
    db_session.add(order)
    db_session.commit()
    return order


@pytest.fixture
def delivery_order(db_session, seed_vendor):
    order = DeliveryOrder(
        vendor_id=7,
        items=ITEMS,
        total_amount=Decimal("210.00"),
        status="accepted",
        delivery_address="221B Baker Street",
        delivery_phone="+919811111111",
    )
    db_session.add(order)
    db_session.commit()
    return order


@pytest.fixture
def pickup_order(db_session, seed_vendor):
    order = PickupOrder(
        vendor_id=7,
        items=ITEMS,
        total_amount=Decimal("210.00"),
        status="accepted",
        pickup_reference="PU-1A2B3C",
        pickup_time=datetime(2026, 3, 14, 19, 30),
        notes="ring the bell",
    )
    db_session.add(order)
    db_session.commit()
    return order


class TestTicketNumbers:
    def test_formats(self):
        assert dine_in_ticket_number(7, 12) == "KOT-7-12"
        assert delivery_ticket_number(7, 3) == "KOT-DEL-7-3"
        assert pickup_ticket_number(7, 4) == "KOT-PICKUP-7-4"


class TestDineInTicket:
    def test_snapshot_of_order(self, tickets, accepted_order):
        ticket = tickets.ensure_ticket(accepted_order)
        assert ticket.order_id == accepted_order.id
        assert ticket.table_id == accepted_order.table_id
        assert ticket.ticket_number == f"KOT-7-{accepted_order.id}"
        assert ticket.status == "pending"
        assert ticket.items == ITEMS
        assert ticket.customer_notes == "table by the window"

    def test_idempotent(self, tickets, db_session, accepted_order, vendor_stream):
        first = tickets.ensure_ticket(accepted_order)
        second = tickets.ensure_ticket(accepted_order)
        assert first.id == second.id
        assert count(db_session, KitchenTicket) == 1
        assert vendor_stream.types() == ["kot-created"]

    def test_kot_created_event(self, tickets, accepted_order, vendor_stream):
        ticket = tickets.ensure_ticket(accepted_order)
        assert vendor_stream.events[0]["orderId"] == accepted_order.id
        assert vendor_stream.events[0]["ticketId"] == ticket.id
        assert vendor_stream.events[0]["orderType"] == "dine_in"

    def test_unsupported_dialect_is_reported(self, tickets, db_session, accepted_order, monkeypatch):
        monkeypatch.delitem(ticket_service.INSERT_BUILDERS, "sqlite")

        with pytest.raises(InternalError) as exc_info:
            tickets.ensure_ticket(accepted_order)

        assert exc_info.value.detail == "Unsupported database dialect 'sqlite' (supported: postgresql)"
        assert count(db_session, KitchenTicket) == 0

    def test_losing_the_insert_race_returns_winner(
        self, tickets, db_session, accepted_order, vendor_stream, monkeypatch
    ):
        winner = KitchenTicketService(db_session).ensure_ticket(accepted_order)

        # The loser's first lookup ran before the winner committed
        real_find = tickets._tickets.find_by_order_id
        lookups = []

        def stale_then_real(order_id):
            lookups.append(order_id)
            return None if len(lookups) == 1 else real_find(order_id)

        monkeypatch.setattr(tickets._tickets, "find_by_order_id", stale_then_real)

        ticket = tickets.ensure_ticket(accepted_order)
        assert ticket.id == winner.id
        assert count(db_session, KitchenTicket) == 1
        # Only the caller that inserted announces the ticket
        assert vendor_stream.types() == []


class TestSyntheticTickets:
    def test_delivery_ticket(self, tickets, db_session, delivery_order, vendor_stream):
        ticket = tickets.ensure_delivery_ticket(delivery_order)

        assert ticket.ticket_number == f"KOT-DEL-7-{delivery_order.id}"
        assert ticket.customer_notes == f"Delivery Order #{delivery_order.id} - 221B Baker Street"
        assert ticket.items == ITEMS

        sentinel = db_session.get(Table, ticket.table_id)
        assert sentinel.table_number == 0
        assert sentinel.qr_data == "DELIVERY-7"

        synthetic = db_session.get(Order, ticket.order_id)
        assert synthetic.table_id == sentinel.id
        assert synthetic.customer_notes == (
            f"[DELIVERY ORDER #{delivery_order.id}] 221B Baker Street"
        )

        assert vendor_stream.events[0]["orderId"] == delivery_order.id
        assert vendor_stream.events[0]["orderType"] == "delivery"

    def test_pickup_ticket(self, tickets, db_session, pickup_order):
        ticket = tickets.ensure_pickup_ticket(pickup_order)

        assert ticket.ticket_number == f"KOT-PICKUP-7-{pickup_order.id}"
        assert ticket.customer_notes == (
            f"Pickup Order #{pickup_order.id} - PU-1A2B3C - Pickup: 2026-03-14 19:30"
        )
        assert db_session.get(Table, ticket.table_id).table_number == -1

        synthetic = db_session.get(Order, ticket.order_id)
        assert synthetic.customer_notes == f"[PICKUP ORDER #{pickup_order.id} - PU-1A2B3C] ring the bell"

    def test_synthetic_ticket_is_idempotent(self, tickets, db_session, delivery_order):
        first = tickets.ensure_delivery_ticket(delivery_order)
        second = tickets.ensure_delivery_ticket(delivery_order)
        assert first.id == second.id
        assert count(db_session, KitchenTicket) == 1
        assert count(db_session, Order) == 1

    def test_sentinel_table_is_shared(self, tickets, db_session, seed_vendor):
        for address in ("1 First St", "2 Second St"):
            order = DeliveryOrder(
                vendor_id=7,
                items=ITEMS,
                total_amount=Decimal("210.00"),
                status="accepted",
                delivery_address=address,
            )
            db_session.add(order)
            db_session.commit()
            tickets.ensure_delivery_ticket(order)

        sentinels = db_session.scalars(
            select(Table).where(Table.vendor_id == 7, Table.table_number == 0)
        ).all()
        assert len(sentinels) == 1
        assert count(db_session, KitchenTicket) == 2

    def test_losing_race_drops_synthetic_row(self, tickets, db_session, delivery_order, monkeypatch):
        winner = KitchenTicketService(db_session).ensure_delivery_ticket(delivery_order)

        real_find = tickets._tickets.find_by_ticket_number
        lookups = []

        def stale_then_real(ticket_number):
            lookups.append(ticket_number)
            return None if len(lookups) == 1 else real_find(ticket_number)

        monkeypatch.setattr(tickets._tickets, "find_by_ticket_number", stale_then_real)

        ticket = tickets.ensure_delivery_ticket(delivery_order)
        assert ticket.id == winner.id
        assert count(db_session, Order) == 1

    def test_synthetic_rows_hidden_from_dine_in_listing(
        self, tickets, db_session, delivery_order, pickup_order, accepted_order
    ):
        tickets.ensure_delivery_ticket(delivery_order)
        tickets.ensure_pickup_ticket(pickup_order)

        listed = get_order_repository(db_session).find_all(7, OrderFilters())
        assert [o.id for o in listed] == [accepted_order.id]


class TestEditsAndBackfill:
    def test_update_ticket_items(self, tickets, db_session, accepted_order, second_table):
        tickets.ensure_ticket(accepted_order)
        new_items = [{"itemId": 1, "name": "Margherita", "quantity": 3}]

        ticket = tickets.update_ticket_items(
            accepted_order.id, new_items, "no cheese", table_id=second_table.id
        )
        db_session.commit()

        assert ticket.items == new_items
        assert ticket.customer_notes == "no cheese"
        assert ticket.table_id == second_table.id

    def test_update_without_ticket_is_noop(self, tickets, accepted_order):
        assert tickets.update_ticket_items(accepted_order.id, [], None) is None

    def test_backfill_issues_missing_tickets(self, tickets, db_session, accepted_order, seed_table):
        pending = Order(
            vendor_id=7,
            table_id=seed_table.id,
            items=ITEMS,
            total_amount=Decimal("210.00"),
            status="pending",
        )
        db_session.add(pending)
        db_session.commit()

        assert tickets.backfill_vendor(7) == 1
        assert tickets.backfill_vendor(7) == 0
        assert count(db_session, KitchenTicket) == 1

    def test_list_for_vendor_filters(self, tickets, accepted_order, delivery_order):
        tickets.ensure_ticket(accepted_order)
        tickets.ensure_delivery_ticket(delivery_order)

        all_tickets = tickets.list_for_vendor(7)
        assert len(all_tickets) == 2

        by_table = tickets.list_for_vendor(7, TicketFilters(table_id=accepted_order.table_id))
        assert [t.order_id for t in by_table] == [accepted_order.id]

        assert tickets.list_for_vendor(8) == []
