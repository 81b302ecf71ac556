"""
Tests for the dine-in order lifecycle: creation, status progression, item
edits and the table/ticket side effects of each.
"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from rest_api.models import KitchenTicket, Order, Table
from rest_api.services.domain import OrderService
from shared.utils.exceptions import (
    InvalidTransitionError,
    OrderNotEditableError,
    OrderNotFoundError,
    TableNotFoundError,
    ValidationError,
)
from shared.utils.schemas import CreateOrderRequest, UpdateOrderRequest
from tests.factories import order_items


def create_request(table_id: int = 1, quantity: int = 2, **fields) -> CreateOrderRequest:
    return CreateOrderRequest.model_validate({
        "tableId": table_id,
        "items": order_items(quantity),
        **fields,
    })


def update_request(quantity: int = 1, **fields) -> UpdateOrderRequest:
    return UpdateOrderRequest.model_validate({"items": order_items(quantity), **fields})


def stored_is_active(db_session, table_id: int) -> bool:
    return db_session.execute(select(Table.is_active).where(Table.id == table_id)).scalar_one()


def ticket_count(db_session) -> int:
    return db_session.scalar(select(func.count()).select_from(KitchenTicket))


@pytest.fixture
def service(db_session, broadcaster):
    return OrderService(db_session, broadcaster)


@pytest.fixture
def order(service, seed_menu, seed_table):
    return service.create(7, create_request(customer_phone="+919800000000"))


class TestCreate:
    def test_prices_and_locks_table(self, service, db_session, seed_menu, seed_table, vendor_stream):
        order = service.create(7, create_request())

        assert order.status == "pending"
        assert order.total_amount == Decimal("420.00")
        assert order.items[0]["lineTotal"] == "420.00"
        assert stored_is_active(db_session, seed_table.id) is False
        assert ticket_count(db_session) == 0
        assert vendor_stream.types() == ["order-created", "table-status-changed"]

        created = vendor_stream.events[0]
        assert created["orderId"] == order.id
        assert created["orderType"] == "dine_in"
        table_event = vendor_stream.events[1]
        assert table_event["tableId"] == seed_table.id
        assert table_event["isActive"] is False

    def test_second_order_on_booked_table_no_table_event(self, service, seed_menu, seed_table, vendor_stream):
        service.create(7, create_request())
        service.create(7, create_request(quantity=1))
        assert vendor_stream.types() == ["order-created", "table-status-changed", "order-created"]

    def test_created_accepted_issues_ticket(self, service, db_session, seed_menu, seed_table, vendor_stream):
        order = service.create(7, create_request(), initial_status="accepted")

        assert order.accepted_at is not None
        ticket = db_session.scalar(select(KitchenTicket).where(KitchenTicket.order_id == order.id))
        assert ticket.ticket_number == f"KOT-7-{order.id}"
        assert ticket.items == order.items
        assert "kot-created" in vendor_stream.types()

    def test_unknown_table(self, service, seed_menu):
        with pytest.raises(TableNotFoundError):
            service.create(7, create_request(table_id=999))

    def test_other_vendors_table(self, service, seed_menu, other_vendor_table):
        with pytest.raises(TableNotFoundError):
            service.create(7, create_request(table_id=other_vendor_table.id))

    def test_failed_pricing_leaves_table_free(self, service, db_session, seed_menu, seed_table):
        bad = CreateOrderRequest.model_validate({"tableId": 1, "items": [{"itemId": 42}]})
        with pytest.raises(ValidationError):
            service.create(7, bad)
        assert stored_is_active(db_session, seed_table.id) is True
        assert db_session.scalar(select(func.count()).select_from(Order)) == 0


class TestUpdateStatus:
    def test_accept_issues_one_ticket(self, service, db_session, order, vendor_stream):
        service.update_status(order.id, 7, "accepted")
        service.update_status(order.id, 7, "preparing")
        service.update_status(order.id, 7, "ready")

        assert ticket_count(db_session) == 1
        assert vendor_stream.types().count("kot-created") == 1
        assert vendor_stream.types()[:2] == ["order-status-changed", "kot-created"]

    def test_status_timestamps_are_one_shot(self, service, order):
        service.update_status(order.id, 7, "accepted")
        accepted_at = service.get(order.id, 7).accepted_at
        service.update_status(order.id, 7, "preparing")
        assert service.get(order.id, 7).accepted_at == accepted_at
        assert service.get(order.id, 7).preparing_at is not None

    def test_delivered_frees_table_without_ticket(self, service, db_session, order, seed_table, vendor_stream):
        service.update_status(order.id, 7, "delivered")

        assert stored_is_active(db_session, seed_table.id) is True
        assert ticket_count(db_session) == 0
        assert vendor_stream.types() == ["order-status-changed", "table-status-changed"]
        assert vendor_stream.events[1]["isActive"] is True

    def test_table_held_while_another_order_occupies_it(self, service, db_session, order, seed_table):
        other = service.create(7, create_request(quantity=1))
        service.update_status(order.id, 7, "completed")
        assert stored_is_active(db_session, seed_table.id) is False

        service.update_status(other.id, 7, "cancelled")
        assert stored_is_active(db_session, seed_table.id) is True

    def test_same_status_is_noop(self, service, order, vendor_stream):
        result = service.update_status(order.id, 7, "pending")
        assert result.status == "pending"
        assert vendor_stream.types() == []

    def test_skipping_ahead_allowed(self, service, order):
        assert service.update_status(order.id, 7, "ready").status == "ready"

    def test_backward_transition_rejected(self, service, order):
        service.update_status(order.id, 7, "preparing")
        with pytest.raises(InvalidTransitionError) as exc_info:
            service.update_status(order.id, 7, "accepted")
        assert exc_info.value.status_code == 409

    def test_terminal_status_is_final(self, service, order):
        service.update_status(order.id, 7, "cancelled")
        with pytest.raises(InvalidTransitionError):
            service.update_status(order.id, 7, "accepted")

    def test_status_of_another_family_rejected(self, service, order):
        with pytest.raises(ValidationError):
            service.update_status(order.id, 7, "out_for_delivery")

    def test_other_vendor_cannot_see_order(self, service, order):
        with pytest.raises(OrderNotFoundError):
            service.update_status(order.id, 8, "accepted")

    def test_ticket_failure_does_not_undo_status(self, service, db_session, order, monkeypatch):
        def boom(_order):
            raise RuntimeError("ticket store unavailable")

        monkeypatch.setattr(service._tickets, "ensure_ticket", boom)
        service.update_status(order.id, 7, "accepted")

        db_session.expire_all()
        assert db_session.get(Order, order.id).status == "accepted"
        assert ticket_count(db_session) == 0


class TestUpdateItems:
    def test_reprices_items(self, service, order, vendor_stream):
        updated = service.update_items(order.id, 7, update_request(quantity=3))
        assert updated.total_amount == Decimal("630.00")
        assert updated.items[0]["quantity"] == 3
        assert vendor_stream.types() == ["order-updated"]

    def test_omitted_customer_fields_are_kept(self, service, order):
        updated = service.update_items(order.id, 7, update_request(customerNotes="no onions"))
        assert updated.customer_phone == "+919800000000"
        assert updated.customer_notes == "no onions"

    def test_ticket_snapshot_follows_edit(self, service, db_session, order):
        service.update_status(order.id, 7, "accepted")
        service.update_items(order.id, 7, update_request(quantity=5, customerNotes="extra spicy"))

        ticket = db_session.scalar(select(KitchenTicket).where(KitchenTicket.order_id == order.id))
        assert ticket.items[0]["quantity"] == 5
        assert ticket.customer_notes == "extra spicy"

    def test_move_to_another_table(self, service, db_session, order, seed_table, second_table, vendor_stream):
        service.update_items(order.id, 7, update_request(tableId=second_table.id))

        assert service.get(order.id, 7).table_id == second_table.id
        assert stored_is_active(db_session, second_table.id) is False
        assert stored_is_active(db_session, seed_table.id) is True
        assert vendor_stream.types() == [
            "order-updated",
            "table-status-changed",
            "table-status-changed",
        ]

    def test_move_to_foreign_table_rejected(self, service, order, other_vendor_table):
        with pytest.raises(ValidationError) as exc_info:
            service.update_items(order.id, 7, update_request(tableId=other_vendor_table.id))
        assert exc_info.value.detail == "Invalid table for this restaurant"

    @pytest.mark.parametrize("final_status", ["delivered", "completed"])
    def test_finished_orders_not_editable(self, service, order, final_status):
        service.update_status(order.id, 7, final_status)
        with pytest.raises(OrderNotEditableError):
            service.update_items(order.id, 7, update_request())

    def test_cancelled_order_still_editable(self, service, db_session, order, seed_table):
        service.update_status(order.id, 7, "accepted")
        service.update_status(order.id, 7, "cancelled")

        updated = service.update_items(order.id, 7, update_request(quantity=5, customerNotes="late edit"))

        assert updated.items[0]["quantity"] == 5
        # Editing does not re-occupy the table
        assert stored_is_active(db_session, seed_table.id) is True
        # The kitchen ticket keeps the snapshot it had when the order was cancelled
        db_session.expire_all()
        ticket = db_session.scalar(select(KitchenTicket).where(KitchenTicket.order_id == order.id))
        assert ticket.items[0]["quantity"] == 2
        assert ticket.customer_notes is None


class TestList:
    def test_lists_newest_first(self, service, order):
        newer = service.create(7, create_request(quantity=1))
        assert [o.id for o in service.list_orders(7)] == [newer.id, order.id]

    def test_backfills_missing_tickets(self, service, db_session, order, monkeypatch):
        def boom(_order):
            raise RuntimeError("ticket store unavailable")

        monkeypatch.setattr(service._tickets, "ensure_ticket", boom)
        service.update_status(order.id, 7, "accepted")
        assert ticket_count(db_session) == 0

        monkeypatch.undo()
        orders = service.list_orders(7)
        assert ticket_count(db_session) == 1
        assert orders[0].kitchen_ticket is not None
