"""
Model -> response schema builders.

All three order families flatten into OrderOutput so the dashboard renders
one shape; money leaves as the fixed two-decimal string.
"""

from typing import Optional

from rest_api.models import DeliveryOrder, KitchenTicket, Order, PickupOrder, Table
from rest_api.services.domain.pricing_service import money_str
from shared.config.constants import OrderType
from shared.utils.schemas import KitchenTicketOutput, OrderOutput, TableOutput


def _common_fields(order) -> dict:
    return {
        "id": order.id,
        "vendor_id": order.vendor_id,
        "status": order.status,
        "items": order.items or [],
        "total_amount": money_str(order.total_amount),
        "customer_name": order.customer_name,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
        "accepted_at": order.accepted_at,
        "preparing_at": order.preparing_at,
        "ready_at": order.ready_at,
    }


def build_order_output(order: Order) -> OrderOutput:
    ticket: Optional[KitchenTicket] = order.kitchen_ticket
    return OrderOutput(
        **_common_fields(order),
        order_type=OrderType.DINE_IN,
        customer_phone=order.customer_phone,
        customer_notes=order.customer_notes,
        vendor_notes=order.vendor_notes,
        table_id=order.table_id,
        table_number=order.table.table_number if order.table else None,
        kot_ticket_id=ticket.id if ticket else None,
        ticket_number=ticket.ticket_number if ticket else None,
        delivered_at=order.delivered_at,
        completed_at=order.completed_at,
    )


def build_delivery_output(order: DeliveryOrder) -> OrderOutput:
    return OrderOutput(
        **_common_fields(order),
        order_type=OrderType.DELIVERY,
        customer_phone=order.delivery_phone,
        customer_notes=order.notes,
        delivery_address=order.delivery_address,
        out_for_delivery_at=order.out_for_delivery_at,
        delivered_at=order.delivered_at,
    )


def build_pickup_output(order: PickupOrder) -> OrderOutput:
    return OrderOutput(
        **_common_fields(order),
        order_type=OrderType.PICKUP,
        customer_phone=order.customer_phone,
        customer_notes=order.notes,
        pickup_reference=order.pickup_reference,
        pickup_time=order.pickup_time,
        completed_at=order.completed_at,
    )


OUTPUT_BUILDERS = {
    OrderType.DINE_IN: build_order_output,
    OrderType.DELIVERY: build_delivery_output,
    OrderType.PICKUP: build_pickup_output,
}


def build_ticket_output(ticket: KitchenTicket) -> KitchenTicketOutput:
    return KitchenTicketOutput(
        id=ticket.id,
        order_id=ticket.order_id,
        vendor_id=ticket.vendor_id,
        table_id=ticket.table_id,
        table_number=ticket.table.table_number if ticket.table else None,
        ticket_number=ticket.ticket_number,
        status=ticket.status,
        items=ticket.items or [],
        customer_notes=ticket.customer_notes,
        created_at=ticket.created_at,
        updated_at=ticket.updated_at,
        printed_at=ticket.printed_at,
    )


def build_table_output(table: Table) -> TableOutput:
    return TableOutput(
        id=table.id,
        vendor_id=table.vendor_id,
        table_number=table.table_number,
        is_active=table.is_active,
        is_manual=table.is_manual,
        captain_id=table.captain_id,
        qr_data=table.qr_data,
    )
