"""
Tests for delivery and pickup checkout, and for driving those orders
through the staff status endpoint.
"""

import re

from sqlalchemy import select

from rest_api.models import Order, Vendor
from tests.factories import order_items


def book_delivery(client, **fields):
    payload = {
        "restaurant_id": 7,
        "items": order_items(),
        "delivery_address": "221B Baker Street",
        "delivery_phone": "+919811111111",
        **fields,
    }
    return client.post("/api/booking/confirm", json=payload)


def book_pickup(client, **fields):
    payload = {"restaurant_id": 7, "items": order_items(), "customer_phone": "+919822222222", **fields}
    return client.post("/api/pickup/order", json=payload)


class TestDeliveryBooking:
    def test_confirm(self, client, seed_menu, vendor_stream):
        response = book_delivery(client)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["status"] == "pending"
        assert data["total_amount"] == "420.00"
        assert data["message"] == "Order placed successfully"

        assert vendor_stream.events[0]["type"] == "order-created"
        assert vendor_stream.events[0]["orderType"] == "delivery"

    def test_disabled_vendor(self, client, db_session, seed_menu):
        db_session.get(Vendor, 7).is_delivery_enabled = False
        db_session.commit()

        response = book_delivery(client)
        assert response.status_code == 400
        assert response.json() == {"message": "This restaurant does not accept delivery orders"}

    def test_unknown_restaurant(self, client, seed_menu):
        response = book_delivery(client, restaurant_id=999)
        assert response.status_code == 404

    def test_address_required(self, client, seed_menu):
        response = book_delivery(client, delivery_address="")
        assert response.status_code == 400

    def test_status_flow_issues_delivery_ticket(self, client, auth_headers, db_session, seed_menu, sms_requests):
        order_id = book_delivery(client).json()["order_id"]

        response = client.put(
            f"/api/orders/{order_id}/status",
            json={"status": "accepted", "orderType": "delivery"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["orderType"] == "delivery"
        assert response.json()["acceptedAt"] is not None

        tickets = client.get("/api/kitchen/tickets", headers=auth_headers).json()
        assert [t["ticketNumber"] for t in tickets] == [f"KOT-DEL-7-{order_id}"]
        assert tickets[0]["tableNumber"] == 0

        # The synthetic row never shows up as a dine-in order
        dine_in = client.get("/api/orders", headers=auth_headers).json()
        assert dine_in == []
        assert db_session.scalar(select(Order.customer_notes)).startswith("[DELIVERY ORDER #")

        # Sentinel tables are not listed either
        assert client.get("/api/tables", headers=auth_headers).json() == []

        assert len(sms_requests) == 1
        assert "To=%2B919811111111" in sms_requests[0].content.decode()

    def test_out_for_delivery_then_delivered(self, client, auth_headers, seed_menu):
        order_id = book_delivery(client).json()["order_id"]
        for status in ("accepted", "out_for_delivery", "delivered"):
            response = client.put(
                f"/api/orders/{order_id}/status",
                json={"status": status, "orderType": "delivery"},
                headers=auth_headers,
            )
            assert response.status_code == 200

        data = client.get(f"/api/orders/{order_id}", params={"orderType": "delivery"}, headers=auth_headers).json()
        assert data["status"] == "delivered"
        assert data["outForDeliveryAt"] is not None
        assert data["deliveredAt"] is not None

    def test_synthetic_row_does_not_shadow_delivery_order(self, client, auth_headers, seed_menu):
        order_id = book_delivery(client).json()["order_id"]
        client.put(
            f"/api/orders/{order_id}/status",
            json={"status": "accepted", "orderType": "delivery"},
            headers=auth_headers,
        )

        # The ticket's backing dine-in row got the same id; lookup must skip it
        response = client.put(
            f"/api/orders/{order_id}/status",
            json={"status": "preparing"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["orderType"] == "delivery"

    def test_ticket_backing_row_is_not_a_dine_in_order(self, client, auth_headers, db_session, seed_menu):
        order_id = book_delivery(client).json()["order_id"]
        client.put(
            f"/api/orders/{order_id}/status",
            json={"status": "accepted", "orderType": "delivery"},
            headers=auth_headers,
        )
        synthetic_id = db_session.scalar(select(Order.id))

        read = client.get(f"/api/orders/{synthetic_id}", params={"orderType": "dine_in"}, headers=auth_headers)
        assert read.status_code == 404

        changed = client.put(
            f"/api/orders/{synthetic_id}/status",
            json={"status": "completed", "orderType": "dine_in"},
            headers=auth_headers,
        )
        assert changed.status_code == 404
        assert changed.json() == {"message": "Order not found"}

        edited = client.put(
            f"/api/orders/{synthetic_id}", json={"items": order_items()}, headers=auth_headers
        )
        assert edited.status_code == 404
        assert client.get(f"/api/orders/{synthetic_id}/receipt", headers=auth_headers).status_code == 404

        db_session.expire_all()
        assert db_session.get(Order, synthetic_id).status == "accepted"

    def test_completed_is_not_a_delivery_status(self, client, auth_headers, seed_menu):
        order_id = book_delivery(client).json()["order_id"]
        response = client.put(
            f"/api/orders/{order_id}/status",
            json={"status": "completed", "orderType": "delivery"},
            headers=auth_headers,
        )
        assert response.status_code == 400

    def test_listing_backfills_tickets(self, client, auth_headers, seed_menu):
        order_id = book_delivery(client).json()["order_id"]
        client.put(
            f"/api/orders/{order_id}/status",
            json={"status": "preparing", "orderType": "delivery"},
            headers=auth_headers,
        )

        listed = client.get("/api/orders", params={"orderType": "delivery"}, headers=auth_headers).json()
        assert [o["id"] for o in listed] == [order_id]
        assert listed[0]["deliveryAddress"] == "221B Baker Street"


class TestPickupOrder:
    def test_place_order(self, client, seed_menu, vendor_stream):
        response = book_pickup(client, pickup_time="2026-03-14T19:30:00")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "Pickup order placed successfully"
        assert data["total_amount"] == "420.00"
        assert re.fullmatch(r"PU-[0-9A-F]{6}", data["pickup_reference"])
        assert vendor_stream.events[0]["orderType"] == "pickup"

    def test_disabled_vendor(self, client, db_session, seed_menu):
        db_session.get(Vendor, 7).is_pickup_enabled = False
        db_session.commit()

        response = book_pickup(client)
        assert response.status_code == 400
        assert response.json() == {"message": "This restaurant does not accept pickup orders"}

    def test_ready_issues_pickup_ticket(self, client, auth_headers, seed_menu):
        placed = book_pickup(client, pickup_time="2026-03-14T19:30:00").json()
        order_id, reference = placed["order_id"], placed["pickup_reference"]

        response = client.put(
            f"/api/orders/{order_id}/status",
            json={"status": "ready", "orderType": "pickup"},
            headers=auth_headers,
        )
        assert response.status_code == 200

        tickets = client.get("/api/kitchen/tickets", headers=auth_headers).json()
        assert tickets[0]["ticketNumber"] == f"KOT-PICKUP-7-{order_id}"
        assert tickets[0]["customerNotes"] == (
            f"Pickup Order #{order_id} - {reference} - Pickup: 2026-03-14 19:30"
        )
        assert tickets[0]["tableNumber"] == -1

    def test_out_for_delivery_is_not_a_pickup_status(self, client, auth_headers, seed_menu):
        order_id = book_pickup(client).json()["order_id"]
        response = client.put(
            f"/api/orders/{order_id}/status",
            json={"status": "out_for_delivery", "orderType": "pickup"},
            headers=auth_headers,
        )
        assert response.status_code == 400

    def test_family_located_without_order_type(self, client, auth_headers, seed_menu):
        order_id = book_pickup(client).json()["order_id"]
        response = client.put(
            f"/api/orders/{order_id}/status",
            json={"status": "completed"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["orderType"] == "pickup"
        assert response.json()["completedAt"] is not None
