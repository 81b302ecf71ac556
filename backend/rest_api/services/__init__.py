"""
Services module for business logic.

- domain/: Application services (pricing, orders, tables, kitchen tickets)
- notifications: Customer SMS on status changes
- receipt: Thermal printer receipt text
- outputs: Model -> response schema builders

Usage:
    from rest_api.services.domain import OrderService
    service = OrderService(db, broadcaster)
    orders = service.list_orders(vendor_id)
"""

from .domain import (
    PricingService,
    TableLockService,
    KitchenTicketService,
    OrderService,
    FulfillmentService,
)
from .notifications import SmsNotifier, get_notifier
from .receipt import format_receipt

__all__ = [
    "PricingService",
    "TableLockService",
    "KitchenTicketService",
    "OrderService",
    "FulfillmentService",
    "SmsNotifier",
    "get_notifier",
    "format_receipt",
]
