"""
Domain Services - Application Layer.

Services contain business logic and orchestrate operations.
They use Repositories for data access and publish order events.

Structure:
    Router (thin controller)
        ↓
    Service (business logic)  ← YOU ARE HERE
        ↓
    Repository (data access)
        ↓
    Model (entity)

Usage:
    from rest_api.services.domain import OrderService

    # In router
    service = OrderService(db, broadcaster)
    order = service.update_status(order_id, vendor_id, "accepted")
"""

from .pricing_service import PricingService, PricedItems
from .table_lock_service import TableLockService, TableAvailability
from .ticket_service import KitchenTicketService
from .order_service import OrderService
from .fulfillment_service import FulfillmentService

__all__ = [
    "PricingService",
    "PricedItems",
    "TableLockService",
    "TableAvailability",
    "KitchenTicketService",
    "OrderService",
    "FulfillmentService",
]
