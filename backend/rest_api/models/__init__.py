"""
SQLAlchemy ORM Models Package.

- base: Base, TimestampMixin, shared column types
- vendor: Vendor, MenuCategory, MenuItem
- table: Table
- order: Order (dine-in), DeliveryOrder, PickupOrder
- kitchen: KitchenTicket
"""

from .base import Base, TimestampMixin, IdType, JsonType
from .vendor import Vendor, MenuCategory, MenuItem
from .table import Table
from .order import Order, DeliveryOrder, PickupOrder, OrderLifecycleMixin
from .kitchen import KitchenTicket

__all__ = [
    "Base",
    "TimestampMixin",
    "IdType",
    "JsonType",
    "Vendor",
    "MenuCategory",
    "MenuItem",
    "Table",
    "Order",
    "DeliveryOrder",
    "PickupOrder",
    "OrderLifecycleMixin",
    "KitchenTicket",
]
