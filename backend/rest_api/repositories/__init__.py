"""
Repository Pattern implementation.
Centralizes data access; every query is scoped to a vendor.

Usage:
    from rest_api.repositories import get_order_repository

    repo = get_order_repository(db)
    order = repo.find_by_id(12, vendor_id=7)
"""

from .base import BaseRepository, RepositoryFilters
from .order import (
    OrderRepository,
    DeliveryOrderRepository,
    PickupOrderRepository,
    OrderFilters,
    get_order_repository,
    get_delivery_order_repository,
    get_pickup_order_repository,
)
from .table import TableRepository, get_table_repository
from .kitchen_ticket import KitchenTicketRepository, TicketFilters, get_ticket_repository
from .menu import MenuItemRepository, get_menu_item_repository, get_vendor

__all__ = [
    "BaseRepository",
    "RepositoryFilters",
    "OrderRepository",
    "DeliveryOrderRepository",
    "PickupOrderRepository",
    "OrderFilters",
    "get_order_repository",
    "get_delivery_order_repository",
    "get_pickup_order_repository",
    "TableRepository",
    "get_table_repository",
    "KitchenTicketRepository",
    "TicketFilters",
    "get_ticket_repository",
    "MenuItemRepository",
    "get_menu_item_repository",
    "get_vendor",
]
