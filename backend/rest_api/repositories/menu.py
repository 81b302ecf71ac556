"""
Menu repository: resolves order line items against the vendor's catalog.
"""

from typing import Sequence
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import Select, select

from rest_api.models import MenuItem, Vendor
from .base import BaseRepository


class MenuItemRepository(BaseRepository[MenuItem]):
    """Menu items with their category (GST defaults) eager-loaded."""

    @property
    def model(self) -> type[MenuItem]:
        return MenuItem

    def _base_query(self, vendor_id: int) -> Select:
        return (
            select(MenuItem)
            .where(MenuItem.vendor_id == vendor_id)
            .options(joinedload(MenuItem.category))
        )

    def find_available_by_ids(self, item_ids: list[int], vendor_id: int) -> Sequence[MenuItem]:
        if not item_ids:
            return []
        query = self._base_query(vendor_id).where(
            MenuItem.id.in_(item_ids),
            MenuItem.is_available.is_(True),
        )
        return self._db.execute(query).scalars().unique().all()


def get_menu_item_repository(db: Session) -> MenuItemRepository:
    return MenuItemRepository(db)


def get_vendor(db: Session, vendor_id: int) -> Vendor | None:
    return db.get(Vendor, vendor_id)
