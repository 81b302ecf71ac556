"""
Order repositories for the three fulfillment families.
"""

from dataclasses import dataclass
from typing import Sequence
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import Select, func, or_, select

from rest_api.models import DeliveryOrder, Order, PickupOrder
from shared.config.constants import (
    ACTIONABLE_STATUSES,
    DELIVERY_NOTES_PREFIX,
    OCCUPYING_STATUSES,
    PICKUP_NOTES_PREFIX,
)
from .base import BaseRepository, RepositoryFilters


@dataclass
class OrderFilters(RepositoryFilters):
    """Filters shared by all order families."""

    status: str | None = None
    statuses: list[str] | None = None
    table_id: int | None = None


def _apply_status_filters(model, query: Select, filters: RepositoryFilters) -> Select:
    if not isinstance(filters, OrderFilters):
        return query
    if filters.status:
        query = query.where(model.status == filters.status)
    elif filters.statuses:
        query = query.where(model.status.in_(filters.statuses))
    return query


def real_dine_in_clause():
    """Excludes the synthetic rows that back delivery/pickup kitchen tickets."""
    return or_(
        Order.customer_notes.is_(None),
        ~(
            Order.customer_notes.startswith(DELIVERY_NOTES_PREFIX, autoescape=True)
            | Order.customer_notes.startswith(PICKUP_NOTES_PREFIX, autoescape=True)
        ),
    )


class OrderRepository(BaseRepository[Order]):
    """Dine-in orders. Listing hides synthetic delivery/pickup rows."""

    @property
    def model(self) -> type[Order]:
        return Order

    def _base_query(self, vendor_id: int) -> Select:
        return (
            select(Order)
            .where(Order.vendor_id == vendor_id)
            .options(joinedload(Order.table), joinedload(Order.kitchen_ticket))
        )

    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        query = query.where(real_dine_in_clause())
        query = _apply_status_filters(Order, query, filters)
        if isinstance(filters, OrderFilters) and filters.table_id:
            query = query.where(Order.table_id == filters.table_id)
        return query.order_by(Order.created_at.desc(), Order.id.desc())

    def find_dine_in_by_id(self, order_id: int, vendor_id: int) -> Order | None:
        """Like find_by_id, but never returns a synthetic delivery/pickup row."""
        query = self._base_query(vendor_id).where(Order.id == order_id, real_dine_in_clause())
        return self._db.scalar(query)

    def count_occupying(self, table_id: int) -> int:
        """Orders on the table that currently hold it."""
        query = (
            select(func.count())
            .select_from(Order)
            .where(
                Order.table_id == table_id,
                Order.status.in_(OCCUPYING_STATUSES),
            )
        )
        return self._db.scalar(query) or 0

    def find_actionable_without_ticket(self, vendor_id: int) -> Sequence[Order]:
        """Real dine-in orders past acceptance that still have no kitchen ticket."""
        query = (
            select(Order)
            .where(
                Order.vendor_id == vendor_id,
                Order.status.in_(ACTIONABLE_STATUSES),
                ~Order.kitchen_ticket.has(),
                real_dine_in_clause(),
            )
            .order_by(Order.id)
        )
        return self._db.execute(query).scalars().all()


class DeliveryOrderRepository(BaseRepository[DeliveryOrder]):
    @property
    def model(self) -> type[DeliveryOrder]:
        return DeliveryOrder

    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        query = _apply_status_filters(DeliveryOrder, query, filters)
        return query.order_by(DeliveryOrder.created_at.desc(), DeliveryOrder.id.desc())


class PickupOrderRepository(BaseRepository[PickupOrder]):
    @property
    def model(self) -> type[PickupOrder]:
        return PickupOrder

    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        query = _apply_status_filters(PickupOrder, query, filters)
        return query.order_by(PickupOrder.created_at.desc(), PickupOrder.id.desc())


def get_order_repository(db: Session) -> OrderRepository:
    return OrderRepository(db)


def get_delivery_order_repository(db: Session) -> DeliveryOrderRepository:
    return DeliveryOrderRepository(db)


def get_pickup_order_repository(db: Session) -> PickupOrderRepository:
    return PickupOrderRepository(db)
