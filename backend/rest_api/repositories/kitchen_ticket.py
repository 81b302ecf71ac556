"""
Kitchen Ticket Repository - Data access for kitchen tickets.
"""

from dataclasses import dataclass
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import Select, select

from rest_api.models import KitchenTicket
from .base import BaseRepository, RepositoryFilters


@dataclass
class TicketFilters(RepositoryFilters):
    """Filters specific to kitchen tickets."""

    status: str | None = None
    table_id: int | None = None


class KitchenTicketRepository(BaseRepository[KitchenTicket]):
    """Repository for KitchenTicket entities, newest first, table eager-loaded."""

    @property
    def model(self) -> type[KitchenTicket]:
        return KitchenTicket

    def _base_query(self, vendor_id: int) -> Select:
        return (
            select(KitchenTicket)
            .where(KitchenTicket.vendor_id == vendor_id)
            .options(joinedload(KitchenTicket.table))
        )

    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        if isinstance(filters, TicketFilters):
            if filters.status:
                query = query.where(KitchenTicket.status == filters.status)
            if filters.table_id:
                query = query.where(KitchenTicket.table_id == filters.table_id)
        return query.order_by(KitchenTicket.created_at.desc(), KitchenTicket.id.desc())

    def find_by_order_id(self, order_id: int) -> KitchenTicket | None:
        return self._db.scalar(
            select(KitchenTicket).where(KitchenTicket.order_id == order_id)
        )

    def find_by_ticket_number(self, ticket_number: str) -> KitchenTicket | None:
        return self._db.scalar(
            select(KitchenTicket).where(KitchenTicket.ticket_number == ticket_number)
        )


def get_ticket_repository(db: Session) -> KitchenTicketRepository:
    return KitchenTicketRepository(db)
