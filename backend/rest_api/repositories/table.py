"""
Table repository.
"""

from typing import Sequence
from sqlalchemy.orm import Session
from sqlalchemy import Select, select

from rest_api.models import Table
from .base import BaseRepository, RepositoryFilters


class TableRepository(BaseRepository[Table]):
    @property
    def model(self) -> type[Table]:
        return Table

    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        return query.order_by(Table.table_number)

    def find_physical(self, vendor_id: int) -> Sequence[Table]:
        """All real tables of the vendor, sentinels excluded."""
        query = (
            select(Table)
            .where(Table.vendor_id == vendor_id, Table.table_number > 0)
            .order_by(Table.table_number)
        )
        return self._db.execute(query).scalars().all()

    def find_by_number(self, vendor_id: int, table_number: int) -> Table | None:
        query = select(Table).where(
            Table.vendor_id == vendor_id,
            Table.table_number == table_number,
        )
        return self._db.scalar(query)


def get_table_repository(db: Session) -> TableRepository:
    return TableRepository(db)
