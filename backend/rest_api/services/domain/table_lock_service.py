"""
Table lock manager.

A table's is_active flag is a projection of the orders sitting on it:
available iff none of them is in an occupying status. Nothing here holds
a lock primitive. lock() is an unconditional write checked by reading it
back; refresh() recomputes from the orders currently stored, so it is
idempotent and safe to run from interleaved requests.

Neither method commits; callers own the transaction.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from rest_api.models import Table
from rest_api.repositories import get_order_repository, get_table_repository
from shared.config.logging import table_logger as logger
from shared.utils.exceptions import FatalInvariantError, TableNotFoundError


@dataclass(frozen=True)
class TableAvailability:
    table_id: int
    vendor_id: int
    is_active: bool
    changed: bool


class TableLockService:
    def __init__(self, db: Session):
        self._db = db
        self._orders = get_order_repository(db)
        self._tables = get_table_repository(db)

    def _persisted_state(self, table_id: int) -> tuple[int, bool] | None:
        """(vendor_id, is_active) as stored, bypassing the identity map."""
        row = self._db.execute(
            select(Table.vendor_id, Table.is_active).where(Table.id == table_id)
        ).first()
        return (row.vendor_id, row.is_active) if row is not None else None

    def _write(self, table_id: int, is_active: bool) -> int:
        result = self._db.execute(
            update(Table)
            .where(Table.id == table_id)
            .values(is_active=is_active, updated_at=func.now())
        )
        return result.rowcount

    def lock(self, table_id: int) -> TableAvailability:
        """
        Mark the table booked.

        Raises:
            TableNotFoundError: no such table.
            FatalInvariantError: the write did not persist as False.
        """
        before = self._persisted_state(table_id)
        if before is None:
            raise TableNotFoundError(table_id)
        vendor_id, was_active = before

        if self._write(table_id, False) == 0:
            raise TableNotFoundError(table_id)

        after = self._persisted_state(table_id)
        if after is None or after[1] is not False:
            raise FatalInvariantError(
                "Table lock did not persist",
                table_id=table_id,
                vendor_id=vendor_id,
                persisted=None if after is None else after[1],
            )

        if was_active:
            logger.info("Table locked", table_id=table_id, vendor_id=vendor_id)
        return TableAvailability(table_id, vendor_id, False, changed=bool(was_active))

    def refresh(self, table_id: int) -> TableAvailability:
        """Recompute availability from the orders currently on the table."""
        before = self._persisted_state(table_id)
        if before is None:
            raise TableNotFoundError(table_id)
        vendor_id, was_active = before

        occupying = self._orders.count_occupying(table_id)
        is_active = occupying == 0
        self._write(table_id, is_active)

        changed = was_active != is_active
        if changed:
            logger.info(
                "Table availability changed",
                table_id=table_id,
                vendor_id=vendor_id,
                is_active=is_active,
                occupying_orders=occupying,
            )
        return TableAvailability(table_id, vendor_id, is_active, changed=changed)

    def refresh_vendor_tables(self, vendor_id: int) -> list[TableAvailability]:
        """Reconcile every physical table of a vendor."""
        return [self.refresh(table.id) for table in self._tables.find_physical(vendor_id)]
