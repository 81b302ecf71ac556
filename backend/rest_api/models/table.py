"""
Table model.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Index, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, IdType, TimestampMixin


class Table(TimestampMixin, Base):
    """
    Physical table of a vendor.

    is_active is availability: True = free, False = held by at least one
    order in an occupying status. It is a projection of the orders on the
    table, maintained by TableLockService, never written directly.

    Table numbers 0 and -1 are per-vendor sentinels that carry the synthetic
    rows behind delivery and pickup kitchen tickets.
    """

    # "table" is a reserved SQL keyword
    __tablename__ = "restaurant_table"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    vendor_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("vendor.id"), nullable=False, index=True
    )
    table_number: Mapped[int] = mapped_column(Integer, nullable=False)
    qr_data: Mapped[Optional[str]] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_manual: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    # Captains are managed by the staff screens; only the id is kept here
    captain_id: Mapped[Optional[int]] = mapped_column(IdType, nullable=True, index=True)

    __table_args__ = (
        UniqueConstraint("vendor_id", "table_number", name="uq_table_vendor_number"),
        Index("ix_table_vendor_active", "vendor_id", "is_active"),
    )

    @property
    def is_sentinel(self) -> bool:
        return self.table_number <= 0
