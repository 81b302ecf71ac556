"""
Kitchen ticket (KOT) model.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, IdType, JsonType, TimestampMixin

if TYPE_CHECKING:
    from .order import Order
    from .table import Table


class KitchenTicket(TimestampMixin, Base):
    """
    Kitchen order ticket. At most one per row in `orders`: the unique
    order_id is what makes concurrent issuance safe (insert, ignore on
    conflict, re-read the winner).

    items/customer_notes are a snapshot taken at issuance and refreshed only
    when the order's items are edited.
    """

    __tablename__ = "kot_ticket"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    order_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("orders.id"), nullable=False, unique=True
    )
    vendor_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("vendor.id"), nullable=False, index=True
    )
    table_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("restaurant_table.id"), nullable=False, index=True
    )
    ticket_number: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    items: Mapped[list[dict[str, Any]]] = mapped_column(JsonType, nullable=False, default=list)
    customer_notes: Mapped[Optional[str]] = mapped_column(Text)
    printed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        Index("ix_kot_ticket_vendor_created", "vendor_id", "created_at"),
    )

    order: Mapped["Order"] = relationship(back_populates="kitchen_ticket")
    table: Mapped["Table"] = relationship()
