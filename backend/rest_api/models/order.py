"""
Order models: Order (dine-in), DeliveryOrder, PickupOrder.

The three families live in separate tables but share the status vocabulary,
the priced line-item snapshot and the one-shot status timestamps
(OrderLifecycleMixin).
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, IdType, JsonType, TimestampMixin

if TYPE_CHECKING:
    from .table import Table
    from .kitchen import KitchenTicket


class OrderLifecycleMixin(TimestampMixin):
    """Columns common to every order family."""

    items: Mapped[list[dict[str, Any]]] = mapped_column(JsonType, nullable=False, default=list)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    customer_name: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False, index=True)
    accepted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    preparing_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    ready_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))


class Order(OrderLifecycleMixin, Base):
    """
    Dine-in order placed against a physical table.

    Also holds the synthetic rows created for delivery/pickup kitchen
    tickets; those sit on sentinel tables and their customer_notes start
    with a "[DELIVERY ORDER #" / "[PICKUP ORDER #" tag.
    """

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    vendor_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("vendor.id"), nullable=False, index=True
    )
    table_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("restaurant_table.id"), nullable=False, index=True
    )
    customer_phone: Mapped[Optional[str]] = mapped_column(String(20))
    customer_notes: Mapped[Optional[str]] = mapped_column(Text)
    vendor_notes: Mapped[Optional[str]] = mapped_column(Text)
    delivered_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        # Table refresh counts occupying orders per table
        Index("ix_orders_table_status", "table_id", "status"),
        Index("ix_orders_vendor_created", "vendor_id", "created_at"),
    )

    table: Mapped["Table"] = relationship()
    kitchen_ticket: Mapped[Optional["KitchenTicket"]] = relationship(
        back_populates="order", uselist=False
    )


class DeliveryOrder(OrderLifecycleMixin, Base):
    """Order delivered to a customer address."""

    __tablename__ = "delivery_order"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    # Customer account id from the consumer app (not modelled here)
    user_id: Mapped[Optional[int]] = mapped_column(IdType, nullable=True, index=True)
    vendor_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("vendor.id"), nullable=False, index=True
    )
    delivery_address: Mapped[str] = mapped_column(Text, nullable=False)
    delivery_latitude: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 7))
    delivery_longitude: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 7))
    delivery_phone: Mapped[Optional[str]] = mapped_column(String(20))
    notes: Mapped[Optional[str]] = mapped_column(Text)
    out_for_delivery_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    delivered_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    @property
    def customer_phone(self) -> Optional[str]:
        return self.delivery_phone


class PickupOrder(OrderLifecycleMixin, Base):
    """Order collected by the customer at the counter."""

    __tablename__ = "pickup_order"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    user_id: Mapped[Optional[int]] = mapped_column(IdType, nullable=True, index=True)
    vendor_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("vendor.id"), nullable=False, index=True
    )
    pickup_reference: Mapped[Optional[str]] = mapped_column(String(50))
    pickup_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    customer_phone: Mapped[Optional[str]] = mapped_column(String(20))
    notes: Mapped[Optional[str]] = mapped_column(Text)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
