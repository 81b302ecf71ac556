"""
Vendor and catalog models: Vendor, MenuCategory, MenuItem.

Only the columns the ordering core reads are modelled here; menu editing
screens own the rest of the catalog.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, IdType, TimestampMixin


class Vendor(TimestampMixin, Base):
    """A restaurant on the platform."""

    __tablename__ = "vendor"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    restaurant_name: Mapped[str] = mapped_column(Text, nullable=False)
    address: Mapped[Optional[str]] = mapped_column(Text)
    phone: Mapped[Optional[str]] = mapped_column(String(20))
    gst_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("0"), nullable=False)
    gst_mode: Mapped[str] = mapped_column(String(10), default="exclude", nullable=False)
    is_delivery_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_pickup_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    categories: Mapped[list["MenuCategory"]] = relationship(back_populates="vendor")


class MenuCategory(TimestampMixin, Base):
    """Menu category. Carries the default GST rate/mode for its items."""

    __tablename__ = "menu_category"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    vendor_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("vendor.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    gst_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("0"), nullable=False)
    gst_mode: Mapped[str] = mapped_column(String(10), default="exclude", nullable=False)

    vendor: Mapped["Vendor"] = relationship(back_populates="categories")
    items: Mapped[list["MenuItem"]] = relationship(back_populates="category")


class MenuItem(TimestampMixin, Base):
    """A sellable menu item."""

    __tablename__ = "menu_item"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    vendor_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("vendor.id"), nullable=False, index=True
    )
    category_id: Mapped[Optional[int]] = mapped_column(
        IdType, ForeignKey("menu_category.id"), nullable=True, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    category: Mapped[Optional["MenuCategory"]] = relationship(back_populates="items")
