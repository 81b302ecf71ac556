"""
Shared Pydantic schemas used across the application.

Staff dashboard endpoints speak camelCase JSON (CamelModel). The customer
booking endpoints keep the snake_case fields the consumer app already sends.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from shared.config.constants import Limits


# =============================================================================
# Common Types
# =============================================================================

OrderTypeLiteral = Literal["dine_in", "delivery", "pickup"]
GstModeLiteral = Literal["include", "exclude"]


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys; snake_case accepted on input too."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Order input
# =============================================================================


class RawOrderItem(BaseModel):
    """
    One requested line. Quantity, price and GST fields are deliberately loose:
    the pricing normalizer owns their coercion and validation.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    item_id: int = Field(validation_alias=AliasChoices("itemId", "item_id", "menuItemId", "id"))
    name: str | None = None
    quantity: Any = 1
    unit_price: Any = Field(default=None, validation_alias=AliasChoices("unitPrice", "unit_price", "price"))
    addons: list[dict[str, Any]] = Field(default_factory=list)
    gst_rate: Any = Field(default=None, validation_alias=AliasChoices("gstRate", "gst_rate"))
    gst_mode: str | None = Field(default=None, validation_alias=AliasChoices("gstMode", "gst_mode"))


class CreateOrderRequest(CamelModel):
    """Dine-in order placed by staff (vendor from the token)."""

    table_id: int
    items: list[RawOrderItem] = Field(max_length=Limits.MAX_ITEMS_PER_ORDER)
    customer_name: str | None = Field(default=None, max_length=Limits.MAX_NAME_LENGTH)
    customer_phone: str | None = Field(default=None, max_length=Limits.MAX_PHONE_LENGTH)
    customer_notes: str | None = Field(default=None, max_length=Limits.MAX_NOTES_LENGTH)


class PublicCreateOrderRequest(CreateOrderRequest):
    """Dine-in order placed from a table QR code."""

    vendor_id: int = Field(validation_alias=AliasChoices("vendorId", "vendor_id", "restaurantId", "restaurant_id"))


class UpdateOrderRequest(CamelModel):
    """Item edit on an existing dine-in order; omitted customer fields are kept."""

    table_id: int | None = None
    items: list[RawOrderItem] = Field(max_length=Limits.MAX_ITEMS_PER_ORDER)
    customer_name: str | None = Field(default=None, max_length=Limits.MAX_NAME_LENGTH)
    customer_phone: str | None = Field(default=None, max_length=Limits.MAX_PHONE_LENGTH)
    customer_notes: str | None = Field(default=None, max_length=Limits.MAX_NOTES_LENGTH)


class UpdateOrderStatusRequest(CamelModel):
    status: str = Field(min_length=1, max_length=20)
    order_type: OrderTypeLiteral | None = None


class DeliveryBookingRequest(BaseModel):
    """Delivery checkout from the consumer app."""

    restaurant_id: int
    user_id: int | None = None
    items: list[RawOrderItem] = Field(max_length=Limits.MAX_ITEMS_PER_ORDER)
    delivery_address: str = Field(min_length=1, max_length=Limits.MAX_NOTES_LENGTH)
    delivery_latitude: float | None = Field(default=None, ge=-90, le=90)
    delivery_longitude: float | None = Field(default=None, ge=-180, le=180)
    delivery_phone: str | None = Field(default=None, max_length=Limits.MAX_PHONE_LENGTH)
    customer_name: str | None = Field(default=None, max_length=Limits.MAX_NAME_LENGTH)
    notes: str | None = Field(default=None, max_length=Limits.MAX_NOTES_LENGTH)


class PickupOrderRequest(BaseModel):
    """Pickup checkout from the consumer app."""

    restaurant_id: int
    user_id: int | None = None
    items: list[RawOrderItem] = Field(max_length=Limits.MAX_ITEMS_PER_ORDER)
    pickup_time: datetime | None = None
    customer_phone: str | None = Field(default=None, max_length=Limits.MAX_PHONE_LENGTH)
    customer_name: str | None = Field(default=None, max_length=Limits.MAX_NAME_LENGTH)
    notes: str | None = Field(default=None, max_length=Limits.MAX_NOTES_LENGTH)


# =============================================================================
# Outputs
# =============================================================================


class OrderOutput(CamelModel):
    """Any order family, flattened for the dashboard."""

    id: int
    vendor_id: int
    order_type: OrderTypeLiteral
    status: str
    items: list[dict[str, Any]]
    total_amount: str
    customer_name: str | None = None
    customer_phone: str | None = None
    customer_notes: str | None = None
    vendor_notes: str | None = None
    table_id: int | None = None
    table_number: int | None = None
    delivery_address: str | None = None
    pickup_reference: str | None = None
    pickup_time: datetime | None = None
    kot_ticket_id: int | None = None
    ticket_number: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    accepted_at: datetime | None = None
    preparing_at: datetime | None = None
    ready_at: datetime | None = None
    out_for_delivery_at: datetime | None = None
    delivered_at: datetime | None = None
    completed_at: datetime | None = None


class KitchenTicketOutput(CamelModel):
    id: int
    order_id: int
    vendor_id: int
    table_id: int
    table_number: int | None = None
    ticket_number: str
    status: str
    items: list[dict[str, Any]]
    customer_notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    printed_at: datetime | None = None


class TableOutput(CamelModel):
    id: int
    vendor_id: int
    table_number: int
    is_active: bool
    is_manual: bool
    captain_id: int | None = None
    qr_data: str | None = None


class ReceiptOutput(CamelModel):
    order_id: int
    receipt: str
    plain_text: str
