"""
Thermal printer receipt (48 columns, plain text).
"""

from datetime import datetime
from typing import Any, Optional

from rest_api.models import Order, Vendor
from rest_api.services.domain.pricing_service import money_str
from shared.config.constants import RECEIPT_WIDTH

LINE = "=" * RECEIPT_WIDTH


def center(text: str, width: int = RECEIPT_WIDTH) -> str:
    """Left-pad to center; no right padding (printers trim it anyway)."""
    padding = max(0, (width - len(text)) // 2)
    return " " * padding + text


def _item_lines(index: int, item: dict[str, Any]) -> list[str]:
    lines = [
        f"{index}. {item.get('name', 'Item')}",
        f"   Qty: {item.get('quantity', 1)} x Rs. {item.get('unitPrice', '0.00')}",
    ]
    addons = item.get("addons") or []
    if addons:
        names = ", ".join(str(a.get("name", a)) if isinstance(a, dict) else str(a) for a in addons)
        lines.append(f"   Addons: {names}")
    lines.append(f"   Subtotal: Rs. {item.get('subtotal', '0.00')}")

    gst_amount = item.get("gstAmount")
    if gst_amount and gst_amount not in ("0", "0.00"):
        label = "incl." if item.get("gstMode") == "include" else "+"
        lines.append(f"   GST {item.get('gstRate', '0')}% ({label}): Rs. {gst_amount}")
    lines.append("")
    return lines


def format_receipt(
    order: Order,
    vendor: Optional[Vendor],
    table_number: Optional[int],
    printed_at: Optional[datetime] = None,
) -> str:
    """Render a dine-in order as a fixed-width receipt."""
    created = order.created_at or printed_at or datetime.now()
    out = [
        LINE,
        center(vendor.restaurant_name if vendor else "Restaurant"),
        center((vendor.address if vendor else None) or ""),
        center(f"Phone: {(vendor.phone if vendor else None) or ''}"),
        LINE,
        center(f"ORDER #{order.id}"),
        center(f"Table: {table_number if table_number is not None else '-'}"),
        center(created.strftime("%d/%m/%Y %I:%M %p")),
        LINE,
    ]

    if order.customer_name or order.customer_phone:
        out.append("Customer Information:")
        if order.customer_name:
            out.append(f"  Name: {order.customer_name}")
        if order.customer_phone:
            out.append(f"  Phone: {order.customer_phone}")
        out.append(LINE)

    out.append("ITEMS:")
    out.append(LINE)
    for index, item in enumerate(order.items or [], start=1):
        out.extend(_item_lines(index, item))

    out.append(LINE)
    out.append(f"TOTAL: Rs. {money_str(order.total_amount)}".rjust(RECEIPT_WIDTH))
    out.append(LINE)

    if order.customer_notes:
        out.append("Customer Notes:")
        out.append(order.customer_notes)
        out.append(LINE)

    out.append(f"Status: {order.status.upper()}")
    out.append(LINE)
    out.append(center("Thank you for your order!"))
    out.append(LINE)
    return "\n".join(out) + "\n"
