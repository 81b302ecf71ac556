"""
Event Schema.

Defines the OrderEvent dataclass published to vendor dashboards.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from shared.infrastructure.events.event_types import ALL_EVENT_TYPES


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class OrderEvent:
    """
    Lifecycle event scoped to one vendor.

    Carries identifiers only; dashboards refetch the entity they need.
    """

    type: str
    vendor_id: int
    order_id: int | None = None
    order_type: str | None = None
    table_id: int | None = None
    status: str | None = None
    ticket_id: int | None = None
    is_active: bool | None = None
    ts: str = field(default_factory=_utc_now_iso)

    def __post_init__(self) -> None:
        if self.type not in ALL_EVENT_TYPES:
            raise ValueError(f"Unknown event type: {self.type!r}")
        if not isinstance(self.vendor_id, int) or self.vendor_id <= 0:
            raise ValueError("Event vendor_id must be a positive integer")

    def to_dict(self) -> dict[str, Any]:
        data = {
            "type": self.type,
            "vendorId": self.vendor_id,
            "orderId": self.order_id,
            "orderType": self.order_type,
            "tableId": self.table_id,
            "status": self.status,
            "ticketId": self.ticket_id,
            "isActive": self.is_active,
            "ts": self.ts,
        }
        return {k: v for k, v in data.items() if v is not None}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    def to_sse(self) -> str:
        """Server-sent event frame."""
        return f"data: {self.to_json()}\n\n"
