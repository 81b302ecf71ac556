"""
Order event fan-out: event schema, in-process broadcaster, SSE stream plumbing.
"""

from .event_types import (
    ORDER_CREATED,
    ORDER_UPDATED,
    ORDER_STATUS_CHANGED,
    KOT_CREATED,
    TABLE_STATUS_CHANGED,
    CONNECTED,
    ALL_EVENT_TYPES,
)
from .event_schema import OrderEvent
from .broadcaster import EventBroadcaster, Subscription, StreamConnection, HEARTBEAT_FRAME
from .stream import QueueConnection, stream_frames, connected_frame

__all__ = [
    "ORDER_CREATED",
    "ORDER_UPDATED",
    "ORDER_STATUS_CHANGED",
    "KOT_CREATED",
    "TABLE_STATUS_CHANGED",
    "CONNECTED",
    "ALL_EVENT_TYPES",
    "OrderEvent",
    "EventBroadcaster",
    "Subscription",
    "StreamConnection",
    "HEARTBEAT_FRAME",
    "QueueConnection",
    "stream_frames",
    "connected_frame",
]
