"""
Event type constants for the order stream.
"""

ORDER_CREATED = "order-created"
ORDER_UPDATED = "order-updated"
ORDER_STATUS_CHANGED = "order-status-changed"
KOT_CREATED = "kot-created"
TABLE_STATUS_CHANGED = "table-status-changed"

# Sent once by the gateway when a stream opens; never published
CONNECTED = "connected"

ALL_EVENT_TYPES = frozenset({
    ORDER_CREATED,
    ORDER_UPDATED,
    ORDER_STATUS_CHANGED,
    KOT_CREATED,
    TABLE_STATUS_CHANGED,
})
