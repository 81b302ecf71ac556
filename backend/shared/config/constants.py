"""
Centralized constants for the backend application.

Usage:
    from shared.config.constants import OrderStatus, OCCUPYING_STATUSES

    if order.status in OCCUPYING_STATUSES:
        ...
"""

from typing import Final


# =============================================================================
# User Roles
# =============================================================================


class Roles:
    """Staff role constants carried in the access token."""

    ADMIN: Final[str] = "ADMIN"
    VENDOR: Final[str] = "VENDOR"
    CAPTAIN: Final[str] = "CAPTAIN"

    ALL: Final[list[str]] = [ADMIN, VENDOR, CAPTAIN]


# Roles allowed to operate on a vendor's orders
VENDOR_STAFF_ROLES: Final[list[str]] = [Roles.ADMIN, Roles.VENDOR, Roles.CAPTAIN]
# Roles allowed to change order status / edit orders
ORDER_MANAGER_ROLES: Final[list[str]] = [Roles.ADMIN, Roles.VENDOR, Roles.CAPTAIN]


class StreamRole:
    """Dashboard role attached to a stream subscription."""

    VENDOR: Final[str] = "vendor"
    CAPTAIN: Final[str] = "captain"


# =============================================================================
# Orders
# =============================================================================


class OrderType:
    """Fulfillment families. Each lives in its own table."""

    DINE_IN: Final[str] = "dine_in"
    DELIVERY: Final[str] = "delivery"
    PICKUP: Final[str] = "pickup"

    ALL: Final[list[str]] = [DINE_IN, DELIVERY, PICKUP]


class OrderStatus:
    """Shared status vocabulary across dine-in, delivery and pickup orders."""

    PENDING: Final[str] = "pending"
    ACCEPTED: Final[str] = "accepted"
    PREPARING: Final[str] = "preparing"
    READY: Final[str] = "ready"
    OUT_FOR_DELIVERY: Final[str] = "out_for_delivery"
    DELIVERED: Final[str] = "delivered"
    COMPLETED: Final[str] = "completed"
    CANCELLED: Final[str] = "cancelled"

    TERMINAL: Final[frozenset[str]] = frozenset({DELIVERED, COMPLETED, CANCELLED})


# Statuses each family accepts
ORDER_STATUSES: Final[dict[str, list[str]]] = {
    OrderType.DINE_IN: [
        OrderStatus.PENDING,
        OrderStatus.ACCEPTED,
        OrderStatus.PREPARING,
        OrderStatus.READY,
        OrderStatus.DELIVERED,
        OrderStatus.COMPLETED,
        OrderStatus.CANCELLED,
    ],
    OrderType.DELIVERY: [
        OrderStatus.PENDING,
        OrderStatus.ACCEPTED,
        OrderStatus.PREPARING,
        OrderStatus.READY,
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
    ],
    OrderType.PICKUP: [
        OrderStatus.PENDING,
        OrderStatus.ACCEPTED,
        OrderStatus.PREPARING,
        OrderStatus.READY,
        OrderStatus.COMPLETED,
        OrderStatus.CANCELLED,
    ],
}

# Progression rank; a transition may skip ahead but never move back.
# cancelled sits outside the ranking and is reachable from any non-terminal status.
STATUS_RANK: Final[dict[str, int]] = {
    OrderStatus.PENDING: 0,
    OrderStatus.ACCEPTED: 1,
    OrderStatus.PREPARING: 2,
    OrderStatus.READY: 3,
    OrderStatus.OUT_FOR_DELIVERY: 4,
    OrderStatus.DELIVERED: 5,
    OrderStatus.COMPLETED: 5,
}

# A dine-in order in one of these statuses holds its table
OCCUPYING_STATUSES: Final[frozenset[str]] = frozenset({
    OrderStatus.PENDING,
    OrderStatus.ACCEPTED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
})

# Entering one of these statuses means the kitchen must have a ticket
ACTIONABLE_STATUSES: Final[frozenset[str]] = frozenset({
    OrderStatus.ACCEPTED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.OUT_FOR_DELIVERY,
})

# Item edits are rejected once an order reaches one of these
NON_EDITABLE_STATUSES: Final[frozenset[str]] = frozenset({
    OrderStatus.COMPLETED,
    OrderStatus.DELIVERED,
})

# status -> one-shot timestamp column, per family
STATUS_TIMESTAMP_FIELDS: Final[dict[str, dict[str, str]]] = {
    OrderType.DINE_IN: {
        OrderStatus.ACCEPTED: "accepted_at",
        OrderStatus.PREPARING: "preparing_at",
        OrderStatus.READY: "ready_at",
        OrderStatus.DELIVERED: "delivered_at",
        OrderStatus.COMPLETED: "completed_at",
    },
    OrderType.DELIVERY: {
        OrderStatus.ACCEPTED: "accepted_at",
        OrderStatus.PREPARING: "preparing_at",
        OrderStatus.READY: "ready_at",
        OrderStatus.OUT_FOR_DELIVERY: "out_for_delivery_at",
        OrderStatus.DELIVERED: "delivered_at",
    },
    OrderType.PICKUP: {
        OrderStatus.ACCEPTED: "accepted_at",
        OrderStatus.PREPARING: "preparing_at",
        OrderStatus.READY: "ready_at",
        OrderStatus.COMPLETED: "completed_at",
    },
}


def is_forward_transition(current_status: str, new_status: str) -> bool:
    """
    True if moving from current_status to new_status keeps the order moving
    forward. Same-status updates count as forward (they are no-ops).
    """
    if current_status == new_status:
        return True
    if current_status in OrderStatus.TERMINAL:
        return False
    if new_status == OrderStatus.CANCELLED:
        return True
    return STATUS_RANK[new_status] > STATUS_RANK[current_status]


# =============================================================================
# Pricing
# =============================================================================


class GstMode:
    """How a menu price relates to GST."""

    INCLUDE: Final[str] = "include"  # price already contains tax
    EXCLUDE: Final[str] = "exclude"  # tax added on top

    ALL: Final[list[str]] = [INCLUDE, EXCLUDE]
    DEFAULT: Final[str] = EXCLUDE


# =============================================================================
# Kitchen tickets and sentinel tables
# =============================================================================


class TicketStatus:
    """Kitchen ticket status constants."""

    PENDING: Final[str] = "pending"


class SentinelTable:
    """
    Reserved per-vendor table numbers that hold synthetic dine-in rows for
    delivery and pickup kitchen tickets.
    """

    DELIVERY: Final[int] = 0
    PICKUP: Final[int] = -1


DELIVERY_NOTES_PREFIX: Final[str] = "[DELIVERY ORDER #"
PICKUP_NOTES_PREFIX: Final[str] = "[PICKUP ORDER #"
SYNTHETIC_NOTES_PREFIXES: Final[tuple[str, ...]] = (DELIVERY_NOTES_PREFIX, PICKUP_NOTES_PREFIX)


# =============================================================================
# Validation Constants
# =============================================================================


class Limits:
    """Validation limits."""

    MAX_ITEMS_PER_ORDER: Final[int] = 100
    MAX_NAME_LENGTH: Final[int] = 200
    MAX_NOTES_LENGTH: Final[int] = 1000
    MAX_PHONE_LENGTH: Final[int] = 20

    DEFAULT_PAGE_SIZE: Final[int] = 50
    MAX_PAGE_SIZE: Final[int] = 200


# =============================================================================
# Receipts
# =============================================================================

RECEIPT_WIDTH: Final[int] = 48
