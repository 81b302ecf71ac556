"""
Common utilities shared across routers.
"""

from .dependencies import (
    get_broadcaster,
    staff_context,
    order_manager_context,
    vendor_id_of,
    is_captain_only,
    stream_role_of,
)
from .pagination import Pagination, get_pagination

__all__ = [
    "get_broadcaster",
    "staff_context",
    "order_manager_context",
    "vendor_id_of",
    "is_captain_only",
    "stream_role_of",
    "Pagination",
    "get_pagination",
]
