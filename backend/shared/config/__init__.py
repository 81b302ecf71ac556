"""
Configuration module: Settings, logging, constants.
"""

from shared.config.settings import settings, DATABASE_URL
from shared.config.logging import get_logger, setup_logging
from shared.config.constants import (
    Roles,
    OrderStatus,
    OrderType,
    Limits,
    OCCUPYING_STATUSES,
    ACTIONABLE_STATUSES,
)

__all__ = [
    "settings",
    "DATABASE_URL",
    "get_logger",
    "setup_logging",
    "Roles",
    "OrderStatus",
    "OrderType",
    "Limits",
    "OCCUPYING_STATUSES",
    "ACTIONABLE_STATUSES",
]
