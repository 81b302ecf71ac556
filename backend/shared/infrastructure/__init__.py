"""
Infrastructure module.

Provides:
- Database sessions and transactions (db.py)
- Request correlation ids (correlation.py)
- In-process order event fan-out and SSE streaming (events/)
"""

from shared.infrastructure.db import (
    engine,
    SessionLocal,
    get_db,
    get_db_context,
    safe_commit,
)

__all__ = [
    "engine",
    "SessionLocal",
    "get_db",
    "get_db_context",
    "safe_commit",
]
