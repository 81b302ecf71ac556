"""
Order routers - /api/orders/*
The stream router must be included before the routes router so that
/api/orders/stream is not captured by /api/orders/{order_id}.
"""

from .stream import router as stream_router
from .routes import router as orders_router

__all__ = ["stream_router", "orders_router"]
