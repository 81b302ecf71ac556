"""
Public routers - No authentication required.
- /api/public/orders - QR dine-in ordering
- /api/booking/confirm, /api/pickup/order - consumer checkout
- /api/health - Health check
"""

from .orders import router as public_orders_router
from .booking import router as booking_router
from .health import router as health_router

__all__ = ["public_orders_router", "booking_router", "health_router"]
