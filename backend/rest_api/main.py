"""
REST API main application.
Entry point for the FastAPI REST server.

Run with:
    uvicorn rest_api.main:app --app-dir backend --port 8000
"""

from fastapi import FastAPI

from rest_api.core.cors import configure_cors
from rest_api.core.errors import register_exception_handlers
from rest_api.core.lifespan import lifespan
from rest_api.core.middlewares import register_middlewares
from rest_api.routers.kitchen import tickets_router
from rest_api.routers.orders import orders_router, stream_router
from rest_api.routers.public import booking_router, health_router, public_orders_router
from rest_api.routers.tables.routes import router as tables_router
from shared.config.settings import settings
from shared.infrastructure.events import EventBroadcaster
from shared.security.rate_limit import limiter


def create_app() -> FastAPI:
    app = FastAPI(
        title="Tableside Orders API",
        description="Order lifecycle, table availability and kitchen tickets for restaurants",
        version="0.1.0",
        lifespan=lifespan,
    )

    # One broadcaster per application; routers reach it through get_broadcaster
    app.state.broadcaster = EventBroadcaster(heartbeat_interval=settings.stream_heartbeat_seconds)
    app.state.limiter = limiter

    register_exception_handlers(app)
    configure_cors(app)
    register_middlewares(app)

    # Stream first: /api/orders/stream must not match /api/orders/{order_id}
    app.include_router(stream_router)
    app.include_router(orders_router)
    app.include_router(public_orders_router)
    app.include_router(booking_router)
    app.include_router(tickets_router)
    app.include_router(tables_router)
    app.include_router(health_router)
    return app


app = create_app()
