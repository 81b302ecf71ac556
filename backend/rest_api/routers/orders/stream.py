"""
Live order stream - GET /api/orders/stream (server-sent events).

Dashboards subscribe once and receive every lifecycle event of their
vendor. Registered before the /api/orders/{order_id} routes.
"""

from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from rest_api.routers._common import get_broadcaster, stream_role_of, vendor_id_of
from shared.config.constants import VENDOR_STAFF_ROLES
from shared.config.settings import settings
from shared.infrastructure.events import EventBroadcaster, QueueConnection, stream_frames
from shared.security.auth import require_roles, stream_user_context

router = APIRouter(prefix="/api/orders", tags=["orders-stream"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    # Disable proxy buffering (nginx)
    "X-Accel-Buffering": "no",
}


@router.get("/stream")
async def order_stream(
    request: Request,
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
    ctx: dict[str, Any] = Depends(stream_user_context),
) -> StreamingResponse:
    """
    Token via Authorization header or ?token= (EventSource cannot set headers).
    """
    require_roles(ctx, VENDOR_STAFF_ROLES)

    connection = QueueConnection(maxsize=settings.stream_queue_size)
    subscription = broadcaster.subscribe(connection, vendor_id_of(ctx), stream_role_of(ctx))

    return StreamingResponse(
        stream_frames(
            broadcaster,
            subscription,
            connection,
            request.is_disconnected,
            poll_seconds=settings.stream_poll_seconds,
        ),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
