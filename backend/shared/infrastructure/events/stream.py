"""
Order stream plumbing between the broadcaster and an SSE response.

The broadcaster writes frames synchronously into a QueueConnection; the
response body generator drains the queue and yields frames to the client.
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from typing import AsyncIterator, Awaitable, Callable

from shared.config.logging import stream_logger as logger
from shared.infrastructure.events.broadcaster import EventBroadcaster, Subscription
from shared.infrastructure.events.event_types import CONNECTED


class QueueConnection:
    """
    StreamConnection backed by a bounded asyncio.Queue.

    A write to a closed connection, or to one whose client stopped reading
    long enough to fill the queue, raises ConnectionError.
    """

    def __init__(self, maxsize: int = 100):
        self._queue: asyncio.Queue[str | None] = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def send(self, frame: str) -> None:
        if self._closed:
            raise ConnectionError("stream connection closed")
        try:
            self._queue.put_nowait(frame)
        except asyncio.QueueFull as e:
            raise ConnectionError("stream client is not keeping up") from e

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            # Wake a reader blocked in receive()
            self._queue.put_nowait(None)
        except asyncio.QueueFull:
            # Reader sees the closed flag on its next poll
            pass

    async def receive(self, timeout: float) -> str | None:
        """Next frame, or None on timeout / close."""
        try:
            return await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None


def connected_frame(subscription: Subscription) -> str:
    payload = {
        "type": CONNECTED,
        "vendorId": subscription.vendor_id,
        "role": subscription.role,
        "ts": datetime.now(timezone.utc).isoformat(),
    }
    return f"data: {json.dumps(payload)}\n\n"


async def stream_frames(
    broadcaster: EventBroadcaster,
    subscription: Subscription,
    connection: QueueConnection,
    is_disconnected: Callable[[], Awaitable[bool]],
    poll_seconds: float = 1.0,
) -> AsyncIterator[str]:
    """
    Body of the SSE response: a `connected` frame, then whatever the
    broadcaster writes, until the client goes away or the subscription is
    dropped. The subscription is always removed on exit.
    """
    try:
        yield connected_frame(subscription)
        while True:
            if await is_disconnected():
                logger.info("Stream client disconnected", subscription_id=subscription.id)
                break
            frame = await connection.receive(timeout=poll_seconds)
            if frame is None:
                if connection.closed:
                    break
                continue
            yield frame
    finally:
        broadcaster.unsubscribe(subscription)
