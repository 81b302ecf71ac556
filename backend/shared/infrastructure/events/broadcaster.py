"""
Event Broadcaster.

In-process pub/sub that fans order lifecycle events out to every live
dashboard subscription of the event's vendor.

- publish() is synchronous and runs on the event loop: each subscriber of
  a vendor sees that vendor's events in publish order.
- A failed write removes that one subscription; the rest still receive
  the event.
- Each subscription owns a heartbeat task. Removing a subscription always
  cancels it.
- No backlog: an event published while nobody listens is gone.
"""

from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass, field
from typing import Protocol

from shared.config.logging import stream_logger as logger
from shared.infrastructure.events.event_schema import OrderEvent

HEARTBEAT_FRAME = ": heartbeat\n\n"


class StreamConnection(Protocol):
    """Anything a frame can be written to. send() raises on failure."""

    def send(self, frame: str) -> None: ...

    def close(self) -> None: ...


_subscription_ids = itertools.count(1)


@dataclass(eq=False)
class Subscription:
    """Handle returned by subscribe(); pass it back to unsubscribe()."""

    connection: StreamConnection
    vendor_id: int
    role: str
    id: int = field(default_factory=lambda: next(_subscription_ids))
    heartbeat_task: asyncio.Task | None = None
    active: bool = True


class EventBroadcaster:
    """
    Owned broadcaster instance. Create one per application and inject it
    where events are published or streams are opened.
    """

    def __init__(self, heartbeat_interval: float | None = 30.0):
        self._heartbeat_interval = heartbeat_interval
        self._by_vendor: dict[int, dict[int, Subscription]] = {}

    @property
    def subscriber_count(self) -> int:
        return sum(len(subs) for subs in self._by_vendor.values())

    def subscribers_for(self, vendor_id: int) -> list[Subscription]:
        return list(self._by_vendor.get(vendor_id, {}).values())

    def subscribe(self, connection: StreamConnection, vendor_id: int, role: str) -> Subscription:
        """
        Register a connection for a vendor's events. When a heartbeat
        interval is configured this must be called from a running event loop.
        """
        subscription = Subscription(connection=connection, vendor_id=vendor_id, role=role)
        self._by_vendor.setdefault(vendor_id, {})[subscription.id] = subscription

        if self._heartbeat_interval:
            subscription.heartbeat_task = asyncio.get_running_loop().create_task(
                self._heartbeat_loop(subscription),
                name=f"stream_heartbeat_{subscription.id}",
            )

        logger.info(
            "Stream subscribed",
            subscription_id=subscription.id,
            vendor_id=vendor_id,
            role=role,
            vendor_subscribers=len(self._by_vendor[vendor_id]),
        )
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """Idempotent. Cancels the heartbeat and closes the connection."""
        if not subscription.active:
            return
        subscription.active = False

        vendor_subs = self._by_vendor.get(subscription.vendor_id)
        if vendor_subs is not None:
            vendor_subs.pop(subscription.id, None)
            if not vendor_subs:
                del self._by_vendor[subscription.vendor_id]

        task = subscription.heartbeat_task
        if task is not None and not task.done() and task is not _current_task():
            task.cancel()
        subscription.heartbeat_task = None

        try:
            subscription.connection.close()
        except Exception as e:
            logger.debug("Connection close failed", subscription_id=subscription.id, error=str(e))

        logger.info(
            "Stream unsubscribed",
            subscription_id=subscription.id,
            vendor_id=subscription.vendor_id,
        )

    def publish(self, event: OrderEvent) -> int:
        """
        Deliver an event to every subscriber of its vendor.

        Returns the number of subscribers the frame was written to.
        """
        subscribers = self.subscribers_for(event.vendor_id)
        if not subscribers:
            return 0

        frame = event.to_sse()
        delivered = 0
        for subscription in subscribers:
            if self._write(subscription, frame):
                delivered += 1

        logger.debug(
            "Event published",
            event_type=event.type,
            vendor_id=event.vendor_id,
            order_id=event.order_id,
            delivered=delivered,
            dropped=len(subscribers) - delivered,
        )
        return delivered

    def close_all(self) -> None:
        """Drop every subscription (application shutdown)."""
        for vendor_subs in list(self._by_vendor.values()):
            for subscription in list(vendor_subs.values()):
                self.unsubscribe(subscription)

    def _write(self, subscription: Subscription, frame: str) -> bool:
        try:
            subscription.connection.send(frame)
            return True
        except Exception as e:
            logger.warning(
                "Stream write failed, removing subscription",
                subscription_id=subscription.id,
                vendor_id=subscription.vendor_id,
                error=str(e),
            )
            self.unsubscribe(subscription)
            return False

    async def _heartbeat_loop(self, subscription: Subscription) -> None:
        while subscription.active:
            await asyncio.sleep(self._heartbeat_interval)
            if not subscription.active:
                return
            if not self._write(subscription, HEARTBEAT_FRAME):
                return


def _current_task() -> asyncio.Task | None:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None
