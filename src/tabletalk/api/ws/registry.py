from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import Protocol
from uuid import uuid4

from prometheus_client import Counter, Gauge

logger = logging.getLogger(__name__)

DEFAULT_MAILBOX_SIZE = 100

WS_SUBSCRIBERS = Gauge(
    "tabletalk_ws_subscribers",
    "Number of push-channel subscribers currently registered.",
)
BROADCAST_DELIVERED_TOTAL = Counter(
    "tabletalk_broadcast_delivered_total",
    "Total number of messages written to subscriber connections.",
)
BROADCAST_DROPPED_TOTAL = Counter(
    "tabletalk_broadcast_dropped_total",
    "Total number of messages dropped because a subscriber mailbox was full.",
)
SUBSCRIBER_SEND_FAILURES_TOTAL = Counter(
    "tabletalk_subscriber_send_failures_total",
    "Total number of subscribers evicted after a failed send.",
)


class Connection(Protocol):
    async def send_text(self, data: str) -> None: ...


class Subscriber:
    """One connected observer with its own bounded mailbox and sender task.

    ``offer`` never blocks. When the mailbox is full the new message is
    dropped for this subscriber only.
    """

    def __init__(self, connection: Connection, mailbox_size: int = DEFAULT_MAILBOX_SIZE) -> None:
        if mailbox_size < 1:
            raise ValueError("mailbox_size must be >= 1")
        self.subscriber_id = f"sub_{uuid4().hex[:12]}"
        self.connection = connection
        self._mailbox: asyncio.Queue[str] = asyncio.Queue(maxsize=mailbox_size)
        self._sender: asyncio.Task[None] | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return self._mailbox.qsize()

    def offer(self, message: str) -> bool:
        if self._closed:
            return False
        try:
            self._mailbox.put_nowait(message)
        except asyncio.QueueFull:
            BROADCAST_DROPPED_TOTAL.inc()
            logger.warning(
                "broadcast_message_dropped",
                extra={"subscriber_id": self.subscriber_id, "pending": self.pending},
            )
            return False
        return True

    def start(self, registry: SubscriberRegistry) -> None:
        if self._sender is None and not self._closed:
            self._sender = asyncio.create_task(
                self._drain(registry),
                name=f"ws-sender-{self.subscriber_id}",
            )

    async def _drain(self, registry: SubscriberRegistry) -> None:
        while True:
            message = await self._mailbox.get()
            try:
                await self.connection.send_text(message)
            except Exception:
                SUBSCRIBER_SEND_FAILURES_TOTAL.inc()
                logger.info("ws_send_failed", extra={"subscriber_id": self.subscriber_id})
                await registry.unregister(self.connection)
                return
            BROADCAST_DELIVERED_TOTAL.inc()

    async def close(self) -> None:
        self._closed = True
        sender = self._sender
        if sender is None or sender.done() or sender is asyncio.current_task():
            return
        sender.cancel()
        with suppress(asyncio.CancelledError):
            await sender


class SubscriberRegistry:
    """Connections currently admitted to the push channel.

    Owned by one ``BroadcastChannel``; all methods run on that channel's
    event loop.
    """

    def __init__(self, mailbox_size: int = DEFAULT_MAILBOX_SIZE) -> None:
        self._mailbox_size = mailbox_size
        self._subscribers: dict[Connection, Subscriber] = {}

    def __len__(self) -> int:
        return len(self._subscribers)

    def __contains__(self, connection: object) -> bool:
        return connection in self._subscribers

    def register(self, connection: Connection) -> Subscriber:
        existing = self._subscribers.get(connection)
        if existing is not None:
            return existing
        subscriber = Subscriber(connection, mailbox_size=self._mailbox_size)
        self._subscribers[connection] = subscriber
        WS_SUBSCRIBERS.inc()
        logger.info(
            "ws_client_connected",
            extra={"subscriber_id": subscriber.subscriber_id, "subscribers": len(self)},
        )
        return subscriber

    async def unregister(self, connection: Connection) -> None:
        subscriber = self._subscribers.pop(connection, None)
        if subscriber is None:
            return
        WS_SUBSCRIBERS.dec()
        await subscriber.close()
        logger.info(
            "ws_client_disconnected",
            extra={"subscriber_id": subscriber.subscriber_id, "subscribers": len(self)},
        )

    def snapshot(self) -> list[Subscriber]:
        return list(self._subscribers.values())

    async def close(self) -> None:
        for connection in list(self._subscribers):
            await self.unregister(connection)
