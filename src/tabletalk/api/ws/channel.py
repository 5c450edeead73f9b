from __future__ import annotations

import asyncio
import logging

from tabletalk.api.ws.registry import Subscriber, SubscriberRegistry

logger = logging.getLogger(__name__)


class BroadcastChannel:
    """Fan-out of order snapshots to every registered subscriber.

    Delivery is at-most-once with no replay: a subscriber that is not
    registered when a message is published never sees it. Messages reach each
    subscriber in the order ``publish`` was called.
    """

    def __init__(
        self,
        registry: SubscriberRegistry,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._registry = registry
        self._loop = loop

    @property
    def registry(self) -> SubscriberRegistry:
        return self._registry

    def bind(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop

    def publish(self, message: str) -> None:
        """Hand a message to the channel without waiting for delivery.

        Safe to call from worker threads; the fan-out itself always runs on
        the bound event loop.
        """
        loop = self._loop
        if loop is None:
            raise RuntimeError("broadcast channel is not bound to an event loop")

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is loop:
            self._fan_out(message)
        else:
            loop.call_soon_threadsafe(self._fan_out, message)

    def _fan_out(self, message: str) -> None:
        targets: list[Subscriber] = self._registry.snapshot()
        accepted = sum(1 for subscriber in targets if subscriber.offer(message))
        logger.debug(
            "broadcast_fan_out",
            extra={"subscribers": len(targets), "accepted": accepted},
        )

    async def close(self) -> None:
        await self._registry.close()
