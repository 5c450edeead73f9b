from __future__ import annotations

from typing import Protocol

ORDER_EVENTS_CHANNEL = "events:orders"


class EventPublisher(Protocol):
    def publish(self, channel: str, message: str) -> None: ...


class BroadcastSink(Protocol):
    def publish(self, message: str) -> None: ...
