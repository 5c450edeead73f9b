from __future__ import annotations

from tabletalk.application.ports.publisher import BroadcastSink, EventPublisher


class InProcessEventPublisher(EventPublisher):
    """Feeds the broadcast channel of this process directly."""

    def __init__(self, channel: BroadcastSink) -> None:
        self._channel = channel

    def publish(self, channel: str, message: str) -> None:
        self._channel.publish(message)
