from __future__ import annotations

import logging
import threading

from tabletalk.application.mappers.event_envelope import WIRE_EVENT_TYPES, serialize_order_event
from tabletalk.application.metrics.order_lifecycle import record_publish_failure
from tabletalk.application.ports.publisher import ORDER_EVENTS_CHANNEL, EventPublisher
from tabletalk.application.use_cases.context import TraceContext
from tabletalk.domain.order.events import OrderEvent

logger = logging.getLogger(__name__)

# held from the store write until the broadcast is queued, so this process
# publishes order events in commit order
ORDER_WRITE_LOCK = threading.Lock()


def publish_order_event(
    publisher: EventPublisher,
    event: OrderEvent,
    trace_ctx: TraceContext,
) -> None:
    """Hand one snapshot to the broadcast channel. Never raises."""
    message = serialize_order_event(
        event=event,
        trace_id=trace_ctx.trace_id,
        request_id=trace_ctx.request_id,
    )
    try:
        publisher.publish(channel=ORDER_EVENTS_CHANNEL, message=message)
    except Exception:
        record_publish_failure()
        logger.exception(
            "order_event_publish_failed",
            extra={
                "order_id": event.snapshot.order.order_id,
                "event_type": WIRE_EVENT_TYPES[event.kind],
            },
        )
