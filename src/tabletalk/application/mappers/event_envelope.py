from __future__ import annotations

import json
from datetime import datetime
from typing import Any
from uuid import uuid4

from tabletalk.application.mappers.order_mapper import to_order_response
from tabletalk.domain.order.events import OrderEvent, OrderEventKind

WIRE_EVENT_TYPES: dict[OrderEventKind, str] = {
    OrderEventKind.CREATED: "new_order",
    OrderEventKind.UPDATED: "order_updated",
}


def _serialize_envelope(
    *,
    event_type: str,
    occurred_at: datetime,
    order: dict[str, Any],
    trace_id: str | None,
    request_id: str | None,
) -> str:
    envelope = {
        "type": event_type,
        "order": order,
        "event_id": str(uuid4()),
        "occurred_at": occurred_at.isoformat(),
        "request_id": request_id,
        "trace_id": trace_id,
    }
    return json.dumps(envelope, separators=(",", ":"), ensure_ascii=False)


def serialize_order_event(
    *,
    event: OrderEvent,
    trace_id: str | None,
    request_id: str | None,
) -> str:
    return _serialize_envelope(
        event_type=WIRE_EVENT_TYPES[event.kind],
        occurred_at=event.occurred_at,
        order=to_order_response(event.snapshot).model_dump(mode="json"),
        trace_id=trace_id,
        request_id=request_id,
    )
