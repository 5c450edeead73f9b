from __future__ import annotations

from datetime import datetime, timezone

from prometheus_client import Counter, Histogram

from tabletalk.domain.order.entities import Order, OrderStatus

ORDERS_CREATED_TOTAL = Counter(
    "tabletalk_orders_created_total",
    "Total number of orders created.",
)

ORDER_UPDATES_TOTAL = Counter(
    "tabletalk_order_updates_total",
    "Total number of order patches applied, by patched field.",
    ["field"],
)

ORDER_TRANSITION_TOTAL = Counter(
    "tabletalk_order_transition_total",
    "Total number of order status transitions.",
    ["from", "to"],
)

ORDER_TRANSITION_REJECTED_TOTAL = Counter(
    "tabletalk_order_transition_rejected_total",
    "Total number of status transitions rejected by the transition policy.",
    ["policy"],
)

ORDER_TIME_TO_STATUS_SECONDS = Histogram(
    "tabletalk_order_time_to_status_seconds",
    "Time between order creation and reaching a status.",
    ["status"],
)

ORDER_EVENT_PUBLISH_FAILURES_TOTAL = Counter(
    "tabletalk_order_event_publish_failures_total",
    "Total number of order events the publisher failed to accept.",
)


def record_order_created() -> None:
    ORDERS_CREATED_TOTAL.inc()


def record_patch_fields(fields: frozenset[str]) -> None:
    if not fields:
        ORDER_UPDATES_TOTAL.labels(field="none").inc()
        return
    for name in sorted(fields):
        ORDER_UPDATES_TOTAL.labels(field=name).inc()


def record_transition(from_status: OrderStatus, to_status: OrderStatus) -> None:
    ORDER_TRANSITION_TOTAL.labels(**{"from": from_status.value, "to": to_status.value}).inc()


def record_transition_rejected(policy: str) -> None:
    ORDER_TRANSITION_REJECTED_TOTAL.labels(policy=policy).inc()


def record_time_to_status(order: Order, now: datetime | None = None) -> None:
    current = now or datetime.now(timezone.utc)
    ORDER_TIME_TO_STATUS_SECONDS.labels(status=order.status.value).observe(
        max((current - order.created_at).total_seconds(), 0.0)
    )


def record_publish_failure() -> None:
    ORDER_EVENT_PUBLISH_FAILURES_TOTAL.inc()
