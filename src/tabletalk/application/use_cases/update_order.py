from __future__ import annotations

import logging
from contextlib import AbstractContextManager
from datetime import datetime, timezone
from typing import Any

from tabletalk.application.dto.requests import UpdateOrderRequest
from tabletalk.application.dto.responses import OrderResponse
from tabletalk.application.mappers.order_mapper import to_order_response
from tabletalk.application.metrics.order_lifecycle import (
    record_patch_fields,
    record_time_to_status,
    record_transition,
    record_transition_rejected,
)
from tabletalk.application.ports.publisher import EventPublisher
from tabletalk.application.ports.repositories import MenuReader, OrderRepository
from tabletalk.application.use_cases.context import TraceContext
from tabletalk.application.use_cases.hydration import hydrate_order
from tabletalk.application.use_cases.order_events import ORDER_WRITE_LOCK, publish_order_event
from tabletalk.domain.common.ids import OrderId
from tabletalk.domain.order.entities import OrderPatch, OrderTransitionError
from tabletalk.domain.order.events import OrderEvent, OrderEventKind
from tabletalk.domain.order.policy import PermissiveTransitionPolicy, TransitionPolicy

logger = logging.getLogger(__name__)


class OrderNotFoundError(Exception):
    pass


class InvalidOrderInputError(Exception):
    pass


class InvalidOrderTransitionError(Exception):
    pass


class UpdateOrder:
    """Apply a sparse staff patch to an order and broadcast ``order_updated``.

    Every call refreshes ``updated_at`` and broadcasts, an empty patch included.
    The write itself is one UPDATE touching only the provided columns, so two
    concurrent patches to disjoint fields both survive. The read, the write and
    the broadcast run under one write lock: the policy check sees the row it
    patches, ``updated_at`` never moves backwards, and the last ``order_updated``
    a subscriber receives matches the stored row.
    """

    def __init__(
        self,
        order_repository: OrderRepository,
        menu_reader: MenuReader,
        publisher: EventPublisher,
        transition_policy: TransitionPolicy | None = None,
        write_lock: AbstractContextManager[Any] | None = None,
    ) -> None:
        self._order_repository = order_repository
        self._menu_reader = menu_reader
        self._publisher = publisher
        self._transition_policy = transition_policy or PermissiveTransitionPolicy()
        self._write_lock = ORDER_WRITE_LOCK if write_lock is None else write_lock

    def execute(
        self,
        order_id: OrderId,
        request_dto: UpdateOrderRequest,
        trace_ctx: TraceContext,
    ) -> OrderResponse:
        try:
            patch = OrderPatch(
                status=request_dto.status,
                queue_number=request_dto.queue_number,
                wait_time=request_dto.wait_time,
                notification=request_dto.notification,
                provided=frozenset(request_dto.model_fields_set),
            )
        except ValueError as exc:
            raise InvalidOrderInputError(str(exc)) from exc

        with self._write_lock:
            current = self._order_repository.get(order_id)
            if current is None:
                raise OrderNotFoundError(f"order {order_id} not found")

            if patch.status is not None:
                try:
                    self._transition_policy.check(current.status, patch.status)
                except OrderTransitionError as exc:
                    record_transition_rejected(self._transition_policy.name)
                    raise InvalidOrderTransitionError(str(exc)) from exc

            now = max(datetime.now(timezone.utc), current.updated_at)
            updated = self._order_repository.apply_patch(order_id, patch, now=now)
            if updated is None:
                raise OrderNotFoundError(f"order {order_id} not found")

            snapshot = hydrate_order(updated, self._menu_reader)
            publish_order_event(
                self._publisher,
                OrderEvent(kind=OrderEventKind.UPDATED, snapshot=snapshot, occurred_at=now),
                trace_ctx,
            )

        record_patch_fields(patch.provided)
        if patch.status is not None and patch.status != current.status:
            record_transition(from_status=current.status, to_status=patch.status)
            record_time_to_status(updated, now=now)
        logger.info(
            "order_updated",
            extra={"order_id": order_id, "fields": sorted(patch.provided)},
        )
        return to_order_response(snapshot)
