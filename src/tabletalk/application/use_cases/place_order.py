from __future__ import annotations

import logging
from contextlib import AbstractContextManager
from datetime import datetime, timezone
from typing import Any

from tabletalk.application.dto.requests import CreateOrderRequest
from tabletalk.application.dto.responses import OrderResponse
from tabletalk.application.mappers.order_mapper import to_order_response
from tabletalk.application.metrics.order_lifecycle import record_order_created
from tabletalk.application.ports.publisher import EventPublisher
from tabletalk.application.ports.repositories import MenuReader, OrderRepository
from tabletalk.application.use_cases.context import TraceContext
from tabletalk.application.use_cases.hydration import hydrate_order
from tabletalk.application.use_cases.order_events import ORDER_WRITE_LOCK, publish_order_event
from tabletalk.domain.common.ids import MenuItemId, TableCode
from tabletalk.domain.order.entities import NewOrderItem, OrderDraft
from tabletalk.domain.order.events import OrderEvent, OrderEventKind

logger = logging.getLogger(__name__)


class InvalidOrderInputError(Exception):
    pass


class PlaceOrder:
    """Create an order for a table and broadcast it as ``new_order``.

    The table code and menu item ids are trusted as given: code validation
    happens before the client is allowed to order, and an unknown menu item id
    surfaces as a store failure from the foreign key.
    """

    def __init__(
        self,
        order_repository: OrderRepository,
        menu_reader: MenuReader,
        publisher: EventPublisher,
        write_lock: AbstractContextManager[Any] | None = None,
    ) -> None:
        self._order_repository = order_repository
        self._menu_reader = menu_reader
        self._publisher = publisher
        self._write_lock = ORDER_WRITE_LOCK if write_lock is None else write_lock

    def execute(self, request_dto: CreateOrderRequest, trace_ctx: TraceContext) -> OrderResponse:
        try:
            draft = OrderDraft(
                table_code=TableCode(request_dto.table_code),
                items=tuple(
                    NewOrderItem(
                        menu_item_id=MenuItemId(line.menu_item_id),
                        quantity=line.quantity,
                        notes=line.notes,
                    )
                    for line in request_dto.items
                ),
            )
        except ValueError as exc:
            raise InvalidOrderInputError(str(exc)) from exc

        with self._write_lock:
            now = datetime.now(timezone.utc)
            order = self._order_repository.add(draft, now=now)
            snapshot = hydrate_order(order, self._menu_reader)
            publish_order_event(
                self._publisher,
                OrderEvent(kind=OrderEventKind.CREATED, snapshot=snapshot, occurred_at=now),
                trace_ctx,
            )

        record_order_created()
        logger.info(
            "order_created",
            extra={"order_id": order.order_id, "table_code": order.table_code},
        )
        return to_order_response(snapshot)
