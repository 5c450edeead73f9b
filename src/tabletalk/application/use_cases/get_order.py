from __future__ import annotations

from tabletalk.application.dto.responses import OrderResponse
from tabletalk.application.mappers.order_mapper import to_order_response
from tabletalk.application.ports.repositories import MenuReader, OrderRepository
from tabletalk.application.use_cases.hydration import hydrate_order
from tabletalk.domain.common.ids import OrderId


class OrderNotFoundError(Exception):
    pass


class GetOrder:
    def __init__(self, order_repository: OrderRepository, menu_reader: MenuReader) -> None:
        self._order_repository = order_repository
        self._menu_reader = menu_reader

    def execute(self, order_id: OrderId) -> OrderResponse:
        order = self._order_repository.get(order_id)
        if order is None:
            raise OrderNotFoundError(f"order {order_id} not found")
        return to_order_response(hydrate_order(order, self._menu_reader))
