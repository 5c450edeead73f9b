from __future__ import annotations

from tabletalk.application.dto.responses import OrderResponse
from tabletalk.application.mappers.order_mapper import to_order_response
from tabletalk.application.ports.repositories import MenuReader, OrderRepository
from tabletalk.application.use_cases.hydration import hydrate_orders


class ListOrders:
    """All orders, newest first, each re-hydrated against the live menu.

    Clients call this on connect and after every reconnect; the push channel
    keeps no backlog.
    """

    def __init__(self, order_repository: OrderRepository, menu_reader: MenuReader) -> None:
        self._order_repository = order_repository
        self._menu_reader = menu_reader

    def execute(self) -> list[OrderResponse]:
        orders = self._order_repository.list_newest_first()
        return [to_order_response(snapshot) for snapshot in hydrate_orders(orders, self._menu_reader)]
