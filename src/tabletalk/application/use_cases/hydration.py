from __future__ import annotations

import logging

from tabletalk.application.ports.repositories import MenuReader
from tabletalk.domain.common.ids import MenuItemId
from tabletalk.domain.order.entities import Order, OrderSnapshot, hydrate

logger = logging.getLogger(__name__)


def hydrate_orders(orders: list[Order], menu_reader: MenuReader) -> list[OrderSnapshot]:
    menu_item_ids: set[MenuItemId] = set()
    for order in orders:
        menu_item_ids |= order.menu_item_ids()
    menu_items = menu_reader.get_items(menu_item_ids) if menu_item_ids else {}

    snapshots = [hydrate(order, menu_items) for order in orders]
    for snapshot in snapshots:
        missing = snapshot.missing_menu_item_ids
        if missing:
            logger.warning(
                "order_items_unresolved",
                extra={
                    "order_id": snapshot.order.order_id,
                    "menu_item_ids": sorted(missing),
                },
            )
    return snapshots


def hydrate_order(order: Order, menu_reader: MenuReader) -> OrderSnapshot:
    return hydrate_orders([order], menu_reader)[0]
