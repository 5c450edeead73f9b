from __future__ import annotations

import concurrent.futures
import sys
from datetime import datetime, timezone
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from tabletalk.domain.common.ids import MenuItemId, OrderId, TableCode
from tabletalk.domain.order.entities import NewOrderItem, OrderDraft, OrderPatch, OrderStatus
from tabletalk.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository


def _draft() -> OrderDraft:
    return OrderDraft(
        table_code=TableCode("TABLE04"),
        items=(NewOrderItem(menu_item_id=MenuItemId(2), quantity=1),),
    )


def test_concurrent_disjoint_patches_both_apply() -> None:
    repository = SqlAlchemyOrderRepository()
    order = repository.add(_draft(), now=datetime.now(timezone.utc))

    patches = [
        OrderPatch(status=OrderStatus.PREPARING, provided=frozenset({"status"})),
        OrderPatch(wait_time=20, provided=frozenset({"wait_time"})),
    ]

    def _apply(patch: OrderPatch):
        return repository.apply_patch(order.order_id, patch, now=datetime.now(timezone.utc))

    with concurrent.futures.ThreadPoolExecutor(max_workers=2) as executor:
        results = list(executor.map(_apply, patches))

    assert all(result is not None for result in results)
    current = repository.get(order.order_id)
    assert current is not None
    assert current.status == OrderStatus.PREPARING
    assert current.wait_time == 20
    assert current.updated_at >= order.updated_at


def test_patch_of_missing_order_returns_none() -> None:
    repository = SqlAlchemyOrderRepository()
    patch = OrderPatch(status=OrderStatus.READY, provided=frozenset({"status"}))

    assert repository.apply_patch(OrderId(987654), patch, now=datetime.now(timezone.utc)) is None


def test_add_persists_order_and_items_together() -> None:
    repository = SqlAlchemyOrderRepository()

    order = repository.add(_draft(), now=datetime.now(timezone.utc))
    stored = repository.get(order.order_id)

    assert stored == order
    assert [item.menu_item_id for item in stored.items] == [MenuItemId(2)]
