from __future__ import annotations

import json
import sys
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from tabletalk.application.dto.requests import (
    CreateOrderItemRequest,
    CreateOrderRequest,
    UpdateOrderRequest,
)
from tabletalk.application.ports.publisher import ORDER_EVENTS_CHANNEL
from tabletalk.application.ports.repositories import StoreFailure
from tabletalk.application.use_cases.context import TraceContext
from tabletalk.application.use_cases.get_order import GetOrder
from tabletalk.application.use_cases.get_order import OrderNotFoundError as GetOrderNotFoundError
from tabletalk.application.use_cases.list_orders import ListOrders
from tabletalk.application.use_cases.place_order import InvalidOrderInputError, PlaceOrder
from tabletalk.application.use_cases.update_order import (
    InvalidOrderInputError as UpdateInvalidOrderInputError,
)
from tabletalk.application.use_cases.update_order import (
    InvalidOrderTransitionError,
    OrderNotFoundError,
    UpdateOrder,
)
from tabletalk.domain.common.ids import MenuItemId, OrderId, OrderItemId
from tabletalk.domain.common.money import Money
from tabletalk.domain.menu.entities import MenuItem
from tabletalk.domain.order.entities import Order, OrderDraft, OrderItem, OrderPatch, OrderStatus
from tabletalk.domain.order.policy import ForwardOnlyTransitionPolicy


class FakeMenuReader:
    def __init__(self, items: list[MenuItem]) -> None:
        self.items = {item.item_id: item for item in items}

    def get_items(self, item_ids) -> dict[MenuItemId, MenuItem]:
        return {item_id: self.items[item_id] for item_id in item_ids if item_id in self.items}

    def list_available(self) -> list[MenuItem]:
        return [item for item in self.items.values() if item.is_available]


class FakeOrderRepository:
    def __init__(self) -> None:
        self.orders: dict[OrderId, Order] = {}
        self.fail_on_add = False
        self._next_order_id = 1
        self._next_item_id = 1

    def add(self, draft: OrderDraft, now: datetime) -> Order:
        if self.fail_on_add:
            raise StoreFailure("order insert failed: IntegrityError")
        order_id = OrderId(self._next_order_id)
        self._next_order_id += 1
        items = []
        for line in draft.items:
            items.append(
                OrderItem(
                    item_id=OrderItemId(self._next_item_id),
                    order_id=order_id,
                    menu_item_id=line.menu_item_id,
                    quantity=line.quantity,
                    notes=line.notes,
                )
            )
            self._next_item_id += 1
        order = Order(
            order_id=order_id,
            table_code=draft.table_code,
            status=OrderStatus.RECEIVED,
            items=tuple(items),
            created_at=now,
            updated_at=now,
        )
        self.orders[order_id] = order
        return order

    def get(self, order_id: OrderId) -> Order | None:
        return self.orders.get(order_id)

    def list_newest_first(self) -> list[Order]:
        return sorted(
            self.orders.values(),
            key=lambda order: (order.created_at, order.order_id),
            reverse=True,
        )

    def apply_patch(self, order_id: OrderId, patch: OrderPatch, now: datetime) -> Order | None:
        current = self.orders.get(order_id)
        if current is None:
            return None
        changes = patch.changes()
        if "status" in changes:
            changes["status"] = OrderStatus(changes["status"])
        updated = replace(current, updated_at=now, **changes)
        self.orders[order_id] = updated
        return updated


@dataclass
class PublishCall:
    channel: str
    message: str


class FakePublisher:
    def __init__(self) -> None:
        self.calls: list[PublishCall] = []

    def publish(self, channel: str, message: str) -> None:
        self.calls.append(PublishCall(channel=channel, message=message))


class FailingPublisher:
    def publish(self, channel: str, message: str) -> None:
        raise ConnectionError("broadcast unavailable")


def _menu() -> FakeMenuReader:
    return FakeMenuReader(
        [
            MenuItem(
                item_id=MenuItemId(1),
                name="Hot Burger",
                description="Grilled burger with chicken",
                price=Money(amount_cents=1050),
                category="Burgers",
            ),
            MenuItem(
                item_id=MenuItemId(5),
                name="Classic Shake",
                description="Creamy vanilla milkshake blend",
                price=Money(amount_cents=450),
                category="Shakes & Drinks",
            ),
        ]
    )


def _trace() -> TraceContext:
    return TraceContext(trace_id="trace-123", request_id="req-123")


def _create_request(table_code: str = "TABLE01") -> CreateOrderRequest:
    return CreateOrderRequest(
        table_code=table_code,
        items=[
            CreateOrderItemRequest(menu_item_id=1, quantity=2, notes="no onions"),
            CreateOrderItemRequest(menu_item_id=5),
        ],
    )


def _place(repository: FakeOrderRepository, publisher, menu: FakeMenuReader | None = None):
    use_case = PlaceOrder(
        order_repository=repository,
        menu_reader=menu or _menu(),
        publisher=publisher,
    )
    return use_case.execute(request_dto=_create_request(), trace_ctx=_trace())


def _update(repository, publisher, order_id: int, request_dto: UpdateOrderRequest, policy=None):
    use_case = UpdateOrder(
        order_repository=repository,
        menu_reader=_menu(),
        publisher=publisher,
        transition_policy=policy,
    )
    return use_case.execute(
        order_id=OrderId(order_id),
        request_dto=request_dto,
        trace_ctx=_trace(),
    )


def test_place_order_persists_hydrates_and_broadcasts_once() -> None:
    repository = FakeOrderRepository()
    publisher = FakePublisher()

    response = _place(repository, publisher)

    assert response.status == "received"
    assert response.table_code == "TABLE01"
    assert [item.name for item in response.items] == ["Hot Burger", "Classic Shake"]
    assert str(response.total) == "25.50"
    assert response.created_at == response.updated_at

    assert len(publisher.calls) == 1
    assert publisher.calls[0].channel == ORDER_EVENTS_CHANNEL
    envelope = json.loads(publisher.calls[0].message)
    assert envelope["type"] == "new_order"
    assert envelope["order"]["id"] == response.id
    assert envelope["order"]["items"][0]["price"] == "10.50"
    assert envelope["order"]["total"] == "25.50"
    assert envelope["request_id"] == "req-123"
    assert envelope["trace_id"] == "trace-123"


def test_place_order_rejects_blank_table_code_without_broadcast() -> None:
    repository = FakeOrderRepository()
    publisher = FakePublisher()
    use_case = PlaceOrder(order_repository=repository, menu_reader=_menu(), publisher=publisher)

    with pytest.raises(InvalidOrderInputError):
        use_case.execute(request_dto=_create_request(table_code="  "), trace_ctx=_trace())

    assert repository.orders == {}
    assert publisher.calls == []


def test_place_order_store_failure_is_not_broadcast() -> None:
    repository = FakeOrderRepository()
    repository.fail_on_add = True
    publisher = FakePublisher()

    with pytest.raises(StoreFailure):
        _place(repository, publisher)

    assert publisher.calls == []


def test_place_order_succeeds_when_publisher_fails() -> None:
    repository = FakeOrderRepository()

    response = _place(repository, FailingPublisher())

    assert repository.get(OrderId(response.id)) is not None


def test_update_order_applies_sparse_patch_and_broadcasts() -> None:
    repository = FakeOrderRepository()
    publisher = FakePublisher()
    created = _place(repository, publisher)

    updated = _update(
        repository,
        publisher,
        created.id,
        UpdateOrderRequest(status="queued", queue_number=4),
    )

    assert updated.status == "queued"
    assert updated.queue_number == 4
    assert updated.wait_time is None
    assert updated.updated_at >= created.updated_at

    assert len(publisher.calls) == 2
    envelope = json.loads(publisher.calls[1].message)
    assert envelope["type"] == "order_updated"
    assert envelope["order"]["status"] == "queued"


def test_update_order_explicit_null_clears_field() -> None:
    repository = FakeOrderRepository()
    publisher = FakePublisher()
    created = _place(repository, publisher)
    _update(repository, publisher, created.id, UpdateOrderRequest(wait_time=15, notification="soon"))

    cleared = _update(repository, publisher, created.id, UpdateOrderRequest(notification=None))

    assert cleared.notification is None
    assert cleared.wait_time == 15


def test_update_order_empty_patch_bumps_updated_at_and_broadcasts() -> None:
    repository = FakeOrderRepository()
    publisher = FakePublisher()
    created = _place(repository, publisher)

    updated = _update(repository, publisher, created.id, UpdateOrderRequest())

    assert updated.status == "received"
    assert updated.updated_at >= created.updated_at
    assert len(publisher.calls) == 2


def test_update_order_accepts_backwards_status_by_default() -> None:
    repository = FakeOrderRepository()
    publisher = FakePublisher()
    created = _place(repository, publisher)
    _update(repository, publisher, created.id, UpdateOrderRequest(status="completed"))

    updated = _update(repository, publisher, created.id, UpdateOrderRequest(status="received"))

    assert updated.status == "received"


def test_update_order_forward_only_policy_rejects_backwards_status() -> None:
    repository = FakeOrderRepository()
    publisher = FakePublisher()
    created = _place(repository, publisher)
    policy = ForwardOnlyTransitionPolicy()
    _update(repository, publisher, created.id, UpdateOrderRequest(status="ready"), policy)

    with pytest.raises(InvalidOrderTransitionError):
        _update(repository, publisher, created.id, UpdateOrderRequest(status="queued"), policy)

    assert repository.get(OrderId(created.id)).status == OrderStatus.READY
    assert len(publisher.calls) == 2


def test_update_order_null_status_is_invalid() -> None:
    repository = FakeOrderRepository()
    publisher = FakePublisher()
    created = _place(repository, publisher)

    with pytest.raises(UpdateInvalidOrderInputError):
        _update(repository, publisher, created.id, UpdateOrderRequest(status=None))

    assert len(publisher.calls) == 1


def test_update_missing_order_raises_not_found_without_broadcast() -> None:
    publisher = FakePublisher()

    with pytest.raises(OrderNotFoundError):
        _update(FakeOrderRepository(), publisher, 404, UpdateOrderRequest(status="ready"))

    assert publisher.calls == []


def test_get_order_reflects_current_menu_price() -> None:
    repository = FakeOrderRepository()
    menu = _menu()
    created = _place(repository, FakePublisher(), menu)

    menu.items[MenuItemId(1)] = replace(menu.items[MenuItemId(1)], price=Money(amount_cents=1200))
    fetched = GetOrder(order_repository=repository, menu_reader=menu).execute(OrderId(created.id))

    assert str(fetched.items[0].price) == "12.00"
    assert str(fetched.total) == "28.50"


def test_get_order_missing_raises_not_found() -> None:
    use_case = GetOrder(order_repository=FakeOrderRepository(), menu_reader=_menu())
    with pytest.raises(GetOrderNotFoundError):
        use_case.execute(OrderId(1))


def test_list_orders_returns_newest_first() -> None:
    repository = FakeOrderRepository()
    publisher = FakePublisher()
    first = _place(repository, publisher)
    second = _place(repository, publisher)

    listed = ListOrders(order_repository=repository, menu_reader=_menu()).execute()

    assert [order.id for order in listed] == [second.id, first.id]


class LockCheckingPublisher:
    def __init__(self, lock: threading.Lock) -> None:
        self._lock = lock
        self.held_on_publish: list[bool] = []

    def publish(self, channel: str, message: str) -> None:
        self.held_on_publish.append(self._lock.locked())


def test_write_lock_is_held_while_broadcasting() -> None:
    repository = FakeOrderRepository()
    write_lock = threading.Lock()
    publisher = LockCheckingPublisher(write_lock)

    created = PlaceOrder(
        order_repository=repository,
        menu_reader=_menu(),
        publisher=publisher,
        write_lock=write_lock,
    ).execute(request_dto=_create_request(), trace_ctx=_trace())
    UpdateOrder(
        order_repository=repository,
        menu_reader=_menu(),
        publisher=publisher,
        write_lock=write_lock,
    ).execute(
        order_id=OrderId(created.id),
        request_dto=UpdateOrderRequest(wait_time=5),
        trace_ctx=_trace(),
    )

    assert publisher.held_on_publish == [True, True]
    assert not write_lock.locked()


def test_write_lock_is_released_when_order_is_missing() -> None:
    write_lock = threading.Lock()
    use_case = UpdateOrder(
        order_repository=FakeOrderRepository(),
        menu_reader=_menu(),
        publisher=FakePublisher(),
        write_lock=write_lock,
    )

    with pytest.raises(OrderNotFoundError):
        use_case.execute(
            order_id=OrderId(404),
            request_dto=UpdateOrderRequest(status="ready"),
            trace_ctx=_trace(),
        )

    assert not write_lock.locked()


def test_update_order_never_moves_updated_at_backwards() -> None:
    repository = FakeOrderRepository()
    publisher = FakePublisher()
    created = _place(repository, publisher)
    order_id = OrderId(created.id)
    ahead = datetime.now(timezone.utc) + timedelta(minutes=5)
    repository.orders[order_id] = replace(repository.orders[order_id], updated_at=ahead)

    updated = _update(repository, publisher, created.id, UpdateOrderRequest(wait_time=7))

    assert updated.updated_at == ahead
