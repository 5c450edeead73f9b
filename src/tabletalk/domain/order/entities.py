from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from tabletalk.domain.common.ids import MenuItemId, OrderId, OrderItemId, TableCode
from tabletalk.domain.common.money import Money
from tabletalk.domain.menu.entities import MenuItem


class OrderStatus(str, Enum):
    RECEIVED = "received"
    QUEUED = "queued"
    PREPARING = "preparing"
    READY = "ready"
    COMPLETED = "completed"

    @property
    def rank(self) -> int:
        return _STATUS_SEQUENCE.index(self)


_STATUS_SEQUENCE: tuple[OrderStatus, ...] = tuple(OrderStatus)

PATCHABLE_FIELDS: tuple[str, ...] = ("status", "queue_number", "wait_time", "notification")


@dataclass(frozen=True)
class NewOrderItem:
    menu_item_id: MenuItemId
    quantity: int
    notes: str | None = None

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError("quantity must be >= 1")


@dataclass(frozen=True)
class OrderItem:
    item_id: OrderItemId
    order_id: OrderId
    menu_item_id: MenuItemId
    quantity: int
    notes: str | None

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError("quantity must be >= 1")


@dataclass(frozen=True)
class Order:
    order_id: OrderId
    table_code: TableCode
    status: OrderStatus
    items: tuple[OrderItem, ...]
    created_at: datetime
    updated_at: datetime
    queue_number: int | None = None
    wait_time: int | None = None
    notification: str | None = None

    def __post_init__(self) -> None:
        if not self.items:
            raise ValueError("order must contain at least one item")

    def menu_item_ids(self) -> set[MenuItemId]:
        return {item.menu_item_id for item in self.items}


@dataclass(frozen=True)
class OrderDraft:
    """An order as submitted by a table, before the store assigns ids."""

    table_code: TableCode
    items: tuple[NewOrderItem, ...]

    def __post_init__(self) -> None:
        if not self.table_code.strip():
            raise ValueError("table_code must be non-empty")
        if not self.items:
            raise ValueError("order must contain at least one item")


@dataclass(frozen=True)
class OrderPatch:
    """Sparse update. Only fields named in ``provided`` are written."""

    status: OrderStatus | None = None
    queue_number: int | None = None
    wait_time: int | None = None
    notification: str | None = None
    provided: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        unknown = self.provided - set(PATCHABLE_FIELDS)
        if unknown:
            raise ValueError(f"unknown patch fields: {sorted(unknown)}")
        if "status" in self.provided and self.status is None:
            raise ValueError("status cannot be null")

    @property
    def is_empty(self) -> bool:
        return not self.provided

    def changes(self) -> dict[str, object]:
        values: dict[str, object] = {}
        for name in PATCHABLE_FIELDS:
            if name not in self.provided:
                continue
            value = getattr(self, name)
            values[name] = value.value if isinstance(value, OrderStatus) else value
        return values


@dataclass(frozen=True)
class HydratedItem:
    item_id: OrderItemId
    order_id: OrderId
    menu_item_id: MenuItemId
    name: str
    price: Money
    quantity: int
    notes: str | None

    @property
    def line_total(self) -> Money:
        return self.price.times(self.quantity)


@dataclass(frozen=True)
class OrderSnapshot:
    order: Order
    items: tuple[HydratedItem, ...]

    @property
    def total(self) -> Money:
        total = Money.zero()
        for item in self.items:
            total = total + item.line_total
        return total

    @property
    def missing_menu_item_ids(self) -> set[MenuItemId]:
        resolved = {item.menu_item_id for item in self.items}
        return self.order.menu_item_ids() - resolved


def hydrate(order: Order, menu_items: Mapping[MenuItemId, MenuItem]) -> OrderSnapshot:
    """Resolve each line item against the menu as it is *now*.

    Prices are never stored on the order, so a menu price change is reflected
    in every later snapshot of older orders. Items whose menu entry is gone are
    left out of the snapshot.
    """
    hydrated: list[HydratedItem] = []
    for item in order.items:
        menu_item = menu_items.get(item.menu_item_id)
        if menu_item is None:
            continue
        hydrated.append(
            HydratedItem(
                item_id=item.item_id,
                order_id=item.order_id,
                menu_item_id=item.menu_item_id,
                name=menu_item.name,
                price=menu_item.price,
                quantity=item.quantity,
                notes=item.notes,
            )
        )
    return OrderSnapshot(order=order, items=tuple(hydrated))


class OrderTransitionError(Exception):
    pass
