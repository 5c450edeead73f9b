from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Protocol

from tabletalk.domain.access.entities import StaffAccessCode, TableAccessCode
from tabletalk.domain.common.ids import MenuItemId, OrderId
from tabletalk.domain.menu.entities import MenuItem
from tabletalk.domain.order.entities import Order, OrderDraft, OrderPatch


class MenuReader(Protocol):
    def get_items(self, item_ids: Iterable[MenuItemId]) -> dict[MenuItemId, MenuItem]: ...

    def list_available(self) -> list[MenuItem]: ...


class OrderRepository(Protocol):
    def add(self, draft: OrderDraft, now: datetime) -> Order: ...

    def get(self, order_id: OrderId) -> Order | None: ...

    def list_newest_first(self) -> list[Order]: ...

    def apply_patch(self, order_id: OrderId, patch: OrderPatch, now: datetime) -> Order | None: ...


class AccessCodeRepository(Protocol):
    def get_active_table_code(self, code: str) -> TableAccessCode | None: ...

    def get_active_staff_code(self, code: str) -> StaffAccessCode | None: ...


class StoreFailure(Exception):
    pass
