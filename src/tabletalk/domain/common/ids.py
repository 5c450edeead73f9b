from __future__ import annotations

from typing import NewType

OrderId = NewType("OrderId", int)
OrderItemId = NewType("OrderItemId", int)
MenuItemId = NewType("MenuItemId", int)
TableCode = NewType("TableCode", str)
