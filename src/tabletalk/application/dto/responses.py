from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class MenuItemResponse(BaseModel):
    id: int
    name: str
    description: str | None = None
    price: Decimal
    category: str
    available: bool


class OrderItemResponse(BaseModel):
    id: int
    order_id: int
    menu_item_id: int
    name: str
    price: Decimal
    quantity: int
    notes: str | None = None


class OrderResponse(BaseModel):
    id: int
    table_code: str
    status: str
    queue_number: int | None = None
    wait_time: int | None = None
    notification: str | None = None
    created_at: datetime
    updated_at: datetime
    items: list[OrderItemResponse] = Field(default_factory=list)
    total: Decimal


class TableCodeValidationResponse(BaseModel):
    valid: bool
    table_number: str | None = None
    code: str


class StaffCodeValidationResponse(BaseModel):
    valid: bool
    name: str | None = None
    code: str
