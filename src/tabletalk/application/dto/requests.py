from __future__ import annotations

from pydantic import BaseModel, Field

from tabletalk.domain.order.entities import OrderStatus


class CreateOrderItemRequest(BaseModel):
    menu_item_id: int
    quantity: int = Field(default=1, ge=1)
    notes: str | None = None


class CreateOrderRequest(BaseModel):
    table_code: str = Field(min_length=1)
    items: list[CreateOrderItemRequest] = Field(min_length=1)


class UpdateOrderRequest(BaseModel):
    status: OrderStatus | None = None
    queue_number: int | None = None
    wait_time: int | None = None
    notification: str | None = None


class AccessCodeRequest(BaseModel):
    code: str = Field(min_length=1)
