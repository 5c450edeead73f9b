from __future__ import annotations

from tabletalk.application.dto.responses import OrderItemResponse, OrderResponse
from tabletalk.domain.order.entities import OrderSnapshot


def to_order_response(snapshot: OrderSnapshot) -> OrderResponse:
    order = snapshot.order
    return OrderResponse(
        id=int(order.order_id),
        table_code=str(order.table_code),
        status=order.status.value,
        queue_number=order.queue_number,
        wait_time=order.wait_time,
        notification=order.notification,
        created_at=order.created_at,
        updated_at=order.updated_at,
        items=[
            OrderItemResponse(
                id=int(item.item_id),
                order_id=int(item.order_id),
                menu_item_id=int(item.menu_item_id),
                name=item.name,
                price=item.price.as_decimal(),
                quantity=item.quantity,
                notes=item.notes,
            )
            for item in snapshot.items
        ],
        total=snapshot.total.as_decimal(),
    )
