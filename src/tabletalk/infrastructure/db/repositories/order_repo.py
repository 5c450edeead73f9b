from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import Engine, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from tabletalk.application.ports.repositories import OrderRepository, StoreFailure
from tabletalk.domain.common.ids import MenuItemId, OrderId, OrderItemId, TableCode
from tabletalk.domain.order.entities import (
    Order,
    OrderDraft,
    OrderItem,
    OrderPatch,
    OrderStatus,
)
from tabletalk.infrastructure.db.models.order import OrderItemModel, OrderModel
from tabletalk.infrastructure.db.session import get_engine


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        raise StoreFailure(f"{action} failed: {exc.__class__.__name__}") from exc


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlAlchemyOrderRepository(OrderRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def add(self, draft: OrderDraft, now: datetime) -> Order:
        order_model = OrderModel(
            table_code=str(draft.table_code),
            status=OrderStatus.RECEIVED.value,
            created_at=now,
            updated_at=now,
        )
        order_model.items = [
            OrderItemModel(
                menu_item_id=int(item.menu_item_id),
                quantity=item.quantity,
                notes=item.notes,
            )
            for item in draft.items
        ]
        # order row and every line item commit together or not at all
        with _store_errors("order insert"), Session(self._engine) as session:
            with session.begin():
                session.add(order_model)
                session.flush()
                order = self._to_domain(order_model)
        return order

    def get(self, order_id: OrderId) -> Order | None:
        statement = (
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(OrderModel.id == int(order_id))
            .limit(1)
        )
        with _store_errors("order lookup"), Session(self._engine) as session:
            model = session.execute(statement).scalar_one_or_none()
            if model is None:
                return None
            return self._to_domain(model)

    def list_newest_first(self) -> list[Order]:
        statement = (
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
        )
        with _store_errors("order listing"), Session(self._engine) as session:
            models = session.execute(statement).scalars().all()
            return [self._to_domain(model) for model in models]

    def apply_patch(self, order_id: OrderId, patch: OrderPatch, now: datetime) -> Order | None:
        values = patch.changes()
        values["updated_at"] = now
        statement = update(OrderModel).where(OrderModel.id == int(order_id)).values(**values)

        with _store_errors("order update"), Session(self._engine) as session:
            result = session.execute(statement)
            if result.rowcount != 1:
                session.rollback()
                return None
            session.commit()

        return self.get(order_id)

    def _to_domain(self, model: OrderModel) -> Order:
        return Order(
            order_id=OrderId(model.id),
            table_code=TableCode(model.table_code),
            status=OrderStatus(model.status),
            items=tuple(
                OrderItem(
                    item_id=OrderItemId(item.id),
                    order_id=OrderId(model.id),
                    menu_item_id=MenuItemId(item.menu_item_id),
                    quantity=item.quantity,
                    notes=item.notes,
                )
                for item in model.items
            ),
            created_at=_as_utc(model.created_at),
            updated_at=_as_utc(model.updated_at),
            queue_number=model.queue_number,
            wait_time=model.wait_time,
            notification=model.notification,
        )
