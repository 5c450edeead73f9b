from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import Engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tabletalk.application.ports.repositories import MenuReader, StoreFailure
from tabletalk.domain.common.ids import MenuItemId
from tabletalk.domain.common.money import Money
from tabletalk.domain.menu.entities import MenuItem
from tabletalk.infrastructure.db.models.menu import MenuItemModel
from tabletalk.infrastructure.db.session import get_engine


class SqlAlchemyMenuRepository(MenuReader):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def get_items(self, item_ids: Iterable[MenuItemId]) -> dict[MenuItemId, MenuItem]:
        ids = sorted({int(item_id) for item_id in item_ids})
        if not ids:
            return {}
        statement = select(MenuItemModel).where(MenuItemModel.id.in_(ids))
        models = self._fetch(statement)
        return {MenuItemId(model.id): self._to_domain(model) for model in models}

    def list_available(self) -> list[MenuItem]:
        statement = (
            select(MenuItemModel)
            .where(MenuItemModel.available.is_(True))
            .order_by(MenuItemModel.id)
        )
        return [self._to_domain(model) for model in self._fetch(statement)]

    def _fetch(self, statement) -> list[MenuItemModel]:
        try:
            with Session(self._engine) as session:
                return list(session.execute(statement).scalars().all())
        except SQLAlchemyError as exc:
            raise StoreFailure(f"menu lookup failed: {exc.__class__.__name__}") from exc

    def _to_domain(self, model: MenuItemModel) -> MenuItem:
        return MenuItem(
            item_id=MenuItemId(model.id),
            name=model.name,
            description=model.description,
            price=Money(amount_cents=model.price_cents),
            category=model.category,
            is_available=model.available,
        )
