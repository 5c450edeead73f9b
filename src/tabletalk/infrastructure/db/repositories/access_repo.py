from __future__ import annotations

from sqlalchemy import Engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tabletalk.application.ports.repositories import AccessCodeRepository, StoreFailure
from tabletalk.domain.access.entities import StaffAccessCode, TableAccessCode
from tabletalk.infrastructure.db.models.access import StaffCodeModel, TableCodeModel
from tabletalk.infrastructure.db.session import get_engine


class SqlAlchemyAccessCodeRepository(AccessCodeRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def get_active_table_code(self, code: str) -> TableAccessCode | None:
        statement = select(TableCodeModel).where(
            TableCodeModel.code == code,
            TableCodeModel.active.is_(True),
        )
        try:
            with Session(self._engine) as session:
                model = session.execute(statement).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StoreFailure("table code lookup failed") from exc

        if model is None:
            return None
        return TableAccessCode(code=model.code, table_number=model.table_number, active=model.active)

    def get_active_staff_code(self, code: str) -> StaffAccessCode | None:
        statement = select(StaffCodeModel).where(
            StaffCodeModel.code == code,
            StaffCodeModel.active.is_(True),
        )
        try:
            with Session(self._engine) as session:
                model = session.execute(statement).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StoreFailure("staff code lookup failed") from exc

        if model is None:
            return None
        return StaffAccessCode(code=model.code, name=model.name, active=model.active)
