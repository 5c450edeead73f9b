from __future__ import annotations

from fastapi import APIRouter

from tabletalk.application.dto.responses import MenuItemResponse
from tabletalk.application.use_cases.get_menu import GetMenu
from tabletalk.infrastructure.db.repositories.menu_repo import SqlAlchemyMenuRepository

router = APIRouter()


def _get_menu_use_case() -> GetMenu:
    return GetMenu(menu_reader=SqlAlchemyMenuRepository())


@router.get("/api/menu", response_model=dict[str, list[MenuItemResponse]])
def get_menu() -> dict[str, list[MenuItemResponse]]:
    return _get_menu_use_case().execute()
