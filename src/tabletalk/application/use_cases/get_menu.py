from __future__ import annotations

from tabletalk.application.dto.responses import MenuItemResponse
from tabletalk.application.mappers.menu_mapper import to_grouped_menu_response
from tabletalk.application.ports.repositories import MenuReader


class GetMenu:
    def __init__(self, menu_reader: MenuReader) -> None:
        self._menu_reader = menu_reader

    def execute(self) -> dict[str, list[MenuItemResponse]]:
        return to_grouped_menu_response(self._menu_reader.list_available())
