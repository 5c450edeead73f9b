from __future__ import annotations

from tabletalk.application.dto.responses import MenuItemResponse
from tabletalk.domain.menu.entities import MenuItem, group_by_category


def to_menu_item_response(item: MenuItem) -> MenuItemResponse:
    return MenuItemResponse(
        id=int(item.item_id),
        name=item.name,
        description=item.description,
        price=item.price.as_decimal(),
        category=item.category,
        available=item.is_available,
    )


def to_grouped_menu_response(items: list[MenuItem]) -> dict[str, list[MenuItemResponse]]:
    return {
        category: [to_menu_item_response(item) for item in category_items]
        for category, category_items in group_by_category(items).items()
    }
