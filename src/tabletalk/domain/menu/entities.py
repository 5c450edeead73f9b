from __future__ import annotations

from dataclasses import dataclass

from tabletalk.domain.common.ids import MenuItemId
from tabletalk.domain.common.money import Money


@dataclass(frozen=True)
class MenuItem:
    item_id: MenuItemId
    name: str
    description: str | None
    price: Money
    category: str
    is_available: bool = True

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("name must be non-empty")
        if not self.category.strip():
            raise ValueError("category must be non-empty")


def group_by_category(items: list[MenuItem]) -> dict[str, list[MenuItem]]:
    grouped: dict[str, list[MenuItem]] = {}
    for item in items:
        grouped.setdefault(item.category, []).append(item)
    return grouped
