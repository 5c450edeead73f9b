from __future__ import annotations

from sqlalchemy import Engine, func, insert, inspect, select
from sqlalchemy.orm import Session

from tabletalk.infrastructure.db.models.access import StaffCodeModel, TableCodeModel
from tabletalk.infrastructure.db.models.menu import Base, MenuItemModel
from tabletalk.infrastructure.db.session import get_engine

MENU_ITEMS = [
    ("Hot Burger", "Grilled burger with chicken, lettuce, tomato and special sauce", 1050, "Burgers"),
    ("Crunch Burger", "Crispy fried patty with special crunchy coating and cheese", 850, "Burgers"),
    ("Beef Burger", "Premium beef patty with sesame bun and fresh vegetables", 950, "Burgers"),
    ("Deluxe Burger", "Premium burger with cheese, bacon, lettuce and special sauce", 1200, "Burgers"),
    ("Classic Shake", "Creamy vanilla milkshake blend", 450, "Shakes & Drinks"),
    ("Berry Shake", "Mixed berry and cream shake", 450, "Shakes & Drinks"),
    ("Dash Coffee", "Espresso with steamed milk", 250, "Shakes & Drinks"),
    ("Coconut Tea", "Refreshing coconut iced tea", 350, "Shakes & Drinks"),
    ("Cake Bites", "Mini cake pastries", 350, "Sides"),
    ("Cheesy Cup", "Melted cheese dip cup", 350, "Sides"),
    ("Chicken Strips", "Crispy chicken tenders", 250, "Sides"),
    ("Cheesy Soup", "Creamy cheese soup", 350, "Sides"),
    ("Crispy Salads", "Fresh garden salad", 350, "Sides"),
    ("Egg Shakes", "Protein-rich egg shake", 500, "Sides"),
    ("Fruit & Ice", "Fresh fruits with ice cream", 795, "Desserts"),
    ("Mango Sundae", "Mango ice cream sundae", 695, "Desserts"),
]

TABLE_CODES = [
    ("TABLE01", "Table 1"),
    ("TABLE02", "Table 2"),
    ("TABLE03", "Table 3"),
    ("TABLE04", "Table 4"),
    ("TABLE05", "Table 5"),
    ("DEMO123", "Demo Table"),
]

STAFF_CODES = [
    ("STAFF001", "Staff 1"),
    ("STAFF002", "Staff 2"),
    ("ADMIN123", "Admin"),
]


def _is_empty(session: Session, model: type[Base]) -> bool:
    return session.execute(select(func.count()).select_from(model)).scalar_one() == 0


def seed(engine: Engine) -> dict[str, int]:
    """Insert the default menu and access codes into every table that is still empty.

    Returns the number of rows inserted per table; a populated table is left alone.
    """
    inserted = {"menu_items": 0, "table_codes": 0, "staff_codes": 0}
    with Session(engine) as session, session.begin():
        if _is_empty(session, MenuItemModel):
            session.execute(
                insert(MenuItemModel),
                [
                    {
                        "name": name,
                        "description": description,
                        "price_cents": price_cents,
                        "category": category,
                    }
                    for name, description, price_cents, category in MENU_ITEMS
                ],
            )
            inserted["menu_items"] = len(MENU_ITEMS)

        if _is_empty(session, TableCodeModel):
            session.execute(
                insert(TableCodeModel),
                [{"code": code, "table_number": table_number} for code, table_number in TABLE_CODES],
            )
            inserted["table_codes"] = len(TABLE_CODES)

        if _is_empty(session, StaffCodeModel):
            session.execute(
                insert(StaffCodeModel),
                [{"code": code, "name": name} for code, name in STAFF_CODES],
            )
            inserted["staff_codes"] = len(STAFF_CODES)

    return inserted


def main() -> None:
    engine = get_engine(timeout_seconds=2.0)
    required_tables = {"menu_items", "table_codes", "staff_codes"}
    if not required_tables.issubset(set(inspect(engine).get_table_names())):
        print("no schema yet")
        return

    inserted = seed(engine)
    print(f"seed complete: {inserted}")


if __name__ == "__main__":
    main()
