from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Iterator

import pytest
from sqlalchemy import delete

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from tabletalk.infrastructure.cache import redis_client
from tabletalk.infrastructure.db import session as db_session
from tabletalk.infrastructure.db.models.menu import Base
from tabletalk.infrastructure.db.models.order import OrderItemModel, OrderModel
from tabletalk.tools.seed import seed


@pytest.fixture(scope="session", autouse=True)
def integration_environment(tmp_path_factory: pytest.TempPathFactory) -> Iterator[None]:
    database_path = tmp_path_factory.mktemp("db") / "tabletalk.sqlite3"

    os.environ["DATABASE_URL"] = f"sqlite:///{database_path}"
    os.environ["APP_ENV"] = "test"
    os.environ.pop("REDIS_URL", None)
    os.environ.setdefault("OTEL_SERVICE_NAME", "tabletalk-backend-test")
    os.environ.setdefault("OTEL_EXPORTER_OTLP_ENDPOINT", "")

    db_session._build_engine.cache_clear()
    redis_client._build_client.cache_clear()

    engine = db_session.get_engine()
    Base.metadata.create_all(engine)
    seed(engine)
    yield
    engine.dispose()
    db_session._build_engine.cache_clear()


@pytest.fixture(autouse=True)
def clear_orders() -> Iterator[None]:
    engine = db_session.get_engine()
    with engine.begin() as connection:
        connection.execute(delete(OrderItemModel))
        connection.execute(delete(OrderModel))
    yield

