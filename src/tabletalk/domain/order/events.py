from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from tabletalk.domain.order.entities import OrderSnapshot


class OrderEventKind(str, Enum):
    CREATED = "created"
    UPDATED = "updated"


@dataclass(frozen=True)
class OrderEvent:
    kind: OrderEventKind
    snapshot: OrderSnapshot
    occurred_at: datetime
