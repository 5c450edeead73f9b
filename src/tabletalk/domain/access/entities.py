from __future__ import annotations

from dataclasses import dataclass


def normalize_code(raw: str) -> str:
    return raw.strip().upper()


@dataclass(frozen=True)
class TableAccessCode:
    code: str
    table_number: str | None
    active: bool


@dataclass(frozen=True)
class StaffAccessCode:
    code: str
    name: str | None
    active: bool
