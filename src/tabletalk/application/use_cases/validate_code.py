from __future__ import annotations

from tabletalk.application.dto.responses import (
    StaffCodeValidationResponse,
    TableCodeValidationResponse,
)
from tabletalk.application.ports.repositories import AccessCodeRepository
from tabletalk.domain.access.entities import normalize_code


class InvalidAccessCodeError(Exception):
    pass


class ValidateTableCode:
    def __init__(self, access_code_repository: AccessCodeRepository) -> None:
        self._access_code_repository = access_code_repository

    def execute(self, code: str) -> TableCodeValidationResponse:
        table_code = self._access_code_repository.get_active_table_code(normalize_code(code))
        if table_code is None:
            raise InvalidAccessCodeError("invalid access code")
        return TableCodeValidationResponse(
            valid=True,
            table_number=table_code.table_number,
            code=table_code.code,
        )


class ValidateStaffCode:
    def __init__(self, access_code_repository: AccessCodeRepository) -> None:
        self._access_code_repository = access_code_repository

    def execute(self, code: str) -> StaffCodeValidationResponse:
        staff_code = self._access_code_repository.get_active_staff_code(normalize_code(code))
        if staff_code is None:
            raise InvalidAccessCodeError("invalid staff code")
        return StaffCodeValidationResponse(
            valid=True,
            name=staff_code.name,
            code=staff_code.code,
        )
