from __future__ import annotations

from fastapi import APIRouter

from tabletalk.application.dto.requests import AccessCodeRequest
from tabletalk.application.dto.responses import (
    StaffCodeValidationResponse,
    TableCodeValidationResponse,
)
from tabletalk.application.use_cases.validate_code import ValidateStaffCode, ValidateTableCode
from tabletalk.infrastructure.db.repositories.access_repo import SqlAlchemyAccessCodeRepository

router = APIRouter(prefix="/api/auth")


@router.post("/validate", response_model=TableCodeValidationResponse)
def validate_table_code(request_dto: AccessCodeRequest) -> TableCodeValidationResponse:
    use_case = ValidateTableCode(access_code_repository=SqlAlchemyAccessCodeRepository())
    return use_case.execute(request_dto.code)


@router.post("/staff", response_model=StaffCodeValidationResponse)
def validate_staff_code(request_dto: AccessCodeRequest) -> StaffCodeValidationResponse:
    use_case = ValidateStaffCode(access_code_repository=SqlAlchemyAccessCodeRepository())
    return use_case.execute(request_dto.code)
