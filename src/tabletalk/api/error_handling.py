from __future__ import annotations

import logging
from typing import Any, cast

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tabletalk.api.middleware.request_id import get_request_id
from tabletalk.application.ports.repositories import StoreFailure
from tabletalk.application.use_cases.get_order import OrderNotFoundError as GetOrderNotFoundError
from tabletalk.application.use_cases.place_order import (
    InvalidOrderInputError as PlaceOrderInvalidInputError,
)
from tabletalk.application.use_cases.update_order import (
    InvalidOrderInputError as UpdateOrderInvalidInputError,
)
from tabletalk.application.use_cases.update_order import InvalidOrderTransitionError
from tabletalk.application.use_cases.update_order import (
    OrderNotFoundError as UpdateOrderNotFoundError,
)
from tabletalk.application.use_cases.validate_code import InvalidAccessCodeError

logger = logging.getLogger(__name__)


def _error_response(
    *,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
            },
            "requestId": get_request_id(),
        },
    )


def _exception_handler(status_code: int, code: str):
    async def handler(_: Request, exc: Exception) -> JSONResponse:
        details = getattr(exc, "details", None)
        return _error_response(
            status_code=status_code,
            code=code,
            message=str(exc),
            details=details if isinstance(details, dict) else None,
        )

    return handler


async def _store_failure_handler(_: Request, exc: Exception) -> JSONResponse:
    logger.error("store_failure", exc_info=exc)
    return _error_response(
        status_code=500,
        code="STORE_FAILURE",
        message="the order store could not complete the request",
    )


async def _http_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    http_exc = cast(StarletteHTTPException, exc)
    message = str(http_exc.detail) if http_exc.detail else "request failed"
    code = "HTTP_ERROR"
    if http_exc.status_code == 404:
        code = "NOT_FOUND"
    elif http_exc.status_code == 400:
        code = "BAD_REQUEST"
    elif http_exc.status_code == 405:
        code = "METHOD_NOT_ALLOWED"
    elif http_exc.status_code == 409:
        code = "CONFLICT"
    return _error_response(
        status_code=http_exc.status_code,
        code=code,
        message=message,
    )


async def _validation_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    validation_exc = cast(RequestValidationError, exc)
    return _error_response(
        status_code=400,
        code="INVALID_REQUEST",
        message="request validation failed",
        details={"errors": jsonable_encoder(validation_exc.errors())},
    )


def register_exception_handlers(app: FastAPI) -> None:
    mappings: list[tuple[type[Exception], int, str]] = [
        (PlaceOrderInvalidInputError, 400, "INVALID_ORDER"),
        (UpdateOrderInvalidInputError, 400, "INVALID_ORDER"),
        (GetOrderNotFoundError, 404, "ORDER_NOT_FOUND"),
        (UpdateOrderNotFoundError, 404, "ORDER_NOT_FOUND"),
        (InvalidOrderTransitionError, 409, "INVALID_ORDER_TRANSITION"),
        (InvalidAccessCodeError, 401, "INVALID_ACCESS_CODE"),
    ]

    for exc_cls, status_code, code in mappings:
        app.add_exception_handler(exc_cls, _exception_handler(status_code, code))

    app.add_exception_handler(StoreFailure, _store_failure_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
