from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request, status

from tabletalk.api.middleware.request_id import get_request_id
from tabletalk.application.dto.requests import CreateOrderRequest, UpdateOrderRequest
from tabletalk.application.dto.responses import OrderResponse
from tabletalk.application.use_cases.context import TraceContext
from tabletalk.application.use_cases.get_order import GetOrder
from tabletalk.application.use_cases.get_order import OrderNotFoundError as GetOrderNotFoundError
from tabletalk.application.use_cases.list_orders import ListOrders
from tabletalk.application.use_cases.place_order import PlaceOrder
from tabletalk.application.use_cases.update_order import OrderNotFoundError, UpdateOrder
from tabletalk.domain.common.ids import OrderId
from tabletalk.infrastructure.db.repositories.menu_repo import SqlAlchemyMenuRepository
from tabletalk.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository
from tabletalk.infrastructure.observability.otel import current_trace_id

router = APIRouter(prefix="/api/orders")


def _trace_context() -> TraceContext:
    return TraceContext(trace_id=current_trace_id(), request_id=get_request_id())


def _place_order_use_case(request: Request) -> PlaceOrder:
    return PlaceOrder(
        order_repository=SqlAlchemyOrderRepository(),
        menu_reader=SqlAlchemyMenuRepository(),
        publisher=request.app.state.event_publisher,
    )


def _update_order_use_case(request: Request) -> UpdateOrder:
    return UpdateOrder(
        order_repository=SqlAlchemyOrderRepository(),
        menu_reader=SqlAlchemyMenuRepository(),
        publisher=request.app.state.event_publisher,
        transition_policy=request.app.state.transition_policy,
    )


def _get_order_use_case() -> GetOrder:
    return GetOrder(
        order_repository=SqlAlchemyOrderRepository(),
        menu_reader=SqlAlchemyMenuRepository(),
    )


def _list_orders_use_case() -> ListOrders:
    return ListOrders(
        order_repository=SqlAlchemyOrderRepository(),
        menu_reader=SqlAlchemyMenuRepository(),
    )


@router.get("", response_model=list[OrderResponse])
def list_orders() -> list[OrderResponse]:
    return _list_orders_use_case().execute()


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(order_id: int) -> OrderResponse:
    try:
        return _get_order_use_case().execute(order_id=OrderId(order_id))
    except GetOrderNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def create_order(request: Request, request_dto: CreateOrderRequest) -> OrderResponse:
    return _place_order_use_case(request).execute(
        request_dto=request_dto,
        trace_ctx=_trace_context(),
    )


@router.patch("/{order_id}", response_model=OrderResponse)
def update_order(
    request: Request,
    order_id: int,
    request_dto: UpdateOrderRequest,
) -> OrderResponse:
    try:
        return _update_order_use_case(request).execute(
            order_id=OrderId(order_id),
            request_dto=request_dto,
            trace_ctx=_trace_context(),
        )
    except OrderNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
