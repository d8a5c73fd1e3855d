from __future__ import annotations

from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel
from returns.result import Success

from orders_ms.core.domain.model.errors import (
    CatalogUnavailable,
    OrderCreationFailed,
    OrderNotFound,
    OrderServiceError,
    PersistenceError,
    ProductValidationRejected,
    ValidationError,
)
from orders_ms.core.domain.model.order import OrderStatus
from orders_ms.core.ports.inbound.change_order_status import (
    ChangeOrderStatusCommand,
    ChangeOrderStatusUseCase,
)
from orders_ms.core.ports.inbound.create_order import (
    CreateOrderCommand,
    CreateOrderLine,
    CreateOrderUseCase,
    OrderDetailsView,
    OrderSummaryView,
)
from orders_ms.core.ports.inbound.find_orders import (
    FindAllOrdersQuery,
    FindOneOrderQuery,
    FindOrdersUseCase,
    OrderPageView,
)

CREATE_ORDER = "create_order"
FIND_ALL_ORDERS = "find_all_orders"
FIND_ONE_ORDER = "find_one_order"
CHANGE_ORDER_STATUS = "change_order_status"

RpcHandler = Callable[[Any], Awaitable[Any]]
M = TypeVar("M", bound=BaseModel)


class RpcError(Exception):
    def __init__(self, status: int, message: str | list[str]) -> None:
        super().__init__(message)
        self.status = status
        self.message = message

    def to_payload(self) -> dict[str, Any]:
        return {"status": self.status, "message": self.message}


# ---- RPC DTOs (adapter layer) ----------------------------------------------


class RpcModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateOrderItemIn(RpcModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    product_id: str = Field(min_length=1, examples=["1"])
    quantity: int = Field(gt=0, examples=[2])


class CreateOrderIn(RpcModel):
    items: list[CreateOrderItemIn] = Field(min_length=1)


class OrderPaginationIn(RpcModel):
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1)
    status: OrderStatus | None = None


class FindOneOrderIn(RpcModel):
    id: str = Field(min_length=1)


class ChangeOrderStatusIn(RpcModel):
    id: str = Field(min_length=1)
    status: OrderStatus


class OrderItemOut(RpcModel):
    product_id: str
    quantity: int
    price: float
    name: str


class OrderOut(RpcModel):
    id: str
    total_amount: float
    total_items: int
    status: OrderStatus
    paid: bool
    paid_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class OrderDetailsOut(OrderOut):
    items: list[OrderItemOut]


class PageMetaOut(RpcModel):
    total: int
    page: int
    last_page: int


class OrderPageOut(RpcModel):
    data: list[OrderOut]
    meta: PageMetaOut


def _map_error_to_rpc(err: OrderServiceError) -> RpcError:
    if isinstance(err, (ValidationError, OrderNotFound, OrderCreationFailed)):
        return RpcError(400, str(err))

    if isinstance(err, ProductValidationRejected):
        return RpcError(err.status, str(err))

    if isinstance(err, CatalogUnavailable):
        return RpcError(503, str(err))

    if isinstance(err, PersistenceError):
        return RpcError(500, str(err))

    return RpcError(500, str(err))


def _parse(model: Type[M], data: Any) -> M:
    try:
        return model.model_validate(data if data is not None else {})
    except PydanticValidationError as exc:
        messages = [
            f"{'.'.join(str(p) for p in e['loc']) or 'payload'}: {e['msg']}"
            for e in exc.errors()
        ]
        raise RpcError(400, messages) from exc


def _summary_model(view: OrderSummaryView) -> OrderOut:
    return OrderOut(
        id=str(view.order_id),
        total_amount=float(view.total_amount.amount),
        total_items=view.total_items,
        status=view.status,
        paid=view.paid,
        paid_at=view.paid_at,
        created_at=view.created_at,
        updated_at=view.updated_at,
    )


def _summary_out(view: OrderSummaryView) -> dict[str, Any]:
    return _summary_model(view).model_dump(by_alias=True, mode="json")


def _details_out(view: OrderDetailsView) -> dict[str, Any]:
    return OrderDetailsOut(
        id=str(view.order_id),
        total_amount=float(view.total_amount.amount),
        total_items=view.total_items,
        status=view.status,
        paid=view.paid,
        paid_at=view.paid_at,
        created_at=view.created_at,
        updated_at=view.updated_at,
        items=[
            OrderItemOut(
                product_id=str(it.product_id),
                quantity=it.quantity,
                price=float(it.price.amount),
                name=it.name,
            )
            for it in view.items
        ],
    ).model_dump(by_alias=True, mode="json")


def _order_out(view: OrderSummaryView) -> dict[str, Any]:
    if isinstance(view, OrderDetailsView):
        return _details_out(view)
    return _summary_out(view)


def _page_out(view: OrderPageView) -> dict[str, Any]:
    return OrderPageOut(
        data=[_summary_model(o) for o in view.data],
        meta=PageMetaOut(
            total=view.meta.total, page=view.meta.page, last_page=view.meta.last_page
        ),
    ).model_dump(by_alias=True, mode="json")


def create_rpc_handlers(
    create_order_uc: CreateOrderUseCase,
    find_orders_uc: FindOrdersUseCase,
    change_status_uc: ChangeOrderStatusUseCase,
) -> Dict[str, RpcHandler]:
    async def create_order(data: Any) -> Any:
        req = _parse(CreateOrderIn, data)
        cmd = CreateOrderCommand(
            items=tuple(
                CreateOrderLine(product_id=it.product_id, quantity=it.quantity)
                for it in req.items
            )
        )
        result = await create_order_uc.create(cmd)
        if isinstance(result, Success):
            return _details_out(result.unwrap())
        raise _map_error_to_rpc(result.failure())

    async def find_all_orders(data: Any) -> Any:
        req = _parse(OrderPaginationIn, data)
        result = await find_orders_uc.find_all(
            FindAllOrdersQuery(
                page=req.page,
                limit=req.limit,
                status=req.status.value if req.status else None,
            )
        )
        if isinstance(result, Success):
            return _page_out(result.unwrap())
        raise _map_error_to_rpc(result.failure())

    async def find_one_order(data: Any) -> Any:
        # the gateway may send the bare id instead of {"id": ...}
        req = _parse(FindOneOrderIn, {"id": data} if isinstance(data, str) else data)
        result = await find_orders_uc.find_one(FindOneOrderQuery(order_id=req.id))
        if isinstance(result, Success):
            return _details_out(result.unwrap())
        raise _map_error_to_rpc(result.failure())

    async def change_order_status(data: Any) -> Any:
        req = _parse(ChangeOrderStatusIn, data)
        result = await change_status_uc.change_status(
            ChangeOrderStatusCommand(order_id=req.id, status=req.status.value)
        )
        if isinstance(result, Success):
            return _order_out(result.unwrap())
        raise _map_error_to_rpc(result.failure())

    return {
        CREATE_ORDER: create_order,
        FIND_ALL_ORDERS: find_all_orders,
        FIND_ONE_ORDER: find_one_order,
        CHANGE_ORDER_STATUS: change_order_status,
    }
