from __future__ import annotations

from uuid import UUID

from returns.result import Failure, Result, Success

from orders_ms.core.domain.model.errors import OrderServiceError, ValidationError
from orders_ms.core.domain.model.order import OrderId, OrderStatus
from orders_ms.core.ports.inbound.create_order import CreateOrderCommand
from orders_ms.core.ports.inbound.find_orders import FindAllOrdersQuery


def validate_items(cmd: CreateOrderCommand) -> Result[CreateOrderCommand, OrderServiceError]:
    if not cmd.items:
        return Failure(ValidationError("at least one item is required"))
    for i, ln in enumerate(cmd.items):
        if not ln.product_id.strip():
            return Failure(ValidationError(f"items[{i}].productId is required"))
        if ln.quantity <= 0:
            return Failure(ValidationError(f"items[{i}].quantity must be > 0"))
    return Success(cmd)


def validate_paging(query: FindAllOrdersQuery) -> Result[FindAllOrdersQuery, OrderServiceError]:
    if query.page < 1:
        return Failure(ValidationError("page must be >= 1"))
    if query.limit < 1:
        return Failure(ValidationError("limit must be >= 1"))
    return Success(query)


def parse_status(raw: str | None) -> Result[OrderStatus | None, OrderServiceError]:
    if raw is None:
        return Success(None)
    try:
        return Success(OrderStatus(raw))
    except ValueError:
        allowed = ", ".join(s.value for s in OrderStatus)
        return Failure(ValidationError(f"status must be one of: {allowed}"))


def parse_order_id(raw: str) -> Result[OrderId, OrderServiceError]:
    try:
        return Success(OrderId(UUID(raw)))
    except (TypeError, ValueError):
        return Failure(ValidationError("id must be a valid UUID"))
