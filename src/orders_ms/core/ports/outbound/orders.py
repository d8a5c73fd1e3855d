from __future__ import annotations

from typing import Protocol, Sequence

from returns.result import Result

from orders_ms.core.domain.model.errors import OrderServiceError
from orders_ms.core.domain.model.order import Order, OrderId, OrderStatus


class OrderRepository(Protocol):
    """
    Orders and their line items are stored together: `create` writes both in one
    transaction and `get_by_id` loads both. `list` and `update_status` return the
    order record only (no items).
    """

    async def create(self, order: Order) -> Result[Order, OrderServiceError]: ...

    async def count(
        self, status: OrderStatus | None = None
    ) -> Result[int, OrderServiceError]: ...

    async def list(
        self, offset: int, limit: int, status: OrderStatus | None = None
    ) -> Result[Sequence[Order], OrderServiceError]: ...

    async def get_by_id(self, order_id: OrderId) -> Result[Order, OrderServiceError]:
        """Failure(OrderNotFound) when no such order exists."""
        ...

    async def update_status(
        self, order_id: OrderId, status: OrderStatus
    ) -> Result[Order, OrderServiceError]: ...
