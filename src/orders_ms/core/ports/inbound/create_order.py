from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, Sequence

from returns.result import Result

from orders_ms.core.domain.model.errors import OrderServiceError
from orders_ms.core.domain.model.order import Money, OrderId, OrderStatus, ProductId


@dataclass(frozen=True)
class CreateOrderLine:
    product_id: str
    quantity: int


@dataclass(frozen=True)
class CreateOrderCommand:
    items: Sequence[CreateOrderLine]


@dataclass(frozen=True)
class OrderItemView:
    product_id: ProductId
    quantity: int
    price: Money
    # enrichment only, never persisted
    name: str


@dataclass(frozen=True)
class OrderSummaryView:
    order_id: OrderId
    total_amount: Money
    total_items: int
    status: OrderStatus
    paid: bool
    paid_at: datetime | None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class OrderDetailsView(OrderSummaryView):
    items: Sequence[OrderItemView] = ()


class CreateOrderUseCase(Protocol):
    async def create(
        self, command: CreateOrderCommand
    ) -> Result[OrderDetailsView, OrderServiceError]: ...
