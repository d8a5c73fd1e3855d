from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from returns.result import Result

from orders_ms.core.domain.model.errors import OrderServiceError
from orders_ms.core.ports.inbound.create_order import (
    OrderDetailsView,
    OrderSummaryView,
)


@dataclass(frozen=True)
class FindAllOrdersQuery:
    page: int = 1
    limit: int = 10
    status: str | None = None


@dataclass(frozen=True)
class PageMeta:
    total: int
    page: int
    last_page: int


@dataclass(frozen=True)
class OrderPageView:
    data: Sequence[OrderSummaryView]
    meta: PageMeta


@dataclass(frozen=True)
class FindOneOrderQuery:
    order_id: str  # UUID string


class FindOrdersUseCase(Protocol):
    async def find_all(
        self, query: FindAllOrdersQuery
    ) -> Result[OrderPageView, OrderServiceError]: ...

    async def find_one(
        self, query: FindOneOrderQuery
    ) -> Result[OrderDetailsView, OrderServiceError]: ...
