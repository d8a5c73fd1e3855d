from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from returns.result import Result

from orders_ms.core.domain.model.errors import OrderServiceError
from orders_ms.core.ports.inbound.create_order import OrderSummaryView


@dataclass(frozen=True)
class ChangeOrderStatusCommand:
    order_id: str  # UUID string
    status: str


class ChangeOrderStatusUseCase(Protocol):
    async def change_status(
        self, command: ChangeOrderStatusCommand
    ) -> Result[OrderSummaryView, OrderServiceError]:
        """OrderDetailsView when the status is unchanged, else the bare stored record."""
        ...
