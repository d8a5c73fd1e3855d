from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from returns.result import Result

from orders_ms.core.domain.model.errors import OrderServiceError
from orders_ms.core.domain.model.order import Money, ProductId


@dataclass(frozen=True)
class Product:
    product_id: ProductId
    name: str
    price: Money


class ProductCatalog(Protocol):
    async def validate_products(
        self, product_ids: Sequence[ProductId]
    ) -> Result[Sequence[Product], OrderServiceError]:
        """One batch request. The catalog rejects the whole batch if any id is unknown."""
        ...
