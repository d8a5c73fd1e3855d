from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class OrderServiceError(Exception):
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class ValidationError(OrderServiceError):
    pass


@dataclass(frozen=True)
class OrderNotFound(OrderServiceError):
    order_id: str

    def __str__(self) -> str:
        return f"Order with id #{self.order_id} not found"


@dataclass(frozen=True)
class OrderCreationFailed(OrderServiceError):
    """Opaque error returned for every create failure; `cause` is for logs only."""

    cause: str = "unknown"


@dataclass(frozen=True)
class CatalogError(OrderServiceError):
    pass


@dataclass(frozen=True)
class CatalogUnavailable(CatalogError):
    pass


@dataclass(frozen=True)
class ProductValidationRejected(CatalogError):
    status: int = 400
    product_ids: tuple[str, ...] = field(default=())


@dataclass(frozen=True)
class PersistenceError(OrderServiceError):
    pass
