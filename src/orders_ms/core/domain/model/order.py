from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Iterable, Tuple
from uuid import UUID, uuid4


@dataclass(frozen=True)
class OrderId:
    value: UUID

    @staticmethod
    def new() -> "OrderId":
        return OrderId(uuid4())

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class ProductId:
    value: str

    def __str__(self) -> str:
        return self.value


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class Money:
    amount: Decimal

    @staticmethod
    def of(amount: Decimal | int | float | str) -> "Money":
        dec = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        return Money(dec)

    def __add__(self, other: "Money") -> "Money":
        return Money(self.amount + other.amount)

    def __mul__(self, n: int) -> "Money":
        return Money(
            (self.amount * Decimal(n)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        )


@dataclass(frozen=True)
class OrderItem:
    product_id: ProductId
    quantity: int
    # snapshot of the catalog price when the order was placed
    price: Money

    def subtotal(self) -> Money:
        return self.price * self.quantity


@dataclass(frozen=True)
class Order:
    order_id: OrderId
    total_amount: Money
    total_items: int
    status: OrderStatus
    created_at: datetime
    updated_at: datetime
    items: Tuple[OrderItem, ...] = ()
    paid: bool = False
    paid_at: datetime | None = None

    @staticmethod
    def place(items: Iterable[OrderItem]) -> "Order":
        """Build a new PENDING order; totals are fixed here and never recomputed."""
        items = tuple(items)
        now = now_utc()
        return Order(
            order_id=OrderId.new(),
            total_amount=fold_money(it.subtotal() for it in items),
            total_items=sum(it.quantity for it in items),
            status=OrderStatus.PENDING,
            created_at=now,
            updated_at=now,
            items=items,
        )

    def product_ids(self) -> Tuple[ProductId, ...]:
        return distinct(it.product_id for it in self.items)


def fold_money(values: Iterable[Money]) -> Money:
    total = Money.of(0)
    for v in values:
        total = total + v
    return total


def distinct(ids: Iterable[ProductId]) -> Tuple[ProductId, ...]:
    return tuple(dict.fromkeys(ids))


def now_utc() -> datetime:
    return datetime.now(timezone.utc)
