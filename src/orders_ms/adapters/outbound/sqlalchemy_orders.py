"""Relational order store on SQLAlchemy's asyncio ORM.

Two tables, ``orders`` and ``order_items``; an order and its items are inserted
in one transaction and items are deleted with their order.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Sequence

import structlog
from returns.result import Failure, Result, Success
from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    func,
    select,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship, selectinload

from orders_ms.core.domain.model.errors import (
    OrderNotFound,
    OrderServiceError,
    PersistenceError,
)
from orders_ms.core.domain.model.order import (
    Money,
    Order,
    OrderId,
    OrderItem,
    OrderStatus,
    ProductId,
    now_utc,
)
from orders_ms.core.ports.outbound.orders import OrderRepository

logger = structlog.get_logger(__name__)


class Base(DeclarativeBase):
    pass


class OrderRow(Base):
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total_items: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[OrderStatus] = mapped_column(
        Enum(OrderStatus, name="order_status"),
        nullable=False,
        default=OrderStatus.PENDING,
        index=True,
    )
    paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    items: Mapped[list["OrderItemRow"]] = relationship(
        back_populates="order", cascade="all, delete-orphan"
    )


class OrderItemRow(Base):
    __tablename__ = "order_items"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    order_id: Mapped[str] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    order: Mapped[OrderRow] = relationship(back_populates="items")


@dataclass
class SqlAlchemyOrderRepository(OrderRepository):
    engine: AsyncEngine

    def __post_init__(self) -> None:
        self._sessions = async_sessionmaker(self.engine, expire_on_commit=False)

    @classmethod
    def from_url(cls, database_url: str) -> "SqlAlchemyOrderRepository":
        return cls(create_async_engine(database_url))

    async def connect(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database connected", dialect=self.engine.dialect.name)

    async def dispose(self) -> None:
        await self.engine.dispose()

    async def create(self, order: Order) -> Result[Order, OrderServiceError]:
        row = _to_row(order)
        try:
            async with self._sessions.begin() as session:
                session.add(row)
        except SQLAlchemyError as exc:
            return _persistence_failure("create", exc)
        return Success(_to_domain(row, with_items=True))

    async def count(
        self, status: OrderStatus | None = None
    ) -> Result[int, OrderServiceError]:
        stmt = select(func.count()).select_from(OrderRow)
        if status is not None:
            stmt = stmt.where(OrderRow.status == status)
        try:
            async with self._sessions() as session:
                total = await session.scalar(stmt)
        except SQLAlchemyError as exc:
            return _persistence_failure("count", exc)
        return Success(total or 0)

    async def list(
        self, offset: int, limit: int, status: OrderStatus | None = None
    ) -> Result[Sequence[Order], OrderServiceError]:
        stmt = (
            select(OrderRow)
            .order_by(OrderRow.created_at, OrderRow.id)
            .offset(offset)
            .limit(limit)
        )
        if status is not None:
            stmt = stmt.where(OrderRow.status == status)
        try:
            async with self._sessions() as session:
                rows = (await session.scalars(stmt)).all()
        except SQLAlchemyError as exc:
            return _persistence_failure("list", exc)
        return Success(tuple(_to_domain(r, with_items=False) for r in rows))

    async def get_by_id(self, order_id: OrderId) -> Result[Order, OrderServiceError]:
        stmt = (
            select(OrderRow)
            .where(OrderRow.id == str(order_id))
            .options(selectinload(OrderRow.items))
        )
        try:
            async with self._sessions() as session:
                row = await session.scalar(stmt)
        except SQLAlchemyError as exc:
            return _persistence_failure("get_by_id", exc)
        if row is None:
            return Failure(OrderNotFound(message="order not found", order_id=str(order_id)))
        return Success(_to_domain(row, with_items=True))

    async def update_status(
        self, order_id: OrderId, status: OrderStatus
    ) -> Result[Order, OrderServiceError]:
        try:
            async with self._sessions.begin() as session:
                row = await session.get(OrderRow, str(order_id))
                if row is None:
                    return Failure(
                        OrderNotFound(message="order not found", order_id=str(order_id))
                    )
                row.status = status
                row.updated_at = now_utc()
        except SQLAlchemyError as exc:
            return _persistence_failure("update_status", exc)
        return Success(_to_domain(row, with_items=False))


def _persistence_failure(op: str, exc: SQLAlchemyError) -> Failure[OrderServiceError]:
    logger.error("Order store operation failed", operation=op, error=str(exc))
    return Failure(PersistenceError(message=f"{op} failed"))


def _to_row(order: Order) -> OrderRow:
    return OrderRow(
        id=str(order.order_id),
        total_amount=order.total_amount.amount,
        total_items=order.total_items,
        status=order.status,
        paid=order.paid,
        paid_at=order.paid_at,
        created_at=order.created_at,
        updated_at=order.updated_at,
        items=[
            OrderItemRow(
                product_id=it.product_id.value,
                quantity=it.quantity,
                price=it.price.amount,
            )
            for it in order.items
        ],
    )


def _to_domain(row: OrderRow, with_items: bool) -> Order:
    items: tuple[OrderItem, ...] = ()
    if with_items:
        items = tuple(
            OrderItem(
                product_id=ProductId(r.product_id),
                quantity=r.quantity,
                price=Money.of(r.price),
            )
            for r in row.items
        )
    return Order(
        order_id=OrderId(uuid.UUID(row.id)),
        total_amount=Money.of(row.total_amount),
        total_items=row.total_items,
        status=row.status,
        paid=row.paid,
        paid_at=_as_utc(row.paid_at) if row.paid_at is not None else None,
        created_at=_as_utc(row.created_at),
        updated_at=_as_utc(row.updated_at),
        items=items,
    )


def _as_utc(value: datetime) -> datetime:
    # SQLite drops the offset of timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
