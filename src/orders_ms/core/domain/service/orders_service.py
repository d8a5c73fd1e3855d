from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Mapping, Sequence

import structlog
from returns.result import Failure, Result, Success

from orders_ms.core.domain.model.errors import (
    OrderCreationFailed,
    OrderServiceError,
    ProductValidationRejected,
    ValidationError,
)
from orders_ms.core.domain.model.order import (
    Order,
    OrderItem,
    ProductId,
    distinct,
)
from orders_ms.core.domain.service.validation import (
    parse_order_id,
    parse_status,
    validate_items,
    validate_paging,
)
from orders_ms.core.ports.inbound.change_order_status import (
    ChangeOrderStatusCommand,
    ChangeOrderStatusUseCase,
)
from orders_ms.core.ports.inbound.create_order import (
    CreateOrderCommand,
    CreateOrderUseCase,
    OrderDetailsView,
    OrderItemView,
    OrderSummaryView,
)
from orders_ms.core.ports.inbound.find_orders import (
    FindAllOrdersQuery,
    FindOneOrderQuery,
    FindOrdersUseCase,
    OrderPageView,
    PageMeta,
)
from orders_ms.core.ports.outbound.catalog import Product, ProductCatalog
from orders_ms.core.ports.outbound.orders import OrderRepository

logger = structlog.get_logger(__name__)

CREATION_FAILED_MESSAGE = "check logs"


@dataclass(frozen=True)
class OrdersDeps:
    orders: OrderRepository
    catalog: ProductCatalog


@dataclass(frozen=True)
class OrdersService(CreateOrderUseCase, FindOrdersUseCase, ChangeOrderStatusUseCase):
    deps: OrdersDeps

    # ---- create ------------------------------------------------------------

    async def create(
        self, command: CreateOrderCommand
    ) -> Result[OrderDetailsView, OrderServiceError]:
        try:
            result = await self._create(command)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Order creation crashed", cause=type(exc).__name__)
            return Failure(
                OrderCreationFailed(CREATION_FAILED_MESSAGE, cause=type(exc).__name__)
            )

        if isinstance(result, Failure):
            err = result.failure()
            logger.error(
                "Order creation failed",
                cause=type(err).__name__,
                reason=str(err),
            )
            return Failure(
                OrderCreationFailed(CREATION_FAILED_MESSAGE, cause=type(err).__name__)
            )
        return result

    async def _create(
        self, command: CreateOrderCommand
    ) -> Result[OrderDetailsView, OrderServiceError]:
        v = validate_items(command)
        if isinstance(v, Failure):
            return v

        product_ids = distinct(ProductId(ln.product_id) for ln in command.items)
        fetched = await self._fetch_products(product_ids)
        if isinstance(fetched, Failure):
            return fetched
        products = fetched.unwrap()

        order = Order.place(
            OrderItem(
                product_id=ProductId(ln.product_id),
                quantity=ln.quantity,
                price=products[ProductId(ln.product_id)].price,
            )
            for ln in command.items
        )

        created = await self.deps.orders.create(order)
        if isinstance(created, Failure):
            return created
        stored = created.unwrap()

        logger.info(
            "Order created",
            order_id=str(stored.order_id),
            total_amount=str(stored.total_amount.amount),
            total_items=stored.total_items,
        )
        return Success(_to_details(stored, products))

    # ---- queries -----------------------------------------------------------

    async def find_all(
        self, query: FindAllOrdersQuery
    ) -> Result[OrderPageView, OrderServiceError]:
        v = validate_paging(query)
        if isinstance(v, Failure):
            return v
        parsed = parse_status(query.status)
        if isinstance(parsed, Failure):
            return parsed
        status = parsed.unwrap()

        counted = await self.deps.orders.count(status)
        if isinstance(counted, Failure):
            return counted
        total = counted.unwrap()

        listed = await self.deps.orders.list(
            offset=(query.page - 1) * query.limit, limit=query.limit, status=status
        )
        return listed.map(
            lambda orders: OrderPageView(
                data=tuple(_to_summary(o) for o in orders),
                meta=PageMeta(
                    total=total,
                    page=query.page,
                    last_page=math.ceil(total / query.limit),
                ),
            )
        )

    async def find_one(
        self, query: FindOneOrderQuery
    ) -> Result[OrderDetailsView, OrderServiceError]:
        parsed = parse_order_id(query.order_id)
        if isinstance(parsed, Failure):
            return parsed

        got = await self.deps.orders.get_by_id(parsed.unwrap())
        if isinstance(got, Failure):
            return got
        order = got.unwrap()

        # names are always read from the live catalog; prices stay as stored
        fetched = await self._fetch_products(order.product_ids())
        return fetched.map(lambda products: _to_details(order, products))

    # ---- status ------------------------------------------------------------

    async def change_status(
        self, command: ChangeOrderStatusCommand
    ) -> Result[OrderSummaryView, OrderServiceError]:
        if not command.status:
            return Failure(ValidationError("status is required"))
        parsed = parse_status(command.status)
        if isinstance(parsed, Failure):
            return parsed
        status = parsed.unwrap()

        found = await self.find_one(FindOneOrderQuery(order_id=command.order_id))
        if isinstance(found, Failure):
            return found
        current = found.unwrap()

        if current.status == status:
            logger.info(
                "Order status unchanged",
                order_id=str(current.order_id),
                status=status.value,
            )
            return Success(current)

        updated = await self.deps.orders.update_status(current.order_id, status)
        if isinstance(updated, Success):
            logger.info(
                "Order status changed",
                order_id=str(current.order_id),
                previous=current.status.value,
                status=status.value,
            )
        return updated.map(_to_summary)

    # ---- catalog -----------------------------------------------------------

    async def _fetch_products(
        self, product_ids: Sequence[ProductId]
    ) -> Result[Mapping[ProductId, Product], OrderServiceError]:
        validated = await self.deps.catalog.validate_products(product_ids)
        if isinstance(validated, Failure):
            logger.warning(
                "Catalog validation failed",
                cause=type(validated.failure()).__name__,
                product_ids=[str(p) for p in product_ids],
            )
            return validated
        return _index_products(product_ids, validated.unwrap())


# ---- pure helpers ----------------------------------------------------------


def _index_products(
    requested: Sequence[ProductId], products: Sequence[Product]
) -> Result[Mapping[ProductId, Product], OrderServiceError]:
    by_id = {p.product_id: p for p in products}
    missing = tuple(str(pid) for pid in requested if pid not in by_id)
    if missing:
        return Failure(
            ProductValidationRejected(
                message=f"Products not found: {', '.join(missing)}",
                product_ids=missing,
            )
        )
    return Success(by_id)


def _to_summary(order: Order) -> OrderSummaryView:
    return OrderSummaryView(
        order_id=order.order_id,
        total_amount=order.total_amount,
        total_items=order.total_items,
        status=order.status,
        paid=order.paid,
        paid_at=order.paid_at,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


def _to_details(order: Order, products: Mapping[ProductId, Product]) -> OrderDetailsView:
    return OrderDetailsView(
        order_id=order.order_id,
        total_amount=order.total_amount,
        total_items=order.total_items,
        status=order.status,
        paid=order.paid,
        paid_at=order.paid_at,
        created_at=order.created_at,
        updated_at=order.updated_at,
        items=tuple(
            OrderItemView(
                product_id=it.product_id,
                quantity=it.quantity,
                price=it.price,
                name=products[it.product_id].name,
            )
            for it in order.items
        ),
    )
