from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from orders_ms.adapters.inbound.rpc.handlers import RpcHandler, create_rpc_handlers
from orders_ms.adapters.outbound.nats_catalog import NatsProductCatalog, RequestClient
from orders_ms.config import Settings
from orders_ms.core.domain.service.orders_service import OrdersDeps, OrdersService
from orders_ms.core.ports.outbound.catalog import ProductCatalog
from orders_ms.core.ports.outbound.orders import OrderRepository


@dataclass(frozen=True)
class UseCases:
    orders: OrdersService


def build_usecases(orders: OrderRepository, catalog: ProductCatalog) -> UseCases:
    return UseCases(orders=OrdersService(OrdersDeps(orders=orders, catalog=catalog)))


def build_catalog(settings: Settings, client: RequestClient) -> NatsProductCatalog:
    return NatsProductCatalog(client=client, timeout=settings.rpc_timeout)


def build_rpc_handlers(usecases: UseCases) -> Dict[str, RpcHandler]:
    return create_rpc_handlers(usecases.orders, usecases.orders, usecases.orders)
