from dataclasses import dataclass
from pathlib import Path

import pytest

from doubles import InMemoryOrderRepository, InMemoryProductCatalog
from orders_ms.core.domain.model.order import Money, ProductId
from orders_ms.core.domain.service.orders_service import OrdersDeps, OrdersService
from orders_ms.core.ports.outbound.catalog import Product


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))
        if "/unit/" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)


@dataclass
class CountingOrderRepository(InMemoryOrderRepository):
    """In-memory store that records how many writes reached it."""

    creates: int = 0
    status_updates: int = 0

    async def create(self, order):
        self.creates += 1
        return await super().create(order)

    async def update_status(self, order_id, status):
        self.status_updates += 1
        return await super().update_status(order_id, status)


def _product(pid, name, price):
    return Product(product_id=ProductId(pid), name=name, price=Money.of(price))


@pytest.fixture()
def catalog():
    return InMemoryProductCatalog(
        products_by_id={
            "p1": _product("p1", "Widget", 10),
            "p2": _product("p2", "Gadget", "25.50"),
            "p3": _product("p3", "Gizmo", "0.99"),
        }
    )


@pytest.fixture()
def orders():
    return CountingOrderRepository()


@pytest.fixture()
def service(orders, catalog):
    return OrdersService(OrdersDeps(orders=orders, catalog=catalog))
