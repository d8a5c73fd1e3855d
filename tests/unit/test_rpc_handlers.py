"""Tests for the RPC command table: payload validation, serialization and error mapping."""

from uuid import uuid4

import pytest

from orders_ms.adapters.inbound.rpc.handlers import (
    CHANGE_ORDER_STATUS,
    CREATE_ORDER,
    FIND_ALL_ORDERS,
    FIND_ONE_ORDER,
    RpcError,
    create_rpc_handlers,
)
from orders_ms.core.domain.model.order import Money, ProductId
from orders_ms.core.ports.outbound.catalog import Product


@pytest.fixture()
def handlers(service):
    return create_rpc_handlers(service, service, service)


async def _create(handlers, items=None):
    return await handlers[CREATE_ORDER]({"items": items or [{"productId": "p1", "quantity": 2}]})


def test_exposes_the_four_commands(handlers):
    assert set(handlers) == {CREATE_ORDER, FIND_ALL_ORDERS, FIND_ONE_ORDER, CHANGE_ORDER_STATUS}


class TestCreateOrder:
    async def test_returns_enriched_order_in_camel_case(self, handlers):
        order = await _create(handlers)

        assert order["totalAmount"] == 20.0
        assert order["totalItems"] == 2
        assert order["status"] == "PENDING"
        assert order["paid"] is False
        assert order["paidAt"] is None
        assert isinstance(order["createdAt"], str)
        assert order["items"] == [
            {"productId": "p1", "quantity": 2, "price": 10.0, "name": "Widget"}
        ]

    async def test_numeric_product_ids_are_accepted(self, handlers, catalog):
        catalog.products_by_id["7"] = Product(
            product_id=ProductId("7"), name="Seven", price=Money.of(3)
        )

        order = await _create(handlers, [{"productId": 7, "quantity": 1}])

        assert order["items"][0]["productId"] == "7"

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"items": []},
            {"items": [{"productId": "p1", "quantity": 0}]},
            {"items": [{"productId": "", "quantity": 1}]},
            {"items": [{"quantity": 1}]},
            None,
        ],
    )
    async def test_invalid_payload_is_400_with_messages(self, handlers, payload):
        with pytest.raises(RpcError) as exc_info:
            await handlers[CREATE_ORDER](payload)

        assert exc_info.value.status == 400
        assert isinstance(exc_info.value.message, list)

    async def test_unknown_product_is_opaque_400(self, handlers, orders):
        with pytest.raises(RpcError) as exc_info:
            await _create(handlers, [{"productId": "missing", "quantity": 1}])

        assert exc_info.value.to_payload() == {"status": 400, "message": "check logs"}
        assert orders.creates == 0


class TestFindAllOrders:
    async def test_page_shape(self, handlers):
        for _ in range(3):
            await _create(handlers)

        page = await handlers[FIND_ALL_ORDERS]({"page": 2, "limit": 2})

        assert page["meta"] == {"total": 3, "page": 2, "lastPage": 2}
        assert len(page["data"]) == 1
        assert "items" not in page["data"][0]

    async def test_defaults(self, handlers):
        page = await handlers[FIND_ALL_ORDERS]({})

        assert page == {"data": [], "meta": {"total": 0, "page": 1, "lastPage": 0}}

    @pytest.mark.parametrize(
        "payload", [{"page": 0}, {"limit": 0}, {"limit": -1}, {"status": "LOST"}]
    )
    async def test_invalid_paging_is_400(self, handlers, payload):
        with pytest.raises(RpcError) as exc_info:
            await handlers[FIND_ALL_ORDERS](payload)

        assert exc_info.value.status == 400


class TestFindOneOrder:
    async def test_found(self, handlers):
        created = await _create(handlers)

        order = await handlers[FIND_ONE_ORDER]({"id": created["id"]})

        assert order["id"] == created["id"]
        assert order["items"][0]["name"] == "Widget"

    async def test_bare_id_payload(self, handlers):
        created = await _create(handlers)

        order = await handlers[FIND_ONE_ORDER](created["id"])

        assert order["id"] == created["id"]

    async def test_not_found_is_400_naming_the_id(self, handlers):
        missing = str(uuid4())

        with pytest.raises(RpcError) as exc_info:
            await handlers[FIND_ONE_ORDER]({"id": missing})

        assert exc_info.value.status == 400
        assert exc_info.value.message == f"Order with id #{missing} not found"

    async def test_catalog_rejection_status_is_forwarded(self, handlers, catalog):
        created = await _create(handlers)
        del catalog.products_by_id["p1"]

        with pytest.raises(RpcError) as exc_info:
            await handlers[FIND_ONE_ORDER]({"id": created["id"]})

        assert exc_info.value.status == 400


class TestChangeOrderStatus:
    async def test_same_status_returns_enriched_order(self, handlers, orders):
        created = await _create(handlers)

        order = await handlers[CHANGE_ORDER_STATUS]({"id": created["id"], "status": "PENDING"})

        assert order["items"][0]["name"] == "Widget"
        assert orders.status_updates == 0

    async def test_new_status_returns_bare_record(self, handlers, orders):
        created = await _create(handlers)

        order = await handlers[CHANGE_ORDER_STATUS]({"id": created["id"], "status": "DELIVERED"})

        assert order["status"] == "DELIVERED"
        assert "items" not in order
        assert order["totalAmount"] == created["totalAmount"]
        assert orders.status_updates == 1

    async def test_invalid_status_is_400(self, handlers):
        created = await _create(handlers)

        with pytest.raises(RpcError) as exc_info:
            await handlers[CHANGE_ORDER_STATUS]({"id": created["id"], "status": "SHIPPED"})

        assert exc_info.value.status == 400
