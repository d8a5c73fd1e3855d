import json
from decimal import Decimal
from types import SimpleNamespace

from nats.errors import NoRespondersError
from nats.errors import TimeoutError as NatsTimeoutError

from orders_ms.adapters.messaging.packets import encode_error, encode_response
from orders_ms.adapters.outbound.nats_catalog import NatsProductCatalog
from orders_ms.core.domain.model.errors import CatalogUnavailable, ProductValidationRejected
from orders_ms.core.domain.model.order import ProductId


class FakeClient:
    def __init__(self, reply=None, exc=None):
        self.reply = reply
        self.exc = exc
        self.requests = []

    async def request(self, subject, payload=b"", timeout=0.5):
        self.requests.append((subject, json.loads(payload), timeout))
        if self.exc is not None:
            raise self.exc
        return SimpleNamespace(data=self.reply)


IDS = (ProductId("1"), ProductId("2"))


async def test_sends_one_batch_request_on_validate_product_subject():
    client = FakeClient(reply=encode_response("r", []))
    catalog = NatsProductCatalog(client=client, timeout=2.5)

    await catalog.validate_products(IDS)

    assert len(client.requests) == 1
    subject, packet, timeout = client.requests[0]
    assert subject == '{"cmd":"validate_product"}'
    assert packet["pattern"] == {"cmd": "validate_product"}
    assert packet["data"] == ["1", "2"]
    assert timeout == 2.5


async def test_maps_products_and_coerces_numeric_ids():
    reply = encode_response(
        "r",
        [
            {"id": 1, "name": "Widget", "price": 10, "available": True},
            {"id": "2", "name": "Gadget", "price": 25.5},
        ],
    )
    catalog = NatsProductCatalog(client=FakeClient(reply=reply))

    products = (await catalog.validate_products(IDS)).unwrap()

    assert [(p.product_id, p.name, p.price.amount) for p in products] == [
        (ProductId("1"), "Widget", Decimal("10.00")),
        (ProductId("2"), "Gadget", Decimal("25.50")),
    ]


async def test_error_reply_is_a_rejection_with_forwarded_status():
    reply = encode_error("r", {"status": 404, "message": "Some products were not found"})
    catalog = NatsProductCatalog(client=FakeClient(reply=reply))

    err = (await catalog.validate_products(IDS)).failure()

    assert isinstance(err, ProductValidationRejected)
    assert err.status == 404
    assert str(err) == "Some products were not found"
    assert err.product_ids == ("1", "2")


async def test_error_reply_with_message_list():
    reply = encode_error("r", {"status": 400, "message": ["a", "b"]})
    catalog = NatsProductCatalog(client=FakeClient(reply=reply))

    err = (await catalog.validate_products(IDS)).failure()

    assert str(err) == "a; b"


async def test_timeout_is_catalog_unavailable():
    catalog = NatsProductCatalog(client=FakeClient(exc=NatsTimeoutError()))

    err = (await catalog.validate_products(IDS)).failure()

    assert isinstance(err, CatalogUnavailable)


async def test_no_responders_is_catalog_unavailable():
    catalog = NatsProductCatalog(client=FakeClient(exc=NoRespondersError()))

    err = (await catalog.validate_products(IDS)).failure()

    assert isinstance(err, CatalogUnavailable)


async def test_malformed_reply_is_catalog_unavailable():
    catalog = NatsProductCatalog(client=FakeClient(reply=b"<html>"))

    err = (await catalog.validate_products(IDS)).failure()

    assert isinstance(err, CatalogUnavailable)


async def test_unexpected_payload_shape_is_catalog_unavailable():
    reply = encode_response("r", [{"id": "1"}])
    catalog = NatsProductCatalog(client=FakeClient(reply=reply))

    err = (await catalog.validate_products(IDS)).failure()

    assert isinstance(err, CatalogUnavailable)
