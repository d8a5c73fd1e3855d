from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, Sequence

import structlog
from nats.errors import Error as NatsError
from nats.errors import NoRespondersError
from nats.errors import TimeoutError as NatsTimeoutError
from pydantic import BaseModel, ConfigDict, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from returns.result import Failure, Result, Success

from orders_ms.adapters.messaging.packets import (
    PacketError,
    decode_reply,
    encode_request,
    subject_for,
)
from orders_ms.core.domain.model.errors import (
    CatalogUnavailable,
    OrderServiceError,
    ProductValidationRejected,
)
from orders_ms.core.domain.model.order import Money, ProductId
from orders_ms.core.ports.outbound.catalog import Product, ProductCatalog

logger = structlog.get_logger(__name__)

VALIDATE_PRODUCT = {"cmd": "validate_product"}


class RequestClient(Protocol):
    """The slice of ``nats.aio.client.Client`` used here."""

    async def request(self, subject: str, payload: bytes = b"", timeout: float = 0.5) -> Any: ...


class ProductOut(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")

    id: str
    name: str
    price: float


_products = TypeAdapter(list[ProductOut])


@dataclass(frozen=True)
class NatsProductCatalog(ProductCatalog):
    client: RequestClient
    timeout: float = 5.0

    async def validate_products(
        self, product_ids: Sequence[ProductId]
    ) -> Result[Sequence[Product], OrderServiceError]:
        payload = encode_request(VALIDATE_PRODUCT, [p.value for p in product_ids])
        try:
            msg = await self.client.request(
                subject_for(VALIDATE_PRODUCT), payload, timeout=self.timeout
            )
        except NoRespondersError:
            return Failure(CatalogUnavailable(message="no catalog service is listening"))
        except NatsTimeoutError:
            return Failure(CatalogUnavailable(message="catalog request timed out"))
        except NatsError as exc:
            return Failure(CatalogUnavailable(message=f"catalog request failed: {exc}"))

        try:
            reply = decode_reply(msg.data)
        except PacketError as exc:
            return Failure(CatalogUnavailable(message=f"malformed catalog reply: {exc}"))

        if reply.is_error:
            return Failure(_rejection(reply.err, product_ids))

        try:
            products = _products.validate_python(reply.response)
        except PydanticValidationError as exc:
            logger.warning("Unexpected catalog payload", errors=exc.error_count())
            return Failure(CatalogUnavailable(message="unexpected catalog payload"))

        return Success(
            tuple(
                Product(product_id=ProductId(p.id), name=p.name, price=Money.of(p.price))
                for p in products
            )
        )


def _rejection(err: Any, product_ids: Sequence[ProductId]) -> ProductValidationRejected:
    status = 400
    message: Any = err
    if isinstance(err, dict):
        status = err.get("status") if isinstance(err.get("status"), int) else 400
        message = err.get("message", "product validation failed")
    if isinstance(message, list):
        message = "; ".join(str(m) for m in message)
    return ProductValidationRejected(
        message=str(message),
        status=status,
        product_ids=tuple(p.value for p in product_ids),
    )
