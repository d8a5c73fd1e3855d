from __future__ import annotations

import asyncio
import sys

import nats
import structlog
import uvicorn

from orders_ms.adapters.inbound.rpc.nats_server import NatsRpcServer
from orders_ms.adapters.inbound.web import create_fastapi_app
from orders_ms.adapters.outbound.sqlalchemy_orders import SqlAlchemyOrderRepository
from orders_ms.bootstrap import build_catalog, build_rpc_handlers, build_usecases
from orders_ms.config import ConfigError, Settings, load_settings
from orders_ms.utils.logging import configure_logging

logger = structlog.get_logger(__name__)


async def serve(settings: Settings) -> None:
    orders = SqlAlchemyOrderRepository.from_url(settings.database_url)
    await orders.connect()

    nc = await nats.connect(servers=settings.nats_servers, name="orders-ms")
    logger.info("Message bus connected", servers=settings.nats_servers)

    usecases = build_usecases(orders, build_catalog(settings, nc))
    rpc = NatsRpcServer(client=nc, handlers=build_rpc_handlers(usecases))
    await rpc.start()

    def bus_status() -> str:
        return "connected" if nc.is_connected else "disconnected"

    server = uvicorn.Server(
        uvicorn.Config(
            create_fastapi_app(bus_status),
            host="0.0.0.0",
            port=settings.port,
            log_config=None,
        )
    )
    logger.info("Orders microservice running", port=settings.port)
    try:
        await server.serve()
    finally:
        await rpc.stop()
        await nc.drain()
        await orders.dispose()
        logger.info("Orders microservice stopped")


def main() -> int:
    try:
        settings = load_settings()
    except ConfigError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    configure_logging(settings.environment, settings.log_level)
    asyncio.run(serve(settings))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
