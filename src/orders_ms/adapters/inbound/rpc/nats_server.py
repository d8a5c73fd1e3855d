from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Protocol, Set

import structlog

from orders_ms.adapters.inbound.rpc.handlers import RpcError, RpcHandler
from orders_ms.adapters.messaging.packets import (
    PacketError,
    decode_request,
    encode_error,
    encode_response,
    subject_for,
)

logger = structlog.get_logger(__name__)


class SubscribeClient(Protocol):
    """The slice of ``nats.aio.client.Client`` used here."""

    async def subscribe(self, subject: str, queue: str = "", cb: Any = None) -> Any: ...


@dataclass
class NatsRpcServer:
    client: SubscribeClient
    handlers: Dict[str, RpcHandler]
    _subscriptions: List[Any] = field(default_factory=list)
    _inflight: Set["asyncio.Task[None]"] = field(default_factory=set)

    async def start(self) -> None:
        for pattern in self.handlers:
            sub = await self.client.subscribe(subject_for(pattern), cb=self.on_message)
            self._subscriptions.append(sub)
            logger.info("Subscribed to command", command=pattern)

    async def stop(self) -> None:
        for sub in self._subscriptions:
            await sub.unsubscribe()
        self._subscriptions.clear()
        if self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)

    async def on_message(self, msg: Any) -> None:
        # nats-py awaits this callback before delivering the next message
        # on the subscription, so each request runs in its own task.
        task = asyncio.create_task(self._serve(msg))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _serve(self, msg: Any) -> None:
        reply = await self.handle(msg.subject, msg.data)
        if msg.reply:
            await msg.respond(reply)

    async def handle(self, subject: str, raw: bytes) -> bytes:
        try:
            packet = decode_request(raw)
        except PacketError as exc:
            logger.warning("Malformed request packet", subject=subject, error=str(exc))
            return encode_error("", RpcError(400, str(exc)).to_payload())

        # a miss only happens through wildcard subscriptions
        handler = self.handlers.get(subject)
        if handler is None:
            return encode_error(
                packet.id,
                RpcError(404, f"There is no matching message handler defined for {subject}").to_payload(),
            )

        structlog.contextvars.bind_contextvars(command=subject, request_id=packet.id)
        try:
            result = await handler(packet.data)
            return encode_response(packet.id, result)
        except RpcError as exc:
            logger.info("Command rejected", status=exc.status, message=exc.message)
            return encode_error(packet.id, exc.to_payload())
        except Exception:  # noqa: BLE001
            logger.exception("Command handler crashed")
            return encode_error(packet.id, RpcError(500, "Internal server error").to_payload())
        finally:
            structlog.contextvars.clear_contextvars()
