"""Request/reply framing shared by every service on the message bus.

A request is ``{"id", "pattern", "data"}`` published on the subject derived
from its pattern; the reply is either ``{"id", "response", "isDisposed"}`` or
``{"id", "err", "isDisposed"}``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping
from uuid import uuid4

Pattern = str | Mapping[str, Any]


class PacketError(ValueError):
    pass


@dataclass(frozen=True)
class RequestPacket:
    id: str
    pattern: Pattern
    data: Any


@dataclass(frozen=True)
class ReplyPacket:
    id: str
    response: Any = None
    err: Any = None
    is_disposed: bool = True

    @property
    def is_error(self) -> bool:
        return self.err is not None


def subject_for(pattern: Pattern) -> str:
    if isinstance(pattern, str):
        return pattern
    return json.dumps(dict(sorted(pattern.items())), separators=(",", ":"))


def encode_request(pattern: Pattern, data: Any, request_id: str | None = None) -> bytes:
    packet = {"id": request_id or str(uuid4()), "pattern": pattern, "data": data}
    return json.dumps(packet, default=str).encode("utf-8")


def decode_request(raw: bytes) -> RequestPacket:
    obj = _loads(raw)
    if "data" not in obj:
        raise PacketError("request packet has no data")
    return RequestPacket(
        id=str(obj.get("id") or ""),
        pattern=obj.get("pattern", ""),
        data=obj["data"],
    )


def encode_response(request_id: str, response: Any) -> bytes:
    packet = {"id": request_id, "response": response, "isDisposed": True}
    return json.dumps(packet, default=str).encode("utf-8")


def encode_error(request_id: str, err: Mapping[str, Any]) -> bytes:
    packet = {"id": request_id, "err": dict(err), "isDisposed": True}
    return json.dumps(packet, default=str).encode("utf-8")


def decode_reply(raw: bytes) -> ReplyPacket:
    obj = _loads(raw)
    if "err" not in obj and "response" not in obj:
        raise PacketError("reply packet has neither response nor err")
    return ReplyPacket(
        id=str(obj.get("id") or ""),
        response=obj.get("response"),
        err=obj.get("err"),
        is_disposed=bool(obj.get("isDisposed", True)),
    )


def _loads(raw: bytes) -> dict[str, Any]:
    try:
        obj = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise PacketError(f"invalid packet: {exc}") from exc
    if not isinstance(obj, dict):
        raise PacketError("packet must be a JSON object")
    return obj
