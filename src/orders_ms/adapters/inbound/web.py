from __future__ import annotations

from typing import Callable

from fastapi import FastAPI


def create_fastapi_app(bus_status: Callable[[], str]) -> FastAPI:
    app = FastAPI(title="orders_ms")

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "bus": bus_status()}

    return app
