"""Integration tests: a slow gateway call does not stall other requests."""

import asyncio
import threading

import httpx
from fastapi import FastAPI
from ordering.api.errors import register_exception_handlers
from ordering.api.routes import order_router, payment_router
from payments.gateway import set_gateway
from payments.gateway.fake_adapter import FakeGateway

BUYER = {"X-User-Id": "user-001"}

ORDER_BODY = {
    "items": [{"itemRef": "album-A", "quantity": 1}],
    "subtotal": 10.0,
    "taxRate": 0.1,
    "total": 11.0,
}


class BlockingGateway(FakeGateway):
    """Holds every intent request until ``release`` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.entered = threading.Event()
        self.release = threading.Event()
        self.released_in_time: bool | None = None

    def create_intent(self, **kwargs):
        self.entered.set()
        self.released_in_time = self.release.wait(timeout=5)
        return super().create_intent(**kwargs)


def _app() -> FastAPI:
    app = FastAPI()
    app.include_router(order_router)
    app.include_router(payment_router)
    register_exception_handlers(app)

    @app.get("/ping")
    async def ping():
        return {"status": "ok"}

    return app


class TestEventLoopStaysFree:
    def test_other_requests_are_served_while_gateway_blocks(self):
        gateway = BlockingGateway()
        set_gateway(gateway)
        app = _app()

        async def scenario():
            transport = httpx.ASGITransport(app=app)
            async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
                creating = asyncio.create_task(client.post("/orders", json=ORDER_BODY, headers=BUYER))
                assert await asyncio.to_thread(gateway.entered.wait, 5)

                ping = await client.get("/ping")
                gateway.release.set()
                created = await creating
            return ping, created

        ping, created = asyncio.run(scenario())

        assert ping.status_code == 200
        assert gateway.released_in_time is True
        assert created.status_code == 201
        assert created.json()["order"]["status"] == "pending"
