# tests/conftest.py
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

import json
import os
import time

import httpx
import pytest
import pytest_asyncio

os.environ.setdefault("PAYCONIQ_MERCHANT_ID", "merchant-test")
os.environ.setdefault("PAYCONIQ_ACCESS_TOKEN", "token-test")
os.environ.setdefault("PAYCONIQ_CALLBACK_URL", "https://shop.test/payconiq/callback")

from app.api.deps import get_payconiq_gateway
from app.main import app
from app.services.payment_providers.payconiq import HttpxTransport, PayconiqClient, PayconiqConfig
from app.services.payment_service import PayconiqGateway

CALLBACK_URL = "https://shop.test/payconiq/callback"


class FakePayconiq:
    """Stands in for the Payconiq API behind an ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.body: object = {}
        self.raw: bytes | None = None
        self.error: Exception | None = None
        self.delay = 0.0

    def reply(self, body: object = None, status_code: int = 200, raw: bytes | None = None) -> None:
        self.body = body if body is not None else {}
        self.status_code = status_code
        self.raw = raw

    def fail_with(self, error: Exception) -> None:
        self.error = error

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.raw is not None:
            return httpx.Response(self.status_code, content=self.raw)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> dict:
        return json.loads(self.last.content)


@pytest.fixture
def payconiq() -> FakePayconiq:
    return FakePayconiq()


@pytest.fixture
def make_client(payconiq: FakePayconiq):
    def _make(**overrides) -> PayconiqClient:
        values = {"merchant_id": "M1", "access_token": "secret-token"}
        values.update(overrides)
        http_client = httpx.Client(transport=httpx.MockTransport(payconiq.handler))
        return PayconiqClient(PayconiqConfig(**values), transport=HttpxTransport(http_client))

    return _make


@pytest.fixture
def payconiq_client(make_client) -> PayconiqClient:
    return make_client()


@pytest.fixture
def gateway(payconiq_client: PayconiqClient) -> PayconiqGateway:
    return PayconiqGateway(payconiq_client, callback_url=CALLBACK_URL)


@pytest_asyncio.fixture(scope="function")
async def client(gateway: PayconiqGateway):
    """AsyncClient bound to the app with the gateway pointed at the fake provider."""
    app.dependency_overrides[get_payconiq_gateway] = lambda: gateway
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
