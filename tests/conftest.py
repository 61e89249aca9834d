"""
Pytest Configuration and Fixtures

Provides a fake partner API, a controllable clock, and the relay services
wired against them.
"""

import asyncio
import json
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr

from order_relay.auth.credential_cache import CredentialCache
from order_relay.auth.getir_auth import GetirTokenAcquirer
from order_relay.auth.token_manager import GetirTokenManager, get_token_manager
from order_relay.main import app
from order_relay.models.getir import PartnerSecrets
from order_relay.services.getir_proxy import GetirActionProxy, get_getir_proxy
from order_relay.services.order_events import OrderEventBus, get_order_event_bus
from order_relay.services.yemeksepeti_proxy import (
    YemeksepetiProxy,
    get_yemeksepeti_proxy,
)

GETIR_BASE_URL = "https://getir.test"
YEMEKSEPETI_BASE_URL = "https://yemeksepeti.test"
TEST_APP_SECRET = "app-secret-0123456789"
TEST_RESTAURANT_SECRET = "restaurant-secret-0123456789"


class FakeClock:
    """Clock whose time only moves when told to"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class FakeUpstream:
    """
    Stand-in for the partner APIs behind an httpx.MockTransport.

    Records every request. Login calls are answered from ``login_status`` and
    ``login_body``; other calls from responses registered with ``respond``.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.login_calls = 0
        self.login_delay = 0.0
        self.login_status = 200
        self.login_body: Any = {"token": "cached-token-1", "restaurantId": "rest-1"}
        self._responses: Dict[Tuple[str, str], Dict[str, Any]] = {}

    def respond(
        self,
        method: str,
        path: str,
        status_code: int = 200,
        json_body: Any = None,
        text: Optional[str] = None,
        error: Optional[type] = None,
    ) -> None:
        self._responses[(method, path)] = {
            "status_code": status_code,
            "json_body": json_body,
            "text": text,
            "error": error,
        }

    def calls_to(self, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    @property
    def non_login_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path != "/auth/login"]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.host == "getir.test" and request.url.path == "/auth/login":
            self.login_calls += 1
            if self.login_delay:
                await asyncio.sleep(self.login_delay)
            if isinstance(self.login_body, str):
                return httpx.Response(self.login_status, text=self.login_body)
            return httpx.Response(self.login_status, json=self.login_body)

        configured = self._responses.get((request.method, request.url.path))
        if configured is None:
            return httpx.Response(200, json={"result": "ok", "path": request.url.path})
        if configured["error"] is not None:
            raise configured["error"]("upstream unreachable", request=request)
        if configured["text"] is not None:
            return httpx.Response(configured["status_code"], text=configured["text"])
        return httpx.Response(configured["status_code"], json=configured["json_body"])


def request_json(request: httpx.Request) -> Any:
    """Decoded JSON body of a recorded request, or None if it had no body"""
    if not request.content:
        return None
    return json.loads(request.content)


@pytest.fixture
def fake_upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
async def http_client(fake_upstream):
    client = httpx.AsyncClient(transport=httpx.MockTransport(fake_upstream))
    yield client
    await client.aclose()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def partner_secrets() -> PartnerSecrets:
    return PartnerSecrets(
        app_secret_key=SecretStr(TEST_APP_SECRET),
        restaurant_secret_key=SecretStr(TEST_RESTAURANT_SECRET),
    )


@pytest.fixture
def acquirer(http_client, clock) -> GetirTokenAcquirer:
    return GetirTokenAcquirer(
        http_client=http_client,
        base_url=GETIR_BASE_URL,
        validity=timedelta(minutes=55),
        clock=clock,
    )


@pytest.fixture
async def token_manager(acquirer, partner_secrets, clock):
    manager = GetirTokenManager(
        acquirer=acquirer,
        secrets=partner_secrets,
        cache=CredentialCache(),
        refresh_interval=timedelta(minutes=55),
        clock=clock,
    )
    yield manager
    await manager.stop_background_refresh()


@pytest.fixture
def getir_proxy(http_client, token_manager) -> GetirActionProxy:
    return GetirActionProxy(
        http_client=http_client,
        base_url=GETIR_BASE_URL,
        token_manager=token_manager,
    )


@pytest.fixture
def yemeksepeti_proxy(http_client) -> YemeksepetiProxy:
    return YemeksepetiProxy(http_client=http_client, base_url=YEMEKSEPETI_BASE_URL)


@pytest.fixture
def event_bus() -> OrderEventBus:
    return OrderEventBus(queue_size=10)


@pytest.fixture
async def async_client(getir_proxy, yemeksepeti_proxy, token_manager, event_bus):
    """Async HTTP client against the app, with services bound to the fakes"""
    app.dependency_overrides[get_getir_proxy] = lambda: getir_proxy
    app.dependency_overrides[get_yemeksepeti_proxy] = lambda: yemeksepeti_proxy
    app.dependency_overrides[get_token_manager] = lambda: token_manager
    app.dependency_overrides[get_order_event_bus] = lambda: event_bus

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def mock_getir_order_webhook() -> Dict[str, Any]:
    """Getir new-order webhook payload"""
    return {
        "foodOrder": {
            "id": "64f1c2a9e4b0a1b2c3d4e5f6",
            "confirmationId": "X7K2",
            "status": 325,
            "totalPrice": 245.5,
            "client": {"name": "Ayse Y.", "clientPhoneNumber": "+90 850 000 00 00"},
            "products": [{"name": {"tr": "Lahmacun"}, "count": 2}],
        }
    }


@pytest.fixture
def mock_yemeksepeti_order_webhook() -> Dict[str, Any]:
    """Yemeksepeti order webhook payload"""
    return {
        "token": "ys-order-token",
        "code": "ABC-123",
        "expiryDate": "2025-01-15T12:30:00Z",
        "customer": {"firstName": "Mehmet", "lastName": "K."},
        "price": {"grandTotal": "189.90"},
        "delivery": {"address": {"city": "Istanbul", "street": "Bagdat Cd."}},
    }
