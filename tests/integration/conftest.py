"""
Shared fixtures for integration tests.
"""
import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr

from order_relay.auth import token_manager as token_manager_module
from order_relay.config import settings
from order_relay.main import app
from order_relay.services import http_client as http_client_module
from order_relay.services import order_events as order_events_module
from order_relay.services.getir_proxy import reset_getir_proxy
from order_relay.services.yemeksepeti_proxy import reset_yemeksepeti_proxy

from conftest import (
    GETIR_BASE_URL,
    TEST_APP_SECRET,
    TEST_RESTAURANT_SECRET,
    YEMEKSEPETI_BASE_URL,
)


@pytest.fixture
def relay_settings(monkeypatch):
    """Point the real settings object at the fake partner APIs."""
    monkeypatch.setattr(settings, "getir_api_base_url", GETIR_BASE_URL)
    monkeypatch.setattr(settings, "yemeksepeti_api_base_url", YEMEKSEPETI_BASE_URL)
    monkeypatch.setattr(settings, "getir_app_secret", SecretStr(TEST_APP_SECRET))
    monkeypatch.setattr(
        settings, "getir_restaurant_secret", SecretStr(TEST_RESTAURANT_SECRET)
    )
    monkeypatch.setattr(settings, "getir_background_refresh", True)
    return settings


@pytest.fixture
def wired_services(relay_settings, fake_upstream, monkeypatch):
    """
    Fresh service singletons whose shared HTTP client talks to the fake
    upstream.
    """
    monkeypatch.setattr(token_manager_module, "_token_manager_instance", None)
    monkeypatch.setattr(order_events_module, "_event_bus_instance", None)
    monkeypatch.setattr(
        http_client_module,
        "_http_client",
        httpx.AsyncClient(transport=httpx.MockTransport(fake_upstream)),
    )
    reset_getir_proxy()
    reset_yemeksepeti_proxy()

    yield relay_settings

    reset_getir_proxy()
    reset_yemeksepeti_proxy()


@pytest.fixture
async def running_app(wired_services):
    """Run the application lifespan and yield an AsyncClient talking to it."""
    async with app.router.lifespan_context(app):
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as client:
            yield client
