"""
End-to-end integration tests for the complete relay flow.
"""
import asyncio

import pytest

from order_relay.auth import token_manager as token_manager_module
from order_relay.main import app
from order_relay.services import http_client as http_client_module
from order_relay.services.order_events import get_order_event_bus


async def wait_for_token(timeout=1.0):
    """Wait until the background refresh has cached a token."""
    manager = token_manager_module.get_token_manager()
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while manager.cache.get() is None:
        if loop.time() > deadline:
            raise AssertionError("background refresh did not cache a token")
        await asyncio.sleep(0.01)


class TestStartupAndShutdown:
    """Test the lifespan wiring of the token manager."""

    @pytest.mark.asyncio
    async def test_startup_acquires_token_in_background(self, running_app, fake_upstream):
        """Test startup logs in once and the service becomes ready."""
        await wait_for_token()

        response = await running_app.get("/health/ready")

        assert response.status_code == 200
        token_status = response.json()["dependencies"]["getir_token"]
        assert token_status["background_refresh"] is True
        assert token_status["secrets_configured"] is True
        assert fake_upstream.login_calls == 1

    @pytest.mark.asyncio
    async def test_shutdown_releases_shared_resources(self, wired_services):
        """Test shutdown stops the refresh loop and closes the client."""
        async with app.router.lifespan_context(app):
            manager = token_manager_module.get_token_manager()
            background = manager._background
            assert background is not None

        assert background.done()
        assert token_manager_module._token_manager_instance is None
        assert http_client_module._http_client is None

    @pytest.mark.asyncio
    async def test_startup_without_secrets_skips_refresh(
        self, wired_services, fake_upstream, monkeypatch
    ):
        """Test a deployment without Getir secrets starts but is not ready."""
        monkeypatch.setattr(wired_services, "getir_app_secret", None)

        async with app.router.lifespan_context(app):
            manager = token_manager_module.get_token_manager()
            assert manager._background is None
            assert manager.secrets is None

        assert fake_upstream.login_calls == 0


class TestOrderFlow:
    """Test a marketplace order from webhook to Getir action."""

    @pytest.mark.asyncio
    async def test_webhook_then_verify_with_cached_token(
        self, running_app, fake_upstream, mock_getir_order_webhook
    ):
        """Test a received Getir order can be verified with the cached token."""
        await wait_for_token()
        bus = get_order_event_bus()

        async with bus.subscribe() as queue:
            response = await running_app.post("/getir/add", json=mock_getir_order_webhook)
            assert response.status_code == 200
            event = await asyncio.wait_for(queue.get(), timeout=1)

        response = await running_app.post(
            f"/api/getir/internal/orders/{event.order_id}/verify"
        )

        assert response.status_code == 200
        request = fake_upstream.calls_to(
            f"/food-orders/{event.order_id}/verify"
        )[0]
        assert request.url.host == "getir.test"
        assert request.headers["token"] == "cached-token-1"
        assert fake_upstream.login_calls == 1

    @pytest.mark.asyncio
    async def test_cancel_flow(self, running_app, fake_upstream):
        """Test fetching cancel options and cancelling with a reason."""
        await wait_for_token()
        fake_upstream.respond(
            "GET",
            "/food-orders/123/cancel-options",
            json_body=[{"id": "5", "message": "Out of stock"}],
        )

        options = await running_app.get("/api/getir/internal/orders/123/cancel-options")
        reason_id = options.json()[0]["id"]
        cancel = await running_app.post(
            "/api/getir/internal/orders/123/cancel",
            json={"cancelReasonId": reason_id, "cancelNote": "Out of stock"},
        )

        assert options.status_code == 200
        assert cancel.status_code == 200
        assert len(fake_upstream.calls_to("/food-orders/123/cancel")) == 1

    @pytest.mark.asyncio
    async def test_token_endpoint_reuses_background_token(self, running_app, fake_upstream):
        """Test the token endpoint serves the token fetched at startup."""
        await wait_for_token()

        response = await running_app.get("/api/getir/token")

        assert response.status_code == 200
        assert response.json()["token"] == "cached-token-1"
        assert fake_upstream.login_calls == 1

    @pytest.mark.asyncio
    async def test_yemeksepeti_accept_through_shared_client(
        self, running_app, fake_upstream, mock_yemeksepeti_order_webhook
    ):
        """Test Yemeksepeti calls go to the configured middleware URL."""
        response = await running_app.post(
            "/order/accept", json=mock_yemeksepeti_order_webhook
        )

        assert response.status_code == 200
        request = fake_upstream.calls_to("/v2/order/accept")[0]
        assert request.url.host == "yemeksepeti.test"
