"""
Health Check Endpoints

Provides health status and the Getir token cache state.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from order_relay.auth.token_manager import GetirTokenManager, get_token_manager
from order_relay.config import settings
from order_relay.services.order_events import OrderEventBus, get_order_event_bus

router = APIRouter(tags=["health"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health")
async def health_check():
    """
    Basic health check endpoint.
    Returns 200 if application is running.
    """
    return JSONResponse(
        status_code=200,
        content={
            "status": "healthy",
            "timestamp": _now(),
            "version": settings.app_version,
        },
    )


@router.get("/health/ready")
async def readiness_check(
    token_manager: GetirTokenManager = Depends(get_token_manager),
    bus: OrderEventBus = Depends(get_order_event_bus),
):
    """
    Readiness check endpoint.

    Ready when a non-expired Getir token is cached. Does not itself trigger a
    token refresh.
    """
    token_status = token_manager.status()
    secrets_configured = token_manager.secrets is not None
    ready = token_status["valid"] and secrets_configured

    return JSONResponse(
        status_code=200 if ready else 503,
        content={
            "status": "ready" if ready else "not_ready",
            "timestamp": _now(),
            "dependencies": {
                "getir_token": {
                    "status": "healthy" if token_status["valid"] else "unhealthy",
                    **token_status,
                    "secrets_configured": secrets_configured,
                },
                "order_events": {
                    "status": "healthy",
                    "subscribers": bus.subscriber_count,
                },
            },
        },
    )


@router.get("/health/live")
async def liveness_check():
    """
    Liveness check endpoint.
    Returns 200 if application is alive.
    """
    return JSONResponse(
        status_code=200,
        content={
            "status": "alive",
            "timestamp": _now(),
        },
    )
