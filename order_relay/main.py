"""
FastAPI Relay Application

Main application entry point for the marketplace order relay.
Provides webhook ingestion, Getir and Yemeksepeti proxy endpoints, and
Getir token lifecycle management.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from order_relay.auth.token_manager import close_token_manager, get_token_manager
from order_relay.config import settings
from order_relay.routes import events, getir, health, webhooks, yemeksepeti
from order_relay.services.getir_proxy import reset_getir_proxy
from order_relay.services.http_client import close_http_client
from order_relay.services.yemeksepeti_proxy import reset_yemeksepeti_proxy
from order_relay.utils.exceptions import RelayException, UpstreamUnavailableException
from order_relay.utils.logging_config import (
    get_logger,
    set_correlation_id,
    setup_logging,
)

# Setup logging
setup_logging(log_level=settings.log_level)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.
    Handles startup and shutdown events.
    """
    logger.info(
        f"Starting {settings.app_name} v{settings.app_version}",
        extra={"environment": settings.environment},
    )

    missing = settings.missing_getir_secrets()
    if missing:
        logger.error(
            "Getir secrets missing; cached-token routes will answer 503",
            extra={"missing": missing},
        )

    if settings.getir_background_refresh and not missing:
        get_token_manager().start_background_refresh()

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down application...")

    await close_token_manager()
    reset_getir_proxy()
    reset_yemeksepeti_proxy()
    await close_http_client()

    logger.info("Application shutdown complete")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Marketplace order webhook relay and Getir order-action proxy",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)


@app.middleware("http")
async def correlation_id_middleware(request: Request, call_next):
    """Add correlation ID to all requests for tracing"""
    correlation_id = request.headers.get("X-Correlation-ID")
    if not correlation_id:
        correlation_id = set_correlation_id()
    else:
        set_correlation_id(correlation_id)

    response = await call_next(request)
    response.headers["X-Correlation-ID"] = correlation_id

    return response


@app.exception_handler(RelayException)
async def relay_exception_handler(request: Request, exc: RelayException):
    """Render relay exceptions with their own status code"""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"Request failed: {exc.message}",
        extra={"error": exc.to_dict(), "path": request.url.path},
        exc_info=isinstance(exc, UpstreamUnavailableException),
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.message,
            "code": exc.error_code,
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions"""
    logger.error(
        f"Unexpected exception: {exc}",
        extra={"error": str(exc), "error_type": type(exc).__name__},
        exc_info=exc,
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        },
    )


app.include_router(webhooks.router)
app.include_router(events.router)
app.include_router(getir.router)
app.include_router(yemeksepeti.router)
app.include_router(health.router)


@app.get("/", response_class=PlainTextResponse)
async def root():
    """Liveness text kept for uptime monitors"""
    return "Webhook relay is running"


def run() -> None:
    import uvicorn

    uvicorn.run(
        "order_relay.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
