"""
Getir Proxy Endpoints

Order actions are registered from the OPERATIONS dispatch table twice:
under ``/api/getir`` the caller supplies its own ``token`` header, under
``/api/getir/internal`` the server-side cached token is used.
"""

from typing import Callable

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response

from order_relay.models.getir import (
    OPERATIONS,
    TOKEN_HEADER,
    CredentialSource,
    GetirOperation,
)
from order_relay.services.getir_proxy import GetirActionProxy, get_getir_proxy
from order_relay.utils.relay import to_response
from order_relay.utils.request import read_json_body

router = APIRouter(prefix="/api/getir", tags=["getir"])

INTERNAL_PREFIX = "/internal"


def _make_endpoint(
    operation: GetirOperation, credential_source: CredentialSource
) -> Callable:
    async def endpoint(
        request: Request,
        proxy: GetirActionProxy = Depends(get_getir_proxy),
    ) -> Response:
        payload = await read_json_body(request)
        result = await proxy.invoke(
            operation,
            order_id=request.path_params.get("order_id"),
            payload=payload,
            credential_source=credential_source,
            client_token=request.headers.get(TOKEN_HEADER),
        )
        return to_response(result)

    endpoint.__name__ = f"getir_{operation.name.lower()}_{credential_source.name.lower()}"
    return endpoint


def _register_operations() -> None:
    for operation, spec in OPERATIONS.items():
        for credential_source in (CredentialSource.CLIENT_SUPPLIED, CredentialSource.CACHED):
            if credential_source not in spec.modes:
                continue

            path = spec.inbound_path
            if credential_source == CredentialSource.CACHED:
                path = f"{INTERNAL_PREFIX}{path}"

            endpoint = _make_endpoint(operation, credential_source)
            router.add_api_route(
                path,
                endpoint,
                methods=[spec.method],
                name=endpoint.__name__,
            )


@router.post("/login")
async def getir_login(
    request: Request,
    proxy: GetirActionProxy = Depends(get_getir_proxy),
):
    """Forward a caller-provided login body to Getir."""
    payload = await read_json_body(request)
    result = await proxy.login(payload)
    return to_response(result)


@router.get("/token")
async def getir_token(proxy: GetirActionProxy = Depends(get_getir_proxy)):
    """
    Server-side Getir token.

    Served from the cache when still valid, otherwise refreshed first.
    """
    return JSONResponse(status_code=200, content=await proxy.current_token())


_register_operations()
