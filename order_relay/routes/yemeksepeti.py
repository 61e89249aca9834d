"""
Yemeksepeti Proxy Endpoints

Login and order accept calls relayed to the Yemeksepeti integration middleware.
"""

from fastapi import APIRouter, Depends, Request

from order_relay.services.yemeksepeti_proxy import (
    YemeksepetiProxy,
    get_yemeksepeti_proxy,
)
from order_relay.utils.relay import to_response
from order_relay.utils.request import read_json_body

router = APIRouter(tags=["yemeksepeti"])


@router.post("/yemeksepeti/login")
async def yemeksepeti_login(
    request: Request,
    proxy: YemeksepetiProxy = Depends(get_yemeksepeti_proxy),
):
    payload = await read_json_body(request) or {}
    if not isinstance(payload, dict):
        payload = {}
    result = await proxy.login(payload.get("username"), payload.get("password"))
    return to_response(result)


@router.post("/order/accept")
async def yemeksepeti_order_accept(
    request: Request,
    proxy: YemeksepetiProxy = Depends(get_yemeksepeti_proxy),
):
    """
    Accept a Yemeksepeti order.

    The bearer token comes from the Authorization header, or from a
    token/access_token/bearerToken field in the body.
    """
    payload = await read_json_body(request)
    result = await proxy.accept_order(
        payload, authorization_header=request.headers.get("Authorization")
    )
    return to_response(result)
