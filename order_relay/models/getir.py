"""
Getir Partner Models

Pydantic models for the Getir token lifecycle and the order-action dispatch
table consumed by the action proxy.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, SecretStr


class CredentialSource(str, Enum):
    """Where the token for an outbound call comes from"""

    CACHED = "cached"
    CLIENT_SUPPLIED = "clientSupplied"


class GetirOperation(str, Enum):
    """Order-management operations proxied to Getir"""

    VERIFY = "verify"
    VERIFY_SCHEDULED = "verifyScheduled"
    PREPARE = "prepare"
    DELIVER = "deliver"
    CANCEL = "cancel"
    CANCEL_OPTIONS = "cancelOptions"
    ACTIVE_ORDERS = "activeOrders"
    RESTAURANT_OPEN = "restaurantOpen"
    RESTAURANT_CLOSE = "restaurantClose"
    MENU = "menu"


class Credential(BaseModel):
    """A bearer token together with its validity window"""

    model_config = ConfigDict(frozen=True)

    token: str = Field(repr=False, description="Opaque Getir token")
    acquired_at: datetime
    expires_at: datetime
    restaurant_id: Optional[str] = None

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class PartnerSecrets(BaseModel):
    """Static secrets exchanged for a Getir token"""

    model_config = ConfigDict(frozen=True)

    app_secret_key: SecretStr
    restaurant_secret_key: SecretStr

    def login_body(self) -> Dict[str, str]:
        """Request body for the Getir login endpoint"""
        return {
            "appSecretKey": self.app_secret_key.get_secret_value(),
            "restaurantSecretKey": self.restaurant_secret_key.get_secret_value(),
        }


class OperationSpec(BaseModel):
    """
    One row of the dispatch table.

    The inbound path is relative to the ``/api/getir`` prefix and is shared
    by the client-token routes and the ``/internal`` cached-token routes.
    """

    model_config = ConfigDict(frozen=True)

    method: str
    path_template: str
    inbound_path: str
    sends_body: bool = True
    required_fields: Tuple[str, ...] = ()
    modes: FrozenSet[CredentialSource] = frozenset(
        {CredentialSource.CACHED, CredentialSource.CLIENT_SUPPLIED}
    )

    @property
    def needs_order_id(self) -> bool:
        return "{order_id}" in self.path_template

    def path(self, order_id: Optional[str] = None) -> str:
        if self.needs_order_id:
            return self.path_template.format(order_id=order_id)
        return self.path_template


_CLIENT_ONLY = frozenset({CredentialSource.CLIENT_SUPPLIED})

OPERATIONS: Dict[GetirOperation, OperationSpec] = {
    GetirOperation.VERIFY: OperationSpec(
        method="POST",
        path_template="/food-orders/{order_id}/verify",
        inbound_path="/orders/{order_id}/verify",
    ),
    GetirOperation.VERIFY_SCHEDULED: OperationSpec(
        method="POST",
        path_template="/food-orders/{order_id}/verify-scheduled",
        inbound_path="/orders/{order_id}/verifyScheduled",
    ),
    GetirOperation.PREPARE: OperationSpec(
        method="POST",
        path_template="/food-orders/{order_id}/prepare",
        inbound_path="/orders/{order_id}/prepare",
    ),
    GetirOperation.DELIVER: OperationSpec(
        method="POST",
        path_template="/food-orders/{order_id}/deliver",
        inbound_path="/orders/{order_id}/deliver",
    ),
    GetirOperation.CANCEL: OperationSpec(
        method="POST",
        path_template="/food-orders/{order_id}/cancel",
        inbound_path="/orders/{order_id}/cancel",
        required_fields=("cancelReasonId",),
    ),
    GetirOperation.CANCEL_OPTIONS: OperationSpec(
        method="GET",
        path_template="/food-orders/{order_id}/cancel-options",
        inbound_path="/orders/{order_id}/cancel-options",
        sends_body=False,
    ),
    GetirOperation.ACTIVE_ORDERS: OperationSpec(
        method="POST",
        path_template="/food-orders/active",
        inbound_path="/orders/active",
        sends_body=False,
    ),
    GetirOperation.RESTAURANT_OPEN: OperationSpec(
        method="PUT",
        path_template="/restaurants/status/open",
        inbound_path="/restaurants/status/open",
        sends_body=False,
        modes=_CLIENT_ONLY,
    ),
    GetirOperation.RESTAURANT_CLOSE: OperationSpec(
        method="PUT",
        path_template="/restaurants/status/close",
        inbound_path="/restaurants/status/close",
        modes=_CLIENT_ONLY,
    ),
    GetirOperation.MENU: OperationSpec(
        method="GET",
        path_template="/restaurants/menu",
        inbound_path="/restaurants/menu",
        sends_body=False,
        modes=_CLIENT_ONLY,
    ),
}

LOGIN_PATH = "/auth/login"
TOKEN_HEADER = "token"
