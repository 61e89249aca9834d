"""Upstream call result shared by every partner proxy"""

from typing import Any

from pydantic import BaseModel


class UpstreamResult(BaseModel):
    """Upstream status and (parsed-or-wrapped) body, relayed unchanged"""

    status_code: int
    body: Any = None
