"""
FastAPI route: SMS routing and sending.

Provides endpoints to:
    GET  /api/v1/sms/route     — preview sender candidates for a number
    POST /api/v1/sms/send      — send with failover (or via a named sender)
    GET  /api/v1/sms/senders   — list registered senders
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from smsroute.bootstrap import get_factory
from smsroute.core.errors import NoAvailableSenderError
from smsroute.factory import SmsFactory

router = APIRouter(prefix="/api/v1/sms", tags=["sms"])

# Passing this as `sender` sends through the manager's default sender
DEFAULT_SENDER_ALIAS = "default"


# ---------------------------------------------------------------------------
# Request / Response Schemas
# ---------------------------------------------------------------------------

class SendRequest(BaseModel):
    """Send one SMS."""
    phone: str = Field(..., min_length=1, examples=["+14155550100"])
    message: str = Field(..., min_length=1, examples=["Your code is 123456"])
    config: Dict[str, Any] = Field(
        default_factory=dict,
        description="Call-time sender options; override stored sender config",
    )
    sender: Optional[str] = Field(
        None,
        examples=["twilio"],
        description=(
            "Bypass routing and send via this sender only. "
            "'default' uses the configured default sender."
        ),
    )


class SendResponse(BaseModel):
    sent: bool
    phone: str
    sender: Optional[str] = None


class RouteResponse(BaseModel):
    phone: str
    senders: List[str]
    selected: Optional[str]


class SendersResponse(BaseModel):
    senders: List[str]
    default_sender: Optional[str]


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get(
    "/route",
    response_model=RouteResponse,
    summary="Preview sender candidates for a phone number",
)
async def route_preview(
    phone: str = Query(..., min_length=1, examples=["+14155550100"]),
    factory: SmsFactory = Depends(get_factory),
):
    names = factory.choose_sender_names(phone)
    return RouteResponse(
        phone=phone,
        senders=names,
        selected=names[0] if names else None,
    )


@router.post(
    "/send",
    response_model=SendResponse,
    summary="Send an SMS",
    description=(
        "Without `sender`, candidates are tried in routing order until one "
        "succeeds. With `sender`, only that sender is used."
    ),
)
def send_sms(
    request: SendRequest,
    factory: SmsFactory = Depends(get_factory),
):
    # Plain def: senders block, so FastAPI runs this in its threadpool
    if request.sender is None:
        factory.send(request.phone, request.message, request.config)
        return SendResponse(sent=True, phone=request.phone)

    manager = factory.get_manager()
    name = request.sender
    if name == DEFAULT_SENDER_ALIAS:
        name = manager.default_sender_name()
        if name is None:
            raise NoAvailableSenderError(request.phone)

    manager.send(name, request.phone, request.message, request.config)
    return SendResponse(sent=True, phone=request.phone, sender=name)


@router.get(
    "/senders",
    response_model=SendersResponse,
    summary="List registered senders",
)
async def list_senders(factory: SmsFactory = Depends(get_factory)):
    manager = factory.get_manager()
    return SendersResponse(
        senders=manager.all_names(),
        default_sender=manager.default_sender_name(),
    )
