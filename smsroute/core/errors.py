"""
Centralised error handling — exception hierarchy + FastAPI handlers.

Provides:
    • SMS exception classes, split into delivery failures (eligible for
      sender failover) and terminal routing failures
    • Consistent JSON error response format
    • Automatic logging of unhandled errors

Hierarchy:

    SmsError
    ├── SmsDeliveryError              one sender could not deliver
    │   ├── UnregisteredSenderError
    │   ├── SenderReportedFailureError
    │   └── SenderRaisedError
    ├── NoAvailableSenderError        routing produced no candidates
    └── AllSendersFailedError         every candidate failed

Usage:
    from smsroute.core.errors import SenderRaisedError, register_error_handlers

    raise UnregisteredSenderError("twilio")
"""

from __future__ import annotations

import logging
import traceback
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from smsroute.core.config import settings

if TYPE_CHECKING:
    from smsroute.models import SendAttempt

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Exception Hierarchy
# ═══════════════════════════════════════════════════════════════════════════

class SmsError(Exception):
    """Base exception for all SMS routing errors."""

    def __init__(
        self,
        message: str = "SMS sending failed",
        *,
        status_code: int = 500,
        error_code: str = "SMS_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}


class SmsDeliveryError(SmsError):
    """A single sender failed to deliver. The factory fails over on these."""

    def __init__(
        self,
        message: str,
        *,
        sender: Optional[str] = None,
        status_code: int = 502,
        error_code: str = "SMS_DELIVERY_ERROR",
        **details: Any,
    ):
        d = {**details}
        if sender is not None:
            d["sender"] = sender
        super().__init__(
            message=message,
            status_code=status_code,
            error_code=error_code,
            details=d,
        )
        self.sender = sender


class UnregisteredSenderError(SmsDeliveryError):
    """Dispatch requested for a name the manager does not know (404)."""

    def __init__(self, sender: str):
        super().__init__(
            f"SMS sender '{sender}' is not registered.",
            sender=sender,
            status_code=404,
            error_code="UNREGISTERED_SENDER",
        )


class SenderReportedFailureError(SmsDeliveryError):
    """Sender returned a non-True result (502)."""

    def __init__(self, sender: str):
        super().__init__(
            f"SMS sending via '{sender}' reported failure.",
            sender=sender,
            error_code="SENDER_REPORTED_FAILURE",
        )


class SenderRaisedError(SmsDeliveryError):
    """Sender raised while delivering; the original error is the cause (502)."""

    def __init__(self, message: str, *, sender: Optional[str] = None,
                 cause: Optional[BaseException] = None):
        extra: Dict[str, Any] = {}
        if cause is not None:
            extra["cause"] = f"{type(cause).__name__}: {cause}"
        super().__init__(
            message,
            sender=sender,
            error_code="SENDER_RAISED_ERROR",
            **extra,
        )
        self.cause = cause


class NoAvailableSenderError(SmsError):
    """Routing produced no registered candidate for the number (503)."""

    def __init__(self, phone: str):
        super().__init__(
            message="No available SMS sender to handle this phone number.",
            status_code=503,
            error_code="NO_AVAILABLE_SENDER",
            details={"phone": phone},
        )


class AllSendersFailedError(SmsError):
    """Every candidate sender was tried and failed (502)."""

    def __init__(self, phone: str, attempts: Sequence["SendAttempt"]):
        self.attempts: List["SendAttempt"] = list(attempts)
        summary = "; ".join(str(a) for a in self.attempts)
        super().__init__(
            message=f"All SMS senders failed: {summary}",
            status_code=502,
            error_code="ALL_SENDERS_FAILED",
            details={
                "phone": phone,
                "attempts": [a.to_dict() for a in self.attempts],
            },
        )


# ═══════════════════════════════════════════════════════════════════════════
# Error Response Builder
# ═══════════════════════════════════════════════════════════════════════════

def _build_error_response(
    status_code: int,
    error_code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    request: Optional[Request] = None,
) -> JSONResponse:
    """Build a consistent JSON error response."""
    body: Dict[str, Any] = {
        "error": {
            "code": error_code,
            "message": message,
            "status": status_code,
        }
    }

    if details:
        body["error"]["details"] = details

    # Include request path in non-production
    if request and not settings.is_production:
        body["error"]["path"] = str(request.url.path)
        body["error"]["method"] = request.method

    return JSONResponse(status_code=status_code, content=body)


# ═══════════════════════════════════════════════════════════════════════════
# FastAPI Exception Handlers
# ═══════════════════════════════════════════════════════════════════════════

def register_error_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app."""

    @app.exception_handler(SmsError)
    async def handle_sms_error(request: Request, exc: SmsError):
        logger.error(
            "SMS Error [%s]: %s | details=%s",
            exc.error_code, exc.message, exc.details,
        )
        return _build_error_response(
            exc.status_code, exc.error_code, exc.message,
            exc.details, request,
        )

    @app.exception_handler(ValueError)
    async def handle_value_error(request: Request, exc: ValueError):
        logger.warning("ValueError: %s", exc)
        return _build_error_response(
            422, "VALIDATION_ERROR", str(exc), request=request,
        )

    @app.exception_handler(Exception)
    async def handle_unhandled(request: Request, exc: Exception):
        logger.critical(
            "Unhandled exception: %s\n%s",
            exc, traceback.format_exc(),
        )
        message = str(exc) if settings.DEBUG else "Internal server error"
        details = (
            {"traceback": traceback.format_exc().split("\n")}
            if settings.DEBUG else None
        )
        return _build_error_response(
            500, "INTERNAL_ERROR", message, details, request,
        )
