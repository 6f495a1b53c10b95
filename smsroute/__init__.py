"""
smsroute — Outbound SMS routing with ordered sender failover.

Sub-modules:
    senders/     — Delivery backends (contract + built-in log sender)
    manager      — Named sender registry and single-sender dispatch
    factory      — Routing rules, candidate selection, failover send
    country      — Optional region lookup for destination numbers
    bootstrap    — Settings-driven wiring of manager + factory
    core/        — Config, logging, errors, middleware
"""

from smsroute.core.errors import (
    AllSendersFailedError,
    NoAvailableSenderError,
    SenderRaisedError,
    SenderReportedFailureError,
    SmsDeliveryError,
    SmsError,
    UnregisteredSenderError,
)
from smsroute.factory import SmsFactory
from smsroute.manager import SmsManager
from smsroute.models import LOG_SENDER_NAME, RoutingRules
from smsroute.senders.base import SmsSender

__all__ = [
    "AllSendersFailedError",
    "LOG_SENDER_NAME",
    "NoAvailableSenderError",
    "RoutingRules",
    "SenderRaisedError",
    "SenderReportedFailureError",
    "SmsDeliveryError",
    "SmsError",
    "SmsFactory",
    "SmsManager",
    "SmsSender",
    "UnregisteredSenderError",
]

__version__ = "1.0.0"
