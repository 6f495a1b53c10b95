"""
log_sender.py — Sender that writes the message to the application log.

Registered under the reserved name "log". Used in development, and as
the last-resort candidate appended to every routed send, so an outage of
all carrier senders still leaves an audit trail of the message.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from smsroute.core.errors import SenderRaisedError
from smsroute.models import LOG_SENDER_NAME
from smsroute.senders.base import SmsSender

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class LogSender(SmsSender):
    """
    Log the message at INFO and report success.

    Parameters
    ----------
    logger : logging.Logger | None
        Destination logger. Defaults to this module's logger.
    config : mapping | None
        Accepted for parity with configured senders; `level` overrides
        the log level (name or int).
    """

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        config: Optional[Mapping[str, Any]] = None,
    ):
        self.logger = logger or logging.getLogger(__name__)
        self.config = dict(config or {})

    def _level(self, config: Mapping[str, Any]) -> int:
        level = config.get("level", self.config.get("level", logging.INFO))
        if isinstance(level, str):
            return _LEVELS.get(level.upper(), logging.INFO)
        return int(level)

    def send(
        self,
        to: str,
        message: str,
        config: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        config = dict(config or {})
        try:
            self.logger.log(
                self._level(config),
                "[SMS] %s",
                message,
                extra={"to": to, "sms_config": config},
            )
        except Exception as exc:
            raise SenderRaisedError(
                f"Logging SMS failed: {exc}",
                sender=LOG_SENDER_NAME,
                cause=exc,
            ) from exc
        return True
