"""
manager.py — Central registry and dispatcher for SMS senders.

Responsibilities:
    • Register / unregister senders under unique, case-sensitive names
    • Merge each sender's stored config with call-time options
      (call-time values win on key collision)
    • Translate every sender failure into an SmsDeliveryError
    • Resolve a default sender for manual sends

The manager does not route. Picking which sender to use for a number is
the job of smsroute.factory.SmsFactory, which calls send() once per
candidate.

═══════════════════════════════════════════════════════════════════════════
DISPATCH OUTCOMES
═══════════════════════════════════════════════════════════════════════════

    Sender behaviour              Result of SmsManager.send()
    ────────────────────────      ──────────────────────────────────
    name not registered           UnregisteredSenderError
    returns True                  True
    returns anything else         SenderReportedFailureError
    raises SmsDeliveryError       re-raised unchanged
    raises any other Exception    SenderRaisedError (cause chained),
      (other SmsError kinds too)

═══════════════════════════════════════════════════════════════════════════
THREADING
═══════════════════════════════════════════════════════════════════════════

The sender table is shared process-wide. Registration is rare (startup),
dispatch is frequent and may run from several threads. The table is an
insertion-ordered dict guarded by an RLock; send() only holds the lock
long enough to look up the registration, so a slow sender never blocks
other dispatches or registrations.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Mapping, Optional

from smsroute.core.errors import (
    SenderRaisedError,
    SenderReportedFailureError,
    SmsDeliveryError,
    UnregisteredSenderError,
)
from smsroute.models import SenderRegistration
from smsroute.senders.base import SmsSender

logger = logging.getLogger(__name__)


class SmsManager:
    """Registry of named SMS senders."""

    def __init__(self, default_sender: Optional[str] = None):
        # Insertion order is significant: default_sender_name() falls back
        # to the first registered sender.
        self._registrations: Dict[str, SenderRegistration] = {}
        self._lock = threading.RLock()
        self.default_sender = default_sender

    # ── Registration ──

    def register(
        self,
        name: str,
        sender: SmsSender,
        config: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Register a sender under `name`. Re-registering a name replaces it."""
        if not isinstance(name, str) or not name:
            raise ValueError("Sender name must be a non-empty string")
        if not isinstance(sender, SmsSender):
            raise TypeError(
                f"Sender '{name}' must implement SmsSender, got {type(sender).__name__}"
            )

        registration = SenderRegistration(name=name, sender=sender, config=config or {})
        with self._lock:
            replaced = name in self._registrations
            self._registrations[name] = registration

        logger.debug(
            "%s SMS sender '%s' (%s)",
            "Replaced" if replaced else "Registered",
            name, type(sender).__name__,
        )

    def unregister(self, name: str) -> None:
        """Remove a sender. Unknown names are ignored."""
        with self._lock:
            removed = self._registrations.pop(name, None)
        if removed is not None:
            logger.debug("Unregistered SMS sender '%s'", name)

    def has(self, name: str) -> bool:
        with self._lock:
            return name in self._registrations

    def all_names(self) -> List[str]:
        """Registered names in insertion order."""
        with self._lock:
            return list(self._registrations)

    def all(self) -> Dict[str, SmsSender]:
        """Registered senders by name, in insertion order."""
        with self._lock:
            return {name: reg.sender for name, reg in self._registrations.items()}

    def registration(self, name: str) -> Optional[SenderRegistration]:
        with self._lock:
            return self._registrations.get(name)

    def __len__(self) -> int:
        with self._lock:
            return len(self._registrations)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has(name)

    # ── Dispatch ──

    def send(
        self,
        name: str,
        to: str,
        message: str,
        config: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        """
        Send an SMS via one specific registered sender.

        Parameters
        ----------
        name : str
            Registered sender name.
        to : str
            Destination number.
        message : str
            Message body.
        config : mapping | None
            Call-time options, merged over the sender's stored config.

        Returns
        -------
        bool
            Always True; every failure is raised.

        Raises
        ------
        SmsDeliveryError
            UnregisteredSenderError, SenderReportedFailureError or
            SenderRaisedError. An SmsDeliveryError raised by the sender
            itself passes through unchanged.
        """
        registration = self.registration(name)
        if registration is None:
            raise UnregisteredSenderError(name)

        effective = registration.merged_config(config)

        try:
            result = registration.sender.send(to, message, effective)
        except SmsDeliveryError:
            raise
        except Exception as exc:
            raise SenderRaisedError(
                f"SMS sending failed: {exc}",
                sender=name,
                cause=exc,
            ) from exc

        if result is not True:
            raise SenderReportedFailureError(name)

        return True

    # The routing layer calls this "dispatch"
    dispatch = send

    # ── Defaults ──

    def default_sender_name(self, configured: Optional[str] = None) -> Optional[str]:
        """
        Resolve the sender to use for a manual send.

        The configured default (argument, else the manager's
        `default_sender`) wins if it is registered. Otherwise the first
        registered sender is used; None if nothing is registered.
        """
        default = configured if configured is not None else self.default_sender
        with self._lock:
            if isinstance(default, str) and default and default in self._registrations:
                return default
            return next(iter(self._registrations), None)
