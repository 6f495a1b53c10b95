"""
factory.py — Routing and selection layer that picks the best sender.

This is the central coordinator that:
    1. Resolves the destination's region (optional lookup)
    2. Collects candidates from by-country, by-prefix and default rules
    3. Keeps only registered senders, de-duplicated in priority order
    4. Appends the reserved "log" sender as the last resort
    5. Tries candidates one at a time until one succeeds

═══════════════════════════════════════════════════════════════════════════
CANDIDATE SELECTION
═══════════════════════════════════════════════════════════════════════════

    phone "+14155550100"
      │
      ├── region lookup → "US"  ──► by_country["US"]            (highest)
      ├── digits "14155550100"  ──► by_prefix[longest match]
      ├── routing default       ──► "twilio"
      │
      ├── filter: registered only, first occurrence wins
      └── append "log" if registered and not yet present          (lowest)

Longest prefix wins: with prefixes "1" and "14", "+14155550100" uses the
"14" entry. Prefixes of equal length are tested in lexical order.

A failing region lookup (no lookup configured, unparsable number, lookup
raised) contributes no candidates and never aborts selection.

═══════════════════════════════════════════════════════════════════════════
FAILOVER SEND
═══════════════════════════════════════════════════════════════════════════

    SELECTING ──(no candidates)──► NoAvailableSenderError
        │
        ▼
    TRYING(i) ──(success)──► True            later candidates never run
        │
        ├──(SmsDeliveryError)──► record "name: reason", TRYING(i+1)
        ├──(any other error)───► propagates immediately
        │
        ▼
    EXHAUSTED ──► AllSendersFailedError("All SMS senders failed: a: …; b: …")

SmsManager.send wraps whatever a sender raises in an SmsDeliveryError, so
"any other error" only covers failures outside the sender call itself.

Candidates are tried strictly in sequence. There is no retry, backoff or
timeout here; a sender that blocks, blocks the send.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, List, Mapping, Optional, Union

from smsroute.core.config import settings
from smsroute.core.errors import (
    AllSendersFailedError,
    NoAvailableSenderError,
    SmsDeliveryError,
)
from smsroute.manager import SmsManager
from smsroute.models import LOG_SENDER_NAME, RoutingRules, SendAttempt

logger = logging.getLogger(__name__)

RegionLookup = Callable[[str], Optional[str]]


class SmsFactory:
    """
    Choose senders for a phone number and send with ordered fallback.

    Parameters
    ----------
    manager : SmsManager
        Registry of senders. Read, never modified.
    region_lookup : callable | None
        phone → ISO alpha-2 region. Enables `by_country` rules.
    routing : RoutingRules | mapping | None
        Routing rules, raw or normalized. None reads `settings.SMS_ROUTING`.
    """

    def __init__(
        self,
        manager: SmsManager,
        region_lookup: Optional[RegionLookup] = None,
        routing: Union[RoutingRules, Mapping[str, Any], None] = None,
    ):
        self._manager = manager
        self._region_lookup = region_lookup

        if routing is None:
            routing = settings.SMS_ROUTING
        if not isinstance(routing, RoutingRules):
            routing = RoutingRules.from_config(routing)
        self._routing = routing

    def get_manager(self) -> SmsManager:
        return self._manager

    @property
    def routing(self) -> RoutingRules:
        return self._routing

    # ── Selection ──

    def choose_sender_name(self, phone: str) -> Optional[str]:
        """Top-priority sender name for a phone number, or None."""
        names = self.choose_sender_names(phone)
        return names[0] if names else None

    def choose_sender_names(self, phone: str) -> List[str]:
        """
        Build the prioritized list of sender names for a phone number.

        Only registered senders are returned, each once, in priority
        order, with "log" appended last when it is registered.
        """
        candidates: List[str] = []
        candidates.extend(self._country_candidates(phone))
        candidates.extend(self._prefix_candidates(phone))
        if self._routing.default:
            candidates.append(self._routing.default)

        ordered = self._filter_registered(candidates)
        return self._with_log_fallback(ordered)

    candidate_names = choose_sender_names

    def _country_candidates(self, phone: str) -> Iterable[str]:
        if self._region_lookup is None or not self._routing.by_country:
            return ()
        try:
            region = self._region_lookup(phone)
        except Exception as exc:
            logger.debug("Region lookup failed for %s: %s", phone, exc)
            return ()
        if not region:
            return ()
        return self._routing.by_country.get(str(region).upper(), ())

    def _prefix_candidates(self, phone: str) -> Iterable[str]:
        digits = phone.lstrip("+")
        for prefix in self._routing.prefix_order:
            if digits.startswith(prefix):
                return self._routing.by_prefix[prefix]
        return ()

    def _filter_registered(self, names: Iterable[str]) -> List[str]:
        seen = set()
        result: List[str] = []
        for name in names:
            if not name or name in seen or not self._manager.has(name):
                continue
            seen.add(name)
            result.append(name)
        return result

    def _with_log_fallback(self, names: List[str]) -> List[str]:
        if LOG_SENDER_NAME not in names and self._manager.has(LOG_SENDER_NAME):
            names.append(LOG_SENDER_NAME)
        return names

    # ── Sending ──

    def send(
        self,
        phone: str,
        message: str,
        config: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        """
        Try the prioritized senders in order until one succeeds.

        Returns
        -------
        bool
            True once a sender succeeds.

        Raises
        ------
        NoAvailableSenderError
            No registered sender is a candidate for the number.
        AllSendersFailedError
            Every candidate failed; the message lists each one.
        """
        names = self.choose_sender_names(phone)
        if not names:
            logger.warning("No SMS sender available for %s", phone, extra={"phone": phone})
            raise NoAvailableSenderError(phone)

        attempts: List[SendAttempt] = []
        for name in names:
            try:
                self._manager.send(name, phone, message, config)
            except SmsDeliveryError as exc:
                attempt = SendAttempt(sender=name, reason=exc.message, error_code=exc.error_code)
                attempts.append(attempt)
                logger.warning(
                    "SMS via '%s' to %s failed (%d/%d): %s",
                    name, phone, len(attempts), len(names), exc.message,
                    extra={"sender": name, "phone": phone, "attempt": len(attempts)},
                )
                continue

            logger.info(
                "SMS to %s sent via '%s'", phone, name,
                extra={"sender": name, "phone": phone, "attempt": len(attempts) + 1},
            )
            return True

        logger.error(
            "All %d SMS senders failed for %s", len(attempts), phone,
            extra={"phone": phone, "candidates": names},
        )
        raise AllSendersFailedError(phone, attempts)
