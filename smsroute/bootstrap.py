"""
bootstrap.py — Build the sender manager and routing factory from settings.

Sender definitions come from `settings.SMS_SENDERS`:

    {
        "twilio": {
            "class":  "myapp.sms.twilio:TwilioSender",   # or "myapp.sms.twilio.TwilioSender"
            "config": {"account_sid": "...", "from": "+15550001"},
        },
        "log": {"class": "smsroute.senders.log_sender:LogSender"},
    }

Each definition is instantiated and registered with its `config` as the
sender's stored config. A definition that cannot be used does not stop
startup; it is reported as a SenderConfigIssue (and logged) so the caller
can decide whether a partial sender set is acceptable.

Usage:
    from smsroute.bootstrap import get_factory

    get_factory().send("+14155550100", "Your code is 123456")
"""

from __future__ import annotations

import importlib
import inspect
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, List, Mapping, Optional, Tuple

from smsroute.core.config import Settings, get_settings
from smsroute.country import region_for_number
from smsroute.factory import SmsFactory
from smsroute.manager import SmsManager
from smsroute.models import LOG_SENDER_NAME
from smsroute.senders.base import SmsSender
from smsroute.senders.log_sender import LogSender

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SenderConfigIssue:
    """A sender definition that was skipped, and why."""
    name: str
    reason: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "reason": self.reason}


class SenderConfigError(ValueError):
    """Raised internally for a single malformed sender definition."""


# ═══════════════════════════════════════════════════════════════════════════
# Sender construction
# ═══════════════════════════════════════════════════════════════════════════

def import_string(path: str) -> Any:
    """Import "pkg.module:attr" or "pkg.module.attr"."""
    if ":" in path:
        module_path, _, attr = path.partition(":")
    else:
        module_path, _, attr = path.rpartition(".")
    if not module_path or not attr:
        raise SenderConfigError(f"'{path}' is not an import path")

    try:
        module = importlib.import_module(module_path)
    except Exception as exc:
        # Relative paths raise TypeError; module bodies can raise anything
        raise SenderConfigError(f"cannot import '{module_path}': {exc}") from exc

    try:
        return getattr(module, attr)
    except AttributeError as exc:
        raise SenderConfigError(f"'{module_path}' has no attribute '{attr}'") from exc


def _accepts_config(factory: Any) -> bool:
    try:
        params = inspect.signature(factory).parameters
    except (TypeError, ValueError):
        return False
    return "config" in params or any(
        p.kind is inspect.Parameter.VAR_KEYWORD for p in params.values()
    )


def _instantiate(factory: Any, config: Optional[Mapping[str, Any]]) -> Any:
    if config is not None and _accepts_config(factory):
        return factory(config=dict(config))

    instance = factory()
    if config is not None:
        # Senders that take config after construction
        for setter in ("set_config", "set_options"):
            if callable(getattr(instance, setter, None)):
                getattr(instance, setter)(dict(config))
                break
    return instance


def build_sender(definition: Any) -> Tuple[SmsSender, Dict[str, Any]]:
    """
    Build one sender from its definition.

    Returns the sender and its stored config.

    Raises
    ------
    SenderConfigError
        For any problem with the definition.
    """
    if not isinstance(definition, Mapping):
        raise SenderConfigError(
            f"definition must be a mapping, got {type(definition).__name__}"
        )

    target = definition.get("class")
    if isinstance(target, str):
        if not target.strip():
            raise SenderConfigError("'class' is empty")
        target = import_string(target.strip())
    elif target is None:
        raise SenderConfigError("'class' is missing")
    if not callable(target):
        raise SenderConfigError(f"'class' is not callable: {target!r}")

    config = definition.get("config")
    if config is not None and not isinstance(config, Mapping):
        raise SenderConfigError(
            f"'config' must be a mapping, got {type(config).__name__}"
        )

    try:
        instance = _instantiate(target, config)
    except Exception as exc:
        raise SenderConfigError(
            f"construction failed: {type(exc).__name__}: {exc}"
        ) from exc

    if not isinstance(instance, SmsSender):
        raise SenderConfigError(
            f"{type(instance).__name__} does not implement SmsSender"
        )

    return instance, dict(config or {})


def build_manager(
    senders_config: Optional[Mapping[str, Any]],
    *,
    default_sender: Optional[str] = None,
    register_log: bool = True,
) -> Tuple[SmsManager, List[SenderConfigIssue]]:
    """
    Register every usable sender definition.

    Parameters
    ----------
    senders_config : mapping | None
        name → {"class": ..., "config": {...}}
    default_sender : str | None
        Default for manual sends (SmsManager.default_sender_name).
    register_log : bool
        Register a LogSender as "log" when the config provides none.

    Returns
    -------
    (SmsManager, list of SenderConfigIssue)
    """
    manager = SmsManager(default_sender=default_sender)
    issues: List[SenderConfigIssue] = []

    for raw_name, definition in (senders_config or {}).items():
        name = str(raw_name).strip()
        if not name:
            issues.append(SenderConfigIssue(str(raw_name), "sender name is blank"))
            continue
        try:
            sender, config = build_sender(definition)
        except SenderConfigError as exc:
            issues.append(SenderConfigIssue(name, str(exc)))
            continue
        manager.register(name, sender, config)

    if register_log and not manager.has(LOG_SENDER_NAME):
        manager.register(LOG_SENDER_NAME, LogSender())

    for issue in issues:
        logger.warning("Skipped SMS sender '%s': %s", issue.name, issue.reason)

    logger.info(
        "SMS senders registered: %s (%d skipped)",
        manager.all_names(), len(issues),
    )
    return manager, issues


def build_factory(
    settings: Optional[Settings] = None,
) -> Tuple[SmsFactory, List[SenderConfigIssue]]:
    """Wire manager, region lookup and routing rules from settings."""
    settings = settings or get_settings()

    manager, issues = build_manager(
        settings.SMS_SENDERS,
        default_sender=settings.SMS_DEFAULT_SENDER,
        register_log=settings.SMS_REGISTER_LOG_SENDER,
    )
    lookup = region_for_number if settings.SMS_COUNTRY_LOOKUP else None
    factory = SmsFactory(manager, region_lookup=lookup, routing=settings.SMS_ROUTING)
    return factory, issues


@lru_cache()
def _default_factory() -> Tuple[SmsFactory, Tuple[SenderConfigIssue, ...]]:
    factory, issues = build_factory()
    return factory, tuple(issues)


def get_factory() -> SmsFactory:
    """Process-wide factory built from the application settings."""
    return _default_factory()[0]


def get_sender_config_issues() -> List[SenderConfigIssue]:
    """Sender definitions skipped while building the process-wide factory."""
    return list(_default_factory()[1])


def reset_factory() -> None:
    """Drop the cached factory; the next get_factory() rebuilds it."""
    _default_factory.cache_clear()
