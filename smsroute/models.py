"""
models.py — Shared data structures for SMS routing.

Defines:
    • LOG_SENDER_NAME    — reserved last-resort sender name
    • RoutingRules       — normalized default / by-country / by-prefix rules
    • SenderRegistration — a named sender bound to its stored config
    • SendAttempt        — one failed candidate during failover

═══════════════════════════════════════════════════════════════════════════
ROUTING RULE SHAPE
═══════════════════════════════════════════════════════════════════════════

Raw configuration (as it arrives from settings or a caller):

    {
        "default":    "twilio",
        "by_country": {"us": ["twilio", "vonage"], "EG": "vonage"},
        "by_prefix":  {"+1": ["twilio", "vonage"], "20": ["vonage"]},
    }

After normalization:

    default     "twilio"
    by_country  {"US": ("twilio", "vonage"), "EG": ("vonage",)}
    by_prefix   {"1": ("twilio", "vonage"), "20": ("vonage",)}

Keys are normalized exactly once, when RoutingRules is built. Lookups never re-normalize.
Names are NOT checked against the sender registry at this point; the
registry can change after the rules are built, so unknown names are
filtered per call by the factory.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional, Tuple

if TYPE_CHECKING:
    from smsroute.senders.base import SmsSender

# Always appended as the final candidate when registered, whether or not
# the routing rules mention it.
LOG_SENDER_NAME = "log"


# ═══════════════════════════════════════════════════════════════════════════
# Normalization helpers
# ═══════════════════════════════════════════════════════════════════════════

def _normalize_names(value: Any) -> Tuple[str, ...]:
    """Coerce a scalar or sequence of sender names into a clean tuple."""
    if value is None:
        return ()
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        items: Iterable[Any] = [value]
    else:
        items = value

    names: List[str] = []
    for item in items:
        if item is None:
            continue
        name = item.decode() if isinstance(item, bytes) else str(item)
        name = name.strip()
        if name:
            names.append(name)
    return tuple(names)


def _normalize_table(
    raw: Any,
    key_fn,
) -> Dict[str, Tuple[str, ...]]:
    table: Dict[str, Tuple[str, ...]] = {}
    if not isinstance(raw, Mapping):
        return table
    for key, value in raw.items():
        norm_key = key_fn(str(key).strip())
        names = _normalize_names(value)
        if norm_key and names:
            table[norm_key] = names
    return table


def _country_key(key: str) -> str:
    return key.upper()


def _prefix_key(key: str) -> str:
    return key.lstrip("+")


# ═══════════════════════════════════════════════════════════════════════════
# Data Structures
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RoutingRules:
    """
    Immutable routing rules.

    Attributes
    ----------
    default : str | None
        Lowest-priority sender name, tried after country and prefix matches.
    by_country : Mapping[str, tuple of str]
        Upper-case ISO alpha-2 region → sender names in priority order.
    by_prefix : Mapping[str, tuple of str]
        Digit prefix (no leading '+') → sender names in priority order.
    """
    default: Optional[str] = None
    by_country: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    by_prefix: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    prefix_order: Tuple[str, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        # Normalized on every construction path, direct or from_config()
        default = self.default
        if not isinstance(default, str) or not default.strip():
            default = None
        else:
            default = default.strip()
        object.__setattr__(self, "default", default)
        object.__setattr__(
            self, "by_country",
            MappingProxyType(_normalize_table(self.by_country, _country_key)),
        )
        object.__setattr__(
            self, "by_prefix",
            MappingProxyType(_normalize_table(self.by_prefix, _prefix_key)),
        )
        # Longest first; equal lengths in lexical order
        object.__setattr__(
            self,
            "prefix_order",
            tuple(sorted(self.by_prefix, key=lambda p: (-len(p), p))),
        )

    @classmethod
    def from_config(cls, raw: Optional[Mapping[str, Any]]) -> "RoutingRules":
        """
        Build rules from a raw routing mapping.

        Country keys are upper-cased, prefix keys lose any leading '+',
        single names become one-element tuples and every name is
        stringified. Blank names and entries left empty are dropped.
        Direct construction applies the same normalization.
        """
        raw = raw or {}
        return cls(
            default=raw.get("default"),
            by_country=raw.get("by_country") or {},
            by_prefix=raw.get("by_prefix") or {},
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "default": self.default,
            "by_country": {k: list(v) for k, v in self.by_country.items()},
            "by_prefix": {k: list(v) for k, v in self.by_prefix.items()},
        }


@dataclass(frozen=True)
class SenderRegistration:
    """A sender instance registered under a name, plus its stored config."""
    name: str
    sender: "SmsSender"
    config: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "config", MappingProxyType(dict(self.config)))

    def merged_config(self, overrides: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Stored config with call-time overrides applied on top."""
        merged = dict(self.config)
        if overrides:
            merged.update(overrides)
        return merged


@dataclass
class SendAttempt:
    """Record of one candidate that failed during a failover send."""
    sender: str
    reason: str
    error_code: Optional[str] = None

    def __str__(self) -> str:
        return f"{self.sender}: {self.reason}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sender": self.sender,
            "reason": self.reason,
            "error_code": self.error_code,
        }
