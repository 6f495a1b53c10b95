"""
base.py — The contract every SMS delivery backend implements.

A sender attempts to deliver one message to one destination:

    send(to, message, config) → bool

    • True  — the message was handed off successfully
    • False — the sender reports failure (no further detail)
    • raise — the sender failed; the exception becomes the cause of a
              SenderRaisedError unless it already is an SmsDeliveryError

`config` is the sender's stored configuration merged with call-time
options (call-time values win). Senders must not mutate it.
"""

from __future__ import annotations

import abc
from typing import Any, Callable, Mapping, Optional


class SmsSender(abc.ABC):
    """Abstract SMS delivery backend."""

    @abc.abstractmethod
    def send(
        self,
        to: str,
        message: str,
        config: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        """Deliver `message` to `to`. Return True on success."""


class FunctionSender(SmsSender):
    """
    Adapt a plain function with the `send` signature into an SmsSender.

    Lets stateless channel functions be registered without writing a class:

        manager.register("webhook", FunctionSender(post_to_webhook))
    """

    def __init__(self, func: Callable[[str, str, Mapping[str, Any]], bool]):
        if not callable(func):
            raise TypeError(f"FunctionSender needs a callable, got {type(func).__name__}")
        self.func = func

    def send(
        self,
        to: str,
        message: str,
        config: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        return self.func(to, message, dict(config or {}))

    def __repr__(self) -> str:
        name = getattr(self.func, "__qualname__", repr(self.func))
        return f"FunctionSender({name})"
