"""
senders — SMS delivery backends.

Each sender implements SmsSender.send(to, message, config) → bool.
Returning False and raising are both treated as a failed delivery by
the manager. Failover across senders lives in smsroute.factory.
"""

from smsroute.senders.base import FunctionSender, SmsSender
from smsroute.senders.log_sender import LogSender

__all__ = ["FunctionSender", "LogSender", "SmsSender"]
