"""模块说明：__init__。"""

from tasktracker.bus.events import (
    ConnectionEvent,
    Device,
    InboundEvent,
    MessageEvent,
    OutboundMessage,
    QREvent,
)
from tasktracker.bus.queue import MessageBus

__all__ = [
    "MessageBus",
    "InboundEvent",
    "MessageEvent",
    "ConnectionEvent",
    "QREvent",
    "Device",
    "OutboundMessage",
]
