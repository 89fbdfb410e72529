"""模块说明：__init__。"""

from tasktracker.channels.base import AuthRejectedError, BaseChannel
from tasktracker.channels.whatsapp import WhatsAppChannel

__all__ = ["BaseChannel", "WhatsAppChannel", "AuthRejectedError"]
