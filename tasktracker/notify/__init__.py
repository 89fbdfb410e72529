"""模块说明：__init__。"""

from tasktracker.notify.notifier import Notifier, compose_reply

__all__ = ["Notifier", "compose_reply"]
