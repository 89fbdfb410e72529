"""模块说明：__init__。"""

from tasktracker.router.filters import DEFAULT_FILTERS, accepts, has_text, is_after_start, is_from_others
from tasktracker.router.router import EventRouter

__all__ = ["EventRouter", "DEFAULT_FILTERS", "accepts", "is_from_others", "has_text", "is_after_start"]
