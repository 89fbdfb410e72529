"""模块说明：__init__。"""

from tasktracker.health.server import HealthServer, create_app

__all__ = ["HealthServer", "create_app"]
