"""模块说明：__init__。"""

from tasktracker.config.loader import get_config_path, load_config
from tasktracker.config.schema import Config

__all__ = ["Config", "load_config", "get_config_path"]
