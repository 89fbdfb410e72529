"""模块说明：loader。"""

import json
import os
from pathlib import Path
from typing import Any

from loguru import logger

from tasktracker.config.schema import Config


def get_config_path() -> Path:
    """函数说明：get_config_path。"""
    return Path.home() / ".tasktracker" / "config.json"


def load_config(config_path: Path | None = None) -> Config:
    """读取 JSON 配置文件（文件中的值优先于 TASKTRACKER_ 环境变量），最后应用 PORT 覆盖。"""
    path = config_path or get_config_path()
    config = None
    
    if path.exists():
        try:
            with open(path) as f:
                data = json.load(f)
            config = Config(**convert_keys(data))
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning(f"Failed to load config from {path}: {e}")
            logger.warning("Using default configuration.")
    
    if config is None:
        config = Config()
    
    return _apply_port_override(config)


def _apply_port_override(config: Config) -> Config:
    """PORT 环境变量覆盖健康检查端口。"""
    port = os.environ.get("PORT", "").strip()
    if not port:
        return config
    try:
        config.gateway.port = int(port)
    except ValueError:
        logger.warning(f"Ignoring invalid PORT value: {port!r}")
    return config


def convert_keys(data: Any) -> Any:
    """函数说明：convert_keys。"""
    if isinstance(data, dict):
        return {camel_to_snake(k): convert_keys(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_keys(item) for item in data]
    return data


def camel_to_snake(name: str) -> str:
    """函数说明：camel_to_snake。"""
    result = []
    for i, char in enumerate(name):
        if char.isupper() and i > 0:
            result.append("_")
        result.append(char.lower())
    return "".join(result)