"""模块说明：helpers。"""

from pathlib import Path


def ensure_dir(path: Path) -> Path:
    """函数说明：ensure_dir。"""
    path.mkdir(parents=True, exist_ok=True)
    return path
