"""进程级共享状态。"""

from dataclasses import dataclass
from datetime import datetime, timezone

from tasktracker.channels.base import BaseChannel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class AppContext:
    """启动时间、owner 地址和已连接的通道，显式传给路由与通知层。"""
    
    start_time: datetime
    owner_jid: str
    channel: BaseChannel
