"""模块说明：base。"""

from abc import ABC, abstractmethod
from typing import Any, AsyncIterator

from tasktracker.bus.events import Device, OutboundMessage, QREvent
from tasktracker.bus.queue import MessageBus


class AuthRejectedError(Exception):
    """消息网络明确拒绝了已保存的凭据（已登出或未授权）。"""


class BaseChannel(ABC):
    """一个带身份认证的长连接。

    连接层负责把入站事件发布到 ``bus``，会话生命周期由 SessionManager 驱动：
    首次使用调用 ``pair()``，已有凭据时调用 ``login()``。
    """
    
    name: str = "base"
    
    def __init__(self, config: Any, bus: MessageBus):
        """函数说明：__init__。"""
        self.config = config
        self.bus = bus
        self.device: Device | None = None
        self._running = False
    
    @abstractmethod
    async def pair(self) -> AsyncIterator[QREvent]:
        """打开连接并开始扫码配对，返回配对事件流。"""
        pass
    
    @abstractmethod
    async def login(self, device: Device) -> None:
        """使用已有凭据建立连接。

        凭据被拒绝时抛出 AuthRejectedError；网络类失败抛出 ConnectionError、
        OSError 或 TimeoutError。
        """
        pass
    
    @abstractmethod
    async def send(self, msg: OutboundMessage) -> None:
        """异步函数说明：send。"""
        pass
    
    @abstractmethod
    async def disconnect(self) -> None:
        """异步函数说明：disconnect。"""
        pass
    
    async def send_text(self, to: str, text: str) -> None:
        """异步函数说明：send_text。"""
        await self.send(OutboundMessage(chat_id=to, content=text))
    
    @property
    def is_running(self) -> bool:
        """函数说明：is_running。"""
        return self._running
