"""事件类型定义。

桥接连接只会产出一个封闭的事件集合：``MessageEvent`` 与 ``ConnectionEvent``。
路由层按类型分发，不再依赖动态的事件字典。
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass
class MessageEvent:
    """一条来自 WhatsApp 的入站消息。"""
    
    sender: str  # 发送者 JID，例如 918712157587@s.whatsapp.net
    chat_id: str  # 会话 JID（群聊时与 sender 不同）
    content: str  # 消息文本
    push_name: str = ""  # 发送者显示名称，可能为空
    is_from_me: bool = False
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    message_id: str | None = None
    is_group: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)
    
    @property
    def sender_user(self) -> str:
        """JID 的用户部分（不含设备号），显示名称缺失时用作回退。"""
        return self.sender.split("@", 1)[0].split(":", 1)[0]
    
    @property
    def display_name(self) -> str:
        return self.push_name or self.sender_user


@dataclass
class ConnectionEvent:
    """连接状态变化：connected、disconnected、logged_out。"""
    
    status: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


InboundEvent = MessageEvent | ConnectionEvent


@dataclass
class QREvent:
    """配对通道中的一项。"""
    
    event: str  # code、success、timeout 或桥接发出的其他信号
    code: str | None = None
    device: "Device | None" = None


@dataclass
class Device:
    """可持久化的设备身份，配对成功后由桥接下发。"""
    
    jid: str
    credentials: dict[str, Any] = field(default_factory=dict)
    push_name: str = ""
    paired_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class OutboundMessage:
    """类说明：OutboundMessage。"""
    
    chat_id: str
    content: str
    metadata: dict[str, Any] = field(default_factory=dict)
