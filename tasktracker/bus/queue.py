"""模块说明：queue。"""

import asyncio

from tasktracker.bus.events import InboundEvent


class MessageBus:
    """连接层与路由层之间的入站事件队列。"""
    
    def __init__(self):
        self.inbound: asyncio.Queue[InboundEvent] = asyncio.Queue()
    
    async def publish_inbound(self, event: InboundEvent) -> None:
        """异步函数说明：publish_inbound。"""
        await self.inbound.put(event)
    
    async def consume_inbound(self) -> InboundEvent:
        """异步函数说明：consume_inbound。"""
        return await self.inbound.get()
    
    @property
    def inbound_size(self) -> int:
        """函数说明：inbound_size。"""
        return self.inbound.qsize()
