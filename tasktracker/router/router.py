"""事件路由。

从消息总线消费事件，按类型分发；任务命令依次经过
过滤 -> 解析 -> 写入 Airtable -> 通知 owner。
"""

import asyncio
from typing import Callable

from loguru import logger

from tasktracker.bus.events import ConnectionEvent, InboundEvent, MessageEvent
from tasktracker.bus.queue import MessageBus
from tasktracker.context import AppContext
from tasktracker.notify.notifier import Notifier, compose_reply
from tasktracker.router.filters import DEFAULT_FILTERS, MessageFilter, accepts
from tasktracker.tasks.parser import TaskCommand, parse_task_command
from tasktracker.tasks.relay import RelayOutcome, TaskRelay


class EventRouter:
    """类说明：EventRouter。"""
    
    def __init__(
        self,
        ctx: AppContext,
        bus: MessageBus,
        relay: TaskRelay,
        notifier: Notifier,
        parser: Callable[[str], TaskCommand | None] = parse_task_command,
        filters: tuple[MessageFilter, ...] = DEFAULT_FILTERS,
    ):
        self.ctx = ctx
        self.bus = bus
        self.relay = relay
        self.notifier = notifier
        self.parser = parser
        self.filters = filters
        self._running = False
        self._tasks: set[asyncio.Task] = set()
    
    async def run(self) -> None:
        """持续消费入站事件，每个事件在独立任务中处理。"""
        self._running = True
        logger.info("Event router started")
        
        while self._running:
            try:
                event = await asyncio.wait_for(self.bus.consume_inbound(), timeout=1.0)
            except asyncio.TimeoutError:
                continue
            
            task = asyncio.create_task(self.dispatch(event))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
    
    def stop(self) -> None:
        """函数说明：stop。"""
        self._running = False
        logger.info("Event router stopping")
    
    async def dispatch(self, event: InboundEvent) -> None:
        """异步函数说明：dispatch。"""
        try:
            if isinstance(event, MessageEvent):
                await self.handle_message(event)
            elif isinstance(event, ConnectionEvent):
                logger.debug(f"Connection event: {event.status}")
            else:
                logger.warning(f"Unknown event type: {type(event).__name__}")
        except Exception as e:
            logger.exception(f"Error handling {type(event).__name__}: {e}")
    
    async def handle_message(self, event: MessageEvent) -> RelayOutcome | None:
        """处理一条消息；不是任务命令时静默忽略并返回 None。"""
        if not accepts(self.ctx, event, self.filters):
            return None
        
        text = event.content.strip()
        command = self.parser(text)
        if command is None:
            return None
        
        logger.info(f"Received valid task command from {event.sender}: {text}")
        outcome = await self.relay.submit(command)
        
        reply = compose_reply(event.display_name, outcome)
        await self.notifier.send(self.ctx.owner_jid, reply)
        return outcome
