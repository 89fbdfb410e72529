"""进程启动与关闭。

启动顺序：记录启动时间 -> 建立 WhatsApp 会话 -> 挂载事件路由与健康检查；
收到 SIGINT/SIGTERM 后关闭连接。处理中的事件任务不会被等待。
"""

import asyncio
import signal
import sys
from datetime import datetime

from loguru import logger

from tasktracker.bus.queue import MessageBus
from tasktracker.channels.base import BaseChannel
from tasktracker.channels.whatsapp import WhatsAppChannel
from tasktracker.config.schema import Config
from tasktracker.context import AppContext, utc_now
from tasktracker.health.server import HealthServer
from tasktracker.notify.notifier import Notifier
from tasktracker.router.router import EventRouter
from tasktracker.session.manager import SessionError, SessionManager
from tasktracker.session.store import SessionStore, SessionStoreError
from tasktracker.tasks.relay import TaskRelay

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def setup_logging(level: str) -> None:
    """函数说明：setup_logging。"""
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


async def run(
    config: Config,
    start_time: datetime | None = None,
    channel: BaseChannel | None = None,
    stop: asyncio.Event | None = None,
) -> int:
    """运行到收到终止信号（或 ``stop`` 被设置）为止，返回进程退出码。"""
    start_time = start_time or utc_now()
    
    if not config.owner_jid:
        logger.error("Owner JID is not configured. Set TASKTRACKER_OWNER_JID or ownerJid in the config file.")
        return 2
    if not config.airtable.api_key:
        logger.warning("Airtable API key is not configured; task submissions will fail.")
    
    if channel is None:
        channel = WhatsAppChannel(config.whatsapp, MessageBus())
    bus = channel.bus
    manager = SessionManager(SessionStore(config.session_path), channel)
    
    try:
        await manager.start()
    except (SessionError, SessionStoreError) as e:
        logger.error(str(e))
        return 1
    
    ctx = AppContext(start_time=start_time, owner_jid=config.owner_jid, channel=channel)
    relay = TaskRelay(config.airtable)
    router = EventRouter(ctx, bus, relay, Notifier(channel))
    health = HealthServer(config.gateway.host, config.gateway.port)
    
    stop = stop or asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in SHUTDOWN_SIGNALS:
        loop.add_signal_handler(sig, stop.set)
    
    logger.info("WhatsApp Task Tracker is running...")
    await health.start()
    router_task = asyncio.create_task(router.run())
    
    try:
        await stop.wait()
    finally:
        logger.info("Shutting down...")
        router.stop()
        await health.stop()
        await channel.disconnect()
        await relay.aclose()
        await router_task
        for sig in SHUTDOWN_SIGNALS:
            loop.remove_signal_handler(sig)
    
    return 0
