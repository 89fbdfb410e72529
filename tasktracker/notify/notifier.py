"""结果通知：组合回复文本并发送给 owner。"""

from loguru import logger

from tasktracker.channels.base import BaseChannel
from tasktracker.tasks.relay import RelayOutcome


def compose_reply(sender_name: str, outcome: RelayOutcome) -> str:
    """函数说明：compose_reply。"""
    if outcome.ok:
        cmd = outcome.command
        return f"{sender_name} - ✅ Task added: {cmd.task} | {cmd.deadline} | {cmd.assign_to}"
    return f"{sender_name} - ❌ Failed to add task to Airtable: {outcome.error}"


class Notifier:
    """尽力发送，失败只记录日志。"""
    
    def __init__(self, channel: BaseChannel):
        self.channel = channel
    
    async def send(self, to: str, text: str) -> bool:
        """异步函数说明：send。"""
        try:
            await self.channel.send_text(to, text)
        except Exception as e:
            logger.error(f"Failed to send reply to {to}: {e}")
            return False
        return True
