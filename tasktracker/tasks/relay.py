"""把解析后的任务写入 Airtable。"""

from dataclasses import dataclass
from typing import Any

import httpx
from loguru import logger

from tasktracker.config.schema import AirtableConfig
from tasktracker.tasks.parser import TaskCommand

# 连接阶段失败时请求尚未到达 Airtable，可以安全重试
RETRYABLE_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout)


@dataclass(frozen=True)
class RelayOutcome:
    """类说明：RelayOutcome。"""
    
    command: TaskCommand
    ok: bool
    error: str | None = None
    
    @classmethod
    def success(cls, command: TaskCommand) -> "RelayOutcome":
        return cls(command=command, ok=True)
    
    @classmethod
    def failure(cls, command: TaskCommand, error: str) -> "RelayOutcome":
        return cls(command=command, ok=False, error=error)


def build_record(command: TaskCommand) -> dict[str, Any]:
    """函数说明：build_record。"""
    return {
        "fields": {
            "Task": command.task,
            "Deadline": command.deadline,
            "Assign To": command.assign_to,
            "Attachment": [{"url": command.attachment}],
            "Description": command.description,
        }
    }


class TaskRelay:
    """Airtable 记录写入器。

    每条命令只发送一次 POST；状态码 >= 300 或网络错误都会转换为失败结果，
    由调用方回复给 owner。
    """
    
    def __init__(self, config: AirtableConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config
        self._client = httpx.AsyncClient(
            timeout=config.timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {config.api_key}",
                "Content-Type": "application/json",
            },
        )
    
    async def submit(self, command: TaskCommand) -> RelayOutcome:
        """异步函数说明：submit。"""
        record = build_record(command)
        attempt = 0
        
        while True:
            attempt += 1
            try:
                response = await self._client.post(self.config.records_url, json=record)
            except RETRYABLE_ERRORS as e:
                if attempt <= self.config.max_retries:
                    logger.warning(f"Airtable connect failed ({e}), retrying ({attempt}/{self.config.max_retries})")
                    continue
                return self._network_failure(command, e)
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                return self._network_failure(command, e)
            
            if response.status_code >= 300:
                error = f"airtable error: {response.status_code} {response.reason_phrase}".rstrip()
                logger.error(f"Airtable rejected task {command.task!r}: {error}")
                return RelayOutcome.failure(command, error)
            
            logger.info(f"Task {command.task!r} added to Airtable")
            return RelayOutcome.success(command)
    
    @staticmethod
    def _network_failure(command: TaskCommand, exc: Exception) -> RelayOutcome:
        error = str(exc) or exc.__class__.__name__
        logger.error(f"Failed to reach Airtable for task {command.task!r}: {error}")
        return RelayOutcome.failure(command, error)
    
    async def aclose(self) -> None:
        """异步函数说明：aclose。"""
        await self._client.aclose()
