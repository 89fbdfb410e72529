"""模块说明：server。"""

import asyncio
from contextlib import contextmanager

import uvicorn
from loguru import logger
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import PlainTextResponse
from starlette.routing import Route

HEALTH_TEXT = "WhatsApp Task Tracker is running\n"


async def health_check(request: Request) -> PlainTextResponse:
    """函数说明：health_check。"""
    return PlainTextResponse(HEALTH_TEXT)


def create_app() -> Starlette:
    return Starlette(routes=[Route("/", health_check, methods=["GET"])])


class _EmbeddedServer(uvicorn.Server):
    """SIGINT/SIGTERM 由 supervisor 处理，这里不安装信号处理器。"""

    def install_signal_handlers(self) -> None:
        pass

    @contextmanager
    def capture_signals(self):
        yield


class HealthServer:
    """在当前事件循环中运行健康检查服务。"""

    def __init__(self, host: str = "0.0.0.0", port: int = 8080):
        self.host = host
        self.port = port
        self._server = _EmbeddedServer(
            uvicorn.Config(create_app(), host=host, port=port, log_level="warning")
        )
        self._task: asyncio.Task | None = None

    async def start(self) -> None:
        self._task = asyncio.create_task(self._serve())
        logger.info(f"Health endpoint listening on http://{self.host}:{self.port}/")

    async def _serve(self) -> None:
        try:
            await self._server.serve()
        except SystemExit:
            # uvicorn exits when the port cannot be bound
            logger.error(f"Health endpoint failed to start on port {self.port}")

    async def stop(self) -> None:
        self._server.should_exit = True
        if self._task:
            await self._task
            self._task = None
