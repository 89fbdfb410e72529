"""WhatsApp 桥接连接。

WhatsApp Web 协议本身由独立的桥接进程实现，本模块通过 websocket 与之交换
JSON 帧：配对（QR）、凭据登录、收发消息。
"""

import asyncio
import json
from datetime import datetime, timezone
from typing import Any, AsyncIterator

import websockets
from loguru import logger

from tasktracker.bus.events import ConnectionEvent, Device, MessageEvent, OutboundMessage, QREvent
from tasktracker.bus.queue import MessageBus
from tasktracker.channels.base import AuthRejectedError, BaseChannel
from tasktracker.config.schema import WhatsAppConfig

# 登录阶段表示凭据被拒绝的错误码
AUTH_REJECTED_CODES = {401, 403}


class WhatsAppChannel(BaseChannel):
    """类说明：WhatsAppChannel。"""
    
    name = "whatsapp"
    
    def __init__(self, config: WhatsAppConfig, bus: MessageBus):
        super().__init__(config, bus)
        self.config: WhatsAppConfig = config
        self._ws = None
        self._connected = False
        self._reader: asyncio.Task | None = None
        self._reconnect_task: asyncio.Task | None = None
        self._pairing = False
        self._logging_in = False
        self._reconnecting = False
        self._qr: asyncio.Queue[QREvent | None] = asyncio.Queue()
        self._login_frames: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
    
    @property
    def is_connected(self) -> bool:
        return self._connected
    
    async def _open(self) -> None:
        """打开到桥接的 websocket 并启动读取任务。"""
        await self._close_ws()
        
        bridge_url = self.config.bridge_url
        logger.info(f"Connecting to WhatsApp bridge at {bridge_url}...")
        
        try:
            ws = await websockets.connect(bridge_url, open_timeout=self.config.connect_timeout)
        except websockets.WebSocketException as e:
            raise ConnectionError(f"WhatsApp bridge handshake failed: {e}") from e
        self._ws = ws
        self._reader = asyncio.create_task(self._read_loop(ws))
    
    async def pair(self) -> AsyncIterator[QREvent]:
        """异步函数说明：pair。"""
        self._qr = asyncio.Queue()
        self._pairing = True
        await self._open()
        await self._send_json({"type": "pair"})
        return self._iter_qr()
    
    async def _iter_qr(self) -> AsyncIterator[QREvent]:
        try:
            while True:
                item = await self._qr.get()
                if item is None:
                    return
                terminal = item.event in ("success", "timeout")
                if terminal:
                    # 调用方拿到终态事件后可能不再迭代
                    self._pairing = False
                if item.event == "success" and item.device is not None:
                    self.device = item.device
                    self._connected = True
                    self._running = True
                yield item
                if terminal:
                    return
        finally:
            self._pairing = False
    
    async def login(self, device: Device) -> None:
        """异步函数说明：login。"""
        self._login_frames = asyncio.Queue()
        self._logging_in = True
        try:
            await self._open()
            await self._send_json({
                "type": "login",
                "jid": device.jid,
                "credentials": device.credentials,
            })
            await asyncio.wait_for(self._await_login(), timeout=self.config.login_timeout)
        except BaseException:
            await self._close_ws()
            raise
        finally:
            self._logging_in = False
        
        self.device = device
        self._connected = True
        self._running = True
        logger.info(f"Logged in to WhatsApp as {device.jid}")
    
    async def _await_login(self) -> None:
        while True:
            frame = await self._login_frames.get()
            kind = frame.get("type")
            
            if kind == "closed":
                raise ConnectionError("WhatsApp bridge closed the connection during login")
            
            if kind == "status":
                status = frame.get("status")
                if status == "connected":
                    return
                if status == "logged_out":
                    raise AuthRejectedError("WhatsApp session is logged out")
            
            elif kind == "error":
                if frame.get("code") in AUTH_REJECTED_CODES:
                    raise AuthRejectedError(frame.get("error") or "credentials rejected")
                raise ConnectionError(f"WhatsApp bridge error: {frame.get('error')}")
    
    async def disconnect(self) -> None:
        """异步函数说明：disconnect。"""
        self._running = False
        self._connected = False
        
        if self._reconnect_task:
            self._reconnect_task.cancel()
            self._reconnect_task = None
        
        await self._close_ws()
    
    async def send(self, msg: OutboundMessage) -> None:
        """异步函数说明：send。"""
        if not self._ws or not self._connected:
            raise ConnectionError("WhatsApp bridge not connected")
        
        await self._send_json({
            "type": "send",
            "to": msg.chat_id,
            "text": msg.content,
        })
    
    async def _send_json(self, payload: dict[str, Any]) -> None:
        if not self._ws:
            raise ConnectionError("WhatsApp bridge not connected")
        try:
            await self._ws.send(json.dumps(payload))
        except websockets.ConnectionClosed as e:
            raise ConnectionError(f"WhatsApp bridge connection closed: {e}") from e
    
    async def _close_ws(self) -> None:
        ws, self._ws = self._ws, None
        if ws is not None:
            await ws.close()
        
        reader, self._reader = self._reader, None
        if reader is not None and reader is not asyncio.current_task():
            await reader
    
    async def _read_loop(self, ws) -> None:
        """持续读取桥接帧，连接断开时按需安排重连。"""
        try:
            async for message in ws:
                try:
                    await self._handle_bridge_message(message)
                except Exception as e:
                    logger.error(f"Error handling bridge message: {e}")
        except websockets.ConnectionClosed as e:
            logger.warning(f"WhatsApp bridge connection closed: {e}")
        finally:
            if self._ws is ws:
                self._ws = None
            self._connected = False
            
            if self._pairing:
                self._qr.put_nowait(None)
            if self._logging_in:
                self._login_frames.put_nowait({"type": "closed"})
            
            if self._running and self.device is not None and not self._reconnecting:
                self._reconnect_task = asyncio.create_task(self._reconnect())
    
    async def _reconnect(self) -> None:
        """使用已有凭据重连；凭据被拒绝时停止，等待人工重启。"""
        self._reconnecting = True
        try:
            while self._running:
                logger.info(f"Reconnecting in {self.config.reconnect_delay:g} seconds...")
                await asyncio.sleep(self.config.reconnect_delay)
                if not self._running:
                    return
                try:
                    await self.login(self.device)
                    return
                except AuthRejectedError as e:
                    logger.error(
                        f"WhatsApp rejected the stored session on reconnect: {e}. "
                        f"Restart the application to scan the QR code again."
                    )
                    self._running = False
                    return
                except (OSError, TimeoutError) as e:
                    logger.warning(f"WhatsApp reconnect failed: {e}")
        finally:
            self._reconnecting = False
    
    async def _handle_bridge_message(self, raw: str) -> None:
        """异步函数说明：_handle_bridge_message。"""
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Invalid JSON from bridge: {raw[:100]}")
            return
        
        msg_type = data.get("type")
        
        if msg_type == "message":
            await self.bus.publish_inbound(self._parse_message(data))
        
        elif msg_type == "qr":
            if self._pairing:
                self._qr.put_nowait(self._parse_qr(data))
        
        elif msg_type == "status":
            status = data.get("status")
            logger.info(f"WhatsApp status: {status}")
            
            if self._logging_in:
                self._login_frames.put_nowait(data)
            
            if status == "connected":
                self._connected = True
            elif status == "disconnected":
                self._connected = False
            elif status == "logged_out":
                self._connected = False
                self._running = False
                logger.error("WhatsApp session was logged out. Restart the application to scan the QR code again.")
            
            await self.bus.publish_inbound(ConnectionEvent(status=status or "unknown"))
        
        elif msg_type == "error":
            logger.error(f"WhatsApp bridge error: {data.get('error')}")
            if self._logging_in:
                self._login_frames.put_nowait(data)
    
    @staticmethod
    def _parse_message(data: dict[str, Any]) -> MessageEvent:
        sender = data.get("sender", "")
        ts = data.get("timestamp")
        if ts is None:
            timestamp = datetime.now(timezone.utc)
        else:
            timestamp = datetime.fromtimestamp(float(ts), tz=timezone.utc)
        
        return MessageEvent(
            sender=sender,
            chat_id=data.get("chat") or sender,
            content=data.get("content") or "",
            push_name=data.get("pushName") or "",
            is_from_me=bool(data.get("fromMe", False)),
            timestamp=timestamp,
            message_id=data.get("id"),
            is_group=bool(data.get("isGroup", False)),
        )
    
    @staticmethod
    def _parse_qr(data: dict[str, Any]) -> QREvent:
        event = data.get("event", "")
        device = None
        if event == "success" and data.get("jid"):
            device = Device(
                jid=data["jid"],
                credentials=data.get("credentials") or {},
                push_name=data.get("pushName") or "",
            )
        return QREvent(event=event, code=data.get("code"), device=device)
