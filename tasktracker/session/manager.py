"""会话生命周期管理。

状态机::

    UNINITIALIZED -> AWAITING_QR -> CONNECTED      （无已保存凭据）
    UNINITIALIZED -> RECONNECTING -> CONNECTED     （有已保存凭据）
    AWAITING_QR / RECONNECTING -> FAILED

同一进程内不会自动重试认证，恢复需要外部重启。
"""

from contextlib import aclosing
from dataclasses import dataclass
from enum import Enum
from typing import Callable

import qrcode
from loguru import logger

from tasktracker.bus.events import Device
from tasktracker.channels.base import AuthRejectedError, BaseChannel
from tasktracker.session.store import SessionStore, SessionStoreError


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    AWAITING_QR = "awaiting_qr"
    RECONNECTING = "reconnecting"
    CONNECTED = "connected"
    FAILED = "failed"


class SessionError(Exception):
    """会话无法建立，本次启动终止。"""


class QRTimeoutError(SessionError):
    """扫码超时。"""


class ReconnectError(SessionError):
    """使用已保存凭据重连失败。"""


@dataclass
class Session:
    """当前进程唯一的会话。"""
    
    device: Device | None
    state: SessionState
    store: SessionStore
    
    @property
    def jid(self) -> str | None:
        return self.device.jid if self.device else None


def render_qr(code: str) -> None:
    """在终端打印二维码。"""
    qr = qrcode.QRCode(border=1)
    qr.add_data(code)
    qr.make(fit=True)
    print("Scan QR Code:")
    qr.print_ascii(invert=True)


class SessionManager:
    """类说明：SessionManager。"""
    
    def __init__(
        self,
        store: SessionStore,
        channel: BaseChannel,
        render: Callable[[str], None] = render_qr,
    ):
        self.store = store
        self.channel = channel
        self.render = render
        self.session = Session(device=None, state=SessionState.UNINITIALIZED, store=store)
    
    @property
    def state(self) -> SessionState:
        return self.session.state
    
    async def start(self) -> Session:
        """建立会话，成功后返回处于 CONNECTED 状态的 Session。"""
        if self.state != SessionState.UNINITIALIZED:
            raise SessionError(f"Session already started (state: {self.state.value})")
        
        device = self.store.load()
        
        if device is None:
            logger.info("No existing session found. Need to scan QR code.")
            await self._pair()
        else:
            logger.info(f"Your JID: {device.jid}")
            self.session.device = device
            await self._reconnect(device)
        
        return self.session
    
    async def _pair(self) -> None:
        self.session.state = SessionState.AWAITING_QR
        
        try:
            qr_events = await self.channel.pair()
        except (OSError, TimeoutError) as e:
            await self._fail()
            raise SessionError(f"Failed to connect: {e}") from e
        
        async with aclosing(qr_events):
            async for evt in qr_events:
                if evt.event == "code" and evt.code:
                    self.render(evt.code)
                elif evt.event == "success":
                    if evt.device is None:
                        await self._fail()
                        raise SessionError("Pairing succeeded but the bridge did not report a device")
                    try:
                        self.store.save(evt.device)
                    except SessionStoreError:
                        await self._fail()
                        raise
                    self.session.device = evt.device
                    self.session.state = SessionState.CONNECTED
                    logger.info("Logged in successfully!")
                    return
                elif evt.event == "timeout":
                    break
                else:
                    logger.debug(f"Ignoring pairing event: {evt.event}")
        
        await self._fail()
        raise QRTimeoutError("QR code timeout. Please restart the application.")
    
    async def _reconnect(self, device: Device) -> None:
        self.session.state = SessionState.RECONNECTING
        
        try:
            await self.channel.login(device)
        except AuthRejectedError as e:
            logger.warning(f"Stored session was rejected: {e}. Backing up and removing session...")
            await self._fail()
            self.store.invalidate_and_backup()
            raise ReconnectError(
                "Failed to connect with existing session. Please restart the application to scan QR code again."
            ) from e
        except (OSError, TimeoutError) as e:
            await self._fail()
            raise ReconnectError(
                f"Failed to connect with existing session: {e}. Stored credentials were kept; restart to retry."
            ) from e
        
        self.session.state = SessionState.CONNECTED
        logger.info("Connected with existing session.")
    
    async def _fail(self) -> None:
        self.session.state = SessionState.FAILED
        await self.channel.disconnect()
