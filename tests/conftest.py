"""
Shared fixtures for tasktracker tests.
"""
from datetime import datetime, timedelta, timezone
from typing import AsyncIterator

import pytest

from tasktracker.bus.events import Device, MessageEvent, OutboundMessage, QREvent
from tasktracker.bus.queue import MessageBus
from tasktracker.channels.base import BaseChannel
from tasktracker.context import AppContext
from tasktracker.tasks.parser import TaskCommand
from tasktracker.tasks.relay import RelayOutcome

START_TIME = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)
OWNER_JID = "918712157587@s.whatsapp.net"
VALID_COMMAND = "Task Buy milk | 2025-03-01 | Alice | http://x/y | pick 2% fat"


class FakeChannel(BaseChannel):
    """In-memory channel that replays scripted pairing/login results."""

    name = "fake"

    def __init__(self, qr_events=None, login_error=None, send_error=None):
        super().__init__(config=None, bus=MessageBus())
        self.qr_events = list(qr_events or [])
        self.login_error = login_error
        self.send_error = send_error
        self.sent: list[OutboundMessage] = []
        self.paired = False
        self.logged_in_with: Device | None = None
        self.disconnected = False
        self.qr_closed = False

    async def pair(self) -> AsyncIterator[QREvent]:
        self.paired = True
        return self._iter_qr()

    async def _iter_qr(self):
        try:
            for evt in self.qr_events:
                yield evt
        finally:
            self.qr_closed = True

    async def login(self, device: Device) -> None:
        self.logged_in_with = device
        if self.login_error is not None:
            raise self.login_error
        self.device = device
        self._running = True

    async def send(self, msg: OutboundMessage) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(msg)

    async def disconnect(self) -> None:
        self.disconnected = True
        self._running = False


class FakeRelay:
    """Records submitted commands and returns a fixed outcome."""

    def __init__(self, error: str | None = None):
        self.error = error
        self.submitted: list[TaskCommand] = []

    async def submit(self, command: TaskCommand) -> RelayOutcome:
        self.submitted.append(command)
        if self.error:
            return RelayOutcome.failure(command, self.error)
        return RelayOutcome.success(command)


def make_message(
    content: str = VALID_COMMAND,
    sender: str = "15550001111@s.whatsapp.net",
    push_name: str = "Bob",
    is_from_me: bool = False,
    timestamp: datetime | None = None,
) -> MessageEvent:
    return MessageEvent(
        sender=sender,
        chat_id=sender,
        content=content,
        push_name=push_name,
        is_from_me=is_from_me,
        timestamp=timestamp or START_TIME + timedelta(seconds=5),
    )


@pytest.fixture
def channel():
    return FakeChannel()


@pytest.fixture
def ctx(channel):
    return AppContext(start_time=START_TIME, owner_jid=OWNER_JID, channel=channel)


@pytest.fixture
def device():
    return Device(
        jid="15557654321@s.whatsapp.net",
        credentials={"noiseKey": "abc", "identityKey": "def"},
        push_name="Tracker",
        paired_at=datetime(2025, 2, 1, tzinfo=timezone.utc),
    )
