"""Tests for the session lifecycle state machine."""

import re

import pytest

from tasktracker.bus.events import QREvent
from tasktracker.channels.base import AuthRejectedError
from tasktracker.session.manager import (
    QRTimeoutError,
    ReconnectError,
    SessionError,
    SessionManager,
    SessionState,
)
from tasktracker.session.store import SessionStore
from tests.conftest import FakeChannel


@pytest.fixture
def store(tmp_path):
    return SessionStore(tmp_path / "session.db", clock=lambda: 1740819600)


def make_manager(store, channel):
    rendered: list[str] = []
    manager = SessionManager(store, channel, render=rendered.append)
    return manager, rendered


class TestFirstTimePairing:

    @pytest.mark.asyncio
    async def test_codes_are_rendered_before_success(self, store, device):
        channel = FakeChannel(qr_events=[
            QREvent(event="code", code="2@abc"),
            QREvent(event="code", code="2@def"),
            QREvent(event="success", device=device),
        ])
        manager, rendered = make_manager(store, channel)

        session = await manager.start()

        assert channel.paired
        assert rendered == ["2@abc", "2@def"]
        assert session.state == SessionState.CONNECTED
        assert session.jid == device.jid
        assert store.load() == device

    @pytest.mark.asyncio
    async def test_pairing_stream_is_closed_after_success(self, store, device):
        channel = FakeChannel(qr_events=[
            QREvent(event="code", code="2@abc"),
            QREvent(event="success", device=device),
            QREvent(event="code", code="2@late"),
        ])
        manager, rendered = make_manager(store, channel)

        await manager.start()

        assert channel.qr_closed
        assert rendered == ["2@abc"]

    @pytest.mark.asyncio
    async def test_timeout_aborts_startup(self, store):
        channel = FakeChannel(qr_events=[
            QREvent(event="code", code="2@abc"),
            QREvent(event="timeout"),
        ])
        manager, rendered = make_manager(store, channel)

        with pytest.raises(QRTimeoutError):
            await manager.start()

        assert rendered == ["2@abc"]
        assert channel.disconnected
        assert manager.state == SessionState.FAILED
        assert not store.path.exists()

    @pytest.mark.asyncio
    async def test_other_signals_keep_waiting(self, store, device):
        channel = FakeChannel(qr_events=[
            QREvent(event="code", code="2@abc"),
            QREvent(event="err-unexpected-state"),
            QREvent(event="code", code="2@ghi"),
            QREvent(event="success", device=device),
        ])
        manager, rendered = make_manager(store, channel)

        await manager.start()

        assert rendered == ["2@abc", "2@ghi"]
        assert manager.state == SessionState.CONNECTED

    @pytest.mark.asyncio
    async def test_channel_closing_without_result_is_a_timeout(self, store):
        channel = FakeChannel(qr_events=[QREvent(event="code", code="2@abc")])
        manager, _ = make_manager(store, channel)

        with pytest.raises(QRTimeoutError):
            await manager.start()
        assert channel.disconnected

    @pytest.mark.asyncio
    async def test_bridge_unreachable(self, store):
        class Unreachable(FakeChannel):
            async def pair(self):
                raise ConnectionRefusedError("bridge down")

        channel = Unreachable()
        manager, _ = make_manager(store, channel)

        with pytest.raises(SessionError, match="bridge down"):
            await manager.start()
        assert manager.state == SessionState.FAILED


class TestReconnect:

    @pytest.mark.asyncio
    async def test_stored_credentials_connect(self, store, device):
        store.save(device)
        channel = FakeChannel()
        manager, rendered = make_manager(store, channel)

        session = await manager.start()

        assert channel.logged_in_with == device
        assert not channel.paired
        assert rendered == []
        assert session.state == SessionState.CONNECTED

    @pytest.mark.asyncio
    async def test_rejected_credentials_are_backed_up(self, store, device):
        store.save(device)
        original = store.path.read_bytes()
        channel = FakeChannel(login_error=AuthRejectedError("logged out"))
        manager, _ = make_manager(store, channel)

        with pytest.raises(ReconnectError, match="restart"):
            await manager.start()

        assert channel.disconnected
        assert manager.state == SessionState.FAILED
        assert not store.path.exists()
        backups = [p for p in store.path.parent.iterdir() if p.name.startswith("session.db.backup.")]
        assert len(backups) == 1
        assert re.fullmatch(r"session\.db\.backup\.\d+", backups[0].name)
        assert backups[0].read_bytes() == original

    @pytest.mark.asyncio
    async def test_network_failure_keeps_credentials(self, store, device):
        store.save(device)
        channel = FakeChannel(login_error=ConnectionError("bridge unreachable"))
        manager, _ = make_manager(store, channel)

        with pytest.raises(ReconnectError):
            await manager.start()

        assert channel.disconnected
        assert store.path.exists()
        assert list(store.path.parent.glob("session.db.backup.*")) == []

    @pytest.mark.asyncio
    async def test_login_timeout_keeps_credentials(self, store, device):
        store.save(device)
        channel = FakeChannel(login_error=TimeoutError())
        manager, _ = make_manager(store, channel)

        with pytest.raises(ReconnectError):
            await manager.start()
        assert store.path.exists()


@pytest.mark.asyncio
async def test_start_twice_is_rejected(store, device):
    store.save(device)
    manager, _ = make_manager(store, FakeChannel())
    await manager.start()

    with pytest.raises(SessionError, match="already started"):
        await manager.start()
