"""Tests for reply composition and best-effort delivery."""

import pytest

from tasktracker.notify.notifier import Notifier, compose_reply
from tasktracker.tasks.parser import TaskCommand
from tasktracker.tasks.relay import RelayOutcome
from tests.conftest import OWNER_JID, FakeChannel

COMMAND = TaskCommand("Buy milk", "2025-03-01", "Alice", "http://x/y", "pick 2% fat")


def test_success_reply():
    assert compose_reply("Bob", RelayOutcome.success(COMMAND)) == (
        "Bob - ✅ Task added: Buy milk | 2025-03-01 | Alice"
    )


def test_failure_reply():
    outcome = RelayOutcome.failure(COMMAND, "connection refused")
    assert compose_reply("Bob", outcome) == "Bob - ❌ Failed to add task to Airtable: connection refused"


@pytest.mark.asyncio
async def test_send_delivers_to_recipient():
    channel = FakeChannel()
    assert await Notifier(channel).send(OWNER_JID, "hello")
    assert channel.sent[0].chat_id == OWNER_JID
    assert channel.sent[0].content == "hello"


@pytest.mark.asyncio
async def test_send_failure_is_swallowed():
    channel = FakeChannel(send_error=ConnectionError("WhatsApp bridge not connected"))
    assert await Notifier(channel).send(OWNER_JID, "hello") is False
