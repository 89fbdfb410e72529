"""入站消息过滤条件。

每个条件都是 ``(ctx, event) -> bool``，返回 True 表示保留该消息。
"""

from typing import Callable

from tasktracker.bus.events import MessageEvent
from tasktracker.context import AppContext

MessageFilter = Callable[[AppContext, MessageEvent], bool]


def is_from_others(ctx: AppContext, event: MessageEvent) -> bool:
    return not event.is_from_me


def has_text(ctx: AppContext, event: MessageEvent) -> bool:
    return bool(event.content)


def is_after_start(ctx: AppContext, event: MessageEvent) -> bool:
    """丢弃进程启动之前的历史消息（重连时会被补发）。"""
    return event.timestamp >= ctx.start_time


DEFAULT_FILTERS: tuple[MessageFilter, ...] = (is_from_others, has_text, is_after_start)


def accepts(ctx: AppContext, event: MessageEvent, filters: tuple[MessageFilter, ...] = DEFAULT_FILTERS) -> bool:
    """函数说明：accepts。"""
    return all(check(ctx, event) for check in filters)
