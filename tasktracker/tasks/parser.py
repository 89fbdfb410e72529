"""任务命令解析。

语法（关键字不区分大小写）::

    Task <任务名> | YYYY-MM-DD | <负责人> | <附件链接> | <描述>

日期段必须严格为 4-2-2 位数字，附件段不能包含空白；描述段是最后一段，
可以继续包含 ``|``。
"""

import re
from dataclasses import dataclass

TASK_COMMAND_RE = re.compile(
    r"^Task\s+(.+?)\s*\|\s*(\d{4}-\d{2}-\d{2})\s*\|\s*(.+?)\s*\|\s*(\S+)\s*\|\s*(.+)",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class TaskCommand:
    task: str
    deadline: str
    assign_to: str
    attachment: str
    description: str


def parse_task_command(text: str) -> TaskCommand | None:
    """解析任务命令；不完全匹配时返回 None。"""
    match = TASK_COMMAND_RE.match(text)
    if match is None:
        return None
    
    fields = [group.strip() for group in match.groups()]
    if not all(fields):
        return None
    
    return TaskCommand(*fields)
