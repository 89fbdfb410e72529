"""模块说明：__init__。"""

from tasktracker.tasks.parser import TaskCommand, parse_task_command
from tasktracker.tasks.relay import RelayOutcome, TaskRelay

__all__ = ["TaskCommand", "parse_task_command", "RelayOutcome", "TaskRelay"]
