"""Tick-driven task framework."""

from .base import PhasedTask, Task, TaskStatus
from .manager import TaskManager

__all__ = [
    "PhasedTask",
    "Task",
    "TaskStatus",
    "TaskManager",
]
