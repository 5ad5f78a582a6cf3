"""Task: a long-running unit of companion work advanced one tick at a time."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Optional

from ..chat import ChatCategory
from ..errors import PreconditionError, TaskError
from ..geometry import BlockPos

if TYPE_CHECKING:
    from ..companion import Companion

_log = logging.getLogger(__name__)


class TaskStatus(Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


_TERMINAL_STATES = frozenset({TaskStatus.COMPLETED, TaskStatus.FAILED, TaskStatus.CANCELLED})


class Task(ABC):
    """Base class for every queued task.

    Lifecycle: ``begin`` (once, calls :meth:`start`) → ``do_tick`` (repeatedly,
    calls :meth:`tick`) → a terminal status → ``finish`` (once, calls
    :meth:`cleanup`). The :class:`TaskManager` drives the outer methods;
    subclasses implement only the inner hooks.
    """

    task_name = "Task"
    has_timeout = True

    def __init__(self, companion: "Companion", description: str):
        self.companion = companion
        self.description = description
        self.status = TaskStatus.PENDING
        self.ticks_running = 0
        self.fail_reason: Optional[str] = None
        self.max_ticks: Optional[int] = (
            companion.config.task_timeout_ticks if self.has_timeout else None
        )
        self._started = False
        self._cleaned_up = False
        self._progress_reported = 0

    # ── Hooks for subclasses ──────────────────────────────────

    @abstractmethod
    def start(self) -> None:
        """Called once when the task becomes active. May complete or fail immediately."""

    @abstractmethod
    def tick(self) -> None:
        """Do a bounded amount of work. Never blocks."""

    def cleanup(self) -> None:
        """Release anything held by the task. Runs exactly once for started tasks."""

    def progress(self) -> int:
        """Raw progress estimate 0-100 from phase and counters. Must not decrease."""
        return 0

    # ── Driven by TaskManager ─────────────────────────────────

    def begin(self) -> None:
        if self.status is not TaskStatus.PENDING:
            return
        self.status = TaskStatus.RUNNING
        self._started = True
        _log.info("Task started: %s", self.description)
        try:
            self.start()
        except PreconditionError as e:
            self.fail(e.reason)
        except TaskError as e:
            self.fail(str(e))
        except Exception as e:
            self._crash("start", e)

    def do_tick(self) -> None:
        if self.status is not TaskStatus.RUNNING:
            return
        self.ticks_running += 1
        if self.max_ticks is not None and self.ticks_running > self.max_ticks:
            self.fail(f"Task timed out after {self.max_ticks} ticks")
            return
        try:
            self.tick()
        except TaskError as e:
            self.fail(str(e))
        except Exception as e:
            self._crash("tick", e)

    def finish(self) -> None:
        """Run :meth:`cleanup` if the task was started and has not been cleaned up yet."""
        if not self._started or self._cleaned_up:
            return
        self._cleaned_up = True
        try:
            self.cleanup()
        except Exception:
            _log.exception("Cleanup raised for task %s", self.description)

    def _crash(self, where: str, error: Exception) -> None:
        _log.exception("Task %s raised in %s()", self.description, where)
        self.fail(f"Unexpected error: {error}")

    # ── Terminal transitions ──────────────────────────────────

    def complete(self) -> None:
        if self.status not in _TERMINAL_STATES:
            self.status = TaskStatus.COMPLETED
            _log.info("Task completed: %s (%d ticks)", self.description, self.ticks_running)

    def fail(self, reason: str) -> None:
        if self.status not in _TERMINAL_STATES:
            self.status = TaskStatus.FAILED
            self.fail_reason = reason
            _log.warning("Task failed: %s: %s", self.description, reason)

    def cancel(self) -> None:
        if self.status not in _TERMINAL_STATES:
            self.status = TaskStatus.CANCELLED
            _log.info("Task cancelled: %s", self.description)

    # ── Queries ───────────────────────────────────────────────

    def is_complete(self) -> bool:
        return self.status is TaskStatus.COMPLETED

    def is_failed(self) -> bool:
        return self.status is TaskStatus.FAILED

    def is_cancelled(self) -> bool:
        return self.status is TaskStatus.CANCELLED

    def is_done(self) -> bool:
        return self.status in _TERMINAL_STATES

    @property
    def started(self) -> bool:
        return self._started

    @property
    def cleaned_up(self) -> bool:
        return self._cleaned_up

    def get_task_name(self) -> str:
        return self.task_name

    def get_progress_percent(self) -> int:
        """0-100; 100 only once completed. Never lower than a value already reported."""
        if self.status is TaskStatus.COMPLETED:
            return 100
        if not self._started:
            return 0
        pct = max(0, min(99, int(self.progress())))
        if pct < self._progress_reported:
            _log.debug("Progress for %s dipped to %d%%, holding at %d%%",
                       self.description, pct, self._progress_reported)
            return self._progress_reported
        self._progress_reported = pct
        return pct

    # ── Helpers for subclasses ────────────────────────────────

    @property
    def world(self):
        return self.companion.world

    @property
    def inventory(self):
        return self.companion.inventory

    @property
    def position(self) -> BlockPos:
        return self.companion.actor.position

    def navigate_to(self, pos: BlockPos, speed: float = 1.0) -> bool:
        return self.companion.navigate_to(pos, speed)

    def is_in_reach(self, pos: BlockPos, reach: float) -> bool:
        return self.companion.is_in_reach(pos, reach)

    def say(self, message: str) -> bool:
        return self.companion.chat.say(message, ChatCategory.TASK)

    def warn(self, message: str) -> None:
        """Hazard or stuck notice; always delivered."""
        self.companion.chat.urgent(message)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.description!r} {self.status.value}>"


class PhasedTask(Task):
    """Task whose :meth:`tick` dispatches on an Enum phase.

    Each phase ``FOO`` is handled by ``_tick_foo()``, which returns the next
    phase (or the same one to stay). The stuck counter resets whenever the
    phase changes.
    """

    def __init__(self, companion: "Companion", description: str, initial_phase: Enum):
        super().__init__(companion, description)
        self.phase = initial_phase
        self.stuck_ticks = 0

    def tick(self) -> None:
        handler = getattr(self, f"_tick_{self.phase.name.lower()}")
        self.transition(handler())

    def transition(self, next_phase: Optional[Enum]) -> None:
        if next_phase is None or next_phase is self.phase:
            return
        _log.debug("%s: %s -> %s", self.task_name, self.phase.name, next_phase.name)
        self.phase = next_phase
        self.stuck_ticks = 0

    def bump_stuck(self, limit: int) -> bool:
        """Count one more tick without progress; ``True`` once ``limit`` is exceeded."""
        self.stuck_ticks += 1
        return self.stuck_ticks > limit
