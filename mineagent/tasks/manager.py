"""TaskManager: single-active FIFO scheduler ticked once per simulation step."""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING, Deque, List, Optional, Tuple

from ..chat import ChatCategory
from .base import Task, TaskStatus

if TYPE_CHECKING:
    from ..companion import Companion

_log = logging.getLogger(__name__)

# Finished tasks remembered for status displays (ring buffer)
_MAX_FINISHED = 50


class TaskManager:
    """Owns the pending queue and the one active task of a companion.

    Exactly one task ticks per :meth:`tick`. When the active task reaches a
    terminal status it is cleaned up and the head of the queue is started in
    the same call, so pending work never waits an idle tick.
    """

    def __init__(self, companion: "Companion", announce_interval: int = 200):
        self.companion = companion
        self.announce_interval = announce_interval
        self._queue: Deque[Task] = deque()
        self._active: Optional[Task] = None
        self._ticks_since_announce = 0
        self._last_announced: Optional[int] = None
        self._finished: Deque[Tuple[str, TaskStatus, Optional[str]]] = deque(maxlen=_MAX_FINISHED)
        self.ticks = 0

    # ── Queueing ──────────────────────────────────────────────

    def queue_task(self, task: Task) -> None:
        self._queue.append(task)
        _log.info("Queued task: %s (queue size %d)", task.description, len(self._queue))

    def queue_task_first(self, task: Task) -> None:
        """Put ``task`` at the head of the queue; it starts after the active task."""
        self._queue.appendleft(task)
        _log.info("Queued task first: %s", task.description)

    # ── Ticking ───────────────────────────────────────────────

    def tick(self) -> None:
        if self._active is None:
            if not self._queue:
                return
            self._promote()
            if self._active is None:
                return

        self.ticks += 1
        task = self._active
        task.do_tick()
        if task.is_done():
            self._retire(task)
            self._promote()
        else:
            self._maybe_announce(task)

    def _promote(self) -> None:
        while self._queue:
            task = self._queue.popleft()
            self._active = task
            self._ticks_since_announce = 0
            self._last_announced = None
            self._say(f"Starting: {task.description}")
            task.begin()
            if not task.is_done():
                return
            self._retire(task)

    def _retire(self, task: Task) -> None:
        task.finish()
        if self._active is task:
            self._active = None
        self._finished.append((task.description, task.status, task.fail_reason))
        if task.is_complete():
            self._say(f"Done: {task.description}")
        elif task.is_failed():
            self._say(f"Failed: {task.description} — {task.fail_reason}")
        elif task.is_cancelled():
            self._say(f"Cancelled: {task.description}")

    def _maybe_announce(self, task: Task) -> None:
        self._ticks_since_announce += 1
        if self._ticks_since_announce < self.announce_interval:
            return
        self._ticks_since_announce = 0
        pct = task.get_progress_percent()
        if pct != self._last_announced:
            self._last_announced = pct
            self.companion.chat.say(f"{task.description}: {pct}% done", ChatCategory.TASK)

    def _say(self, message: str) -> None:
        self.companion.chat.say(message, ChatCategory.STATUS)

    # ── Cancellation ──────────────────────────────────────────

    def cancel_active(self) -> bool:
        """Cancel and clean up the active task only; queued tasks stay."""
        task = self._active
        if task is None:
            return False
        task.cancel()
        self._retire(task)
        self.companion.actor.stop()
        return True

    def cancel_all(self) -> int:
        """Cancel the active task and drop the queue. Returns how many tasks were discarded."""
        discarded = len(self._queue)
        self._queue.clear()
        if self.cancel_active():
            discarded += 1
        else:
            self.companion.actor.stop()
        if discarded:
            _log.info("Cancelled %d task(s)", discarded)
        return discarded

    # ── Queries ───────────────────────────────────────────────

    def has_tasks(self) -> bool:
        return self._active is not None or bool(self._queue)

    def is_idle(self) -> bool:
        return not self.has_tasks()

    def peek_active_task(self) -> Optional[Task]:
        return self._active

    def get_queue_size(self) -> int:
        return len(self._queue)

    def queued_tasks(self) -> List[Task]:
        return list(self._queue)

    def finished_tasks(self) -> List[Tuple[str, TaskStatus, Optional[str]]]:
        return list(self._finished)

    def get_status_summary(self) -> str:
        task = self._active
        if task is None:
            return ""
        summary = f"{task.description} — {task.get_progress_percent()}%"
        if self._queue:
            summary += f" | {len(self._queue)} task(s) queued"
        return summary
