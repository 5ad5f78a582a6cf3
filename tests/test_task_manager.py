"""Tests for the Task lifecycle and TaskManager scheduling."""

from enum import Enum

import pytest

from mineagent.errors import PreconditionError, TaskError
from mineagent.tasks import PhasedTask, Task, TaskStatus


class ScriptedTask(Task):
    """Completes after ``ticks`` ticks; optionally raises from start or tick."""

    task_name = "Scripted"

    def __init__(self, companion, name="scripted", ticks=1, start_error=None, tick_error=None):
        super().__init__(companion, name)
        self.ticks_to_finish = ticks
        self.start_error = start_error
        self.tick_error = tick_error
        self.start_calls = 0
        self.tick_calls = 0
        self.cleanup_calls = 0

    def start(self):
        self.start_calls += 1
        if self.start_error is not None:
            raise self.start_error

    def tick(self):
        self.tick_calls += 1
        if self.tick_error is not None:
            raise self.tick_error
        if self.tick_calls >= self.ticks_to_finish:
            self.complete()

    def cleanup(self):
        self.cleanup_calls += 1

    def progress(self):
        return self.tick_calls * 100 // max(1, self.ticks_to_finish)


class NeverEndingTask(ScriptedTask):
    def tick(self):
        self.tick_calls += 1


class TestTaskLifecycle:
    """begin / do_tick / finish on a single task."""

    def test_begin_runs_start_once(self, sim):
        task = ScriptedTask(sim.companion)
        task.begin()
        task.begin()
        assert task.start_calls == 1
        assert task.status == TaskStatus.RUNNING
        assert task.started

    def test_terminal_status_is_sticky(self, sim):
        task = ScriptedTask(sim.companion)
        task.begin()
        task.complete()
        task.fail("too late")
        task.cancel()
        assert task.is_complete()
        assert task.fail_reason is None

    def test_finish_without_start_skips_cleanup(self, sim):
        task = ScriptedTask(sim.companion)
        task.cancel()
        task.finish()
        assert task.cleanup_calls == 0
        assert not task.cleaned_up

    def test_finish_runs_cleanup_exactly_once(self, sim):
        task = ScriptedTask(sim.companion)
        task.begin()
        task.do_tick()
        task.finish()
        task.finish()
        assert task.cleanup_calls == 1

    def test_precondition_error_fails_with_reason(self, sim):
        task = ScriptedTask(sim.companion, start_error=PreconditionError("No hub here."))
        task.begin()
        assert task.is_failed()
        assert task.fail_reason == "No hub here."

    def test_task_error_in_tick_fails(self, sim):
        task = ScriptedTask(sim.companion, tick_error=TaskError("Scripted", "wall collapsed"))
        task.begin()
        task.do_tick()
        assert task.is_failed()
        assert task.fail_reason == "Scripted error: wall collapsed"

    def test_unexpected_error_becomes_failure(self, sim):
        task = ScriptedTask(sim.companion, tick_error=RuntimeError("boom"))
        task.begin()
        task.do_tick()
        assert task.is_failed()
        assert task.fail_reason == "Unexpected error: boom"

    def test_progress_percent_bounds(self, sim):
        task = ScriptedTask(sim.companion, ticks=2)
        assert task.get_progress_percent() == 0
        task.begin()
        task.do_tick()
        assert task.get_progress_percent() == 50
        task.do_tick()
        assert task.get_progress_percent() == 100

    def test_progress_never_reports_100_before_completion(self, sim):
        task = NeverEndingTask(sim.companion, ticks=1)
        task.begin()
        task.do_tick()
        task.do_tick()
        assert task.get_progress_percent() == 99

    def test_progress_does_not_go_backwards(self, sim):
        task = NeverEndingTask(sim.companion, ticks=4)
        task.begin()
        task.do_tick()
        task.do_tick()
        assert task.get_progress_percent() == 50
        task.tick_calls = 1
        assert task.get_progress_percent() == 50
        task.tick_calls = 3
        assert task.get_progress_percent() == 75

    def test_timeout_fails_task(self, short_timeout_sim):
        task = NeverEndingTask(short_timeout_sim.companion)
        task.begin()
        for _ in range(3):
            task.do_tick()
        assert task.status == TaskStatus.RUNNING
        task.do_tick()
        assert task.is_failed()
        assert task.fail_reason == "Task timed out after 3 ticks"


class TestPhasedTask:
    """Phase dispatch and stuck counting."""

    def test_transition_resets_stuck_counter(self, sim):
        class Step(Enum):
            ONE = 1
            TWO = 2

        class TwoStep(PhasedTask):
            def start(self):
                pass

            def _tick_one(self):
                return Step.ONE if not self.bump_stuck(2) else Step.TWO

            def _tick_two(self):
                self.complete()
                return Step.TWO

        task = TwoStep(sim.companion, "two step", Step.ONE)
        task.begin()
        task.do_tick()
        task.do_tick()
        assert task.phase is Step.ONE
        assert task.stuck_ticks == 2
        task.do_tick()
        assert task.phase is Step.TWO
        assert task.stuck_ticks == 0
        task.do_tick()
        assert task.is_complete()


class TestTaskManager:
    """Queueing, promotion, cancellation."""

    def test_promotes_next_task_in_same_tick(self, sim):
        manager = sim.companion.task_manager
        first = ScriptedTask(sim.companion, "first", ticks=1)
        second = ScriptedTask(sim.companion, "second", ticks=5)
        manager.queue_task(first)
        manager.queue_task(second)

        manager.tick()

        assert first.is_complete()
        assert first.cleanup_calls == 1
        assert manager.peek_active_task() is second
        assert second.started
        assert second.tick_calls == 0

    def test_failure_does_not_stop_queue(self, sim):
        manager = sim.companion.task_manager
        broken = ScriptedTask(sim.companion, "broken", start_error=RuntimeError("bad start"))
        after = ScriptedTask(sim.companion, "after", ticks=2)
        manager.queue_task(broken)
        manager.queue_task(after)

        manager.tick()
        assert broken.is_failed()
        assert broken.cleanup_calls == 1
        assert manager.peek_active_task() is after
        assert after.tick_calls == 1

        manager.tick()
        assert after.is_complete()
        assert manager.is_idle()

    def test_finished_history(self, sim):
        manager = sim.companion.task_manager
        manager.queue_task(ScriptedTask(sim.companion, "ok"))
        manager.queue_task(ScriptedTask(sim.companion, "bad", start_error=PreconditionError("nope")))
        manager.tick()
        manager.tick()
        assert manager.finished_tasks() == [
            ("ok", TaskStatus.COMPLETED, None),
            ("bad", TaskStatus.FAILED, "nope"),
        ]

    def test_queue_task_first_runs_before_queue(self, sim):
        manager = sim.companion.task_manager
        active = ScriptedTask(sim.companion, "active", ticks=2)
        later = ScriptedTask(sim.companion, "later")
        urgent = ScriptedTask(sim.companion, "urgent")
        manager.queue_task(active)
        manager.queue_task(later)
        manager.tick()
        manager.queue_task_first(urgent)
        assert [t.description for t in manager.queued_tasks()] == ["urgent", "later"]

        manager.tick()
        assert active.is_complete()
        assert manager.peek_active_task() is urgent

    def test_cancel_all(self, sim):
        manager = sim.companion.task_manager
        tasks = [ScriptedTask(sim.companion, f"t{i}", ticks=10) for i in range(3)]
        for t in tasks:
            manager.queue_task(t)
        manager.tick()

        assert manager.cancel_all() == 3
        assert tasks[0].is_cancelled()
        assert tasks[0].cleanup_calls == 1
        assert tasks[1].cleanup_calls == 0
        assert manager.is_idle()
        assert manager.peek_active_task() is None

    def test_cancel_active_keeps_queue(self, sim):
        manager = sim.companion.task_manager
        manager.queue_task(ScriptedTask(sim.companion, "a", ticks=10))
        manager.queue_task(ScriptedTask(sim.companion, "b"))
        manager.tick()
        assert manager.cancel_active() is True
        assert manager.get_queue_size() == 1
        assert manager.cancel_active() is False

    def test_status_summary(self, sim):
        manager = sim.companion.task_manager
        assert manager.get_status_summary() == ""
        manager.queue_task(ScriptedTask(sim.companion, "dig", ticks=4))
        manager.queue_task(ScriptedTask(sim.companion, "haul"))
        manager.tick()
        assert manager.get_status_summary() == "dig — 25% | 1 task(s) queued"

    def test_idle_manager_tick_is_noop(self, sim):
        manager = sim.companion.task_manager
        manager.tick()
        assert manager.ticks == 0
        assert not manager.has_tasks()

    def test_chat_announces_start_and_finish(self, sim):
        manager = sim.companion.task_manager
        manager.queue_task(ScriptedTask(sim.companion, "sweep"))
        manager.tick()
        messages = sim.companion.chat.messages()
        assert "Starting: sweep" in messages
        assert "Done: sweep" in messages

    @pytest.mark.parametrize("ticks", [1, 3])
    def test_simulation_runs_until_idle(self, sim, ticks):
        sim.companion.task_manager.queue_task(ScriptedTask(sim.companion, "x", ticks=ticks))
        ran = sim.run(max_ticks=50)
        assert ran == ticks
        assert sim.companion.task_manager.is_idle()
