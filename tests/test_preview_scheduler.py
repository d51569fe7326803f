from __future__ import annotations

from mdpreview.core.scheduler import PreviewScheduler, TaskPriority

from preview_fakes import ManualDefer


def _scheduler():
    defer = ManualDefer()
    return PreviewScheduler(defer, position_delay_ms=0, refresh_delay_ms=60), defer


def test_requests_of_one_class_coalesce_to_the_latest() -> None:
    scheduler, defer = _scheduler()
    ran = []
    for value in range(3):
        scheduler.schedule(TaskPriority.REFRESH, lambda value=value: ran.append(value))
    assert len(defer.timers) == 1
    assert scheduler.has_pending(TaskPriority.REFRESH)
    defer.run_all()
    assert ran == [2]
    assert not scheduler.has_pending()


def test_position_runs_before_refresh() -> None:
    scheduler, defer = _scheduler()
    ran = []
    scheduler.schedule(TaskPriority.REFRESH, lambda: ran.append("refresh"))
    scheduler.schedule(TaskPriority.POSITION, lambda: ran.append("position"))
    assert sorted(delay for delay, _ in defer.timers) == [0, 60]
    defer.run_all()
    assert ran == ["position", "refresh"]


def test_timer_firing_during_a_task_is_rearmed() -> None:
    scheduler, defer = _scheduler()
    ran = []

    def position_task():
        ran.append("position")
        # A nested event loop lets the refresh timer fire now.
        defer.run_next()
        assert ran == ["position"]

    scheduler.schedule(TaskPriority.REFRESH, lambda: ran.append("refresh"))
    scheduler.schedule(TaskPriority.POSITION, position_task)
    defer.run_next()
    assert scheduler.has_pending(TaskPriority.REFRESH)
    assert defer.timers[0][0] == 60
    defer.run_all()
    assert ran == ["position", "refresh"]


def test_failing_task_does_not_stop_the_scheduler() -> None:
    scheduler, defer = _scheduler()
    ran = []

    def broken():
        raise RuntimeError("render crashed")

    scheduler.schedule(TaskPriority.POSITION, broken)
    scheduler.schedule(TaskPriority.REFRESH, lambda: ran.append("refresh"))
    defer.run_all()
    assert ran == ["refresh"]
    assert not scheduler.busy


def test_run_exclusive_waits_for_the_running_task() -> None:
    scheduler, defer = _scheduler()
    ran = []

    def refresh():
        scheduler.run_exclusive(lambda: ran.append("load finished"))
        ran.append("refresh")

    scheduler.schedule(TaskPriority.REFRESH, refresh)
    defer.run_all()
    assert ran == ["refresh", "load finished"]

    scheduler.run_exclusive(lambda: ran.append("idle"))
    assert ran[-1] == "idle"


def test_cancel_all_drops_pending_and_future_work() -> None:
    scheduler, defer = _scheduler()
    ran = []
    scheduler.schedule(TaskPriority.REFRESH, lambda: ran.append("refresh"))
    scheduler.cancel_all()
    scheduler.schedule(TaskPriority.POSITION, lambda: ran.append("position"))
    scheduler.run_exclusive(lambda: ran.append("exclusive"))
    defer.run_all()
    assert ran == []
