"""
Kaiju Clash - Scheduler Tests
"""

import threading

from kaiju.runtime.scheduler import POLL_INTERVAL_MS, Scheduler


class TestClock:
    def test_runs_in_due_order(self):
        scheduler = Scheduler()
        ran = []
        scheduler.call_later(300, lambda: ran.append("c"))
        scheduler.call_later(100, lambda: ran.append("a"))
        scheduler.call_later(100, lambda: ran.append("b"))

        assert scheduler.advance(200) == 2
        assert ran == ["a", "b"]
        assert scheduler.now() == 200

        scheduler.advance(100)
        assert ran == ["a", "b", "c"]

    def test_callback_scheduling_more_work(self):
        scheduler = Scheduler()
        ran = []

        def first():
            ran.append(scheduler.now())
            scheduler.call_later(50, lambda: ran.append(scheduler.now()))

        scheduler.call_later(100, first)
        scheduler.advance(150)
        assert ran == [100, 150]

    def test_negative_delay_runs_now(self):
        scheduler = Scheduler(start_ms=1000)
        task = scheduler.call_later(-5, lambda: None)
        assert task.due == 1000

    def test_cancel(self):
        scheduler = Scheduler()
        ran = []
        task = scheduler.call_later(10, lambda: ran.append(1))
        task.cancel()
        assert scheduler.pending == 0
        scheduler.advance(100)
        assert ran == []

    def test_cancel_all(self):
        scheduler = Scheduler()
        scheduler.call_later(10, lambda: None)
        scheduler.call_later(20, lambda: None)
        scheduler.cancel_all()
        assert scheduler.next_due() is None


class TestRunUntilIdle:
    def test_jumps_between_tasks(self):
        scheduler = Scheduler()
        ran = []
        scheduler.call_later(5000, lambda: ran.append("late"))
        scheduler.call_later(10, lambda: ran.append("early"))
        assert scheduler.run_until_idle() == 2
        assert ran == ["early", "late"]
        assert scheduler.now() == 5000

    def test_stops_at_limit(self):
        scheduler = Scheduler()
        ran = []
        scheduler.call_later(100, lambda: ran.append(1))
        scheduler.call_later(10_000, lambda: ran.append(2))
        scheduler.run_until_idle(limit_ms=1000)
        assert ran == [1]
        assert scheduler.pending == 1


class TestPause:
    def test_paused_tasks_are_deferred(self):
        paused = {"value": True}
        scheduler = Scheduler(is_paused=lambda: paused["value"])
        ran = []
        scheduler.call_later(100, lambda: ran.append(scheduler.now()))

        scheduler.advance(1000)
        assert ran == []
        assert scheduler.next_due() <= 1000 + POLL_INTERVAL_MS

        paused["value"] = False
        scheduler.advance(POLL_INTERVAL_MS)
        assert len(ran) == 1

    def test_unpausable_tasks_still_run(self):
        scheduler = Scheduler(is_paused=lambda: True)
        ran = []
        scheduler.call_later(100, lambda: ran.append("ui"), pausable=False)
        scheduler.call_later(100, lambda: ran.append("game"))
        scheduler.advance(500)
        assert ran == ["ui"]

    def test_run_until_idle_stalls_while_paused(self):
        scheduler = Scheduler(is_paused=lambda: True)
        scheduler.call_later(100, lambda: None)
        assert scheduler.run_until_idle() == 0
        assert scheduler.pending == 1


class TestRunForever:
    def test_stops_on_event(self):
        scheduler = Scheduler()
        stop = threading.Event()
        ran = []
        scheduler.call_later(0, lambda: (ran.append(1), stop.set()))

        worker = threading.Thread(target=scheduler.run_forever, args=(stop,), kwargs={"tick_ms": 1})
        worker.start()
        worker.join(timeout=5)

        assert not worker.is_alive()
        assert ran == [1]

    def test_loop_survives_callback_error(self, caplog):
        scheduler = Scheduler()
        stop = threading.Event()

        def broken():
            raise RuntimeError("boom")

        scheduler.call_later(0, broken)
        scheduler.call_later(0, stop.set)

        worker = threading.Thread(target=scheduler.run_forever, args=(stop,), kwargs={"tick_ms": 1})
        worker.start()
        worker.join(timeout=5)

        assert not worker.is_alive()
        assert "Scheduler loop error" in caplog.text
