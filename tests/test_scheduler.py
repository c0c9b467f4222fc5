"""Tests for ecoplanet.simulation.scheduler."""

from __future__ import annotations

import pytest

from ecoplanet.simulation.scheduler import TickScheduler


class FakeClock:
    """Monotonic clock advanced only by ``sleep``."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fired() -> list[int]:
    return []


@pytest.fixture
def scheduler(fired: list[int]) -> TickScheduler:
    return TickScheduler(lambda: fired.append(1), base_interval_ms=1000, floor_interval_ms=50)


class TestIntervals:
    """Interval is max(floor, base / speed)."""

    @pytest.mark.parametrize(
        ("speed", "interval"),
        [(1, 1000.0), (2, 500.0), (4, 250.0), (100, 50.0)],
    )
    def test_interval(self, scheduler: TickScheduler, speed: float, interval: float) -> None:
        scheduler.start(speed)
        assert scheduler.interval_ms == interval

    @pytest.mark.parametrize("speed", [0, -1])
    def test_rejects_non_positive_speed(self, scheduler: TickScheduler, speed: float) -> None:
        with pytest.raises(ValueError):
            scheduler.start(speed)
        with pytest.raises(ValueError):
            scheduler.set_speed(speed)


class TestAdvance:
    """Tick firing driven by reported wall time."""

    def test_not_started(self, scheduler: TickScheduler, fired: list[int]) -> None:
        assert not scheduler.advance(5000)
        assert fired == []

    def test_fires_once_interval_elapsed(self, scheduler: TickScheduler, fired: list[int]) -> None:
        scheduler.start(1)
        assert not scheduler.advance(600)
        assert scheduler.advance(400)
        assert fired == [1]
        assert scheduler.ticks_fired == 1

    def test_surplus_time_discarded(self, scheduler: TickScheduler, fired: list[int]) -> None:
        scheduler.start(1)
        assert scheduler.advance(3500)
        assert not scheduler.advance(900)
        assert len(fired) == 1

    def test_stop(self, scheduler: TickScheduler, fired: list[int]) -> None:
        scheduler.start(1)
        scheduler.stop()
        assert not scheduler.running
        assert not scheduler.advance(2000)
        assert fired == []

    def test_paused_outside_playing(self, fired: list[int]) -> None:
        playing = [False]
        scheduler = TickScheduler(lambda: fired.append(1), lambda: playing[0])
        scheduler.start(1)
        assert not scheduler.advance(5000)
        playing[0] = True
        assert not scheduler.advance(999)
        assert scheduler.advance(1)

    def test_speed_change_applies_after_next_tick(self, scheduler: TickScheduler) -> None:
        scheduler.start(1)
        scheduler.set_speed(4)
        assert scheduler.speed == 1
        assert not scheduler.advance(500)
        assert scheduler.advance(500)
        assert scheduler.speed == 4
        assert scheduler.interval_ms == 250
        assert scheduler.advance(250)

    def test_no_overlapping_ticks(self) -> None:
        calls: list[bool] = []

        def on_tick() -> None:
            calls.append(scheduler.advance(10_000))

        scheduler = TickScheduler(on_tick)
        scheduler.start(1)
        assert scheduler.advance(1000)
        assert calls == [False]
        assert scheduler.ticks_fired == 1

    def test_failing_tick_releases_guard(self) -> None:
        def boom() -> None:
            raise RuntimeError("tick failed")

        scheduler = TickScheduler(boom)
        scheduler.start(1)
        with pytest.raises(RuntimeError):
            scheduler.advance(1000)
        scheduler.on_tick = lambda: None
        assert scheduler.advance(1000)


class TestRun:
    """Blocking loop against a fake clock."""

    def test_runs_max_ticks(self, scheduler: TickScheduler, fired: list[int]) -> None:
        clock = FakeClock()
        scheduler.start(2)
        assert scheduler.run(3, clock=clock, sleep=clock.sleep) == 3
        assert len(fired) == 3
        assert clock.now == pytest.approx(1.5)

    def test_not_running(self, scheduler: TickScheduler) -> None:
        clock = FakeClock()
        assert scheduler.run(3, clock=clock, sleep=clock.sleep) == 0
