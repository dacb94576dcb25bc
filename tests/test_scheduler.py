import logging
import threading
from datetime import timedelta

from conftest import T0
from stop_it.config import DaemonSettings
from stop_it.models import FocusObservation, Phase, Source
from stop_it.scheduler import PomodoroScheduler
from stop_it.tracker import ActivityTracker


def make_scheduler(clock, **overrides):
    tracker = ActivityTracker(clock=clock)
    return tracker, PomodoroScheduler(tracker, DaemonSettings(**overrides))


def test_starts_in_work_at_session_start(clock):
    _, scheduler = make_scheduler(clock)
    assert scheduler.state.phase is Phase.WORK
    assert scheduler.state.phase_started_at == T0


def test_work_to_break_at_twenty_five_minutes(clock):
    _, scheduler = make_scheduler(clock)

    assert scheduler.tick(T0 + timedelta(minutes=24, seconds=59)) is None
    assert scheduler.state.phase is Phase.WORK

    now = T0 + timedelta(minutes=25)
    transition = scheduler.tick(now)
    assert transition is not None
    assert transition.finished is Phase.WORK
    assert transition.started is Phase.BREAK
    assert transition.interval == timedelta(minutes=25)
    assert transition.message == "Work session complete! Time for a 5-minute break."
    assert scheduler.state.phase is Phase.BREAK
    assert scheduler.state.phase_started_at == now


def test_break_to_work_at_five_minutes(clock):
    _, scheduler = make_scheduler(clock)
    break_start = T0 + timedelta(minutes=25)
    scheduler.tick(break_start)

    assert scheduler.tick(break_start + timedelta(minutes=4, seconds=59)) is None
    transition = scheduler.tick(break_start + timedelta(minutes=5))
    assert transition is not None
    assert transition.finished is Phase.BREAK
    assert transition.snapshot is None
    assert transition.message == "Break is over! Starting 25-minute work session."
    assert scheduler.state.phase is Phase.WORK


def test_work_transition_carries_domain_breakdown(clock):
    tracker, scheduler = make_scheduler(clock, work_duration=timedelta(minutes=1))
    tracker.record(FocusObservation("a.com", "a", Source.RELAY))
    clock.advance(60)

    transition = scheduler.tick(clock())
    assert transition.snapshot is not None
    assert transition.snapshot.totals_at(transition.timestamp) == {"a.com": timedelta(seconds=60)}


def test_remaining_counts_down(clock):
    _, scheduler = make_scheduler(clock)
    assert scheduler.remaining(T0 + timedelta(minutes=20)) == timedelta(minutes=5)
    assert scheduler.remaining(T0 + timedelta(hours=1)) == timedelta(0)


def test_listeners_are_notified(clock):
    _, scheduler = make_scheduler(clock)
    seen = []
    scheduler.subscribe(seen.append)
    scheduler.tick(T0 + timedelta(minutes=25))
    assert [t.started for t in seen] == [Phase.BREAK]


def test_run_until_stopped_exits_when_event_is_set(clock):
    _, scheduler = make_scheduler(clock, tick_interval=timedelta(milliseconds=10))
    stop = threading.Event()
    thread = threading.Thread(target=scheduler.run_until_stopped, args=(stop,))
    thread.start()
    stop.set()
    thread.join(timeout=2)
    assert not thread.is_alive()


def test_startup_line_shows_fractional_minutes(clock, caplog):
    _, scheduler = make_scheduler(
        clock,
        work_duration=timedelta(seconds=30),
        break_duration=timedelta(seconds=6),
        tick_interval=timedelta(milliseconds=10),
    )
    stop = threading.Event()
    stop.set()
    with caplog.at_level(logging.INFO, logger="stop_it.scheduler"):
        scheduler.run_until_stopped(stop)
    assert "Starting in WORK mode (0.5 min work / 0.1 min break)" in caplog.text
