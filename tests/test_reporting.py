from datetime import timedelta

from conftest import T0
from stop_it.models import FocusObservation, Source
from stop_it.reporting import SessionReport, format_duration, sort_totals
from stop_it.tracker import ActivityTracker


def test_end_to_end_session_report(clock):
    tracker = ActivityTracker(clock=clock)
    tracker.record(FocusObservation("a.com", "A", Source.COMPOSITOR))
    clock.advance(60)
    tracker.record(FocusObservation("b.com", "B", Source.RELAY))
    now = clock.advance(90)

    report = SessionReport.from_snapshot(tracker.snapshot(), now)

    assert report.session_duration == timedelta(seconds=150)
    assert report.entries == [
        ("b.com", timedelta(seconds=90)),
        ("a.com", timedelta(seconds=60)),
    ]
    rendered = report.render()
    assert "Session duration: 00:02:30" in rendered
    assert rendered.index("b.com") < rendered.index("a.com")


def test_flush_does_not_mutate_tracker(clock):
    tracker = ActivityTracker(clock=clock)
    tracker.record(FocusObservation("a.com", "A", Source.COMPOSITOR))
    SessionReport.from_snapshot(tracker.snapshot(), T0 + timedelta(seconds=30))
    assert tracker.snapshot().domain_totals == {}


def test_ties_are_broken_by_domain_name():
    totals = {
        "zeta.com": timedelta(seconds=5),
        "alpha.com": timedelta(seconds=5),
        "mid.com": timedelta(seconds=9),
    }
    assert [domain for domain, _ in sort_totals(totals)] == ["mid.com", "alpha.com", "zeta.com"]


def test_empty_session_renders_placeholder(clock):
    tracker = ActivityTracker(clock=clock)
    report = SessionReport.from_snapshot(tracker.snapshot(), T0)
    assert report.entries == []
    assert "No domains tracked" in report.render()


def test_format_duration():
    assert format_duration(0) == "00:00:00"
    assert format_duration(3725.4) == "01:02:05"
