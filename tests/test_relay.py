import json
from datetime import timedelta

from fastapi.testclient import TestClient

from stop_it.collector import CompositorPoller
from stop_it.collector import ActiveWindow
from stop_it.relay import RelayHandler, create_app
from stop_it.scheduler import PomodoroScheduler
from stop_it.tracker import ActivityTracker

TAB_UPDATE = {
    "type": "tab_update",
    "url": "https://stackoverflow.com/q",
    "title": "Q",
    "domain": None,
    "timestamp": 1000,
}


class StaticProbe:
    def __init__(self, title):
        self.title = title

    def get_active_window(self):
        return ActiveWindow(title=self.title)


def test_null_domain_is_rederived_from_url(clock):
    via_relay = ActivityTracker(clock=clock)
    ack = RelayHandler(via_relay).handle_payload(json.dumps(TAB_UPDATE))

    via_poller = ActivityTracker(clock=clock)
    CompositorPoller(via_poller, StaticProbe("Q - stackoverflow.com")).sample_once()

    assert ack.success
    assert via_relay.snapshot() == via_poller.snapshot()
    assert via_relay.snapshot().current_domain == "stackoverflow.com"


def test_upstream_domain_is_normalized(clock):
    tracker = ActivityTracker(clock=clock)
    payload = dict(TAB_UPDATE, domain="WWW.Example.com", url="https://other.org/")
    RelayHandler(tracker).handle_payload(json.dumps(payload))
    assert tracker.snapshot().current_domain == "example.com"


def test_malformed_payloads_get_negative_ack(clock):
    tracker = ActivityTracker(clock=clock)
    handler = RelayHandler(tracker)

    for raw in ["not json", "[]", json.dumps({"type": "tab_update"}), json.dumps(dict(TAB_UPDATE, type="ping"))]:
        ack = handler.handle_payload(raw)
        assert ack.success is False
        assert ack.message.startswith("Parse error")

    assert tracker.snapshot().current_domain is None


def test_ack_serialization_omits_missing_message(clock):
    handler = RelayHandler(ActivityTracker(clock=clock))
    ack = handler.handle_payload(json.dumps(TAB_UPDATE))
    assert json.loads(ack.to_json()) == {"success": True, "message": "Message received"}


def test_websocket_connection_survives_bad_message(clock):
    tracker = ActivityTracker(clock=clock)
    client = TestClient(create_app(tracker))

    with client.websocket_connect("/") as websocket:
        websocket.send_text("{broken")
        assert websocket.receive_json()["success"] is False

        websocket.send_text(json.dumps(TAB_UPDATE))
        assert websocket.receive_json() == {"success": True, "message": "Message received"}

    assert tracker.snapshot().current_domain == "stackoverflow.com"


def test_multiple_connections_feed_one_tracker(clock):
    tracker = ActivityTracker(clock=clock)
    client = TestClient(create_app(tracker))

    with client.websocket_connect("/") as first, client.websocket_connect("/") as second:
        first.send_text(json.dumps(dict(TAB_UPDATE, url="https://a.com/")))
        first.receive_json()
        clock.advance(10)
        second.send_text(json.dumps(dict(TAB_UPDATE, url="https://b.com/")))
        second.receive_json()

    snapshot = tracker.snapshot()
    assert snapshot.current_domain == "b.com"
    assert snapshot.domain_totals == {"a.com": timedelta(seconds=10)}


def test_status_endpoint_reports_totals_and_phase(clock):
    tracker = ActivityTracker(clock=clock)
    scheduler = PomodoroScheduler(tracker)
    RelayHandler(tracker).handle_payload(json.dumps(TAB_UPDATE))
    clock.advance(90)

    response = TestClient(create_app(tracker, scheduler)).get("/api/status")
    assert response.status_code == 200
    body = response.json()
    assert body["current_domain"] == "stackoverflow.com"
    assert body["domains"] == {"stackoverflow.com": 90}
    assert body["session_seconds"] == 90
    assert body["phase"] == "WORK"
    assert body["phase_remaining_seconds"] == 25 * 60 - 90
