"""Wires event sources, tracker, scheduler and collaborators into one daemon."""

from __future__ import annotations

import logging
import signal
import threading
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Callable, Optional

from .activity_log import ActivityLog, ActivityLogError
from .collector import CompositorPoller, HyprlandActiveWindowProbe
from .config import DaemonSettings, IngestionMode
from .models import DomainSwitched, Phase, PhaseTransition
from .native_messaging import serve_once
from .notifier import Notifier
from .relay import RelayAck, RelayHandler, create_app
from .reporting import SessionReport
from .scheduler import PomodoroScheduler
from .server_runner import RelayBindError, RelayServer
from .tracker import ActivityTracker, Clock

logger = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """A resource the daemon needs could not be acquired."""


class Daemon:
    """Runs the configured event sources and the Pomodoro scheduler until stopped."""

    def __init__(
        self,
        settings: DaemonSettings,
        *,
        mode: IngestionMode = IngestionMode.POLLER,
        log_path: Optional[Path] = None,
        clock: Clock = datetime.now,
        probe: Optional[HyprlandActiveWindowProbe] = None,
        notifier: Optional[Notifier] = None,
        echo: Callable[[str], None] = print,
    ) -> None:
        if mode is IngestionMode.NATIVE:
            raise ValueError("native mode is single-shot; use run_native_once()")
        self.settings = settings
        self.mode = mode
        self.tracker = ActivityTracker(clock=clock)
        self.scheduler = PomodoroScheduler(self.tracker, settings)
        self.activity_log = ActivityLog(log_path)
        self.notifier = notifier or Notifier(
            notify_domain_switches=settings.notify_domain_switches
        )
        self._probe = probe or HyprlandActiveWindowProbe(timeout=settings.query_timeout)
        self._echo = echo
        self._stop_event = threading.Event()
        self._threads: list[threading.Thread] = []
        self._relay: Optional[RelayServer] = None
        self._report_lock = threading.Lock()
        self._report: Optional[SessionReport] = None

        for listener in (self.activity_log.handle, self.notifier.handle, self._announce_switch):
            self.tracker.subscribe(listener)
        for listener in (
            self.activity_log.handle,
            self.notifier.handle,
            self._announce_transition,
        ):
            self.scheduler.subscribe(listener)

    def start(self) -> None:
        try:
            self.activity_log.open()
        except ActivityLogError as exc:
            raise StartupError(str(exc)) from exc
        self.activity_log.session_started(self.tracker.session_started_at)

        if self.mode.uses_relay:
            relay = RelayServer(
                create_app(self.tracker, self.scheduler),
                host=self.settings.relay_host,
                port=self.settings.relay_port,
            )
            try:
                relay.start()
            except RelayBindError as exc:
                raise StartupError(str(exc)) from exc
            self._relay = relay

        if self.mode.uses_poller:
            poller = CompositorPoller(
                self.tracker, self._probe, interval=self.settings.poll_interval
            )
            self._spawn("stop-it-poller", poller.run_until_stopped)
        self._spawn("stop-it-pomodoro", self.scheduler.run_until_stopped)

    def request_stop(self) -> None:
        self._stop_event.set()

    def run(self) -> SessionReport:
        """Start, block until interrupted, then shut down and report."""
        self.start()
        restore = self._install_signal_handlers()
        try:
            while not self._stop_event.wait(0.5):
                pass
        except KeyboardInterrupt:
            logger.info("Interrupted; shutting down.")
        finally:
            restore()
        return self.shutdown()

    def shutdown(self) -> SessionReport:
        """Stop every task and produce the final report exactly once."""
        with self._report_lock:
            if self._report is not None:
                return self._report
            self._stop_event.set()
            if self._relay is not None:
                self._relay.stop()
                self._relay = None
            for thread in self._threads:
                thread.join(timeout=self.settings.query_timeout.total_seconds() + 2.0)
                if thread.is_alive():
                    logger.warning("Thread %s did not stop in time.", thread.name)
            self._threads.clear()
            self.notifier.close()

            report = SessionReport.from_snapshot(self.tracker.snapshot(), self.tracker.now())
            self._report = report
        self._echo(report.render())
        self.activity_log.session_report(report)
        return report

    def _spawn(self, name: str, target: Callable[[threading.Event], None]) -> None:
        thread = threading.Thread(target=target, args=(self._stop_event,), name=name, daemon=True)
        self._threads.append(thread)
        thread.start()

    def _install_signal_handlers(self) -> Callable[[], None]:
        if threading.current_thread() is not threading.main_thread():
            return lambda: None
        previous = signal.getsignal(signal.SIGTERM)

        def _on_sigterm(signum, frame) -> None:
            logger.info("Received signal %d; shutting down.", signum)
            self.request_stop()

        signal.signal(signal.SIGTERM, _on_sigterm)
        return lambda: signal.signal(signal.SIGTERM, previous)

    def _announce_switch(self, event: DomainSwitched) -> None:
        if event.new_domain is not None:
            logger.info("Switched to: %s", event.new_domain)
        elif event.old_domain is not None:
            logger.info("Left browser (no domain detected)")

    def _announce_transition(self, event: PhaseTransition) -> None:
        self._echo(f"\n\U0001f514 {event.message}")
        if event.finished is Phase.WORK and event.snapshot is not None:
            self._echo(SessionReport.from_snapshot(event.snapshot, event.timestamp).render())
        self._echo(f"{event.started.emoji} Switched to {event.started.value} mode")


def run_native_once(
    stdin: BinaryIO,
    stdout: BinaryIO,
    log_path: Optional[Path] = None,
) -> Optional[RelayAck]:
    """Answer a single native-messaging request from the browser."""
    activity_log = ActivityLog(log_path)
    try:
        activity_log.open()
    except ActivityLogError as exc:
        raise StartupError(str(exc)) from exc
    tracker = ActivityTracker()
    tracker.subscribe(activity_log.handle)
    return serve_once(RelayHandler(tracker), stdin, stdout)
