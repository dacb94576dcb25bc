"""Desktop notifications for Pomodoro transitions and domain switches."""

from __future__ import annotations

import logging
import queue
import threading
from typing import Callable, Optional

from plyer import notification as plyer_notification  # type: ignore[import-untyped]

from .models import DomainSwitched, PhaseTransition, TrackerEvent

logger = logging.getLogger(__name__)

APP_NAME = "Stop It"
TITLE = "Stop It - Pomodoro Alert"

Deliver = Callable[[str, str], None]

_STOP = object()


def _plyer_deliver(title: str, message: str) -> None:
    plyer_notification.notify(title=title, message=message, app_name=APP_NAME, timeout=0)


class Notifier:
    """Delivers notifications from a single worker thread; failures are only logged."""

    def __init__(
        self,
        deliver: Optional[Deliver] = None,
        notify_domain_switches: bool = False,
        background: bool = True,
    ) -> None:
        self._deliver = deliver or _plyer_deliver
        self._notify_domain_switches = notify_domain_switches
        self._background = background
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._lock = threading.Lock()
        self._worker: Optional[threading.Thread] = None
        self._closed = False

    def handle(self, event: TrackerEvent) -> None:
        if isinstance(event, PhaseTransition):
            self.notify(TITLE, event.message)
        elif isinstance(event, DomainSwitched) and self._notify_domain_switches:
            if event.new_domain is not None:
                self.notify(APP_NAME, f"Now on {event.new_domain}")

    def notify(self, title: str, message: str) -> None:
        if not self._background:
            self._send(title, message)
            return
        with self._lock:
            if self._closed:
                logger.debug("Notifier closed; dropping %r", message)
                return
            if self._worker is None:
                self._worker = threading.Thread(
                    target=self._run, name="stop-it-notify", daemon=True
                )
                self._worker.start()
            self._queue.put((title, message))

    def close(self, timeout: float = 2.0) -> None:
        """Deliver what is queued, then stop the worker."""
        with self._lock:
            self._closed = True
            worker = self._worker
            self._worker = None
            if worker is not None:
                self._queue.put(_STOP)
        if worker is not None:
            worker.join(timeout=timeout)
            if worker.is_alive():
                logger.warning("Notification worker did not finish within %.1fs.", timeout)

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                return
            title, message = item  # type: ignore[misc]
            self._send(title, message)

    def _send(self, title: str, message: str) -> None:
        try:
            self._deliver(title, message)
        except Exception:
            logger.warning("Failed to send desktop notification: %s", message, exc_info=True)
