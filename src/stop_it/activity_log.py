"""Append-only, human-readable activity log."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional

from .models import DomainSwitched, PhaseTransition, TrackerEvent
from .reporting import SessionReport

logger = logging.getLogger(__name__)


class ActivityLogError(OSError):
    """The activity log location could not be prepared."""


class ActivityLog:
    """Writes one timestamped line per session event to a text file."""

    def __init__(self, path: Optional[Path]) -> None:
        self.path = Path(path) if path is not None else None
        self._lock = threading.Lock()

    def open(self) -> None:
        """Create the log directory; failure here is fatal to startup."""
        if self.path is None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ActivityLogError(
                f"Cannot create log directory {self.path.parent}: {exc}"
            ) from exc

    def session_started(self, started_at: datetime) -> None:
        self.write(f"=== Session started at {started_at:%Y-%m-%d %H:%M:%S} ===")

    def handle(self, event: TrackerEvent) -> None:
        if isinstance(event, DomainSwitched):
            if event.new_domain is not None:
                self.write(f"[{event.timestamp:%H:%M:%S}] Switched to: {event.new_domain}")
            elif event.old_domain is not None:
                self.write(
                    f"[{event.timestamp:%H:%M:%S}] Left browser (no domain detected)"
                )
        elif isinstance(event, PhaseTransition):
            self.write(f"\U0001f514 {event.message}")
            if event.snapshot is not None:
                self.write(SessionReport.from_snapshot(event.snapshot, event.timestamp).render())
            self.write(
                f"[{event.timestamp:%H:%M:%S}] Switched to {event.started.value} mode"
            )

    def session_report(self, report: SessionReport) -> None:
        self.write(report.render())

    def write(self, line: str) -> None:
        if self.path is None:
            return
        with self._lock:
            try:
                with self.path.open("a", encoding="utf-8") as handle:
                    handle.write(line + "\n")
            except OSError:
                logger.warning("Failed to write to activity log %s", self.path, exc_info=True)
