"""Pomodoro work/break cycle driven by a periodic tick."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Optional

from .config import DaemonSettings
from .models import Phase, PhaseTransition, PomodoroState
from .tracker import ActivityTracker

logger = logging.getLogger(__name__)

TransitionListener = Callable[[PhaseTransition], None]


class PomodoroScheduler:
    """Alternates between WORK and BREAK phases.

    The scheduler owns its :class:`PomodoroState`; the only contact with the
    tracker is a snapshot read when a work session completes, used to
    annotate the transition with the per-domain breakdown.
    """

    def __init__(
        self,
        tracker: ActivityTracker,
        settings: Optional[DaemonSettings] = None,
    ) -> None:
        self._tracker = tracker
        self._settings = settings or DaemonSettings()
        self._lock = threading.Lock()
        self._state = PomodoroState(
            phase=Phase.WORK, phase_started_at=tracker.session_started_at
        )
        self._listeners: list[TransitionListener] = []

    @property
    def state(self) -> PomodoroState:
        with self._lock:
            return PomodoroState(
                phase=self._state.phase,
                phase_started_at=self._state.phase_started_at,
            )

    def subscribe(self, listener: TransitionListener) -> None:
        self._listeners.append(listener)

    def phase_duration(self, phase: Phase) -> timedelta:
        if phase is Phase.WORK:
            return self._settings.work_duration
        return self._settings.break_duration

    def remaining(self, now: datetime) -> timedelta:
        state = self.state
        left = self.phase_duration(state.phase) - (now - state.phase_started_at)
        return max(left, timedelta(0))

    def tick(self, now: Optional[datetime] = None) -> Optional[PhaseTransition]:
        """Advance the phase if its duration has elapsed at ``now``."""
        now = now or self._tracker.now()
        with self._lock:
            finished = self._state.phase
            started_at = self._state.phase_started_at
            if now - started_at < self.phase_duration(finished):
                return None
            self._state.phase = finished.other
            self._state.phase_started_at = now

        snapshot = self._tracker.snapshot() if finished is Phase.WORK else None
        transition = PhaseTransition(
            timestamp=now,
            finished=finished,
            started=finished.other,
            interval_start=started_at,
            interval_end=now,
            message=self._message_for(finished),
            snapshot=snapshot,
        )
        logger.info("%s %s", transition.started.emoji, transition.message)
        self._emit(transition)
        return transition

    def run_until_stopped(self, stop_event: threading.Event) -> None:
        logger.info(
            "Starting in %s mode (%s min work / %s min break)",
            self.state.phase.value,
            _minutes(self._settings.work_duration),
            _minutes(self._settings.break_duration),
        )
        interval = self._settings.tick_interval.total_seconds()
        while not stop_event.wait(interval):
            try:
                self.tick()
            except Exception:
                logger.exception("Pomodoro tick failed.")
        logger.info("Pomodoro scheduler stopped.")

    def _message_for(self, finished: Phase) -> str:
        if finished is Phase.WORK:
            minutes = _minutes(self._settings.break_duration)
            return f"Work session complete! Time for a {minutes}-minute break."
        minutes = _minutes(self._settings.work_duration)
        return f"Break is over! Starting {minutes}-minute work session."

    def _emit(self, transition: PhaseTransition) -> None:
        for listener in list(self._listeners):
            try:
                listener(transition)
            except Exception:
                logger.exception("Phase transition listener %r failed.", listener)


def _minutes(duration: timedelta) -> str:
    minutes = duration.total_seconds() / 60
    return f"{minutes:g}"
