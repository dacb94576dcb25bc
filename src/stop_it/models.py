"""Domain models for tracked browsing activity."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional, Union

logger = logging.getLogger(__name__)


class Source(str, Enum):
    """Where a focus observation came from."""

    COMPOSITOR = "compositor"
    RELAY = "relay"


class Phase(str, Enum):
    WORK = "WORK"
    BREAK = "BREAK"

    @property
    def other(self) -> "Phase":
        return Phase.BREAK if self is Phase.WORK else Phase.WORK

    @property
    def emoji(self) -> str:
        return "\U0001f4bc" if self is Phase.WORK else "☕"


@dataclass(slots=True, frozen=True)
class FocusObservation:
    """A single report that some domain is currently in focus."""

    domain: Optional[str]
    raw_title: str
    source: Source
    observed_at: datetime = field(default_factory=datetime.now)


def elapsed_between(since: datetime, now: datetime) -> timedelta:
    """Return ``now - since``, clamped to zero when the clock went backwards."""
    elapsed = now - since
    if elapsed < timedelta(0):
        logger.warning(
            "Clock moved backwards by %.3fs; clamping elapsed time to zero.",
            -elapsed.total_seconds(),
        )
        return timedelta(0)
    return elapsed


def accrue(
    totals: dict[str, timedelta],
    domain: Optional[str],
    since: datetime,
    now: datetime,
) -> None:
    """Add the time spent on ``domain`` since ``since`` to ``totals``.

    Time without a domain is an untracked gap and is not counted.
    """
    if domain is None:
        return
    totals[domain] = totals.get(domain, timedelta(0)) + elapsed_between(since, now)


@dataclass(slots=True)
class SessionState:
    """Point-in-time copy of the tracker's session record."""

    current_domain: Optional[str]
    current_domain_since: datetime
    domain_totals: dict[str, timedelta]
    session_started_at: datetime

    def in_flight(self, now: datetime) -> timedelta:
        if self.current_domain is None:
            return timedelta(0)
        return elapsed_between(self.current_domain_since, now)

    def totals_at(self, now: datetime) -> dict[str, timedelta]:
        """Totals with the in-flight interval flushed as if ``now`` were a boundary."""
        totals = dict(self.domain_totals)
        accrue(totals, self.current_domain, self.current_domain_since, now)
        return totals

    def session_duration(self, now: datetime) -> timedelta:
        return elapsed_between(self.session_started_at, now)


@dataclass(slots=True)
class PomodoroState:
    phase: Phase
    phase_started_at: datetime


@dataclass(slots=True, frozen=True)
class DomainSwitched:
    """Emitted by the tracker whenever the active domain changes."""

    timestamp: datetime
    old_domain: Optional[str]
    new_domain: Optional[str]
    source: Source


@dataclass(slots=True, frozen=True)
class PhaseTransition:
    """Emitted by the scheduler when a Pomodoro phase ends."""

    timestamp: datetime
    finished: Phase
    started: Phase
    interval_start: datetime
    interval_end: datetime
    message: str
    snapshot: Optional[SessionState] = None

    @property
    def interval(self) -> timedelta:
        return self.interval_end - self.interval_start


TrackerEvent = Union[DomainSwitched, PhaseTransition]
