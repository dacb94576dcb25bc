"""Authoritative per-domain session state shared by all event sources."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, Optional

from .models import DomainSwitched, FocusObservation, SessionState, accrue

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
SwitchListener = Callable[[DomainSwitched], None]


class ActivityTracker:
    """Accumulates time spent per domain.

    All mutation goes through :meth:`record` and all reads through
    :meth:`snapshot`; both hold the same lock so a snapshot is never taken
    half-way through an update. Observations are applied in the order they
    acquire the lock, whichever source they come from.
    """

    def __init__(self, clock: Clock = datetime.now) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        started = clock()
        self._state = SessionState(
            current_domain=None,
            current_domain_since=started,
            domain_totals={},
            session_started_at=started,
        )
        self._listeners: list[SwitchListener] = []

    @property
    def session_started_at(self) -> datetime:
        return self._state.session_started_at

    def now(self) -> datetime:
        return self._clock()

    def subscribe(self, listener: SwitchListener) -> None:
        """Register a callback invoked (outside the lock) on every domain switch."""
        self._listeners.append(listener)

    def record(self, observation: FocusObservation) -> Optional[DomainSwitched]:
        with self._lock:
            state = self._state
            if observation.domain == state.current_domain:
                return None
            now = self._clock()
            accrue(
                state.domain_totals,
                state.current_domain,
                state.current_domain_since,
                now,
            )
            event = DomainSwitched(
                timestamp=now,
                old_domain=state.current_domain,
                new_domain=observation.domain,
                source=observation.source,
            )
            state.current_domain = observation.domain
            state.current_domain_since = now

        logger.debug(
            "Domain switch via %s: %s -> %s",
            event.source.value,
            event.old_domain,
            event.new_domain,
        )
        self._emit(event)
        return event

    def snapshot(self) -> SessionState:
        with self._lock:
            state = self._state
            return SessionState(
                current_domain=state.current_domain,
                current_domain_since=state.current_domain_since,
                domain_totals=dict(state.domain_totals),
                session_started_at=state.session_started_at,
            )

    def _emit(self, event: DomainSwitched) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Domain switch listener %r failed.", listener)
