"""Configuration models and helpers for the activity daemon."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum


class IngestionMode(str, Enum):
    """Which event sources feed the tracker."""

    POLLER = "poller"
    RELAY = "relay"
    BOTH = "both"
    NATIVE = "native"

    @property
    def uses_poller(self) -> bool:
        return self in (IngestionMode.POLLER, IngestionMode.BOTH)

    @property
    def uses_relay(self) -> bool:
        return self in (IngestionMode.RELAY, IngestionMode.BOTH)


@dataclass(slots=True)
class DaemonSettings:
    """Runtime configuration for the tracking daemon."""

    poll_interval: timedelta = timedelta(seconds=1)
    query_timeout: timedelta = timedelta(seconds=2)
    tick_interval: timedelta = timedelta(seconds=1)
    work_duration: timedelta = timedelta(minutes=25)
    break_duration: timedelta = timedelta(minutes=5)
    relay_host: str = "127.0.0.1"
    relay_port: int = 8765
    notify_domain_switches: bool = False

    @classmethod
    def from_intervals(
        cls,
        poll_seconds: float = 1.0,
        work_minutes: float = 25.0,
        break_minutes: float = 5.0,
        query_timeout_seconds: float | None = None,
        relay_host: str = "127.0.0.1",
        relay_port: int = 8765,
        notify_domain_switches: bool = False,
    ) -> "DaemonSettings":
        query_timeout = (
            query_timeout_seconds
            if query_timeout_seconds is not None
            else max(poll_seconds * 2, 2.0)
        )
        return cls(
            poll_interval=timedelta(seconds=poll_seconds),
            query_timeout=timedelta(seconds=query_timeout),
            tick_interval=timedelta(seconds=1),
            work_duration=timedelta(minutes=work_minutes),
            break_duration=timedelta(minutes=break_minutes),
            relay_host=relay_host,
            relay_port=relay_port,
            notify_domain_switches=notify_domain_switches,
        )
