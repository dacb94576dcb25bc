"""Session summaries for console and activity-log output."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from .models import SessionState


@dataclass(slots=True)
class SessionReport:
    """Final (or interim) breakdown of a tracking session."""

    session_duration: timedelta
    entries: list[tuple[str, timedelta]]

    @classmethod
    def from_snapshot(cls, snapshot: SessionState, now: datetime) -> "SessionReport":
        totals = snapshot.totals_at(now)
        return cls(
            session_duration=snapshot.session_duration(now),
            entries=sort_totals(totals),
        )

    @property
    def tracked(self) -> timedelta:
        return sum((duration for _, duration in self.entries), timedelta(0))

    def render(self) -> str:
        lines = [
            "--- Session Statistics ---",
            f"Session duration: {format_duration(self.session_duration.total_seconds())}",
            f"Tracked time:     {format_duration(self.tracked.total_seconds())}",
            "",
        ]
        if self.entries:
            lines.append("Time spent per domain:")
            for domain, duration in self.entries:
                lines.append(
                    f"  {domain:<30} {format_duration(duration.total_seconds())}"
                )
        else:
            lines.append("No domains tracked this session.")
        lines.append("-" * 26)
        return "\n".join(lines)


def sort_totals(totals: dict[str, timedelta]) -> list[tuple[str, timedelta]]:
    """Longest first; equal durations ordered by domain name."""
    return sorted(totals.items(), key=lambda item: (-item[1], item[0]))


def format_duration(seconds: float) -> str:
    total_seconds = int(round(seconds))
    hours, remainder = divmod(total_seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
