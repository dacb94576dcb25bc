"""Compositor poller: samples the focused window title at a fixed interval."""

from __future__ import annotations

import json
import logging
import subprocess
import threading
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Optional, Sequence

import psutil

from .models import FocusObservation, Source
from .normalization import extract_domain
from .tracker import ActivityTracker

logger = logging.getLogger(__name__)


class WindowQueryError(RuntimeError):
    """The compositor query tool failed or produced unusable output."""


@dataclass(slots=True, frozen=True)
class ActiveWindow:
    title: str
    process_name: Optional[str] = None


CommandRunner = Callable[..., subprocess.CompletedProcess]


class HyprlandActiveWindowProbe:
    """Retrieves the focused window title via ``hyprctl activewindow -j``."""

    COMMAND: Sequence[str] = ("hyprctl", "activewindow", "-j")

    def __init__(
        self,
        timeout: timedelta = timedelta(seconds=2),
        command: Sequence[str] | None = None,
        runner: CommandRunner = subprocess.run,
    ) -> None:
        self._timeout = timeout
        self._command = list(command or self.COMMAND)
        self._runner = runner

    def get_active_window(self) -> Optional[ActiveWindow]:
        """Return the focused window, or ``None`` when nothing has focus.

        Raises :class:`WindowQueryError` when the tool is missing, hangs past
        the timeout, exits non-zero or prints something that is not JSON.
        """
        try:
            completed = self._runner(
                self._command,
                capture_output=True,
                text=True,
                timeout=self._timeout.total_seconds(),
                check=False,
            )
        except FileNotFoundError as exc:
            raise WindowQueryError(f"{self._command[0]} not found") from exc
        except subprocess.TimeoutExpired as exc:
            raise WindowQueryError(
                f"{self._command[0]} timed out after {self._timeout.total_seconds():.1f}s"
            ) from exc
        except OSError as exc:
            raise WindowQueryError(str(exc)) from exc

        if completed.returncode != 0:
            raise WindowQueryError(
                f"{self._command[0]} exited with status {completed.returncode}"
            )
        return self.parse(completed.stdout)

    @staticmethod
    def parse(output: Optional[str]) -> Optional[ActiveWindow]:
        if not output or not output.strip():
            return None
        try:
            payload = json.loads(output)
        except json.JSONDecodeError as exc:
            raise WindowQueryError(f"malformed window query output: {exc}") from exc
        if not payload:
            return None
        if not isinstance(payload, dict):
            raise WindowQueryError("window query output is not an object")
        title = payload.get("title")
        if not isinstance(title, str):
            raise WindowQueryError("window query output has no title")
        return ActiveWindow(title=title, process_name=_process_name(payload.get("pid")))


def _process_name(pid: object) -> Optional[str]:
    if not isinstance(pid, int) or pid <= 0:
        return None
    try:
        return psutil.Process(pid).name()
    except (psutil.Error, ProcessLookupError):
        return None


class CompositorPoller:
    """Feeds the tracker with one observation per successful window query."""

    def __init__(
        self,
        tracker: ActivityTracker,
        probe: HyprlandActiveWindowProbe,
        interval: timedelta = timedelta(seconds=1),
    ) -> None:
        self._tracker = tracker
        self._probe = probe
        self._interval = interval
        self._last_title: Optional[str] = None

    def sample_once(self) -> Optional[FocusObservation]:
        # The query runs before the tracker lock is taken.
        try:
            window = self._probe.get_active_window()
        except WindowQueryError as exc:
            logger.warning("Window query failed; skipping this tick: %s", exc)
            return None

        title = window.title if window else ""
        domain = extract_domain(title)
        if title != self._last_title:
            logger.debug(
                "Window title: %r (process=%s) -> domain %s",
                title,
                window.process_name if window else None,
                domain,
            )
            self._last_title = title

        observation = FocusObservation(
            domain=domain,
            raw_title=title,
            source=Source.COMPOSITOR,
            observed_at=self._tracker.now(),
        )
        self._tracker.record(observation)
        return observation

    def run_until_stopped(self, stop_event: threading.Event) -> None:
        logger.info(
            "Starting compositor poller every %.1fs", self._interval.total_seconds()
        )
        interval = self._interval.total_seconds()
        while not stop_event.is_set():
            try:
                self.sample_once()
            except Exception:
                logger.exception("Unexpected error while sampling the active window.")
            # Sleep in an interruptible manner.
            stop_event.wait(interval)
        logger.info("Compositor poller stopped.")
