"""Relay for tab updates pushed by the browser extension."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Literal, Optional, Union

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, ConfigDict, ValidationError

from .models import FocusObservation, Source
from .normalization import extract_domain
from .tracker import ActivityTracker

if TYPE_CHECKING:
    from .scheduler import PomodoroScheduler

logger = logging.getLogger(__name__)


class TabUpdate(BaseModel):
    """Inbound ``tab_update`` message."""

    type: Literal["tab_update"]
    url: str
    title: str
    domain: Optional[str] = None
    timestamp: float
    category: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    def resolved_domain(self) -> Optional[str]:
        """Prefer the upstream domain, re-deriving it from ``url`` when absent."""
        return extract_domain(self.domain) or extract_domain(self.url)

    def observed_at(self) -> Optional[datetime]:
        try:
            return datetime.fromtimestamp(self.timestamp / 1000.0)
        except (OverflowError, OSError, ValueError):
            return None


class RelayAck(BaseModel):
    success: bool
    message: Optional[str] = None

    def to_json(self) -> str:
        return self.model_dump_json(exclude_none=True)


class RelayHandler:
    """Turns raw relay payloads into tracker observations."""

    def __init__(self, tracker: ActivityTracker) -> None:
        self._tracker = tracker

    def handle_payload(self, raw: Union[str, bytes]) -> RelayAck:
        try:
            update = TabUpdate.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Dropping malformed relay payload: %s", _describe(exc))
            return RelayAck(success=False, message=f"Parse error: {_describe(exc)}")
        return self.handle_update(update)

    def handle_update(self, update: TabUpdate) -> RelayAck:
        domain = update.resolved_domain()
        logger.debug(
            "Relay update: url=%s title=%r domain=%s category=%s",
            update.url,
            update.title,
            domain,
            update.category,
        )
        observation = FocusObservation(
            domain=domain,
            raw_title=update.title,
            source=Source.RELAY,
            observed_at=update.observed_at() or self._tracker.now(),
        )
        self._tracker.record(observation)
        return RelayAck(success=True, message="Message received")


def _describe(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "payload"
    return f"{location}: {first.get('msg', 'invalid value')}"


def create_app(
    tracker: ActivityTracker, scheduler: Optional["PomodoroScheduler"] = None
) -> FastAPI:
    """Instantiate the relay application."""
    handler = RelayHandler(tracker)

    app = FastAPI(title="stop_it relay", version="0.1.0")
    app.state.tracker = tracker
    app.state.handler = handler

    @app.websocket("/")
    async def relay(websocket: WebSocket) -> None:
        await websocket.accept()
        peer = _peer_name(websocket)
        logger.info("Relay connection from %s", peer)
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                raw = message.get("text")
                if raw is None:
                    raw = message.get("bytes") or b""
                ack = await run_in_threadpool(handler.handle_payload, raw)
                await websocket.send_text(ack.to_json())
        except WebSocketDisconnect as exc:
            logger.debug("Relay peer %s disconnected (code %s)", peer, exc.code)
        logger.info("Relay connection with %s terminated", peer)

    @app.get("/api/status")
    def status() -> Dict[str, Any]:
        now = tracker.now()
        snapshot = tracker.snapshot()
        totals = snapshot.totals_at(now)
        payload: Dict[str, Any] = {
            "current_domain": snapshot.current_domain,
            "session_seconds": int(snapshot.session_duration(now).total_seconds()),
            "domains": {
                domain: int(duration.total_seconds())
                for domain, duration in totals.items()
            },
        }
        if scheduler is not None:
            state = scheduler.state
            payload["phase"] = state.phase.value
            payload["phase_remaining_seconds"] = int(
                scheduler.remaining(now).total_seconds()
            )
        return payload

    return app


def _peer_name(websocket: WebSocket) -> str:
    client = websocket.client
    if client is None:
        return "unknown peer"
    return f"{client.host}:{client.port}"
