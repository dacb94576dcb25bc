"""Helpers to run the relay server alongside the other daemon threads."""

from __future__ import annotations

import logging
import socket
import threading
import time
from typing import Optional

import uvicorn
from fastapi import FastAPI

logger = logging.getLogger(__name__)


class RelayBindError(OSError):
    """The relay address could not be bound."""


def bind_socket(host: str, port: int) -> socket.socket:
    """Bind the listening socket up front so a busy port fails at startup."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((host, port))
    except OSError as exc:
        sock.close()
        raise RelayBindError(f"Cannot bind relay to {host}:{port}: {exc}") from exc
    sock.set_inheritable(True)
    return sock


class RelayServer:
    """Serve the relay app with uvicorn on a background thread."""

    def __init__(
        self,
        app: FastAPI,
        *,
        host: str = "127.0.0.1",
        port: int = 8765,
        log_level: str = "warning",
        shutdown_timeout: float = 2.0,
    ) -> None:
        self.host = host
        self.port = port
        self._config = uvicorn.Config(
            app,
            host=host,
            port=port,
            log_level=log_level,
            ws_ping_interval=None,
            timeout_graceful_shutdown=shutdown_timeout,
        )
        self._server = uvicorn.Server(self._config)
        self._shutdown_timeout = shutdown_timeout
        self._socket: Optional[socket.socket] = None
        self._thread: Optional[threading.Thread] = None

    def start(self, ready_timeout: float = 5.0) -> None:
        self._socket = bind_socket(self.host, self.port)
        self._thread = threading.Thread(
            target=self._serve, args=(self._socket,), name="stop-it-relay", daemon=True
        )
        self._thread.start()
        deadline = time.monotonic() + ready_timeout
        while not self._server.started:
            if not self._thread.is_alive():
                raise RelayBindError(f"Relay server on {self.host}:{self.port} failed to start")
            if time.monotonic() >= deadline:
                logger.warning("Relay server is slow to start; continuing anyway.")
                break
            time.sleep(0.05)
        logger.info("Relay listening on ws://%s:%d", self.host, self.port)

    def stop(self) -> None:
        thread = self._thread
        if thread is None:
            return
        self._server.should_exit = True
        thread.join(timeout=self._shutdown_timeout + 3.0)
        if thread.is_alive():
            logger.warning("Relay server did not stop within the shutdown timeout.")
        else:
            logger.info("Relay server stopped.")
        self._thread = None
        if self._socket is not None:
            self._socket.close()
            self._socket = None

    def _serve(self, sock: socket.socket) -> None:
        self._server.run(sockets=[sock])
