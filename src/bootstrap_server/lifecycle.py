"""LifecycleController — listening socket ownership and graceful shutdown."""

from __future__ import annotations

import asyncio
import contextlib
import signal
import sys
from collections.abc import Callable, Iterator
from enum import Enum
from typing import Any, Protocol

import uvicorn

from bootstrap_server._types import ExitFunc
from bootstrap_server.config import MAX_PORT, MIN_PORT
from bootstrap_server.exceptions import ConfigurationError
from bootstrap_server.log import get_logger

logger = get_logger(__name__)

HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)
STARTUP_POLL_SECONDS = 0.01


class ServerState(Enum):
    STARTING = "starting"
    LISTENING = "listening"
    DRAINING = "draining"
    STOPPED = "stopped"


class ServerHandle(Protocol):
    """The parts of ``uvicorn.Server`` the controller drives."""

    started: bool
    should_exit: bool

    async def serve(self, sockets: Any = None) -> None: ...


ServerFactory = Callable[[int], ServerHandle]


class ManagedServer(uvicorn.Server):
    """uvicorn server that leaves signal handling to the LifecycleController."""

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield

    def install_signal_handlers(self) -> None:
        return None


def validate_port(port: object) -> int:
    if isinstance(port, bool):
        raise ConfigurationError(f"Invalid port: {port!r}")
    try:
        value = int(port)  # type: ignore[call-overload]
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid port: {port!r}") from exc
    if not MIN_PORT <= value <= MAX_PORT:
        raise ConfigurationError(f"Port out of range: {value}")
    return value


class LifecycleController:
    """Owns the server lifecycle state and the listening socket.

    ``STARTING -> LISTENING -> DRAINING -> STOPPED``; the last two
    transitions happen once. ``stop`` outside LISTENING does nothing, so
    repeated termination signals cannot close the socket or exit twice.
    """

    def __init__(
        self,
        app: Any,
        *,
        host: str = "0.0.0.0",
        mode: str = "production",
        shutdown_timeout: int | None = 30,
        server_factory: ServerFactory | None = None,
        exit_func: ExitFunc = sys.exit,
    ) -> None:
        self._app = app
        self._host = host
        self._mode = mode
        self._shutdown_timeout = shutdown_timeout
        self._server_factory = server_factory or self._uvicorn_server
        self._exit = exit_func
        self._state = ServerState.STARTING
        self._server: ServerHandle | None = None
        self._serving: asyncio.Task[None] | None = None
        self._port: int | None = None

    @property
    def state(self) -> ServerState:
        return self._state

    @property
    def port(self) -> int | None:
        return self._port

    async def start(self, port: object) -> ServerHandle:
        """Bind the listening socket; returns once the server accepts connections."""
        if self._state is not ServerState.STARTING:
            raise RuntimeError(f"Server already {self._state.value}")

        self._port = validate_port(port)
        server = self._server_factory(self._port)
        self._server = server
        self._serving = asyncio.create_task(server.serve())

        while not server.started:
            if self._serving.done():
                # Surfaces bind errors raised by the server task
                self._serving.result()
                raise ConfigurationError(f"Could not listen on port {self._port}")
            await asyncio.sleep(STARTUP_POLL_SECONDS)

        self._state = ServerState.LISTENING
        logger.info(
            f"Server is running at {self._port} in {self._mode} mode",
            port=self._port,
            mode=self._mode,
        )
        return server

    def install_signal_handlers(
        self,
        loop: asyncio.AbstractEventLoop | None = None,
        signals: tuple[signal.Signals, ...] = HANDLED_SIGNALS,
    ) -> None:
        """Route termination signals to ``stop``."""
        loop = loop or asyncio.get_running_loop()
        for sig in signals:
            loop.add_signal_handler(sig, self.stop, sig.name)

    def stop(self, signal_name: str = "SIGTERM") -> bool:
        """Begin draining. Returns False when there was nothing to stop."""
        if self._state is not ServerState.LISTENING or self._server is None:
            logger.debug("stop_ignored", signal=signal_name, state=self._state.value)
            return False

        logger.info(
            f"{signal_name} received. Shutting down gracefully...",
            signal=signal_name,
        )
        self._state = ServerState.DRAINING
        self._server.should_exit = True
        return True

    async def wait_stopped(self) -> None:
        """Wait for the drain to finish, then exit the process once."""
        if self._serving is None or self._state is ServerState.STOPPED:
            return

        await self._serving
        if self._state is ServerState.STOPPED:
            return
        if self._state is ServerState.LISTENING:
            logger.warning("server_stopped_unexpectedly", port=self._port)
            self._state = ServerState.DRAINING
        self._state = ServerState.STOPPED
        logger.info("Server closed.")
        self._exit(0)

    async def run(self, port: object) -> None:
        await self.start(port)
        self.install_signal_handlers()
        await self.wait_stopped()

    def _uvicorn_server(self, port: int) -> ServerHandle:
        config = uvicorn.Config(
            self._app,
            host=self._host,
            port=port,
            log_config=None,
            server_header=False,
            timeout_graceful_shutdown=self._shutdown_timeout,
        )
        return ManagedServer(config)
