"""Shared pytest fixtures for bootstrap-server tests."""

from __future__ import annotations

import socket
from typing import Any

import pytest
from starlette.requests import Request

from bootstrap_server.config import Settings
from bootstrap_server.context import RequestContext


@pytest.fixture
def make_request() -> Any:
    """Factory for creating Starlette Request objects from raw ASGI scopes."""

    def _make(
        method: str = "GET",
        path: str = "/",
        headers: dict[str, str] | None = None,
        query_string: str = "",
        body: bytes = b"",
        chunks: list[bytes] | None = None,
        client: tuple[str, int] | None = ("127.0.0.1", 50000),
    ) -> Request:
        scope: dict[str, Any] = {
            "type": "http",
            "method": method,
            "path": path,
            "query_string": query_string.encode(),
            "headers": [
                (k.lower().encode(), v.encode()) for k, v in (headers or {}).items()
            ],
            "root_path": "",
            "scheme": "http",
            "server": ("testserver", 80),
            "client": client,
        }
        parts = chunks if chunks is not None else [body]
        messages: list[dict[str, Any]] = [
            {"type": "http.request", "body": part, "more_body": i < len(parts) - 1}
            for i, part in enumerate(parts)
        ]

        async def receive() -> dict[str, Any]:
            if messages:
                return messages.pop(0)
            return {"type": "http.disconnect"}

        return Request(scope, receive)

    return _make


@pytest.fixture
def make_ctx(make_request: Any) -> Any:
    """Factory for RequestContext objects wrapping ``make_request``."""

    def _make(**kwargs: Any) -> RequestContext:
        return RequestContext(request=make_request(**kwargs))

    return _make


@pytest.fixture
def settings() -> Settings:
    """Production-mode settings that ignore any local .env file."""
    return Settings(port=8000, node_env="production", _env_file=None)


@pytest.fixture
def dev_settings() -> Settings:
    """Development (diagnostic) mode settings."""
    return Settings(port=8000, node_env="development", _env_file=None)


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]
