"""RequestContext — per-request state container."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from starlette.requests import Request


@dataclass
class RequestContext:
    """Lightweight per-request state container mutated by pipeline stages."""

    request: Request
    body: Any | None = None
    params: dict[str, Any] = field(default_factory=dict)
    polluted_params: dict[str, list[str]] = field(default_factory=dict)
    route: str | None = None
    response_headers: dict[str, str] = field(default_factory=dict)
    state: dict[str, Any] = field(default_factory=dict)
    failure: BaseException | None = None

    @property
    def method(self) -> str:
        return self.request.method

    @property
    def path(self) -> str:
        return self.request.url.path

    @property
    def original_url(self) -> str:
        """Path plus query string, as the client sent it."""
        query = self.request.url.query
        return f"{self.path}?{query}" if query else self.path
