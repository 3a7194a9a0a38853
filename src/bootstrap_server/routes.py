"""RouteTable — exact method and path dispatch with a not-found marker."""

from __future__ import annotations

import inspect
from collections.abc import Callable

from starlette.responses import Response

from bootstrap_server._types import RouteHandler
from bootstrap_server.context import RequestContext


class NotFoundMarker:
    """Sentinel returned by RouteTable.dispatch when nothing matches."""

    _instance: NotFoundMarker | None = None

    def __new__(cls) -> NotFoundMarker:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_FOUND"

    def __bool__(self) -> bool:
        return False


NOT_FOUND = NotFoundMarker()


class RouteTable:
    """Maps (method, path) pairs to handlers."""

    def __init__(self) -> None:
        self._routes: dict[tuple[str, str], RouteHandler] = {}

    def add(self, method: str, path: str, handler: RouteHandler) -> RouteHandler:
        key = (method.upper(), path)
        if key in self._routes:
            raise ValueError(f"Route {method.upper()} {path} is already registered")
        self._routes[key] = handler
        return handler

    def route(self, method: str, path: str) -> Callable[[RouteHandler], RouteHandler]:
        def decorator(handler: RouteHandler) -> RouteHandler:
            return self.add(method, path, handler)

        return decorator

    def get(self, path: str) -> Callable[[RouteHandler], RouteHandler]:
        return self.route("GET", path)

    def post(self, path: str) -> Callable[[RouteHandler], RouteHandler]:
        return self.route("POST", path)

    def lookup(self, method: str, path: str) -> RouteHandler | None:
        method = method.upper()
        handler = self._routes.get((method, path))
        if handler is None and method == "HEAD":
            handler = self._routes.get(("GET", path))
        return handler

    async def dispatch(
        self, method: str, path: str, ctx: RequestContext
    ) -> Response | NotFoundMarker:
        handler = self.lookup(method, path)
        if handler is None:
            return NOT_FOUND

        ctx.route = path
        result = handler(ctx)
        if inspect.isawaitable(result):
            result = await result
        if not isinstance(result, Response):
            raise TypeError(
                f"Handler for {method.upper()} {path} returned "
                f"{type(result).__name__}, expected a Response"
            )
        return result

    @property
    def routes(self) -> tuple[tuple[str, str], ...]:
        return tuple(self._routes)

    def __contains__(self, key: object) -> bool:
        return key in self._routes

    def __len__(self) -> int:
        return len(self._routes)
