"""CORS stage — cross-origin headers and preflight short-circuit."""

from __future__ import annotations

from starlette.responses import Response

from bootstrap_server.context import RequestContext
from bootstrap_server.outcome import CONTINUE, Outcome, ShortCircuit
from bootstrap_server.stage import Stage, StageCategory

DEFAULT_METHODS = ("GET", "HEAD", "PUT", "PATCH", "POST", "DELETE")


class Cors(Stage):
    """Allows cross-origin access; answers preflight requests itself."""

    category = StageCategory.CORS

    def __init__(
        self,
        origin: str = "*",
        *,
        methods: tuple[str, ...] = DEFAULT_METHODS,
        allow_headers: tuple[str, ...] | None = None,
        max_age: int | None = None,
        preflight_status: int = 204,
    ) -> None:
        self._origin = origin
        self._methods = ",".join(methods)
        self._allow_headers = (
            ",".join(allow_headers) if allow_headers is not None else None
        )
        self._max_age = max_age
        self._preflight_status = preflight_status

    async def process(self, ctx: RequestContext) -> Outcome:
        headers = ctx.response_headers
        headers["Access-Control-Allow-Origin"] = self._origin
        vary: list[str] = []
        if self._origin != "*":
            vary.append("Origin")

        if ctx.method != "OPTIONS":
            if vary:
                headers["Vary"] = ", ".join(vary)
            return CONTINUE

        headers["Access-Control-Allow-Methods"] = self._methods
        if self._allow_headers is not None:
            headers["Access-Control-Allow-Headers"] = self._allow_headers
        else:
            requested = ctx.request.headers.get("access-control-request-headers")
            vary.append("Access-Control-Request-Headers")
            if requested:
                headers["Access-Control-Allow-Headers"] = requested
        if self._max_age is not None:
            headers["Access-Control-Max-Age"] = str(self._max_age)
        if vary:
            headers["Vary"] = ", ".join(vary)

        return ShortCircuit(
            Response(
                status_code=self._preflight_status,
                headers={"Content-Length": "0"},
            )
        )
