"""PipelineApp — ASGI application wiring chain, routes and error funnel."""

from __future__ import annotations

from starlette.requests import ClientDisconnect, Request
from starlette.responses import HTMLResponse, JSONResponse, Response
from starlette.types import Receive, Scope, Send

from bootstrap_server.chain import Chain
from bootstrap_server.config import Settings
from bootstrap_server.context import RequestContext
from bootstrap_server.funnel import ErrorFunnel
from bootstrap_server.hooks import StageTraceHook
from bootstrap_server.log import get_logger
from bootstrap_server.outcome import Fail, ShortCircuit
from bootstrap_server.routes import NOT_FOUND, RouteTable
from bootstrap_server.stages.access_log import AccessLog, record_access
from bootstrap_server.stages.admission import RateAdmissionGate, RateLimit
from bootstrap_server.stages.body import BodyParser
from bootstrap_server.stages.cors import Cors
from bootstrap_server.stages.sanitization import ParameterPollutionGuard, SanitizeInput
from bootstrap_server.stages.security import SecurityHeaders

logger = get_logger(__name__)

WELCOME_HTML = (
    "<h1>Welcome to the Express Server</h1>"
    "<p>Use <code>/api</code> for API requests.</p>"
)


class PipelineApp:
    """Runs each request through the chain, then the route table.

    Any failure from either ends in the error funnel. Headers queued on the
    context by stages are added to whichever response is finally sent.
    """

    def __init__(self, chain: Chain, routes: RouteTable, funnel: ErrorFunnel) -> None:
        self.chain = chain
        self.routes = routes
        self.funnel = funnel

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await self._lifespan(receive, send)
            return
        if scope["type"] != "http":
            await send({"type": "websocket.close", "code": 1000})
            return

        ctx = RequestContext(request=Request(scope, receive))
        response = await self.handle(ctx)
        if response is None:
            return

        for name, value in ctx.response_headers.items():
            response.headers.setdefault(name, value)
        await response(scope, receive, send)
        record_access(ctx, response.status_code, response.headers.get("content-length"))

    async def handle(self, ctx: RequestContext) -> Response | None:
        """Produce the single response for ``ctx``; None if the client left."""
        outcome = await self.chain.run(ctx)
        if isinstance(outcome, ShortCircuit):
            return outcome.response
        if isinstance(outcome, Fail):
            return self._fail(ctx, outcome.error)

        try:
            result = await self.routes.dispatch(ctx.method, ctx.path, ctx)
        except Exception as exc:
            return self._fail(ctx, exc)

        if result is NOT_FOUND:
            return self.funnel.not_found(ctx)
        return result

    def _fail(self, ctx: RequestContext, error: BaseException) -> Response | None:
        if isinstance(error, ClientDisconnect):
            logger.info("client_disconnected", method=ctx.method, path=ctx.original_url)
            return None
        return self.funnel.render(ctx, error)

    @staticmethod
    async def _lifespan(receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return


def build_chain(settings: Settings, *, gate: RateAdmissionGate | None = None) -> Chain:
    """The standard stage chain; order is fixed by stage category."""
    if gate is None:
        gate = RateAdmissionGate(
            max_requests=settings.rate_limit_max,
            window_seconds=settings.rate_limit_window_seconds,
        )
    chain = Chain(
        SecurityHeaders(),
        SanitizeInput(),
        ParameterPollutionGuard(),
        RateLimit(gate, trust_proxy_header=settings.trust_proxy_header),
        Cors(settings.cors_origin),
        BodyParser(settings.body_limit_bytes),
    )
    if settings.diagnostic:
        chain.add(AccessLog())
        chain.add_hook(StageTraceHook())
    return chain


def default_routes() -> RouteTable:
    routes = RouteTable()

    @routes.get("/api")
    async def api_status(ctx: RequestContext) -> Response:
        return JSONResponse({"message": "API is running!"})

    @routes.get("/")
    async def welcome(ctx: RequestContext) -> Response:
        return HTMLResponse(WELCOME_HTML)

    return routes


def create_app(
    settings: Settings,
    *,
    routes: RouteTable | None = None,
    chain: Chain | None = None,
    gate: RateAdmissionGate | None = None,
) -> PipelineApp:
    """Assemble a PipelineApp; every call gets its own rate window state."""
    return PipelineApp(
        chain=chain or build_chain(settings, gate=gate),
        routes=routes if routes is not None else default_routes(),
        funnel=ErrorFunnel(diagnostic=settings.diagnostic),
    )
