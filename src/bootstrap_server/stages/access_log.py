"""Access log stage — per-request timing and completion logging."""

from __future__ import annotations

import time

from bootstrap_server._types import Clock
from bootstrap_server.context import RequestContext
from bootstrap_server.log import get_logger
from bootstrap_server.outcome import CONTINUE, Outcome
from bootstrap_server.stage import Stage, StageCategory

logger = get_logger("bootstrap_server.access")

STATE_KEY = "access_log"


class AccessLog(Stage):
    """Stamps the request and logs it once the response is known."""

    category = StageCategory.LOGGING

    def __init__(self, clock: Clock = time.perf_counter) -> None:
        self._clock = clock

    async def process(self, ctx: RequestContext) -> Outcome:
        ctx.state[STATE_KEY] = (self, self._clock())
        return CONTINUE

    def record(
        self,
        ctx: RequestContext,
        status_code: int,
        content_length: str | None,
        started_at: float,
    ) -> None:
        duration_ms = (self._clock() - started_at) * 1000
        logger.info(
            "request",
            method=ctx.method,
            path=ctx.original_url,
            status=status_code,
            duration_ms=round(duration_ms, 3),
            content_length=content_length or "-",
        )


def record_access(
    ctx: RequestContext, status_code: int, content_length: str | None
) -> None:
    """Log a completed request if an AccessLog stage saw it."""
    entry = ctx.state.get(STATE_KEY)
    if entry is None:
        return
    stage, started_at = entry
    stage.record(ctx, status_code, content_length, started_at)
