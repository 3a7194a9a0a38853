"""ErrorFunnel — every failure becomes one ``{status, message}`` response."""

from __future__ import annotations

import traceback
from dataclasses import dataclass
from typing import Any

from starlette.responses import JSONResponse

from bootstrap_server.context import RequestContext
from bootstrap_server.exceptions import RouteNotFound
from bootstrap_server.log import get_logger

logger = get_logger(__name__)

FALLBACK_STATUS = 500
FALLBACK_MESSAGE = "Internal server error"


@dataclass(frozen=True)
class ErrorRecord:
    """Normalized failure, alive only while the response is serialized."""

    status_code: int
    message: str
    stack: str | None = None
    status: str = "error"

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"status": self.status, "message": self.message}
        if self.stack is not None:
            body["stack"] = self.stack
        return body


def status_code_of(failure: object) -> int:
    """Declared status of ``failure`` if it is a valid HTTP code, else 500."""
    for attr in ("status_code", "status"):
        value = getattr(failure, attr, None)
        if isinstance(value, bool) or not isinstance(value, int):
            continue
        if 100 <= value <= 599:
            return value
    return FALLBACK_STATUS


def message_of(failure: object) -> str:
    if isinstance(failure, str):
        return failure or FALLBACK_MESSAGE
    detail = getattr(failure, "detail", None)
    if isinstance(detail, str) and detail:
        return detail
    if isinstance(failure, BaseException):
        message = str(failure)
        if message:
            return message
    return FALLBACK_MESSAGE


def stack_of(failure: object) -> str | None:
    if not isinstance(failure, BaseException):
        return None
    return "".join(
        traceback.format_exception(type(failure), failure, failure.__traceback__)
    )


class ErrorFunnel:
    """Terminal stage for failures from any part of the pipeline.

    Only the first failure recorded on a RequestContext is rendered. Stack
    traces reach the response body only in diagnostic mode, but 5xx failures
    are always logged with their traceback.
    """

    def __init__(self, diagnostic: bool = False) -> None:
        self._diagnostic = diagnostic

    @property
    def diagnostic(self) -> bool:
        return self._diagnostic

    def record(self, failure: object) -> ErrorRecord:
        stack = None
        if self._diagnostic and not isinstance(failure, RouteNotFound):
            stack = stack_of(failure)
        return ErrorRecord(
            status_code=status_code_of(failure),
            message=message_of(failure),
            stack=stack,
        )

    def render(self, ctx: RequestContext, failure: object) -> JSONResponse | None:
        if ctx.failure is not None:
            logger.warning(
                "failure_suppressed",
                path=ctx.original_url,
                first=type(ctx.failure).__name__,
                suppressed=type(failure).__name__,
            )
            return None

        if isinstance(failure, BaseException):
            ctx.failure = failure
        else:
            ctx.failure = Exception(message_of(failure))
        record = self.record(failure)

        if isinstance(failure, RouteNotFound):
            logger.debug("route_not_found", method=ctx.method, path=ctx.original_url)
        elif record.status_code >= 500:
            logger.error(
                "request_failed",
                method=ctx.method,
                path=ctx.original_url,
                status=record.status_code,
                exc_info=failure if isinstance(failure, BaseException) else False,
            )
        else:
            logger.warning(
                "request_rejected",
                method=ctx.method,
                path=ctx.original_url,
                status=record.status_code,
                reason=record.message,
            )

        return JSONResponse(record.to_body(), status_code=record.status_code)

    def not_found(self, ctx: RequestContext) -> JSONResponse | None:
        return self.render(ctx, RouteNotFound(ctx.original_url))
