"""StageException hierarchy for controlled pipeline aborts."""

from __future__ import annotations


class StageException(Exception):
    """Base for all pipeline exceptions."""


class StageAbort(StageException):
    """Controlled abort with HTTP status code and detail."""

    def __init__(self, detail: str, *, status_code: int = 400) -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


class PayloadTooLarge(StageAbort):
    """Request body exceeds the configured bound (413)."""

    def __init__(
        self,
        detail: str = "request entity too large",
        *,
        limit: int | None = None,
    ) -> None:
        super().__init__(detail, status_code=413)
        self.limit = limit


class MalformedPayload(StageAbort):
    """Request body could not be decoded (400)."""

    def __init__(self, detail: str = "Malformed request body") -> None:
        super().__init__(detail, status_code=400)


class Throttled(StageAbort):
    """Rate limit exceeded (429)."""

    def __init__(
        self,
        detail: str = "Too many requests, please try again later.",
        *,
        retry_after: int | None = None,
    ) -> None:
        super().__init__(detail, status_code=429)
        self.retry_after = retry_after


class RouteNotFound(StageAbort):
    """No registered route for the request (404)."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Route {url} not found!", status_code=404)
        self.url = url


class ConfigurationError(Exception):
    """Startup configuration is missing or invalid."""
