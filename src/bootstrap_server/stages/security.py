"""Security stage — hardened default response headers."""

from __future__ import annotations

from collections.abc import Mapping

from bootstrap_server.context import RequestContext
from bootstrap_server.outcome import CONTINUE, Outcome
from bootstrap_server.stage import Stage, StageCategory

DEFAULT_CONTENT_SECURITY_POLICY = (
    "default-src 'self';"
    "base-uri 'self';"
    "font-src 'self' https: data:;"
    "form-action 'self';"
    "frame-ancestors 'self';"
    "img-src 'self' data:;"
    "object-src 'none';"
    "script-src 'self';"
    "script-src-attr 'none';"
    "style-src 'self' https: 'unsafe-inline';"
    "upgrade-insecure-requests"
)

DEFAULT_SECURITY_HEADERS: dict[str, str] = {
    "Content-Security-Policy": DEFAULT_CONTENT_SECURITY_POLICY,
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}


class SecurityHeaders(Stage):
    """Queues hardened headers for whatever response the request ends with."""

    category = StageCategory.SECURITY

    def __init__(
        self,
        headers: Mapping[str, str] | None = None,
        *,
        exclude: tuple[str, ...] = (),
    ) -> None:
        merged = dict(DEFAULT_SECURITY_HEADERS)
        if headers:
            merged.update(headers)
        excluded = {name.lower() for name in exclude}
        self._headers = {k: v for k, v in merged.items() if k.lower() not in excluded}

    @property
    def headers(self) -> dict[str, str]:
        return dict(self._headers)

    async def process(self, ctx: RequestContext) -> Outcome:
        ctx.response_headers.update(self._headers)
        return CONTINUE
