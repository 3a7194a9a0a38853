"""Admission stage — RateAdmissionGate, AdmissionDecision, RateLimit."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass

from starlette.responses import JSONResponse

from bootstrap_server._types import Clock, IdentityFunc
from bootstrap_server.context import RequestContext
from bootstrap_server.exceptions import Throttled
from bootstrap_server.log import get_logger
from bootstrap_server.outcome import CONTINUE, Outcome, ShortCircuit
from bootstrap_server.stage import Stage, StageCategory

logger = get_logger(__name__)

UNKNOWN_IDENTITY = "unknown"
DEFAULT_WINDOW_SECONDS = 15 * 60
DEFAULT_MAX_REQUESTS = 100


@dataclass
class RateWindowRecord:
    """Request count of one identity inside its current window."""

    count: int
    window_start: float


@dataclass(frozen=True)
class AdmissionDecision:
    """Result of a single admission check."""

    allowed: bool
    count: int
    limit: int
    reset_after: float
    retry_after: float | None = None

    @property
    def remaining(self) -> int:
        return max(self.limit - self.count, 0)


class RateAdmissionGate:
    """Fixed window request counter keyed by client identity.

    The record map is owned by the gate; nothing else reads or writes it.
    ``admit`` never awaits, so concurrent requests on one event loop see
    each update atomically. Expired records are swept at most once per
    window.
    """

    def __init__(
        self,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
    ) -> None:
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._records: dict[str, RateWindowRecord] = {}
        self._next_prune: float | None = None

    @property
    def max_requests(self) -> int:
        return self._max_requests

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    def admit(self, identity: str | None, now: float) -> AdmissionDecision:
        if self._next_prune is None:
            self._next_prune = now + self._window_seconds
        elif now >= self._next_prune:
            self._prune(now)
            self._next_prune = now + self._window_seconds

        key = identity or UNKNOWN_IDENTITY
        record = self._records.get(key)

        if record is None or now - record.window_start >= self._window_seconds:
            self._records[key] = RateWindowRecord(count=1, window_start=now)
            return AdmissionDecision(
                allowed=True,
                count=1,
                limit=self._max_requests,
                reset_after=self._window_seconds,
            )

        record.count += 1
        reset_after = max(record.window_start + self._window_seconds - now, 0.0)
        if record.count > self._max_requests:
            return AdmissionDecision(
                allowed=False,
                count=record.count,
                limit=self._max_requests,
                reset_after=reset_after,
                retry_after=reset_after,
            )
        return AdmissionDecision(
            allowed=True,
            count=record.count,
            limit=self._max_requests,
            reset_after=reset_after,
        )

    def reset(self, identity: str | None) -> None:
        self._records.pop(identity or UNKNOWN_IDENTITY, None)

    def __len__(self) -> int:
        return len(self._records)

    def _prune(self, now: float) -> None:
        expired = [
            key
            for key, record in self._records.items()
            if now - record.window_start >= self._window_seconds
        ]
        for key in expired:
            del self._records[key]


def client_identity(
    ctx: RequestContext, trust_proxy_header: str | None = None
) -> str | None:
    """Derive the client identity from a trusted proxy header or the peer address."""
    if trust_proxy_header:
        forwarded = ctx.request.headers.get(trust_proxy_header)
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if first:
                return first
    client = ctx.request.client
    if client is not None and client.host:
        return client.host
    return None


class RateLimit(Stage):
    """Admits or rejects the request through a RateAdmissionGate."""

    category = StageCategory.ADMISSION

    def __init__(
        self,
        gate: RateAdmissionGate | None = None,
        *,
        trust_proxy_header: str | None = None,
        identity_func: IdentityFunc | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self._gate = gate or RateAdmissionGate()
        self._trust_proxy_header = trust_proxy_header
        self._identity_func = identity_func
        self._clock = clock

    @property
    def gate(self) -> RateAdmissionGate:
        return self._gate

    async def process(self, ctx: RequestContext) -> Outcome:
        if self._identity_func is not None:
            identity = self._identity_func(ctx)
        else:
            identity = client_identity(ctx, self._trust_proxy_header)

        decision = self._gate.admit(identity, self._clock())
        ctx.response_headers.update(_rate_limit_headers(decision))

        if decision.allowed:
            return CONTINUE

        retry_after = math.ceil(decision.retry_after or 0)
        exc = Throttled(retry_after=retry_after)
        logger.info(
            "request_throttled",
            identity=identity or UNKNOWN_IDENTITY,
            count=decision.count,
            retry_after=retry_after,
        )
        response = JSONResponse(
            {"status": "error", "message": exc.detail},
            status_code=exc.status_code,
            headers={"Retry-After": str(retry_after)},
        )
        return ShortCircuit(response)


def _rate_limit_headers(decision: AdmissionDecision) -> dict[str, str]:
    return {
        "RateLimit-Limit": str(decision.limit),
        "RateLimit-Remaining": str(decision.remaining),
        "RateLimit-Reset": str(math.ceil(decision.reset_after)),
    }
