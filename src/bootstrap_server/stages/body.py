"""Body stage — bounded JSON and urlencoded body parsing."""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import parse_qsl

from bootstrap_server.context import RequestContext
from bootstrap_server.exceptions import MalformedPayload, PayloadTooLarge
from bootstrap_server.outcome import CONTINUE, Outcome
from bootstrap_server.stage import Stage, StageCategory
from bootstrap_server.stages.sanitization import sanitize_value

DEFAULT_BODY_LIMIT = 10 * 1024

JSON_TYPE = "application/json"
FORM_TYPE = "application/x-www-form-urlencoded"


def _media_type(content_type: str) -> str:
    return content_type.split(";", 1)[0].strip().lower()


def _is_json(media_type: str) -> bool:
    return media_type == JSON_TYPE or media_type.endswith("+json")


def _decode_form(raw: bytes) -> dict[str, Any]:
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedPayload("Malformed urlencoded body") from exc
    fields: dict[str, Any] = {}
    for key, value in parse_qsl(text, keep_blank_values=True):
        if key in fields:
            existing = fields[key]
            if isinstance(existing, list):
                existing.append(value)
            else:
                fields[key] = [existing, value]
        else:
            fields[key] = value
    return fields


class BodyParser(Stage):
    """Reads and decodes the request body, refusing anything over ``limit``.

    Bodies of other media types are left unread. Oversized bodies raise
    PayloadTooLarge as soon as the limit is crossed, without buffering the
    remainder.
    """

    category = StageCategory.BODY

    def __init__(
        self, limit: int = DEFAULT_BODY_LIMIT, *, sanitize: bool = True
    ) -> None:
        self._limit = limit
        self._sanitize = sanitize

    @property
    def limit(self) -> int:
        return self._limit

    async def process(self, ctx: RequestContext) -> Outcome:
        media_type = _media_type(ctx.request.headers.get("content-type", ""))
        if not (_is_json(media_type) or media_type == FORM_TYPE):
            return CONTINUE

        declared = ctx.request.headers.get("content-length")
        if declared is not None:
            try:
                declared_length = int(declared)
            except ValueError as exc:
                raise MalformedPayload("Invalid Content-Length header") from exc
            if declared_length > self._limit:
                raise PayloadTooLarge(limit=self._limit)

        raw = await self._read(ctx)
        if not raw:
            ctx.body = {}
            return CONTINUE

        if _is_json(media_type):
            try:
                body = json.loads(raw)
            except (UnicodeDecodeError, ValueError) as exc:
                raise MalformedPayload("Malformed JSON body") from exc
        else:
            body = _decode_form(raw)

        ctx.body = sanitize_value(body) if self._sanitize else body
        return CONTINUE

    async def _read(self, ctx: RequestContext) -> bytes:
        chunks: list[bytes] = []
        received = 0
        async for chunk in ctx.request.stream():
            received += len(chunk)
            if received > self._limit:
                raise PayloadTooLarge(limit=self._limit)
            chunks.append(chunk)
        return b"".join(chunks)
