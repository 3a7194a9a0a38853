"""Sanitization stages — SanitizeInput, ParameterPollutionGuard."""

from __future__ import annotations

from typing import Any

from bootstrap_server.context import RequestContext
from bootstrap_server.log import get_logger
from bootstrap_server.outcome import CONTINUE, Outcome
from bootstrap_server.stage import Stage, StageCategory

logger = get_logger(__name__)


def is_unsafe_key(key: str) -> bool:
    """Operator-looking keys (``$where``, ``a.b``) are never passed on."""
    return key.startswith("$") or "." in key


def sanitize_value(value: Any, removed: list[str] | None = None) -> Any:
    """Recursively drop unsafe keys from mappings nested in ``value``."""
    if isinstance(value, dict):
        clean: dict[str, Any] = {}
        for key, item in value.items():
            if isinstance(key, str) and is_unsafe_key(key):
                if removed is not None:
                    removed.append(key)
                continue
            clean[key] = sanitize_value(item, removed)
        return clean
    if isinstance(value, list):
        return [sanitize_value(item, removed) for item in value]
    return value


class SanitizeInput(Stage):
    """Builds ``ctx.params`` from the query string minus unsafe keys.

    Repeated parameters become lists, the same way the query string parser
    of the original server exposed them.
    """

    category = StageCategory.SANITIZATION

    async def process(self, ctx: RequestContext) -> Outcome:
        params: dict[str, Any] = {}
        removed: list[str] = []
        for key, value in ctx.request.query_params.multi_items():
            if is_unsafe_key(key):
                removed.append(key)
                continue
            if key in params:
                existing = params[key]
                if isinstance(existing, list):
                    existing.append(value)
                else:
                    params[key] = [existing, value]
            else:
                params[key] = value

        ctx.params = params
        if removed:
            ctx.state["sanitized_keys"] = removed
            logger.warning("unsafe_keys_removed", keys=removed, path=ctx.path)
        return CONTINUE


class ParameterPollutionGuard(Stage):
    """Collapses repeated query parameters to their last value."""

    category = StageCategory.SANITIZATION

    def __init__(self, whitelist: tuple[str, ...] = ()) -> None:
        self._whitelist = frozenset(whitelist)

    async def process(self, ctx: RequestContext) -> Outcome:
        for key, value in list(ctx.params.items()):
            if not isinstance(value, list) or key in self._whitelist:
                continue
            ctx.polluted_params[key] = value
            ctx.params[key] = value[-1]
        return CONTINUE
