"""Tests for SanitizeInput, ParameterPollutionGuard and sanitize_value."""

from __future__ import annotations

from typing import Any

from bootstrap_server.stage import StageCategory
from bootstrap_server.stages.sanitization import (
    ParameterPollutionGuard,
    SanitizeInput,
    is_unsafe_key,
    sanitize_value,
)


class TestSanitizeValue:
    def test_unsafe_keys(self) -> None:
        assert is_unsafe_key("$where")
        assert is_unsafe_key("profile.admin")
        assert not is_unsafe_key("name")

    def test_strips_nested_operator_keys(self) -> None:
        removed: list[str] = []
        value = {
            "name": "x",
            "$gt": 1,
            "nested": {"a.b": 2, "ok": [{"$ne": None, "keep": True}]},
        }
        assert sanitize_value(value, removed) == {
            "name": "x",
            "nested": {"ok": [{"keep": True}]},
        }
        assert sorted(removed) == ["$gt", "$ne", "a.b"]

    def test_scalars_untouched(self) -> None:
        assert sanitize_value("$literal") == "$literal"
        assert sanitize_value(3) == 3


class TestSanitizeInput:
    def test_category_is_sanitization(self) -> None:
        assert SanitizeInput().category == StageCategory.SANITIZATION

    async def test_builds_params_without_unsafe_keys(self, make_ctx: Any) -> None:
        ctx = make_ctx(query_string="name=bob&%24where=1&a.b=2")
        await SanitizeInput().process(ctx)
        assert ctx.params == {"name": "bob"}
        assert ctx.state["sanitized_keys"] == ["$where", "a.b"]

    async def test_repeated_params_become_lists(self, make_ctx: Any) -> None:
        ctx = make_ctx(query_string="tag=a&tag=b&tag=c&one=1")
        await SanitizeInput().process(ctx)
        assert ctx.params == {"tag": ["a", "b", "c"], "one": "1"}


class TestParameterPollutionGuard:
    async def test_keeps_last_value(self, make_ctx: Any) -> None:
        ctx = make_ctx(query_string="sort=asc&sort=desc&page=2")
        await SanitizeInput().process(ctx)
        await ParameterPollutionGuard().process(ctx)
        assert ctx.params == {"sort": "desc", "page": "2"}
        assert ctx.polluted_params == {"sort": ["asc", "desc"]}

    async def test_whitelisted_params_stay_lists(self, make_ctx: Any) -> None:
        ctx = make_ctx(query_string="id=1&id=2")
        await SanitizeInput().process(ctx)
        await ParameterPollutionGuard(whitelist=("id",)).process(ctx)
        assert ctx.params == {"id": ["1", "2"]}
        assert ctx.polluted_params == {}
