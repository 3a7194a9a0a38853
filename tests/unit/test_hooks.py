"""Tests for ChainHook, BeforeChain, AfterStage and StageTraceHook."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

from bootstrap_server.chain import Chain
from bootstrap_server.context import RequestContext
from bootstrap_server.exceptions import StageAbort
from bootstrap_server.hooks import AfterStage, BeforeChain, ChainHook, StageTraceHook
from bootstrap_server.outcome import CONTINUE, Continue, Fail, Outcome
from bootstrap_server.stage import Stage, StageCategory


class _Pass(Stage):
    category = StageCategory.SECURITY

    async def process(self, ctx: RequestContext) -> Outcome:
        return CONTINUE


class _Abort(Stage):
    category = StageCategory.BODY

    async def process(self, ctx: RequestContext) -> Outcome:
        raise StageAbort("nope")


class _RecordingHook(ChainHook):
    def __init__(self) -> None:
        self.events: list[str] = []

    async def on_chain_start(self, ctx: RequestContext) -> None:
        self.events.append("start")

    async def on_stage(self, ctx: RequestContext, stage: Stage, outcome: Outcome) -> None:
        self.events.append(f"{stage.name}:{type(outcome).__name__}")

    async def on_chain_end(self, ctx: RequestContext, outcome: Outcome) -> None:
        self.events.append(f"end:{type(outcome).__name__}")


class TestChainHook:
    async def test_base_hook_is_noop(self, make_ctx: Any) -> None:
        chain = Chain(_Pass()).add_hook(ChainHook())
        assert isinstance(await chain.run(make_ctx()), Continue)

    async def test_hook_sees_every_stage(self, make_ctx: Any) -> None:
        hook = _RecordingHook()
        chain = Chain(_Abort(), _Pass()).add_hook(hook)
        await chain.run(make_ctx())
        assert hook.events == ["start", "_Pass:Continue", "_Abort:Fail", "end:Fail"]

    async def test_add_hook_invalidates_cache(self) -> None:
        chain = Chain(_Pass())
        r1 = chain.resolve()
        chain.add_hook(ChainHook())
        assert chain.resolve() is not r1
        assert len(chain.resolve().hooks) == 1


class TestConvenienceHooks:
    async def test_before_chain(self, make_ctx: Any) -> None:
        callback = AsyncMock()
        ctx = make_ctx()
        await Chain(_Pass()).add_hook(BeforeChain(callback)).run(ctx)
        callback.assert_awaited_once_with(ctx)

    async def test_after_stage(self, make_ctx: Any) -> None:
        callback = AsyncMock()
        await Chain(_Pass(), _Abort()).add_hook(AfterStage(callback)).run(make_ctx())
        assert callback.await_count == 2
        last_outcome = callback.await_args_list[-1].args[2]
        assert isinstance(last_outcome, Fail)


class TestStageTraceHook:
    async def test_marks_failed_stage(self, make_ctx: Any) -> None:
        ctx = make_ctx()
        await Chain(_Pass(), _Abort()).add_hook(StageTraceHook()).run(ctx)
        assert ctx.state["failed_stage"] == "_Abort"

    async def test_leaves_successful_chain_unmarked(self, make_ctx: Any) -> None:
        ctx = make_ctx()
        await Chain(_Pass()).add_hook(StageTraceHook()).run(ctx)
        assert "failed_stage" not in ctx.state
