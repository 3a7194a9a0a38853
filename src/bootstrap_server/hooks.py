"""ChainHook base and convenience hook classes."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from bootstrap_server.context import RequestContext
from bootstrap_server.log import get_logger
from bootstrap_server.outcome import Continue, Fail, Outcome, ShortCircuit
from bootstrap_server.stage import Stage

logger = get_logger(__name__)


class ChainHook:
    """Base abstraction for lifecycle hooks. All methods are no-op by default."""

    async def on_chain_start(self, ctx: RequestContext) -> None:
        pass

    async def on_chain_end(self, ctx: RequestContext, outcome: Outcome) -> None:
        pass

    async def on_stage(
        self,
        ctx: RequestContext,
        stage: Stage,
        outcome: Outcome,
    ) -> None:
        pass


class BeforeChain(ChainHook):
    """Convenience hook that only fires on chain start."""

    def __init__(self, callback: Callable[[RequestContext], Awaitable[None]]) -> None:
        self._callback = callback

    async def on_chain_start(self, ctx: RequestContext) -> None:
        await self._callback(ctx)


class AfterStage(ChainHook):
    """Convenience hook that fires after each stage."""

    def __init__(
        self,
        callback: Callable[[RequestContext, Stage, Outcome], Awaitable[None]],
    ) -> None:
        self._callback = callback

    async def on_stage(
        self,
        ctx: RequestContext,
        stage: Stage,
        outcome: Outcome,
    ) -> None:
        await self._callback(ctx, stage, outcome)


class StageTraceHook(ChainHook):
    """Logs the outcome of every stage at debug level."""

    async def on_stage(
        self,
        ctx: RequestContext,
        stage: Stage,
        outcome: Outcome,
    ) -> None:
        if isinstance(outcome, Continue):
            result = "continue"
        elif isinstance(outcome, ShortCircuit):
            result = f"short_circuit:{outcome.response.status_code}"
        else:
            result = f"fail:{type(outcome.error).__name__}"
        logger.debug(
            "stage_processed",
            stage=stage.name,
            category=stage.category.value,
            outcome=result,
            path=ctx.path,
        )
        if isinstance(outcome, Fail):
            ctx.state.setdefault("failed_stage", stage.name)
