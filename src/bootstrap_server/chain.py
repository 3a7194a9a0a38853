"""Chain class — ordered container and execution engine for Stages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from bootstrap_server.context import RequestContext
from bootstrap_server.outcome import CONTINUE, Continue, Fail, Outcome
from bootstrap_server.stage import Stage

if TYPE_CHECKING:
    from bootstrap_server.hooks import ChainHook


@dataclass(frozen=True)
class ResolvedChain:
    """Immutable, pre-computed execution plan."""

    stages: tuple[Stage, ...]
    hooks: tuple[ChainHook, ...] = ()


class Chain:
    """Ordered container of Stage instances."""

    def __init__(self, *stages: Stage | Chain) -> None:
        self._items: list[Stage | Chain] = list(stages)
        self._hooks: list[ChainHook] = []
        self._resolved: ResolvedChain | None = None

    def add(self, *stages: Stage | Chain) -> Chain:
        self._items.extend(stages)
        self._resolved = None
        return self

    def add_hook(self, hook: ChainHook) -> Chain:
        self._hooks.append(hook)
        self._resolved = None
        return self

    def resolve(self) -> ResolvedChain:
        if self._resolved is not None:
            return self._resolved

        flat: list[Stage] = []
        self._flatten(self._items, flat)

        sorted_stages = sorted(flat, key=lambda s: s.category.order)

        self._resolved = ResolvedChain(
            stages=tuple(sorted_stages),
            hooks=tuple(self._hooks),
        )
        return self._resolved

    async def run(self, ctx: RequestContext) -> Outcome:
        """Run every stage in order until one does not continue.

        An exception from a stage or a hook becomes a ``Fail``, unless an
        earlier failure is already the outcome.
        """
        resolved = self.resolve()

        try:
            for hook in resolved.hooks:
                await hook.on_chain_start(ctx)
        except Exception as exc:
            return Fail(exc)

        outcome: Outcome = CONTINUE
        for stage in resolved.stages:
            try:
                outcome = await stage.process(ctx)
            except Exception as exc:
                outcome = Fail(exc)
            try:
                for hook in resolved.hooks:
                    await hook.on_stage(ctx, stage, outcome)
            except Exception as exc:
                outcome = _first_failure(outcome, exc)
            if not isinstance(outcome, Continue):
                break

        try:
            for hook in resolved.hooks:
                await hook.on_chain_end(ctx, outcome)
        except Exception as exc:
            outcome = _first_failure(outcome, exc)

        return outcome

    @staticmethod
    def _flatten(items: list[Stage | Chain], out: list[Stage]) -> None:
        for item in items:
            if isinstance(item, Chain):
                Chain._flatten(item._items, out)
            elif isinstance(item, Stage):
                out.append(item)


def _first_failure(outcome: Outcome, exc: Exception) -> Outcome:
    return outcome if isinstance(outcome, Fail) else Fail(exc)
