"""Stage outcomes — Continue, ShortCircuit and Fail."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from starlette.responses import Response


@dataclass(frozen=True)
class Continue:
    """Proceed to the next stage."""


@dataclass(frozen=True)
class ShortCircuit:
    """Stop the chain and send ``response`` as is."""

    response: Response


@dataclass(frozen=True)
class Fail:
    """Stop the chain and hand ``error`` to the error funnel."""

    error: BaseException


Outcome = Union[Continue, ShortCircuit, Fail]

CONTINUE = Continue()
