"""Shared type aliases and protocols."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Union

from starlette.responses import Response

if TYPE_CHECKING:
    from bootstrap_server.context import RequestContext

# Route handlers may be sync or async
RouteHandler = Callable[["RequestContext"], Union[Response, Awaitable[Response]]]
IdentityFunc = Callable[["RequestContext"], Union[str, None]]
Clock = Callable[[], float]
ExitFunc = Callable[[int], None]
