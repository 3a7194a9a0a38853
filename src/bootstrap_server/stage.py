"""Stage abstract base class and StageCategory enum."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import ClassVar

from bootstrap_server.context import RequestContext
from bootstrap_server.outcome import Outcome


class StageCategory(Enum):
    """Stage categories, defining strict execution order."""

    SECURITY = "security"
    SANITIZATION = "sanitization"
    ADMISSION = "admission"
    LOGGING = "logging"
    CORS = "cors"
    BODY = "body"
    CUSTOM = "custom"

    @property
    def order(self) -> int:
        _ORDER = {
            "security": 1,
            "sanitization": 2,
            "admission": 3,
            "logging": 4,
            "cors": 5,
            "body": 6,
            "custom": 7,
        }
        return _ORDER[self.value]


class Stage(ABC):
    """Base abstraction for all units of the middleware chain."""

    category: ClassVar[StageCategory]

    @abstractmethod
    async def process(self, ctx: RequestContext) -> Outcome: ...

    @property
    def name(self) -> str:
        return type(self).__name__
