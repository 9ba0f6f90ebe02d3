from .base import BaseJsonApplicationService, BaseJsonService, BaseJsonSessionService

__all__ = [
    "BaseJsonApplicationService",
    "BaseJsonService",
    "BaseJsonSessionService",
]
