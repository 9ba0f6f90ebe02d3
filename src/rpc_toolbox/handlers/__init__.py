from .json_types import (
    JsonBodyArgumentsExtractor,
    JsonFaultRenderer,
    JsonQueryArgumentsExtractor,
    JsonResultRenderer,
)
from .targets import PerCallTargetResolver, SessionTargetResolver, SingletonTargetResolver

__all__ = [
    "JsonBodyArgumentsExtractor",
    "JsonFaultRenderer",
    "JsonQueryArgumentsExtractor",
    "JsonResultRenderer",
    "PerCallTargetResolver",
    "SessionTargetResolver",
    "SingletonTargetResolver",
]
