from __future__ import annotations
import json
import math
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..dispatch.context import InvocationContext
from ..dispatch.errors import ArgumentDecodeError
from ..dispatch.invoker import VOID

ARGUMENTS_PARAM = "a"
JSON_CONTENT_TYPE = "application/json"
TIMESTAMP_FORMAT = "%Y%m%dT%H:%M:%S"


def timestamp() -> str:
    return datetime.now().strftime(TIMESTAMP_FORMAT)


def is_json_value(value: Any) -> bool:
    """Whether `value` is made only of JSON types (dict keys must be strings)."""
    if isinstance(value, float):
        # NaN and the infinities have no JSON literal
        return math.isfinite(value)
    if value is None or isinstance(value, (bool, int, str)):
        return True
    if isinstance(value, (list, tuple)):
        return all(is_json_value(item) for item in value)
    if isinstance(value, dict):
        return all(isinstance(key, str) and is_json_value(item) for key, item in value.items())
    return False


def _decode_array(raw: str | bytes) -> List[Any]:
    try:
        arguments = json.loads(raw)
    except ValueError as e:
        raise ArgumentDecodeError(f"arguments are not valid JSON: {e}") from e
    if not isinstance(arguments, list):
        raise ArgumentDecodeError(f"arguments must be a JSON array, got {type(arguments).__name__}")
    return arguments


def _envelope(context: InvocationContext) -> Dict[str, Any]:
    return {
        "service": context.service_name,
        "method": context.method_description,
        "timestamp": timestamp(),
    }


def _write(context: InvocationContext, payload: Dict[str, Any]) -> None:
    context.response.content_type = JSON_CONTENT_TYPE
    context.response.write(json.dumps(payload, allow_nan=False))


class JsonQueryArgumentsExtractor:
    """
    Reads arguments from the `a` request parameter, a JSON array literal.

    A missing or empty parameter means zero arguments.
    """

    def __init__(self, param: str = ARGUMENTS_PARAM):
        self.param = param

    def extract(self, context: InvocationContext) -> Optional[List[Any]]:
        raw = context.request.params.get(self.param)
        if not raw:
            return []
        return _decode_array(raw)


class JsonBodyArgumentsExtractor:
    """Reads arguments from a JSON array request body; declines any other body."""

    def extract(self, context: InvocationContext) -> Optional[List[Any]]:
        content_type = (context.request.content_type or "").split(";")[0].strip().lower()
        if content_type != JSON_CONTENT_TYPE or not context.request.body:
            return None
        return _decode_array(context.request.body)


class JsonResultRenderer:
    """
    Writes the return value in a JSON envelope:

        {"service": ..., "method": ..., "timestamp": ..., "return": ...}

    `return` is left out when the method is declared to return nothing.
    """

    def render(self, context: InvocationContext, value: Any) -> bool:
        payload = _envelope(context)
        if value is VOID:
            _write(context, payload)
            return True
        if not is_json_value(value):
            return False
        payload["return"] = value
        _write(context, payload)
        return True


def exception_object(fault: BaseException) -> Dict[str, Any]:
    """Describe `fault` and, recursively, the exception that caused it."""
    description: Dict[str, Any] = {
        "class": f"{type(fault).__module__}.{type(fault).__qualname__}",
        "message": str(fault),
    }
    cause = fault.__cause__
    if cause is None and not fault.__suppress_context__:
        cause = fault.__context__
    if cause is not None:
        description["cause"] = exception_object(cause)
    return description


class JsonFaultRenderer:
    """
    Writes an exception raised by the target in the same envelope as results,
    with an `exception` member instead of `return`. Faults that are not
    `Exception`s are written under `error`.
    """

    def render(self, context: InvocationContext, fault: BaseException) -> bool:
        payload = _envelope(context)
        key = "exception" if isinstance(fault, Exception) else "error"
        payload[key] = exception_object(fault)
        _write(context, payload)
        return True
