from __future__ import annotations
from typing import TYPE_CHECKING, Any, Callable, Iterable, List, Optional, Protocol, TypeVar, runtime_checkable

if TYPE_CHECKING:
    from .context import InvocationContext

H = TypeVar("H")
R = TypeVar("R")


@runtime_checkable
class ArgumentExtractor(Protocol):
    def extract(self, context: InvocationContext) -> Optional[List[Any]]:
        """
        Return the ordered argument values for this request.

        None means the request shape is not handled here and the next
        extractor should be asked; an empty list means zero arguments.
        """
        ...


@runtime_checkable
class TargetResolver(Protocol):
    def resolve(self, context: InvocationContext) -> Optional[Any]:
        """Return the object to invoke the method on, or None if not handled."""
        ...


@runtime_checkable
class ResultRenderer(Protocol):
    def render(self, context: InvocationContext, value: Any) -> bool:
        """Write `value` to `context.response` and return True, or return False."""
        ...


@runtime_checkable
class FaultRenderer(Protocol):
    def render(self, context: InvocationContext, fault: BaseException) -> bool:
        """Write `fault` to `context.response` and return True, or return False."""
        ...


def first_authoritative(
    handlers: Iterable[H],
    call: Callable[[H], R],
    declined: Callable[[R], bool] = lambda result: result is None,
) -> tuple[bool, Optional[R]]:
    """
    Walk a handler chain in order and stop at the first handler whose result
    is not declined.

    Returns (found, result). Handlers after the authoritative one are never
    called.
    """
    for handler in handlers:
        result = call(handler)
        if not declined(result):
            return True, result
    return False, None
