from __future__ import annotations
import functools
import inspect
import logging
import types
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Literal, Sequence, Tuple, TypeVar, Union, get_args, get_origin

from .errors import InvocationFailure, NoMatchingMethod

if TYPE_CHECKING:
    from .context import InvocationContext

logger = logging.getLogger("dispatch")

# Declared as a parameter type, these only accept a value of exactly this type.
PRIMITIVE_TYPES = (bool, int, float)

_EXPOSABLE_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


class _VoidType:
    """Marker returned for methods declared `-> None`."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "VOID"

    def __reduce__(self):
        return (_VoidType, ())


VOID = _VoidType()


def remote(name: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Expose a method under `name` instead of its own attribute name.

    Several methods exposed under the same name form an overload set:

        @remote("echo")
        def echo_int(self, i: int) -> int: ...

        @remote("echo")
        def echo_str(self, s: str) -> str: ...
    """
    def decorator(fn):
        fn.__rpc_method__ = name
        return fn
    return decorator


def accepts(declared: Any, value: Any) -> bool:
    """Whether `value` may be passed for a parameter declared as `declared`."""
    if declared is inspect.Parameter.empty or declared is Any or declared is object:
        return True
    if declared is None or declared is type(None):
        return value is None
    if declared in PRIMITIVE_TYPES:
        # no widening: an int is not a float and a bool is not an int
        return type(value) is declared

    origin = get_origin(declared)
    if origin is Union or origin is types.UnionType:
        return any(accepts(member, value) for member in get_args(declared))
    if origin is Literal:
        return any(type(value) is type(choice) and value == choice for choice in get_args(declared))
    if origin is not None:
        declared = origin

    if isinstance(declared, TypeVar):
        return True
    if isinstance(declared, type):
        return isinstance(value, declared)
    return False


def type_name(annotation: Any) -> str:
    if annotation is inspect.Parameter.empty:
        return "any"
    if annotation is None or annotation is type(None):
        return "None"
    if isinstance(annotation, type) and get_origin(annotation) is None:
        return annotation.__name__
    return str(annotation).replace("typing.", "")


@dataclass(frozen=True)
class SelectedMethod:
    rpc_name: str
    attribute_name: str
    function: Callable[..., Any]
    parameters: Tuple[inspect.Parameter, ...]
    return_annotation: Any

    @property
    def parameter_types(self) -> Tuple[Any, ...]:
        return tuple(parameter.annotation for parameter in self.parameters)

    @property
    def returns_void(self) -> bool:
        return self.return_annotation is None or self.return_annotation is type(None)

    @property
    def signature(self) -> str:
        params = ", ".join(
            f"{p.name}: {type_name(p.annotation)}" if p.annotation is not inspect.Parameter.empty else p.name
            for p in self.parameters
        )
        text = f"{self.rpc_name}({params})"
        if self.return_annotation is not inspect.Signature.empty:
            text += f" -> {type_name(self.return_annotation)}"
        return text

    def matches(self, arguments: Sequence[Any]) -> bool:
        if len(self.parameters) != len(arguments):
            return False
        return all(
            accepts(parameter.annotation, value)
            for parameter, value in zip(self.parameters, arguments)
        )


def _candidate(rpc_name: str, attribute_name: str, fn: Callable[..., Any]) -> SelectedMethod | None:
    try:
        signature = inspect.signature(fn, eval_str=True)
    except (NameError, SyntaxError, TypeError, ValueError) as e:
        logger.warning("Skipping %s: cannot read its signature (%s)", fn.__qualname__, e)
        return None

    # drop `self`
    parameters = tuple(signature.parameters.values())[1:]
    if any(parameter.kind not in _EXPOSABLE_KINDS for parameter in parameters):
        return None
    return SelectedMethod(
        rpc_name=rpc_name,
        attribute_name=attribute_name,
        function=fn,
        parameters=parameters,
        return_annotation=signature.return_annotation,
    )


class MethodTable:
    """
    Exposed methods of one class: rpc name -> candidates in enumeration order.

    Enumeration walks the MRO from the most derived class, in definition
    order within each class, so an override hides the method it replaces.
    Names starting with an underscore are never exposed.
    """

    def __init__(self, service_type: type):
        self.service_type = service_type
        self._candidates: Dict[str, List[SelectedMethod]] = {}
        seen = set()
        for klass in service_type.__mro__:
            if klass is object:
                continue
            for attribute_name, member in vars(klass).items():
                if attribute_name in seen:
                    continue
                seen.add(attribute_name)
                if attribute_name.startswith("_") or not inspect.isfunction(member):
                    continue
                rpc_name = getattr(member, "__rpc_method__", attribute_name)
                candidate = _candidate(rpc_name, attribute_name, member)
                if candidate is not None:
                    self._candidates.setdefault(rpc_name, []).append(candidate)

    def candidates(self, rpc_name: str) -> Tuple[SelectedMethod, ...]:
        return tuple(self._candidates.get(rpc_name, ()))

    def names(self) -> List[str]:
        return list(self._candidates)

    def select(self, rpc_name: str, arguments: Sequence[Any]) -> SelectedMethod:
        """First candidate whose parameters accept `arguments` (first-fit)."""
        for candidate in self._candidates.get(rpc_name, ()):
            if candidate.matches(arguments):
                return candidate
        raise NoMatchingMethod(rpc_name, [type(value).__name__ for value in arguments])


@functools.lru_cache(maxsize=None)
def method_table(service_type: type) -> MethodTable:
    return MethodTable(service_type)


def invoke(context: InvocationContext, target: Any, arguments: Sequence[Any]) -> Any:
    """
    Resolve `context.method_name` against the runtime type of `target` and
    call it with `arguments`.

    Exceptions raised by the method itself propagate unchanged; only
    resolution problems are raised as RpcError.
    """
    arguments = list(arguments)
    candidate = method_table(type(target)).select(context.method_name, arguments)

    bound = getattr(target, candidate.attribute_name, None)
    if not callable(bound) or getattr(bound, "__func__", None) is not candidate.function:
        raise InvocationFailure(
            f"{type(target).__name__}.{candidate.attribute_name} is not accessible on the target instance"
        )

    context.selected_method = candidate
    result = bound(*arguments)
    if candidate.returns_void:
        return VOID
    return result
