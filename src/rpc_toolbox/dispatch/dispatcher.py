from __future__ import annotations
import json
import logging
import time
from enum import StrEnum
from functools import wraps
from typing import Any, Callable, List, Sequence

from .context import InvocationContext
from .errors import (
    ConfigurationError,
    MalformedPath,
    MethodFiltered,
    NoArgumentExtractor,
    NoTargetResolver,
    RoutingError,
    RpcError,
    UnrenderableFault,
    UnrenderableResult,
)
from .handlers import first_authoritative
from .invoker import invoke
from .registration import ServiceRegistration, ServiceRegistry
from .routing import Invoke, ListServices, route
from .transport import InboundRequest, ResponseSink

logger = logging.getLogger("dispatch")
config_logger = logging.getLogger("dispatch.config")
profiling_logger = logging.getLogger("profiling")

ServiceListRenderer = Callable[[Sequence[str], ResponseSink], None]


def log_timing(name: str | None = None):
    def decorator(fn):
        fn_name = name or fn.__qualname__

        @wraps(fn)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                elapsed = time.perf_counter() - start
                profiling_logger.info("%s took %.3f ms", fn_name, elapsed * 1000)
        return wrapper
    return decorator


class DispatchOutcome(StrEnum):
    LISTED = "LISTED"
    RENDERED = "RENDERED"
    FAULTED = "FAULTED"


def render_service_list_json(names: Sequence[str], response: ResponseSink) -> None:
    response.content_type = "application/json"
    response.write(json.dumps(list(names)))


class Dispatcher:
    """
    Routes a request to a registered service and runs its handler chains:
    extract arguments, resolve the target, invoke, render.

    Routing faults and configuration faults are raised to the caller (the
    transport); only exceptions raised by the target method go through the
    service's fault renderers.
    """

    def __init__(self, registry: ServiceRegistry, list_renderer: ServiceListRenderer = render_service_list_json):
        self.registry = registry
        self.list_renderer = list_renderer

    def dispatch(self, request: InboundRequest, response: ResponseSink) -> DispatchOutcome:
        try:
            registration, method_name = self._admit(request.path)
        except RoutingError as e:
            logger.warning("Rejected %r: %s", request.path, e.message)
            raise

        if registration is None:
            self.list_renderer(list(self.registry.names()), response)
            return DispatchOutcome.LISTED

        context = InvocationContext(registration, method_name, request, response)
        try:
            with registration.lock:
                return self._run(context)
        except ConfigurationError as e:
            config_logger.error("[%s/%s] %s", context.service_name, context.method_name, e.message)
            raise

    def _admit(self, path: str) -> tuple[ServiceRegistration | None, str]:
        outcome = route(path)
        if isinstance(outcome, ListServices):
            return None, ""
        if not isinstance(outcome, Invoke):
            raise MalformedPath(path)

        registration = self.registry.lookup(outcome.service)
        if registration.is_filtered(outcome.method):
            raise MethodFiltered(outcome.service, outcome.method)
        return registration, outcome.method

    @log_timing("dispatch")
    def _run(self, context: InvocationContext) -> DispatchOutcome:
        arguments = self.extract_arguments(context)
        target = self.resolve_target(context)
        try:
            value = invoke(context, target, arguments)
        except (RpcError, KeyboardInterrupt, SystemExit, GeneratorExit):
            raise
        except BaseException as fault:
            logger.info(
                "[%s/%s] target raised %s: %s",
                context.service_name, context.method_name, type(fault).__name__, fault,
            )
            self.render_fault(context, fault)
            return DispatchOutcome.FAULTED

        self.render_result(context, value)
        return DispatchOutcome.RENDERED

    def extract_arguments(self, context: InvocationContext) -> List[Any]:
        found, arguments = first_authoritative(
            context.argument_extractors, lambda extractor: extractor.extract(context)
        )
        if not found:
            raise NoArgumentExtractor(context.service_name, context.method_name)
        return list(arguments)

    def resolve_target(self, context: InvocationContext) -> Any:
        found, target = first_authoritative(
            context.target_resolvers, lambda resolver: resolver.resolve(context)
        )
        if not found:
            raise NoTargetResolver(context.service_name, context.method_name)
        return target

    def render_result(self, context: InvocationContext, value: Any) -> None:
        found, _ = first_authoritative(
            context.result_renderers,
            lambda renderer: renderer.render(context, value),
            declined=lambda handled: not handled,
        )
        if not found:
            raise UnrenderableResult(context.service_name, context.method_name, value)

    def render_fault(self, context: InvocationContext, fault: BaseException) -> None:
        found, _ = first_authoritative(
            context.fault_renderers,
            lambda renderer: renderer.render(context, fault),
            declined=lambda handled: not handled,
        )
        if not found:
            raise UnrenderableFault(context.service_name, context.method_name, fault)
