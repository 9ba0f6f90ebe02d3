from .context import InvocationContext
from .dispatcher import DispatchOutcome, Dispatcher, render_service_list_json
from .errors import (
    ArgumentDecodeError,
    ConfigurationError,
    InvocationFailure,
    MalformedPath,
    MethodFiltered,
    NoArgumentExtractor,
    NoMatchingMethod,
    NoTargetResolver,
    RoutingError,
    RpcError,
    UnknownService,
    UnrenderableFault,
    UnrenderableResult,
)
from .handlers import ArgumentExtractor, FaultRenderer, ResultRenderer, TargetResolver
from .invoker import VOID, MethodTable, SelectedMethod, invoke, method_table, remote
from .registration import ServiceDescription, ServiceRegistration, ServiceRegistry, build_registration
from .routing import Invoke, ListServices, Malformed, route
from .transport import InboundRequest, ResponseSink

__all__ = [
    "InvocationContext",
    "DispatchOutcome",
    "Dispatcher",
    "render_service_list_json",
    "ArgumentDecodeError",
    "ConfigurationError",
    "InvocationFailure",
    "MalformedPath",
    "MethodFiltered",
    "NoArgumentExtractor",
    "NoMatchingMethod",
    "NoTargetResolver",
    "RoutingError",
    "RpcError",
    "UnknownService",
    "UnrenderableFault",
    "UnrenderableResult",
    "ArgumentExtractor",
    "FaultRenderer",
    "ResultRenderer",
    "TargetResolver",
    "VOID",
    "MethodTable",
    "SelectedMethod",
    "invoke",
    "method_table",
    "remote",
    "ServiceDescription",
    "ServiceRegistration",
    "ServiceRegistry",
    "build_registration",
    "Invoke",
    "ListServices",
    "Malformed",
    "route",
    "InboundRequest",
    "ResponseSink",
]
