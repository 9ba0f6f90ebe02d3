from __future__ import annotations
from typing import Any, Dict, Sequence


class RpcError(Exception):
    """
    Base class for every fault raised by the dispatcher itself.

    Exceptions raised by a target method are never wrapped in an RpcError,
    which is what lets the dispatcher keep framework faults off the
    fault-renderer chain.
    """
    code = "rpc_error"
    http_status = 500

    def __init__(self, message: str, code: str | None = None, http_status: int | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if http_status is not None:
            self.http_status = http_status

    def to_error_obj(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message}


# -------------------------------------------------------------------------
# Routing faults: detected before any handler chain runs
# -------------------------------------------------------------------------

class RoutingError(RpcError):
    http_status = 400


class MalformedPath(RoutingError):
    code = "malformed_path"

    def __init__(self, path: str | None):
        super().__init__(f"invalid service path: {path!r}")
        self.path = path


class UnknownService(RoutingError):
    code = "unknown_service"
    http_status = 404

    def __init__(self, service_name: str):
        super().__init__(f"unknown service: {service_name}")
        self.service_name = service_name


class MethodFiltered(RoutingError):
    code = "method_filtered"
    http_status = 403

    def __init__(self, service_name: str, method_name: str):
        super().__init__(f"method {method_name!r} cannot be invoked on service {service_name!r}")
        self.service_name = service_name
        self.method_name = method_name


# -------------------------------------------------------------------------
# Configuration faults: the registered handlers are incomplete
# -------------------------------------------------------------------------

class ConfigurationError(RpcError):
    code = "configuration_error"


class NoArgumentExtractor(ConfigurationError):
    code = "no_argument_extractor"

    def __init__(self, service_name: str, method_name: str):
        super().__init__(f"no argument extractor handled {service_name}/{method_name}")


class NoTargetResolver(ConfigurationError):
    code = "no_target_resolver"

    def __init__(self, service_name: str, method_name: str):
        super().__init__(f"no target resolver handled {service_name}/{method_name}")


class UnrenderableResult(ConfigurationError):
    code = "unrenderable_result"

    def __init__(self, service_name: str, method_name: str, value: Any):
        super().__init__(
            f"no result renderer handled {type(value).__name__} "
            f"returned by {service_name}/{method_name}"
        )


class UnrenderableFault(ConfigurationError):
    code = "unrenderable_fault"

    def __init__(self, service_name: str, method_name: str, fault: BaseException):
        super().__init__(
            f"no fault renderer handled {type(fault).__name__} "
            f"raised by {service_name}/{method_name}"
        )
        self.fault = fault


class InvocationFailure(ConfigurationError):
    code = "invocation_failure"


# -------------------------------------------------------------------------
# Resolver and argument faults
# -------------------------------------------------------------------------

class NoMatchingMethod(RpcError):
    code = "no_matching_method"
    http_status = 404

    def __init__(self, method_name: str, argument_types: Sequence[str]):
        super().__init__(f"no matching method: {method_name}({', '.join(argument_types)})")
        self.method_name = method_name
        self.argument_types = tuple(argument_types)


class ArgumentDecodeError(RpcError):
    code = "bad_arguments"
    http_status = 400
