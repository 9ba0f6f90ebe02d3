from __future__ import annotations
from typing import TYPE_CHECKING, Any, FrozenSet, Optional, Tuple

from .transport import InboundRequest, ResponseSink

if TYPE_CHECKING:
    from .handlers import ArgumentExtractor, FaultRenderer, ResultRenderer, TargetResolver
    from .invoker import SelectedMethod
    from .registration import ServiceRegistration


class InvocationContext:
    """
    Everything a handler may need to know about one invocation.

    The handler sequences are the registration's own tuples, shared with
    every other context of the same service. `selected_method` is filled in
    once by the invoker and readable by renderers afterwards.
    """

    def __init__(
        self,
        registration: ServiceRegistration,
        method_name: str,
        request: InboundRequest,
        response: ResponseSink,
    ):
        self.service_name: str = registration.service_name
        self.service_type: type = registration.service_type
        self.method_name = method_name
        self.request = request
        self.response = response
        self.argument_extractors: Tuple[ArgumentExtractor, ...] = registration.argument_extractors
        self.target_resolvers: Tuple[TargetResolver, ...] = registration.target_resolvers
        self.result_renderers: Tuple[ResultRenderer, ...] = registration.result_renderers
        self.fault_renderers: Tuple[FaultRenderer, ...] = registration.fault_renderers
        self.filtered_methods: FrozenSet[str] = registration.filtered_methods
        self._selected_method: Optional[SelectedMethod] = None

    @property
    def selected_method(self) -> Optional[SelectedMethod]:
        return self._selected_method

    @selected_method.setter
    def selected_method(self, method: SelectedMethod) -> None:
        if self._selected_method is not None:
            raise RuntimeError(f"method already selected for {self.service_name}/{self.method_name}")
        self._selected_method = method

    @property
    def method_description(self) -> str:
        """Signature of the selected method, or the bare requested name."""
        if self._selected_method is None:
            return self.method_name
        return self._selected_method.signature

    def __repr__(self) -> str:
        return f"InvocationContext({self.service_name}/{self.method_name})"
