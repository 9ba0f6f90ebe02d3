from __future__ import annotations
from typing import Any, Dict, List

from ..dispatch.invoker import method_table, type_name
from ..dispatch.registration import ServiceDescription
from ..handlers.json_types import (
    JsonBodyArgumentsExtractor,
    JsonFaultRenderer,
    JsonQueryArgumentsExtractor,
    JsonResultRenderer,
)
from ..handlers.targets import PerCallTargetResolver, SessionTargetResolver, SingletonTargetResolver

DEFAULT_FILTERED_METHODS = ("rpc_description",)


class BaseJsonService:
    """
    Base class for services speaking JSON.

    `rpc_description` is what the configuration loader calls for a service
    listed by class only: JSON body or `a` parameter arguments, JSON
    envelopes for results and exceptions, and the scope chosen by
    `target_resolver_cls`.
    """
    target_resolver_cls: type = PerCallTargetResolver

    @classmethod
    def rpc_description(cls, name: str) -> ServiceDescription:
        return ServiceDescription(
            service_name=name,
            service_type=cls,
            argument_extractors=[JsonBodyArgumentsExtractor(), JsonQueryArgumentsExtractor()],
            target_resolvers=[cls.target_resolver_cls()],
            result_renderers=[JsonResultRenderer()],
            fault_renderers=[JsonFaultRenderer()],
            filtered_methods=DEFAULT_FILTERED_METHODS,
        )

    def describe(self) -> List[Dict[str, Any]]:
        """List every exposed method with its parameter and return types."""
        description = []
        table = method_table(type(self))
        for name in table.names():
            if name == "describe" or name in DEFAULT_FILTERED_METHODS:
                continue
            for candidate in table.candidates(name):
                description.append({
                    "method": name,
                    "params": [type_name(annotation) for annotation in candidate.parameter_types],
                    "returns": type_name(candidate.return_annotation),
                })
        return description


class BaseJsonSessionService(BaseJsonService):
    """One service instance per client session."""
    target_resolver_cls = SessionTargetResolver


class BaseJsonApplicationService(BaseJsonService):
    """One service instance shared by every client."""
    target_resolver_cls = SingletonTargetResolver
