from __future__ import annotations
import inspect
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Iterator, Sequence, Tuple

from .errors import ConfigurationError, UnknownService
from .handlers import ArgumentExtractor, FaultRenderer, ResultRenderer, TargetResolver
from .routing import SEPARATOR


@dataclass
class ServiceDescription:
    """Declarative description of a service, the input of `build_registration`."""
    service_name: str
    service_type: type
    argument_extractors: Sequence[ArgumentExtractor] = ()
    target_resolvers: Sequence[TargetResolver] = ()
    result_renderers: Sequence[ResultRenderer] = ()
    fault_renderers: Sequence[FaultRenderer] = ()
    filtered_methods: Iterable[str] = ()


@dataclass(frozen=True)
class ServiceRegistration:
    service_name: str
    service_type: type
    argument_extractors: Tuple[ArgumentExtractor, ...]
    target_resolvers: Tuple[TargetResolver, ...]
    result_renderers: Tuple[ResultRenderer, ...]
    fault_renderers: Tuple[FaultRenderer, ...]
    filtered_methods: FrozenSet[str]
    # held for the whole extract -> render span of every call to this service
    lock: Any = field(default_factory=threading.Lock, compare=False, repr=False)

    def is_filtered(self, method_name: str) -> bool:
        return method_name in self.filtered_methods


def _check_handlers(name: str, kind: str, handlers: Sequence[Any], protocol: type) -> Tuple[Any, ...]:
    handlers = tuple(handlers)
    for handler in handlers:
        if not isinstance(handler, protocol):
            raise ConfigurationError(
                f"service {name!r}: {type(handler).__name__} is not a valid {kind}"
            )
    return handlers


def build_registration(description: ServiceDescription) -> ServiceRegistration:
    """Validate a service description and freeze it into a registration."""
    name = description.service_name
    if not isinstance(name, str) or not name or SEPARATOR in name:
        raise ConfigurationError(f"invalid service name: {name!r}")
    if not inspect.isclass(description.service_type):
        raise ConfigurationError(f"service {name!r}: service_type must be a class")

    return ServiceRegistration(
        service_name=name,
        service_type=description.service_type,
        argument_extractors=_check_handlers(
            name, "argument extractor", description.argument_extractors, ArgumentExtractor
        ),
        target_resolvers=_check_handlers(
            name, "target resolver", description.target_resolvers, TargetResolver
        ),
        result_renderers=_check_handlers(
            name, "result renderer", description.result_renderers, ResultRenderer
        ),
        fault_renderers=_check_handlers(
            name, "fault renderer", description.fault_renderers, FaultRenderer
        ),
        filtered_methods=frozenset(description.filtered_methods),
    )


class ServiceRegistry:
    """
    Read-only mapping of service name to registration.

    Built once at startup; lookups need no locking because nothing mutates
    the mapping afterwards.
    """

    def __init__(self, registrations: Iterable[ServiceRegistration] = ()):
        services: Dict[str, ServiceRegistration] = {}
        for registration in registrations:
            if registration.service_name in services:
                raise ConfigurationError(f"duplicate service name: {registration.service_name!r}")
            services[registration.service_name] = registration
        self._services = services

    @classmethod
    def from_descriptions(cls, descriptions: Iterable[ServiceDescription]) -> "ServiceRegistry":
        return cls(build_registration(description) for description in descriptions)

    def lookup(self, service_name: str) -> ServiceRegistration:
        try:
            return self._services[service_name]
        except KeyError:
            raise UnknownService(service_name) from None

    def names(self) -> Iterator[str]:
        return iter(self._services)

    def __contains__(self, service_name: object) -> bool:
        return service_name in self._services

    def __iter__(self) -> Iterator[ServiceRegistration]:
        return iter(self._services.values())

    def __len__(self) -> int:
        return len(self._services)
