from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Union

SEPARATOR = "/"


@dataclass(frozen=True)
class ListServices:
    pass


@dataclass(frozen=True)
class Invoke:
    service: str
    method: str


@dataclass(frozen=True)
class Malformed:
    path: Optional[str]


RouteOutcome = Union[ListServices, Invoke, Malformed]


def route(path_info: Optional[str]) -> RouteOutcome:
    """
    Parse `/<service>/<method>` into a route outcome.

    An empty path lists the services. Anything other than exactly two
    non-empty segments is malformed.
    """
    path = path_info or ""
    if path.startswith(SEPARATOR):
        path = path[1:]
    if not path:
        return ListServices()

    service, sep, method = path.partition(SEPARATOR)
    if not sep or not service or not method or SEPARATOR in method:
        return Malformed(path_info)
    return Invoke(service=service, method=method)
