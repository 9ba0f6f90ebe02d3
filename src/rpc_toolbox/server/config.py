from __future__ import annotations
import importlib
import os
from dataclasses import replace
from typing import Any, Dict, List, Mapping

import yaml

from ..dispatch.errors import ConfigurationError
from ..dispatch.registration import ServiceDescription, ServiceRegistry, build_registration

DEFAULT_SERVICES_CONFIG = "rpc-services.yaml"
SERVICES_CONFIG_ENV = "RPC_SERVICES_CONFIG"

HANDLER_KEYS = (
    "argument_extractors",
    "target_resolvers",
    "result_renderers",
    "fault_renderers",
)


def import_object(path: str) -> Any:
    """Import `package.module:attribute`."""
    module_name, sep, attribute = path.partition(":")
    if not sep or not module_name or not attribute:
        raise ConfigurationError(f"expected 'module:attribute', got {path!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"cannot import {module_name!r}: {e}") from e
    obj = module
    for part in attribute.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise ConfigurationError(f"{module_name!r} has no attribute {attribute!r}") from e
    return obj


def _handlers(service_name: str, key: str, entries: Any) -> List[Any]:
    if not isinstance(entries, list):
        raise ConfigurationError(f"service {service_name!r}: {key} must be a list")
    handlers = []
    for entry in entries:
        if isinstance(entry, str):
            handlers.append(import_object(entry)())
        elif isinstance(entry, dict) and "class" in entry:
            kwargs = entry.get("args", {}) or {}
            handlers.append(import_object(entry["class"])(**kwargs))
        else:
            raise ConfigurationError(f"service {service_name!r}: invalid {key} entry {entry!r}")
    return handlers


def description_from_entry(service_name: str, entry: Any) -> ServiceDescription:
    """
    Build the description of one service from its YAML entry.

    A bare `module:Class` string uses the class's own `rpc_description`; a
    mapping may override any handler list and the filtered method names.
    """
    if isinstance(entry, str):
        entry = {"class": entry}
    if not isinstance(entry, dict) or "class" not in entry:
        raise ConfigurationError(f"service {service_name!r}: expected a class path or a mapping with 'class'")

    service_type = import_object(entry["class"])
    if hasattr(service_type, "rpc_description"):
        description = service_type.rpc_description(service_name)
    else:
        description = ServiceDescription(service_name=service_name, service_type=service_type)

    overrides: Dict[str, Any] = {}
    for key in HANDLER_KEYS:
        if key in entry:
            overrides[key] = _handlers(service_name, key, entry[key])
    if "filtered_methods" in entry:
        overrides["filtered_methods"] = list(entry["filtered_methods"] or [])
    return replace(description, **overrides)


def registry_from_mapping(data: Mapping[str, Any]) -> ServiceRegistry:
    services = data.get("services") if isinstance(data, Mapping) else None
    if not isinstance(services, dict):
        raise ConfigurationError("configuration must contain a 'services' mapping")
    return ServiceRegistry(
        build_registration(description_from_entry(str(name), entry))
        for name, entry in services.items()
    )


def load_registry(path: str | None = None) -> ServiceRegistry:
    path = path or os.environ.get(SERVICES_CONFIG_ENV, DEFAULT_SERVICES_CONFIG)
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"cannot read services configuration {path!r}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"invalid services configuration {path!r}: {e}") from e
    return registry_from_mapping(data)
