from .app import create_app
from .config import load_registry, registry_from_mapping

__all__ = ["create_app", "load_registry", "registry_from_mapping"]
