"""Registry configuration: YAML loading, resolution and the in-memory registry."""

from journalcheck.registry.defaults import DEFAULT_REGISTRY_YAML
from journalcheck.registry.loader import SourceMap, TrackedLoader, YAMLSafetyError
from journalcheck.registry.registry import SchemaRegistry
from journalcheck.registry.resolver import RegistryResolver

__all__ = [
    "DEFAULT_REGISTRY_YAML",
    "RegistryResolver",
    "SchemaRegistry",
    "SourceMap",
    "TrackedLoader",
    "YAMLSafetyError",
]
