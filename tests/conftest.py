"""Shared test fixtures for journalcheck."""

from __future__ import annotations

import pytest

from journalcheck.engine.validation import ValidationEngine
from journalcheck.registry.defaults import DEFAULT_REGISTRY_YAML
from journalcheck.registry.loader import TrackedLoader
from journalcheck.registry.registry import SchemaRegistry
from journalcheck.registry.resolver import RegistryResolver
from journalcheck.service.registry_store import RegistryStore
from journalcheck.service.session_manager import SessionManager

FLAT_STRUCTURE = "default-dream-structure"
NESTED_STRUCTURE = "nested-dream-structure"


@pytest.fixture
def loader() -> TrackedLoader:
    return TrackedLoader()


@pytest.fixture
def resolver() -> RegistryResolver:
    return RegistryResolver()


def build_registry(yaml_str: str) -> SchemaRegistry:
    """Load and resolve registry YAML, failing the test on errors."""
    raw, source_map = TrackedLoader().load_string(yaml_str)
    registry, result = RegistryResolver().resolve(raw, source_map)
    assert result.valid, f"Registry has validation errors: {result.errors}"
    return registry


@pytest.fixture
def default_registry() -> SchemaRegistry:
    return build_registry(DEFAULT_REGISTRY_YAML)


@pytest.fixture
def engine(default_registry: SchemaRegistry) -> ValidationEngine:
    return ValidationEngine(default_registry)


@pytest.fixture
def rules_engine() -> ValidationEngine:
    return ValidationEngine(build_registry(RULES_REGISTRY_YAML))


@pytest.fixture
def store() -> RegistryStore:
    return RegistryStore()


@pytest.fixture
def session_manager() -> SessionManager:
    """SessionManager with long TTL and no cleanup thread (for tests)."""
    return SessionManager(ttl_seconds=3600, cleanup_interval=9999)


# ---------------------------------------------------------------------------
# Sample journal texts
# ---------------------------------------------------------------------------

# Flat entry following the default structure completely.
FLAT_ENTRY = """\
# Dream Journal Entry

> [!dream] Flying
> I was flying over the sea.

> [!symbols]
> - Sea: the unconscious

> [!reflections]
> It felt freeing.

> [!metrics]
> Clarity: 7
> Vividness: 8
> Coherence: 6
"""

# Every child nested inside the root callout.
NESTED_ENTRY = """\
> [!dream] Flying
> I was flying over the sea.
>
> > [!symbols]
> > - Sea: the unconscious
>
> > [!reflections]
> > It felt freeing.
>
> > [!metrics]
> > Clarity: 7
> > Vividness: 8
"""

# symbols is a sibling of the root instead of a child.
SIBLING_ENTRY = """\
> [!dream] Flying
> I was flying over the sea.
>
> > [!reflections]
> > It felt freeing.

> [!symbols]
> - Sea: the unconscious
"""

DOUBLE_ROOT_ENTRY = """\
> [!dream]
> First dream.

> [!dream]
> Second dream.
"""

PLAIN_TEXT = """\
Just some notes about the day.
Nothing quoted here, no callouts at all.
"""

# Nested structure with two required children, both missing from a bare root.
TWO_REQUIRED_YAML = """\
version: 1
structures:
  journal:
    nestingMode: nested
    rootType: dream
    childTypes: [symbols, reflections]
    requiredTypes: [dream, symbols, reflections]
"""

# A registry with pattern rules only (no structures).
RULES_REGISTRY_YAML = """\
version: 1
rules:
  no-todo:
    name: No TODO markers
    type: content
    severity: warning
    pattern: 'TODO'
    negative: true
    message: Remove TODO markers
    quickFixes:
      - title: Mark as done
        pattern: 'TODO'
        replacement: 'DONE'
  needs-date:
    name: Entry date
    type: format
    severity: info
    pattern: '^\\d{4}-\\d{2}-\\d{2}$'
    message: Entries should contain a date line
    quickFixes:
      - title: Insert date placeholder
        pattern: '\\A'
        replacement: "2000-01-01\\n"
  broken:
    type: custom
    pattern: '(unclosed'
    message: never compiled
"""
