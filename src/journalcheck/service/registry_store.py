"""In-memory registry store: the service layer shared by the MCP server and REST API."""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from journalcheck.engine.validation import ValidationEngine
from journalcheck.models.diagnostics import MetricEntry, ValidationResult
from journalcheck.models.errors import ConfigError
from journalcheck.models.schema import JournalTemplate, Structure
from journalcheck.registry.defaults import DEFAULT_REGISTRY_YAML
from journalcheck.registry.loader import SourceMap, TrackedLoader, YAMLSafetyError
from journalcheck.registry.registry import SchemaRegistry
from journalcheck.registry.resolver import RegistryResolver

logger = logging.getLogger("journalcheck.service")

DEFAULT_REGISTRY_ID = "default"

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class ErrorInfo:
    """A single registry configuration error or warning."""

    code: str
    message: str
    path: str | None = None
    line: int | None = None
    column: int | None = None
    suggestions: list[str] = field(default_factory=list)

    @classmethod
    def from_config_error(cls, error: ConfigError) -> ErrorInfo:
        return cls(
            code=error.code,
            message=error.message,
            path=error.path,
            line=error.span.line if error.span else None,
            column=error.span.column if error.span else None,
            suggestions=list(error.suggestions),
        )


@dataclass
class ValidationSummary:
    """Result of checking registry YAML without storing it."""

    valid: bool
    errors: list[ErrorInfo]
    warnings: list[ErrorInfo]


@dataclass
class LoadResult:
    """Result of loading a registry into the store."""

    registry_id: str
    structures: int
    rules: int
    templates: int
    warnings: list[str]


@dataclass
class StructureInfo:
    id: str
    name: str
    nesting_mode: str
    root_type: str
    child_types: list[str]
    metrics_type: str | None
    required_types: list[str]


@dataclass
class RuleInfo:
    id: str
    name: str
    kind: str
    severity: str
    negative: bool
    priority: int
    enabled: bool


@dataclass
class TemplateInfo:
    id: str
    name: str
    structure: str


@dataclass
class RegistryDescription:
    """Structured summary of a loaded registry."""

    registry_id: str
    enabled: bool
    structures: list[StructureInfo]
    rules: list[RuleInfo]
    templates: list[TemplateInfo]


@dataclass
class RegistrySummary:
    """Short summary for listing registries."""

    registry_id: str
    structures: int
    rules: int
    templates: int


@dataclass
class FixOutcome:
    """Text after applying a quick fix to one validation result."""

    text: str
    applied: bool
    result_id: str
    fix_title: str | None


class RegistryValidationError(ValueError):
    """Raised when registry YAML has errors and cannot be stored."""

    def __init__(self, errors: list[ErrorInfo], warnings: list[ErrorInfo] | None = None) -> None:
        msgs = "; ".join(e.message for e in errors)
        super().__init__(f"Registry validation failed: {msgs}")
        self.errors = errors
        self.warnings = warnings or []


# ---------------------------------------------------------------------------
# RegistryStore
# ---------------------------------------------------------------------------


class RegistryStore:
    """In-memory registries keyed by short UUID (8-char hex).

    Thread-safe via ``threading.Lock``.  The ``default`` registry is always
    present: the built-in dream journal registry, or the file/directory
    given as *default_path*.
    """

    def __init__(self, default_path: Path | None = None) -> None:
        self._lock = threading.Lock()
        self._engines: dict[str, ValidationEngine] = {}

        self._loader = TrackedLoader()
        self._resolver = RegistryResolver()

        registry = self._load_default(default_path)
        self._engines[DEFAULT_REGISTRY_ID] = ValidationEngine(registry)

    # -- helpers -------------------------------------------------------------

    @staticmethod
    def _new_id() -> str:
        return uuid.uuid4().hex[:8]

    def _load_default(self, path: Path | None) -> SchemaRegistry:
        if path is None:
            registry, errors, warnings = self._parse_and_validate(DEFAULT_REGISTRY_YAML)
        else:
            try:
                if path.is_dir():
                    raw, source_map = self._loader.load_directory(path)
                else:
                    raw, source_map = self._loader.load(path)
            except YAMLSafetyError as exc:
                raise RegistryValidationError(
                    [ErrorInfo(code="YAML_SAFETY_ERROR", message=str(exc))]
                ) from exc
            registry, errors, warnings = self._resolve(raw, source_map)
        if errors:
            raise RegistryValidationError(errors, warnings)
        for w in warnings:
            logger.info("Default registry: %s", w.message)
        return registry

    def _resolve(
        self, raw: dict[str, Any], source_map: SourceMap
    ) -> tuple[SchemaRegistry, list[ErrorInfo], list[ErrorInfo]]:
        registry, resolution = self._resolver.resolve(raw, source_map)
        errors = [ErrorInfo.from_config_error(e) for e in resolution.errors]
        warnings = [ErrorInfo.from_config_error(w) for w in resolution.warnings]
        return registry, errors, warnings

    def _parse_and_validate(
        self, yaml_str: str
    ) -> tuple[SchemaRegistry, list[ErrorInfo], list[ErrorInfo]]:
        """Parse registry YAML and resolve it.  Returns ``(registry, errors, warnings)``."""
        try:
            raw, source_map = self._loader.load_string(yaml_str)
        except YAMLSafetyError as exc:
            return SchemaRegistry(), [ErrorInfo(code="YAML_SAFETY_ERROR", message=str(exc))], []
        except Exception as exc:  # ruamel.yaml raises errors and warnings from several bases
            return SchemaRegistry(), [ErrorInfo(code="YAML_PARSE_ERROR", message=str(exc))], []
        return self._resolve(raw, source_map)

    def _engine(self, registry_id: str) -> ValidationEngine:
        with self._lock:
            try:
                return self._engines[registry_id]
            except KeyError:
                raise KeyError(f"No registry loaded with id '{registry_id}'") from None

    # -- registries ----------------------------------------------------------

    def load_registry(self, yaml_str: str) -> LoadResult:
        """Parse, validate and store a registry.  Returns id + summary.

        Raises :class:`RegistryValidationError` if the registry has errors.
        """
        registry, errors, warnings = self._parse_and_validate(yaml_str)
        if errors:
            raise RegistryValidationError(errors, warnings)

        registry_id = self._new_id()
        with self._lock:
            self._engines[registry_id] = ValidationEngine(registry)
        logger.info("Loaded registry %s (%d structures)", registry_id, len(registry.structures))

        return LoadResult(
            registry_id=registry_id,
            structures=len(registry.structures),
            rules=len(registry.rules),
            templates=len(registry.templates),
            warnings=[w.message for w in warnings],
        )

    def validate_registry(self, yaml_str: str) -> ValidationSummary:
        """Check registry YAML without storing it."""
        _registry, errors, warnings = self._parse_and_validate(yaml_str)
        return ValidationSummary(valid=len(errors) == 0, errors=errors, warnings=warnings)

    def get_registry(self, registry_id: str) -> SchemaRegistry:
        """Look up a registry.  Raises ``KeyError`` if not found."""
        return self._engine(registry_id).registry

    def describe(self, registry_id: str) -> RegistryDescription:
        registry = self.get_registry(registry_id)
        return RegistryDescription(
            registry_id=registry_id,
            enabled=registry.enabled,
            structures=[
                StructureInfo(
                    id=s.id,
                    name=s.name,
                    nesting_mode=s.nesting_mode.value,
                    root_type=s.root_type,
                    child_types=list(s.child_types),
                    metrics_type=s.metrics_type,
                    required_types=list(s.required_types),
                )
                for s in registry.structures
            ],
            rules=[
                RuleInfo(
                    id=r.id,
                    name=r.name,
                    kind=r.kind.value,
                    severity=r.severity.value,
                    negative=r.negative,
                    priority=r.priority,
                    enabled=r.enabled,
                )
                for r in registry.rules
            ],
            templates=[
                TemplateInfo(id=t.id, name=t.name, structure=t.structure)
                for t in registry.templates
            ],
        )

    def list_registries(self) -> list[RegistrySummary]:
        with self._lock:
            items = [(rid, engine.registry) for rid, engine in self._engines.items()]
        return [
            RegistrySummary(
                registry_id=rid,
                structures=len(r.structures),
                rules=len(r.rules),
                templates=len(r.templates),
            )
            for rid, r in items
        ]

    def remove_registry(self, registry_id: str) -> None:
        """Unload a registry.  Raises ``KeyError`` if not found.

        The default registry cannot be removed (``ValueError``).
        """
        if registry_id == DEFAULT_REGISTRY_ID:
            raise ValueError("The default registry cannot be removed")
        with self._lock:
            try:
                del self._engines[registry_id]
            except KeyError:
                raise KeyError(f"No registry loaded with id '{registry_id}'") from None

    # -- documents -----------------------------------------------------------

    def validate_document(
        self,
        text: str,
        registry_id: str = DEFAULT_REGISTRY_ID,
        structure_id: str | None = None,
    ) -> list[ValidationResult]:
        return self._engine(registry_id).validate(text, structure_id)

    def apply_quick_fix(
        self,
        text: str,
        result_id: str,
        registry_id: str = DEFAULT_REGISTRY_ID,
        structure_id: str | None = None,
        fix_index: int = 0,
        occurrence: int = 0,
    ) -> FixOutcome:
        """Re-validate *text* and apply a fix of the result with *result_id*.

        Several results can share an id (every missing required callout is
        reported at 0-0); *occurrence* picks one of them in result order.
        Raises ``KeyError`` if no such result is reported for *text*.
        """
        engine = self._engine(registry_id)
        matching = [r for r in engine.validate(text, structure_id) if r.id == result_id]
        if not 0 <= occurrence < len(matching):
            raise KeyError(f"No validation result with id '{result_id}'")
        result = matching[occurrence]
        fixed = engine.apply_quick_fix(text, result, fix_index)
        title = (
            result.quick_fixes[fix_index].title
            if 0 <= fix_index < len(result.quick_fixes)
            else None
        )
        return FixOutcome(text=fixed, applied=fixed != text, result_id=result_id, fix_title=title)

    def detect_structure(
        self, text: str, registry_id: str = DEFAULT_REGISTRY_ID
    ) -> Structure | None:
        return self._engine(registry_id).detect_structure(text)

    def template_for_content(
        self, text: str, registry_id: str = DEFAULT_REGISTRY_ID
    ) -> JournalTemplate | None:
        return self._engine(registry_id).template_for_content(text)

    def extract_metrics(
        self,
        text: str,
        registry_id: str = DEFAULT_REGISTRY_ID,
        structure_id: str | None = None,
    ) -> list[MetricEntry]:
        return self._engine(registry_id).extract_metrics(text, structure_id)
