"""Raw registry YAML -> SchemaRegistry plus configuration diagnostics."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from journalcheck.models.errors import ConfigError, ConfigValidationResult, SourceSpan
from journalcheck.models.schema import (
    ContentIsolation,
    JournalTemplate,
    Rule,
    RuleKind,
    RulePatternError,
    Structure,
)
from journalcheck.registry.loader import SourceMap
from journalcheck.registry.registry import SchemaRegistry

logger = logging.getLogger("journalcheck.registry")

_TOP_LEVEL_KEYS = ("version", "enabled", "contentIsolation", "structures", "rules", "templates")
SUPPORTED_VERSION = 1


class RegistryResolver:
    """Turns a loaded YAML mapping into a :class:`SchemaRegistry`.

    Entries that fail to parse are reported and left out; everything else
    is still registered.  A rule whose pattern does not compile is skipped
    with an ``INVALID_RULE_PATTERN`` warning so one bad rule never takes
    the rest of the registry down with it.
    """

    def resolve(
        self,
        raw: dict[str, Any],
        source_map: SourceMap | None = None,
    ) -> tuple[SchemaRegistry, ConfigValidationResult]:
        errors: list[ConfigError] = []
        warnings: list[ConfigError] = []

        def span(path: str) -> SourceSpan | None:
            return source_map.get(path) if source_map else None

        for key in raw:
            if key not in _TOP_LEVEL_KEYS:
                warnings.append(
                    ConfigError(
                        code="UNKNOWN_KEY",
                        message=f"Unknown top-level key '{key}' is ignored",
                        path=key,
                        span=span(key),
                        suggestions=_suggest_similar(key, list(_TOP_LEVEL_KEYS)),
                    )
                )

        version = raw.get("version", SUPPORTED_VERSION)
        if version != SUPPORTED_VERSION:
            errors.append(
                ConfigError(
                    code="UNSUPPORTED_VERSION",
                    message=f"Registry version {version!r} is not supported "
                    f"(expected {SUPPORTED_VERSION})",
                    path="version",
                    span=span("version"),
                )
            )

        enabled = raw.get("enabled", True)
        if not isinstance(enabled, bool):
            errors.append(
                ConfigError(
                    code="INVALID_OPTION",
                    message="'enabled' must be true or false",
                    path="enabled",
                    span=span("enabled"),
                )
            )
            enabled = True

        isolation = ContentIsolation()
        raw_isolation = raw.get("contentIsolation")
        if raw_isolation is not None:
            try:
                isolation = ContentIsolation.model_validate(raw_isolation)
            except ValidationError as e:
                errors.append(
                    ConfigError(
                        code="INVALID_CONTENT_ISOLATION",
                        message=f"Failed to parse contentIsolation: {e}",
                        path="contentIsolation",
                        span=span("contentIsolation"),
                    )
                )

        registry = SchemaRegistry(enabled=enabled, content_isolation=isolation)

        # Structures
        for name, raw_structure in self._section(raw, "structures", errors):
            try:
                registry.add_structure(Structure.model_validate({**raw_structure, "id": name}))
            except (ValidationError, TypeError) as e:
                errors.append(
                    ConfigError(
                        code="STRUCTURE_PARSE_ERROR",
                        message=f"Failed to parse structure '{name}': {e}",
                        path=f"structures.{name}",
                        span=span(f"structures.{name}"),
                    )
                )
        if not registry.structures:
            warnings.append(
                ConfigError(
                    code="NO_STRUCTURES",
                    message="Registry defines no structures; only rules will be checked",
                    path="structures",
                    span=span("structures"),
                )
            )

        # Rules
        for name, raw_rule in self._section(raw, "rules", errors):
            path = f"rules.{name}"
            try:
                rule = Rule.model_validate({**raw_rule, "id": name})
            except (ValidationError, TypeError) as e:
                errors.append(
                    ConfigError(
                        code="RULE_PARSE_ERROR",
                        message=f"Failed to parse rule '{name}': {e}",
                        path=path,
                        span=span(path),
                    )
                )
                continue
            if not rule.pattern:
                warnings.append(
                    ConfigError(
                        code="EMPTY_RULE_PATTERN",
                        message=f"Rule '{name}' has no pattern and is skipped",
                        path=path,
                        span=span(path),
                    )
                )
                continue
            try:
                registry.add_rule(rule)
            except RulePatternError as e:
                logger.warning("Skipping rule '%s': %s", name, e)
                warnings.append(
                    ConfigError(
                        code="INVALID_RULE_PATTERN",
                        message=str(e),
                        path=f"{path}.pattern",
                        span=span(f"{path}.pattern") or span(path),
                    )
                )
                continue
            if rule.kind == RuleKind.STRUCTURAL:
                warnings.append(
                    ConfigError(
                        code="STRUCTURAL_RULE_IGNORED",
                        message=(
                            f"Rule '{name}' is structural; structural checks come from "
                            "structures and this rule is not evaluated"
                        ),
                        path=f"{path}.type",
                        span=span(f"{path}.type") or span(path),
                    )
                )

        # Templates
        structure_ids = [s.id for s in registry.structures]
        for name, raw_template in self._section(raw, "templates", errors):
            path = f"templates.{name}"
            try:
                template = JournalTemplate.model_validate({**raw_template, "id": name})
            except (ValidationError, TypeError) as e:
                errors.append(
                    ConfigError(
                        code="TEMPLATE_PARSE_ERROR",
                        message=f"Failed to parse template '{name}': {e}",
                        path=path,
                        span=span(path),
                    )
                )
                continue
            if template.structure not in structure_ids:
                errors.append(
                    ConfigError(
                        code="UNKNOWN_STRUCTURE",
                        message=(
                            f"Template '{name}' references unknown structure "
                            f"'{template.structure}'"
                        ),
                        path=f"{path}.structure",
                        span=span(f"{path}.structure") or span(path),
                        suggestions=_suggest_similar(template.structure, structure_ids),
                    )
                )
                continue
            registry.add_template(template)

        result = ConfigValidationResult(
            valid=len(errors) == 0,
            errors=errors,
            warnings=warnings,
        )
        return registry, result

    @staticmethod
    def _section(
        raw: dict[str, Any], key: str, errors: list[ConfigError]
    ) -> list[tuple[str, dict[str, Any]]]:
        section = raw.get(key) or {}
        if not isinstance(section, dict):
            errors.append(
                ConfigError(
                    code="SECTION_PARSE_ERROR",
                    message=f"'{key}' must be a YAML mapping keyed by id, not a list or scalar",
                    path=key,
                )
            )
            return []
        entries: list[tuple[str, dict[str, Any]]] = []
        for name, value in section.items():
            if not isinstance(value, dict):
                errors.append(
                    ConfigError(
                        code="SECTION_PARSE_ERROR",
                        message=f"'{key}.{name}' must be a YAML mapping",
                        path=f"{key}.{name}",
                    )
                )
                continue
            entries.append((str(name), value))
        return entries


def _suggest_similar(name: str, candidates: list[str], max_suggestions: int = 3) -> list[str]:
    """Suggest similar names for 'did you mean?' messages."""
    name_lower = name.lower()
    scored = []
    for candidate in candidates:
        candidate_lower = candidate.lower()
        if name_lower in candidate_lower or candidate_lower in name_lower:
            scored.append((0, candidate))
        else:
            common = sum(1 for c in name_lower if c in candidate_lower)
            scored.append((len(name) + len(candidate) - 2 * common, candidate))
    scored.sort(key=lambda x: x[0])
    return [s[1] for s in scored[:max_suggestions]]
