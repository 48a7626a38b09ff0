"""Validation entry points: one synchronous pass per call."""

from __future__ import annotations

import logging

from journalcheck.engine.checks import StructureChecker
from journalcheck.engine.detector import StructureDetector
from journalcheck.engine.rules import RuleEvaluator
from journalcheck.models.blocks import BlockForest
from journalcheck.models.diagnostics import MetricEntry, ValidationResult
from journalcheck.models.schema import JournalTemplate, Structure
from journalcheck.parser.extractor import BlockExtractor
from journalcheck.parser.isolation import ContentIsolator
from journalcheck.parser.metrics import MetricsParser
from journalcheck.parser.tree import BlockTreeBuilder
from journalcheck.registry.registry import SchemaRegistry

logger = logging.getLogger("journalcheck.engine")


class UnknownStructureError(KeyError):
    """Raised when an explicit structure id is not in the registry."""

    def __init__(self, structure_id: str) -> None:
        super().__init__(structure_id)
        self.structure_id = structure_id

    def __str__(self) -> str:
        return f"Unknown structure '{self.structure_id}'"


def sort_results(results: list[ValidationResult]) -> list[ValidationResult]:
    """Order by severity, then rule priority; ties keep discovery order."""
    return sorted(results, key=lambda r: (r.severity.rank, r.rule.priority))


class ValidationEngine:
    """Validates journal text against a :class:`SchemaRegistry`.

    The registry is only read; every call is a pure function of its
    arguments and the registry at call time.
    """

    def __init__(self, registry: SchemaRegistry) -> None:
        self._registry = registry
        self._isolator = ContentIsolator(registry.content_isolation)
        self._extractor = BlockExtractor()
        self._tree_builder = BlockTreeBuilder()
        self._detector = StructureDetector()
        self._checker = StructureChecker()
        self._evaluator = RuleEvaluator()
        self._metrics = MetricsParser()

    @property
    def registry(self) -> SchemaRegistry:
        return self._registry

    def extract_blocks(self, text: str) -> BlockForest:
        """Isolate *text*, extract its callouts and link them into a forest."""
        isolated = self._isolator.isolate(text)
        blocks = self._extractor.extract(isolated)
        return self._tree_builder.build(blocks)

    def _resolve_structure(
        self, forest: BlockForest, structure_id: str | None
    ) -> Structure | None:
        if structure_id is not None:
            structure = self._registry.get_structure(structure_id)
            if structure is None:
                raise UnknownStructureError(structure_id)
            return structure
        return self._detector.detect(forest, self._registry.structures)

    def validate(self, text: str, structure_id: str | None = None) -> list[ValidationResult]:
        """Return every violation in *text*, sorted by severity then priority.

        Raises :class:`UnknownStructureError` if *structure_id* is given but
        not registered.
        """
        if not self._registry.enabled:
            return []

        forest = self.extract_blocks(text)
        structure = self._resolve_structure(forest, structure_id)

        results: list[ValidationResult] = []
        if structure is not None:
            results.extend(self._checker.check(text, forest, structure))
        for rule in self._registry.pattern_rules():
            results.extend(self._evaluator.evaluate(rule, text))

        logger.debug(
            "Validated %d chars: %d blocks, structure=%s, %d results",
            len(text),
            len(forest),
            structure.id if structure else None,
            len(results),
        )
        return sort_results(results)

    def apply_quick_fix(self, text: str, result: ValidationResult, fix_index: int = 0) -> str:
        """Apply one of *result*'s fixes; out-of-range indexes leave *text* as is."""
        if not 0 <= fix_index < len(result.quick_fixes):
            return text
        return result.quick_fixes[fix_index].apply(text)

    def detect_structure(self, text: str) -> Structure | None:
        return self._detector.detect(self.extract_blocks(text), self._registry.structures)

    def template_for_content(self, text: str) -> JournalTemplate | None:
        """First template registered for the structure detected in *text*."""
        structure = self.detect_structure(text)
        if structure is None:
            return None
        templates = self._registry.templates_for(structure.id)
        return templates[0] if templates else None

    def extract_metrics(self, text: str, structure_id: str | None = None) -> list[MetricEntry]:
        """Metric entries of the resolved structure's metrics callouts.

        Without a resolved structure (or one without a metrics type) the
        result is empty.
        """
        forest = self.extract_blocks(text)
        structure = self._resolve_structure(forest, structure_id)
        if structure is None or not structure.metrics_type:
            return []
        return self._metrics.parse_all(text, forest.of_type(structure.metrics_type))
