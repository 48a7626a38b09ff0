"""Tests for structure detection."""

from __future__ import annotations

from journalcheck.engine.detector import MATCH_THRESHOLD, StructureDetector, match_score
from journalcheck.engine.validation import ValidationEngine
from journalcheck.models.schema import Structure
from tests.conftest import (
    FLAT_ENTRY,
    FLAT_STRUCTURE,
    NESTED_ENTRY,
    NESTED_STRUCTURE,
    PLAIN_TEXT,
    build_registry,
)

_STRUCTURE = Structure(
    id="s",
    root_type="dream",
    child_types=["symbols", "reflections"],
    metrics_type="metrics",
)


class TestMatchScore:
    def test_full_score(self) -> None:
        assert match_score(_STRUCTURE, {"dream", "symbols", "metrics"}) == MATCH_THRESHOLD

    def test_partial_scores(self) -> None:
        assert match_score(_STRUCTURE, {"dream"}) == 1
        assert match_score(_STRUCTURE, {"dream", "reflections"}) == 2
        assert match_score(_STRUCTURE, {"other"}) == 0

    def test_structure_without_metrics_never_full(self) -> None:
        structure = Structure(id="x", root_type="dream", child_types=["symbols"])
        assert match_score(structure, {"dream", "symbols", "metrics"}) == 2


class TestStructureDetector:
    def test_no_blocks(self, engine: ValidationEngine) -> None:
        assert engine.detect_structure(PLAIN_TEXT) is None

    def test_partial_match_not_detected(self, engine: ValidationEngine) -> None:
        assert engine.detect_structure("> [!dream]\n> x\n\n> [!symbols]\n> y\n") is None

    def test_first_registered_wins(self, engine: ValidationEngine) -> None:
        # Both built-in structures fully match; registration order decides.
        assert engine.detect_structure(FLAT_ENTRY).id == FLAT_STRUCTURE
        assert engine.detect_structure(NESTED_ENTRY).id == FLAT_STRUCTURE

    def test_order_follows_registry(self) -> None:
        registry = build_registry(
            """\
version: 1
structures:
  nested-first:
    nestingMode: nested
    rootType: dream
    childTypes: [symbols, reflections]
    metricsType: metrics
  flat-second:
    rootType: dream
    childTypes: [symbols]
    metricsType: metrics
"""
        )
        engine = ValidationEngine(registry)
        assert engine.detect_structure(NESTED_ENTRY).id == "nested-first"

    def test_detector_direct(self, engine: ValidationEngine) -> None:
        forest = engine.extract_blocks(NESTED_ENTRY)
        structures = list(reversed(engine.registry.structures))
        assert StructureDetector().detect(forest, structures).id == NESTED_STRUCTURE


class TestTemplateForContent:
    def test_template_of_detected_structure(self, engine: ValidationEngine) -> None:
        template = engine.template_for_content(FLAT_ENTRY)
        assert template is not None
        assert template.id == "default-template"

    def test_no_structure_no_template(self, engine: ValidationEngine) -> None:
        assert engine.template_for_content(PLAIN_TEXT) is None
