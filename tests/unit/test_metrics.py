"""Tests for metric extraction from metrics callouts."""

from __future__ import annotations

from journalcheck.engine.validation import ValidationEngine
from journalcheck.models.blocks import Span
from journalcheck.parser.extractor import BlockExtractor
from journalcheck.parser.metrics import MetricsParser
from tests.conftest import FLAT_ENTRY, NESTED_ENTRY, NESTED_STRUCTURE


def _parse(text: str) -> list:
    blocks = BlockExtractor().extract(text)
    return MetricsParser().parse_all(text, [b for b in blocks if b.type == "metrics"])


class TestMetricsParser:
    def test_numeric_values(self) -> None:
        entries = _parse("> [!metrics]\n> Clarity: 7\n> Vividness: 8.5\n")
        assert [(e.name, e.value) for e in entries] == [("Clarity", 7.0), ("Vividness", 8.5)]

    def test_word_value(self) -> None:
        entries = _parse("> [!metrics]\n> Mood: calm\n")
        assert entries[0].value == "calm"

    def test_multi_word_name(self) -> None:
        entries = _parse("> [!metrics]\n> Lucid Level: 3\n")
        assert entries[0].name == "Lucid Level"

    def test_span_covers_name_to_value(self) -> None:
        text = "> [!metrics]\n> Clarity: 7\n"
        entry = _parse(text)[0]
        start = text.index("Clarity")
        assert entry.span == Span(start, start + len("Clarity: 7"))
        assert entry.span.slice(text) == "Clarity: 7"

    def test_opener_line_ignored(self) -> None:
        assert _parse("> [!metrics]\n") == []

    def test_free_text_ignored(self) -> None:
        assert _parse("> [!metrics]\n> Clarity: very high\n> just words\n") == []

    def test_lines_outside_block_ignored(self) -> None:
        text = "> [!dream]\n> Clarity: 1\n\n> [!metrics]\n> Clarity: 9\n"
        entries = _parse(text)
        assert [e.value for e in entries] == [9.0]

    def test_nested_metrics(self) -> None:
        entries = _parse(NESTED_ENTRY)
        assert {e.name: e.value for e in entries} == {"Clarity": 7.0, "Vividness": 8.0}

    def test_nested_metrics_at_end_of_text(self) -> None:
        entries = _parse(NESTED_ENTRY.rstrip("\n"))
        assert {e.name: e.value for e in entries} == {"Clarity": 7.0, "Vividness": 8.0}


class TestEngineMetrics:
    def test_detected_structure(self, engine: ValidationEngine) -> None:
        entries = engine.extract_metrics(FLAT_ENTRY)
        assert {e.name: e.value for e in entries} == {
            "Clarity": 7.0,
            "Vividness": 8.0,
            "Coherence": 6.0,
        }

    def test_explicit_structure(self, engine: ValidationEngine) -> None:
        entries = engine.extract_metrics(NESTED_ENTRY, NESTED_STRUCTURE)
        assert len(entries) == 2

    def test_no_structure_no_metrics(self, engine: ValidationEngine) -> None:
        assert engine.extract_metrics("> [!metrics]\n> Clarity: 7\n") == []
