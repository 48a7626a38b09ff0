"""Tests for quick fixes."""

from __future__ import annotations

import re

from journalcheck.engine.fixes import (
    CHILD_PLACEHOLDER,
    ROOT_PLACEHOLDER,
    AddChildBlockFix,
    AddMetricsBlockFix,
    AddRootBlockFix,
    FixNestingFix,
    RuleDocumentFix,
    RuleOccurrenceFix,
)
from journalcheck.engine.validation import ValidationEngine
from journalcheck.models.blocks import Span
from journalcheck.models.diagnostics import ValidationResult
from tests.conftest import NESTED_STRUCTURE, SIBLING_ENTRY


def _nesting_result(engine: ValidationEngine, text: str) -> ValidationResult:
    results = engine.validate(text, NESTED_STRUCTURE)
    return next(r for r in results if r.rule.id == "structure-improper-nesting")


def _nested_child_fix(
    text: str, root: Span, child_type: str = "symbols"
) -> AddChildBlockFix:
    return AddChildBlockFix(
        "dream",
        child_type,
        nested=True,
        root_span=root,
        root_source=root.slice(text),
        root_prefix="> ",
    )


class TestAddRootBlockFix:
    def test_prepends_root(self) -> None:
        fix = AddRootBlockFix("dream")
        assert fix.title == "Add dream callout"
        assert fix.apply("notes\n") == f"> [!dream]\n> {ROOT_PLACEHOLDER}\n\nnotes\n"


class TestAddChildBlockFix:
    def test_flat_appends(self) -> None:
        fix = AddChildBlockFix("dream", "symbols")
        assert fix.title == "Add symbols callout"
        assert fix.apply("> [!dream]\n> x\n") == (
            f"> [!dream]\n> x\n\n> [!symbols]\n> {CHILD_PLACEHOLDER}\n"
        )

    def test_flat_on_empty_text(self) -> None:
        fix = AddChildBlockFix("dream", "symbols")
        assert fix.apply("") == f"> [!symbols]\n> {CHILD_PLACEHOLDER}\n"

    def test_nested_inserted_after_root_run(self) -> None:
        text = "> [!dream]\n> x\n\nAfter\n"
        fixed = _nested_child_fix(text, Span(0, 15)).apply(text)
        assert fixed == (
            f"> [!dream]\n> x\n> > [!symbols]\n> > {CHILD_PLACEHOLDER}\n\nAfter\n"
        )

    def test_nested_without_trailing_newline(self) -> None:
        text = "> [!dream]\n> x"
        fixed = _nested_child_fix(text, Span(0, len(text))).apply(text)
        assert fixed == f"> [!dream]\n> x\n> > [!symbols]\n> > {CHILD_PLACEHOLDER}\n"

    def test_nested_result_is_child_of_root(self, engine: ValidationEngine) -> None:
        text = "> [!dream]\n> x\n"
        fix = _nested_child_fix(text, Span(0, len(text)), child_type="reflections")
        forest = engine.extract_blocks(fix.apply(text))
        reflections = forest.of_type("reflections")[0]
        assert forest.parent_of(reflections).type == "dream"

    def test_nested_anchors_on_captured_root(self) -> None:
        text = "> [!dream] quoted\n\nprose\n\n> [!dream]\n> x\n"
        root = Span(text.rindex("> [!dream]"), len(text))
        fixed = _nested_child_fix(text, root).apply(text)
        assert fixed == text + f"> > [!symbols]\n> > {CHILD_PLACEHOLDER}\n"

    def test_nested_root_moved_unchanged(self) -> None:
        text = "> [!dream]\n> x\n"
        fix = _nested_child_fix(text, Span(0, len(text)))
        edited = "intro\n" + text
        assert fix.apply(edited) == edited

    def test_nested_without_root_appends(self) -> None:
        fix = AddChildBlockFix("dream", "symbols", nested=True)
        assert fix.apply("plain\n") == f"plain\n\n> [!symbols]\n> {CHILD_PLACEHOLDER}\n"


class TestAddMetricsBlockFix:
    def test_appends_placeholders(self) -> None:
        fix = AddMetricsBlockFix("metrics")
        assert fix.apply("x") == (
            "x\n\n> [!metrics]\n> Clarity: 5\n> Vividness: 4\n> Coherence: 3\n"
        )


class TestFixNestingFix:
    def test_moves_block_under_root(self, engine: ValidationEngine) -> None:
        result = _nesting_result(engine, SIBLING_ENTRY)
        fixed = engine.apply_quick_fix(SIBLING_ENTRY, result)
        assert fixed == (
            "> [!dream] Flying\n"
            "> > [!symbols]\n"
            "> > - Sea: the unconscious\n"
            "> I was flying over the sea.\n"
            ">\n"
            "> > [!reflections]\n"
            "> > It felt freeing.\n"
            "\n"
        )

    def test_block_before_root_without_line_break(self, engine: ValidationEngine) -> None:
        text = "> [!symbols]\n> s\n\n> [!dream]"
        result = _nesting_result(engine, text)
        fixed = engine.apply_quick_fix(text, result)
        assert fixed == "\n> [!dream]\n> > [!symbols]\n> > s\n"

    def test_moves_whole_block_ending_with_its_container(self, engine: ValidationEngine) -> None:
        text = "> [!dream]\n> a\n\n> [!other]\n> > [!symbols]\n> > s"
        result = _nesting_result(engine, text)
        fixed = engine.apply_quick_fix(text, result)
        assert fixed == "> [!dream]\n> > [!symbols]\n> > s\n> a\n\n> [!other]\n"

    def test_stale_text_unchanged(self, engine: ValidationEngine) -> None:
        result = _nesting_result(engine, SIBLING_ENTRY)
        edited = SIBLING_ENTRY.replace("Sea", "Ocean")
        assert result.quick_fixes[0].apply(edited) == edited
        assert result.quick_fixes[0].apply("") == ""

    def test_overlapping_spans_unchanged(self) -> None:
        text = "> [!dream]\n> [!symbols]\n"
        fix = FixNestingFix(
            block_type="symbols",
            block_span=Span(11, 24),
            block_source=text[11:24],
            block_depth=1,
            root_span=Span(0, 24),
            root_source=text,
            root_prefix="> ",
        )
        assert fix.apply(text) == text


class TestRuleFixes:
    def test_occurrence_fix(self) -> None:
        text = "TODO one\nand TODO two\n"
        fix = RuleOccurrenceFix("Done", re.compile("TODO"), "DONE", Span(13, 17), "TODO")
        assert fix.apply(text) == "TODO one\nand DONE two\n"

    def test_occurrence_moved_unchanged(self) -> None:
        fix = RuleOccurrenceFix("Done", re.compile("TODO"), "DONE", Span(13, 17), "TODO")
        assert fix.apply("TODO") == "TODO"
        assert fix.apply("xxxxxxxxxxxxxxxxxxxxxx") == "xxxxxxxxxxxxxxxxxxxxxx"

    def test_document_fix_first_match_only(self) -> None:
        fix = RuleDocumentFix("Done", re.compile("TODO"), "DONE")
        assert fix.apply("TODO TODO") == "DONE TODO"

    def test_bad_group_reference_unchanged(self) -> None:
        fix = RuleDocumentFix("Broken", re.compile("TODO"), r"\9")
        assert fix.apply("TODO") == "TODO"

    def test_fixes_are_frozen_records(self) -> None:
        a = AddChildBlockFix("dream", "symbols")
        b = AddChildBlockFix("dream", "symbols")
        assert a == b
        assert hash(a) == hash(b)
