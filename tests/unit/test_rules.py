"""Tests for pattern rule evaluation."""

from __future__ import annotations

import pytest

from journalcheck.engine.fixes import RuleDocumentFix, RuleOccurrenceFix
from journalcheck.engine.rules import RuleEvaluator
from journalcheck.models.blocks import Span
from journalcheck.models.schema import Rule, RuleFix, RulePatternError, Severity


@pytest.fixture
def evaluator() -> RuleEvaluator:
    return RuleEvaluator()


def _rule(**kwargs) -> Rule:
    defaults = {"id": "r", "pattern": "TODO", "message": "msg"}
    defaults.update(kwargs)
    return Rule.model_validate(defaults)


class TestPositiveRule:
    def test_match_passes(self, evaluator: RuleEvaluator) -> None:
        assert evaluator.evaluate(_rule(), "a TODO here") == []

    def test_no_match_is_document_level(self, evaluator: RuleEvaluator) -> None:
        rule = _rule(quickFixes=[{"title": "Add", "pattern": r"\A", "replacement": "TODO "}])
        (result,) = evaluator.evaluate(rule, "nothing")
        assert result.span == Span(0, 0)
        assert result.id == "r-0-0"
        assert result.message == "msg"
        assert result.range.start.line == 1
        assert isinstance(result.quick_fixes[0], RuleDocumentFix)
        assert result.quick_fixes[0].apply("nothing") == "TODO nothing"


class TestNegativeRule:
    def test_every_match_reported(self, evaluator: RuleEvaluator) -> None:
        rule = _rule(negative=True)
        results = evaluator.evaluate(rule, "TODO one\nand TODO two\n")
        assert [r.span for r in results] == [Span(0, 4), Span(13, 17)]
        assert [r.id for r in results] == ["r-0-4", "r-13-17"]

    def test_positions(self, evaluator: RuleEvaluator) -> None:
        (result,) = evaluator.evaluate(_rule(negative=True), "first\n  TODO")
        assert result.range.start.line == 2
        assert result.range.start.column == 2
        assert result.range.end.column == 6

    def test_no_match_no_result(self, evaluator: RuleEvaluator) -> None:
        assert evaluator.evaluate(_rule(negative=True), "clean") == []

    def test_occurrence_fixes(self, evaluator: RuleEvaluator) -> None:
        rule = _rule(
            negative=True,
            quickFixes=[{"title": "Done", "pattern": "TODO", "replacement": "DONE"}],
        )
        text = "TODO one\nand TODO two\n"
        second = evaluator.evaluate(rule, text)[1]
        assert isinstance(second.quick_fixes[0], RuleOccurrenceFix)
        assert second.quick_fixes[0].apply(text) == "TODO one\nand DONE two\n"

    def test_multiline_anchors(self, evaluator: RuleEvaluator) -> None:
        rule = _rule(pattern=r"^\s*$", negative=True)
        results = evaluator.evaluate(rule, "a\n\nb")
        assert results


class TestRuleModel:
    def test_severity_from_yaml_value(self) -> None:
        rule = _rule(severity="error", type="format")
        assert rule.severity == Severity.ERROR
        assert rule.kind == "format"

    def test_invalid_pattern(self) -> None:
        with pytest.raises(RulePatternError, match="Invalid pattern for 'r'"):
            _rule(pattern="(unclosed").compile()

    def test_invalid_fix_pattern(self) -> None:
        rule = _rule(quickFixes=[{"title": "bad", "pattern": "[", "replacement": ""}])
        with pytest.raises(RulePatternError, match="'bad'"):
            rule.compile()

    def test_compiled_once(self) -> None:
        rule = _rule()
        assert rule.compile() is rule.compiled

    def test_rule_fix_compiled(self) -> None:
        fix = RuleFix(title="t", pattern="a+")
        assert fix.compiled.sub("b", "caaat") == "cbt"
