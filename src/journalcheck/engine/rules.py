"""Generic pattern rules evaluated against the raw text."""

from __future__ import annotations

from journalcheck.engine.fixes import QuickFix, RuleDocumentFix, RuleOccurrenceFix
from journalcheck.models.blocks import Span
from journalcheck.models.diagnostics import ValidationResult
from journalcheck.models.schema import Rule


class RuleEvaluator:
    """Applies one rule to a text.

    A positive rule reports a single document-level result at 0..0 when
    its pattern matches nowhere.  A negative rule reports every match.
    """

    def evaluate(self, rule: Rule, text: str) -> list[ValidationResult]:
        pattern = rule.compiled
        if not rule.negative:
            if pattern.search(text) is not None:
                return []
            fixes: list[QuickFix] = [
                RuleDocumentFix(fix.title, fix.compiled, fix.replacement) for fix in rule.fixes
            ]
            return [ValidationResult.create(rule, text, Span(0, 0), fixes)]

        results: list[ValidationResult] = []
        for match in pattern.finditer(text):
            span = Span(match.start(), match.end())
            occurrence = match.group(0)
            fixes = [
                RuleOccurrenceFix(fix.title, fix.compiled, fix.replacement, span, occurrence)
                for fix in rule.fixes
            ]
            results.append(ValidationResult.create(rule, text, span, fixes))
        return results
