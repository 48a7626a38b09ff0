"""Validation results and the values they report."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from journalcheck.models.blocks import Span
from journalcheck.models.schema import Rule, Severity

if TYPE_CHECKING:
    from journalcheck.engine.fixes import QuickFix


@dataclass(frozen=True)
class TextPosition:
    """Line (1-based) and column (0-based) of a character offset."""

    line: int
    column: int

    @classmethod
    def from_offset(cls, text: str, offset: int) -> TextPosition:
        offset = max(0, min(offset, len(text)))
        head = text[:offset]
        line = head.count("\n") + 1
        column = offset - (head.rfind("\n") + 1)
        return cls(line=line, column=column)


@dataclass(frozen=True)
class TextRange:
    start: TextPosition
    end: TextPosition

    @classmethod
    def from_span(cls, text: str, span: Span) -> TextRange:
        return cls(
            start=TextPosition.from_offset(text, span.start),
            end=TextPosition.from_offset(text, span.end),
        )


@dataclass
class ValidationResult:
    """A single violation reported by the engine.

    ``id`` is deterministic: ``f"{rule.id}-{span.start}-{span.end}"``.
    """

    id: str
    severity: Severity
    message: str
    range: TextRange
    span: Span
    rule: Rule
    quick_fixes: list[QuickFix] = field(default_factory=list)

    @classmethod
    def create(
        cls,
        rule: Rule,
        text: str,
        span: Span,
        quick_fixes: list[QuickFix] | None = None,
        message: str | None = None,
    ) -> ValidationResult:
        return cls(
            id=f"{rule.id}-{span.start}-{span.end}",
            severity=rule.severity,
            message=message if message is not None else rule.message,
            range=TextRange.from_span(text, span),
            span=span,
            rule=rule,
            quick_fixes=list(quick_fixes or []),
        )


@dataclass(frozen=True)
class MetricEntry:
    """A ``Name: value`` line found inside a metrics callout."""

    name: str
    value: float | str
    span: Span
