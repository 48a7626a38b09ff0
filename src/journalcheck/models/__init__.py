"""Domain models for journalcheck."""

from journalcheck.models.blocks import Block, BlockForest, Span
from journalcheck.models.diagnostics import MetricEntry, TextPosition, TextRange, ValidationResult
from journalcheck.models.errors import ConfigError, ConfigValidationResult, SourceSpan
from journalcheck.models.schema import (
    ContentIsolation,
    JournalTemplate,
    NestingMode,
    Rule,
    RuleFix,
    RuleKind,
    RulePatternError,
    Severity,
    Structure,
)

__all__ = [
    "Block",
    "BlockForest",
    "ConfigError",
    "ConfigValidationResult",
    "ContentIsolation",
    "JournalTemplate",
    "MetricEntry",
    "NestingMode",
    "Rule",
    "RuleFix",
    "RuleKind",
    "RulePatternError",
    "Severity",
    "SourceSpan",
    "Span",
    "Structure",
    "TextPosition",
    "TextRange",
    "ValidationResult",
]
