"""Structural checks of a block forest against a resolved structure."""

from __future__ import annotations

from journalcheck.engine.fixes import (
    AddChildBlockFix,
    AddMetricsBlockFix,
    AddRootBlockFix,
    FixNestingFix,
)
from journalcheck.models.blocks import Block, BlockForest, Span
from journalcheck.models.diagnostics import ValidationResult
from journalcheck.models.schema import Rule, RuleKind, Severity, Structure

STRUCTURE_RULE_PRIORITY = 10

MISSING_ROOT = "missing-root-callout"
MULTIPLE_ROOTS = "multiple-root-callouts"
MISSING_REQUIRED = "missing-required-callout"
MISSING_METRICS = "missing-metrics-callout"
IMPROPER_NESTING = "improper-nesting"


def structure_rule(check: str, message: str, severity: Severity = Severity.ERROR) -> Rule:
    """The synthetic rule attached to structural results."""
    return Rule(
        id=f"structure-{check}",
        name="Structure Rule",
        description="Validates journal structure",
        kind=RuleKind.STRUCTURAL,
        severity=severity,
        message=message,
        priority=STRUCTURE_RULE_PRIORITY,
    )


class StructureChecker:
    """Root, required-child, metrics and nesting checks for one structure."""

    def check(
        self, text: str, forest: BlockForest, structure: Structure
    ) -> list[ValidationResult]:
        results: list[ValidationResult] = []
        results.extend(self._check_root(text, forest, structure))
        results.extend(self._check_required(text, forest, structure))
        results.extend(self._check_metrics(text, forest, structure))
        if structure.is_nested:
            results.extend(self._check_nesting(text, forest, structure))
        for block in forest.walk():
            results.extend(self._check_block_content(text, block, structure))
        return results

    def _check_root(
        self, text: str, forest: BlockForest, structure: Structure
    ) -> list[ValidationResult]:
        roots = forest.of_type(structure.root_type)
        if not roots:
            rule = structure_rule(MISSING_ROOT, f"Missing root callout: {structure.root_type}")
            fix = AddRootBlockFix(structure.root_type)
            return [ValidationResult.create(rule, text, Span(0, 0), [fix])]
        if len(roots) > 1:
            rule = structure_rule(
                MULTIPLE_ROOTS, f"Multiple root callouts found: {structure.root_type}"
            )
            return [ValidationResult.create(rule, text, roots[1].span)]
        return []

    def _check_required(
        self, text: str, forest: BlockForest, structure: Structure
    ) -> list[ValidationResult]:
        present = forest.types()
        roots = forest.of_type(structure.root_type)
        root_span = roots[0].span.to_line_end(text) if roots else None
        results = []
        for child_type in structure.required_child_types:
            if child_type in present:
                continue
            rule = structure_rule(MISSING_REQUIRED, f"Missing required callout: {child_type}")
            fix = AddChildBlockFix(
                structure.root_type,
                child_type,
                nested=structure.is_nested,
                root_span=root_span,
                root_source=root_span.slice(text) if root_span else "",
                root_prefix=roots[0].prefix if roots else "> ",
            )
            results.append(ValidationResult.create(rule, text, Span(0, 0), [fix]))
        return results

    def _check_metrics(
        self, text: str, forest: BlockForest, structure: Structure
    ) -> list[ValidationResult]:
        metrics_type = structure.metrics_type
        if not metrics_type or metrics_type in forest.types():
            return []
        rule = structure_rule(
            MISSING_METRICS, f"Missing metrics callout: {metrics_type}", Severity.WARNING
        )
        fix = AddMetricsBlockFix(metrics_type)
        return [ValidationResult.create(rule, text, Span(0, 0), [fix])]

    def _check_nesting(
        self, text: str, forest: BlockForest, structure: Structure
    ) -> list[ValidationResult]:
        roots = forest.of_type(structure.root_type)
        if not roots:
            return []
        root = roots[0]
        results = []
        for block in forest:
            if block.type == structure.root_type or block.type not in structure.child_types:
                continue
            if forest.is_descendant(block, root):
                continue
            rule = structure_rule(
                IMPROPER_NESTING,
                f"Callout {block.type} should be nested inside {structure.root_type}",
            )
            block_span = block.span.to_line_end(text)
            root_span = root.span.to_line_end(text)
            fix = FixNestingFix(
                block_type=block.type,
                block_span=block_span,
                block_source=block_span.slice(text),
                block_depth=block.indent_depth,
                root_span=root_span,
                root_source=root_span.slice(text),
                root_prefix=root.prefix,
            )
            results.append(ValidationResult.create(rule, text, block.span, [fix]))
        return results

    def _check_block_content(
        self, text: str, block: Block, structure: Structure
    ) -> list[ValidationResult]:
        # Hook for per-callout content checks; none are defined yet.
        return []
