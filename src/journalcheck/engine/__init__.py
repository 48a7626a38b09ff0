"""Structure detection, validation and quick fixes."""

from journalcheck.engine.checks import StructureChecker
from journalcheck.engine.detector import StructureDetector
from journalcheck.engine.fixes import QuickFix
from journalcheck.engine.rules import RuleEvaluator
from journalcheck.engine.validation import UnknownStructureError, ValidationEngine

__all__ = [
    "QuickFix",
    "RuleEvaluator",
    "StructureChecker",
    "StructureDetector",
    "UnknownStructureError",
    "ValidationEngine",
]
