"""Text -> callout block forest."""

from journalcheck.parser.extractor import BlockExtractor
from journalcheck.parser.isolation import ContentIsolator
from journalcheck.parser.metrics import MetricsParser
from journalcheck.parser.tree import BlockTreeBuilder

__all__ = ["BlockExtractor", "BlockTreeBuilder", "ContentIsolator", "MetricsParser"]
