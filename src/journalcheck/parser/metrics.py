"""Parse ``Name: value`` lines out of metrics callouts."""

from __future__ import annotations

import re

from journalcheck.models.blocks import Block, Span
from journalcheck.models.diagnostics import MetricEntry

_METRIC_RE = re.compile(
    r"^[ \t]*(?:>[ \t]*)+(?!\[!)(?P<name>\w+(?:[ \t]+\w+)*)[ \t]*:[ \t]*"
    r"(?P<value>\d+(?:\.\d+)?|\w+)[ \t]*\r?$",
    re.MULTILINE,
)
_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")


class MetricsParser:
    """Reads metric entries from the raw text covered by a block."""

    def parse(self, text: str, block: Block) -> list[MetricEntry]:
        entries: list[MetricEntry] = []
        span = block.span.to_line_end(text)
        for match in _METRIC_RE.finditer(text, span.start, span.end):
            raw = match.group("value")
            value: float | str = float(raw) if _NUMBER_RE.fullmatch(raw) else raw
            entries.append(
                MetricEntry(
                    name=match.group("name"),
                    value=value,
                    span=Span(match.start("name"), match.end("value")),
                )
            )
        return entries

    def parse_all(self, text: str, blocks: list[Block]) -> list[MetricEntry]:
        return [entry for block in blocks for entry in self.parse(text, block)]
