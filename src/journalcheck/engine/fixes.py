"""Quick fixes: small frozen records with a pure ``apply(text) -> text``.

Every fix carries only what it needs to rewrite the text it was created
for.  ``apply`` never raises; when the text no longer looks the way it did
at detection time the input is returned unchanged.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass

from journalcheck.models.blocks import Span

ROOT_PLACEHOLDER = "Your dream entry"
CHILD_PLACEHOLDER = "Add content here"
METRIC_PLACEHOLDERS = (("Clarity", 5), ("Vividness", 4), ("Coherence", 3))

_QUOTE_PREFIX_RE = re.compile(r"[ \t]*(?:>[ \t]*)*")


class QuickFix(ABC):
    """A remediation offered alongside a validation result."""

    @property
    @abstractmethod
    def title(self) -> str: ...

    @abstractmethod
    def apply(self, text: str) -> str:
        """Return the repaired text (or *text* itself if the fix no longer applies)."""


def _append_block(text: str, block: str) -> str:
    body = text.rstrip()
    return f"{body}\n\n{block}" if body else block


def _nested_prefix(prefix: str) -> str:
    """Quote prefix one level deeper than *prefix* (``"> "`` -> ``"> > "``)."""
    return f"{prefix.rstrip()} > " if prefix.strip() else "> "


def _unquote(line: str, depth: int) -> str:
    """Remove leading indentation and the first *depth* quote markers of *line*."""
    pos = 0
    seen = 0
    while pos < len(line) and seen < depth:
        ch = line[pos]
        if ch == ">":
            seen += 1
            pos += 1
            while pos < len(line) and line[pos] in " \t":
                pos += 1
        elif ch in " \t":
            pos += 1
        else:
            break
    return line[pos:]


def _quote_depth(line: str) -> int:
    match = _QUOTE_PREFIX_RE.match(line)
    return match.group(0).count(">") if match else 0


def _valid_span(text: str, span: Span) -> bool:
    return 0 <= span.start < span.end <= len(text)


@dataclass(frozen=True)
class AddRootBlockFix(QuickFix):
    root_type: str

    @property
    def title(self) -> str:
        return f"Add {self.root_type} callout"

    def apply(self, text: str) -> str:
        return f"> [!{self.root_type}]\n> {ROOT_PLACEHOLDER}\n\n{text}"


@dataclass(frozen=True)
class AddChildBlockFix(QuickFix):
    """Insert a missing child callout.

    Nested structures get the child right after the root's contiguous
    quoted run, one quote level deeper than the root.  The root is the one
    found at detection time (``root_span``/``root_source``); if it is no
    longer there the text is left unchanged.  Flat structures (or a text
    without a root) get the child appended at the end.
    """

    root_type: str
    child_type: str
    nested: bool = False
    root_span: Span | None = None
    root_source: str = ""
    root_prefix: str = "> "

    @property
    def title(self) -> str:
        return f"Add {self.child_type} callout"

    def apply(self, text: str) -> str:
        if self.nested and self.root_span is not None:
            root = self.root_span
            if not _valid_span(text, root) or root.slice(text) != self.root_source:
                return text
            return self._insert_nested(text, root.start)
        block = f"> [!{self.child_type}]\n> {CHILD_PLACEHOLDER}\n"
        return _append_block(text, block)

    def _insert_nested(self, text: str, root_start: int) -> str:
        root_depth = self.root_prefix.count(">")
        pos = root_start
        insert_at = len(text)
        needs_break = False
        while pos < len(text):
            nl = text.find("\n", pos)
            line_end = len(text) if nl == -1 else nl + 1
            line = text[pos:line_end].rstrip("\r\n")
            if pos != root_start and (not line.strip() or _quote_depth(line) < root_depth):
                insert_at = pos
                break
            if nl == -1:
                needs_break = True
            pos = line_end
        prefix = _nested_prefix(self.root_prefix)
        block = f"{prefix}[!{self.child_type}]\n{prefix}{CHILD_PLACEHOLDER}\n"
        if needs_break:
            block = "\n" + block
        return text[:insert_at] + block + text[insert_at:]


@dataclass(frozen=True)
class AddMetricsBlockFix(QuickFix):
    metrics_type: str

    @property
    def title(self) -> str:
        return f"Add {self.metrics_type} callout"

    def apply(self, text: str) -> str:
        lines = [f"> [!{self.metrics_type}]"]
        lines.extend(f"> {name}: {value}" for name, value in METRIC_PLACEHOLDERS)
        return _append_block(text, "\n".join(lines) + "\n")


@dataclass(frozen=True)
class FixNestingFix(QuickFix):
    """Move a misplaced block under the root block.

    The block's source (captured at detection) is removed and re-quoted one
    level deeper than the root.  It is inserted right after the root's
    first line; if the root has no line break inside its span the block is
    placed right after the root instead.
    """

    block_type: str
    block_span: Span
    block_source: str
    block_depth: int
    root_span: Span
    root_source: str
    root_prefix: str

    @property
    def title(self) -> str:
        return f"Move {self.block_type} callout into the root callout"

    def apply(self, text: str) -> str:
        block, root = self.block_span, self.root_span
        if not (_valid_span(text, block) and _valid_span(text, root)):
            return text
        if block.slice(text) != self.block_source or root.slice(text) != self.root_source:
            return text
        if block.start < root.end and root.start < block.end:
            return text

        remove_start, remove_end = block.start, block.end
        if not self.block_source.endswith("\n") and text[remove_end : remove_end + 1] == "\n":
            remove_end += 1

        requoted = self._requote()
        nl = text.find("\n", root.start)
        if nl != -1 and nl + 1 <= root.end:
            insert_at = nl + 1
            insertion = requoted + "\n"
        else:
            insert_at = root.end
            insertion = "\n" + requoted + "\n"

        if insert_at >= remove_end:
            return (
                text[:remove_start]
                + text[remove_end:insert_at]
                + insertion
                + text[insert_at:]
            )
        return text[:insert_at] + insertion + text[insert_at:remove_start] + text[remove_end:]

    def _requote(self) -> str:
        prefix = _nested_prefix(self.root_prefix)
        lines = []
        for line in self.block_source.rstrip("\r\n").split("\n"):
            rest = _unquote(line.rstrip("\r"), self.block_depth)
            lines.append(prefix + rest if rest else prefix.rstrip())
        return "\n".join(lines)


@dataclass(frozen=True)
class RuleOccurrenceFix(QuickFix):
    """Rewrite one pattern match, provided it is still where it was found."""

    fix_title: str
    pattern: re.Pattern[str]
    replacement: str
    span: Span
    occurrence: str

    @property
    def title(self) -> str:
        return self.fix_title

    def apply(self, text: str) -> str:
        if not _valid_span(text, self.span) or self.span.slice(text) != self.occurrence:
            return text
        try:
            replaced = self.pattern.sub(self.replacement, self.occurrence, count=1)
        except re.error:
            return text
        return text[: self.span.start] + replaced + text[self.span.end :]


@dataclass(frozen=True)
class RuleDocumentFix(QuickFix):
    """Apply a rule's substitution once to the whole text."""

    fix_title: str
    pattern: re.Pattern[str]
    replacement: str

    @property
    def title(self) -> str:
        return self.fix_title

    def apply(self, text: str) -> str:
        try:
            return self.pattern.sub(self.replacement, text, count=1)
        except re.error:
            return text
