"""Content isolation: mask Markdown elements that must not open callouts.

Masked regions are overwritten with spaces (line breaks are kept), so every
offset in the isolated text is also a valid offset in the source text.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable

from journalcheck.models.schema import ContentIsolation

logger = logging.getLogger("journalcheck.parser")

_IMAGE_RE = re.compile(r"!\[[^\]\n]*\]\([^)\n]*\)")
_LINK_RE = re.compile(r"\[([^\]\n]*)\]\([^)\n]*\)")
_HEADING_RE = re.compile(r"^#{1,6}[ \t]+.*$", re.MULTILINE)
_CODE_BLOCK_RE = re.compile(r"```[\s\S]*?```")
_FRONTMATTER_RE = re.compile(r"\A---[ \t]*\r?\n[\s\S]*?\r?\n---[ \t]*(?:\r?\n|\Z)")
_COMMENT_RE = re.compile(r"%%[\s\S]*?%%")

# Emphasis markers: only the markers are masked, the inner text survives.
_FORMATTING_RES = (
    re.compile(r"(\*\*|__)(?=\S)([^\n]+?)(?<=\S)\1"),
    re.compile(r"(\*)(?=[^\s*])([^\n*]+?)(?<=\S)\*"),
    re.compile(r"(?<!\w)(_)(?=[^\s_])([^\n_]+?)(?<=\S)_(?!\w)"),
    re.compile(r"(~~)(?=\S)([^\n]+?)(?<=\S)~~"),
    re.compile(r"(==)(?=\S)([^\n]+?)(?<=\S)=="),
    re.compile(r"(\^)(?=\S)([^\n^]+?)(?<=\S)\^"),
)


def _blank(segment: str) -> str:
    return "".join(ch if ch in "\r\n" else " " for ch in segment)


def _mask_all(match: re.Match[str]) -> str:
    return _blank(match.group(0))


def _mask_except(group: int) -> Callable[[re.Match[str]], str]:
    """Build a replacer that masks a match but keeps one group's text."""

    def _replace(match: re.Match[str]) -> str:
        start, end = match.span(group)
        offset = match.start()
        whole = match.group(0)
        head = whole[: start - offset]
        kept = whole[start - offset : end - offset]
        tail = whole[end - offset :]
        return _blank(head) + kept + _blank(tail)

    return _replace


class ContentIsolator:
    """Applies :class:`ContentIsolation` flags to a text before extraction.

    Custom ignore patterns are compiled once here; patterns that fail to
    compile are logged and skipped.
    """

    def __init__(self, settings: ContentIsolation | None = None) -> None:
        self._settings = settings or ContentIsolation()
        self._custom: list[re.Pattern[str]] = []
        for pattern in self._settings.custom_ignore_patterns:
            try:
                self._custom.append(re.compile(pattern, re.MULTILINE))
            except re.error as exc:
                logger.warning("Skipping invalid ignore pattern %r: %s", pattern, exc)

    @property
    def settings(self) -> ContentIsolation:
        return self._settings

    def isolate(self, text: str) -> str:
        """Return *text* with ignored regions masked; length is preserved."""
        s = self._settings
        out = text
        if s.ignore_frontmatter:
            out = _FRONTMATTER_RE.sub(_mask_all, out, count=1)
        if s.ignore_code_blocks:
            out = _CODE_BLOCK_RE.sub(_mask_all, out)
        if s.ignore_comments:
            out = _COMMENT_RE.sub(_mask_all, out)
        if s.ignore_images:
            out = _IMAGE_RE.sub(_mask_all, out)
        if s.ignore_links:
            out = _LINK_RE.sub(_mask_except(1), out)
        if s.ignore_formatting:
            for regex in _FORMATTING_RES:
                out = regex.sub(_mask_except(2), out)
        if s.ignore_headings:
            out = _HEADING_RE.sub(_mask_all, out)
        for regex in self._custom:
            out = regex.sub(_mask_all, out)
        return out
