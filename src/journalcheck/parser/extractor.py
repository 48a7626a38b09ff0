"""Callout block extraction: one linear scan over the lines of a text."""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass, field

from journalcheck.models.blocks import Block, Span

# Quote markers at the start of a line: optional indentation, then any
# number of ``>`` each followed by optional blanks.
_QUOTE_RE = re.compile(r"[ \t]*(?:>[ \t]*)*")
_OPENER_RE = re.compile(r"(?P<prefix>[ \t]*(?:>[ \t]*)+)\[!(?P<type>[\w-]+)\](?P<rest>.*)")


@dataclass(frozen=True)
class _Line:
    start: int
    content_end: int  # excludes the line break
    full_end: int  # includes the line break, if any
    text: str


@dataclass
class _OpenBlock:
    type: str
    prefix: str
    depth: int
    start: int
    last_line: int
    content: list[str] = field(default_factory=list)


def _iter_lines(text: str) -> Iterator[_Line]:
    pos = 0
    size = len(text)
    while pos < size:
        nl = text.find("\n", pos)
        if nl == -1:
            yield _Line(pos, size, size, text[pos:])
            return
        content_end = nl - 1 if nl > pos and text[nl - 1] == "\r" else nl
        yield _Line(pos, content_end, nl + 1, text[pos:content_end])
        pos = nl + 1


def _quote_depth(line: str) -> int:
    match = _QUOTE_RE.match(line)
    return match.group(0).count(">") if match else 0


def _strip_markers(line: str, depth: int) -> str:
    """Drop the first *depth* quote markers (and surrounding blanks) of *line*."""
    pos = 0
    seen = 0
    while pos < len(line) and seen < depth:
        ch = line[pos]
        if ch == ">":
            seen += 1
        elif ch not in " \t":
            break
        pos += 1
    return line[pos:].strip()


class BlockExtractor:
    """Extracts a flat list of callout blocks from (isolated) text.

    A block opens on a line made of quote markers followed by ``[!type]``.
    It continues over lines quoted at least as deeply, until a shallower
    line, an opener at the same or a shallower depth, or a blank line that
    is not followed by a continuing line.  The line break ending a line is
    owned by the shallowest block that ends on it, so nested blocks that
    end on their parent's last line stay strictly inside the parent.  A
    deeper block's span may therefore stop short of its last line; use
    :meth:`Span.to_line_end` for the full source of such a block.
    """

    def extract(self, text: str) -> list[Block]:
        lines = list(_iter_lines(text))
        open_blocks: list[_OpenBlock] = []
        closed: list[_OpenBlock] = []
        pending_blanks = 0

        for idx, line in enumerate(lines):
            opener = _OPENER_RE.match(line.text)
            depth = opener.group("prefix").count(">") if opener else _quote_depth(line.text)

            if depth == 0 and not line.text.strip():
                if open_blocks:
                    pending_blanks += 1
                continue

            # Close blocks this line does not continue.
            while open_blocks and (
                open_blocks[-1].depth > depth
                or (opener is not None and open_blocks[-1].depth >= depth)
            ):
                closed.append(open_blocks.pop())

            for block in open_blocks:
                block.content.extend([""] * pending_blanks)
                block.content.append(_strip_markers(line.text, block.depth))
                block.last_line = idx
            pending_blanks = 0

            if opener is not None:
                rest = opener.group("rest")
                if rest[:1] in ("-", "+"):
                    rest = rest[1:]
                open_blocks.append(
                    _OpenBlock(
                        type=opener.group("type"),
                        prefix=opener.group("prefix"),
                        depth=depth,
                        start=line.start,
                        last_line=idx,
                        content=[rest.strip()],
                    )
                )

        closed.extend(reversed(open_blocks))
        return self._finalise(closed, lines)

    @staticmethod
    def _finalise(closed: list[_OpenBlock], lines: list[_Line]) -> list[Block]:
        # Blocks ending on the same line get strictly decreasing ends by
        # depth: the shallowest owns the line break, each deeper level ends
        # one character earlier, so every child stays inside its parent.
        depths_by_line: dict[int, list[int]] = {}
        for block in closed:
            depths_by_line.setdefault(block.last_line, []).append(block.depth)
        for depths in depths_by_line.values():
            depths.sort()

        blocks: list[Block] = []
        for block in closed:
            last = lines[block.last_line]
            rank = depths_by_line[block.last_line].index(block.depth)
            if last.full_end > last.content_end:
                end = last.full_end if rank == 0 else last.content_end - (rank - 1)
            else:
                end = last.content_end - rank
            blocks.append(
                Block(
                    type=block.type,
                    content="\n".join(block.content).strip(),
                    span=Span(block.start, end),
                    indent_depth=block.depth,
                    prefix=block.prefix,
                )
            )
        blocks.sort(key=lambda b: b.span.start)
        return blocks
