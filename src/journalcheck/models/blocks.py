"""Callout blocks and the arena-backed block forest."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Span:
    """Half-open character range ``[start, end)`` into the source text."""

    start: int
    end: int

    def contains(self, other: Span) -> bool:
        """True when *other* lies strictly inside this span."""
        return self.start < other.start and other.end < self.end

    def slice(self, text: str) -> str:
        return text[self.start : self.end]

    def to_line_end(self, text: str) -> Span:
        """Widen the span to the end of its last line (line break excluded).

        A span that already ends after a line break is returned as is.
        """
        if self.end == 0 or text[self.end - 1 : self.end] == "\n":
            return self
        nl = text.find("\n", self.end)
        return Span(self.start, len(text) if nl == -1 else nl)


@dataclass(frozen=True)
class Block:
    """A single callout block (``> [!type]`` plus its continuation lines).

    ``parent`` and ``children`` are indices into the owning
    :class:`BlockForest`; a freshly extracted block has neither.
    """

    type: str
    content: str
    span: Span
    indent_depth: int
    prefix: str = ""
    index: int = -1
    parent: int | None = None
    children: tuple[int, ...] = ()


@dataclass(frozen=True)
class BlockForest:
    """All blocks of one text, ordered by ``span.start``.

    The forest owns every block; parent/child links are plain indices so
    there is no cyclic ownership.
    """

    blocks: tuple[Block, ...] = ()
    root_indices: tuple[int, ...] = field(default=())

    def __len__(self) -> int:
        return len(self.blocks)

    def __iter__(self) -> Iterator[Block]:
        return iter(self.blocks)

    def roots(self) -> list[Block]:
        return [self.blocks[i] for i in self.root_indices]

    def parent_of(self, block: Block) -> Block | None:
        if block.parent is None:
            return None
        return self.blocks[block.parent]

    def children_of(self, block: Block) -> list[Block]:
        return [self.blocks[i] for i in block.children]

    def ancestors(self, block: Block) -> Iterator[Block]:
        """Yield parent, grandparent, ... by walking the parent chain."""
        current = self.parent_of(block)
        while current is not None:
            yield current
            current = self.parent_of(current)

    def is_descendant(self, block: Block, ancestor: Block) -> bool:
        return any(a.index == ancestor.index for a in self.ancestors(block))

    def walk(self) -> Iterator[Block]:
        """Depth-first traversal of every tree, in document order."""
        stack = list(reversed(self.roots()))
        while stack:
            block = stack.pop()
            yield block
            stack.extend(reversed(self.children_of(block)))

    def of_type(self, block_type: str) -> list[Block]:
        return [b for b in self.blocks if b.type == block_type]

    def types(self) -> set[str]:
        return {b.type for b in self.blocks}
