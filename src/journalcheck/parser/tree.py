"""Build the parent/child forest of extracted blocks."""

from __future__ import annotations

from dataclasses import replace

from journalcheck.models.blocks import Block, BlockForest


def _encloses(parent: Block, block: Block) -> bool:
    return (
        parent.span.start < block.span.start
        and parent.span.end > block.span.end
        and parent.indent_depth < block.indent_depth
    )


class BlockTreeBuilder:
    """Links each block to its innermost enclosing block.

    A block P is a candidate parent of B when P starts strictly before B,
    ends strictly after B and is quoted less deeply.  Among candidates the
    one with the greatest start wins (the first one in input order on
    ties).  Blocks with no candidate are roots.

    Runs as a single pass over the blocks sorted by start, with a stack of
    blocks that may still enclose what follows.
    """

    def build(self, blocks: list[Block]) -> BlockForest:
        ordered = sorted(blocks, key=lambda b: b.span.start)
        parents: list[int | None] = [None] * len(ordered)
        stack: list[int] = []

        for idx, block in enumerate(ordered):
            # Anything ending at or before this start cannot enclose it or
            # any later block.
            stack = [i for i in stack if ordered[i].span.end > block.span.start]
            parents[idx] = self._innermost(ordered, stack, block)
            stack.append(idx)

        children: list[list[int]] = [[] for _ in ordered]
        for idx, parent in enumerate(parents):
            if parent is not None:
                children[parent].append(idx)

        linked = tuple(
            replace(block, index=idx, parent=parents[idx], children=tuple(children[idx]))
            for idx, block in enumerate(ordered)
        )
        roots = tuple(idx for idx, parent in enumerate(parents) if parent is None)
        return BlockForest(blocks=linked, root_indices=roots)

    @staticmethod
    def _innermost(ordered: list[Block], stack: list[int], block: Block) -> int | None:
        best: int | None = None
        for i in reversed(stack):
            candidate = ordered[i]
            if best is not None and candidate.span.start < ordered[best].span.start:
                break
            if _encloses(candidate, block):
                best = i
        return best
