"""Structure detection by block-type membership."""

from __future__ import annotations

from collections.abc import Iterable

from journalcheck.models.blocks import Block
from journalcheck.models.schema import Structure

MATCH_THRESHOLD = 3


def match_score(structure: Structure, types: set[str]) -> int:
    """Score 0-3: root present, any child type present, metrics type present."""
    score = 0
    if structure.root_type in types:
        score += 1
    if any(t in types for t in structure.child_types):
        score += 1
    if structure.metrics_type and structure.metrics_type in types:
        score += 1
    return score


class StructureDetector:
    """Picks the first structure (registration order) with a full score."""

    def detect(self, blocks: Iterable[Block], structures: Iterable[Structure]) -> Structure | None:
        types = {block.type for block in blocks}
        if not types:
            return None
        for structure in structures:
            if match_score(structure, types) == MATCH_THRESHOLD:
                return structure
        return None
