"""Registry YAML loading with source positions and input limits."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap, CommentedSeq

from journalcheck.models.errors import SourceSpan

_MAX_DOCUMENT_SIZE = 5_000_000  # characters
_MAX_NODE_COUNT = 50_000
_MAX_DEPTH = 20

# ``&name`` after line start, whitespace, ``-`` or ``:``; quoted strings are
# not excluded.
_ANCHOR_RE = re.compile(r"(?:^|[\s\-:])&(\w+)", re.MULTILINE)

# Sections that may be split into one file per entry inside a registry
# directory.
_SECTIONS = ("structures", "rules", "templates")


class YAMLSafetyError(Exception):
    """Registry YAML rejected before (or right after) parsing.

    Raised for oversized documents, anchors/aliases and documents with too
    many nodes, as opposed to plain syntax errors.
    """


@dataclass
class SourceMap:
    """Dotted key path (``rules.no-empty.pattern``) -> position in the YAML."""

    _positions: dict[str, SourceSpan] = field(default_factory=dict)

    def add(self, path: str, span: SourceSpan) -> None:
        self._positions[path] = span

    def get(self, path: str) -> SourceSpan | None:
        return self._positions.get(path)

    def merge(self, other: SourceMap) -> None:
        self._positions.update(other._positions)

    @property
    def paths(self) -> list[str]:
        return list(self._positions)


class TrackedLoader:
    """Loads registry YAML with ruamel.yaml, keeping line/column per key."""

    def __init__(self) -> None:
        self._yaml = YAML()
        self._yaml.preserve_quotes = True
        self._yaml.max_depth = _MAX_DEPTH

    @staticmethod
    def _check_yaml_safety(content: str) -> None:
        if len(content) > _MAX_DOCUMENT_SIZE:
            raise YAMLSafetyError(
                f"YAML document exceeds maximum size "
                f"({len(content):,} chars > {_MAX_DOCUMENT_SIZE:,} limit)"
            )
        if _ANCHOR_RE.search(content):
            raise YAMLSafetyError("YAML anchors/aliases are not supported in registry files")

    @staticmethod
    def _check_node_count(data: Any, limit: int = _MAX_NODE_COUNT) -> None:
        count = 0
        stack: list[Any] = [data]
        while stack:
            node = stack.pop()
            count += 1
            if count > limit:
                raise YAMLSafetyError(f"YAML document exceeds maximum node count ({limit:,})")
            if isinstance(node, dict):
                stack.extend(node.values())
            elif isinstance(node, list):
                stack.extend(node)

    def load(self, path: Path) -> tuple[dict[str, Any], SourceMap]:
        """Load one registry file."""
        content = path.read_text(encoding="utf-8")
        return self.load_string(content, filename=str(path))

    def load_string(
        self, content: str, filename: str = "<string>"
    ) -> tuple[dict[str, Any], SourceMap]:
        """Load registry YAML from a string."""
        self._check_yaml_safety(content)
        data = self._yaml.load(content)
        if data is None:
            return {}, SourceMap()
        self._check_node_count(data)
        source_map = SourceMap()
        self._extract_positions(data, filename, "", source_map)
        return self._to_plain_dict(data), source_map

    def load_directory(self, root: Path) -> tuple[dict[str, Any], SourceMap]:
        """Load ``registry.yaml`` plus ``structures/``, ``rules/`` and ``templates/``.

        Each ``*.yaml`` in a section directory holds either a single entry
        (keyed by its ``id``) or a mapping of entries.
        """
        merged: dict[str, Any] = {}
        combined = SourceMap()

        main = root / "registry.yaml"
        if main.exists():
            data, smap = self.load(main)
            merged.update(data)
            combined.merge(smap)

        for name in _SECTIONS:
            section_dir = root / name
            if not section_dir.is_dir():
                continue
            section: dict[str, Any] = dict(merged.get(name) or {})
            for yaml_file in sorted(section_dir.glob("*.yaml")):
                data, smap = self.load(yaml_file)
                if "id" in data:
                    section[str(data["id"])] = data
                else:
                    section.update(data)
                combined.merge(smap)
            if section:
                merged[name] = section

        return merged, combined

    def _extract_positions(
        self, data: Any, filename: str, prefix: str, source_map: SourceMap
    ) -> None:
        if isinstance(data, CommentedMap):
            positions = data.lc.data or {}
            for key in data:
                key_path = f"{prefix}.{key}" if prefix else str(key)
                entry = positions.get(key)
                if entry:
                    source_map.add(
                        key_path, SourceSpan(file=filename, line=entry[0] + 1, column=entry[1] + 1)
                    )
                elif data.lc.line is not None:
                    source_map.add(
                        key_path,
                        SourceSpan(file=filename, line=data.lc.line + 1, column=data.lc.col + 1),
                    )
                self._extract_positions(data[key], filename, key_path, source_map)
        elif isinstance(data, CommentedSeq):
            positions = data.lc.data or {}
            for i, item in enumerate(data):
                item_path = f"{prefix}[{i}]"
                entry = positions.get(i)
                if entry:
                    source_map.add(
                        item_path, SourceSpan(file=filename, line=entry[0] + 1, column=entry[1] + 1)
                    )
                self._extract_positions(item, filename, item_path, source_map)

    def _to_plain_dict(self, data: Any) -> dict[str, Any]:
        if isinstance(data, dict):
            return {str(k): self._to_plain(v) for k, v in data.items()}
        return {}

    def _to_plain(self, data: Any) -> Any:
        if isinstance(data, dict):
            return {str(k): self._to_plain(v) for k, v in data.items()}
        if isinstance(data, list):
            return [self._to_plain(item) for item in data]
        return data
