"""Registry configuration records: structures, rules, templates, isolation flags."""

from __future__ import annotations

import re
from enum import StrEnum

from pydantic import BaseModel, Field, PrivateAttr, model_validator


class Severity(StrEnum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {Severity.ERROR: 0, Severity.WARNING: 1, Severity.INFO: 2}


class RuleKind(StrEnum):
    STRUCTURAL = "structural"
    FORMAT = "format"
    CONTENT = "content"
    CUSTOM = "custom"


class NestingMode(StrEnum):
    FLAT = "flat"
    NESTED = "nested"


class RulePatternError(ValueError):
    """Raised when a rule (or rule fix) pattern cannot be compiled."""


def _compile(pattern: str, owner: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern, re.MULTILINE)
    except re.error as exc:
        raise RulePatternError(f"Invalid pattern for '{owner}': {exc}") from exc


class ContentIsolation(BaseModel):
    """Which Markdown elements are masked out before block extraction."""

    ignore_images: bool = Field(True, alias="ignoreImages")
    ignore_links: bool = Field(False, alias="ignoreLinks")
    ignore_formatting: bool = Field(True, alias="ignoreFormatting")
    ignore_headings: bool = Field(False, alias="ignoreHeadings")
    ignore_code_blocks: bool = Field(True, alias="ignoreCodeBlocks")
    ignore_frontmatter: bool = Field(True, alias="ignoreFrontmatter")
    ignore_comments: bool = Field(True, alias="ignoreComments")
    custom_ignore_patterns: list[str] = Field(default_factory=list, alias="customIgnorePatterns")

    model_config = {"populate_by_name": True}


class Structure(BaseModel):
    """A named schema: root callout, child callouts, metrics callout, nesting mode."""

    id: str
    name: str = ""
    description: str = ""
    nesting_mode: NestingMode = Field(NestingMode.FLAT, alias="nestingMode")
    root_type: str = Field(alias="rootType")
    child_types: list[str] = Field(default_factory=list, alias="childTypes")
    metrics_type: str | None = Field(None, alias="metricsType")
    required_types: list[str] = Field(default_factory=list, alias="requiredTypes")
    optional_types: list[str] = Field(default_factory=list, alias="optionalTypes")

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def _check_types(self) -> Structure:
        self.child_types = list(dict.fromkeys(self.child_types))
        if self.root_type in self.child_types:
            raise ValueError(
                f"rootType '{self.root_type}' must not also be listed in childTypes"
            )
        allowed = set(self.child_types) | {self.root_type}
        unknown = [t for t in self.required_types if t not in allowed]
        if unknown:
            raise ValueError(
                f"requiredTypes {unknown} are neither the rootType nor listed in childTypes"
            )
        return self

    @property
    def is_nested(self) -> bool:
        return self.nesting_mode == NestingMode.NESTED

    @property
    def required_child_types(self) -> list[str]:
        """Required types that are children (the root is checked separately)."""
        return [t for t in self.required_types if t in self.child_types]


class RuleFix(BaseModel):
    """Regex replacement offered as a quick fix for a rule violation."""

    title: str
    pattern: str
    replacement: str = ""

    _compiled: re.Pattern[str] | None = PrivateAttr(default=None)

    @property
    def compiled(self) -> re.Pattern[str]:
        if self._compiled is None:
            self._compiled = _compile(self.pattern, self.title)
        return self._compiled


class Rule(BaseModel):
    """A pattern-based check, independent of any structure.

    ``negative=False``: the document is in violation when the pattern does
    not match anywhere.  ``negative=True``: every match is a violation.
    """

    id: str
    name: str = ""
    description: str = ""
    kind: RuleKind = Field(RuleKind.CONTENT, alias="type")
    severity: Severity = Severity.WARNING
    pattern: str = ""
    negative: bool = False
    message: str = ""
    priority: int = 0
    enabled: bool = True
    fixes: list[RuleFix] = Field(default_factory=list, alias="quickFixes")

    model_config = {"populate_by_name": True}

    _compiled: re.Pattern[str] | None = PrivateAttr(default=None)

    def compile(self) -> re.Pattern[str]:
        """Compile (once) the rule pattern and every fix pattern.

        Raises :class:`RulePatternError` on the first pattern that fails.
        """
        if self._compiled is None:
            compiled = _compile(self.pattern, self.id)
            for fix in self.fixes:
                _ = fix.compiled
            self._compiled = compiled
        return self._compiled

    @property
    def compiled(self) -> re.Pattern[str]:
        return self.compile()


class JournalTemplate(BaseModel):
    """Starter content for a journal entry that follows a structure."""

    id: str
    name: str = ""
    description: str = ""
    structure: str
    content: str = ""
