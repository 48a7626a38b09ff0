"""Structured configuration errors with YAML source position tracking."""

from __future__ import annotations

from pydantic import BaseModel


class SourceSpan(BaseModel):
    """Points to exact location in YAML source for error reporting."""

    file: str
    line: int
    column: int
    end_line: int | None = None
    end_column: int | None = None


class ConfigError(BaseModel):
    """A registry configuration error with optional source position and suggestions."""

    code: str
    message: str
    path: str | None = None
    span: SourceSpan | None = None
    suggestions: list[str] = []


class ConfigValidationResult(BaseModel):
    """Result of resolving a registry configuration."""

    valid: bool
    errors: list[ConfigError] = []
    warnings: list[ConfigError] = []
