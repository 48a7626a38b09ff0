"""API request/response Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from journalcheck.models.diagnostics import MetricEntry, ValidationResult
from journalcheck.models.schema import Structure
from journalcheck.service.registry_store import DEFAULT_REGISTRY_ID


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = ""


class ErrorDetail(BaseModel):
    """A single registry configuration error or warning."""

    code: str
    message: str
    path: str | None = None
    line: int | None = None
    column: int | None = None
    suggestions: list[str] = []


# ---------------------------------------------------------------------------
# Session schemas
# ---------------------------------------------------------------------------


class SessionCreateRequest(BaseModel):
    """Request body for POST /sessions."""

    metadata: dict[str, str] = Field(default_factory=dict)


class SessionResponse(BaseModel):
    session_id: str
    created_at: datetime
    last_accessed_at: datetime
    registry_count: int
    metadata: dict[str, str] = Field(default_factory=dict)


class SessionListResponse(BaseModel):
    sessions: list[SessionResponse]


# ---------------------------------------------------------------------------
# Registry schemas
# ---------------------------------------------------------------------------


class RegistryLoadRequest(BaseModel):
    """Request body for POST /sessions/{session_id}/registries."""

    registry_yaml: str = Field(description="Registry YAML content")


class RegistryLoadResponse(BaseModel):
    registry_id: str
    structures: int
    rules: int
    templates: int
    warnings: list[str] = []


class RegistrySummaryResponse(BaseModel):
    registry_id: str
    structures: int
    rules: int
    templates: int


class RegistryValidateResponse(BaseModel):
    """Response for POST /sessions/{session_id}/registries/validate."""

    valid: bool
    errors: list[ErrorDetail] = []
    warnings: list[ErrorDetail] = []


# ---------------------------------------------------------------------------
# Document schemas
# ---------------------------------------------------------------------------


class DocumentRequest(BaseModel):
    """Journal text plus the registry (and optionally structure) to check it with."""

    text: str = Field(description="Markdown journal text")
    registry_id: str = DEFAULT_REGISTRY_ID
    structure_id: str | None = Field(
        default=None, description="Structure to validate against; detected when omitted"
    )


class QuickFixRequest(DocumentRequest):
    """Request body for POST /sessions/{session_id}/fix."""

    result_id: str
    fix_index: int = 0
    occurrence: int = Field(
        default=0, ge=0, description="Which of several results sharing result_id, in result order"
    )


class PositionResponse(BaseModel):
    line: int
    column: int


class RangeResponse(BaseModel):
    start: PositionResponse
    end: PositionResponse


class SpanResponse(BaseModel):
    start: int
    end: int


class ValidationResultResponse(BaseModel):
    id: str
    severity: str
    message: str
    rule_id: str
    range: RangeResponse
    span: SpanResponse
    quick_fixes: list[str] = []

    @classmethod
    def from_result(cls, result: ValidationResult) -> ValidationResultResponse:
        return cls(
            id=result.id,
            severity=result.severity.value,
            message=result.message,
            rule_id=result.rule.id,
            range=RangeResponse(
                start=PositionResponse(
                    line=result.range.start.line, column=result.range.start.column
                ),
                end=PositionResponse(line=result.range.end.line, column=result.range.end.column),
            ),
            span=SpanResponse(start=result.span.start, end=result.span.end),
            quick_fixes=[fix.title for fix in result.quick_fixes],
        )


class DocumentValidateResponse(BaseModel):
    """Response for POST /sessions/{session_id}/validate."""

    valid: bool
    results: list[ValidationResultResponse] = []


class QuickFixResponse(BaseModel):
    text: str
    applied: bool
    result_id: str
    fix_title: str | None = None


class StructureResponse(BaseModel):
    id: str
    name: str
    nesting_mode: str
    root_type: str
    child_types: list[str]
    metrics_type: str | None = None

    @classmethod
    def from_structure(cls, structure: Structure) -> StructureResponse:
        return cls(
            id=structure.id,
            name=structure.name,
            nesting_mode=structure.nesting_mode.value,
            root_type=structure.root_type,
            child_types=list(structure.child_types),
            metrics_type=structure.metrics_type,
        )


class DetectResponse(BaseModel):
    """Response for POST /sessions/{session_id}/detect."""

    structure: StructureResponse | None = None
    template_id: str | None = None


class MetricResponse(BaseModel):
    name: str
    value: float | str
    span: SpanResponse

    @classmethod
    def from_entry(cls, entry: MetricEntry) -> MetricResponse:
        return cls(
            name=entry.name,
            value=entry.value,
            span=SpanResponse(start=entry.span.start, end=entry.span.end),
        )


class MetricsResponse(BaseModel):
    metrics: list[MetricResponse] = []
