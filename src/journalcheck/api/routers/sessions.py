"""Session-scoped endpoints: registry management, validation, fixes and metrics."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from journalcheck.api.deps import get_session_manager, is_session_list_disabled
from journalcheck.api.schemas import (
    DetectResponse,
    DocumentRequest,
    DocumentValidateResponse,
    ErrorDetail,
    MetricResponse,
    MetricsResponse,
    QuickFixRequest,
    QuickFixResponse,
    RegistryLoadRequest,
    RegistryLoadResponse,
    RegistrySummaryResponse,
    RegistryValidateResponse,
    SessionCreateRequest,
    SessionListResponse,
    SessionResponse,
    StructureResponse,
    ValidationResultResponse,
)
from journalcheck.engine.validation import UnknownStructureError
from journalcheck.models.schema import Severity
from journalcheck.service.registry_store import (
    ErrorInfo,
    RegistryStore,
    RegistryValidationError,
)
from journalcheck.service.session_manager import SessionInfo, SessionManager, SessionNotFoundError

router = APIRouter()


# -- helpers -----------------------------------------------------------------


def _get_store(session_id: str, mgr: SessionManager) -> RegistryStore:
    """Resolve session_id to its RegistryStore, raise 404 if missing/expired."""
    try:
        return mgr.get_store(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found") from None


def _session_response(info: SessionInfo) -> SessionResponse:
    return SessionResponse(**asdict(info))


def _error_detail(info: ErrorInfo) -> ErrorDetail:
    return ErrorDetail(**asdict(info))


def _lookup_failed(exc: KeyError, registry_id: str) -> HTTPException:
    if isinstance(exc, UnknownStructureError):
        return HTTPException(status_code=404, detail=str(exc))
    return HTTPException(status_code=404, detail=f"Registry '{registry_id}' not found")


# -- session CRUD ------------------------------------------------------------


@router.post("", response_model=SessionResponse, status_code=201)
async def create_session(
    body: SessionCreateRequest | None = None,
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
) -> SessionResponse:
    """Create a new session."""
    info = mgr.create_session(metadata=body.metadata if body else {})
    return _session_response(info)


@router.get("", response_model=SessionListResponse)
async def list_sessions(
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
) -> SessionListResponse:
    if is_session_list_disabled():
        raise HTTPException(status_code=403, detail="Session listing is disabled")
    return SessionListResponse(sessions=[_session_response(s) for s in mgr.list_sessions()])


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
) -> SessionResponse:
    try:
        info = mgr.get_session(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found") from None
    return _session_response(info)


@router.delete("/{session_id}", status_code=204)
async def close_session(
    session_id: str,
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
) -> None:
    """Close a session and drop its registries."""
    try:
        mgr.close_session(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found") from None


# -- registry management -----------------------------------------------------


@router.post(
    "/{session_id}/registries",
    response_model=RegistryLoadResponse,
    status_code=201,
)
async def load_registry(
    session_id: str,
    body: RegistryLoadRequest,
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
) -> RegistryLoadResponse:
    """Load registry YAML (structures, rules, templates) into a session."""
    store = _get_store(session_id, mgr)
    try:
        result = store.load_registry(body.registry_yaml)
    except RegistryValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail={
                "message": "Invalid registry: parsing or validation failed",
                "errors": [_error_detail(e).model_dump() for e in exc.errors],
                "warnings": [_error_detail(w).model_dump() for w in exc.warnings],
            },
        ) from None
    return RegistryLoadResponse(**asdict(result))


@router.get("/{session_id}/registries", response_model=list[RegistrySummaryResponse])
async def list_registries(
    session_id: str,
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
) -> list[RegistrySummaryResponse]:
    store = _get_store(session_id, mgr)
    return [RegistrySummaryResponse(**asdict(s)) for s in store.list_registries()]


@router.post("/{session_id}/registries/validate", response_model=RegistryValidateResponse)
async def validate_registry(
    session_id: str,
    body: RegistryLoadRequest,
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
) -> RegistryValidateResponse:
    """Check registry YAML without loading it."""
    store = _get_store(session_id, mgr)
    summary = store.validate_registry(body.registry_yaml)
    return RegistryValidateResponse(
        valid=summary.valid,
        errors=[_error_detail(e) for e in summary.errors],
        warnings=[_error_detail(w) for w in summary.warnings],
    )


@router.get("/{session_id}/registries/{registry_id}")
async def describe_registry(
    session_id: str,
    registry_id: str,
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
) -> dict[str, Any]:
    store = _get_store(session_id, mgr)
    try:
        desc = store.describe(registry_id)
    except KeyError:
        raise HTTPException(
            status_code=404, detail=f"Registry '{registry_id}' not found"
        ) from None
    return asdict(desc)


@router.delete("/{session_id}/registries/{registry_id}", status_code=204)
async def remove_registry(
    session_id: str,
    registry_id: str,
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
) -> None:
    store = _get_store(session_id, mgr)
    try:
        store.remove_registry(registry_id)
    except KeyError:
        raise HTTPException(
            status_code=404, detail=f"Registry '{registry_id}' not found"
        ) from None
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from None


# -- documents ---------------------------------------------------------------


@router.post("/{session_id}/validate", response_model=DocumentValidateResponse)
async def validate_document(
    session_id: str,
    body: DocumentRequest,
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
) -> DocumentValidateResponse:
    """Validate journal text; results are sorted by severity, then priority."""
    store = _get_store(session_id, mgr)
    try:
        results = store.validate_document(body.text, body.registry_id, body.structure_id)
    except KeyError as exc:
        raise _lookup_failed(exc, body.registry_id) from None
    return DocumentValidateResponse(
        valid=not any(r.severity == Severity.ERROR for r in results),
        results=[ValidationResultResponse.from_result(r) for r in results],
    )


@router.post("/{session_id}/fix", response_model=QuickFixResponse)
async def apply_quick_fix(
    session_id: str,
    body: QuickFixRequest,
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
) -> QuickFixResponse:
    """Apply a quick fix of one validation result (by id) to the text."""
    store = _get_store(session_id, mgr)
    try:
        outcome = store.apply_quick_fix(
            body.text,
            body.result_id,
            registry_id=body.registry_id,
            structure_id=body.structure_id,
            fix_index=body.fix_index,
            occurrence=body.occurrence,
        )
    except UnknownStructureError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from None
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=exc.args[0] if exc.args else "") from None
    return QuickFixResponse(**asdict(outcome))


@router.post("/{session_id}/detect", response_model=DetectResponse)
async def detect_structure(
    session_id: str,
    body: DocumentRequest,
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
) -> DetectResponse:
    """Detect the structure of the text and the template registered for it."""
    store = _get_store(session_id, mgr)
    try:
        structure = store.detect_structure(body.text, body.registry_id)
        template = store.template_for_content(body.text, body.registry_id)
    except KeyError as exc:
        raise _lookup_failed(exc, body.registry_id) from None
    return DetectResponse(
        structure=StructureResponse.from_structure(structure) if structure else None,
        template_id=template.id if template else None,
    )


@router.post("/{session_id}/metrics", response_model=MetricsResponse)
async def extract_metrics(
    session_id: str,
    body: DocumentRequest,
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
) -> MetricsResponse:
    """Read ``Name: value`` entries from the metrics callouts of the text."""
    store = _get_store(session_id, mgr)
    try:
        entries = store.extract_metrics(body.text, body.registry_id, body.structure_id)
    except KeyError as exc:
        raise _lookup_failed(exc, body.registry_id) from None
    return MetricsResponse(metrics=[MetricResponse.from_entry(e) for e in entries])
