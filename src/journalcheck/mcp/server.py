"""FastMCP server exposing journal validation as MCP tools.

Run via::

    journalcheck-mcp                       # reads .env (default: stdio)
    MCP_TRANSPORT=http journalcheck-mcp    # streamable HTTP on port 9000

Sessions scope each client's ``RegistryStore``.  Without a session_id the
default session is used.  Every store holds the ``default`` registry.
"""

from __future__ import annotations

import json
import logging

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from journalcheck import __version__
from journalcheck.engine.validation import UnknownStructureError
from journalcheck.service.registry_store import (
    DEFAULT_REGISTRY_ID,
    RegistryStore,
    RegistryValidationError,
)
from journalcheck.service.session_manager import SessionManager, SessionNotFoundError
from journalcheck.settings import Settings

logger = logging.getLogger("journalcheck.mcp")

mcp = FastMCP("journalcheck")
_session_manager: SessionManager | None = None


def _resolve_store(session_id: str | None = None) -> RegistryStore:
    """Resolve a session_id to its RegistryStore (default session when ``None``)."""
    if _session_manager is None:
        raise ToolError("Session manager not initialised")
    if session_id is not None:
        try:
            return _session_manager.get_store(session_id)
        except SessionNotFoundError as exc:
            raise ToolError(str(exc)) from exc
    return _session_manager.get_or_create_default()


def _lookup_error(exc: KeyError) -> ToolError:
    if isinstance(exc, UnknownStructureError):
        return ToolError(str(exc))
    return ToolError(exc.args[0] if exc.args else str(exc))


# ---------------------------------------------------------------------------
# Reference
# ---------------------------------------------------------------------------

REGISTRY_REFERENCE = """\
# journalcheck reference

## Callouts

A callout opens with a quoted line carrying a type tag and continues over
the following lines quoted at least as deeply:

```markdown
> [!dream] Flying over the sea
> I was gliding above the waves.
>
> > [!symbols]
> > - Sea: the unconscious
```

Nesting is expressed with extra `>` markers; a child must start after and
end before its parent.

## Registry YAML

```yaml
version: 1
enabled: true
contentIsolation:          # masked before callouts are extracted
  ignoreCodeBlocks: true
  ignoreFrontmatter: true
  customIgnorePatterns: []
structures:
  my-structure:            # mapping key = structure id
    name: My Structure
    nestingMode: nested    # flat | nested
    rootType: dream
    childTypes: [symbols, reflections]
    metricsType: metrics   # optional
    requiredTypes: [dream, reflections]
rules:
  no-todo:                 # mapping key = rule id
    type: content          # format | content | custom (structural is ignored)
    severity: warning      # error | warning | info
    pattern: 'TODO'        # regular expression, multiline
    negative: true         # true: every match is a violation
    message: Remove TODO markers
    priority: 0
    quickFixes:
      - title: Mark as done
        pattern: 'TODO'
        replacement: 'DONE'
templates:
  my-template:
    structure: my-structure
    content: |
      > [!dream]
      > ...
```

## Workflow

1. `validate_document(text)`: check text against the `default` registry
   (or `registry_id` from `load_registry`).
2. `apply_quick_fix(text, result_id)`: apply the first fix of a result
   (pass `occurrence` when the listing repeats an id).
3. `detect_structure(text)` / `extract_metrics(text)`.
"""


@mcp.resource("journalcheck://reference")
def registry_reference() -> str:
    """Callout syntax and registry YAML reference."""
    return REGISTRY_REFERENCE


@mcp.tool
def get_registry_reference() -> str:
    """Get the callout syntax and registry YAML reference.

    Call this before composing registry YAML.
    """
    return REGISTRY_REFERENCE


# ---------------------------------------------------------------------------
# Session tools
# ---------------------------------------------------------------------------


@mcp.tool
def create_session(metadata_json: str | None = None) -> str:
    """Create a new session and return its session_id.

    Args:
        metadata_json: Optional JSON object with metadata key-value pairs.
    """
    if _session_manager is None:
        raise ToolError("Session manager not initialised")
    metadata: dict[str, str] = {}
    if metadata_json:
        try:
            metadata = json.loads(metadata_json)
        except json.JSONDecodeError as exc:
            raise ToolError(f"Invalid metadata JSON: {exc}") from exc
    info = _session_manager.create_session(metadata=metadata)
    return (
        f"Session created.  session_id: {info.session_id}\n"
        f"  created_at: {info.created_at.isoformat()}"
    )


@mcp.tool
def close_session(session_id: str) -> str:
    """Close a session and drop its registries."""
    if _session_manager is None:
        raise ToolError("Session manager not initialised")
    try:
        _session_manager.close_session(session_id)
    except SessionNotFoundError as exc:
        raise ToolError(str(exc)) from exc
    return f"Session '{session_id}' closed."


@mcp.tool
def list_sessions() -> str:
    """List all active sessions."""
    if _session_manager is None:
        raise ToolError("Session manager not initialised")
    sessions = _session_manager.list_sessions()
    if not sessions:
        return "No active sessions."
    lines = ["Active sessions:", ""]
    for s in sessions:
        lines.append(
            f"  {s.session_id}  (registries: {s.registry_count}, "
            f"last accessed: {s.last_accessed_at.isoformat()})"
        )
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Registry tools
# ---------------------------------------------------------------------------


@mcp.tool
def load_registry(registry_yaml: str, session_id: str | None = None) -> str:
    """Load registry YAML (structures, rules, templates) and return its registry_id.

    Args:
        registry_yaml: Complete registry YAML; see ``get_registry_reference()``.
        session_id: Session to load into (default session when omitted).
    """
    logger.info("load_registry called (yaml length=%d)", len(registry_yaml))
    store = _resolve_store(session_id)
    try:
        result = store.load_registry(registry_yaml)
    except RegistryValidationError as exc:
        logger.warning("load_registry validation failed: %s", exc)
        raise ToolError(
            str(exc) + "\n\nHint: call get_registry_reference() for the registry format."
        ) from exc
    parts = [
        f"Registry loaded successfully.  registry_id: {result.registry_id}",
        f"  structures: {result.structures}",
        f"  rules:      {result.rules}",
        f"  templates:  {result.templates}",
    ]
    if result.warnings:
        parts.append(f"  warnings: {'; '.join(result.warnings)}")
    return "\n".join(parts)


@mcp.tool
def validate_registry(registry_yaml: str, session_id: str | None = None) -> str:
    """Check registry YAML without storing it; lists errors and warnings."""
    store = _resolve_store(session_id)
    summary = store.validate_registry(registry_yaml)
    lines = ["Registry is valid."] if summary.valid else ["Registry has validation errors:"]
    for e in summary.errors:
        line = f"  [{e.code}] {e.message}"
        if e.path:
            line += f"  (at {e.path}" + (f", line {e.line})" if e.line else ")")
        if e.suggestions:
            line += f"  Did you mean: {', '.join(e.suggestions)}?"
        lines.append(line)
    if summary.warnings:
        lines.append("Warnings:")
        lines.extend(f"  [{w.code}] {w.message}" for w in summary.warnings)
    return "\n".join(lines)


@mcp.tool
def list_registries(session_id: str | None = None) -> str:
    """List the registries of a session (always includes ``default``)."""
    store = _resolve_store(session_id)
    lines = ["Registries:", ""]
    for r in store.list_registries():
        lines.append(
            f"  {r.registry_id}  (structures: {r.structures}, rules: {r.rules}, "
            f"templates: {r.templates})"
        )
    return "\n".join(lines)


@mcp.tool
def describe_registry(
    registry_id: str = DEFAULT_REGISTRY_ID, session_id: str | None = None
) -> str:
    """Describe the structures, rules and templates of a registry."""
    store = _resolve_store(session_id)
    try:
        desc = store.describe(registry_id)
    except KeyError as exc:
        raise _lookup_error(exc) from exc

    lines = [f"Registry {registry_id}" + ("" if desc.enabled else " (disabled)") + ":", ""]
    lines.append("STRUCTURES:")
    for s in desc.structures:
        lines.append(f"  {s.id}  ({s.nesting_mode}, root: {s.root_type})")
        lines.append(f"    children: {', '.join(s.child_types) or '-'}")
        if s.metrics_type:
            lines.append(f"    metrics: {s.metrics_type}")
        if s.required_types:
            lines.append(f"    required: {', '.join(s.required_types)}")
    lines.append("")
    lines.append("RULES:")
    for r in desc.rules:
        flag = "" if r.enabled else ", disabled"
        lines.append(f"  {r.id}  ({r.kind}, {r.severity}, priority {r.priority}{flag})")
    if desc.templates:
        lines.append("")
        lines.append("TEMPLATES:")
        lines.extend(f"  {t.id}  (structure: {t.structure})" for t in desc.templates)
    return "\n".join(lines)


@mcp.tool
def remove_registry(registry_id: str, session_id: str | None = None) -> str:
    """Remove a registry from a session (the default registry cannot be removed)."""
    store = _resolve_store(session_id)
    try:
        store.remove_registry(registry_id)
    except KeyError as exc:
        raise _lookup_error(exc) from exc
    except ValueError as exc:
        raise ToolError(str(exc)) from exc
    return f"Registry '{registry_id}' removed."


# ---------------------------------------------------------------------------
# Document tools
# ---------------------------------------------------------------------------


@mcp.tool
def validate_document(
    text: str,
    registry_id: str = DEFAULT_REGISTRY_ID,
    structure_id: str | None = None,
    session_id: str | None = None,
) -> str:
    """Validate the callout structure of a Markdown journal entry.

    Results are sorted by severity, then rule priority.  Each result has an
    id usable with ``apply_quick_fix``.

    Args:
        text: Markdown journal text.
        registry_id: Registry to validate with.
        structure_id: Structure to check against; detected when omitted.
        session_id: Session that holds the registry (default session when omitted).
    """
    logger.info("validate_document called (text length=%d)", len(text))
    store = _resolve_store(session_id)
    try:
        results = store.validate_document(text, registry_id, structure_id)
    except KeyError as exc:
        raise _lookup_error(exc) from exc
    if not results:
        return "No issues found."
    lines = [f"{len(results)} issue(s):", ""]
    seen: dict[str, int] = {}
    for r in results:
        start = r.range.start
        lines.append(f"  [{r.severity}] {r.message}  (line {start.line}, col {start.column})")
        occurrence = seen.get(r.id, 0)
        seen[r.id] = occurrence + 1
        if occurrence:
            lines.append(f"    id: {r.id}  (occurrence {occurrence})")
        else:
            lines.append(f"    id: {r.id}")
        for i, fix in enumerate(r.quick_fixes):
            lines.append(f"    fix {i}: {fix.title}")
    return "\n".join(lines)


@mcp.tool
def apply_quick_fix(
    text: str,
    result_id: str,
    fix_index: int = 0,
    registry_id: str = DEFAULT_REGISTRY_ID,
    structure_id: str | None = None,
    session_id: str | None = None,
    occurrence: int = 0,
) -> str:
    """Apply a quick fix of a validation result and return the new text.

    The text is validated again and the result is looked up by ``result_id``
    (as listed by ``validate_document``).  When several results share the
    id, ``occurrence`` selects one of them (the listing shows it).
    """
    store = _resolve_store(session_id)
    try:
        outcome = store.apply_quick_fix(
            text,
            result_id,
            registry_id=registry_id,
            structure_id=structure_id,
            fix_index=fix_index,
            occurrence=occurrence,
        )
    except KeyError as exc:
        raise _lookup_error(exc) from exc
    if not outcome.applied:
        raise ToolError(f"Quick fix {fix_index} of '{result_id}' did not change the text")
    return outcome.text


@mcp.tool
def detect_structure(
    text: str, registry_id: str = DEFAULT_REGISTRY_ID, session_id: str | None = None
) -> str:
    """Detect which registered structure a journal entry follows."""
    store = _resolve_store(session_id)
    try:
        structure = store.detect_structure(text, registry_id)
        template = store.template_for_content(text, registry_id)
    except KeyError as exc:
        raise _lookup_error(exc) from exc
    if structure is None:
        return "No structure detected."
    msg = (
        f"Detected structure: {structure.id} "
        f"({structure.nesting_mode}, root: {structure.root_type})"
    )
    if template is not None:
        msg += f"\nTemplate: {template.id}"
    return msg


@mcp.tool
def extract_metrics(
    text: str,
    registry_id: str = DEFAULT_REGISTRY_ID,
    structure_id: str | None = None,
    session_id: str | None = None,
) -> str:
    """Read ``Name: value`` entries from the metrics callouts of a journal entry.

    Returns a JSON object mapping metric names to values.
    """
    store = _resolve_store(session_id)
    try:
        entries = store.extract_metrics(text, registry_id, structure_id)
    except KeyError as exc:
        raise _lookup_error(exc) from exc
    return json.dumps({e.name: e.value for e in entries})


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """Run the MCP server using settings from environment / .env file."""
    settings = Settings()

    logging.basicConfig(level=settings.log_level.upper())
    logger.info(
        "journalcheck MCP server v%s starting (transport=%s)",
        __version__,
        settings.mcp_transport,
    )

    global _session_manager  # noqa: PLW0603
    _session_manager = SessionManager(
        ttl_seconds=settings.session_ttl_seconds,
        cleanup_interval=settings.session_cleanup_interval,
        registry_path=settings.registry_path,
    )
    _session_manager.start()

    try:
        if settings.mcp_transport == "stdio":
            mcp.run(transport="stdio")
        else:
            mcp.run(
                transport=settings.mcp_transport,
                host=settings.mcp_server_host,
                port=settings.mcp_server_port,
                log_level=settings.log_level.lower(),
            )
    finally:
        _session_manager.stop()


if __name__ == "__main__":
    main()
