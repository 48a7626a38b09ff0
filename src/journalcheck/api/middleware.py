"""Middleware: request timing, security headers, request body limits."""

from __future__ import annotations

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

# Registry YAML and journal text endpoints accept larger bodies.
_LARGE_BODY_PATHS = ("/registries", "/validate", "/fix", "/detect", "/metrics")
_MAX_BODY_LARGE = 5 * 1024 * 1024  # 5 MB
_MAX_BODY_DEFAULT = 1 * 1024 * 1024  # 1 MB


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Add an X-Request-Duration-Ms header with processing time."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.monotonic()
        response = await call_next(request)
        duration_ms = (time.monotonic() - start) * 1000
        response.headers["X-Request-Duration-Ms"] = f"{duration_ms:.1f}"
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add standard security headers to every response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        response.headers["Content-Security-Policy"] = "default-src 'self'; frame-ancestors 'none'"
        return response


def _too_large(limit: int) -> JSONResponse:
    return JSONResponse(
        status_code=413,
        content={"detail": f"Request body too large (max {limit // (1024 * 1024)} MB)"},
    )


class RequestBodyLimitMiddleware(BaseHTTPMiddleware):
    """Reject request bodies over 5 MB (registry and document endpoints) or 1 MB.

    The Content-Length header gives a cheap early rejection; the body is
    then streamed and counted so a missing or wrong header cannot be used
    to push an arbitrarily large payload into memory.  The consumed bytes
    are cached on ``request._body`` for the downstream handler.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        limit = _MAX_BODY_LARGE if path.endswith(_LARGE_BODY_PATHS) else _MAX_BODY_DEFAULT

        content_length = request.headers.get("content-length")
        if content_length is not None:
            try:
                declared = int(content_length)
            except ValueError:
                return JSONResponse(
                    status_code=400, content={"detail": "Invalid Content-Length header"}
                )
            if declared > limit:
                return _too_large(limit)

        if request.method in ("POST", "PUT", "PATCH"):
            chunks: list[bytes] = []
            total = 0
            async for chunk in request.stream():
                total += len(chunk)
                if total > limit:
                    return _too_large(limit)
                chunks.append(chunk)
            request._body = b"".join(chunks)  # noqa: SLF001

        return await call_next(request)
