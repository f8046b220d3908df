"""HTTP access log middleware — one structured METRIC line per request.

Writes to the ``gamesmith.access`` logger: method, path, status code,
wall time, request ID, and the error detail of 4xx/5xx responses.
"""

from __future__ import annotations

import json
import logging
import time

from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger("gamesmith.access")

_SKIP_PREFIXES = ("/health", "/docs", "/redoc", "/openapi.json", "/favicon.ico")


class AccessLogMiddleware:
    """ASGI middleware that logs every HTTP request as a METRIC line."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path: str = scope.get("path", "")
        if path.startswith(_SKIP_PREFIXES):
            await self.app(scope, receive, send)
            return

        method: str = scope.get("method", "?")
        t0 = time.perf_counter()
        status_code = 0
        error_detail = ""

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code, error_detail
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
            elif message["type"] == "http.response.body" and status_code >= 400:
                error_detail = _extract_detail(message.get("body", b""))
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception:
            if status_code == 0:
                status_code = 500
            raise
        finally:
            # Request ID is read late: RequestIDMiddleware may sit inside us.
            request_id = scope.get("state", {}).get("request_id", "-")
            emit(method, path, status_code, (time.perf_counter() - t0) * 1000, request_id, error_detail)


def _extract_detail(body: bytes) -> str:
    if not body:
        return ""
    try:
        data = json.loads(body)
    except ValueError:
        return ""
    if not isinstance(data, dict):
        return ""
    return str(data.get("detail", data.get("error", "")))[:200]


def emit(
    method: str,
    path: str,
    status_code: int,
    wall_ms: float,
    request_id: str,
    error_detail: str = "",
) -> None:
    """Emit a structured METRIC line for the HTTP request."""
    parts = [
        "METRIC | type=http_request",
        f"method={method}",
        f"path={path}",
        f"status={status_code}",
        f"wall_ms={wall_ms:.0f}",
        f"req_id={request_id}",
    ]
    if error_detail:
        # Pipes would break the METRIC field separator
        parts.append(f"error={error_detail.replace('|', '/')}")
    line = " | ".join(parts)

    if status_code >= 500:
        logger.error(line)
    elif status_code >= 400:
        logger.warning(line)
    else:
        logger.info(line)
