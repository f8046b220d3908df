"""Codemagic API client -- build submission, status, listing, cancel, artifacts."""

import logging
from pathlib import Path

import httpx

logger = logging.getLogger(__name__)

CODEMAGIC_BUILDS_URL = "https://api.codemagic.io/builds"

# ── Shared HTTP client (connection pooling) ─────────────────────────────────

_client: httpx.AsyncClient | None = None


def _get_client() -> httpx.AsyncClient:
    """Return (or create) the shared httpx client for Codemagic API calls."""
    global _client
    if _client is None:
        _client = httpx.AsyncClient(timeout=30.0)
    return _client


async def close_client() -> None:
    """Close the shared HTTP client.  Called during app shutdown."""
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None


# ── Helpers ──────────────────────────────────────────────────────────────────


def _auth_headers(api_token: str) -> dict:
    """Return the Codemagic auth header."""
    return {"x-auth-token": api_token}


def _error_message(exc: httpx.HTTPStatusError) -> str:
    """Pull the provider's ``message`` out of an error body, if any."""
    try:
        data = exc.response.json()
    except ValueError:
        return exc.response.text or str(exc)
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return exc.response.text or str(exc)


# ── Builds ───────────────────────────────────────────────────────────────────


async def start_build(
    api_token: str,
    config: dict,
    *,
    base_url: str = CODEMAGIC_BUILDS_URL,
) -> dict:
    """Submit a build configuration and return the new build's identity.

    Returns ``{"build_id", "status", "started_at"}``.

    Raises
    ------
    ValueError – the provider rejected the submission or could not be
    reached; the message carries the provider's own error text when there
    is one.
    """
    client = _get_client()
    try:
        response = await client.post(
            base_url,
            json=config,
            headers={**_auth_headers(api_token), "Content-Type": "application/json"},
        )
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        message = _error_message(exc)
        logger.error("Failed to start build: %s", message)
        raise ValueError(f"Build start failed: {message}") from exc
    except httpx.HTTPError as exc:
        logger.error("Failed to start build: %s", exc)
        raise ValueError(f"Build start failed: {exc}") from exc
    build = response.json()["build"]
    return {
        "build_id": build["_id"],
        "status": build.get("status"),
        "started_at": build.get("startedAt"),
    }


async def get_build_status(
    api_token: str,
    build_id: str,
    *,
    base_url: str = CODEMAGIC_BUILDS_URL,
) -> dict:
    """Fetch the current state of one build.

    Returns ``{"status", "artifacts", "error", "logs"}``.  Network and
    HTTP errors propagate unchanged.
    """
    client = _get_client()
    response = await client.get(
        f"{base_url}/{build_id}",
        headers=_auth_headers(api_token),
    )
    response.raise_for_status()
    build = response.json()["build"]
    return {
        "status": build.get("status"),
        "artifacts": build.get("artifacts") or [],
        "error": build.get("error"),
        "logs": build.get("logs"),
    }


async def list_builds(
    api_token: str,
    limit: int = 20,
    *,
    base_url: str = CODEMAGIC_BUILDS_URL,
) -> list[dict]:
    """List recent builds, newest first as returned by the provider."""
    client = _get_client()
    response = await client.get(
        base_url,
        params={"limit": limit},
        headers=_auth_headers(api_token),
    )
    response.raise_for_status()
    return response.json().get("builds", [])


async def cancel_build(
    api_token: str,
    build_id: str,
    *,
    base_url: str = CODEMAGIC_BUILDS_URL,
) -> dict:
    """Ask the provider to cancel a running build."""
    client = _get_client()
    response = await client.post(
        f"{base_url}/{build_id}/cancel",
        json={},
        headers=_auth_headers(api_token),
    )
    response.raise_for_status()
    return {
        "build_id": build_id,
        "status": "canceled",
        "message": "Build canceled successfully",
    }


async def download_artifact(
    api_token: str,
    artifact_url: str,
    output_path: Path,
) -> Path:
    """Stream a build artifact to *output_path* and return the path."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    client = _get_client()
    async with client.stream(
        "GET",
        artifact_url,
        headers=_auth_headers(api_token),
    ) as response:
        response.raise_for_status()
        with output_path.open("wb") as fh:
            async for chunk in response.aiter_bytes():
                fh.write(chunk)
    logger.info("Downloaded artifact %s -> %s", artifact_url, output_path)
    return output_path
