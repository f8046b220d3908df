"""Builds router -- mobile builds on the external build provider."""

import httpx
from fastapi import APIRouter, Query

from app.errors import NotFoundError
from app.schemas import BuildJob, BuildRequest, BuildResult
from app.services import build_service

router = APIRouter(prefix="/api/builds", tags=["builds"])


class StartBuildRequest(BuildRequest):
    """Build request plus whether to hold the connection until it finishes."""
    wait: bool = False


# ── POST /api/builds ─────────────────────────────────────────────────────


@router.post("", response_model=None)
async def start_build(body: StartBuildRequest) -> BuildResult | BuildJob:
    """Start a build.  With ``wait`` the call blocks until a terminal state.

    Returns a :class:`BuildJob` right after dispatch, or the final
    :class:`BuildResult` when waiting.
    """
    if body.wait:
        return await build_service.build_mobile_app(body)
    return await build_service.dispatch_build(body)


# ── GET /api/builds ──────────────────────────────────────────────────────


@router.get("")
async def list_builds(limit: int = Query(default=20, ge=1, le=100)):
    """List recent builds as the provider reports them."""
    return {"items": await build_service.list_builds(limit)}


# ── GET /api/builds/{build_id} ───────────────────────────────────────────


@router.get("/{build_id}", response_model=BuildJob)
async def get_build(build_id: str):
    """Poll a build's status once."""
    try:
        return await build_service.get_build(build_id)
    except httpx.HTTPStatusError as exc:
        if exc.response.status_code == 404:
            raise NotFoundError(f"Build {build_id} not found") from exc
        raise


# ── POST /api/builds/{build_id}/cancel ───────────────────────────────────


@router.post("/{build_id}/cancel")
async def cancel_build(build_id: str):
    """Cancel a running build."""
    try:
        return await build_service.cancel_build(build_id)
    except httpx.HTTPStatusError as exc:
        if exc.response.status_code == 404:
            raise NotFoundError(f"Build {build_id} not found") from exc
        raise


# ── POST /api/builds/{build_id}/download ─────────────────────────────────


@router.post("/{build_id}/download")
async def download_build(build_id: str):
    """Download a finished build's artifacts into the server's output dir."""
    try:
        paths = await build_service.download_build_artifacts(build_id)
    except httpx.HTTPStatusError as exc:
        if exc.response.status_code == 404:
            raise NotFoundError(f"Build {build_id} not found") from exc
        raise
    return {"build_id": build_id, "files": [str(p) for p in paths]}
