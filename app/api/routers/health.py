"""Health check and service status routes."""

from fastapi import APIRouter

from app.config import VERSION, settings
from app.services.game_service import supported_platforms

router = APIRouter()


@router.get("/")
async def root() -> dict:
    return {"message": "Welcome to GameSmith API!"}


@router.get("/health")
async def health_check() -> dict:
    """Liveness probe — the service holds no state worth checking."""
    return {"status": "ok"}


@router.get("/health/version")
async def health_version() -> dict:
    return {"version": VERSION}


@router.get("/api/status")
async def service_status() -> dict:
    """Report which external providers are configured and what we support."""
    return {
        "status": "ok",
        "version": VERSION,
        "supported_platforms": supported_platforms(),
        "completion_provider": {
            "configured": bool(settings.OPENAI_API_KEY),
            "model": settings.OPENAI_MODEL,
        },
        "build_provider": {
            "configured": settings.builds_enabled,
        },
    }
