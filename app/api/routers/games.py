"""Games router -- turns a game description into a generated project."""

from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.schemas import GenerationRequest, GenerationResult
from app.services import game_service

router = APIRouter(tags=["games"])


class LegacyGenerateRequest(BaseModel):
    """Body of the older ``/generate-game`` route.

    ``gameName`` stands in for the description when no description is given.
    """
    model_config = ConfigDict(populate_by_name=True)

    game_name: Optional[str] = Field(default=None, alias="gameName")
    description: Optional[str] = None
    platform: str = Field(..., min_length=1)
    game_type: str = Field(default="arcade", alias="gameType")

    @model_validator(mode="after")
    def _needs_description(self) -> "LegacyGenerateRequest":
        if not (self.description or self.game_name):
            raise ValueError("description or gameName is required")
        return self


# ── POST /api/generate ───────────────────────────────────────────────────


@router.post("/api/generate", response_model=GenerationResult)
async def generate(body: GenerationRequest):
    """Generate a game for one platform."""
    return await game_service.generate_game(body.description, body.platform, body.game_type)


# ── POST /generate-game ──────────────────────────────────────────────────


@router.post("/generate-game", response_model=GenerationResult)
async def generate_game_legacy(body: LegacyGenerateRequest):
    """Backwards-compatible alias of ``/api/generate``."""
    description = body.description or body.game_name
    return await game_service.generate_game(description, body.platform, body.game_type)
