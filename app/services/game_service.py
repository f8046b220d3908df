"""Game generation service — description in, platform project out.

Validates the platform, asks the completion provider for the game code,
lays the code out as the platform's file set and optionally writes it to
``OUTPUT_DIR``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from app.clients import llm_client
from app.config import settings
from app.errors import GameSmithError, GenerationError, UnsupportedPlatformError
from app.schemas import GenerationResult, GenerationStatus, Platform
from app.services.game_files import create_game_files, write_game_files
from app.services.prompt_builder import SYSTEM_PROMPT, build_messages

logger = logging.getLogger(__name__)


def supported_platforms() -> list[str]:
    return [p.value for p in Platform]


def validate_platform(platform: str) -> Platform:
    """Return the :class:`Platform` for *platform* or raise 400."""
    try:
        return Platform(platform)
    except ValueError:
        raise UnsupportedPlatformError(platform, supported_platforms()) from None


async def generate_code(description: str, platform: Platform, game_type: str) -> str:
    """Ask the completion provider for the game's source code."""
    response = await llm_client.chat_openai(
        api_key=settings.OPENAI_API_KEY,
        model=settings.OPENAI_MODEL,
        system_prompt=SYSTEM_PROMPT,
        messages=build_messages(description, platform.value, game_type),
        max_tokens=settings.LLM_MAX_TOKENS,
        temperature=settings.LLM_TEMPERATURE,
        base_url=settings.OPENAI_BASE_URL,
        max_retries=settings.LLM_MAX_RETRIES,
    )
    usage = response.get("usage", {})
    logger.info(
        "Generated %s code (%d in / %d out tokens)",
        platform.value, usage.get("input_tokens", 0), usage.get("output_tokens", 0),
    )
    return response["text"]


async def generate_game(
    description: str,
    platform: str,
    game_type: str = "arcade",
    *,
    save: bool | None = None,
) -> GenerationResult:
    """Generate a complete game project for *platform*.

    Raises
    ------
    UnsupportedPlatformError – *platform* is not supported (no network call
    is made).
    GenerationError – the provider call or file output failed.
    """
    resolved = validate_platform(platform)
    if save is None:
        save = settings.SAVE_GENERATED_FILES

    logger.info("Generating %s game: %s", resolved.value, description)
    try:
        code = await generate_code(description, resolved, game_type)
        result = GenerationResult(
            platform=resolved,
            game_type=game_type,
            description=description,
            files=create_game_files(code, resolved),
            status=GenerationStatus.generated,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
        if save:
            out_dir = write_game_files(result, Path(settings.OUTPUT_DIR))
            result.output_dir = str(out_dir)
    except GameSmithError:
        raise
    except Exception as exc:
        logger.error("Game generation failed: %s", exc, exc_info=True)
        raise GenerationError(f"Game generation failed: {exc}") from exc
    return result
