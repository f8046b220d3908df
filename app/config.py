"""Application configuration loaded from environment variables.

Uses ``pydantic-settings`` for automatic env-var loading, type coercion,
and ``.env`` file support.  Validates required settings on import — fails
fast if critical vars are missing outside of tests.
"""

VERSION = "0.1.0"

import sys

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# ---------------------------------------------------------------------------
# Required var names, checked after instantiation (not during), so tests
# that leave them blank still work.  Codemagic credentials are optional:
# without them the build endpoints answer 503.
# ---------------------------------------------------------------------------
_REQUIRED_VARS: list[str] = [
    "OPENAI_API_KEY",
]


class Settings(BaseSettings):
    """Application settings — sourced from environment / ``.env`` file.

    Required vars (must be set in production, may be blank in test):
      OPENAI_API_KEY
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # -- required in production (default empty so tests don't fail) --
    OPENAI_API_KEY: str = ""

    # -- optional with sensible defaults --
    FRONTEND_URL: str = "http://localhost:5173"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    # Completion provider
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_MODEL: str = "gpt-4"
    LLM_MAX_TOKENS: int = Field(default=4000, ge=1)
    LLM_TEMPERATURE: float = Field(default=0.7, ge=0.0, le=2.0)
    LLM_MAX_RETRIES: int = Field(default=2, ge=0)

    # Generated projects land in OUTPUT_DIR/<platform>-<timestamp>/
    OUTPUT_DIR: str = "generated_games"
    SAVE_GENERATED_FILES: bool = True

    # Build provider (Codemagic)
    CODEMAGIC_API_URL: str = "https://api.codemagic.io/builds"
    CODEMAGIC_API_TOKEN: str = ""
    CODEMAGIC_APP_ID: str = ""
    BUILD_POLL_INTERVAL_SECONDS: float = Field(default=30.0, gt=0)
    BUILD_MAX_WAIT_SECONDS: float = Field(default=1800.0, gt=0)  # 30 minutes
    BUILD_NOTIFY_EMAIL: str = "build@example.com"

    # Signing material is passed through to the build provider untouched.
    ANDROID_KEYSTORE_PATH: str = ""
    ANDROID_KEYSTORE_PASSWORD: str = ""
    ANDROID_KEY_ALIAS: str = ""
    ANDROID_KEY_PASSWORD: str = ""
    IOS_CERTIFICATE_PATH: str = ""
    IOS_CERTIFICATE_PASSWORD: str = ""
    IOS_PROVISIONING_PROFILE: str = ""

    @property
    def builds_enabled(self) -> bool:
        """True when both Codemagic credentials are configured."""
        return bool(self.CODEMAGIC_API_TOKEN and self.CODEMAGIC_APP_ID)


settings = Settings()


# Validate at import time, but only when NOT running under pytest.
if "pytest" not in sys.modules:
    _missing = [v for v in _REQUIRED_VARS if not getattr(settings, v)]
    if _missing:
        print(
            f"[config] FATAL: missing required environment variables: "
            f"{', '.join(_missing)}",
            file=sys.stderr,
        )
        sys.exit(1)
