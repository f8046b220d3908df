"""
schemas.py — Shapes shared by the generation and build services.

Requests are validated here before any external call is made.  Results
are plain pydantic models so routers can return them directly.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Platform(str, Enum):
    flutter = "flutter"
    react_native = "react-native"
    unity = "unity"
    web = "web"


class BuildFramework(str, Enum):
    """App frameworks the build provider knows how to compile."""
    flutter = "flutter"
    react_native = "react-native"


class BuildTarget(str, Enum):
    android = "android"
    ios = "ios"


class GenerationStatus(str, Enum):
    generated = "generated"
    failed = "failed"


class GenerationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    description: str = Field(..., min_length=1)
    # Validated against Platform by the service so unsupported values get
    # the domain error rather than a schema error.
    platform: str = Field(..., min_length=1)
    game_type: str = Field(default="arcade", alias="gameType")


class GenerationResult(BaseModel):
    platform: Platform
    game_type: str
    description: str
    files: dict[str, str]         # relative path → file content
    status: GenerationStatus = GenerationStatus.generated
    timestamp: str                # ISO-8601, UTC
    output_dir: Optional[str] = None


class BuildRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1)
    framework: BuildFramework = BuildFramework.flutter
    target: BuildTarget
    repository: Optional[str] = None
    description: Optional[str] = None
    branch: str = "main"


class BuildJob(BaseModel):
    """A build as the provider reports it.  Observed, never mutated locally."""
    build_id: str
    # queued | running | finished | failed | canceled; other provider
    # values are passed through verbatim.
    status: Optional[str] = None
    artifacts: list[str] = Field(default_factory=list)
    started_at: Optional[str] = None


class BuildResult(BaseModel):
    build_id: str
    status: str                   # "success"
    download_url: Optional[str] = None
    platform: BuildTarget
    app_name: str
    build_time: float             # seconds
