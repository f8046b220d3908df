"""Build service — dispatches mobile builds to Codemagic and waits for them.

The poller is deliberately plain: one status call every
``BUILD_POLL_INTERVAL_SECONDS`` until the build finishes, fails, is
canceled, or ``BUILD_MAX_WAIT_SECONDS`` elapses.  A failed status call
ends the wait immediately; there is no retry and no backoff.
"""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from urllib.parse import urlparse

from pydantic import ValidationError

from app.clients import codemagic_client
from app.config import settings
from app.errors import BadRequestError, BuildError, BuildFailedError, BuildTimeoutError, NotFoundError
from app.schemas import BuildFramework, BuildJob, BuildRequest, BuildResult, BuildTarget

logger = logging.getLogger(__name__)

TERMINAL_SUCCESS = "finished"
TERMINAL_FAILURES = frozenset({"failed", "canceled"})

BUILD_ENVIRONMENT = {
    "flutter": "3.13.0",
    "xcode": "latest",
    "node": "18.17.0",
}

_BUILD_SCRIPTS: dict[BuildFramework, dict[BuildTarget, list[str]]] = {
    BuildFramework.flutter: {
        BuildTarget.android: [
            "flutter packages get",
            "flutter build apk --release",
            "flutter build appbundle --release",
        ],
        BuildTarget.ios: [
            "flutter packages get",
            "flutter build ios --release --no-codesign",
            "xcodebuild -workspace ios/Runner.xcworkspace -scheme Runner -configuration Release "
            "archive -archivePath build/Runner.xcarchive",
            "xcodebuild -exportArchive -archivePath build/Runner.xcarchive -exportPath build/ios "
            "-exportOptionsPlist ios/ExportOptions.plist",
        ],
    },
    BuildFramework.react_native: {
        BuildTarget.android: [
            "npm install",
            "cd android && ./gradlew assembleRelease",
            "cd android && ./gradlew bundleRelease",
        ],
        BuildTarget.ios: [
            "npm install",
            "cd ios && pod install",
            "xcodebuild -workspace ios/GameApp.xcworkspace -scheme GameApp -configuration Release "
            "archive -archivePath build/GameApp.xcarchive",
            "xcodebuild -exportArchive -archivePath build/GameApp.xcarchive -exportPath build/ios "
            "-exportOptionsPlist ios/ExportOptions.plist",
        ],
    },
}

_ARTIFACT_PATHS: dict[BuildTarget, list[str]] = {
    BuildTarget.android: [
        "build/app/outputs/flutter-apk/app-release.apk",
        "build/app/outputs/bundle/release/app-release.aab",
    ],
    BuildTarget.ios: [
        "build/ios/*.ipa",
    ],
}


# ---------------------------------------------------------------------------
# Build configuration
# ---------------------------------------------------------------------------


def get_build_scripts(framework: str, target: str) -> list[str]:
    """Return the build commands for *framework* on *target*, or ``[]``."""
    try:
        return list(_BUILD_SCRIPTS[BuildFramework(framework)][BuildTarget(target)])
    except (ValueError, KeyError):
        return []


def get_artifact_paths(target: str) -> list[str]:
    """Return the artifact globs collected for *target*, or ``[]``."""
    try:
        return list(_ARTIFACT_PATHS[BuildTarget(target)])
    except ValueError:
        return []


def create_build_config(request: BuildRequest) -> dict:
    """Translate *request* into a Codemagic build payload."""
    config: dict = {
        "appId": settings.CODEMAGIC_APP_ID,
        "branch": request.branch,
        "environment": dict(BUILD_ENVIRONMENT),
        "scripts": get_build_scripts(request.framework, request.target),
        "artifacts": get_artifact_paths(request.target),
        "publishing": {
            "email": {
                "recipients": [settings.BUILD_NOTIFY_EMAIL],
                "notify": {"success": True, "failure": True},
            },
        },
    }

    if request.target == BuildTarget.android:
        config["android"] = {
            "signing": {
                "debug": True,
                "release": {
                    "keystore": settings.ANDROID_KEYSTORE_PATH,
                    "keystore_password": settings.ANDROID_KEYSTORE_PASSWORD,
                    "key_alias": settings.ANDROID_KEY_ALIAS,
                    "key_password": settings.ANDROID_KEY_PASSWORD,
                },
            },
        }
    elif request.target == BuildTarget.ios:
        config["ios"] = {
            "signing": {
                "certificate": settings.IOS_CERTIFICATE_PATH,
                "certificate_password": settings.IOS_CERTIFICATE_PASSWORD,
                "provisioning_profile": settings.IOS_PROVISIONING_PROFILE,
            },
        }
    return config


# ---------------------------------------------------------------------------
# Provider calls
# ---------------------------------------------------------------------------


def _require_credentials() -> None:
    if not settings.builds_enabled:
        raise BuildError(
            "Build provider is not configured (CODEMAGIC_API_TOKEN / CODEMAGIC_APP_ID)",
            status_code=503,
        )


def _artifact_urls(artifacts: list) -> list[str]:
    return [a["url"] for a in artifacts if isinstance(a, dict) and a.get("url")]


def _malformed_response(exc: ValidationError) -> BuildError:
    logger.error("Unexpected build provider response: %s", exc)
    return BuildError(f"Unexpected build provider response: {exc}", status_code=502)


async def dispatch_build(request: BuildRequest) -> BuildJob:
    """Submit a build and return as soon as the provider accepts it."""
    _require_credentials()
    config = create_build_config(request)
    logger.info("Starting %s build for: %s", request.target.value, request.name)
    try:
        started = await codemagic_client.start_build(
            settings.CODEMAGIC_API_TOKEN, config, base_url=settings.CODEMAGIC_API_URL,
        )
        return BuildJob(
            build_id=started["build_id"],
            status=started.get("status"),
            started_at=started.get("started_at"),
        )
    except ValidationError as exc:
        raise _malformed_response(exc) from exc
    except ValueError as exc:
        raise BuildError(str(exc), status_code=502) from exc


async def get_build(build_id: str) -> BuildJob:
    """One status poll, reshaped as a :class:`BuildJob`."""
    _require_credentials()
    status = await codemagic_client.get_build_status(
        settings.CODEMAGIC_API_TOKEN, build_id, base_url=settings.CODEMAGIC_API_URL,
    )
    try:
        return BuildJob(
            build_id=build_id,
            status=status.get("status"),
            artifacts=_artifact_urls(status.get("artifacts") or []),
        )
    except ValidationError as exc:
        raise _malformed_response(exc) from exc


async def list_builds(limit: int = 20) -> list[dict]:
    _require_credentials()
    return await codemagic_client.list_builds(
        settings.CODEMAGIC_API_TOKEN, limit, base_url=settings.CODEMAGIC_API_URL,
    )


async def cancel_build(build_id: str) -> dict:
    _require_credentials()
    logger.info("Canceling build %s", build_id)
    return await codemagic_client.cancel_build(
        settings.CODEMAGIC_API_TOKEN, build_id, base_url=settings.CODEMAGIC_API_URL,
    )


# ---------------------------------------------------------------------------
# Poller
# ---------------------------------------------------------------------------


def _monotonic() -> float:
    return time.monotonic()


async def monitor_build(
    build_id: str,
    *,
    max_wait: float | None = None,
    poll_interval: float | None = None,
) -> dict:
    """Poll *build_id* until it reaches a terminal state or the deadline.

    Returns ``{"status": "success", "download_url", "build_time"}`` once the
    provider reports ``finished``.

    Raises
    ------
    BuildFailedError – provider reported ``failed`` or ``canceled``.
    BuildTimeoutError – *max_wait* seconds elapsed without a terminal state.
    httpx.HTTPError – a status call failed; not retried.
    """
    if max_wait is None:
        max_wait = settings.BUILD_MAX_WAIT_SECONDS
    if poll_interval is None:
        poll_interval = settings.BUILD_POLL_INTERVAL_SECONDS

    started = _monotonic()
    while _monotonic() - started < max_wait:
        status = await codemagic_client.get_build_status(
            settings.CODEMAGIC_API_TOKEN, build_id, base_url=settings.CODEMAGIC_API_URL,
        )
        state = status.get("status")
        logger.info("Build %s status: %s", build_id, state)

        if state == TERMINAL_SUCCESS:
            urls = _artifact_urls(status.get("artifacts") or [])
            return {
                "status": "success",
                "download_url": urls[0] if urls else None,
                "build_time": _monotonic() - started,
            }
        if state in TERMINAL_FAILURES:
            raise BuildFailedError(
                f"Build {state}: {status.get('error') or 'Unknown error'}",
                build_id=build_id,
                status=state,
            )

        await asyncio.sleep(poll_interval)

    raise BuildTimeoutError(build_id=build_id)


async def build_mobile_app(request: BuildRequest) -> BuildResult:
    """Dispatch a build and block until it completes.

    A missing provider configuration (503), terminal build failures and
    timeouts keep their own type; anything else, dispatch errors included,
    is wrapped as ``BuildError("Mobile build failed: ...")``.
    """
    _require_credentials()
    try:
        job = await dispatch_build(request)
        final = await monitor_build(job.build_id)
    except (BuildFailedError, BuildTimeoutError):
        logger.error("Mobile build for %s did not succeed", request.name)
        raise
    except Exception as exc:
        logger.error("Mobile build failed: %s", exc, exc_info=True)
        raise BuildError(f"Mobile build failed: {exc}", status_code=502) from exc

    return BuildResult(
        build_id=job.build_id,
        status=final["status"],
        download_url=final["download_url"],
        platform=request.target,
        app_name=request.name,
        build_time=final["build_time"],
    )


# ---------------------------------------------------------------------------
# Artifacts
# ---------------------------------------------------------------------------


def _artifact_filename(url: str, index: int) -> str:
    name = Path(urlparse(url).path).name
    if name in ("", ".", ".."):
        return f"artifact-{index}"
    return name


async def download_build_artifacts(build_id: str, output_dir: Path | None = None) -> list[Path]:
    """Download every artifact of a finished build.

    Files land in ``<output_dir or OUTPUT_DIR>/builds/<build_id>/``.  The
    build must be ``finished`` (409 otherwise) and have at least one
    artifact URL (404 otherwise).
    """
    _require_credentials()
    if build_id in ("", ".", "..") or Path(build_id).name != build_id:
        raise BadRequestError(f"Invalid build id: {build_id}")

    status = await codemagic_client.get_build_status(
        settings.CODEMAGIC_API_TOKEN, build_id, base_url=settings.CODEMAGIC_API_URL,
    )
    state = status.get("status")
    if state != TERMINAL_SUCCESS:
        raise BuildError(f"Build {build_id} is not finished (status: {state})", status_code=409)
    urls = _artifact_urls(status.get("artifacts") or [])
    if not urls:
        raise NotFoundError(f"Build {build_id} has no artifacts")

    target_dir = Path(output_dir or settings.OUTPUT_DIR) / "builds" / build_id
    paths = []
    for index, url in enumerate(urls):
        path = await codemagic_client.download_artifact(
            settings.CODEMAGIC_API_TOKEN, url, target_dir / _artifact_filename(url, index),
        )
        paths.append(path)
    logger.info("Downloaded %d artifact(s) for build %s", len(paths), build_id)
    return paths
