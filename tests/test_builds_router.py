"""Tests for the build routes."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx

from app.errors import BuildError, BuildFailedError, BuildTimeoutError
from app.schemas import BuildJob, BuildResult, BuildTarget


def _http_error(status_code: int) -> httpx.HTTPStatusError:
    resp = MagicMock()
    resp.status_code = status_code
    return httpx.HTTPStatusError(f"HTTP {status_code}", request=MagicMock(), response=resp)


# ── POST /api/builds ─────────────────────────────────────────────────────


@patch("app.api.routers.builds.build_service.dispatch_build", new_callable=AsyncMock)
def test_start_build_without_wait_dispatches(mock_dispatch, test_client):
    mock_dispatch.return_value = BuildJob(build_id="bld-1", status="queued")

    resp = test_client.post("/api/builds", json={"name": "Snake", "target": "android"})

    assert resp.status_code == 200
    assert resp.json()["build_id"] == "bld-1"
    assert resp.json()["status"] == "queued"
    request = mock_dispatch.await_args.args[0]
    assert request.target == BuildTarget.android
    assert request.framework.value == "flutter"


@patch("app.api.routers.builds.build_service.build_mobile_app", new_callable=AsyncMock)
def test_start_build_with_wait_returns_result(mock_build, test_client):
    mock_build.return_value = BuildResult(
        build_id="bld-1",
        status="success",
        download_url="https://cdn/app.apk",
        platform=BuildTarget.android,
        app_name="Snake",
        build_time=321.0,
    )

    resp = test_client.post(
        "/api/builds",
        json={"name": "Snake", "target": "android", "framework": "react-native", "wait": True},
    )

    assert resp.status_code == 200
    data = resp.json()
    assert data["download_url"] == "https://cdn/app.apk"
    assert data["build_time"] == 321.0


def test_start_build_rejects_unknown_target(test_client):
    resp = test_client.post("/api/builds", json={"name": "Snake", "target": "windows"})
    assert resp.status_code == 400


@patch("app.api.routers.builds.build_service.build_mobile_app", new_callable=AsyncMock)
def test_build_failure_surfaces_provider_text(mock_build, test_client):
    mock_build.side_effect = BuildFailedError("Build failed: Gradle task failed", build_id="bld-1")

    resp = test_client.post("/api/builds", json={"name": "Snake", "target": "android", "wait": True})

    assert resp.status_code == 502
    assert resp.json()["detail"] == "Build failed: Gradle task failed"


@patch("app.api.routers.builds.build_service.build_mobile_app", new_callable=AsyncMock)
def test_build_timeout_is_504(mock_build, test_client):
    mock_build.side_effect = BuildTimeoutError(build_id="bld-1")

    resp = test_client.post("/api/builds", json={"name": "Snake", "target": "ios", "wait": True})

    assert resp.status_code == 504


def test_start_build_without_credentials_is_503(test_client, monkeypatch):
    monkeypatch.setattr("app.config.settings.CODEMAGIC_APP_ID", "")

    resp = test_client.post("/api/builds", json={"name": "Snake", "target": "ios"})

    assert resp.status_code == 503


def test_start_build_unreachable_provider_is_502(test_client):
    client = AsyncMock()
    client.post.side_effect = httpx.ConnectError("refused")
    with patch("app.clients.codemagic_client.httpx.AsyncClient", return_value=client):
        resp = test_client.post("/api/builds", json={"name": "Snake", "target": "android"})

    assert resp.status_code == 502
    assert resp.json()["detail"] == "Build start failed: refused"


def test_start_build_with_wait_unreachable_provider_is_502(test_client):
    client = AsyncMock()
    client.post.side_effect = httpx.ConnectError("refused")
    with patch("app.clients.codemagic_client.httpx.AsyncClient", return_value=client):
        resp = test_client.post(
            "/api/builds", json={"name": "Snake", "target": "android", "wait": True},
        )

    assert resp.status_code == 502
    assert resp.json()["detail"] == "Mobile build failed: Build start failed: refused"


# ── GET /api/builds ──────────────────────────────────────────────────────


@patch("app.api.routers.builds.build_service.list_builds", new_callable=AsyncMock)
def test_list_builds(mock_list, test_client):
    mock_list.return_value = [{"_id": "a"}, {"_id": "b"}]

    resp = test_client.get("/api/builds?limit=2")

    assert resp.status_code == 200
    assert resp.json() == {"items": [{"_id": "a"}, {"_id": "b"}]}
    mock_list.assert_awaited_once_with(2)


# ── GET /api/builds/{id} ─────────────────────────────────────────────────


@patch("app.api.routers.builds.build_service.get_build", new_callable=AsyncMock)
def test_get_build(mock_get, test_client):
    mock_get.return_value = BuildJob(build_id="bld-1", status="running")

    resp = test_client.get("/api/builds/bld-1")

    assert resp.status_code == 200
    assert resp.json()["status"] == "running"


@patch("app.api.routers.builds.build_service.get_build", new_callable=AsyncMock)
def test_get_build_not_found(mock_get, test_client):
    mock_get.side_effect = _http_error(404)

    resp = test_client.get("/api/builds/nope")

    assert resp.status_code == 404
    assert resp.json()["detail"] == "Build nope not found"


# ── POST /api/builds/{id}/cancel ─────────────────────────────────────────


@patch("app.api.routers.builds.build_service.cancel_build", new_callable=AsyncMock)
def test_cancel_build(mock_cancel, test_client):
    mock_cancel.return_value = {
        "build_id": "bld-1", "status": "canceled", "message": "Build canceled successfully",
    }

    resp = test_client.post("/api/builds/bld-1/cancel")

    assert resp.status_code == 200
    assert resp.json()["status"] == "canceled"
    mock_cancel.assert_awaited_once_with("bld-1")


# ── POST /api/builds/{id}/download ───────────────────────────────────────


@patch("app.api.routers.builds.build_service.download_build_artifacts", new_callable=AsyncMock)
def test_download_build(mock_download, test_client, tmp_path):
    mock_download.return_value = [tmp_path / "builds" / "bld-1" / "app.apk"]

    resp = test_client.post("/api/builds/bld-1/download")

    assert resp.status_code == 200
    assert resp.json() == {
        "build_id": "bld-1",
        "files": [str(tmp_path / "builds" / "bld-1" / "app.apk")],
    }
    mock_download.assert_awaited_once_with("bld-1")


@patch("app.api.routers.builds.build_service.download_build_artifacts", new_callable=AsyncMock)
def test_download_unfinished_build_is_409(mock_download, test_client):
    mock_download.side_effect = BuildError("Build bld-1 is not finished (status: running)", status_code=409)

    resp = test_client.post("/api/builds/bld-1/download")

    assert resp.status_code == 409
    assert "not finished" in resp.json()["detail"]
