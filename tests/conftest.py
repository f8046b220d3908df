"""Shared test fixtures — reduces boilerplate across test modules.

Provides:
- ``set_test_config`` — autouse fixture that patches common settings
- ``reset_http_clients`` — autouse fixture that drops cached httpx clients
- ``test_client`` — pre-built TestClient against the app
- ``openai_response`` / ``codemagic_build`` — canned provider payloads
"""

import pytest
from fastapi.testclient import TestClient

from app.clients import codemagic_client, llm_client
from app.main import app


def pytest_configure(config):
    """Register custom markers.

    Tests that talk to the real completion or build provider should be
    decorated with ``@pytest.mark.integration`` and are skipped in CI with
    ``-m 'not integration'``.
    """
    config.addinivalue_line(
        "markers",
        "integration: tests requiring real external services (OpenAI, Codemagic)",
    )


# ---------------------------------------------------------------------------
# Environment patching
# ---------------------------------------------------------------------------

_SETTINGS_PATCHES: dict[str, object] = {
    "app.config.settings.OPENAI_API_KEY": "sk-test-key",
    "app.config.settings.OPENAI_MODEL": "gpt-4",
    "app.config.settings.CODEMAGIC_API_TOKEN": "cm-test-token",
    "app.config.settings.CODEMAGIC_APP_ID": "app-123",
    "app.config.settings.SAVE_GENERATED_FILES": False,
    "app.config.settings.BUILD_POLL_INTERVAL_SECONDS": 30.0,
    "app.config.settings.BUILD_MAX_WAIT_SECONDS": 1800.0,
}


@pytest.fixture(autouse=True)
def set_test_config(monkeypatch, tmp_path):
    """Patch common application settings for a safe test environment.

    This is ``autouse=True`` so every test automatically gets a
    deterministic, non-production configuration and never writes
    generated games outside its temporary directory.
    """
    for target, value in _SETTINGS_PATCHES.items():
        monkeypatch.setattr(target, value)
    monkeypatch.setattr("app.config.settings.OUTPUT_DIR", str(tmp_path / "generated"))


@pytest.fixture(autouse=True)
def reset_http_clients(monkeypatch):
    """Each test starts without a cached shared httpx client."""
    monkeypatch.setattr(llm_client, "_client", None)
    monkeypatch.setattr(codemagic_client, "_client", None)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def openai_payload(content: str = "void main() {}") -> dict:
    """A minimal successful Chat Completions response body."""
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
        "usage": {"prompt_tokens": 12, "completion_tokens": 34},
    }


def codemagic_build(build_id: str = "bld-1", status: str = "queued", **extra) -> dict:
    """A Codemagic ``{"build": {...}}`` response body."""
    return {"build": {"_id": build_id, "status": status, **extra}}


@pytest.fixture
def test_client() -> TestClient:
    """A fresh ``TestClient`` instance wrapping the FastAPI app."""
    return TestClient(app)
