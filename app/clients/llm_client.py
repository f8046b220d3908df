"""LLM client -- OpenAI-compatible chat completions wrapper."""

import asyncio
import logging

import httpx

logger = logging.getLogger(__name__)

# ── Shared HTTP client (connection pooling) ─────────────────────────────────

_client: httpx.AsyncClient | None = None


def _get_client() -> httpx.AsyncClient:
    """Return (or create) the shared httpx client for LLM API calls."""
    global _client
    if _client is None:
        _client = httpx.AsyncClient(timeout=300.0)
    return _client


async def close_client() -> None:
    """Close the shared LLM HTTP client.  Called during app shutdown."""
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None

# ---------------------------------------------------------------------------
# Retry configuration
# ---------------------------------------------------------------------------

MAX_RETRIES = 2
RETRY_BACKOFF_BASE = 2.0  # seconds, exponential: 2, 4, 8, ...
_RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503})


def _compute_wait(exc: httpx.HTTPStatusError | None, attempt: int) -> float:
    """Return seconds to wait before retrying.

    Prefers the ``retry-after`` header for 429s. Falls back to exponential
    backoff capped at 60 seconds.
    """
    if exc is not None and exc.response is not None:
        retry_after = exc.response.headers.get("retry-after")
        if retry_after:
            try:
                return min(float(retry_after), 120.0)
            except (ValueError, TypeError):
                pass
    return min(RETRY_BACKOFF_BASE ** (attempt + 1), 60.0)


async def _retry_on_transient(
    coro_factory,
    *,
    max_retries: int = MAX_RETRIES,
    backoff_base: float = RETRY_BACKOFF_BASE,
):
    """Retry a coroutine factory on transient HTTP / timeout errors.

    ``coro_factory`` is a zero-arg callable that returns a new awaitable each
    time (so we can retry fresh).
    """
    for attempt in range(max_retries + 1):
        try:
            return await coro_factory()
        except (httpx.TimeoutException, httpx.TransportError) as exc:
            if attempt >= max_retries:
                raise
            wait = min(backoff_base ** (attempt + 1), 60.0)
            logger.warning(
                "LLM request %s (attempt %d/%d), retrying in %.1fs",
                type(exc).__name__, attempt + 1, max_retries + 1, wait,
            )
            await asyncio.sleep(wait)
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code not in _RETRYABLE_STATUS_CODES or attempt >= max_retries:
                raise
            wait = _compute_wait(exc, attempt)
            logger.warning(
                "LLM request %d (attempt %d/%d), retrying in %.1fs",
                exc.response.status_code, attempt + 1, max_retries + 1, wait,
            )
            await asyncio.sleep(wait)
    raise RuntimeError("unreachable")  # pragma: no cover

# ---------------------------------------------------------------------------
# OpenAI
# ---------------------------------------------------------------------------

OPENAI_BASE_URL = "https://api.openai.com/v1"


def _openai_headers(api_key: str) -> dict:
    """Return standard OpenAI API headers."""
    return {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }


async def chat_openai(
    api_key: str,
    model: str,
    system_prompt: str,
    messages: list[dict],
    max_tokens: int = 4000,
    temperature: float = 0.7,
    *,
    base_url: str = OPENAI_BASE_URL,
    max_retries: int = MAX_RETRIES,
) -> dict:
    """Send a chat request to an OpenAI-style Chat Completions endpoint.

    Returns ``{"text": str, "usage": {"input_tokens": int, "output_tokens": int}}``.
    An empty *system_prompt* sends the conversation as-is.
    """
    oai_messages: list[dict] = []
    if system_prompt:
        oai_messages.append({"role": "system", "content": system_prompt})
    oai_messages.extend(messages)

    body: dict = {
        "model": model,
        "messages": oai_messages,
        "max_tokens": max_tokens,
        "temperature": temperature,
    }
    url = f"{base_url.rstrip('/')}/chat/completions"

    async def _call():
        client = _get_client()
        response = await client.post(
            url,
            headers=_openai_headers(api_key),
            json=body,
        )
        if response.status_code == 400:
            detail = response.json().get("error", {}).get("message", response.text)
            raise ValueError(f"OpenAI API error: {detail}")
        response.raise_for_status()

        data = response.json()
        choices = data.get("choices", [])
        if not choices:
            raise ValueError("Empty response from OpenAI API")

        content = choices[0].get("message", {}).get("content")
        if not content:
            raise ValueError("No content in OpenAI API response")

        usage = data.get("usage", {})
        return {
            "text": content,
            "usage": {
                "input_tokens": usage.get("prompt_tokens", 0),
                "output_tokens": usage.get("completion_tokens", 0),
            },
        }

    return await _retry_on_transient(_call, max_retries=max_retries)
