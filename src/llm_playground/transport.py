from __future__ import annotations

import json
from collections.abc import AsyncIterator, Callable
from typing import Any

import httpx
from loguru import logger
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from llm_playground.constants import CHAT_COMPLETIONS_PATH, USER_GROUPS_PATH, USER_MODELS_PATH
from llm_playground.errors import NetworkError

_SSE_DATA_PREFIX = "data:"
_SSE_DONE = "[DONE]"


def _on_retry(retry_state) -> None:
    attempt = retry_state.attempt_number
    wait = retry_state.next_action.sleep if retry_state.next_action else 0
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    reason = type(exc).__name__ if exc else "Unknown"
    logger.warning(f"{reason}. Retrying in {wait:.1f}s (attempt {attempt})...")


def retry_kwargs(attempts: int, wait_seconds: float) -> dict:
    return {
        "retry": retry_if_exception_type((httpx.ConnectError, httpx.TimeoutException)),
        "wait": wait_exponential(multiplier=wait_seconds, min=wait_seconds, max=max(wait_seconds * 32, wait_seconds)),
        "stop": stop_after_attempt(max(1, attempts)),
        "before_sleep": _on_retry,
        "reraise": True,
    }


def _error_detail(body: str) -> str:
    try:
        parsed = json.loads(body)
    except json.JSONDecodeError:
        return body.strip()[:500]
    if isinstance(parsed, dict):
        error = parsed.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if parsed.get("message"):
            return str(parsed["message"])
    return body.strip()[:500]


def parse_sse_line(line: str) -> str | None:
    """Content fragment carried by one SSE line, or None if it carries none.

    Returns ``"[DONE]"`` unchanged for the end-of-stream marker.
    """
    stripped = line.strip()
    if not stripped.startswith(_SSE_DATA_PREFIX):
        return None
    data = stripped[len(_SSE_DATA_PREFIX):].strip()
    if data == _SSE_DONE:
        return _SSE_DONE
    try:
        chunk = json.loads(data)
    except json.JSONDecodeError:
        logger.warning(f"Skipping malformed stream chunk: {data[:200]}")
        return None
    if not isinstance(chunk, dict):
        return None
    error = chunk.get("error")
    if error:
        message = error.get("message") if isinstance(error, dict) else str(error)
        raise NetworkError(f"stream error: {message}")
    choices = chunk.get("choices") or []
    if not choices:
        return None
    delta = choices[0].get("delta") or {}
    content = delta.get("content")
    return content if isinstance(content, str) and content else None


def extract_message_content(body: dict) -> str:
    choices = body.get("choices") or []
    if not choices:
        return ""
    message = choices[0].get("message") or {}
    content = message.get("content")
    return content if isinstance(content, str) else ""


class PlaygroundClient:
    """HTTP client for the playground endpoints.

    Every transport failure surfaces as ``NetworkError``. The GET endpoints
    are retried on connect and timeout errors; chat completions are not.
    """

    def __init__(
        self,
        base_url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout: float = 60.0,
        retry_attempts: int = 3,
        retry_wait_seconds: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers or {},
            timeout=timeout,
            transport=transport,
        )
        self._retry_kwargs = retry_kwargs(retry_attempts, retry_wait_seconds)

    async def __aenter__(self) -> PlaygroundClient:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def stream_chat(
        self,
        payload: dict,
        *,
        on_raw_line: Callable[[str], None] | None = None,
    ) -> AsyncIterator[str]:
        logger.debug(f"POST {CHAT_COMPLETIONS_PATH} (stream): model={payload.get('model')}")
        try:
            async with self._client.stream("POST", CHAT_COMPLETIONS_PATH, json=payload) as response:
                if response.status_code >= 400:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    raise NetworkError(_error_detail(body), status_code=response.status_code)
                async for line in response.aiter_lines():
                    if not line.strip():
                        continue
                    if on_raw_line is not None:
                        on_raw_line(line)
                    fragment = parse_sse_line(line)
                    if fragment == _SSE_DONE:
                        break
                    if fragment is not None:
                        yield fragment
        except httpx.HTTPError as ex:
            raise NetworkError(f"{type(ex).__name__}: {ex}") from ex

    async def complete_chat(self, payload: dict) -> tuple[dict, str]:
        """Non-streaming completion. Returns (parsed body, raw body text)."""
        logger.debug(f"POST {CHAT_COMPLETIONS_PATH}: model={payload.get('model')}")
        try:
            response = await self._client.post(CHAT_COMPLETIONS_PATH, json=payload)
        except httpx.HTTPError as ex:
            raise NetworkError(f"{type(ex).__name__}: {ex}") from ex
        raw = response.text
        if response.status_code >= 400:
            raise NetworkError(_error_detail(raw), status_code=response.status_code)
        try:
            body = response.json()
        except json.JSONDecodeError as ex:
            raise NetworkError(f"response is not valid JSON: {raw[:200]}") from ex
        if not isinstance(body, dict):
            raise NetworkError("response body is not a JSON object")
        return body, raw

    async def list_models(self) -> list[str]:
        data = await self._get_data(USER_MODELS_PATH)
        if not isinstance(data, list):
            return []
        return [str(model) for model in data]

    async def list_groups(self) -> dict[str, Any]:
        data = await self._get_data(USER_GROUPS_PATH)
        return data if isinstance(data, dict) else {}

    async def _get_data(self, path: str) -> Any:
        try:
            async for attempt in AsyncRetrying(**self._retry_kwargs):
                with attempt:
                    response = await self._client.get(path)
        except httpx.HTTPError as ex:
            raise NetworkError(f"{type(ex).__name__}: {ex}") from ex

        if response.status_code >= 400:
            raise NetworkError(_error_detail(response.text), status_code=response.status_code)
        try:
            body = response.json()
        except json.JSONDecodeError as ex:
            raise NetworkError(f"GET {path} returned invalid JSON") from ex
        if isinstance(body, dict) and body.get("success") is False:
            raise NetworkError(str(body.get("message") or f"GET {path} failed"))
        logger.debug(f"GET {path}: ok")
        return body.get("data") if isinstance(body, dict) else body
