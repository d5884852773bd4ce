from __future__ import annotations

import json
from collections.abc import Sequence

from loguru import logger

from llm_playground.config_store import ConfigStore
from llm_playground.constants import TUNABLE_PARAMETERS, MessageRole, MessageStatus
from llm_playground.errors import JsonParseError
from llm_playground.models import Message, RequestConfig


def parse_custom_body(body: str) -> dict:
    try:
        parsed = json.loads(body)
    except json.JSONDecodeError as ex:
        raise JsonParseError(f"custom request body is not valid JSON: {ex.msg} (line {ex.lineno}, column {ex.colno})") from ex
    if not isinstance(parsed, dict):
        raise JsonParseError(f"custom request body must be a JSON object, got {type(parsed).__name__}")
    return parsed


def _image_urls(config: RequestConfig) -> list[str]:
    if not config.inputs.image_enabled:
        return []
    return [url.strip() for url in config.inputs.image_urls if isinstance(url, str) and url.strip()]


def _to_payload_messages(config: RequestConfig, history: Sequence[Message]) -> list[dict]:
    out: list[dict] = []
    if config.system_prompt.strip():
        out.append({"role": str(MessageRole.SYSTEM), "content": config.system_prompt})

    for message in history:
        if message.status != MessageStatus.COMPLETE:
            continue
        out.append({"role": str(message.role), "content": message.content})

    images = _image_urls(config)
    if images:
        for entry in reversed(out):
            if entry["role"] != MessageRole.USER:
                continue
            parts: list[dict] = [{"type": "text", "text": entry["content"]}]
            parts.extend({"type": "image_url", "image_url": {"url": url}} for url in images)
            entry["content"] = parts
            break

    return out


def build_payload(config: RequestConfig, history: Sequence[Message]) -> dict:
    """Build the chat-completion payload for ``history`` under ``config``.

    Pure: neither argument is modified and equal inputs give equal payloads.
    """
    if config.custom_request_mode:
        return parse_custom_body(config.custom_request_body)

    inputs = config.inputs
    payload: dict = {
        "model": inputs.model,
        "group": inputs.group,
        "messages": _to_payload_messages(config, history),
        "stream": bool(inputs.stream),
    }
    for name in TUNABLE_PARAMETERS:
        if not config.parameter_enabled.get(name, False):
            continue
        value = getattr(inputs, name)
        if value is None:
            continue
        payload[name] = value
    return payload


class RequestBuilder:
    def __init__(self, config_store: ConfigStore):
        self._config_store = config_store

    def build(self, history: Sequence[Message]) -> dict:
        payload = build_payload(self._config_store.snapshot(), history)
        logger.debug(
            f"Built request: model={payload.get('model')}, messages={len(payload.get('messages', []))}, "
            f"stream={payload.get('stream')}"
        )
        return payload

    def preview(self, history: Sequence[Message], draft: str = "") -> dict:
        """Payload as it would be sent if ``draft`` were submitted now."""
        messages = list(history)
        if draft.strip():
            messages.append(
                Message(id="preview", role=MessageRole.USER, content=draft, status=MessageStatus.COMPLETE)
            )
        return build_payload(self._config_store.snapshot(), messages)
