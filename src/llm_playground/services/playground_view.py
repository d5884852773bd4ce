from __future__ import annotations

import json

from llm_playground.constants import TUNABLE_PARAMETERS, DebugTab, MessageStatus
from llm_playground.errors import PlaygroundError
from llm_playground.models import Message, RequestConfig


class PlaygroundView:
    """Plain-text rendering of playground state for the terminal front end."""

    def __init__(self, *, line_prefix: str, short_id_len: int = 8, reasoning_preview_chars: int = 400):
        self._line_prefix = line_prefix
        self._short_id_len = short_id_len
        self._reasoning_preview_chars = reasoning_preview_chars

    def short_id(self, value: str) -> str:
        if len(value) <= self._short_id_len:
            return value
        return value[: self._short_id_len]

    def format_message_lines(self, message: Message) -> list[str]:
        marker = {
            MessageStatus.LOADING: "...",
            MessageStatus.INCOMPLETE: "~",
            MessageStatus.COMPLETE: "",
            MessageStatus.ERROR: "!",
        }[message.status]
        header = f"{self._line_prefix}[{self.short_id(message.id)}] {message.role}{marker and ' ' + marker}"
        lines = [header]
        if message.reasoning_content:
            if message.is_reasoning_expanded:
                lines.append(f"{self._line_prefix}  (reasoning) {self._clip(message.reasoning_content)}")
            else:
                lines.append(f"{self._line_prefix}  (reasoning hidden, {len(message.reasoning_content)} chars)")
        for line in message.content.splitlines() or [""]:
            lines.append(f"{self._line_prefix}  {line}")
        return lines

    def format_config_lines(self, config: RequestConfig) -> list[str]:
        inputs = config.inputs
        lines = [f"{self._line_prefix}Model: {inputs.model} | Group: {inputs.group or 'default'} | Stream: {inputs.stream}"]
        for name in TUNABLE_PARAMETERS:
            state = "on" if config.parameter_enabled.get(name, False) else "off"
            lines.append(f"{self._line_prefix}- {name} = {getattr(inputs, name)!r} ({state})")
        if config.system_prompt.strip():
            lines.append(f"{self._line_prefix}System prompt: {self._clip(config.system_prompt)}")
        if inputs.image_enabled:
            urls = [u for u in inputs.image_urls if u.strip()]
            lines.append(f"{self._line_prefix}Images: {', '.join(urls) if urls else '(none)'}")
        if config.custom_request_mode:
            lines.append(f"{self._line_prefix}Custom request mode: on")
        return lines

    def format_debug_view(self, tab: DebugTab, view: dict | str | None) -> list[str]:
        lines = [f"{self._line_prefix}[debug:{tab}]"]
        if view is None or view == "":
            lines.append(f"{self._line_prefix}(empty)")
            return lines
        text = view if isinstance(view, str) else json.dumps(view, indent=2, ensure_ascii=False)
        lines.extend(f"{self._line_prefix}{line}" for line in text.splitlines())
        return lines

    def format_error(self, error: Exception) -> str:
        if isinstance(error, PlaygroundError):
            return f"{self._line_prefix}Error: {error.describe()}"
        return f"{self._line_prefix}Error: {error}"

    def _clip(self, text: str) -> str:
        flat = " ".join(text.split())
        if len(flat) <= self._reasoning_preview_chars:
            return flat
        return flat[: self._reasoning_preview_chars - 3] + "..."
